#!/usr/bin/env python
"""Print a FIFO cost basis report for one asset from an exported record file.

The record file is JSON: {"transactions": [...], "transfers": [...]}, or a
bare list of transactions. Field names may be snake_case or camelCase.

Usage:
    cd backend
    uv run python -m scripts.cost_basis_report trades.json --symbol BTC --price 64000 --balance 0.8
    uv run python -m scripts.cost_basis_report trades.json --symbol ETH --from 2026-01-01 --to 2026-03-31
    uv run python -m scripts.cost_basis_report trades.json --symbol SOL --deposit-basis-price 140 --json
"""

import argparse
import json
import sys
from datetime import date, datetime
from decimal import Decimal

from logging_config import setup_logging
from schemas.cost_basis import AssetAccountingSnapshot, BasisConfidence
from services.cost_basis_service import CostBasisService
from services.ledger_builder_service import LedgerBuilderService
from services.record_loader import RecordLoadError, load_record_bundle
from utils.numbers import to_decimal
from utils.timestamps import date_to_ms, ms_to_datetime


def _parse_date(s: str) -> date:
    return datetime.strptime(s, "%Y-%m-%d").date()


def _parse_decimal(s: str) -> Decimal:
    value = to_decimal(s)
    if value is None:
        raise argparse.ArgumentTypeError(f"not a finite number: {s!r}")
    return value


def _fmt_dec(val: Decimal, places: int = 2) -> str:
    """Format decimal with thousands separator."""
    fmt = f",.{places}f"
    return format(float(val), fmt)


def _fmt_signed(val: Decimal, places: int = 2) -> str:
    """Format with sign and thousands separator."""
    prefix = "+" if val > 0 else ""
    return f"{prefix}{_fmt_dec(val, places)}"


def _fmt_ms(ms: int) -> str:
    if not ms:
        return "—"
    return ms_to_datetime(ms).strftime("%Y-%m-%d %H:%M")


def format_report(symbol: str, snapshot: AssetAccountingSnapshot, event_count: int) -> str:
    """Render the snapshot as an aligned text report."""
    rows = [
        ("Events", str(event_count)),
        ("Basis confidence", snapshot.basis_confidence.value),
        ("Buys / sells", f"{snapshot.buy_count} / {snapshot.sell_count}"),
        ("Total bought", _fmt_dec(snapshot.total_bought, 8)),
        ("Total sold", _fmt_dec(snapshot.total_sold, 8)),
        ("Net position", _fmt_dec(snapshot.net_position, 8)),
        ("Avg buy (current)", _fmt_dec(snapshot.avg_buy_price_current)),
        ("Avg buy (lifetime)", _fmt_dec(snapshot.avg_buy_price_lifetime)),
        ("Avg sell", _fmt_dec(snapshot.avg_sell_price)),
        ("Cost basis", _fmt_dec(snapshot.cost_basis)),
        ("Realized PnL", _fmt_signed(snapshot.realized_pnl)),
        ("Unrealized PnL", _fmt_signed(snapshot.unrealized_pnl)),
        ("Fees", _fmt_dec(snapshot.total_fees_usd)),
        ("First buy", _fmt_ms(snapshot.first_buy_date)),
        ("Last buy", _fmt_ms(snapshot.last_buy_date)),
        ("Last sell", _fmt_ms(snapshot.last_sell_date)),
    ]
    width = max(len(label) for label, _ in rows)
    lines = [f"Cost basis report: {symbol.upper()}", "=" * (width + 24)]
    lines.extend(f"{label:<{width}}  {value:>20}" for label, value in rows)
    if snapshot.net_position < 0:
        lines.append("")
        lines.append("Note: more sold than bought in this window; history is incomplete.")
    if snapshot.basis_confidence == BasisConfidence.ESTIMATED:
        lines.append("Note: open lots include deposit valuations, not fill prices.")
    return "\n".join(lines)


def cost_basis_report(
    path: str,
    symbol: str,
    price: Decimal | None = None,
    balance: Decimal | None = None,
    deposit_basis_price: Decimal | None = None,
    from_date: date | None = None,
    to_date: date | None = None,
    as_json: bool = False,
) -> str:
    """Load records, run the ledger + FIFO engine, and render the result."""
    bundle = load_record_bundle(path)
    events = LedgerBuilderService.build_ledger_events(
        symbol=symbol,
        transactions=bundle.transactions,
        transfers=bundle.transfers,
        from_ms=date_to_ms(from_date) if from_date else None,
        to_ms=date_to_ms(to_date, end_of_day=True) if to_date else None,
        deposit_basis_price=deposit_basis_price,
    )
    snapshot = CostBasisService.compute_cost_basis_snapshot(
        events=events,
        current_price=price,
        current_balance=balance,
    )
    if as_json:
        return json.dumps(snapshot.model_dump(mode="json"), indent=2)
    return format_report(symbol, snapshot, len(events))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="FIFO cost basis report for one asset")
    parser.add_argument("path", help="JSON record file")
    parser.add_argument("--symbol", required=True, help="Asset symbol, e.g. BTC")
    parser.add_argument("--price", type=_parse_decimal, default=None, help="Current price per unit")
    parser.add_argument("--balance", type=_parse_decimal, default=None, help="Current balance held")
    parser.add_argument(
        "--deposit-basis-price",
        type=_parse_decimal,
        default=None,
        help="Valuation for deposits that carry no price",
    )
    parser.add_argument("--from", dest="from_date", type=_parse_date, default=None, help="Start date YYYY-MM-DD")
    parser.add_argument("--to", dest="to_date", type=_parse_date, default=None, help="End date YYYY-MM-DD (inclusive)")
    parser.add_argument("--json", action="store_true", help="Print the snapshot as JSON")
    args = parser.parse_args(argv)

    setup_logging()

    try:
        output = cost_basis_report(
            args.path,
            args.symbol,
            price=args.price,
            balance=args.balance,
            deposit_basis_price=args.deposit_basis_price,
            from_date=args.from_date,
            to_date=args.to_date,
            as_json=args.json,
        )
    except RecordLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
