"""Test fixtures and sample data."""
import pytest
from decimal import Decimal

from schemas.ledger import LedgerEvent, LedgerEventKind
from schemas.records import PortfolioAsset, RawTransactionRecord, RawTransferRecord

# 2026-01-01T00:00:00Z and one day, in epoch ms
T0 = 1_767_225_600_000
DAY_MS = 86_400_000


def make_transaction(
    side: str = "buy",
    amount: str | Decimal = "1",
    price: str | Decimal | None = "100",
    ts: int = T0,
    symbol: str = "BTC",
    fee: str | Decimal | None = None,
    **extra,
) -> RawTransactionRecord:
    """Build a raw trade record with sensible defaults."""
    return RawTransactionRecord(
        id=extra.pop("id", f"tx-{side}-{ts}"),
        symbol=symbol,
        side=side,
        amount=Decimal(str(amount)),
        price=None if price is None else Decimal(str(price)),
        fee=None if fee is None else Decimal(str(fee)),
        timestamp=ts,
        exchange=extra.pop("exchange", "binance"),
        **extra,
    )


def make_transfer(
    type: str = "Deposit",
    amount: str | Decimal = "1",
    ts: int = T0,
    symbol: str = "BTC",
    **extra,
) -> RawTransferRecord:
    """Build a raw transfer record with sensible defaults."""
    return RawTransferRecord(
        id=extra.pop("id", f"tr-{type.lower()}-{ts}"),
        type=type,
        asset=symbol,
        amount=Decimal(str(amount)),
        timestamp=ts,
        connection_id=extra.pop("connection_id", "conn-1"),
        **extra,
    )


def make_event(
    kind: LedgerEventKind,
    qty: str | Decimal = "1",
    price: str | Decimal | None = None,
    ts: int = T0,
    fee_usd: str | Decimal | None = None,
    estimated_basis: bool = False,
    symbol: str = "BTC",
) -> LedgerEvent:
    """Build a ledger event directly, bypassing the builder."""
    return LedgerEvent(
        id=f"{kind.value.lower()}-{ts}",
        kind=kind,
        symbol=symbol,
        timestamp=ts,
        qty=Decimal(str(qty)),
        price=None if price is None else Decimal(str(price)),
        fee_usd=None if fee_usd is None else Decimal(str(fee_usd)),
        estimated_basis=estimated_basis,
    )


def buy(qty, price, ts=T0, fee=None, estimated=False) -> LedgerEvent:
    return make_event(LedgerEventKind.TRADE_BUY, qty, price, ts, fee, estimated)


def sell(qty, price, ts=T0, fee=None) -> LedgerEvent:
    return make_event(LedgerEventKind.TRADE_SELL, qty, price, ts, fee)


@pytest.fixture
def btc_trades() -> list[RawTransactionRecord]:
    """Two BTC buys followed by a partial sell (the classic FIFO scenario)."""
    return [
        make_transaction("buy", "1", "10000", T0, fee="5", id="b1"),
        make_transaction("buy", "1", "20000", T0 + DAY_MS, fee="5", id="b2"),
        make_transaction("sell", "1.5", "25000", T0 + 2 * DAY_MS, fee="10", id="s1"),
    ]


@pytest.fixture
def btc_asset() -> PortfolioAsset:
    """A priced BTC holding matching the btc_trades fixture."""
    return PortfolioAsset(
        symbol="BTC",
        balance=Decimal("0.5"),
        value_usd=Decimal("15000"),
        price=Decimal("30000"),
    )
