"""Service for building a normalized ledger from raw upstream records.

Pure transform: projects heterogeneous trade and transfer records onto one
time-ordered, symbol-filtered list of LedgerEvents for a single asset.
Records that cannot be accounted for are dropped silently; noisy upstream
data is expected, so nothing here raises for a well-typed record.
"""

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal

from pydantic import ValidationError

from schemas.ledger import LedgerEvent, LedgerEventKind
from schemas.records import RawTransactionRecord, RawTransferRecord
from utils.numbers import ZERO, positive_or_none, to_decimal
from utils.symbol import normalize_symbol, symbols_match
from utils.timestamps import coerce_epoch_ms

logger = logging.getLogger(__name__)

BUY_SIDES = frozenset({"buy", "long"})
SELL_SIDES = frozenset({"sell", "short"})
FUNDING = "funding"
INTERNAL = "internal"
WITHDRAWAL_MARKER = "with"


class LedgerBuilderService:
    """Builds LedgerEvent lists from raw transactions and transfers."""

    @staticmethod
    def build_ledger_events(
        *,
        symbol: str,
        transactions: Iterable[RawTransactionRecord | Mapping] | None,
        transfers: Iterable[RawTransferRecord | Mapping] | None = None,
        from_ms: int | None = None,
        to_ms: int | None = None,
        deposit_basis_price: Decimal | float | None = None,
    ) -> list[LedgerEvent]:
        """Build the ordered ledger for one asset.

        Args:
            symbol: Target asset; compared after normalization
            transactions: Trade/funding records (models or mappings)
            transfers: Deposit/withdrawal/internal-move records
            from_ms: Inclusive lower bound on record timestamp (epoch ms)
            to_ms: Inclusive upper bound on record timestamp (epoch ms)
            deposit_basis_price: Best-effort valuation applied to inbound
                transfers; ignored unless finite and > 0

        Returns:
            Events sorted ascending by timestamp. Ties keep input order,
            transactions before transfers.
        """
        target = normalize_symbol(symbol)
        basis_price = positive_or_none(deposit_basis_price)
        events: list[LedgerEvent] = []
        seen = 0

        for raw in transactions or []:
            seen += 1
            tx = _coerce(raw, RawTransactionRecord)
            if tx is None:
                continue
            event = _transaction_event(tx, target, from_ms, to_ms)
            if event is not None:
                events.append(event)

        for raw in transfers or []:
            seen += 1
            tr = _coerce(raw, RawTransferRecord)
            if tr is None:
                continue
            event = _transfer_event(tr, target, from_ms, to_ms, basis_price)
            if event is not None:
                events.append(event)

        events.sort(key=lambda e: e.timestamp)
        logger.debug(
            "Built ledger for %s: %d events kept, %d records dropped",
            target or symbol,
            len(events),
            seen - len(events),
        )
        return events


def _coerce(raw, model):
    """Validate a mapping into ``model``; malformed records yield None."""
    if isinstance(raw, model):
        return raw
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        logger.debug(
            "Dropping malformed %s: %d invalid field(s)", model.__name__, e.error_count()
        )
        return None


def _is_in_range(ts: int | None, from_ms: int | None, to_ms: int | None) -> bool:
    if ts is None or ts <= 0:
        return False
    if from_ms is not None and ts < from_ms:
        return False
    if to_ms is not None and ts > to_ms:
        return False
    return True


def _matches(record, target: str) -> bool:
    return symbols_match(record.symbol or record.asset, target)


def _trade_fee_usd(tx: RawTransactionRecord) -> Decimal:
    """Fee in quote currency: explicit USD fee, else raw fee, else zero."""
    fee = to_decimal(tx.fee_usd)
    if fee is None:
        fee = to_decimal(tx.fee)
    return ZERO if fee is None else fee


def _transaction_event(
    tx: RawTransactionRecord,
    target: str,
    from_ms: int | None,
    to_ms: int | None,
) -> LedgerEvent | None:
    ts = coerce_epoch_ms(tx.timestamp)
    if not _is_in_range(ts, from_ms, to_ms):
        return None
    if not _matches(tx, target):
        return None

    amount = positive_or_none(tx.amount)
    if amount is None:
        return None

    side = (tx.side or tx.type or "").strip().lower()
    tx_type = (tx.type or "").strip().lower()

    if side == FUNDING or (tx.fee_type or "").lower() == FUNDING:
        # Funding has no meaningful unit price; kept for audit only.
        return LedgerEvent(
            id=tx.id,
            kind=LedgerEventKind.FUNDING,
            symbol=target,
            timestamp=ts,
            qty=amount,
            connection_id=tx.connection_id,
            exchange=tx.exchange,
            source_type=tx.source_type,
        )

    is_buy = side in BUY_SIDES or tx_type == "buy"
    is_sell = side in SELL_SIDES or tx_type == "sell"
    if not is_buy and not is_sell:
        return None

    price = positive_or_none(tx.price)
    if price is None:
        logger.debug("Dropping %s trade %s without a fill price", target, tx.id)
        return None

    return LedgerEvent(
        id=tx.id,
        kind=LedgerEventKind.TRADE_BUY if is_buy else LedgerEventKind.TRADE_SELL,
        symbol=target,
        timestamp=ts,
        qty=amount,
        price=price,
        fee_usd=_trade_fee_usd(tx),
        fee_asset=tx.fee_asset or tx.fee_currency,
        quote_asset=tx.quote_asset,
        connection_id=tx.connection_id,
        exchange=tx.exchange,
        source_type=tx.source_type,
        estimated_basis=bool(tx.estimated_basis),
    )


def transfer_kind(transfer: RawTransferRecord) -> LedgerEventKind:
    """Classify a transfer by internal flag and withdrawal direction."""
    t = (transfer.type or "").strip().lower()
    is_internal = bool(transfer.is_internal_transfer) or t == INTERNAL
    is_out = WITHDRAWAL_MARKER in t
    if is_internal:
        return LedgerEventKind.INTERNAL_MOVE_OUT if is_out else LedgerEventKind.INTERNAL_MOVE_IN
    return LedgerEventKind.TRANSFER_OUT if is_out else LedgerEventKind.TRANSFER_IN


def _transfer_event(
    tr: RawTransferRecord,
    target: str,
    from_ms: int | None,
    to_ms: int | None,
    basis_price: Decimal | None,
) -> LedgerEvent | None:
    ts = coerce_epoch_ms(tr.timestamp)
    if not _is_in_range(ts, from_ms, to_ms):
        return None
    if not _matches(tr, target):
        return None

    qty = positive_or_none(tr.amount)
    if qty is None:
        return None

    kind = transfer_kind(tr)
    inbound = kind in (LedgerEventKind.TRANSFER_IN, LedgerEventKind.INTERNAL_MOVE_IN)
    fee = to_decimal(tr.fee_usd)

    return LedgerEvent(
        id=tr.id,
        kind=kind,
        symbol=target,
        timestamp=ts,
        qty=qty,
        price=basis_price if inbound else None,
        fee_usd=ZERO if fee is None else fee,
        fee_asset=tr.fee_asset,
        connection_id=tr.connection_id,
        exchange=tr.exchange,
        source_type=tr.source_type,
        estimated_basis=inbound,
    )
