"""Pydantic schemas for normalized ledger events."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict


class LedgerEventKind(str, Enum):
    """Kind of accounting-relevant occurrence for a single asset."""

    TRADE_BUY = "TRADE_BUY"
    TRADE_SELL = "TRADE_SELL"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"
    INTERNAL_MOVE_IN = "INTERNAL_MOVE_IN"
    INTERNAL_MOVE_OUT = "INTERNAL_MOVE_OUT"
    FEE = "FEE"
    FUNDING = "FUNDING"


ACQUISITION_KINDS = frozenset({
    LedgerEventKind.TRADE_BUY,
    LedgerEventKind.TRANSFER_IN,
    LedgerEventKind.INTERNAL_MOVE_IN,
})


class LedgerEvent(BaseModel):
    """One normalized ledger event; immutable once built.

    ``price`` is required for trades to count and optional (best-effort
    valuation) for inbound transfers. The provenance fields are carried
    for audit/debugging and play no part in the lot math.
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    kind: LedgerEventKind
    symbol: str
    timestamp: int  # Epoch ms
    qty: Decimal
    price: Decimal | None = None
    fee_usd: Decimal | None = None
    fee_asset: str | None = None
    quote_asset: str | None = None
    connection_id: str | None = None
    exchange: str | None = None
    source_type: str | None = None
    estimated_basis: bool = False
