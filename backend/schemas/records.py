"""Pydantic schemas for raw upstream records.

Connectors (exchange APIs, wallet indexers, manual entry) hand over loosely
normalized trade and transfer records. These models accept both the
snake_case attribute names and the camelCase keys the connectors emit, and
deliberately keep numeric fields permissive (NaN/inf allowed, everything
optional) so noisy records reach the ledger builder and get filtered there
instead of failing validation.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_RECORD_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
    allow_inf_nan=True,
    coerce_numbers_to_str=True,
)

Timestamp = int | float | str | datetime | None


class RawTransactionRecord(BaseModel):
    """One executed trade (or funding payment) as reported upstream."""

    model_config = _RECORD_CONFIG

    id: str = ""
    symbol: str | None = None
    asset: str | None = None
    side: str | None = None  # "buy" | "sell" | "long" | "short" | "funding"
    type: str | None = None  # Fallback for connectors that report side as type
    amount: Decimal | None = None
    price: Decimal | None = None  # Quote currency per unit
    fee: Decimal | None = None
    fee_usd: Decimal | None = None
    fee_asset: str | None = None
    fee_currency: str | None = None
    fee_type: str | None = None  # "trading" | "network" | "funding"
    quote_asset: str | None = None
    timestamp: Timestamp = None
    connection_id: str | None = None
    exchange: str | None = None
    source_type: str | None = None  # "cex" | "dex" | "wallet" | "manual"
    estimated_basis: bool | None = None  # Price is not an authoritative fill


class RawTransferRecord(BaseModel):
    """One deposit, withdrawal or internal move not tied to a trade fill."""

    model_config = _RECORD_CONFIG

    id: str = ""
    type: str | None = None  # "Deposit" | "Withdraw" | "internal" | ...
    asset: str | None = None
    symbol: str | None = None
    amount: Decimal | None = None
    status: str | None = None
    timestamp: Timestamp = None
    tx_hash: str | None = None
    connection_id: str | None = None
    exchange: str | None = None
    fee_usd: Decimal | None = None
    fee_asset: str | None = None
    fee_type: str | None = None
    source_type: str | None = None
    is_internal_transfer: bool | None = None


class PortfolioAsset(BaseModel):
    """Current holding of one asset, as priced by the market data collaborator."""

    model_config = _RECORD_CONFIG

    symbol: str
    balance: Decimal = Decimal("0")
    value_usd: Decimal = Decimal("0")
    price: Decimal | None = None
    price_change_24h: Decimal | None = Field(
        default=None, alias="priceChange24h"
    )  # Percent, e.g. 4.2 for +4.2%


class RecordBundle(BaseModel):
    """Trades and transfers loaded together for ledger building."""

    model_config = _RECORD_CONFIG

    transactions: list[RawTransactionRecord] = []
    transfers: list[RawTransferRecord] = []
