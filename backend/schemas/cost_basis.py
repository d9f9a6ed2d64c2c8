"""Pydantic schemas for cost basis snapshots and asset analytics."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict


class BasisConfidence(str, Enum):
    """Whether a cost basis rests only on fill prices or partly on estimates."""

    EXACT = "exact"
    ESTIMATED = "estimated"


class AssetAccountingSnapshot(BaseModel):
    """FIFO accounting result for one asset.

    Dates are epoch ms; 0 means the event never happened in the window.
    """

    model_config = ConfigDict(frozen=True)

    avg_buy_price_current: Decimal  # Open-lot cost / open-lot qty
    avg_buy_price_lifetime: Decimal  # Total cost / total bought
    avg_sell_price: Decimal
    cost_basis: Decimal  # Of the lot-covered part of the current balance
    realized_pnl: Decimal
    unrealized_pnl: Decimal
    total_fees_usd: Decimal
    basis_confidence: BasisConfidence
    total_bought: Decimal
    total_sold: Decimal
    total_cost: Decimal
    total_proceeds: Decimal
    buy_count: int
    sell_count: int
    net_position: Decimal  # Negative when history is incomplete
    first_buy_date: int
    last_buy_date: int
    last_sell_date: int


class DcaSignal(str, Enum):
    """Dollar-cost-averaging hint from price distance to cost basis."""

    STRONG_BUY = "STRONG_BUY"
    BUY = "BUY"
    HOLD = "HOLD"
    TRIM = "TRIM"
    SELL = "SELL"


class AssetAnalytics(BaseModel):
    """Per-asset analytics derived from a cost basis snapshot."""

    symbol: str
    avg_buy_price: Decimal  # FIFO, current position only
    avg_buy_price_lifetime: Decimal | None = None
    avg_sell_price: Decimal
    total_bought: Decimal
    total_cost: Decimal
    total_sold: Decimal
    total_proceeds: Decimal
    realized_pnl: Decimal
    unrealized_pnl: Decimal
    unrealized_pnl_percent: Decimal
    days_held: int
    first_buy_date: int
    last_buy_date: int
    last_sell_date: int
    price_distance: Decimal
    buy_count: int
    sell_count: int
    net_position: Decimal
    cost_basis: Decimal
    dca_signal: DcaSignal
    dca_label: str
    basis_confidence: BasisConfidence
    total_fees_usd: Decimal


class PortfolioAnalytics(BaseModel):
    """Totals across every asset in a portfolio."""

    total_cost_basis: Decimal
    total_realized_pnl: Decimal
    total_unrealized_pnl: Decimal
    total_trades: int
    win_rate: Decimal  # Percent of trades on winning symbols
