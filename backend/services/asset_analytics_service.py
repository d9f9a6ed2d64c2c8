"""Service for per-asset and portfolio trading analytics.

Wraps the ledger builder and cost basis calculator for a priced holding and
derives the figures the holdings views need: PnL percentages, days held,
distance from cost basis and a DCA hint.
"""

import logging
import time
from collections.abc import Iterable, Mapping
from decimal import Decimal

from schemas.cost_basis import AssetAnalytics, DcaSignal, PortfolioAnalytics
from schemas.records import PortfolioAsset, RawTransactionRecord, RawTransferRecord
from services.cost_basis_service import CostBasisService
from services.ledger_builder_service import LedgerBuilderService
from utils.numbers import ZERO, decimal_or_zero, positive_or_none

logger = logging.getLogger(__name__)

MS_PER_DAY = 86_400_000
HUNDRED = Decimal("100")

# (threshold, signal, label); distance = (price - avg_buy) / avg_buy
_DISCOUNT_SIGNALS = (
    (Decimal("-0.30"), DcaSignal.STRONG_BUY, "Strong Buy"),
    (Decimal("-0.10"), DcaSignal.BUY, "Buy Zone"),
)
_PREMIUM_SIGNALS = (
    (Decimal("0.50"), DcaSignal.SELL, "Take Profit"),
    (Decimal("0.25"), DcaSignal.TRIM, "Trim"),
)


def dca_signal_for(price_distance: Decimal) -> tuple[DcaSignal, str]:
    """Map a price distance from cost basis to a DCA signal and label."""
    for threshold, signal, label in _DISCOUNT_SIGNALS:
        if price_distance < threshold:
            return signal, label
    for threshold, signal, label in _PREMIUM_SIGNALS:
        if price_distance > threshold:
            return signal, label
    return DcaSignal.HOLD, "Hold"


class AssetAnalyticsService:
    """Derives holdings analytics from trades, transfers and current prices."""

    @staticmethod
    def calculate_asset_analytics(
        asset: PortfolioAsset | Mapping,
        transactions: Iterable[RawTransactionRecord | Mapping] | None,
        *,
        transfers: Iterable[RawTransferRecord | Mapping] | None = None,
        from_ms: int | None = None,
        to_ms: int | None = None,
        deposit_basis_price: Decimal | float | None = None,
        as_of_ms: int | None = None,
    ) -> AssetAnalytics:
        """Compute analytics for one held asset.

        Inbound transfers are valued at ``deposit_basis_price`` when given,
        otherwise at the asset's current price. ``as_of_ms`` pins "now" for
        the days-held figure.
        """
        if not isinstance(asset, PortfolioAsset):
            asset = PortfolioAsset.model_validate(asset)

        price = positive_or_none(asset.price) or ZERO
        basis_price = positive_or_none(deposit_basis_price) or price

        events = LedgerBuilderService.build_ledger_events(
            symbol=asset.symbol,
            transactions=transactions or [],
            transfers=transfers or [],
            from_ms=from_ms,
            to_ms=to_ms,
            deposit_basis_price=basis_price,
        )
        snapshot = CostBasisService.compute_cost_basis_snapshot(
            events=events,
            current_price=price,
            current_balance=decimal_or_zero(asset.balance),
        )

        avg_buy_price = snapshot.avg_buy_price_current
        cost_basis = snapshot.cost_basis
        unrealized_pnl = snapshot.unrealized_pnl
        unrealized_pnl_percent = (
            unrealized_pnl / cost_basis * HUNDRED if cost_basis > 0 else ZERO
        )

        # Wallet-only holdings have no history; approximate with the 24h move.
        value_usd = decimal_or_zero(asset.value_usd)
        change_24h = asset.price_change_24h
        if (
            avg_buy_price == 0
            and value_usd > 0
            and change_24h is not None
            and change_24h.is_finite()
            and HUNDRED + change_24h != 0
        ):
            unrealized_pnl = value_usd * (change_24h / (HUNDRED + change_24h))
            unrealized_pnl_percent = change_24h

        now_ms = as_of_ms if as_of_ms is not None else int(time.time() * 1000)
        days_held = (
            max(0, (now_ms - snapshot.first_buy_date) // MS_PER_DAY)
            if snapshot.first_buy_date > 0
            else 0
        )

        price_distance = (
            (price - avg_buy_price) / avg_buy_price if avg_buy_price > 0 else ZERO
        )
        if avg_buy_price > 0 and price > 0:
            dca_signal, dca_label = dca_signal_for(price_distance)
        else:
            dca_signal, dca_label = DcaSignal.HOLD, "Hold"

        return AssetAnalytics(
            symbol=asset.symbol,
            avg_buy_price=avg_buy_price,
            avg_buy_price_lifetime=snapshot.avg_buy_price_lifetime or None,
            avg_sell_price=snapshot.avg_sell_price,
            total_bought=snapshot.total_bought,
            total_cost=snapshot.total_cost,
            total_sold=snapshot.total_sold,
            total_proceeds=snapshot.total_proceeds,
            realized_pnl=snapshot.realized_pnl,
            unrealized_pnl=unrealized_pnl,
            unrealized_pnl_percent=unrealized_pnl_percent,
            days_held=days_held,
            first_buy_date=snapshot.first_buy_date,
            last_buy_date=snapshot.last_buy_date,
            last_sell_date=snapshot.last_sell_date,
            price_distance=price_distance,
            buy_count=snapshot.buy_count,
            sell_count=snapshot.sell_count,
            net_position=snapshot.net_position,
            cost_basis=cost_basis,
            dca_signal=dca_signal,
            dca_label=dca_label,
            basis_confidence=snapshot.basis_confidence,
            total_fees_usd=snapshot.total_fees_usd,
        )

    @staticmethod
    def calculate_portfolio_analytics(
        assets: Iterable[PortfolioAsset | Mapping],
        transactions: Iterable[RawTransactionRecord | Mapping] | None,
        *,
        transfers: Iterable[RawTransferRecord | Mapping] | None = None,
        from_ms: int | None = None,
        to_ms: int | None = None,
        deposit_basis_price_by_symbol: Mapping[str, Decimal | float] | None = None,
        as_of_ms: int | None = None,
    ) -> PortfolioAnalytics:
        """Aggregate analytics across every asset in the portfolio.

        A symbol's sells count as winning trades when its average sell price
        beats its lifetime (or, failing that, current) average buy price.
        """
        # Materialize once; every asset re-reads the full record set.
        transactions = list(transactions or [])
        transfers = list(transfers or [])
        basis_prices = deposit_basis_price_by_symbol or {}

        total_cost_basis = ZERO
        total_realized_pnl = ZERO
        total_unrealized_pnl = ZERO
        total_trades = 0
        winning_trades = 0

        for asset in assets:
            if not isinstance(asset, PortfolioAsset):
                asset = PortfolioAsset.model_validate(asset)
            analytics = AssetAnalyticsService.calculate_asset_analytics(
                asset,
                transactions,
                transfers=transfers,
                from_ms=from_ms,
                to_ms=to_ms,
                deposit_basis_price=basis_prices.get(asset.symbol.upper(), asset.price),
                as_of_ms=as_of_ms,
            )
            total_cost_basis += analytics.cost_basis
            total_realized_pnl += analytics.realized_pnl
            total_unrealized_pnl += analytics.unrealized_pnl
            total_trades += analytics.buy_count + analytics.sell_count

            avg_buy = (
                analytics.avg_buy_price_lifetime
                if analytics.avg_buy_price_lifetime is not None
                else analytics.avg_buy_price
            )
            if analytics.sell_count > 0 and analytics.avg_sell_price > avg_buy:
                winning_trades += analytics.sell_count

        win_rate = (
            Decimal(winning_trades) / Decimal(total_trades) * HUNDRED
            if total_trades > 0
            else ZERO
        )
        logger.debug(
            "Portfolio analytics: %d trades, %d winning", total_trades, winning_trades
        )

        return PortfolioAnalytics(
            total_cost_basis=total_cost_basis,
            total_realized_pnl=total_realized_pnl,
            total_unrealized_pnl=total_unrealized_pnl,
            total_trades=total_trades,
            win_rate=win_rate,
        )
