"""Service for FIFO cost basis accounting over a ledger.

Consumes LedgerEvents for one asset with a first-in-first-out lot queue and
produces an AssetAccountingSnapshot. Every call owns its own lot queue and
accumulators; a snapshot is a pure function of (events, current_price,
current_balance) and nothing persists between calls.

Degenerate input never raises: selling more than the observed history can
explain simply drains the queue and drives net_position negative.
"""

import logging
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, replace
from decimal import Decimal

from config import settings
from schemas.cost_basis import AssetAccountingSnapshot, BasisConfidence
from schemas.ledger import ACQUISITION_KINDS, LedgerEvent, LedgerEventKind
from utils.numbers import ZERO, decimal_or_zero, positive_or_none

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _Lot:
    """One still-open acquisition tranche (replaced, never mutated, on partial fills)."""

    qty: Decimal
    cost_usd: Decimal
    estimated: bool
    timestamp: int


class _LotQueue:
    """FIFO queue of open lots; append at the tail, consume from the head."""

    def __init__(self, epsilon: Decimal):
        self._lots: deque[_Lot] = deque()
        self._epsilon = epsilon

    def push(self, lot: _Lot) -> None:
        self._lots.append(lot)

    def consume(self, qty: Decimal) -> tuple[Decimal, Decimal]:
        """Remove ``qty`` units oldest-first.

        Returns:
            (consumed cost, quantity the queue could not cover)
        """
        remaining = qty
        consumed_cost = ZERO
        while remaining > 0 and self._lots:
            lot = self._lots[0]
            take = min(remaining, lot.qty)
            unit_cost = lot.cost_usd / lot.qty if lot.qty > 0 else ZERO
            removed = take * unit_cost
            consumed_cost += removed
            remaining -= take
            left = replace(lot, qty=lot.qty - take, cost_usd=lot.cost_usd - removed)
            if left.qty <= self._epsilon:
                self._lots.popleft()
            else:
                self._lots[0] = left
        return consumed_cost, remaining

    @property
    def quantity(self) -> Decimal:
        return sum((lot.qty for lot in self._lots), ZERO)

    @property
    def cost(self) -> Decimal:
        return sum((lot.cost_usd for lot in self._lots), ZERO)

    @property
    def has_estimated(self) -> bool:
        return any(lot.estimated for lot in self._lots)


class CostBasisService:
    """Computes FIFO cost basis snapshots from ordered ledger events."""

    @staticmethod
    def compute_cost_basis_snapshot(
        *,
        events: Sequence[LedgerEvent],
        current_price: Decimal | float | None,
        current_balance: Decimal | float | None,
    ) -> AssetAccountingSnapshot:
        """Run FIFO lot accounting and derive the snapshot.

        Args:
            events: Ledger events for one asset. Expected ascending by
                timestamp; a stable-sorted copy is used regardless.
            current_price: Mark price in quote currency per unit
            current_balance: Externally reported holding; unrealized PnL
                only covers the part of it the lot queue can explain

        Returns:
            A fresh AssetAccountingSnapshot.
        """
        ordered = _in_timestamp_order(events)
        lots = _LotQueue(settings.LOT_QTY_EPSILON)

        total_bought = ZERO
        total_sold = ZERO
        total_cost = ZERO
        total_proceeds = ZERO
        realized_pnl = ZERO
        total_fees_usd = ZERO
        buy_count = 0
        sell_count = 0
        first_buy_date = 0
        last_buy_date = 0
        last_sell_date = 0

        for event in ordered:
            qty = positive_or_none(event.qty)
            if qty is None:
                continue
            fee = decimal_or_zero(event.fee_usd)
            if fee > 0:
                total_fees_usd += fee

            kind = event.kind
            if kind in ACQUISITION_KINDS:
                price = positive_or_none(event.price)
                if price is None:
                    continue
                if kind == LedgerEventKind.TRADE_BUY:
                    cost = qty * price + fee
                    estimated = event.estimated_basis
                else:
                    # Deposit valuations are inferred; the network fee is not capitalised.
                    cost = qty * price
                    estimated = True
                lots.push(_Lot(qty=qty, cost_usd=cost, estimated=estimated, timestamp=event.timestamp))
                total_bought += qty
                total_cost += cost
                buy_count += 1
                if not first_buy_date:
                    first_buy_date = event.timestamp
                last_buy_date = event.timestamp

            elif kind == LedgerEventKind.TRADE_SELL:
                price = positive_or_none(event.price)
                if price is None:
                    continue
                proceeds = qty * price - fee
                consumed_cost, uncovered = lots.consume(qty)
                _log_underflow(event, uncovered)
                realized_pnl += proceeds - consumed_cost
                total_sold += qty
                total_proceeds += proceeds
                sell_count += 1
                last_sell_date = event.timestamp

            elif kind in (LedgerEventKind.TRANSFER_OUT, LedgerEventKind.INTERNAL_MOVE_OUT):
                # Not a disposal against a price: consume lots, book no PnL.
                _, uncovered = lots.consume(qty)
                _log_underflow(event, uncovered)
                total_sold += qty
                sell_count += 1
                last_sell_date = event.timestamp

            # FEE and FUNDING have no lot effect.

        lots_qty = lots.quantity
        lots_cost = lots.cost
        avg_buy_price_current = lots_cost / lots_qty if lots_qty > 0 else ZERO
        avg_buy_price_lifetime = total_cost / total_bought if total_bought > 0 else ZERO
        avg_sell_price = total_proceeds / total_sold if total_sold > 0 else ZERO

        price = decimal_or_zero(current_price)
        balance = decimal_or_zero(current_balance)

        # Holdings with no observed acquisition are left out of unrealized PnL.
        covered_qty = max(ZERO, min(balance, lots_qty))
        cost_basis = (
            covered_qty * avg_buy_price_current
            if covered_qty > 0 and avg_buy_price_current > 0
            else ZERO
        )
        unrealized_pnl = (
            covered_qty * price - cost_basis
            if covered_qty > 0 and price > 0
            else ZERO
        )

        basis_confidence = (
            BasisConfidence.ESTIMATED if lots.has_estimated else BasisConfidence.EXACT
        )

        return AssetAccountingSnapshot(
            avg_buy_price_current=avg_buy_price_current,
            avg_buy_price_lifetime=avg_buy_price_lifetime,
            avg_sell_price=avg_sell_price,
            cost_basis=cost_basis,
            realized_pnl=realized_pnl,
            unrealized_pnl=unrealized_pnl,
            total_fees_usd=total_fees_usd,
            basis_confidence=basis_confidence,
            total_bought=total_bought,
            total_sold=total_sold,
            total_cost=total_cost,
            total_proceeds=total_proceeds,
            buy_count=buy_count,
            sell_count=sell_count,
            net_position=total_bought - total_sold,
            first_buy_date=first_buy_date,
            last_buy_date=last_buy_date,
            last_sell_date=last_sell_date,
        )


def _in_timestamp_order(events: Sequence[LedgerEvent]) -> list[LedgerEvent]:
    """Stable-sorted copy of the events; the caller's list is left untouched."""
    ordered = sorted(events, key=lambda e: e.timestamp)
    if any(a is not b for a, b in zip(ordered, events)):
        logger.debug("Ledger events arrived out of timestamp order; re-sorted %d events", len(ordered))
    return ordered


def _log_underflow(event: LedgerEvent, uncovered: Decimal) -> None:
    if uncovered > 0:
        logger.debug(
            "Lot queue exhausted on %s %s (%s): %s units predate the observed history",
            event.kind.value,
            event.symbol,
            event.id,
            uncovered,
        )
