"""
Market order simulation: walk the opposing side of the book.

**Conceptual**: A market order takes liquidity at whatever prices are
available. Starting at the touch (best ask for a buy, best bid for a sell) it
consumes each level in price order until the requested quantity is filled or
the visible book runs out.

**Financial assumptions**:
  - Only price priority is modelled. A snapshot carries aggregate quantity per
    price, not individual orders, so each level is one atomic slice.
  - Levels showing zero quantity are skipped (they contribute no fill leg).
  - The book does not refill during the walk; liquidity beyond the visible
    top-N levels is unknown and treated as absent.

**Status rules**:
  - FILLED: remaining quantity reached zero.
  - PARTIAL_FILL: something filled, but the visible book ran out.
  - FAILED: nothing filled. Reason "no liquidity" if the opposing side was
    empty, "exhausted book" if it had levels but none with quantity.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from depth_sim.analytics.metrics import impact_bps, slippage_bps
from depth_sim.data.schemas import OrderBookSnapshot, OrderSide, PriceLevel
from depth_sim.execution.models import (
    REASON_EXHAUSTED_BOOK,
    REASON_NO_LIQUIDITY,
    FillLeg,
    MarketSimulationResult,
    SimulationStatus,
)
from depth_sim.utils.math import ensure_finite


@dataclass(frozen=True)
class BookWalk:
    """
    Raw outcome of consuming levels, before metrics are attached.

    Attributes:
        fills: Legs in the order they were consumed.
        filled_quantity: quantity - remaining_quantity.
        remaining_quantity: Quantity left when the walk stopped.
        total_cost: Sum of price * quantity over the legs.
    """
    fills: Tuple[FillLeg, ...]
    filled_quantity: float
    remaining_quantity: float
    total_cost: float

    @property
    def avg_fill_price(self) -> Optional[float]:
        """total_cost / filled_quantity, None when nothing filled."""
        if self.filled_quantity <= 0:
            return None
        return self.total_cost / self.filled_quantity


def can_trade(side: OrderSide, level_price: float, limit_price: Optional[float]) -> bool:
    """
    Whether a level is within the requester's limit.

    A buy may take asks priced at or below the limit; a sell may hit bids
    priced at or above it. Without a limit every level is tradable.
    """
    if limit_price is None:
        return True
    if side == OrderSide.BUY:
        return level_price <= limit_price
    return level_price >= limit_price


def walk_book(
    levels: Sequence[PriceLevel],
    side: OrderSide,
    quantity: float,
    limit_price: Optional[float] = None,
) -> BookWalk:
    """
    Consume opposing levels in price order.

    **Algorithm**:
      1. For each level (best first), stop if it fails the limit gate.
      2. Take min(remaining, level quantity), record a FillLeg, add to cost.
      3. Stop once remaining reaches zero or the levels are exhausted.

    Args:
        levels: Opposing side of the book, best price first.
        side: Requester's side (decides the direction of the limit gate).
        quantity: Quantity to fill (> 0).
        limit_price: Optional price cap (buy) or floor (sell). The walk stops at
                     the first level beyond it, not merely when levels run out.

    Returns:
        BookWalk with legs, filled/remaining quantity and total cost.
    """
    remaining = quantity
    total_cost = 0.0
    fills: List[FillLeg] = []

    for index, level in enumerate(levels):
        if remaining <= 0:
            break
        if not can_trade(side, level.price, limit_price):
            break
        take = min(remaining, level.quantity)
        if take <= 0:
            continue
        fills.append(FillLeg(price=level.price, quantity=take, level_index=index))
        total_cost += take * level.price
        remaining -= take

    return BookWalk(
        fills=tuple(fills),
        filled_quantity=quantity - remaining,
        remaining_quantity=remaining,
        total_cost=total_cost,
    )


def simulate_market_order(
    snapshot: OrderBookSnapshot,
    side: OrderSide,
    quantity: float,
) -> MarketSimulationResult:
    """
    Simulate a market order against the snapshot's opposing side.

    Slippage and impact are measured against the opposing best price captured
    before the walk (the pre-trade touch).

    Args:
        snapshot: Book to walk (read-only).
        side: Buy walks the asks, Sell walks the bids.
        quantity: Requested quantity; the orchestrator guarantees > 0.

    Returns:
        MarketSimulationResult with status FILLED, PARTIAL_FILL or FAILED.

    Example:
        >>> snapshot = OrderBookSnapshot.from_raw(
        ...     "okx", bids=[], asks=[[100, 2], [101, 3], [102, 10]])
        >>> result = simulate_market_order(snapshot, OrderSide.BUY, 5)
        >>> result.avg_fill_price
        100.6
    """
    levels = snapshot.side(side)

    if not levels:
        return MarketSimulationResult(
            side=side,
            quantity=quantity,
            status=SimulationStatus.FAILED,
            filled_quantity=0.0,
            remaining_quantity=quantity,
            avg_fill_price=None,
            slippage_bps=None,
            impact_bps=None,
            reason=REASON_NO_LIQUIDITY,
        )

    touch_price = levels[0].price
    walk = walk_book(levels, side, quantity)
    avg_fill_price = ensure_finite(walk.avg_fill_price, "avg_fill_price")

    if walk.filled_quantity <= 0:
        status = SimulationStatus.FAILED
        reason = REASON_EXHAUSTED_BOOK
    elif walk.remaining_quantity > 0:
        status = SimulationStatus.PARTIAL_FILL
        reason = None
    else:
        status = SimulationStatus.FILLED
        reason = None

    slippage = ensure_finite(slippage_bps(avg_fill_price, touch_price, side), "slippage_bps")

    return MarketSimulationResult(
        side=side,
        quantity=quantity,
        status=status,
        filled_quantity=walk.filled_quantity,
        remaining_quantity=walk.remaining_quantity,
        avg_fill_price=avg_fill_price,
        slippage_bps=slippage,
        impact_bps=impact_bps(slippage),
        fills=walk.fills,
        reason=reason,
    )
