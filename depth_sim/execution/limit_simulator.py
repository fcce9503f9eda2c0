"""
Limit order simulation: aggressive fills, queue position and time to fill.

**Conceptual**: A limit order either crosses the spread on arrival
(aggressive) or rests in the book (passive).

**Classification** (exact comparisons, no tolerance):
  - Buy is aggressive when limit_price >= best ask.
  - Sell is aggressive when limit_price <= best bid.

**Aggressive orders** walk the opposing side like a market order, but stop at
the first level priced beyond the limit. Whatever is left keeps resting at the
limit price, so an unfilled remainder is RESTING (nothing filled) or
PARTIAL_FILL (something filled), never FAILED. The remainder's time to fill
is estimated over the book left after the walk.

**Passive orders** never fill in the simulation. We report:
  - Queue position on the requester's own side. Better-priced levels count as
    ahead; the first level at exactly the limit price also counts in full.
    This is a worst-case placement (we assume we join the back of that level).
  - An estimated time to fill: opposing liquidity priced at least as well as
    the limit, times a fixed turnover rate (10% of visible liquidity per
    minute by default), rounded and floored at one second.
  - Slippage against mid, using the limit price as the fill price.

**Teaching note**: The time-to-fill figure is a coarse heuristic, not a
queueing model. The turnover constant is a placeholder and lives in
SimulationSettings so callers can tune it.
"""

from typing import Optional, Sequence, Tuple

from depth_sim.analytics.metrics import (
    distance_from_touch,
    impact_bps,
    mid_price,
    price_improvement,
    slippage_bps,
)
from depth_sim.config.settings import SimulationSettings
from depth_sim.data.schemas import OrderBookSnapshot, OrderSide, PriceLevel
from depth_sim.execution.market_simulator import can_trade, walk_book
from depth_sim.execution.models import (
    REASON_NO_MARKET_DATA,
    FillLeg,
    LimitSimulationResult,
    QueuePosition,
    SimulationStatus,
)
from depth_sim.utils.math import ensure_finite


def is_aggressive(snapshot: OrderBookSnapshot, side: OrderSide, limit_price: float) -> bool:
    """
    True when the limit order crosses the opposing touch on arrival.

    Requires the opposing side to be non-empty.
    """
    if side == OrderSide.BUY:
        return limit_price >= snapshot.best_ask().price
    return limit_price <= snapshot.best_bid().price


def queue_position(
    same_side_levels: Sequence[PriceLevel],
    side: OrderSide,
    limit_price: float,
) -> QueuePosition:
    """
    Estimate how much resting interest sits ahead of a new order at `limit_price`.

    **Algorithm**: scan the requester's side best-first.
      - Level priced better than the limit: counts fully as ahead.
      - First level at exactly the limit price: counts fully as ahead, then stop.
      - First level priced worse: stop (we would queue ahead of it).

    Args:
        same_side_levels: Bids for a buy, asks for a sell, best first.
        side: Requester's side.
        limit_price: Price the order rests at.

    Returns:
        QueuePosition with level count, quantity ahead and whether the order
        would open a new price level.

    Example:
        Buy at 95 with bids [[99, 1], [95, 2]] -> levels_ahead=2, quantity_ahead=3.
    """
    levels_ahead = 0
    quantity_ahead = 0.0
    found_same_price = False

    for level in same_side_levels:
        if side == OrderSide.BUY:
            better = level.price > limit_price
        else:
            better = level.price < limit_price

        if better:
            levels_ahead += 1
            quantity_ahead += level.quantity
        elif level.price == limit_price:
            levels_ahead += 1
            quantity_ahead += level.quantity
            found_same_price = True
            break
        else:
            break

    return QueuePosition(
        levels_ahead=levels_ahead,
        quantity_ahead=quantity_ahead,
        would_create_new_level=not found_same_price,
    )


def estimate_time_to_fill(
    opposing_levels: Sequence[PriceLevel],
    side: OrderSide,
    limit_price: float,
    settings: Optional[SimulationSettings] = None,
) -> int:
    """
    Heuristic seconds until a resting order at `limit_price` fills.

    **Mathematical**:
        liquidity = sum(qty of opposing levels priced at least as well as the limit)
        seconds   = max(floor, round(liquidity * turnover_rate_per_second))

    The opposing scan stops at the first level outside the limit, matching the
    price-ordered walk.

    Args:
        opposing_levels: Asks for a buy, bids for a sell, best first.
        side: Requester's side.
        limit_price: Price the order rests at.
        settings: Turnover rate and floor; defaults to SimulationSettings().

    Returns:
        Estimated whole seconds, at least `settings.min_time_to_fill_seconds`.
    """
    settings = settings or SimulationSettings()

    liquidity_ahead = 0.0
    for level in opposing_levels:
        if not can_trade(side, level.price, limit_price):
            break
        liquidity_ahead += level.quantity

    estimated = ensure_finite(
        liquidity_ahead * settings.turnover_rate_per_second, "estimated_time_to_fill"
    )
    return max(settings.min_time_to_fill_seconds, round(estimated))


def residual_levels(levels: Sequence[PriceLevel], fills: Sequence[FillLeg]) -> Tuple[PriceLevel, ...]:
    """
    The opposing side as it stands after a walk: consumed quantity removed.

    Levels emptied by the walk are kept with zero quantity so indices still
    line up with FillLeg.level_index.
    """
    taken = {leg.level_index: leg.quantity for leg in fills}
    return tuple(
        PriceLevel(level.price, max(0.0, level.quantity - taken.get(index, 0.0)))
        for index, level in enumerate(levels)
    )


def _no_market_data(side: OrderSide, quantity: float, limit_price: float) -> LimitSimulationResult:
    return LimitSimulationResult(
        side=side,
        quantity=quantity,
        status=SimulationStatus.FAILED,
        filled_quantity=0.0,
        remaining_quantity=quantity,
        avg_fill_price=None,
        slippage_bps=None,
        impact_bps=None,
        limit_price=limit_price,
        aggressive=False,
        reason=REASON_NO_MARKET_DATA,
    )


def simulate_aggressive_limit_order(
    snapshot: OrderBookSnapshot,
    side: OrderSide,
    quantity: float,
    limit_price: float,
    settings: Optional[SimulationSettings] = None,
) -> LimitSimulationResult:
    """
    Fill a crossing limit order up to its limit, resting any remainder.

    Slippage is measured against the pre-trade touch, as for market orders.
    A remainder gets a queue position on the requester's side at the limit
    price and a time-to-fill estimate over the book left after the walk, so
    liquidity this order already took is not counted again. A full fill
    reports neither queue position nor wait (time to fill 0).
    """
    opposing = snapshot.side(side)
    touch_price = opposing[0].price
    walk = walk_book(opposing, side, quantity, limit_price=limit_price)
    avg_fill_price = ensure_finite(walk.avg_fill_price, "avg_fill_price")

    if walk.remaining_quantity <= 0:
        status = SimulationStatus.FILLED
    elif walk.filled_quantity > 0:
        status = SimulationStatus.PARTIAL_FILL
    else:
        status = SimulationStatus.RESTING

    if walk.remaining_quantity > 0:
        position = queue_position(snapshot.same_side(side), side, limit_price)
        time_to_fill = estimate_time_to_fill(
            residual_levels(opposing, walk.fills), side, limit_price, settings
        )
    else:
        position = None
        time_to_fill = 0

    slippage = ensure_finite(slippage_bps(avg_fill_price, touch_price, side), "slippage_bps")

    return LimitSimulationResult(
        side=side,
        quantity=quantity,
        status=status,
        filled_quantity=walk.filled_quantity,
        remaining_quantity=walk.remaining_quantity,
        avg_fill_price=avg_fill_price,
        slippage_bps=slippage,
        impact_bps=impact_bps(slippage),
        limit_price=limit_price,
        aggressive=True,
        fills=walk.fills,
        queue_position=position,
        estimated_time_to_fill_seconds=time_to_fill,
    )


def simulate_passive_limit_order(
    snapshot: OrderBookSnapshot,
    side: OrderSide,
    quantity: float,
    limit_price: float,
    settings: Optional[SimulationSettings] = None,
) -> LimitSimulationResult:
    """Rest a non-crossing limit order and describe where it would sit."""
    mid = mid_price(snapshot)
    slippage = ensure_finite(slippage_bps(limit_price, mid, side), "slippage_bps")

    return LimitSimulationResult(
        side=side,
        quantity=quantity,
        status=SimulationStatus.RESTING,
        filled_quantity=0.0,
        remaining_quantity=quantity,
        avg_fill_price=None,
        slippage_bps=slippage,
        impact_bps=impact_bps(slippage),
        limit_price=limit_price,
        aggressive=False,
        queue_position=queue_position(snapshot.same_side(side), side, limit_price),
        estimated_time_to_fill_seconds=estimate_time_to_fill(
            snapshot.side(side), side, limit_price, settings
        ),
        distance_from_mid=abs(limit_price - mid) if mid is not None else None,
        distance_from_touch=distance_from_touch(snapshot, side, limit_price),
        price_improvement=price_improvement(snapshot, side, limit_price),
    )


def simulate_limit_order(
    snapshot: OrderBookSnapshot,
    side: OrderSide,
    quantity: float,
    limit_price: float,
    settings: Optional[SimulationSettings] = None,
) -> LimitSimulationResult:
    """
    Simulate a limit order against the snapshot.

    Both sides of the book must be visible: with either side empty the order
    cannot be classified and the result is FAILED with reason "no market data".

    Args:
        snapshot: Book to evaluate against (read-only).
        side: Buy or Sell.
        quantity: Requested quantity (> 0, checked by the orchestrator).
        limit_price: Limit price (> 0, checked by the orchestrator).
        settings: Heuristic constants; defaults to SimulationSettings().

    Returns:
        LimitSimulationResult.

    Example:
        >>> snapshot = OrderBookSnapshot.from_raw(
        ...     "okx", bids=[[99, 1]], asks=[[100, 2], [102, 5]])
        >>> result = simulate_limit_order(snapshot, OrderSide.BUY, 5, 101)
        >>> result.status.value, result.filled_quantity
        ('partial_fill', 2.0)
    """
    if not snapshot.has_both_sides:
        return _no_market_data(side, quantity, limit_price)

    if is_aggressive(snapshot, side, limit_price):
        return simulate_aggressive_limit_order(snapshot, side, quantity, limit_price, settings)
    return simulate_passive_limit_order(snapshot, side, quantity, limit_price, settings)
