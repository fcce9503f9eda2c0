"""
Book metrics: mid price, spread, slippage and market impact.

**Conceptual**: These are the numbers a trader reads first when sizing an
order. Mid and spread describe the book before trading; slippage and impact
describe how far an execution landed from a reference price.

**Sign convention for slippage**: worse execution is always positive.
  - Buy:  (avg_fill - reference) / reference * 10000
  - Sell: (reference - avg_fill) / reference * 10000
Paying above the touch on a buy, or receiving below it on a sell, both show
up as positive basis points.

**Reference prices**:
  - Market and aggressive-limit fills: best opposing price before the walk
    (the pre-trade touch), never a level consumed mid-walk.
  - Passive limit orders: the mid price, with the limit price as the "fill".

Every function returns None instead of NaN or infinity when an input is
missing or the reference is zero.
"""

from typing import Optional

from depth_sim.data.schemas import OrderBookSnapshot, OrderSide
from depth_sim.utils.math import safe_ratio, to_bps

# Slippage thresholds (bps) separating low / moderate / high impact
MODERATE_IMPACT_BPS = 20.0
HIGH_IMPACT_BPS = 50.0


def mid_price(snapshot: OrderBookSnapshot) -> Optional[float]:
    """
    Average of best bid and best ask.

    Returns:
        (best_bid + best_ask) / 2, or None if either side is empty.
    """
    best_bid = snapshot.best_bid()
    best_ask = snapshot.best_ask()
    if best_bid is None or best_ask is None:
        return None
    return (best_bid.price + best_ask.price) / 2


def spread_bps(snapshot: OrderBookSnapshot) -> Optional[float]:
    """
    Quoted spread relative to mid, in basis points.

    **Mathematical**: (best_ask - best_bid) / mid * 10000

    Returns:
        Spread in bps, or None when the mid price is undefined.
    """
    mid = mid_price(snapshot)
    if mid is None:
        return None
    return to_bps(safe_ratio(snapshot.best_ask().price - snapshot.best_bid().price, mid))


def slippage_bps(
    avg_fill_price: Optional[float],
    reference_price: Optional[float],
    side: OrderSide,
) -> Optional[float]:
    """
    Directional slippage of a fill price against a reference price.

    Args:
        avg_fill_price: Achieved (or assumed) execution price.
        reference_price: Touch or mid price to compare against.
        side: Requester's side; flips the sign for sells.

    Returns:
        Slippage in bps (positive = worse than reference), or None when
        either price is missing or the reference is zero.
    """
    if avg_fill_price is None or reference_price is None:
        return None
    ratio = safe_ratio(avg_fill_price - reference_price, reference_price)
    if ratio is None:
        return None
    direction = 1.0 if side == OrderSide.BUY else -1.0
    return to_bps(ratio) * direction


def impact_bps(slippage: Optional[float]) -> Optional[float]:
    """Market impact: magnitude of slippage."""
    if slippage is None:
        return None
    return abs(slippage)


def distance_from_touch(snapshot: OrderBookSnapshot, side: OrderSide, price: float) -> Optional[float]:
    """
    Absolute distance between `price` and the same-side best price.

    For a buy, the touch is the best bid; for a sell, the best ask.
    """
    levels = snapshot.same_side(side)
    if not levels:
        return None
    return abs(price - levels[0].price)


def price_improvement(snapshot: OrderBookSnapshot, side: OrderSide, price: float) -> Optional[float]:
    """
    How far `price` improves on the same-side best price (never negative).

    A buy at 99.5 with best bid 99 improves by 0.5; a buy at 98 improves by 0.
    """
    levels = snapshot.same_side(side)
    if not levels:
        return None
    current_best = levels[0].price
    if side == OrderSide.BUY:
        return max(0.0, price - current_best)
    return max(0.0, current_best - price)


def impact_severity(slippage: Optional[float]) -> Optional[str]:
    """
    Bucket slippage into "low", "moderate" or "high".

    Thresholds: above 50 bps is high, above 20 bps is moderate.
    """
    if slippage is None:
        return None
    magnitude = abs(slippage)
    if magnitude > HIGH_IMPACT_BPS:
        return "high"
    if magnitude > MODERATE_IMPACT_BPS:
        return "moderate"
    return "low"
