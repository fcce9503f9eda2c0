"""
Order request and simulation result models.

**Conceptual**: A simulation takes one SimulationRequest and produces one
SimulationResult. The result is a tagged union keyed by (order type, status):

  - MarketSimulationResult: order_type Market, status Filled / PartialFill / Failed.
  - LimitSimulationResult: order_type Limit, status Filled / PartialFill /
    Resting / Failed, plus limit-only fields (queue position, time to fill).
  - ErrorResult: status Error, a reason string and an echo of the request.

Each variant's fields are statically known, so callers dispatch on the class
(or on `status`) instead of probing for optional keys.

**Lifecycle**: results are frozen, produced once per call and owned by the
caller. The engine keeps no history.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from depth_sim.data.schemas import OrderSide


class OrderType(str, Enum):
    MARKET = "Market"
    LIMIT = "Limit"


class SimulationStatus(str, Enum):
    FILLED = "filled"
    PARTIAL_FILL = "partial_fill"
    RESTING = "resting"
    FAILED = "failed"
    ERROR = "error"


# Failure / error reasons
REASON_NO_LIQUIDITY = "no liquidity"
REASON_EXHAUSTED_BOOK = "exhausted book"
REASON_NO_MARKET_DATA = "no market data"
REASON_INVALID_QUANTITY = "invalid quantity"
REASON_MISSING_LIMIT_PRICE = "missing limit price"
REASON_INVALID_LIMIT_PRICE = "invalid limit price"
REASON_INVALID_REQUEST = "invalid request"
REASON_COMPUTATION_ERROR = "computation error"


@dataclass(frozen=True)
class SimulationRequest:
    """
    A hypothetical order to evaluate against a snapshot.

    The request does not validate itself; `simulate` checks it and reports
    problems as an ErrorResult so that a bad request still yields a value.

    Attributes:
        side: Buy or Sell.
        order_type: Market or Limit.
        quantity: Requested quantity (must be > 0 to simulate).
        limit_price: Limit price; present if and only if order_type is Limit.
    """
    side: OrderSide
    order_type: OrderType
    quantity: float
    limit_price: Optional[float] = None

    @classmethod
    def market(cls, side: OrderSide, quantity: float) -> "SimulationRequest":
        return cls(side=side, order_type=OrderType.MARKET, quantity=quantity)

    @classmethod
    def limit(cls, side: OrderSide, quantity: float, limit_price: float) -> "SimulationRequest":
        return cls(side=side, order_type=OrderType.LIMIT, quantity=quantity, limit_price=limit_price)


@dataclass(frozen=True)
class FillLeg:
    """
    One consumed slice of a book level.

    Attributes:
        price: Level price the slice executed at.
        quantity: Quantity taken from the level.
        level_index: 0-based position of the level on the opposing side.
    """
    price: float
    quantity: float
    level_index: int

    @property
    def cost(self) -> float:
        return self.price * self.quantity


@dataclass(frozen=True)
class QueuePosition:
    """
    Estimated place of a resting limit order in its side's queue.

    Attributes:
        levels_ahead: Count of same-side levels priced better than or equal
                      to the limit price.
        quantity_ahead: Summed quantity of those levels.
        would_create_new_level: True when no visible level sits exactly at
                                the limit price.
    """
    levels_ahead: int
    quantity_ahead: float
    would_create_new_level: bool


def _plain(value: Any) -> Any:
    """Convert enums and tuples from asdict() output into JSON-safe values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


class _FillSummary:
    """Derived fill metrics shared by market and limit results."""

    fills: Tuple[FillLeg, ...]
    quantity: float
    filled_quantity: float

    @property
    def filled_pct(self) -> float:
        """Filled fraction of the requested quantity (0.0 to 1.0)."""
        return self.filled_quantity / self.quantity

    @property
    def best_fill_price(self) -> Optional[float]:
        return self.fills[0].price if self.fills else None

    @property
    def worst_fill_price(self) -> Optional[float]:
        return self.fills[-1].price if self.fills else None

    @property
    def levels_consumed(self) -> int:
        return len(self.fills)

    @property
    def total_cost(self) -> float:
        return sum(leg.cost for leg in self.fills)

    def to_dict(self) -> Dict[str, Any]:
        """
        Flatten the result for the presentation layer.

        Includes the variant's fields, the derived fill metrics and the order
        type tag. Enum members become their string values.
        """
        payload = _plain(asdict(self))
        payload.update(
            order_type=self.order_type.value,
            filled_pct=self.filled_pct,
            best_fill_price=self.best_fill_price,
            worst_fill_price=self.worst_fill_price,
            levels_consumed=self.levels_consumed,
            total_cost=self.total_cost,
        )
        return payload


@dataclass(frozen=True)
class MarketSimulationResult(_FillSummary):
    """
    Outcome of walking the opposing side with a market order.

    Attributes:
        side: Requester's side.
        quantity: Requested quantity.
        status: FILLED, PARTIAL_FILL or FAILED.
        filled_quantity: Quantity executed across all legs.
        remaining_quantity: quantity - filled_quantity.
        avg_fill_price: Volume-weighted fill price, None when nothing filled.
        slippage_bps: Directional slippage vs the pre-trade touch.
        impact_bps: abs(slippage_bps).
        fills: Consumed legs in walk order.
        reason: Failure reason for FAILED results, else None.
    """
    side: OrderSide
    quantity: float
    status: SimulationStatus
    filled_quantity: float
    remaining_quantity: float
    avg_fill_price: Optional[float]
    slippage_bps: Optional[float]
    impact_bps: Optional[float]
    fills: Tuple[FillLeg, ...] = ()
    reason: Optional[str] = None

    @property
    def order_type(self) -> OrderType:
        return OrderType.MARKET


@dataclass(frozen=True)
class LimitSimulationResult(_FillSummary):
    """
    Outcome of placing a limit order against the snapshot.

    **Aggressive** orders (crossing the touch) carry fills up to the limit
    price; any remainder rests at the limit price. **Passive** orders never
    fill and report queue position, an estimated time to fill and their
    distances from mid and touch.

    Attributes:
        side, quantity, status, filled_quantity, remaining_quantity,
        avg_fill_price, slippage_bps, impact_bps, fills, reason:
            As for MarketSimulationResult.
        limit_price: The order's limit price.
        aggressive: True when the order crossed the touch on arrival.
        queue_position: Queue estimate for the resting remainder, None when
                        nothing rests.
        estimated_time_to_fill_seconds: Heuristic time for the resting
                                        remainder to fill; 0 when fully filled.
        distance_from_mid: abs(limit - mid); passive orders only.
        distance_from_touch: abs(limit - same-side best); passive orders only.
        price_improvement: How far the limit improves the same-side best
                           (never negative); passive orders only.
    """
    side: OrderSide
    quantity: float
    status: SimulationStatus
    filled_quantity: float
    remaining_quantity: float
    avg_fill_price: Optional[float]
    slippage_bps: Optional[float]
    impact_bps: Optional[float]
    limit_price: float
    aggressive: bool
    fills: Tuple[FillLeg, ...] = ()
    queue_position: Optional[QueuePosition] = None
    estimated_time_to_fill_seconds: Optional[int] = None
    distance_from_mid: Optional[float] = None
    distance_from_touch: Optional[float] = None
    price_improvement: Optional[float] = None
    reason: Optional[str] = None

    @property
    def order_type(self) -> OrderType:
        return OrderType.LIMIT


@dataclass(frozen=True)
class ErrorResult:
    """
    A request that could not be simulated.

    Carries no numeric outcome beyond an echo of the request.

    Attributes:
        side: Requested side (echo).
        order_type: Requested order type (echo).
        quantity: Requested quantity (echo).
        limit_price: Requested limit price (echo), None for market requests.
        reason: Why the simulation did not run.
        detail: Optional diagnostic text (e.g. the faulting expression).
    """
    side: OrderSide
    order_type: OrderType
    quantity: float
    reason: str
    limit_price: Optional[float] = None
    detail: str = ""

    @property
    def status(self) -> SimulationStatus:
        return SimulationStatus.ERROR

    def to_dict(self) -> Dict[str, Any]:
        payload = _plain(asdict(self))
        payload["status"] = self.status.value
        return payload


SimulationResult = Union[MarketSimulationResult, LimitSimulationResult, ErrorResult]
