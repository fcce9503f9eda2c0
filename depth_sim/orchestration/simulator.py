"""
Simulation entry point.

**Conceptual**: `simulate(snapshot, request)` is the only function callers
need. It validates the request, dispatches to the market or limit simulator
and always returns a SimulationResult, including for bad requests and
internal faults. Nothing raises past this boundary.

**Validation rules** (applied before any book access):
  - quantity must be a finite number > 0, else ErrorResult "invalid quantity".
  - Limit requests need a limit price, else ErrorResult "missing limit price".
  - A limit price must be a finite number > 0, else "invalid limit price".

**Concurrency**: The function is pure. It reads the snapshot, keeps no state
between calls and performs no I/O on success, so it can run from any number
of threads as long as each snapshot is left unmodified while in use. Delayed
execution ("simulate in 10 seconds") belongs to the caller; see
depth_sim.orchestration.timing.

**Logging**: Only rejected requests (info) and internal faults (error) are
logged. structlog prints every level until configured, so applications call
`depth_sim.utils.logging.configure_logging` to set a threshold.
"""

import math
from dataclasses import replace
from typing import Iterable, List, Optional

import structlog

from depth_sim.config.settings import SimulationSettings
from depth_sim.data.schemas import OrderBookSnapshot, OrderSide
from depth_sim.execution.errors import SimulationError, SimulationValidationError
from depth_sim.execution.limit_simulator import simulate_limit_order
from depth_sim.execution.market_simulator import simulate_market_order
from depth_sim.execution.models import (
    REASON_COMPUTATION_ERROR,
    REASON_INVALID_LIMIT_PRICE,
    REASON_INVALID_REQUEST,
    REASON_INVALID_QUANTITY,
    REASON_MISSING_LIMIT_PRICE,
    ErrorResult,
    OrderType,
    SimulationRequest,
    SimulationResult,
)

logger = structlog.get_logger(__name__)


def _positive_float(value) -> Optional[float]:
    """float(value) when it is a finite number > 0, else None."""
    if isinstance(value, (bool, str, bytes)):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def validate_request(request: SimulationRequest) -> SimulationRequest:
    """
    Check request shape and numeric preconditions.

    Side and order type given as plain strings ("Buy", "Limit") are coerced
    to their enums. Numeric fields given as any real-valued type (numpy
    scalars, Decimal) are converted to float so the book walk only ever does
    float arithmetic.

    Returns:
        The request with enum-typed side and order type and float quantity
        (and float limit price for limit orders).

    Raises:
        SimulationValidationError: With the reason to report in the ErrorResult.
    """
    try:
        side = OrderSide(request.side)
        order_type = OrderType(request.order_type)
    except ValueError:
        raise SimulationValidationError(
            REASON_INVALID_REQUEST,
            f"unknown side or order type: {request.side!r}, {request.order_type!r}",
        )

    quantity = _positive_float(request.quantity)
    if quantity is None:
        raise SimulationValidationError(
            REASON_INVALID_QUANTITY, f"quantity must be > 0, got {request.quantity!r}"
        )

    limit_price = request.limit_price
    if order_type == OrderType.LIMIT:
        if limit_price is None:
            raise SimulationValidationError(REASON_MISSING_LIMIT_PRICE)
        limit_price = _positive_float(limit_price)
        if limit_price is None:
            raise SimulationValidationError(
                REASON_INVALID_LIMIT_PRICE, f"limit price must be > 0, got {request.limit_price!r}"
            )

    return replace(
        request,
        side=side,
        order_type=order_type,
        quantity=quantity,
        limit_price=limit_price,
    )


def _error_result(request: SimulationRequest, reason: str, detail: str = "") -> ErrorResult:
    # getattr: the request itself may be the malformed input
    return ErrorResult(
        side=getattr(request, "side", None),
        order_type=getattr(request, "order_type", None),
        quantity=getattr(request, "quantity", None),
        limit_price=getattr(request, "limit_price", None),
        reason=reason,
        detail=detail,
    )


def simulate(
    snapshot: OrderBookSnapshot,
    request: SimulationRequest,
    settings: Optional[SimulationSettings] = None,
) -> SimulationResult:
    """
    Simulate one hypothetical order against one snapshot.

    Args:
        snapshot: Depth snapshot to evaluate against (read-only).
        request: The order to simulate.
        settings: Heuristic constants for limit orders; defaults to
                  SimulationSettings().

    Returns:
        MarketSimulationResult, LimitSimulationResult or ErrorResult.

    Example:
        >>> snapshot = OrderBookSnapshot.from_raw(
        ...     "okx", bids=[[99, 4]], asks=[[100, 2], [101, 3], [102, 10]])
        >>> result = simulate(snapshot, SimulationRequest.market(OrderSide.BUY, 5))
        >>> result.status.value
        'filled'
    """
    venue = getattr(snapshot, "venue", None)
    try:
        request = validate_request(request)

        if request.order_type == OrderType.MARKET:
            result = simulate_market_order(snapshot, request.side, request.quantity)
        else:
            result = simulate_limit_order(
                snapshot, request.side, request.quantity, request.limit_price, settings
            )
    except SimulationValidationError as e:
        logger.info(
            "simulation_rejected",
            venue=venue,
            order_type=request.order_type,
            reason=e.reason,
            detail=e.detail,
        )
        return _error_result(request, e.reason, e.detail)
    except SimulationError as e:
        logger.error("simulation_failed", venue=venue, reason=e.reason, detail=e.detail)
        return _error_result(request, e.reason, e.detail)
    except Exception as e:
        logger.exception("simulation_failed", venue=venue, error=str(e))
        return _error_result(request, REASON_COMPUTATION_ERROR, f"{type(e).__name__}: {e}")

    return result


def simulate_many(
    snapshot: OrderBookSnapshot,
    requests: Iterable[SimulationRequest],
    settings: Optional[SimulationSettings] = None,
) -> List[SimulationResult]:
    """
    Simulate several independent requests against the same snapshot.

    Each request is evaluated on its own; earlier requests do not consume
    liquidity for later ones.
    """
    return [simulate(snapshot, request, settings) for request in requests]
