"""
Tests for the `simulate` entry point.

**Purpose**: Verify that simulate validates requests, dispatches by order
type, and never raises: every bad request and internal fault comes back as
an ErrorResult.

**Testing philosophy**: The worked examples here are the canonical ones for
the engine (market buy across levels, partial sell, aggressive and passive
limits, empty book). Internal faults are injected with unittest.mock so the
conversion path is exercised without contriving a broken book.
"""

from decimal import Decimal
from unittest.mock import patch

import numpy as np
import pytest
from structlog.testing import capture_logs

from depth_sim.data.schemas import OrderBookSnapshot, OrderSide
from depth_sim.execution.errors import ComputationError
from depth_sim.execution.models import (
    REASON_COMPUTATION_ERROR,
    REASON_INVALID_LIMIT_PRICE,
    REASON_INVALID_QUANTITY,
    REASON_INVALID_REQUEST,
    REASON_MISSING_LIMIT_PRICE,
    REASON_NO_LIQUIDITY,
    ErrorResult,
    FillLeg,
    LimitSimulationResult,
    MarketSimulationResult,
    OrderType,
    SimulationRequest,
    SimulationStatus,
)
from depth_sim.orchestration.simulator import simulate, simulate_many, validate_request


def test_market_buy_example(asks_only_book):
    """Market Buy 5 against asks [[100,2],[101,3],[102,10]]."""
    result = simulate(asks_only_book, SimulationRequest.market(OrderSide.BUY, 5))

    assert isinstance(result, MarketSimulationResult)
    assert result.status == SimulationStatus.FILLED
    assert result.filled_quantity == 5
    assert result.fills == (FillLeg(100.0, 2.0, 0), FillLeg(101.0, 3.0, 1))
    assert result.avg_fill_price == pytest.approx(100.6)


def test_market_sell_partial_example(bids_only_book):
    """Market Sell 10 against bids [[99,4]]."""
    result = simulate(bids_only_book, SimulationRequest.market(OrderSide.SELL, 10))

    assert result.status == SimulationStatus.PARTIAL_FILL
    assert result.filled_quantity == 4
    assert result.remaining_quantity == 6


def test_aggressive_limit_example():
    snapshot = OrderBookSnapshot.from_raw("okx", bids=[[99, 1]], asks=[[100, 2], [102, 5]])

    result = simulate(snapshot, SimulationRequest.limit(OrderSide.BUY, 5, 101))

    assert isinstance(result, LimitSimulationResult)
    assert result.aggressive
    assert result.status == SimulationStatus.PARTIAL_FILL
    assert result.fills == (FillLeg(100.0, 2.0, 0),)
    assert result.remaining_quantity == 3
    assert result.queue_position is not None


def test_passive_limit_example():
    snapshot = OrderBookSnapshot.from_raw("okx", bids=[[99, 1], [95, 2]], asks=[[100, 2]])

    result = simulate(snapshot, SimulationRequest.limit(OrderSide.BUY, 1, 95))

    assert result.status == SimulationStatus.RESTING
    assert result.filled_quantity == 0
    assert result.queue_position.levels_ahead == 2
    assert result.queue_position.quantity_ahead == pytest.approx(3.0)


def test_empty_asks_market_buy_fails(bids_only_book):
    result = simulate(bids_only_book, SimulationRequest.market(OrderSide.BUY, 1))

    assert result.status == SimulationStatus.FAILED
    assert result.reason == REASON_NO_LIQUIDITY


@pytest.mark.parametrize("quantity", [0, -1, 0.0, float("nan"), float("inf"), None, True])
@pytest.mark.parametrize("order_type", [OrderType.MARKET, OrderType.LIMIT])
def test_non_positive_quantity_is_error(reference_book, quantity, order_type):
    """Bad quantity is an Error regardless of order type or book state."""
    request = SimulationRequest(OrderSide.BUY, order_type, quantity, limit_price=100.0)

    result = simulate(reference_book, request)

    assert isinstance(result, ErrorResult)
    assert result.status == SimulationStatus.ERROR
    assert result.reason == REASON_INVALID_QUANTITY


def test_quantity_checked_before_book(bids_only_book):
    result = simulate(bids_only_book, SimulationRequest.market(OrderSide.BUY, 0))

    assert result.reason == REASON_INVALID_QUANTITY


def test_missing_limit_price_is_error(reference_book):
    request = SimulationRequest(OrderSide.SELL, OrderType.LIMIT, 1.0)

    result = simulate(reference_book, request)

    assert result.status == SimulationStatus.ERROR
    assert result.reason == REASON_MISSING_LIMIT_PRICE
    assert result.limit_price is None


@pytest.mark.parametrize("limit_price", [0, -5, float("nan")])
def test_invalid_limit_price_is_error(reference_book, limit_price):
    result = simulate(reference_book, SimulationRequest.limit(OrderSide.BUY, 1, limit_price))

    assert result.reason == REASON_INVALID_LIMIT_PRICE


def test_market_request_ignores_limit_price(reference_book):
    request = SimulationRequest(OrderSide.BUY, OrderType.MARKET, 1.0, limit_price=-1.0)

    result = simulate(reference_book, request)

    assert result.status == SimulationStatus.FILLED


def test_string_side_and_type_are_coerced(reference_book):
    request = SimulationRequest("Sell", "Market", 2.0)

    result = simulate(reference_book, request)

    assert result.side is OrderSide.SELL
    assert result.status == SimulationStatus.FILLED


def test_unknown_side_is_invalid_request(reference_book):
    request = SimulationRequest("Hold", OrderType.MARKET, 1.0)

    result = simulate(reference_book, request)

    assert result.reason == REASON_INVALID_REQUEST


def test_validate_request_returns_enum_typed_request():
    request = validate_request(SimulationRequest("Buy", "Limit", 1.0, 100.0))

    assert request.side is OrderSide.BUY
    assert request.order_type is OrderType.LIMIT


def test_computation_error_becomes_error_result(reference_book):
    """A ComputationError raised inside a simulator is reported, not raised."""
    with patch(
        "depth_sim.orchestration.simulator.simulate_market_order",
        side_effect=ComputationError(REASON_COMPUTATION_ERROR, "avg_fill_price is not finite"),
    ):
        result = simulate(reference_book, SimulationRequest.market(OrderSide.BUY, 1))

    assert isinstance(result, ErrorResult)
    assert result.reason == REASON_COMPUTATION_ERROR
    assert "not finite" in result.detail


def test_unexpected_exception_becomes_error_result(reference_book):
    with patch(
        "depth_sim.orchestration.simulator.simulate_limit_order",
        side_effect=ZeroDivisionError("float division by zero"),
    ):
        result = simulate(reference_book, SimulationRequest.limit(OrderSide.BUY, 1, 99))

    assert result.status == SimulationStatus.ERROR
    assert result.reason == REASON_COMPUTATION_ERROR
    assert result.detail.startswith("ZeroDivisionError")
    assert result.order_type == OrderType.LIMIT
    assert result.limit_price == 99


def test_missing_snapshot_becomes_error_result():
    result = simulate(None, SimulationRequest.market(OrderSide.BUY, 1))

    assert result.status == SimulationStatus.ERROR
    assert result.reason == REASON_COMPUTATION_ERROR


def test_malformed_request_becomes_error_result(reference_book):
    result = simulate(reference_book, None)

    assert isinstance(result, ErrorResult)
    assert result.reason == REASON_COMPUTATION_ERROR
    assert result.side is None


def test_simulate_is_idempotent(reference_book):
    """Same snapshot and request yield identical results (no hidden state)."""
    requests = [
        SimulationRequest.market(OrderSide.BUY, 7),
        SimulationRequest.limit(OrderSide.SELL, 3, 98.5),
        SimulationRequest.limit(OrderSide.BUY, 2, 95),
    ]

    for request in requests:
        assert simulate(reference_book, request) == simulate(reference_book, request)


def test_simulate_does_not_mutate_snapshot(reference_book):
    before = (reference_book.bids, reference_book.asks)

    simulate(reference_book, SimulationRequest.market(OrderSide.BUY, 100))

    assert (reference_book.bids, reference_book.asks) == before


def test_simulate_many_evaluates_requests_independently(reference_book):
    """Earlier requests do not consume liquidity for later ones."""
    request = SimulationRequest.market(OrderSide.BUY, 2)

    first, second = simulate_many(reference_book, [request, request])

    assert first == second
    assert second.fills == (FillLeg(100.0, 2.0, 0),)


def test_error_result_to_dict(reference_book):
    payload = simulate(reference_book, SimulationRequest.market(OrderSide.BUY, -1)).to_dict()

    assert payload == {
        "side": "Buy",
        "order_type": "Market",
        "quantity": -1,
        "reason": REASON_INVALID_QUANTITY,
        "limit_price": None,
        "detail": "quantity must be > 0, got -1",
        "status": "error",
    }


@pytest.mark.parametrize("quantity", [np.int64(5), np.float64(5.0), Decimal("5")])
def test_numeric_quantity_types_are_accepted(asks_only_book, quantity):
    """numpy scalars and Decimal quantities simulate like the equivalent float."""
    result = simulate(asks_only_book, SimulationRequest.market(OrderSide.BUY, quantity))

    assert isinstance(result, MarketSimulationResult)
    assert result.status == SimulationStatus.FILLED
    assert type(result.quantity) is float
    assert result.avg_fill_price == pytest.approx(100.6)


def test_numpy_limit_price_is_accepted(reference_book):
    result = simulate(reference_book, SimulationRequest.limit(OrderSide.BUY, 4, np.int64(101)))

    assert isinstance(result, LimitSimulationResult)
    assert result.status == SimulationStatus.FILLED
    assert type(result.limit_price) is float
    assert result.limit_price == 101.0


def test_validate_request_converts_decimal_to_float():
    request = validate_request(SimulationRequest.limit(OrderSide.SELL, Decimal("0.25"), Decimal("99.5")))

    assert request.quantity == 0.25
    assert type(request.quantity) is float
    assert type(request.limit_price) is float


def test_string_quantity_is_rejected(reference_book):
    result = simulate(reference_book, SimulationRequest.market(OrderSide.BUY, "5"))

    assert result.reason == REASON_INVALID_QUANTITY


def test_successful_simulation_emits_no_log_events(reference_book):
    """A completed simulation performs no logging; only rejections and faults log."""
    with capture_logs() as logs:
        simulate(reference_book, SimulationRequest.market(OrderSide.BUY, 1))
        simulate(reference_book, SimulationRequest.limit(OrderSide.SELL, 1, 101))

    assert logs == []


def test_rejected_request_is_logged(reference_book):
    with capture_logs() as logs:
        simulate(reference_book, SimulationRequest.market(OrderSide.BUY, 0))

    assert [entry["event"] for entry in logs] == ["simulation_rejected"]
    assert logs[0]["reason"] == REASON_INVALID_QUANTITY
