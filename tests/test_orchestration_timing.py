"""
Tests for caller-side timing scenarios.

Sleep is injected as a Mock so no test ever blocks.
"""

from unittest.mock import Mock

import pandas as pd
import pytest

from depth_sim.data.schemas import OrderBookSnapshot, OrderSide
from depth_sim.execution.models import SimulationRequest, SimulationStatus
from depth_sim.orchestration.timing import (
    DEFAULT_SCENARIO_DELAYS,
    TIMING_FRAME_COLUMNS,
    DelayedSimulation,
    compare_timing_scenarios,
)


def make_book(best_ask: float) -> OrderBookSnapshot:
    """Book whose asks start at `best_ask` and step up by 1."""
    return OrderBookSnapshot.from_raw(
        "okx",
        bids=[[best_ask - 1, 5]],
        asks=[[best_ask, 2], [best_ask + 1, 3], [best_ask + 2, 10]],
    )


def test_default_scenario_delays():
    assert tuple(DEFAULT_SCENARIO_DELAYS) == (0, 5, 10, 30)


def test_compare_timing_scenarios_one_row_per_delay():
    """
    Scenario:
      - Same request (Buy 5) against books captured at 0, 10 and 5 seconds
      - The book drifts up over time

    Expected:
      - Rows sorted by delay
      - Average fill price tracks the drifting book
    """
    snapshots = {
        0: make_book(100.0),
        10: make_book(102.0),
        5: make_book(101.0),
    }
    request = SimulationRequest.market(OrderSide.BUY, 5)

    df = compare_timing_scenarios(snapshots, request)

    assert isinstance(df, pd.DataFrame)
    assert list(df.columns) == TIMING_FRAME_COLUMNS
    assert list(df["delay_seconds"]) == [0, 5, 10]
    assert list(df["status"]) == ["filled"] * 3
    assert list(df["avg_fill_price"]) == pytest.approx([100.6, 101.6, 102.6])
    assert list(df["severity"]) == ["high", "high", "high"]


def test_compare_timing_scenarios_keeps_error_rows():
    snapshots = {0: make_book(100.0)}
    request = SimulationRequest.market(OrderSide.BUY, 0)

    df = compare_timing_scenarios(snapshots, request)

    assert len(df) == 1
    assert df.loc[0, "status"] == "error"
    assert df.loc[0, "reason"] == "invalid quantity"
    assert pd.isna(df.loc[0, "avg_fill_price"])


def test_delayed_simulation_sleeps_then_captures():
    """The snapshot is captured after the sleep, not before."""
    calls = []
    sleep = Mock(side_effect=lambda seconds: calls.append(("sleep", seconds)))

    def provider():
        calls.append(("capture", None))
        return make_book(100.0)

    delayed = DelayedSimulation(provider, delay_seconds=5, sleep=sleep)
    result = delayed.run(SimulationRequest.market(OrderSide.BUY, 1))

    assert calls == [("sleep", 5), ("capture", None)]
    assert result.status == SimulationStatus.FILLED


def test_delayed_simulation_zero_delay_does_not_sleep():
    sleep = Mock()
    delayed = DelayedSimulation(lambda: make_book(100.0), sleep=sleep)

    delayed.run(SimulationRequest.market(OrderSide.BUY, 1))

    sleep.assert_not_called()


def test_delayed_simulation_rejects_negative_delay():
    with pytest.raises(ValueError, match="non-negative"):
        DelayedSimulation(lambda: make_book(100.0), delay_seconds=-1)
