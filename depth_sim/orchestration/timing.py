"""
Caller-side timing scenarios: "what if I sent this order N seconds later?"

**Conceptual**: The engine never sleeps or remembers pending requests. To
compare execution across delays the caller captures a snapshot at each
instant and simulates against each one. This module packages both halves of
that pattern:

  - `compare_timing_scenarios`: given snapshots already captured per delay,
    simulate the same request against each and tabulate the outcomes.
  - `DelayedSimulation`: wait, capture a fresh snapshot from a provider
    callable, then simulate. Sleep is injectable so tests never block.

**Teaching note**: Keeping scheduling out of `simulate` is what lets the engine
stay a pure function. Everything time-dependent lives here, at the edge.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional, Sequence

import pandas as pd
import structlog

from depth_sim.analytics.metrics import impact_severity
from depth_sim.config.settings import SimulationSettings
from depth_sim.data.schemas import OrderBookSnapshot
from depth_sim.execution.models import ErrorResult, SimulationRequest, SimulationResult
from depth_sim.orchestration.simulator import simulate

logger = structlog.get_logger(__name__)

DEFAULT_SCENARIO_DELAYS: Sequence[int] = (0, 5, 10, 30)

TIMING_FRAME_COLUMNS = [
    "delay_seconds",
    "venue",
    "status",
    "filled_quantity",
    "filled_pct",
    "avg_fill_price",
    "slippage_bps",
    "impact_bps",
    "severity",
    "reason",
]


def _scenario_row(delay: float, snapshot: OrderBookSnapshot, result: SimulationResult) -> dict:
    if isinstance(result, ErrorResult):
        return {
            "delay_seconds": delay,
            "venue": snapshot.venue,
            "status": result.status.value,
            "filled_quantity": None,
            "filled_pct": None,
            "avg_fill_price": None,
            "slippage_bps": None,
            "impact_bps": None,
            "severity": None,
            "reason": result.reason,
        }
    return {
        "delay_seconds": delay,
        "venue": snapshot.venue,
        "status": result.status.value,
        "filled_quantity": result.filled_quantity,
        "filled_pct": result.filled_pct,
        "avg_fill_price": result.avg_fill_price,
        "slippage_bps": result.slippage_bps,
        "impact_bps": result.impact_bps,
        "severity": impact_severity(result.slippage_bps),
        "reason": result.reason,
    }


def compare_timing_scenarios(
    snapshots_by_delay: Mapping[float, OrderBookSnapshot],
    request: SimulationRequest,
    settings: Optional[SimulationSettings] = None,
) -> pd.DataFrame:
    """
    Simulate one request against snapshots captured at different delays.

    Args:
        snapshots_by_delay: Mapping delay in seconds -> snapshot captured
                            after that delay.
        request: The order to evaluate in every scenario.
        settings: Heuristic constants passed through to `simulate`.

    Returns:
        DataFrame with one row per delay (ascending), columns
        TIMING_FRAME_COLUMNS. Error results keep their row with empty numerics.
    """
    rows = []
    for delay in sorted(snapshots_by_delay):
        snapshot = snapshots_by_delay[delay]
        rows.append(_scenario_row(delay, snapshot, simulate(snapshot, request, settings)))
    return pd.DataFrame(rows, columns=TIMING_FRAME_COLUMNS)


@dataclass
class DelayedSimulation:
    """
    Run a simulation against a snapshot captured after a delay.

    Attributes:
        snapshot_provider: Callable returning the latest snapshot when invoked.
        delay_seconds: How long to wait before capturing the snapshot.
        sleep: Sleep function (default time.sleep); tests inject a no-op.
        settings: Heuristic constants passed through to `simulate`.

    Example:
        >>> delayed = DelayedSimulation(feed.latest_snapshot, delay_seconds=5)
        >>> result = delayed.run(SimulationRequest.market(OrderSide.BUY, 0.5))
    """
    snapshot_provider: Callable[[], OrderBookSnapshot]
    delay_seconds: float = 0.0
    sleep: Callable[[float], None] = field(default=time.sleep)
    settings: Optional[SimulationSettings] = None

    def __post_init__(self):
        if self.delay_seconds < 0:
            raise ValueError(f"delay_seconds must be non-negative, got {self.delay_seconds}")

    def run(self, request: SimulationRequest) -> SimulationResult:
        """
        Wait, capture a fresh snapshot and simulate.

        The snapshot is captured after the delay, so the result reflects the
        book at execution time, not at submission time.
        """
        if self.delay_seconds > 0:
            logger.info("delayed_simulation_scheduled", delay_seconds=self.delay_seconds)
            self.sleep(self.delay_seconds)
        snapshot = self.snapshot_provider()
        return simulate(snapshot, request, self.settings)
