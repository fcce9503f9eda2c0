"""
depth_sim – Main entry point.

Minimal bootstrap script: simulates a small market buy against a fixed book
to confirm the package imports and the engine runs.
"""

from depth_sim.data.schemas import OrderBookSnapshot, OrderSide
from depth_sim.execution.models import SimulationRequest
from depth_sim.orchestration.simulator import simulate


def main() -> None:
    """Print a bootstrap confirmation message."""
    snapshot = OrderBookSnapshot.from_raw(
        "demo",
        bids=[[99, 4]],
        asks=[[100, 2], [101, 3], [102, 10]],
    )
    result = simulate(snapshot, SimulationRequest.market(OrderSide.BUY, 5))
    print(f"depth_sim bootstrap complete: {result.status.value} @ {result.avg_fill_price}")


if __name__ == "__main__":
    main()
