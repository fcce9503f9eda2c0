#!/usr/bin/env python3
"""
Simulate one hypothetical order against a depth snapshot and print the result.

**Purpose**: Answer "what would happen if I sent this order right now?" from
the command line, without touching a live account. The snapshot comes either
from a JSON file or from a one-shot REST fetch against a venue's public
depth endpoint.

**Usage**:
    # From a saved snapshot
    python actions/simulate_order.py --snapshot data/btc_okx.json --side Buy --quantity 0.5

    # Limit order against a live REST snapshot
    python actions/simulate_order.py --venue bybit --symbol BTC-USDT \\
        --side Sell --type Limit --quantity 2 --limit-price 64000

**Snapshot file format**:
    {"venue": "okx",
     "bids": [["99.5", "4"], ["99", "2"]],
     "asks": [["100", "2"], ["101", "3"]]}

**Outputs**:
  - Terminal: result as JSON (the same fields as `SimulationResult.to_dict()`),
    plus a short summary of the book.

**Teaching note**: The script is a thin shell. Everything it prints comes from
`simulate` and the depth analytics; the only logic here is argument parsing
and loading the snapshot.
"""

import argparse
import json
import sys
from pathlib import Path

# Ensure project root is on path for imports
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from depth_sim.analytics.depth import liquidity_within_bps
from depth_sim.analytics.metrics import impact_severity, mid_price, spread_bps
from depth_sim.config.settings import get_settings
from depth_sim.data.schemas import OrderBookSnapshot, OrderSide
from depth_sim.execution.models import ErrorResult, OrderType, SimulationRequest
from depth_sim.orchestration.simulator import simulate
from depth_sim.utils.logging import configure_logging
from depth_sim.venues.rest_client import VenueRestClient
from depth_sim.venues.symbols import format_symbol_for_venue


def load_snapshot(path: Path, depth_limit: int) -> OrderBookSnapshot:
    """
    Load a snapshot JSON file.

    Args:
        path: File containing {"venue", "bids", "asks"}.
        depth_limit: Levels per side to keep.

    Returns:
        Normalised OrderBookSnapshot.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a JSON object with a venue.
    """
    if not path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {path}")

    with open(path) as f:
        payload = json.load(f)

    if not isinstance(payload, dict) or not payload.get("venue"):
        raise ValueError(f"Snapshot file must be a JSON object with a 'venue': {path}")

    return OrderBookSnapshot.from_raw(
        payload["venue"],
        bids=payload.get("bids") or [],
        asks=payload.get("asks") or [],
        depth_limit=depth_limit,
    )


def build_request(args: argparse.Namespace) -> SimulationRequest:
    """Turn parsed CLI arguments into a SimulationRequest."""
    return SimulationRequest(
        side=OrderSide(args.side),
        order_type=OrderType(args.type),
        quantity=args.quantity,
        limit_price=args.limit_price,
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Simulate an order against a depth snapshot."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--snapshot", type=Path, help="Path to a snapshot JSON file")
    source.add_argument("--venue", choices=["okx", "bybit", "deribit"],
                        help="Fetch a live snapshot from this venue's REST endpoint")
    parser.add_argument("--symbol", default="BTC-USDT",
                        help="Canonical symbol for --venue (default: BTC-USDT)")
    parser.add_argument("--side", choices=[s.value for s in OrderSide], required=True)
    parser.add_argument("--type", choices=[t.value for t in OrderType], default=OrderType.MARKET.value)
    parser.add_argument("--quantity", type=float, required=True)
    parser.add_argument("--limit-price", type=float, default=None)
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    settings = get_settings()
    depth_limit = settings.simulation.depth_limit

    if args.snapshot is not None:
        snapshot = load_snapshot(args.snapshot, depth_limit)
    else:
        client = VenueRestClient(settings.venues)
        symbol = format_symbol_for_venue(args.symbol, args.venue)
        snapshot = client.fetch_snapshot(args.venue, symbol, depth_limit)

    request = build_request(args)
    result = simulate(snapshot, request, settings.simulation)

    print("=" * 60)
    print(f"Book: {snapshot.venue} ({len(snapshot.bids)} bids / {len(snapshot.asks)} asks)")
    print("=" * 60)
    mid = mid_price(snapshot)
    spread = spread_bps(snapshot)
    print(f"  Mid price:   {mid:.6f}" if mid is not None else "  Mid price:   n/a")
    print(f"  Spread:      {spread:.2f} bps" if spread is not None else "  Spread:      n/a")
    print(f"  Within 10bp: {liquidity_within_bps(snapshot, request.side, 10):.6f}")

    print()
    print("=" * 60)
    print(f"Result: {result.status.value}")
    print("=" * 60)
    if not isinstance(result, ErrorResult):
        severity = impact_severity(result.slippage_bps)
        if severity is not None:
            print(f"  Impact:      {severity}")
    print(json.dumps(result.to_dict(), indent=2))

    return 1 if isinstance(result, ErrorResult) else 0


if __name__ == "__main__":
    sys.exit(main())
