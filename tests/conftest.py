"""
Pytest configuration file.

Ensures the repo root is on sys.path so that 'import depth_sim...' works, and
provides the small reference books most tests simulate against.
"""
import sys
from pathlib import Path

import pytest

# Add the repo root to sys.path
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from depth_sim.data.schemas import OrderBookSnapshot  # noqa: E402


@pytest.fixture
def reference_book():
    """
    Two-sided book used by most simulation tests.

    Bids: 99 x 4, 98 x 6, 97 x 10
    Asks: 100 x 2, 101 x 3, 102 x 10
    Mid = 99.5, spread = 1.
    """
    return OrderBookSnapshot.from_raw(
        "okx",
        bids=[[99, 4], [98, 6], [97, 10]],
        asks=[[100, 2], [101, 3], [102, 10]],
    )


@pytest.fixture
def asks_only_book():
    """Book with asks but no bids."""
    return OrderBookSnapshot.from_raw("okx", bids=[], asks=[[100, 2], [101, 3], [102, 10]])


@pytest.fixture
def bids_only_book():
    """Book with a single bid level and no asks."""
    return OrderBookSnapshot.from_raw("okx", bids=[[99, 4]], asks=[])


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any global structlog configuration a test (e.g. the CLI) applied."""
    import structlog

    yield
    structlog.reset_defaults()
