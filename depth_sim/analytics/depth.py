"""
Depth tables and cumulative liquidity for a snapshot.

**Conceptual**: A depth chart plots, for each side, the running total of
quantity available as you move away from the touch. The same table answers
"how much can I buy before the price moves N bps?".

**Functionally**:
  - `cumulative_depth` gives running quantity totals for one side.
  - `depth_frame` flattens both sides into one DataFrame for tables/charts.
  - `liquidity_within_bps` sums opposing quantity close to the touch.
"""

from typing import Sequence

import numpy as np
import pandas as pd

from depth_sim.data.schemas import OrderBookSnapshot, OrderSide, PriceLevel

DEPTH_FRAME_COLUMNS = [
    "side",
    "level",
    "price",
    "quantity",
    "cumulative_quantity",
    "notional",
    "cumulative_notional",
]


def cumulative_depth(levels: Sequence[PriceLevel]) -> np.ndarray:
    """
    Running quantity totals from the touch outward.

    Example:
        >>> cumulative_depth([PriceLevel(100, 2), PriceLevel(101, 3)])
        array([2., 5.])
    """
    return np.cumsum(np.array([level.quantity for level in levels], dtype=float))


def _side_frame(levels: Sequence[PriceLevel], label: str) -> pd.DataFrame:
    prices = np.array([level.price for level in levels], dtype=float)
    quantities = np.array([level.quantity for level in levels], dtype=float)
    notionals = prices * quantities
    return pd.DataFrame({
        "side": [label] * len(levels),
        "level": np.arange(len(levels), dtype=int),
        "price": prices,
        "quantity": quantities,
        "cumulative_quantity": np.cumsum(quantities),
        "notional": notionals,
        "cumulative_notional": np.cumsum(notionals),
    }, columns=DEPTH_FRAME_COLUMNS)


def depth_frame(snapshot: OrderBookSnapshot) -> pd.DataFrame:
    """
    Both sides of the book as one DataFrame.

    Rows are bids (best first) followed by asks (best first). `level` is the
    0-based index within each side, matching FillLeg.level_index.

    Returns:
        DataFrame with columns DEPTH_FRAME_COLUMNS. Empty (with columns) when
        the snapshot has no levels.
    """
    frames = [
        _side_frame(snapshot.bids, "bid"),
        _side_frame(snapshot.asks, "ask"),
    ]
    return pd.concat(frames, ignore_index=True)


def liquidity_within_bps(snapshot: OrderBookSnapshot, side: OrderSide, bps: float) -> float:
    """
    Opposing quantity priced within `bps` of the touch.

    For a buy this sums asks priced at most touch * (1 + bps/10000); for a
    sell, bids priced at least touch * (1 - bps/10000).

    Returns:
        Total quantity (0.0 when the opposing side is empty).

    Raises:
        ValueError: If bps is negative.
    """
    if bps < 0:
        raise ValueError(f"bps must be non-negative, got {bps}")

    levels = snapshot.side(side)
    if not levels:
        return 0.0

    touch = levels[0].price
    prices = np.array([level.price for level in levels], dtype=float)
    quantities = np.array([level.quantity for level in levels], dtype=float)

    if side == OrderSide.BUY:
        within = prices <= touch * (1 + bps / 10_000)
    else:
        within = prices >= touch * (1 - bps / 10_000)
    return float(quantities[within].sum())
