"""
Canonical order book snapshot model and validation.

**Conceptual**: This module defines the "data contract" every simulation reads:
a venue's visible depth (top-N price levels per side) captured at one instant.
Venue adapters normalise their native wire formats into this shape; the
simulation engine only ever reads it.

**Schema philosophy**:
  - Bids are strictly descending by price (best bid first).
  - Asks are strictly ascending by price (best ask first).
  - At most one level per price, at most `depth_limit` levels per side.
  - A side may be empty (no liquidity observed yet). Accessors report that as
    None, never as a zero price, so callers branch on presence.
  - Snapshots are frozen dataclasses holding tuples, so a simulation can never
    mutate the book it was handed.

**Teaching note**: Validating at the ingestion boundary means the matching walk
can assume sorted, de-duplicated levels without defensive checks in its loop.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple, Union

from depth_sim.config.settings import DEFAULT_DEPTH_LIMIT


class SchemaValidationError(Exception):
    """
    Raised when snapshot levels break the ordering or depth invariants.

    **Usage**: Raised by venue adapters and `validate_snapshot`; never by the
    simulation engine, which assumes a valid snapshot.
    """
    pass


class OrderSide(str, Enum):
    """Requester's side of the trade."""
    BUY = "Buy"
    SELL = "Sell"

    @property
    def opposite(self) -> "OrderSide":
        return OrderSide.SELL if self is OrderSide.BUY else OrderSide.BUY


@dataclass(frozen=True)
class PriceLevel:
    """
    One visible price level on one side of the book.

    Attributes:
        price: Level price (positive).
        quantity: Aggregate resting quantity at this price (non-negative).
    """
    price: float
    quantity: float

    @property
    def notional(self) -> float:
        return self.price * self.quantity


RawLevel = Union[Sequence[Union[str, float, int]], PriceLevel]


def parse_level(raw: RawLevel) -> PriceLevel:
    """
    Convert a venue level (``["27000.5", "1.25", ...]``) to a PriceLevel.

    Venues encode prices and quantities as strings and may append extra
    fields (order counts, liquidation flags); only the first two are used.

    Raises:
        SchemaValidationError: If the level is malformed, non-finite, has a
            non-positive price or a negative quantity.
    """
    if isinstance(raw, PriceLevel):
        price, quantity = raw.price, raw.quantity
    else:
        if len(raw) < 2:
            raise SchemaValidationError(f"Level must have price and quantity, got: {raw!r}")
        try:
            price = float(raw[0])
            quantity = float(raw[1])
        except (TypeError, ValueError):
            raise SchemaValidationError(f"Level has non-numeric price or quantity: {raw!r}")

    if not (math.isfinite(price) and math.isfinite(quantity)):
        raise SchemaValidationError(f"Level has non-finite values: {raw!r}")
    if price <= 0:
        raise SchemaValidationError(f"Level price must be positive, got: {price}")
    if quantity < 0:
        raise SchemaValidationError(f"Level quantity must be non-negative, got: {quantity}")

    return PriceLevel(price=price, quantity=quantity)


def normalise_levels(
    raw_levels: Iterable[RawLevel],
    descending: bool,
    depth_limit: int = DEFAULT_DEPTH_LIMIT,
) -> Tuple[PriceLevel, ...]:
    """
    Parse, sort, de-duplicate and truncate one side of a venue book.

    **Functionally**:
      - Parses each raw level with `parse_level`.
      - Drops zero-quantity levels (venues use them as deletions).
      - Keeps the last quantity seen for a repeated price.
      - Sorts best price first (descending for bids, ascending for asks).
      - Truncates to `depth_limit` levels.

    Args:
        raw_levels: Venue levels as ``[price, qty, ...]`` sequences or PriceLevels.
        descending: True for bids, False for asks.
        depth_limit: Maximum number of levels kept.

    Returns:
        Tuple of PriceLevel satisfying the snapshot invariants.
    """
    by_price = {}
    for raw in raw_levels:
        level = parse_level(raw)
        by_price[level.price] = level

    kept = [level for level in by_price.values() if level.quantity > 0]
    kept.sort(key=lambda level: level.price, reverse=descending)
    return tuple(kept[:depth_limit])


def validate_side(
    levels: Sequence[PriceLevel],
    descending: bool,
    depth_limit: int = DEFAULT_DEPTH_LIMIT,
    context: Optional[str] = None,
) -> None:
    """
    Check one side of a snapshot against the ordering and depth invariants.

    Raises:
        SchemaValidationError: On too many levels or a non-strict ordering.
    """
    ctx = f"{context}: " if context else ""

    if len(levels) > depth_limit:
        raise SchemaValidationError(
            f"{ctx}Side has {len(levels)} levels, limit is {depth_limit}."
        )

    for i in range(1, len(levels)):
        previous, current = levels[i - 1].price, levels[i].price
        ordered = previous > current if descending else previous < current
        if not ordered:
            direction = "descending" if descending else "ascending"
            raise SchemaValidationError(
                f"{ctx}Levels must be strictly {direction} by price; "
                f"level {i - 1} is {previous}, level {i} is {current}."
            )


@dataclass(frozen=True)
class OrderBookSnapshot:
    """
    Immutable top-of-book depth for one venue at one instant.

    **Conceptual**: The only input a simulation reads. The caller captures a
    snapshot, hands it to `simulate`, and the engine treats it as read-only
    for the duration of the call. Because the dataclass is frozen and the
    sides are tuples, concurrent simulations may share one snapshot safely.

    Attributes:
        venue: Venue identifier (e.g. "okx").
        bids: Bid levels, strictly descending by price.
        asks: Ask levels, strictly ascending by price.
        observed_at: When the snapshot was captured (UTC).
    """
    venue: str
    bids: Tuple[PriceLevel, ...] = ()
    asks: Tuple[PriceLevel, ...] = ()
    observed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_raw(
        cls,
        venue: str,
        bids: Iterable[RawLevel],
        asks: Iterable[RawLevel],
        observed_at: Optional[datetime] = None,
        depth_limit: int = DEFAULT_DEPTH_LIMIT,
    ) -> "OrderBookSnapshot":
        """
        Build a snapshot from venue-native level lists.

        Example:
            >>> snapshot = OrderBookSnapshot.from_raw(
            ...     "okx",
            ...     bids=[["99", "4"], ["98.5", "1"]],
            ...     asks=[["100", "2"], ["101", "3"]],
            ... )
            >>> snapshot.best_ask().price
            100.0
        """
        return cls(
            venue=venue,
            bids=normalise_levels(bids, descending=True, depth_limit=depth_limit),
            asks=normalise_levels(asks, descending=False, depth_limit=depth_limit),
            observed_at=observed_at or datetime.now(timezone.utc),
        )

    def best_bid(self) -> Optional[PriceLevel]:
        """Highest bid, or None when no bids are visible."""
        return self.bids[0] if self.bids else None

    def best_ask(self) -> Optional[PriceLevel]:
        """Lowest ask, or None when no asks are visible."""
        return self.asks[0] if self.asks else None

    def side(self, order_side: OrderSide) -> Tuple[PriceLevel, ...]:
        """Opposing levels an order on `order_side` would match against."""
        return self.asks if order_side == OrderSide.BUY else self.bids

    def same_side(self, order_side: OrderSide) -> Tuple[PriceLevel, ...]:
        """Levels an order on `order_side` would queue behind."""
        return self.bids if order_side == OrderSide.BUY else self.asks

    def touch(self, order_side: OrderSide) -> Optional[PriceLevel]:
        """Best opposing level (the pre-trade touch) for `order_side`."""
        levels = self.side(order_side)
        return levels[0] if levels else None

    @property
    def has_both_sides(self) -> bool:
        return bool(self.bids) and bool(self.asks)


def validate_snapshot(
    snapshot: OrderBookSnapshot,
    depth_limit: int = DEFAULT_DEPTH_LIMIT,
) -> None:
    """
    Validate both sides of a snapshot.

    Crossed books (best bid >= best ask) are allowed: venues briefly publish
    them and the simulation handles them through its aggressive-limit branch.

    Raises:
        SchemaValidationError: If either side breaks its ordering or depth invariant.
    """
    validate_side(snapshot.bids, descending=True, depth_limit=depth_limit,
                  context=f"{snapshot.venue} bids")
    validate_side(snapshot.asks, descending=False, depth_limit=depth_limit,
                  context=f"{snapshot.venue} asks")
