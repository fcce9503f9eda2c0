"""
Bybit depth adapter.

**Wire format** (v5 public websocket, topic ``orderbook.50.BTCUSDT``):
    {
        "topic": "orderbook.50.BTCUSDT",
        "type": "snapshot",
        "ts": 1672304484978,
        "data": {"s": "BTCUSDT", "b": [["16493.50", "0.006"], ...],
                 "a": [["16611.00", "0.029"], ...], "u": 18521288, "seq": 7961638724}
    }

Bybit sends one "snapshot" message and then "delta" messages carrying only
changed levels. Rebuilding a book from deltas is out of scope, so deltas are
ignored and only full snapshots become OrderBookSnapshots. Heartbeat is
{"op": "ping"}, answered with {"op": "pong", ...}.

**REST**: GET /v5/market/orderbook?category=linear&symbol=BTCUSDT&limit=50
returns {"retCode": 0, "retMsg": "OK", "result": {"s", "b", "a", "ts", "u"}}.
"""

from typing import Any, Dict, Mapping, Optional, Tuple

import structlog

from depth_sim.config.settings import DEFAULT_DEPTH_LIMIT
from depth_sim.data.schemas import OrderBookSnapshot
from depth_sim.venues.base import (
    RawMessage,
    VenueResponseError,
    decode_message,
    millis_to_datetime,
)

logger = structlog.get_logger(__name__)

TOPIC_DEPTH = 50

# REST depth values Bybit accepts for linear contracts are 1..500
MAX_REST_DEPTH = 500


class BybitAdapter:
    """Translate Bybit orderbook snapshots into canonical snapshots."""

    venue = "bybit"

    def __init__(self, category: str = "linear"):
        self.category = category

    def to_venue_symbol(self, symbol: str) -> str:
        """Map "BTC-USDT" to "BTCUSDT"."""
        return symbol.replace("-", "")

    def topic(self, symbol: str) -> str:
        return f"orderbook.{TOPIC_DEPTH}.{self.to_venue_symbol(symbol)}"

    def subscribe_payload(self, symbol: str) -> Dict[str, Any]:
        return {"op": "subscribe", "args": [self.topic(symbol)]}

    def ping_payload(self) -> Dict[str, Any]:
        return {"op": "ping"}

    def parse_message(
        self,
        raw: RawMessage,
        depth_limit: int = DEFAULT_DEPTH_LIMIT,
    ) -> Optional[OrderBookSnapshot]:
        """
        Snapshot from an ``orderbook.*`` snapshot message.

        Returns None for pongs, subscribe acks, other topics and delta messages.
        """
        message = decode_message(raw)
        if message is None:
            return None

        topic = message.get("topic") or ""
        if not topic.startswith("orderbook."):
            logger.debug("venue_message_ignored", venue=self.venue, op=message.get("op"))
            return None
        if message.get("type") != "snapshot":
            logger.debug("venue_message_ignored", venue=self.venue, type=message.get("type"))
            return None

        data = message.get("data")
        if not isinstance(data, Mapping):
            return None

        return self._snapshot(data, message.get("ts"), depth_limit)

    def rest_request(self, symbol: str, depth_limit: int = DEFAULT_DEPTH_LIMIT) -> Tuple[str, Dict[str, Any]]:
        return "/v5/market/orderbook", {
            "category": self.category,
            "symbol": self.to_venue_symbol(symbol),
            "limit": min(depth_limit, MAX_REST_DEPTH),
        }

    def parse_rest_response(
        self,
        payload: Mapping[str, Any],
        depth_limit: int = DEFAULT_DEPTH_LIMIT,
    ) -> OrderBookSnapshot:
        """
        Snapshot from a REST orderbook response.

        Raises:
            VenueResponseError: If "retCode" is non-zero or "result" is missing.
        """
        if payload.get("retCode") != 0:
            raise VenueResponseError(
                f"Bybit returned retCode {payload.get('retCode')}: {payload.get('retMsg', '')}"
            )
        result = payload.get("result")
        if not isinstance(result, Mapping):
            raise VenueResponseError("Bybit response has no book data")
        return self._snapshot(result, result.get("ts"), depth_limit)

    def _snapshot(self, book: Mapping[str, Any], ts: Any, depth_limit: int) -> OrderBookSnapshot:
        return OrderBookSnapshot.from_raw(
            self.venue,
            bids=book.get("b") or [],
            asks=book.get("a") or [],
            observed_at=millis_to_datetime(ts),
            depth_limit=depth_limit,
        )
