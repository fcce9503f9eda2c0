"""
Deribit depth adapter.

**Wire format** (JSON-RPC websocket, grouped book channel
``book.BTC-PERPETUAL.none.20.100ms``, full book on every push):
    {
        "jsonrpc": "2.0",
        "method": "subscription",
        "params": {
            "channel": "book.BTC-PERPETUAL.none.20.100ms",
            "data": {"timestamp": 1554375447971, "instrument_name": "BTC-PERPETUAL",
                     "bids": [[5042.34, 30], ...], "asks": [[5044.2, 12], ...]}
        }
    }

Prices and amounts arrive as JSON numbers. Canonical "BTC-USD" maps to the
"BTC-PERPETUAL" instrument. Heartbeat is the ``public/ping`` RPC, answered
with {"result": "pong"}.

**REST**: GET /api/v2/public/get_order_book?instrument_name=BTC-PERPETUAL&depth=20
returns {"jsonrpc": "2.0", "result": {"bids": [...], "asks": [...], "timestamp": ...}}.
"""

import itertools
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

# Deribit's grouped book channel accepts depths of 1, 10 or 20
CHANNEL_DEPTH = 20
CHANNEL_INTERVAL = "100ms"

# Depths accepted by public/get_order_book
REST_DEPTHS = (1, 5, 10, 20, 50, 100, 1000, 10000)


class DeribitAdapter:
    """Translate Deribit book subscriptions and REST books into snapshots."""

    venue = "deribit"

    def __init__(self):
        self._rpc_ids = itertools.count(1)

    def to_venue_symbol(self, symbol: str) -> str:
        """Map "BTC-USD" to "BTC-PERPETUAL"."""
        base = symbol.split("-")[0]
        return f"{base}-PERPETUAL"

    def channel(self, symbol: str) -> str:
        return f"book.{self.to_venue_symbol(symbol)}.none.{CHANNEL_DEPTH}.{CHANNEL_INTERVAL}"

    def subscribe_payload(self, symbol: str) -> Dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": next(self._rpc_ids),
            "method": "public/subscribe",
            "params": {"channels": [self.channel(symbol)]},
        }

    def ping_payload(self) -> Dict[str, Any]:
        return {"jsonrpc": "2.0", "id": next(self._rpc_ids), "method": "public/ping", "params": {}}

    def parse_message(
        self,
        raw: RawMessage,
        depth_limit: int = DEFAULT_DEPTH_LIMIT,
    ) -> Optional[OrderBookSnapshot]:
        """
        Snapshot from a ``book.*`` subscription push.

        Returns None for pong replies, subscribe results and other channels.
        """
        message = decode_message(raw)
        if message is None:
            return None

        if message.get("method") != "subscription":
            logger.debug("venue_message_ignored", venue=self.venue, result=message.get("result"))
            return None

        params = message.get("params") or {}
        if not str(params.get("channel", "")).startswith("book."):
            return None

        data = params.get("data")
        if not isinstance(data, Mapping):
            return None

        return self._snapshot(data, depth_limit)

    def rest_request(self, symbol: str, depth_limit: int = DEFAULT_DEPTH_LIMIT) -> Tuple[str, Dict[str, Any]]:
        return "/api/v2/public/get_order_book", {
            "instrument_name": self.to_venue_symbol(symbol),
            "depth": next((d for d in REST_DEPTHS if d >= depth_limit), REST_DEPTHS[-1]),
        }

    def parse_rest_response(
        self,
        payload: Mapping[str, Any],
        depth_limit: int = DEFAULT_DEPTH_LIMIT,
    ) -> OrderBookSnapshot:
        """
        Snapshot from a REST get_order_book response.

        Raises:
            VenueResponseError: If the body carries an "error" or no "result".
        """
        if payload.get("error"):
            error = payload["error"]
            message = error.get("message", error) if isinstance(error, Mapping) else error
            raise VenueResponseError(f"Deribit returned error: {message}")
        result = payload.get("result")
        if not isinstance(result, Mapping):
            raise VenueResponseError("Deribit response has no book data")
        return self._snapshot(result, depth_limit)

    def _snapshot(self, book: Mapping[str, Any], depth_limit: int) -> OrderBookSnapshot:
        return OrderBookSnapshot.from_raw(
            self.venue,
            bids=book.get("bids") or [],
            asks=book.get("asks") or [],
            observed_at=millis_to_datetime(book.get("timestamp")),
            depth_limit=depth_limit,
        )
