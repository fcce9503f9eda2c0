"""
OKX depth adapter.

**Wire format** (public websocket, ``books5`` channel, full top-5 on every push):
    {
        "arg": {"channel": "books5", "instId": "BTC-USDT"},
        "data": [{
            "asks": [["41006.8", "0.60038921", "0", "1"], ...],
            "bids": [["41006.3", "0.30178218", "0", "2"], ...],
            "ts": "1629966436396"
        }]
    }

Each level is [price, size, deprecated, order count]; only price and size are
used. OKX answers the text heartbeat "ping" with a bare "pong".

**REST**: GET /api/v5/market/books?instId=BTC-USDT&sz=15 returns
{"code": "0", "msg": "", "data": [{"asks": [...], "bids": [...], "ts": "..."}]}.
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

CHANNEL = "books5"


class OkxAdapter:
    """Translate OKX ``books5`` pushes and REST books into snapshots."""

    venue = "okx"

    def to_venue_symbol(self, symbol: str) -> str:
        return symbol

    def subscribe_payload(self, symbol: str) -> Dict[str, Any]:
        return {
            "op": "subscribe",
            "args": [{"channel": CHANNEL, "instId": self.to_venue_symbol(symbol)}],
        }

    def ping_payload(self) -> str:
        return "ping"

    def parse_message(
        self,
        raw: RawMessage,
        depth_limit: int = DEFAULT_DEPTH_LIMIT,
    ) -> Optional[OrderBookSnapshot]:
        """
        Snapshot from a ``books5`` push.

        Returns None for "pong", subscribe acks, error events and pushes on
        other channels.
        """
        message = decode_message(raw)
        if message is None:
            return None

        arg = message.get("arg") or {}
        if arg.get("channel") != CHANNEL:
            logger.debug("venue_message_ignored", venue=self.venue, event=message.get("event"))
            return None

        data = message.get("data")
        if not isinstance(data, list) or not data:
            return None

        return self._snapshot(data[0], depth_limit)

    def rest_request(self, symbol: str, depth_limit: int = DEFAULT_DEPTH_LIMIT) -> Tuple[str, Dict[str, Any]]:
        return "/api/v5/market/books", {"instId": self.to_venue_symbol(symbol), "sz": depth_limit}

    def parse_rest_response(
        self,
        payload: Mapping[str, Any],
        depth_limit: int = DEFAULT_DEPTH_LIMIT,
    ) -> OrderBookSnapshot:
        """
        Snapshot from a REST books response.

        Raises:
            VenueResponseError: If "code" is non-zero or "data" is empty.
        """
        if str(payload.get("code")) != "0":
            raise VenueResponseError(
                f"OKX returned code {payload.get('code')}: {payload.get('msg', '')}"
            )
        data = payload.get("data")
        if not isinstance(data, list) or not data:
            raise VenueResponseError("OKX response has no book data")
        return self._snapshot(data[0], depth_limit)

    def _snapshot(self, book: Mapping[str, Any], depth_limit: int) -> OrderBookSnapshot:
        return OrderBookSnapshot.from_raw(
            self.venue,
            bids=book.get("bids") or [],
            asks=book.get("asks") or [],
            observed_at=millis_to_datetime(book.get("ts")),
            depth_limit=depth_limit,
        )
