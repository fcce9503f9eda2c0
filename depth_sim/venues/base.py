"""
Base abstractions for venue depth adapters and connection status tracking.

**Conceptual**: Each venue publishes depth in its own wire format (OKX
``books5`` pushes, Bybit ``orderbook.50`` topics, Deribit JSON-RPC
subscriptions). A VenueAdapter converts those messages into the canonical
OrderBookSnapshot so that nothing downstream knows which venue a book came
from.

**Why protocols over inheritance?**
  - Any class with the right methods is an adapter; tests can pass a stub.
  - Adapters stay small, stateless translation tables.

**Connection status**: The streaming connection (subscribe on open, periodic
ping, fixed-delay reconnect) lives outside this repository. It reports its
lifecycle as ConnectionEvent messages on a queue; VenueStatusBoard drains that
queue and keeps the latest status and last error per venue. The simulation
engine never reads this board.

**Adapter guarantees**:
All VenueAdapter implementations MUST ensure:
  1. Bids strictly descending, asks strictly ascending, one level per price.
  2. At most `depth_limit` levels per side.
  3. Prices and quantities converted from venue strings to floats.
  4. None (not an exception) for pongs, acks and messages on other channels.
"""

import json
import queue
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Protocol, Tuple, Union

import structlog

from depth_sim.data.schemas import OrderBookSnapshot

logger = structlog.get_logger(__name__)

RawMessage = Union[str, bytes, Mapping[str, Any]]


class VenueClientError(Exception):
    """
    Base exception for venue ingestion errors.

    Caller can catch VenueClientError to handle every venue failure, or a
    subclass for fine-grained handling.
    """
    pass


class VenueSymbolNotFoundError(VenueClientError):
    """Raised when the venue does not list the requested instrument."""
    pass


class VenueRateLimitError(VenueClientError):
    """Raised on HTTP 429. Recovery: back off before the next snapshot."""
    pass


class VenueServerError(VenueClientError):
    """Raised when the venue returns a 5xx status."""
    pass


class VenueResponseError(VenueClientError):
    """
    Raised when a response body reports an error or lacks book data.

    Venues often answer HTTP 200 with an error code in the body (OKX "code",
    Bybit "retCode", Deribit "error").
    """
    pass


class ConnectionStatus(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


@dataclass(frozen=True)
class ConnectionEvent:
    """
    One connection lifecycle transition reported by a venue feed.

    Attributes:
        venue: Venue the event belongs to.
        status: New connection status.
        error: Error message for ERROR transitions, else None.
        occurred_at: When the transition happened (UTC).
    """
    venue: str
    status: ConnectionStatus
    error: Optional[str] = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class VenueState:
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    last_error: Optional[str] = None
    updated_at: Optional[datetime] = None


class VenueStatusBoard:
    """
    Latest connection status and last error per venue.

    **Conceptual**: Feeds put ConnectionEvent messages on `events`; whoever
    renders status calls `drain()` (or `apply()` directly) and reads `state()`.
    A successful reconnect clears the last error.

    Example:
        >>> board = VenueStatusBoard(["okx", "bybit"])
        >>> board.events.put(ConnectionEvent("okx", ConnectionStatus.CONNECTED))
        >>> board.drain()
        1
        >>> board.state("okx").status
        <ConnectionStatus.CONNECTED: 'connected'>
    """

    def __init__(self, venues=(), events: Optional["queue.Queue[ConnectionEvent]"] = None):
        self.events: "queue.Queue[ConnectionEvent]" = events if events is not None else queue.Queue()
        self._states: Dict[str, VenueState] = {venue: VenueState() for venue in venues}

    def apply(self, event: ConnectionEvent) -> VenueState:
        """Record one transition and return the venue's new state."""
        previous = self._states.get(event.venue, VenueState())

        if event.status == ConnectionStatus.ERROR:
            last_error = event.error or previous.last_error
        elif event.status == ConnectionStatus.CONNECTED:
            last_error = None
        else:
            last_error = previous.last_error

        state = VenueState(status=event.status, last_error=last_error, updated_at=event.occurred_at)
        self._states[event.venue] = state

        if event.status == ConnectionStatus.ERROR:
            logger.warning("venue_connection_error", venue=event.venue, error=event.error)
        else:
            logger.info("venue_status_changed", venue=event.venue, status=event.status.value)
        return state

    def drain(self) -> int:
        """Apply every queued event without blocking; return how many were applied."""
        applied = 0
        while True:
            try:
                event = self.events.get_nowait()
            except queue.Empty:
                return applied
            self.apply(event)
            applied += 1

    def state(self, venue: str) -> VenueState:
        return self._states.get(venue, VenueState())

    def snapshot(self) -> Dict[str, VenueState]:
        """Copy of all tracked venue states."""
        return dict(self._states)


class VenueAdapter(Protocol):
    """
    Protocol for translating one venue's depth formats to snapshots.

    **Implementation requirements**: see the module docstring. Methods are
    pure; no adapter opens sockets or holds connection state.
    """

    venue: str

    def to_venue_symbol(self, symbol: str) -> str:
        """Map a canonical symbol ("BTC-USDT") to the venue's instrument name."""
        ...

    def subscribe_payload(self, symbol: str) -> Dict[str, Any]:
        """Websocket message subscribing to the symbol's depth channel."""
        ...

    def ping_payload(self) -> Union[str, Dict[str, Any]]:
        """Heartbeat message the venue expects at its ping interval."""
        ...

    def parse_message(self, raw: RawMessage, depth_limit: int = 15) -> Optional[OrderBookSnapshot]:
        """Snapshot from a websocket push, or None for pongs/acks/other channels."""
        ...

    def rest_request(self, symbol: str, depth_limit: int = 15) -> Tuple[str, Dict[str, Any]]:
        """(path, query params) for the venue's public REST depth endpoint."""
        ...

    def parse_rest_response(self, payload: Mapping[str, Any], depth_limit: int = 15) -> OrderBookSnapshot:
        """Snapshot from the REST depth endpoint's JSON body."""
        ...


def millis_to_datetime(value: Any) -> Optional[datetime]:
    """Convert an epoch-milliseconds value (int or numeric string) to UTC datetime."""
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    except (TypeError, ValueError):
        return None


def decode_message(raw: RawMessage) -> Optional[Mapping[str, Any]]:
    """
    Decode a websocket frame to a JSON object.

    Returns None for non-JSON text (OKX replies to pings with a bare "pong")
    and for JSON that is not an object.
    """
    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    try:
        message = json.loads(raw)
    except (TypeError, ValueError):
        return None
    return message if isinstance(message, Mapping) else None
