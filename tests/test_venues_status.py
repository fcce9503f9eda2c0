"""
Tests for the venue connection status board.

The board is fed through its queue (the way a feed thread would report) or
through `apply` directly.
"""

import queue
from datetime import datetime, timezone

from depth_sim.venues.base import (
    ConnectionEvent,
    ConnectionStatus,
    VenueState,
    VenueStatusBoard,
)


def test_board_starts_disconnected():
    board = VenueStatusBoard(["okx", "bybit"])

    assert board.state("okx") == VenueState()
    assert board.state("okx").status == ConnectionStatus.DISCONNECTED
    # Unknown venues read as disconnected too
    assert board.state("deribit").status == ConnectionStatus.DISCONNECTED


def test_drain_applies_events_in_order():
    board = VenueStatusBoard(["okx"])
    board.events.put(ConnectionEvent("okx", ConnectionStatus.CONNECTING))
    board.events.put(ConnectionEvent("okx", ConnectionStatus.CONNECTED))

    applied = board.drain()

    assert applied == 2
    assert board.state("okx").status == ConnectionStatus.CONNECTED
    assert board.drain() == 0


def test_error_is_kept_until_reconnect():
    """
    Lifecycle:
      connected -> error ("socket closed") -> disconnected -> connecting -> connected

    The last error survives the disconnect and reconnect attempt and is only
    cleared once the venue is connected again.
    """
    board = VenueStatusBoard(["bybit"])

    board.apply(ConnectionEvent("bybit", ConnectionStatus.CONNECTED))
    board.apply(ConnectionEvent("bybit", ConnectionStatus.ERROR, error="socket closed"))
    assert board.state("bybit").last_error == "socket closed"

    board.apply(ConnectionEvent("bybit", ConnectionStatus.DISCONNECTED))
    board.apply(ConnectionEvent("bybit", ConnectionStatus.CONNECTING))
    assert board.state("bybit").status == ConnectionStatus.CONNECTING
    assert board.state("bybit").last_error == "socket closed"

    board.apply(ConnectionEvent("bybit", ConnectionStatus.CONNECTED))
    assert board.state("bybit").last_error is None


def test_apply_records_event_time():
    board = VenueStatusBoard()
    occurred = datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)

    state = board.apply(ConnectionEvent("deribit", ConnectionStatus.CONNECTED, occurred_at=occurred))

    assert state.updated_at == occurred
    assert board.snapshot() == {"deribit": state}


def test_board_accepts_shared_queue():
    events = queue.Queue()
    board = VenueStatusBoard(["okx"], events=events)

    events.put(ConnectionEvent("okx", ConnectionStatus.ERROR, error="timeout"))
    board.drain()

    assert board.state("okx").status == ConnectionStatus.ERROR
    assert board.state("okx").last_error == "timeout"


def test_snapshot_is_a_copy():
    board = VenueStatusBoard(["okx"])

    copy = board.snapshot()
    copy["okx"] = VenueState(status=ConnectionStatus.CONNECTED)

    assert board.state("okx").status == ConnectionStatus.DISCONNECTED
