"""
Tests for VenueRestClient HTTP wrapper.

**Purpose**: Verify that VenueRestClient builds the right request for each
venue, hands the body to the adapter, and raises the right exception for
each HTTP failure.

**Testing philosophy**: Use mocked HTTP responses (no real API calls).
  - Fast (no network I/O)
  - Deterministic (no flaky tests due to network issues)
  - Can test error conditions (rate limits, server errors) easily
"""

from unittest.mock import Mock, patch

import pytest
import requests

from depth_sim.config.settings import VenueEndpoint, VenueSettings
from depth_sim.data.schemas import PriceLevel
from depth_sim.venues.base import (
    VenueClientError,
    VenueRateLimitError,
    VenueResponseError,
    VenueServerError,
    VenueSymbolNotFoundError,
)
from depth_sim.venues.rest_client import VenueRestClient, default_adapters


@pytest.fixture
def venue_settings():
    """
    VenueSettings pointing at fake hosts.

    Returns:
        VenueSettings with test base URLs and a short timeout.
    """
    endpoints = {
        "okx": VenueEndpoint("wss://ws.test-okx.com", "https://test-okx.com", 25.0),
        "bybit": VenueEndpoint("wss://stream.test-bybit.com", "https://test-bybit.com", 20.0),
        "deribit": VenueEndpoint("wss://test-deribit.com", "https://test-deribit.com", 20.0),
    }
    return VenueSettings(endpoints=endpoints, timeout_seconds=5)


def make_response(status_code=200, payload=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = payload
    return response


def test_client_initialization(venue_settings):
    client = VenueRestClient(venue_settings)

    assert client.session.headers["Accept"] == "application/json"
    assert set(client.adapters) == {"okx", "bybit", "deribit"}


def test_default_adapters_keyed_by_venue():
    adapters = default_adapters()

    assert {name: adapter.venue for name, adapter in adapters.items()} == {
        "okx": "okx",
        "bybit": "bybit",
        "deribit": "deribit",
    }


@patch("depth_sim.venues.rest_client.requests.Session.get")
def test_fetch_snapshot_okx_success(mock_get, venue_settings):
    mock_get.return_value = make_response(payload={
        "code": "0",
        "msg": "",
        "data": [{
            "asks": [["100", "2", "0", "1"], ["101", "3", "0", "1"]],
            "bids": [["99", "4", "0", "2"]],
            "ts": "1700000000000",
        }],
    })

    client = VenueRestClient(venue_settings)
    snapshot = client.fetch_snapshot("okx", "BTC-USDT", depth_limit=15)

    # Verify request was made with correct URL, params and timeout
    mock_get.assert_called_once()
    call_args = mock_get.call_args
    assert call_args.args[0] == "https://test-okx.com/api/v5/market/books"
    assert call_args.kwargs["params"] == {"instId": "BTC-USDT", "sz": 15}
    assert call_args.kwargs["timeout"] == 5

    assert snapshot.venue == "okx"
    assert snapshot.best_ask() == PriceLevel(100.0, 2.0)
    assert snapshot.best_bid() == PriceLevel(99.0, 4.0)


@patch("depth_sim.venues.rest_client.requests.Session.get")
def test_fetch_snapshot_bybit_maps_symbol(mock_get, venue_settings):
    mock_get.return_value = make_response(payload={
        "retCode": 0,
        "retMsg": "OK",
        "result": {"s": "ETHUSDT", "b": [["1999", "5"]], "a": [["2000", "1"]], "ts": 1700000000000},
    })

    client = VenueRestClient(venue_settings)
    snapshot = client.fetch_snapshot("bybit", "ETH-USDT")

    assert mock_get.call_args.kwargs["params"]["symbol"] == "ETHUSDT"
    assert snapshot.best_ask().price == 2000.0


@pytest.mark.parametrize(
    "status_code,exception,match",
    [
        (404, VenueSymbolNotFoundError, "not found"),
        (429, VenueRateLimitError, "rate limit"),
        (500, VenueServerError, "server error"),
        (503, VenueServerError, "server error"),
        (400, VenueClientError, "client error"),
    ],
)
@patch("depth_sim.venues.rest_client.requests.Session.get")
def test_fetch_snapshot_http_errors(mock_get, status_code, exception, match, venue_settings):
    mock_get.return_value = make_response(status_code=status_code, text="boom")

    client = VenueRestClient(venue_settings)

    with pytest.raises(exception, match=match):
        client.fetch_snapshot("okx", "BTC-USDT")


@patch("depth_sim.venues.rest_client.requests.Session.get")
def test_fetch_snapshot_timeout(mock_get, venue_settings):
    mock_get.side_effect = requests.Timeout("read timed out")

    client = VenueRestClient(venue_settings)

    with pytest.raises(VenueClientError, match="timed out"):
        client.fetch_snapshot("deribit", "BTC-USD")


@patch("depth_sim.venues.rest_client.requests.Session.get")
def test_fetch_snapshot_invalid_json(mock_get, venue_settings):
    response = make_response()
    response.json.side_effect = ValueError("Expecting value")
    mock_get.return_value = response

    client = VenueRestClient(venue_settings)

    with pytest.raises(VenueClientError, match="Failed to parse JSON"):
        client.fetch_snapshot("okx", "BTC-USDT")


@patch("depth_sim.venues.rest_client.requests.Session.get")
def test_fetch_snapshot_error_in_body(mock_get, venue_settings):
    """HTTP 200 with an error in the body raises VenueResponseError."""
    mock_get.return_value = make_response(payload={
        "jsonrpc": "2.0",
        "error": {"code": 10009, "message": "instrument_not_found"},
    })

    client = VenueRestClient(venue_settings)

    with pytest.raises(VenueResponseError, match="instrument_not_found"):
        client.fetch_snapshot("deribit", "DOGE-USD")


def test_fetch_snapshot_rejects_empty_symbol(venue_settings):
    client = VenueRestClient(venue_settings)

    with pytest.raises(ValueError, match="cannot be empty"):
        client.fetch_snapshot("okx", "  ")


def test_fetch_snapshot_unknown_venue(venue_settings):
    client = VenueRestClient(venue_settings)

    with pytest.raises(KeyError, match="kraken"):
        client.fetch_snapshot("kraken", "BTC-USDT")
