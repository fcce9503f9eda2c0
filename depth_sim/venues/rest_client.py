"""
HTTP client for one-shot depth snapshots from venue REST endpoints.

**Conceptual**: The streaming feed is the normal way snapshots arrive, but a
single REST call is enough to seed a simulation, run a script, or compare
venues side by side. This client handles HTTP mechanics (session, timeout,
status codes) and delegates body parsing to the venue's adapter, so the
snapshot it returns is identical in shape to one built from a websocket push.

**Why separate HTTP client from adapters?**
  - Adapters stay pure and testable with plain dicts.
  - The client is testable with a mocked session, no network needed.
"""

from typing import Dict, Optional

import requests
import structlog

from depth_sim.config.settings import VenueSettings
from depth_sim.data.schemas import OrderBookSnapshot
from depth_sim.venues.base import (
    VenueAdapter,
    VenueClientError,
    VenueRateLimitError,
    VenueServerError,
    VenueSymbolNotFoundError,
)
from depth_sim.venues.bybit import BybitAdapter
from depth_sim.venues.deribit import DeribitAdapter
from depth_sim.venues.okx import OkxAdapter

logger = structlog.get_logger(__name__)


def default_adapters() -> Dict[str, VenueAdapter]:
    """One adapter per supported venue, keyed by venue name."""
    adapters = (OkxAdapter(), BybitAdapter(), DeribitAdapter())
    return {adapter.venue: adapter for adapter in adapters}


class VenueRestClient:
    """
    Fetch depth snapshots over public REST endpoints.

    **Responsibilities**:
      - Build the request URL from VenueSettings and the venue adapter.
      - Make the HTTP request with a timeout.
      - Map HTTP failures to VenueClientError subclasses.
      - Hand the JSON body to the adapter for normalisation.

    **Example usage**:
        >>> from depth_sim.config.settings import get_settings
        >>> client = VenueRestClient(get_settings().venues)
        >>> snapshot = client.fetch_snapshot("okx", "BTC-USDT")
        >>> snapshot.best_bid(), snapshot.best_ask()
    """

    def __init__(
        self,
        settings: VenueSettings,
        adapters: Optional[Dict[str, VenueAdapter]] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings
        self.adapters = adapters if adapters is not None else default_adapters()
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "User-Agent": "depth_sim/1.0",
        })

    def fetch_snapshot(
        self,
        venue: str,
        symbol: str,
        depth_limit: int = 15,
    ) -> OrderBookSnapshot:
        """
        Fetch and normalise the current top-of-book for `symbol` on `venue`.

        Args:
            venue: Venue name ("okx", "bybit", "deribit").
            symbol: Canonical symbol ("BTC-USDT", or "BTC-USD" for Deribit).
            depth_limit: Levels per side to keep.

        Returns:
            OrderBookSnapshot with at most `depth_limit` levels per side.

        Raises:
            ValueError: If symbol is empty.
            KeyError: If the venue has no adapter or endpoint configured.
            VenueSymbolNotFoundError: HTTP 404.
            VenueRateLimitError: HTTP 429.
            VenueServerError: HTTP 5xx.
            VenueResponseError: Error code in the response body.
            VenueClientError: Other HTTP failures, unparseable JSON, timeouts.
        """
        if not symbol or not symbol.strip():
            raise ValueError("Symbol cannot be empty")

        if venue not in self.adapters:
            raise KeyError(f"No adapter for venue '{venue}'. Known venues: {sorted(self.adapters)}")
        adapter = self.adapters[venue]
        endpoint = self.settings.endpoint(venue)

        path, params = adapter.rest_request(symbol.strip(), depth_limit)
        url = f"{endpoint.rest_base_url}{path}"

        try:
            response = self.session.get(url, params=params, timeout=self.settings.timeout_seconds)
        except requests.Timeout as e:
            raise VenueClientError(f"{venue} request timed out after {self.settings.timeout_seconds}s: {e}")
        except requests.RequestException as e:
            raise VenueClientError(f"{venue} request failed: {e}")

        if response.status_code == 404:
            raise VenueSymbolNotFoundError(
                f"Symbol '{symbol}' not found on {venue}. Response: {response.text}"
            )
        if response.status_code == 429:
            raise VenueRateLimitError(
                f"{venue} rate limit exceeded. Slow down requests. Response: {response.text}"
            )
        if response.status_code >= 500:
            raise VenueServerError(
                f"{venue} server error (status {response.status_code}). Response: {response.text}"
            )
        if response.status_code >= 400:
            raise VenueClientError(
                f"{venue} client error (status {response.status_code}). Response: {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise VenueClientError(f"Failed to parse JSON response from {venue}: {e}")

        snapshot = adapter.parse_rest_response(payload, depth_limit)
        logger.info(
            "venue_snapshot_fetched",
            venue=venue,
            symbol=symbol,
            bid_levels=len(snapshot.bids),
            ask_levels=len(snapshot.asks),
        )
        return snapshot
