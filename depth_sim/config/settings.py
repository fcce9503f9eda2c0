"""
Configuration settings for the simulation engine and venue adapters.

**Conceptual**: This module provides strongly-typed configuration objects that
load from environment variables (via .env files). All settings are validated
at construction, ensuring fail-fast behavior if configuration is invalid.

**Why centralized config?**
  - Single source of truth for the heuristic constants (depth limit, turnover rate).
  - Easy to test (inject fake settings instead of reading from environment).
  - Fail-fast validation (a negative turnover rate is caught at startup, not mid-run).

**Teaching note**: The simulation engine itself has no environment surface. It
receives a SimulationSettings object as an argument (or falls back to the
defaults). Only the scripts and venue adapters read from the environment.

This module uses python-dotenv to load .env files and dataclasses for type safety.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

# Try to load .env file if present (dev/local environments)
try:
    from dotenv import load_dotenv
    # Load .env from project root
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)
except ImportError:
    # python-dotenv not installed; assume environment variables are set externally
    pass


# Visible depth kept per side of a snapshot
DEFAULT_DEPTH_LIMIT = 15

# 10% of visible liquidity assumed to trade per minute
DEFAULT_TURNOVER_RATE_PER_MINUTE = 0.1

DEFAULT_MIN_TIME_TO_FILL_SECONDS = 1


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {raw}")


def _read_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw}")


@dataclass(frozen=True)
class SimulationSettings:
    """
    Tunable constants for the execution simulation heuristics.

    **Conceptual**: The engine's numeric behaviour is fixed except for three
    knobs: how many levels per side a snapshot keeps, how fast visible
    liquidity is assumed to turn over (drives the time-to-fill estimate), and
    the floor applied to that estimate.

    **Open question carried here**: the 10%-per-minute turnover rate is a
    placeholder policy, not a calibrated model. Keeping it configurable lets
    callers experiment without touching the engine.

    Attributes:
        depth_limit: Maximum levels per side kept in a snapshot (default 15).
        turnover_rate_per_minute: Fraction of visible liquidity assumed to
                                  trade each minute (default 0.1).
        min_time_to_fill_seconds: Floor applied to the time-to-fill estimate
                                  (default 1 second).
    """
    depth_limit: int = DEFAULT_DEPTH_LIMIT
    turnover_rate_per_minute: float = DEFAULT_TURNOVER_RATE_PER_MINUTE
    min_time_to_fill_seconds: int = DEFAULT_MIN_TIME_TO_FILL_SECONDS

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.depth_limit < 1:
            raise ValueError(f"depth_limit must be at least 1, got: {self.depth_limit}")
        if self.turnover_rate_per_minute <= 0:
            raise ValueError(
                f"turnover_rate_per_minute must be positive, got: {self.turnover_rate_per_minute}"
            )
        if self.min_time_to_fill_seconds < 0:
            raise ValueError(
                f"min_time_to_fill_seconds must be non-negative, got: {self.min_time_to_fill_seconds}"
            )

    @property
    def turnover_rate_per_second(self) -> float:
        """Per-second turnover rate (0.1 / 60 with the defaults)."""
        return self.turnover_rate_per_minute / 60

    @classmethod
    def from_env(cls) -> "SimulationSettings":
        """
        Load simulation settings from environment variables.

        **Environment variables** (all optional):
          - DEPTH_SIM_DEPTH_LIMIT: levels per side (default 15).
          - DEPTH_SIM_TURNOVER_RATE_PER_MINUTE: turnover fraction (default 0.1).
          - DEPTH_SIM_MIN_TIME_TO_FILL_SECONDS: estimate floor (default 1).

        Returns:
            SimulationSettings object with values loaded from environment.

        Raises:
            ValueError: If a variable is set but cannot be parsed or is out of range.
        """
        return cls(
            depth_limit=_read_int("DEPTH_SIM_DEPTH_LIMIT", str(DEFAULT_DEPTH_LIMIT)),
            turnover_rate_per_minute=_read_float(
                "DEPTH_SIM_TURNOVER_RATE_PER_MINUTE", str(DEFAULT_TURNOVER_RATE_PER_MINUTE)
            ),
            min_time_to_fill_seconds=_read_int(
                "DEPTH_SIM_MIN_TIME_TO_FILL_SECONDS", str(DEFAULT_MIN_TIME_TO_FILL_SECONDS)
            ),
        )


@dataclass(frozen=True)
class VenueEndpoint:
    """
    Connection parameters for one venue's public depth feed.

    Attributes:
        websocket_url: Public websocket endpoint for depth pushes.
        rest_base_url: Public REST base URL used for one-shot snapshots.
        ping_interval_seconds: Heartbeat interval expected by the venue.
        reconnect_delay_seconds: Fixed delay before reconnecting after a close or error.
    """
    websocket_url: str
    rest_base_url: str
    ping_interval_seconds: float
    reconnect_delay_seconds: float = 3.0

    def __post_init__(self):
        if not self.websocket_url:
            raise ValueError("websocket_url is required but not set.")
        if not self.rest_base_url:
            raise ValueError("rest_base_url is required but not set.")
        if self.ping_interval_seconds <= 0:
            raise ValueError(
                f"ping_interval_seconds must be positive, got: {self.ping_interval_seconds}"
            )
        if self.reconnect_delay_seconds < 0:
            raise ValueError(
                f"reconnect_delay_seconds must be non-negative, got: {self.reconnect_delay_seconds}"
            )


def _default_endpoints() -> Dict[str, VenueEndpoint]:
    return {
        "okx": VenueEndpoint(
            websocket_url="wss://ws.okx.com:8443/ws/v5/public",
            rest_base_url="https://www.okx.com",
            ping_interval_seconds=25.0,
        ),
        "bybit": VenueEndpoint(
            websocket_url="wss://stream.bybit.com/v5/public/linear",
            rest_base_url="https://api.bybit.com",
            ping_interval_seconds=20.0,
        ),
        "deribit": VenueEndpoint(
            websocket_url="wss://www.deribit.com/ws/api/v2",
            rest_base_url="https://www.deribit.com",
            ping_interval_seconds=20.0,
        ),
    }


@dataclass(frozen=True)
class VenueSettings:
    """
    Configuration for the venue ingestion adapters.

    **Conceptual**: Endpoints and heartbeat timings for each supported venue,
    plus the HTTP timeout used by the one-shot REST snapshot client. The
    streaming connection itself lives outside this repository; these values
    describe what it should connect to.

    Attributes:
        endpoints: Mapping venue name -> VenueEndpoint.
        timeout_seconds: HTTP request timeout for REST snapshots (default 10).
    """
    endpoints: Dict[str, VenueEndpoint] = field(default_factory=_default_endpoints)
    timeout_seconds: int = 10

    def __post_init__(self):
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got: {self.timeout_seconds}")

    def endpoint(self, venue: str) -> VenueEndpoint:
        """
        Look up the endpoint for a venue.

        Raises:
            KeyError: If the venue is not configured.
        """
        try:
            return self.endpoints[venue]
        except KeyError:
            raise KeyError(
                f"Venue '{venue}' is not configured. Known venues: {sorted(self.endpoints)}"
            )

    @classmethod
    def from_env(cls) -> "VenueSettings":
        """
        Load venue settings from environment variables.

        **Environment variables** (all optional):
          - DEPTH_SIM_HTTP_TIMEOUT_SECONDS: REST timeout (default 10).
          - DEPTH_SIM_RECONNECT_DELAY_SECONDS: reconnect delay for every venue (default 3).
          - OKX_REST_BASE_URL, BYBIT_REST_BASE_URL, DERIBIT_REST_BASE_URL:
            override a venue's REST base URL (e.g. testnet).
        """
        timeout_seconds = _read_int("DEPTH_SIM_HTTP_TIMEOUT_SECONDS", "10")
        reconnect_delay = _read_float("DEPTH_SIM_RECONNECT_DELAY_SECONDS", "3")

        endpoints = {}
        for venue, endpoint in _default_endpoints().items():
            endpoints[venue] = VenueEndpoint(
                websocket_url=endpoint.websocket_url,
                rest_base_url=os.getenv(f"{venue.upper()}_REST_BASE_URL", endpoint.rest_base_url),
                ping_interval_seconds=endpoint.ping_interval_seconds,
                reconnect_delay_seconds=reconnect_delay,
            )

        return cls(endpoints=endpoints, timeout_seconds=timeout_seconds)


@dataclass(frozen=True)
class Settings:
    """
    Global settings aggregating simulation and venue configuration.

    **Usage pattern**:
      ```python
      from depth_sim.config.settings import get_settings

      settings = get_settings()
      settings.simulation.turnover_rate_per_second
      ```

    Attributes:
        simulation: Heuristic constants used by the engine.
        venues: Venue endpoints and HTTP timeout.
    """
    simulation: SimulationSettings = field(default_factory=SimulationSettings)
    venues: VenueSettings = field(default_factory=VenueSettings)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Load global settings from environment variables.

        Raises:
            ValueError: If any subsystem setting is malformed.
        """
        return cls(
            simulation=SimulationSettings.from_env(),
            venues=VenueSettings.from_env(),
        )


# Lazily loaded on first get_settings() call. Tests construct Settings directly
# or call reset_settings() between environment changes.
_default_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings singleton.

    Settings are loaded from environment on first call, then cached for reuse.
    The simulation engine never calls this itself; scripts and adapters do and
    pass the relevant piece down explicitly.

    Returns:
        Global Settings singleton.
    """
    global _default_settings

    if _default_settings is None:
        _default_settings = Settings.from_env()

    return _default_settings


def reset_settings():
    """
    Reset the global settings singleton (for testing).

    Returns:
        None (side effect: clears global settings cache).
    """
    global _default_settings
    _default_settings = None
