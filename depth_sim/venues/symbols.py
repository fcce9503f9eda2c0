"""
Supported symbols per venue and canonical symbol mapping.

Canonical symbols use "BASE-QUOTE" ("BTC-USDT"). OKX uses that form natively,
Bybit drops the dash ("BTCUSDT"), and Deribit lists USD-settled perpetuals
("BTC-PERPETUAL") that we expose as "BTC-USD".
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class VenueSymbol:
    value: str
    label: str


VENUE_SYMBOLS: Dict[str, Tuple[VenueSymbol, ...]] = {
    "okx": (
        VenueSymbol("BTC-USDT", "Bitcoin (BTC/USDT)"),
        VenueSymbol("ETH-USDT", "Ethereum (ETH/USDT)"),
        VenueSymbol("SOL-USDT", "Solana (SOL/USDT)"),
        VenueSymbol("ADA-USDT", "Cardano (ADA/USDT)"),
        VenueSymbol("MATIC-USDT", "Polygon (MATIC/USDT)"),
        VenueSymbol("DOT-USDT", "Polkadot (DOT/USDT)"),
        VenueSymbol("AVAX-USDT", "Avalanche (AVAX/USDT)"),
        VenueSymbol("LINK-USDT", "Chainlink (LINK/USDT)"),
        VenueSymbol("UNI-USDT", "Uniswap (UNI/USDT)"),
        VenueSymbol("LTC-USDT", "Litecoin (LTC/USDT)"),
    ),
    "bybit": (
        VenueSymbol("BTC-USDT", "Bitcoin (BTC/USDT)"),
        VenueSymbol("ETH-USDT", "Ethereum (ETH/USDT)"),
        VenueSymbol("SOL-USDT", "Solana (SOL/USDT)"),
        VenueSymbol("ADA-USDT", "Cardano (ADA/USDT)"),
        VenueSymbol("MATIC-USDT", "Polygon (MATIC/USDT)"),
        VenueSymbol("DOT-USDT", "Polkadot (DOT/USDT)"),
        VenueSymbol("AVAX-USDT", "Avalanche (AVAX/USDT)"),
        VenueSymbol("LINK-USDT", "Chainlink (LINK/USDT)"),
        VenueSymbol("XRP-USDT", "Ripple (XRP/USDT)"),
        VenueSymbol("DOGE-USDT", "Dogecoin (DOGE/USDT)"),
    ),
    "deribit": (
        VenueSymbol("BTC-USD", "Bitcoin Perpetual (BTC-USD)"),
        VenueSymbol("ETH-USD", "Ethereum Perpetual (ETH-USD)"),
        VenueSymbol("SOL-USD", "Solana Perpetual (SOL-USD)"),
        VenueSymbol("MATIC-USD", "Polygon Perpetual (MATIC-USD)"),
        VenueSymbol("AVAX-USD", "Avalanche Perpetual (AVAX-USD)"),
        VenueSymbol("LINK-USD", "Chainlink Perpetual (LINK-USD)"),
    ),
}


def symbols_for_venue(venue: str) -> List[str]:
    """Canonical symbols listed for a venue (empty for unknown venues)."""
    return [symbol.value for symbol in VENUE_SYMBOLS.get(venue, ())]


def default_symbol_for_venue(venue: str) -> str:
    """First listed symbol, or "" for unknown venues."""
    symbols = symbols_for_venue(venue)
    return symbols[0] if symbols else ""


def format_symbol_for_venue(symbol: str, venue: str) -> str:
    """
    Convert a canonical symbol to the venue's preferred canonical form.

    Deribit quotes in USD, so "BTC-USDT" becomes "BTC-USD"; other venues
    keep the symbol unchanged.
    """
    if venue == "deribit" and symbol.endswith("-USDT"):
        return symbol[: -len("-USDT")] + "-USD"
    return symbol
