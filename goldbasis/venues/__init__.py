"""
GoldBasis Venue Adapters

REST adapters for each polled feed, plus the timed wrapper.
"""

from typing import Dict

from .base import VenueAdapter, timed
from .binance import BinanceFuturesAdapter, BinanceSpotAdapter
from .hyperliquid import HyperliquidAdapter
from .meteora import MeteoraAdapter, resolve_pool_orientation
from .pyth import PythAdapter

__all__ = [
    "VenueAdapter",
    "timed",
    "PythAdapter",
    "BinanceFuturesAdapter",
    "BinanceSpotAdapter",
    "HyperliquidAdapter",
    "MeteoraAdapter",
    "resolve_pool_orientation",
    "default_adapters",
]

# Registry for easy iteration (reference feed first)
VENUE_ADAPTERS = {
    "pyth": PythAdapter,
    "binance_futures": BinanceFuturesAdapter,
    "binance_spot": BinanceSpotAdapter,
    "hyperliquid": HyperliquidAdapter,
    "meteora": MeteoraAdapter,
}


def default_adapters(session=None, timeout: float = 10.0) -> Dict[str, VenueAdapter]:
    """One adapter per feed, keyed by feed name."""
    return {
        name: cls(session=session, timeout=timeout)
        for name, cls in VENUE_ADAPTERS.items()
    }
