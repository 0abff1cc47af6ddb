"""
GoldBasis: Live Gold Basis Terminal

Polls a reference oracle and four gold venues, tracks per-feed freshness,
and keeps a rolling series of each venue's basis against the oracle:
- Pyth XAU/USD (reference)
- Binance XAUUSDT futures (basis + funding)
- Binance USDCUSDT spot (conversion factor)
- Hyperliquid perp DEX GOLD
- Meteora GOLD/USDC pool

Usage:
    import asyncio
    from goldbasis import BasisEngine

    async def main():
        engine = BasisEngine()
        await engine.tick()
        snap = engine.snapshot()
        print(snap.status, snap.basis["binance_futures"].basis_bps)

    asyncio.run(main())
"""

from .basis import (
    basis_bps,
    basis_usd,
    dislocation_bps,
    dislocation_usd,
    funding_apy_pct,
    implied_cross_rate,
)
from .config import EngineConfig
from .engine import BasisEngine, EngineState
from .errors import FeedError, HttpError, InvalidResponse, NonFiniteValue, NotFound
from .models import BasisSample, EngineSnapshot, FeedState, FetchOutcome, NormalizedQuote, VenueBasis
from .series import RollingSeries
from .state import FeedStateStore

__version__ = "1.0.0"
__all__ = [
    "BasisEngine",
    "EngineState",
    "EngineConfig",
    "EngineSnapshot",
    "BasisSample",
    "VenueBasis",
    "FeedState",
    "FetchOutcome",
    "NormalizedQuote",
    "FeedStateStore",
    "RollingSeries",
    "FeedError",
    "HttpError",
    "InvalidResponse",
    "NonFiniteValue",
    "NotFound",
    "basis_usd",
    "basis_bps",
    "dislocation_usd",
    "dislocation_bps",
    "funding_apy_pct",
    "implied_cross_rate",
]
