"""
GoldBasis Configuration

Endpoint URLs, instrument identifiers, and engine settings.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from dotenv import find_dotenv, load_dotenv


# Pyth Hermes oracle (reference price)
PYTH_XAU_USD_ID = "0x765d2ba906dbc32ca17cc11f5310a89e9ee1f6420508c63861f2f8ba4ee34bb2"
PYTH_LATEST_URL = "https://hermes.pyth.network/v2/updates/price/latest"

# Binance USD-M futures (XAU quoted in USDT)
BINANCE_FUTURES_SYMBOL = "XAUUSDT"
BINANCE_BOOK_TICKER_URL = "https://fapi.binance.com/fapi/v1/ticker/bookTicker"
BINANCE_PREMIUM_INDEX_URL = "https://fapi.binance.com/fapi/v1/premiumIndex"

# Binance spot, used only as the USDC/USDT conversion factor
BINANCE_SPOT_SYMBOL = "USDCUSDT"
BINANCE_SPOT_BOOK_TICKER_URL = "https://api.binance.com/api/v3/ticker/bookTicker"

# Hyperliquid perp DEX
HYPERLIQUID_INFO_URL = "https://api.hyperliquid.xyz/info"

# Meteora DLMM pool (GOLD/USDC)
METEORA_POOL_ADDRESS = "3Vj8miZuTSdonf4W1xLdYFatrXLm38CShrCi7NbZS5Ah"
METEORA_POOL_URL = f"https://dlmm.datapi.meteora.ag/pools/{METEORA_POOL_ADDRESS}"


# Feed keys and display labels (labels prefix error messages)
REFERENCE_FEED = "pyth"
FEED_LABELS: Dict[str, str] = {
    "pyth": "PYTH",
    "binance_futures": "BINANCE FUT",
    "binance_spot": "BINANCE SPOT",
    "hyperliquid": "HL",
    "meteora": "METEORA",
}

# Venues that get a basis line (spot is FX only)
BASIS_VENUES = ["binance_futures", "hyperliquid", "meteora"]

# Venue-vs-venue dislocations: name -> (venue, denominator venue)
DISLOCATIONS: Dict[str, tuple] = {
    "meteora_vs_binance_futures": ("meteora", "binance_futures"),
    "meteora_vs_hyperliquid": ("meteora", "hyperliquid"),
}

UNITS = ("usd", "bps")


class HyperliquidConfig:
    # Sub-market ("perp dex") carrying the gold contract
    DEX_NAME = "flx"

    # Keys tried in order inside allMids; "{dex}" is filled with the dex name
    CANDIDATE_KEYS = ("GOLD", "{dex}:GOLD", "GOLD-USDC")

    # Last resort: any key containing this (case-insensitive)
    KEY_SUBSTRING = "GOLD"


class PoolConfig:
    # Plausible XAU/USD band used to pick the pool price orientation (exclusive)
    GOLD_RANGE_MIN = 100.0
    GOLD_RANGE_MAX = 10_000.0

    GOLD_TICKERS = ("GOLD", "XAU")
    STABLE_TICKERS = ("USDC",)


class FundingConfig:
    # Binance XAUUSDT funds every 8 hours
    PERIODS_PER_YEAR = 3 * 365


# UI control choices offered by the dashboard
REFRESH_CHOICES_MS = (2000, 5000, 10000, 30000)
WINDOW_CHOICES_MS = (900_000, 3_600_000, 14_400_000, 86_400_000)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


@dataclass
class EngineConfig:
    """Runtime settings for the basis engine."""
    refresh_ms: int = 5000  # Poll cadence
    window_ms: int = 3_600_000  # Rolling series retention
    stale_ms: int = 30_000  # Feed staleness threshold
    unit: str = "usd"  # Series projection unit: "usd" or "bps"
    http_timeout_sec: float = 10.0
    log_level: str = "INFO"

    def __post_init__(self):
        if self.refresh_ms <= 0:
            raise ValueError(f"refresh_ms must be positive, got {self.refresh_ms}")
        if self.window_ms < 0:
            raise ValueError(f"window_ms must be >= 0, got {self.window_ms}")
        if self.stale_ms <= 0:
            raise ValueError(f"stale_ms must be positive, got {self.stale_ms}")
        if self.unit not in UNITS:
            raise ValueError(f"unit must be one of {UNITS}, got {self.unit!r}")
        if self.http_timeout_sec <= 0:
            raise ValueError(f"http_timeout_sec must be positive, got {self.http_timeout_sec}")

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "EngineConfig":
        """
        Build a config from GOLDBASIS_* environment variables.

        A .env file (explicit path, or the nearest one found) is loaded first;
        variables already set in the environment win.
        """
        if env_file is not None:
            load_dotenv(env_file)
        else:
            load_dotenv(find_dotenv(usecwd=True))

        defaults = cls()
        return cls(
            refresh_ms=_env_int("GOLDBASIS_REFRESH_MS", defaults.refresh_ms),
            window_ms=_env_int("GOLDBASIS_WINDOW_MS", defaults.window_ms),
            stale_ms=_env_int("GOLDBASIS_STALE_MS", defaults.stale_ms),
            unit=os.getenv("GOLDBASIS_UNIT", defaults.unit).strip().lower(),
            http_timeout_sec=_env_float("GOLDBASIS_HTTP_TIMEOUT_SEC", defaults.http_timeout_sec),
            log_level=os.getenv("GOLDBASIS_LOG_LEVEL", defaults.log_level).strip().upper(),
        )
