"""
Meteora DLMM Pool Adapter

Gold price from a Solana liquidity pool (GOLD/USDC).
No authentication required.
"""

import math
from typing import Optional, Tuple

from ..config import METEORA_POOL_URL, PoolConfig
from ..errors import InvalidResponse, NonFiniteValue
from ..models import NormalizedQuote
from .base import VenueAdapter, require_positive, to_float

# How the pool price orientation was decided
RANGE_DIRECT = "range-direct"
RANGE_INVERSE = "range-inverse"
SYMBOLS_DIRECT = "symbols-direct"
SYMBOLS_INVERSE = "symbols-inverse"
FALLBACK_DIRECT = "fallback-direct"


class MeteoraAdapter(VenueAdapter):
    """
    Pool spot price from GET https://dlmm.datapi.meteora.ag/pools/<address>.

    Response: {"current_price": 0.000377, "token_x": {"symbol": "USDC"},
               "token_y": {"symbol": "GOLD"}, ...}

    current_price may be quote-per-base or base-per-quote; see
    resolve_pool_orientation().
    """

    name = "meteora"

    def __init__(self, url: str = METEORA_POOL_URL, **kwargs):
        super().__init__(**kwargs)
        self.url = url

    async def fetch_quote(self) -> NormalizedQuote:
        pool = await self._get_json(self.url)
        if not isinstance(pool, dict) or pool.get("current_price") is None:
            raise InvalidResponse("current_price missing")

        raw = to_float(pool["current_price"])
        if not math.isfinite(raw) or raw <= 0:
            raise NonFiniteValue(f"current_price not usable: {pool['current_price']!r}")

        base_symbol = _symbol(pool.get("token_x"))
        quote_symbol = _symbol(pool.get("token_y"))
        mid, orientation = resolve_pool_orientation(raw, base_symbol, quote_symbol)

        return NormalizedQuote(
            price=require_positive(mid),
            extra={
                "raw_price": raw,
                "orientation": orientation,
                "base_symbol": base_symbol,
                "quote_symbol": quote_symbol,
            },
        )


def _symbol(token) -> Optional[str]:
    if isinstance(token, dict) and token.get("symbol") is not None:
        return str(token["symbol"])
    return None


def in_gold_range(x: float) -> bool:
    return math.isfinite(x) and PoolConfig.GOLD_RANGE_MIN < x < PoolConfig.GOLD_RANGE_MAX


def is_gold_symbol(symbol: Optional[str]) -> bool:
    s = str(symbol or "").upper()
    return any(t in s for t in PoolConfig.GOLD_TICKERS)


def is_stable_symbol(symbol: Optional[str]) -> bool:
    s = str(symbol or "").upper()
    return any(t in s for t in PoolConfig.STABLE_TICKERS)


def resolve_pool_orientation(
    raw_price: float,
    base_symbol: Optional[str],
    quote_symbol: Optional[str],
) -> Tuple[float, str]:
    """
    Pick USD-per-gold out of a direction-ambiguous pool price.

    Known approximation: it assumes gold trades inside the fixed band and
    that token symbols follow the usual tickers. Decision order:
    1. exactly one of price and 1/price lies inside the band
    2. base looks like gold and quote like the stablecoin -> price;
       reversed -> 1/price
    3. price as-is
    """
    if raw_price <= 0 or not math.isfinite(raw_price):
        raise NonFiniteValue(f"pool price not usable: {raw_price!r}")

    inverse = 1 / raw_price
    direct_ok = in_gold_range(raw_price)
    inverse_ok = in_gold_range(inverse)

    if direct_ok and not inverse_ok:
        return raw_price, RANGE_DIRECT
    if inverse_ok and not direct_ok:
        return inverse, RANGE_INVERSE

    if is_gold_symbol(base_symbol) and is_stable_symbol(quote_symbol):
        return raw_price, SYMBOLS_DIRECT
    if is_stable_symbol(base_symbol) and is_gold_symbol(quote_symbol):
        return inverse, SYMBOLS_INVERSE

    return raw_price, FALLBACK_DIRECT
