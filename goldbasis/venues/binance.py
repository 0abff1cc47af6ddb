"""
Binance REST Adapters

Futures: XAUUSDT book ticker plus premium index (funding).
Spot: USDCUSDT book ticker, used as the USDC/USDT conversion factor.
No authentication required.
"""

import asyncio
import math
from typing import Optional

from ..config import (
    BINANCE_BOOK_TICKER_URL,
    BINANCE_FUTURES_SYMBOL,
    BINANCE_PREMIUM_INDEX_URL,
    BINANCE_SPOT_BOOK_TICKER_URL,
    BINANCE_SPOT_SYMBOL,
)
from ..errors import InvalidResponse
from ..models import NormalizedQuote
from .base import VenueAdapter, mid_price, require_positive, to_float


def _optional_float(value) -> Optional[float]:
    x = to_float(value)
    return x if math.isfinite(x) else None


class BinanceFuturesAdapter(VenueAdapter):
    """
    Binance USD-M futures quote with funding info.

    Book ticker: {"bidPrice": "2650.90", "askPrice": "2651.10", ...}
    Premium index: {"lastFundingRate": "0.00010000", "nextFundingTime": 1718006400000, ...}
    """

    name = "binance_futures"

    def __init__(
        self,
        symbol: str = BINANCE_FUTURES_SYMBOL,
        book_url: str = BINANCE_BOOK_TICKER_URL,
        premium_url: str = BINANCE_PREMIUM_INDEX_URL,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.symbol = symbol.upper()
        self.book_url = book_url
        self.premium_url = premium_url

    async def fetch_quote(self) -> NormalizedQuote:
        params = {"symbol": self.symbol}
        book, premium = await asyncio.gather(
            self._get_json(self.book_url, params=params),
            self._get_json(self.premium_url, params=params),
        )
        if not isinstance(book, dict) or not isinstance(premium, dict):
            raise InvalidResponse("unexpected ticker payload")

        mid = require_positive(mid_price(book.get("bidPrice"), book.get("askPrice")))

        next_funding = _optional_float(premium.get("nextFundingTime"))
        return NormalizedQuote(
            price=mid,
            extra={
                "bid": _optional_float(book.get("bidPrice")),
                "ask": _optional_float(book.get("askPrice")),
                "last_funding_rate": _optional_float(premium.get("lastFundingRate")),
                "next_funding_time_ms": int(next_funding) if next_funding else None,
            },
        )


class BinanceSpotAdapter(VenueAdapter):
    """Binance spot book ticker for a stablecoin pair (FX factor only)."""

    name = "binance_spot"

    def __init__(self, symbol: str = BINANCE_SPOT_SYMBOL, url: str = BINANCE_SPOT_BOOK_TICKER_URL, **kwargs):
        super().__init__(**kwargs)
        self.symbol = symbol.upper()
        self.url = url

    async def fetch_quote(self) -> NormalizedQuote:
        book = await self._get_json(self.url, params={"symbol": self.symbol})
        if not isinstance(book, dict):
            raise InvalidResponse("unexpected ticker payload")

        mid = require_positive(mid_price(book.get("bidPrice"), book.get("askPrice")))
        return NormalizedQuote(
            price=mid,
            extra={
                "bid": _optional_float(book.get("bidPrice")),
                "ask": _optional_float(book.get("askPrice")),
            },
        )
