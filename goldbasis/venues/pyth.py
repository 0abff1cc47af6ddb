"""
Pyth Oracle Adapter

Reference XAU/USD price from Pyth's Hermes REST API.
No authentication required.
"""

import math

from ..config import PYTH_LATEST_URL, PYTH_XAU_USD_ID
from ..errors import InvalidResponse, NonFiniteValue
from ..models import NormalizedQuote
from .base import VenueAdapter, to_float


class PythAdapter(VenueAdapter):
    """
    Latest signed price update for one Pyth feed id.

    URL: https://hermes.pyth.network/v2/updates/price/latest?ids[]=<id>

    The price arrives as a mantissa/exponent pair:
        {"parsed": [{"price": {"price": "265012000", "expo": -5, "publish_time": 1718000000}}]}
    """

    name = "pyth"

    def __init__(self, feed_id: str = PYTH_XAU_USD_ID, url: str = PYTH_LATEST_URL, **kwargs):
        super().__init__(**kwargs)
        self.feed_id = feed_id
        self.url = url

    async def fetch_quote(self) -> NormalizedQuote:
        data = await self._get_json(self.url, params={"ids[]": self.feed_id})

        parsed = data.get("parsed") if isinstance(data, dict) else None
        entry = parsed[0] if isinstance(parsed, list) and parsed else None
        price_obj = entry.get("price") if isinstance(entry, dict) else None
        if not isinstance(price_obj, dict):
            raise InvalidResponse("price object missing")

        price = decode_price(price_obj.get("price"), price_obj.get("expo"))
        if not math.isfinite(price):
            raise NonFiniteValue("price not finite")

        publish_time = to_float(price_obj.get("publish_time"))
        publish_time_ms = int(publish_time * 1000) if math.isfinite(publish_time) else None

        return NormalizedQuote(price=price, extra={"publish_time_ms": publish_time_ms})


def decode_price(mantissa, exponent) -> float:
    """price = mantissa * 10^exponent (NaN if either part is unusable)."""
    m = to_float(mantissa)
    e = to_float(exponent)
    if not math.isfinite(m) or not math.isfinite(e):
        return float("nan")
    try:
        return m * math.pow(10, e)
    except OverflowError:
        return float("inf")
