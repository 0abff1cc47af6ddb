"""
Hyperliquid Perp DEX Adapter

Gold mid from a HIP-3 sub-market ("perp dex") via the public info endpoint.
No authentication required.
"""

import math
from typing import Dict, List, Optional, Tuple

from ..config import HYPERLIQUID_INFO_URL, HyperliquidConfig
from ..errors import InvalidResponse, NotFound
from ..models import NormalizedQuote
from .base import VenueAdapter, require_positive, to_float


class HyperliquidAdapter(VenueAdapter):
    """
    Two-step lookup on POST https://api.hyperliquid.xyz/info:

    1. {"type": "perpDexs"} -> [null, {"name": "flx", ...}, ...]
       Pick the dex whose name matches (case-insensitive), else the default.
    2. {"type": "allMids", "dex": "<name>"} -> {"flx:GOLD": "2652.4", ...}
       Try the candidate keys in order, then any key containing "GOLD".
    """

    name = "hyperliquid"

    def __init__(
        self,
        dex_name: str = HyperliquidConfig.DEX_NAME,
        url: str = HYPERLIQUID_INFO_URL,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.dex_name = dex_name
        self.url = url

    async def fetch_quote(self) -> NormalizedQuote:
        dexs = await self._post_json(self.url, {"type": "perpDexs"})
        dex = select_dex(dexs, self.dex_name)

        mids = await self._post_json(self.url, {"type": "allMids", "dex": dex})
        if not isinstance(mids, dict):
            raise InvalidResponse("allMids payload is not an object")

        key, price = find_gold_mid(mids, dex)
        if key is None:
            raise NotFound(f"GOLD not in mids (dex={dex}, keys: {describe_keys(mids)})")

        return NormalizedQuote(price=require_positive(price), extra={"dex": dex, "key": key})


def select_dex(dexs, wanted: str) -> str:
    """Name of the listed dex matching `wanted` case-insensitively, else `wanted`."""
    if isinstance(dexs, list):
        for entry in dexs:
            if isinstance(entry, dict) and str(entry.get("name")).lower() == wanted.lower():
                return entry["name"]
    return wanted


def candidate_keys(dex: str) -> List[str]:
    return [k.format(dex=dex) for k in HyperliquidConfig.CANDIDATE_KEYS]


def find_gold_mid(mids: Dict[str, object], dex: str) -> Tuple[Optional[str], Optional[float]]:
    """
    First key resolving to a finite price: candidates in order, then any key
    containing the gold substring. Returns (None, None) if nothing resolves.
    """
    for key in candidate_keys(dex):
        if key in mids:
            price = to_float(mids[key])
            if math.isfinite(price):
                return key, price

    needle = HyperliquidConfig.KEY_SUBSTRING.upper()
    for key, value in mids.items():
        if needle in str(key).upper():
            price = to_float(value)
            if math.isfinite(price):
                return key, price

    return None, None


def describe_keys(mids: Dict[str, object], limit: int = 10) -> str:
    """Diagnostic list: keys that look like gold, else a sample of all keys."""
    needle = HyperliquidConfig.KEY_SUBSTRING.upper()
    matching = [str(k) for k in mids if needle in str(k).upper()]
    keys = matching or [str(k) for k in mids]
    if not keys:
        return "none"
    shown = ", ".join(keys[:limit])
    if len(keys) > limit:
        shown += f", ... (+{len(keys) - limit})"
    return shown
