"""
Base Venue Adapter

Abstract base class for all price-quote adapters, plus the timed wrapper
that turns any adapter call into a uniform FetchOutcome.
"""

import asyncio
import logging
import math
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import requests

from ..config import FEED_LABELS
from ..errors import HttpError, InvalidResponse, NonFiniteValue
from ..models import FetchOutcome, NormalizedQuote

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 10.0


def to_float(value: Any) -> float:
    """Parse a JSON number or numeric string; anything else becomes NaN."""
    if value is None or isinstance(value, bool):
        return float("nan")
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


def mid_price(bid: Any, ask: Any) -> float:
    """Average of best bid and best ask (NaN if either is unusable)."""
    return (to_float(bid) + to_float(ask)) / 2


def require_positive(value: float, what: str = "mid") -> float:
    """Return value if finite and > 0, else raise NonFiniteValue."""
    if not math.isfinite(value):
        raise NonFiniteValue(f"{what} not finite")
    if value <= 0:
        raise NonFiniteValue(f"{what} not positive: {value}")
    return value


class VenueAdapter(ABC):
    """
    Abstract base class for venue price adapters.

    Each adapter implements fetch_quote(), which takes no input (targets are
    fixed at construction) and returns a NormalizedQuote or raises a
    FeedError. Adapters hold only configuration, so one instance can be
    polled concurrently with the others and across overlapping ticks.

    HTTP is done with requests in a worker thread so the event loop never
    blocks. Pass `session` (anything with get/post, e.g. requests.Session)
    to override the transport.
    """

    name = "venue"

    def __init__(self, session=None, timeout: float = DEFAULT_TIMEOUT_SEC):
        self._http = session if session is not None else requests
        self.timeout = timeout

    @property
    def label(self) -> str:
        return FEED_LABELS.get(self.name, self.name.upper())

    @abstractmethod
    async def fetch_quote(self) -> NormalizedQuote:
        """Fetch and normalize the venue's current quote."""
        pass

    async def _get_json(self, url: str, params: Optional[dict] = None) -> Any:
        response = await asyncio.to_thread(
            self._http.get, url, params=params, timeout=self.timeout
        )
        return self._decode(response, url)

    async def _post_json(self, url: str, body: dict) -> Any:
        response = await asyncio.to_thread(
            self._http.post, url, json=body, timeout=self.timeout
        )
        return self._decode(response, url)

    def _decode(self, response, url: str) -> Any:
        if not 200 <= response.status_code < 300:
            raise HttpError(response.status_code, url)
        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponse(f"body is not JSON: {e}") from e

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


async def timed(adapter: VenueAdapter) -> FetchOutcome:
    """
    Run one adapter call and report its outcome and latency.

    Never raises: any exception becomes ok=False with the error text, and
    elapsed_ms is the time until the failure.
    """
    t0 = time.perf_counter()
    try:
        value = await adapter.fetch_quote()
    except Exception as e:
        elapsed_ms = int(round((time.perf_counter() - t0) * 1000))
        error = str(e) or e.__class__.__name__
        logger.debug(f"[{adapter.name}] {e.__class__.__name__}: {error}")
        return FetchOutcome(ok=False, value=None, elapsed_ms=elapsed_ms, error=error)

    elapsed_ms = int(round((time.perf_counter() - t0) * 1000))
    return FetchOutcome(ok=True, value=value, elapsed_ms=elapsed_ms, error="")
