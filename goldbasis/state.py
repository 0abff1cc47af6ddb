"""
Feed State Store

One FeedState per feed. Written only when a poll completes; read by the
status, snapshot and diagnostics code.
"""

import logging
import math
from typing import Dict, Iterable, List, Optional

from .config import FEED_LABELS
from .models import FeedState, FetchOutcome

logger = logging.getLogger(__name__)

# Per-feed status
FEED_OK = "OK"
FEED_STALE = "STALE"
FEED_ERR = "ERR"

# Aggregate status
STATUS_LIVE = "LIVE"
STATUS_PARTIAL = "PARTIAL"
STATUS_STALE = "STALE"
STATUS_ERROR = "ERROR"
STATUS_PAUSED = "PAUSED"

ERROR_SEPARATOR = " • "


class FeedStateStore:
    """
    Last known value, freshness, latency and error of every feed.

    The reference feed (the oracle) drives the aggregate status; the others
    are venues.
    """

    def __init__(self, feeds: Iterable[str], reference: str, labels: Optional[Dict[str, str]] = None):
        labels = labels or FEED_LABELS
        self._states: Dict[str, FeedState] = {
            name: FeedState(feed=name, label=labels.get(name, name.upper()))
            for name in feeds
        }
        if reference not in self._states:
            raise ValueError(f"reference feed {reference!r} is not one of {list(self._states)}")
        self.reference_feed = reference

    def __contains__(self, feed: str) -> bool:
        return feed in self._states

    def feeds(self) -> List[str]:
        return list(self._states)

    def venues(self) -> List[str]:
        return [name for name in self._states if name != self.reference_feed]

    def apply_outcome(self, feed: str, outcome: FetchOutcome, tick_ms: int):
        """
        Fold one poll outcome into the feed's record.

        Success replaces the value and clears the error. Failure keeps the
        previous value and success time so staleness stays measurable.
        Latency is always recorded.
        """
        state = self._states[feed]
        state.last_latency_ms = outcome.elapsed_ms

        if outcome.ok and outcome.value is not None and not self._acceptable(feed, outcome.value.price):
            outcome = FetchOutcome(
                ok=False,
                value=None,
                elapsed_ms=outcome.elapsed_ms,
                error=f"rejected price {outcome.value.price!r}",
            )

        if outcome.ok and outcome.value is not None:
            state.price = outcome.value.price
            state.extra = dict(outcome.value.extra)
            state.last_success_ms = tick_ms
            state.last_error = ""
        else:
            state.last_error = f"{state.label}: {outcome.error}"
            logger.warning(f"[{feed}] poll failed after {outcome.elapsed_ms}ms: {outcome.error}")

    def _acceptable(self, feed: str, price) -> bool:
        # Venue prices must stay finite and positive; the oracle only finite
        if not isinstance(price, (int, float)) or not math.isfinite(price):
            return False
        return feed == self.reference_feed or price > 0

    # =========================================================================
    # Read accessors
    # =========================================================================

    def get(self, feed: str) -> FeedState:
        """Copy of a feed's record."""
        return self._states[feed].copy()

    def reference(self) -> FeedState:
        return self.get(self.reference_feed)

    def price(self, feed: str) -> Optional[float]:
        return self._states[feed].price

    def error_text(self) -> str:
        """All current feed errors, feed-prefixed, in one line."""
        return ERROR_SEPARATOR.join(s.last_error for s in self._states.values() if s.last_error)

    def feed_status(self, feed: str, now_ms: int, stale_ms: int) -> str:
        """OK, STALE or ERR for a single feed."""
        state = self._states[feed]
        if state.last_error or state.last_success_ms is None:
            return FEED_ERR
        if not state.is_fresh(now_ms, stale_ms):
            return FEED_STALE
        return FEED_OK

    def classify(self, now_ms: int, stale_ms: int, paused: bool = False) -> str:
        """
        Aggregate status:
        - PAUSED overrides everything
        - ERROR: the oracle never produced a value
        - STALE: the oracle's value aged past the threshold
        - PARTIAL: oracle fresh, some venue failed or stale
        - LIVE: everything fresh
        """
        if paused:
            return STATUS_PAUSED

        ref = self._states[self.reference_feed]
        if ref.last_success_ms is None:
            return STATUS_ERROR
        if not ref.is_fresh(now_ms, stale_ms):
            return STATUS_STALE

        for name in self.venues():
            if self.feed_status(name, now_ms, stale_ms) != FEED_OK:
                return STATUS_PARTIAL
        return STATUS_LIVE
