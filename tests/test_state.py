"""
Unit tests for the feed state store.

Tests outcome application, error prefixing, latency tracking, per-feed
status and the aggregate LIVE / PARTIAL / STALE / ERROR / PAUSED
classification.
"""

import math
import os
import sys
import unittest

_project_root = os.path.normpath(os.path.join(os.path.dirname(__file__), os.pardir))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from goldbasis.models import FetchOutcome, NormalizedQuote  # noqa: E402
from goldbasis.state import FeedStateStore                  # noqa: E402

T0 = 1_700_000_000_000
STALE_MS = 30_000
FEEDS = ["pyth", "binance_futures", "binance_spot", "hyperliquid", "meteora"]


def _ok(price: float, elapsed_ms: int = 120, **extra) -> FetchOutcome:
    return FetchOutcome(ok=True, value=NormalizedQuote(price=price, extra=extra), elapsed_ms=elapsed_ms)


def _fail(error: str = "HTTP 500", elapsed_ms: int = 80) -> FetchOutcome:
    return FetchOutcome(ok=False, value=None, elapsed_ms=elapsed_ms, error=error)


def _store_all_ok(tick_ms: int = T0) -> FeedStateStore:
    store = FeedStateStore(FEEDS, reference="pyth")
    for name in FEEDS:
        store.apply_outcome(name, _ok(2650.0 if name != "binance_spot" else 0.9998), tick_ms)
    return store


class TestApplyOutcome(unittest.TestCase):
    """Test 1 -- success replaces, failure keeps."""

    def test_success_sets_value_and_time(self):
        store = FeedStateStore(FEEDS, reference="pyth")
        store.apply_outcome("binance_futures", _ok(2651.0, last_funding_rate=0.0001), T0)
        st = store.get("binance_futures")
        self.assertEqual(st.price, 2651.0)
        self.assertEqual(st.extra["last_funding_rate"], 0.0001)
        self.assertEqual(st.last_success_ms, T0)
        self.assertEqual(st.last_latency_ms, 120)
        self.assertEqual(st.last_error, "")

    def test_failure_keeps_previous_value(self):
        store = FeedStateStore(FEEDS, reference="pyth")
        store.apply_outcome("hyperliquid", _ok(2652.0), T0)
        store.apply_outcome("hyperliquid", _fail("allMids error", elapsed_ms=45), T0 + 5000)
        st = store.get("hyperliquid")
        self.assertEqual(st.price, 2652.0)
        self.assertEqual(st.last_success_ms, T0)
        self.assertEqual(st.last_latency_ms, 45)
        self.assertEqual(st.last_error, "HL: allMids error")

    def test_success_clears_error(self):
        store = FeedStateStore(FEEDS, reference="pyth")
        store.apply_outcome("meteora", _fail(), T0)
        store.apply_outcome("meteora", _ok(2652.5), T0 + 5000)
        self.assertEqual(store.get("meteora").last_error, "")

    def test_failure_before_any_success(self):
        store = FeedStateStore(FEEDS, reference="pyth")
        store.apply_outcome("pyth", _fail(), T0)
        st = store.get("pyth")
        self.assertIsNone(st.price)
        self.assertIsNone(st.last_success_ms)
        self.assertEqual(st.last_error, "PYTH: HTTP 500")

    def test_non_finite_price_rejected(self):
        """A NaN that slips through an adapter never overwrites a good mid."""
        store = FeedStateStore(FEEDS, reference="pyth")
        store.apply_outcome("binance_spot", _ok(1.0001), T0)
        store.apply_outcome("binance_spot", _ok(float("nan")), T0 + 5000)
        st = store.get("binance_spot")
        self.assertEqual(st.price, 1.0001)
        self.assertEqual(st.last_success_ms, T0)
        self.assertTrue(st.last_error.startswith("BINANCE SPOT: rejected price"))

    def test_non_positive_venue_price_rejected(self):
        store = FeedStateStore(FEEDS, reference="pyth")
        store.apply_outcome("meteora", _ok(2652.5), T0)
        store.apply_outcome("meteora", _ok(0.0), T0 + 5000)
        self.assertEqual(store.get("meteora").price, 2652.5)

    def test_get_returns_copy(self):
        store = FeedStateStore(FEEDS, reference="pyth")
        store.apply_outcome("pyth", _ok(2650.12, publish_time_ms=T0), T0)
        copy = store.get("pyth")
        copy.price = math.nan
        copy.extra["publish_time_ms"] = 0
        self.assertEqual(store.get("pyth").price, 2650.12)
        self.assertEqual(store.get("pyth").extra["publish_time_ms"], T0)

    def test_unknown_reference_rejected(self):
        with self.assertRaises(ValueError):
            FeedStateStore(["binance_futures"], reference="pyth")


class TestErrorText(unittest.TestCase):
    """Test 2 -- one line of feed-prefixed errors."""

    def test_errors_joined(self):
        store = _store_all_ok()
        store.apply_outcome("hyperliquid", _fail("perpDexs error"), T0 + 5000)
        store.apply_outcome("meteora", _fail("current_price missing"), T0 + 5000)
        self.assertEqual(
            store.error_text(),
            "HL: perpDexs error • METEORA: current_price missing",
        )

    def test_no_errors(self):
        self.assertEqual(_store_all_ok().error_text(), "")


class TestFeedStatus(unittest.TestCase):
    """Test 3 -- OK / STALE / ERR per feed."""

    def test_fresh_is_ok(self):
        store = _store_all_ok()
        self.assertEqual(store.feed_status("meteora", T0 + 1000, STALE_MS), "OK")

    def test_aged_is_stale(self):
        store = _store_all_ok()
        self.assertEqual(store.feed_status("meteora", T0 + STALE_MS + 1, STALE_MS), "STALE")

    def test_threshold_is_inclusive(self):
        store = _store_all_ok()
        self.assertEqual(store.feed_status("meteora", T0 + STALE_MS, STALE_MS), "OK")

    def test_error_is_err(self):
        store = _store_all_ok()
        store.apply_outcome("meteora", _fail(), T0 + 1000)
        self.assertEqual(store.feed_status("meteora", T0 + 1000, STALE_MS), "ERR")

    def test_never_polled_is_err(self):
        store = FeedStateStore(FEEDS, reference="pyth")
        self.assertEqual(store.feed_status("pyth", T0, STALE_MS), "ERR")


class TestClassify(unittest.TestCase):
    """Test 4 -- aggregate status."""

    def test_live(self):
        store = _store_all_ok()
        self.assertEqual(store.classify(T0 + 1000, STALE_MS), "LIVE")

    def test_partial_when_two_venues_fail(self):
        store = _store_all_ok()
        store.apply_outcome("hyperliquid", _fail(), T0 + 5000)
        store.apply_outcome("meteora", _fail(), T0 + 5000)
        self.assertEqual(store.classify(T0 + 5000, STALE_MS), "PARTIAL")
        # previous good mids survive
        self.assertEqual(store.get("hyperliquid").price, 2650.0)
        self.assertEqual(store.get("meteora").price, 2650.0)

    def test_partial_when_venue_stale(self):
        store = _store_all_ok(T0)
        store.apply_outcome("pyth", _ok(2651.0), T0 + 40000)
        self.assertEqual(store.classify(T0 + 40000, STALE_MS), "PARTIAL")

    def test_stale_oracle(self):
        store = _store_all_ok(T0)
        self.assertEqual(store.classify(T0 + STALE_MS + 1, STALE_MS), "STALE")

    def test_error_when_oracle_never_succeeded(self):
        store = FeedStateStore(FEEDS, reference="pyth")
        for name in FEEDS[1:]:
            store.apply_outcome(name, _ok(2650.0), T0)
        store.apply_outcome("pyth", _fail(), T0)
        self.assertEqual(store.classify(T0, STALE_MS), "ERROR")

    def test_oracle_failure_with_fresh_value_is_not_error(self):
        """Oracle freshness is judged by age; a recent value keeps it fresh."""
        store = _store_all_ok(T0)
        store.apply_outcome("pyth", _fail(), T0 + 5000)
        self.assertEqual(store.classify(T0 + 5000, STALE_MS), "LIVE")

    def test_paused_overrides(self):
        store = FeedStateStore(FEEDS, reference="pyth")
        self.assertEqual(store.classify(T0, STALE_MS, paused=True), "PAUSED")

    def test_venues_excludes_reference(self):
        store = FeedStateStore(FEEDS, reference="pyth")
        self.assertEqual(store.venues(), FEEDS[1:])


if __name__ == "__main__":
    unittest.main()
