"""
Unit tests for the rolling basis series.

Tests append order, window pruning, idempotence, window changes and the
unit projections used for charting.
"""

import os
import sys
import unittest

_project_root = os.path.normpath(os.path.join(os.path.dirname(__file__), os.pardir))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from goldbasis.models import BasisSample, VenueBasis  # noqa: E402
from goldbasis.series import RollingSeries           # noqa: E402

T0 = 1_700_000_000_000


def _sample(t_ms: int, usd: float = 1.0, bps: float = 4.0, ref: float = 2650.0) -> BasisSample:
    """Sample with a single binance_futures basis."""
    return BasisSample(
        t_ms=t_ms,
        reference_price=ref,
        per_venue={"binance_futures": VenueBasis(basis_usd=usd, basis_bps=bps)},
        funding_apy_pct=11.57,
    )


def _filled(times, window_ms: int = 60_000) -> RollingSeries:
    series = RollingSeries(window_ms)
    for t in times:
        series.append(_sample(t))
    return series


class TestAppend(unittest.TestCase):
    """Test 1 -- samples keep insertion order."""

    def test_append_preserves_order(self):
        series = _filled([T0, T0 + 5000, T0 + 10000])
        self.assertEqual(series.timestamps(), [T0, T0 + 5000, T0 + 10000])
        self.assertEqual(len(series), 3)
        self.assertEqual(series.first().t_ms, T0)
        self.assertEqual(series.last().t_ms, T0 + 10000)

    def test_empty_series(self):
        series = RollingSeries(1000)
        self.assertIsNone(series.first())
        self.assertIsNone(series.last())
        self.assertEqual(series.samples(), ())

    def test_negative_window_rejected(self):
        with self.assertRaises(ValueError):
            RollingSeries(-1)


class TestPrune(unittest.TestCase):
    """Test 2 -- eviction from the front."""

    def test_window_covering_span_keeps_everything(self):
        times = [T0 + i * 5000 for i in range(10)]
        series = _filled(times, window_ms=times[-1] - times[0])
        removed = series.prune(times[-1])
        self.assertEqual(removed, 0)
        self.assertEqual(len(series), 10)

    def test_zero_window_keeps_only_now(self):
        series = _filled([T0, T0 + 1000, T0 + 2000, T0 + 2000], window_ms=0)
        series.prune(T0 + 2000)
        self.assertEqual(series.timestamps(), [T0 + 2000, T0 + 2000])

    def test_prune_drops_old_samples(self):
        series = _filled([T0, T0 + 30000, T0 + 60000, T0 + 90000], window_ms=60000)
        removed = series.prune(T0 + 100000)
        self.assertEqual(removed, 2)
        self.assertEqual(series.timestamps(), [T0 + 60000, T0 + 90000])

    def test_prune_is_idempotent(self):
        series = _filled([T0 + i * 1000 for i in range(20)], window_ms=5000)
        series.prune(T0 + 19000)
        once = series.samples()
        series.prune(T0 + 19000)
        self.assertEqual(series.samples(), once)

    def test_invariant_after_prune(self):
        """Every remaining sample is within the window of now."""
        now = T0 + 50000
        series = _filled([T0 + i * 3000 for i in range(20)], window_ms=10000)
        series.prune(now)
        for s in series.samples():
            self.assertLessEqual(now - s.t_ms, 10000)

    def test_out_of_order_samples_are_pruned(self):
        """A late-completing older tick does not survive a prune."""
        series = RollingSeries(10000)
        series.append(_sample(T0 + 20000))
        series.append(_sample(T0 + 5000))  # overlapping tick landed late
        series.append(_sample(T0 + 21000))
        series.prune(T0 + 21000)
        self.assertEqual(series.timestamps(), [T0 + 20000, T0 + 21000])


class TestSetWindow(unittest.TestCase):
    """Test 3 -- window changes take effect immediately."""

    def test_shrinking_window_prunes_now(self):
        series = _filled([T0, T0 + 10000, T0 + 20000], window_ms=60000)
        removed = series.set_window(5000, now_ms=T0 + 20000)
        self.assertEqual(removed, 2)
        self.assertEqual(series.window_ms, 5000)
        self.assertEqual(series.timestamps(), [T0 + 20000])

    def test_growing_window_does_not_restore(self):
        """Eviction is monotonic: widening keeps what is left, nothing comes back."""
        series = _filled([T0, T0 + 10000, T0 + 20000], window_ms=60000)
        series.set_window(5000, now_ms=T0 + 20000)
        series.set_window(600000, now_ms=T0 + 20000)
        self.assertEqual(series.timestamps(), [T0 + 20000])

    def test_negative_window_rejected(self):
        with self.assertRaises(ValueError):
            RollingSeries(1000).set_window(-5, now_ms=T0)


class TestProjection(unittest.TestCase):
    """Test 4 -- per-unit views for charts."""

    def test_usd_and_bps(self):
        series = RollingSeries(60000)
        series.append(_sample(T0, usd=0.88, bps=3.32))
        series.append(_sample(T0 + 5000, usd=-0.5, bps=-1.9))
        self.assertEqual(series.project("binance_futures", "usd"), [0.88, -0.5])
        self.assertEqual(series.project("binance_futures", "bps"), [3.32, -1.9])

    def test_unknown_venue_projects_none(self):
        series = _filled([T0, T0 + 1000])
        self.assertEqual(series.project("meteora", "usd"), [None, None])

    def test_reference_and_funding(self):
        series = _filled([T0, T0 + 1000])
        self.assertEqual(series.reference_prices(), [2650.0, 2650.0])
        self.assertEqual(series.funding_apy(), [11.57, 11.57])

    def test_clear(self):
        series = _filled([T0, T0 + 1000])
        series.clear()
        self.assertEqual(len(series), 0)


if __name__ == "__main__":
    unittest.main()
