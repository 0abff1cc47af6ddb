"""
Rolling Basis Series

Append-only buffer of BasisSample with time-based eviction from the front.
"""

from collections import deque
from typing import Deque, List, Optional, Tuple

from .models import BasisSample


class RollingSeries:
    """
    Chronological buffer of basis samples over a trailing window.

    Samples are expected in non-decreasing time order. Overlapping ticks can
    complete out of order; prune() still drops every sample outside the
    window, not only the leading ones.
    """

    def __init__(self, window_ms: int):
        if window_ms < 0:
            raise ValueError(f"window_ms must be >= 0, got {window_ms}")
        self.window_ms = window_ms
        self._samples: Deque[BasisSample] = deque()
        self._ordered = True  # False once an out-of-order sample was appended

    def __len__(self) -> int:
        return len(self._samples)

    def append(self, sample: BasisSample):
        """Add a sample at the end."""
        if self._samples and sample.t_ms < self._samples[-1].t_ms:
            self._ordered = False
        self._samples.append(sample)

    def prune(self, now_ms: int) -> int:
        """
        Drop samples with t < now - window. Returns the number removed.
        """
        cutoff = now_ms - self.window_ms
        before = len(self._samples)

        while self._samples and self._samples[0].t_ms < cutoff:
            self._samples.popleft()

        if not self._ordered:
            kept = [s for s in self._samples if s.t_ms >= cutoff]
            self._samples = deque(kept)
            self._ordered = all(a.t_ms <= b.t_ms for a, b in zip(kept, kept[1:]))

        return before - len(self._samples)

    def set_window(self, window_ms: int, now_ms: int) -> int:
        """Change retention and prune immediately."""
        if window_ms < 0:
            raise ValueError(f"window_ms must be >= 0, got {window_ms}")
        self.window_ms = window_ms
        return self.prune(now_ms)

    def clear(self):
        self._samples.clear()
        self._ordered = True

    # =========================================================================
    # Read accessors
    # =========================================================================

    def samples(self) -> Tuple[BasisSample, ...]:
        return tuple(self._samples)

    def first(self) -> Optional[BasisSample]:
        return self._samples[0] if self._samples else None

    def last(self) -> Optional[BasisSample]:
        return self._samples[-1] if self._samples else None

    def timestamps(self) -> List[int]:
        return [s.t_ms for s in self._samples]

    def project(self, venue: str, unit: str = "usd") -> List[Optional[float]]:
        """Basis values of one venue in "usd" or "bps"."""
        return [s.value(venue, unit) for s in self._samples]

    def reference_prices(self) -> List[Optional[float]]:
        return [s.reference_price for s in self._samples]

    def funding_apy(self) -> List[Optional[float]]:
        return [s.funding_apy_pct for s in self._samples]
