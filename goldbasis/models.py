"""
GoldBasis Data Models

Dataclasses for normalized quotes, poll outcomes, feed state, basis samples
and the read-only snapshot handed to renderers.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class NormalizedQuote:
    """Venue response reduced to one price plus venue-specific fields."""
    price: float  # Oracle price, or venue mid
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FetchOutcome:
    """Uniform result of one timed adapter call."""
    ok: bool
    value: Optional[NormalizedQuote]
    elapsed_ms: int
    error: str = ""


@dataclass
class FeedState:
    """Last known state of a single feed."""
    feed: str
    label: str
    price: Optional[float] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    last_success_ms: Optional[int] = None
    last_latency_ms: Optional[int] = None
    last_error: str = ""

    def get_age_ms(self, now_ms: Optional[int] = None) -> Optional[int]:
        """Age of the last successful poll, or None if it never succeeded."""
        if self.last_success_ms is None:
            return None
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        return max(0, now_ms - self.last_success_ms)

    def is_fresh(self, now_ms: int, stale_ms: int) -> bool:
        """True if the last success is within the staleness threshold."""
        age = self.get_age_ms(now_ms)
        return age is not None and age <= stale_ms

    def copy(self) -> "FeedState":
        return FeedState(
            feed=self.feed,
            label=self.label,
            price=self.price,
            extra=dict(self.extra),
            last_success_ms=self.last_success_ms,
            last_latency_ms=self.last_latency_ms,
            last_error=self.last_error,
        )


@dataclass(frozen=True)
class VenueBasis:
    """Deviation of one venue from the reference price."""
    basis_usd: Optional[float] = None
    basis_bps: Optional[float] = None


@dataclass(frozen=True)
class BasisSample:
    """One point of the rolling basis series, appended once per tick."""
    t_ms: int
    reference_price: Optional[float]
    per_venue: Dict[str, VenueBasis]
    funding_apy_pct: Optional[float] = None

    def value(self, venue: str, unit: str = "usd") -> Optional[float]:
        """Basis of a venue in "usd" or "bps"; None if missing."""
        basis = self.per_venue.get(venue)
        if basis is None:
            return None
        return basis.basis_bps if unit == "bps" else basis.basis_usd


@dataclass(frozen=True)
class FeedView:
    """Read-only view of a feed for status and diagnostics panels."""
    feed: str
    label: str
    price: Optional[float]
    extra: Dict[str, Any]
    age_ms: Optional[int]
    latency_ms: Optional[int]
    error: str
    status: str  # OK / STALE / ERR


@dataclass(frozen=True)
class EngineSnapshot:
    """Everything a renderer needs, copied out of the engine."""
    taken_ms: int
    status: str  # LIVE / PARTIAL / STALE / ERROR / PAUSED
    paused: bool
    unit: str
    refresh_ms: int
    window_ms: int
    last_tick_ms: Optional[int]
    reference_price: Optional[float]
    publish_time_ms: Optional[int]
    feeds: Dict[str, FeedView]
    basis: Dict[str, VenueBasis]
    dislocations: Dict[str, VenueBasis]
    funding_rate: Optional[float]
    funding_apy_pct: Optional[float]
    next_funding_time_ms: Optional[int]
    implied_xau_usdc: Optional[float]
    header_change: Optional[float]
    header_change_pct: Optional[float]
    error_text: str
    samples: Tuple[BasisSample, ...]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "taken_ms": self.taken_ms,
            "status": self.status,
            "paused": self.paused,
            "unit": self.unit,
            "refresh_ms": self.refresh_ms,
            "window_ms": self.window_ms,
            "last_tick_ms": self.last_tick_ms,
            "reference_price": self.reference_price,
            "publish_time_ms": self.publish_time_ms,
            "feeds": {
                name: {
                    "price": view.price,
                    "age_ms": view.age_ms,
                    "latency_ms": view.latency_ms,
                    "error": view.error,
                    "status": view.status,
                }
                for name, view in self.feeds.items()
            },
            "basis": {
                name: {"usd": b.basis_usd, "bps": b.basis_bps}
                for name, b in self.basis.items()
            },
            "dislocations": {
                name: {"usd": d.basis_usd, "bps": d.basis_bps}
                for name, d in self.dislocations.items()
            },
            "funding_rate": self.funding_rate,
            "funding_apy_pct": self.funding_apy_pct,
            "next_funding_time_ms": self.next_funding_time_ms,
            "implied_xau_usdc": self.implied_xau_usdc,
            "header_change": self.header_change,
            "header_change_pct": self.header_change_pct,
            "error_text": self.error_text,
            "sample_count": len(self.samples),
        }
