"""
Basis Engine

Tick orchestrator for the gold basis terminal:
- Polls every feed concurrently on a fixed cadence
- Folds outcomes into the feed state store
- Appends one basis sample per tick to the rolling series
- Signals renderers and serves read-only snapshots
"""

import asyncio
import logging
import math
import time
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Set, Union

from .basis import (
    basis_bps,
    basis_usd,
    dislocation_bps,
    dislocation_usd,
    funding_apy_pct,
    implied_cross_rate,
    price_change,
)
from .config import (
    BASIS_VENUES,
    DISLOCATIONS,
    REFERENCE_FEED,
    UNITS,
    EngineConfig,
    FundingConfig,
)
from .models import (
    BasisSample,
    EngineSnapshot,
    FeedState,
    FeedView,
    FetchOutcome,
    VenueBasis,
)
from .series import RollingSeries
from .state import FeedStateStore
from .venues import VenueAdapter, default_adapters, timed

logger = logging.getLogger(__name__)

FUTURES_FEED = "binance_futures"
SPOT_FEED = "binance_spot"


class EngineState(Enum):
    IDLE = "IDLE"
    POLLING = "POLLING"
    RECONCILING = "RECONCILING"
    PAUSED = "PAUSED"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _finite_or_none(x) -> Optional[float]:
    if isinstance(x, (int, float)) and math.isfinite(x):
        return x
    return None


class BasisEngine:
    """
    Polls all feeds, reconciles their state and keeps the basis series.

    The engine is the only writer of feed state and of the series. Renderers
    subscribe to the render signal and read snapshot() / series(); both hand
    out copies.

    Ticks are independent units of work. The cadence launches a new tick
    every refresh_ms without waiting for the previous one, so a slow
    network round can overlap the next tick. Each tick writes with its own
    timestamp; samples land in completion order.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        adapters: Optional[Union[Dict[str, VenueAdapter], Iterable[VenueAdapter]]] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Args:
            config: Engine settings (default: EngineConfig())
            adapters: Feed adapters keyed by feed name, or an iterable of
                      adapters keyed by their .name. Must include the oracle.
                      Default: all five production adapters.
            clock: Wall clock in epoch milliseconds (default: time.time)
        """
        self.config = config or EngineConfig()

        if adapters is None:
            adapters = default_adapters(timeout=self.config.http_timeout_sec)
        elif not isinstance(adapters, dict):
            adapters = {a.name: a for a in adapters}
        self._adapters: Dict[str, VenueAdapter] = dict(adapters)

        if REFERENCE_FEED not in self._adapters:
            raise ValueError(f"adapters must include the reference feed {REFERENCE_FEED!r}")

        self._clock = clock or _now_ms
        self._store = FeedStateStore(self._adapters.keys(), REFERENCE_FEED)
        self._series = RollingSeries(self.config.window_ms)

        self.refresh_ms = self.config.refresh_ms
        self.stale_ms = self.config.stale_ms
        self.unit = self.config.unit
        self.paused = False
        self.last_tick_ms: Optional[int] = None
        self.tick_count = 0

        self._polling = 0
        self._reconciling = False
        self._cadence_task: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()
        self._subscribers: List[Callable[["BasisEngine"], None]] = []

    # =========================================================================
    # Tick
    # =========================================================================

    @property
    def state(self) -> EngineState:
        if self.paused:
            return EngineState.PAUSED
        if self._reconciling:
            return EngineState.RECONCILING
        if self._polling:
            return EngineState.POLLING
        return EngineState.IDLE

    @property
    def running(self) -> bool:
        return self._cadence_task is not None and not self._cadence_task.done()

    async def tick(self) -> Optional[BasisSample]:
        """
        Run one poll-and-reconcile cycle.

        Returns the appended sample, or None if the engine is paused.
        Adapter failures are recorded, never raised.
        """
        if self.paused:
            return None

        tick_ms = self._clock()
        if self.last_tick_ms is None or tick_ms > self.last_tick_ms:
            self.last_tick_ms = tick_ms

        names = list(self._adapters)
        self._polling += 1
        try:
            outcomes = await asyncio.gather(*(timed(self._adapters[n]) for n in names))
        finally:
            self._polling -= 1

        return self._reconcile(tick_ms, dict(zip(names, outcomes)))

    def _reconcile(self, tick_ms: int, outcomes: Dict[str, FetchOutcome]) -> BasisSample:
        # Single synchronous block: state -> sample -> append -> prune -> signal
        self._reconciling = True
        try:
            for name, outcome in outcomes.items():
                self._store.apply_outcome(name, outcome, tick_ms)

            sample = self._build_sample(tick_ms)
            self._series.append(sample)
            self._series.prune(self._clock())
            self.tick_count += 1

            failed = [n for n, o in outcomes.items() if not o.ok]
            logger.debug(
                f"tick {self.tick_count} @ {tick_ms}: "
                f"{len(outcomes) - len(failed)}/{len(outcomes)} ok"
                + (f", failed: {', '.join(failed)}" if failed else "")
            )

            self._emit()
            return sample
        finally:
            self._reconciling = False

    def _build_sample(self, tick_ms: int) -> BasisSample:
        ref = _finite_or_none(self._store.price(REFERENCE_FEED))
        per_venue = {
            venue: VenueBasis(
                basis_usd=basis_usd(self._store.price(venue), ref),
                basis_bps=basis_bps(self._store.price(venue), ref),
            )
            for venue in self._basis_venues()
        }
        return BasisSample(
            t_ms=tick_ms,
            reference_price=ref,
            per_venue=per_venue,
            funding_apy_pct=funding_apy_pct(self._funding_rate(), FundingConfig.PERIODS_PER_YEAR),
        )

    def _basis_venues(self) -> List[str]:
        return [v for v in BASIS_VENUES if v in self._store]

    def _funding_rate(self) -> Optional[float]:
        if FUTURES_FEED not in self._store:
            return None
        return self._store.get(FUTURES_FEED).extra.get("last_funding_rate")

    # =========================================================================
    # Scheduling
    # =========================================================================

    def start(self):
        """
        Fire an immediate tick and start the cadence.

        Must be called from inside a running event loop.
        """
        if self.running:
            return
        self._spawn_tick()
        self._cadence_task = asyncio.create_task(self._cadence_loop())
        logger.info(f"Engine started ({len(self._adapters)} feeds, every {self.refresh_ms}ms)")

    async def stop(self):
        """Stop the cadence and wait for in-flight ticks to settle."""
        await self._cancel_cadence()
        await self.wait_idle()
        logger.info("Engine stopped")

    async def wait_idle(self):
        """Wait until no tick is in flight."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    def refresh(self) -> asyncio.Task:
        """Manual refresh: launch a tick now, independent of the cadence."""
        return self._spawn_tick()

    def pause(self):
        """Suppress new ticks. In-flight ticks still complete."""
        if self.paused:
            return
        self.paused = True
        logger.info("Engine paused")
        self._emit()

    def resume(self) -> Optional[asyncio.Task]:
        """
        Leave the paused state: immediate tick, then the cadence restarts.

        Returns the immediate tick's task, or None if not paused.
        """
        if not self.paused:
            return None
        self.paused = False
        logger.info("Engine resumed")
        task = self._spawn_tick()
        if self._cadence_task is not None:
            self._restart_cadence()
        return task

    def set_refresh_ms(self, refresh_ms: int):
        """Change the poll cadence; takes effect from now."""
        if refresh_ms <= 0:
            raise ValueError(f"refresh_ms must be positive, got {refresh_ms}")
        self.refresh_ms = refresh_ms
        if self._cadence_task is not None:
            self._restart_cadence()

    def set_window_ms(self, window_ms: int):
        """Change series retention; shrinking prunes immediately."""
        removed = self._series.set_window(window_ms, self._clock())
        logger.debug(f"window set to {window_ms}ms, pruned {removed} samples")
        self._emit()

    def set_unit(self, unit: str):
        """Select the series projection unit ("usd" or "bps")."""
        if unit not in UNITS:
            raise ValueError(f"unit must be one of {UNITS}, got {unit!r}")
        self.unit = unit
        self._emit()

    def _spawn_tick(self) -> asyncio.Task:
        task = asyncio.create_task(self.tick())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _cadence_loop(self):
        while True:
            await asyncio.sleep(self.refresh_ms / 1000)
            if not self.paused:
                self._spawn_tick()

    def _restart_cadence(self):
        if self._cadence_task is not None:
            self._cadence_task.cancel()
        self._cadence_task = asyncio.create_task(self._cadence_loop())

    async def _cancel_cadence(self):
        task, self._cadence_task = self._cadence_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    # =========================================================================
    # Render signal
    # =========================================================================

    def subscribe(self, callback: Callable[["BasisEngine"], None]):
        """Call `callback(engine)` after every tick and control change."""
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[["BasisEngine"], None]):
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _emit(self):
        for callback in list(self._subscribers):
            try:
                callback(self)
            except Exception:
                logger.exception(f"Render callback {callback!r} failed")

    # =========================================================================
    # Read accessors
    # =========================================================================

    @property
    def window_ms(self) -> int:
        return self._series.window_ms

    def get_status(self, now_ms: Optional[int] = None) -> str:
        """LIVE, PARTIAL, STALE, ERROR or PAUSED."""
        now = self._clock() if now_ms is None else now_ms
        return self._store.classify(now, self.stale_ms, paused=self.paused)

    def get_feed(self, feed: str) -> FeedState:
        """Copy of one feed's state."""
        return self._store.get(feed)

    def get_feed_status(self, feed: str, now_ms: Optional[int] = None) -> str:
        now = self._clock() if now_ms is None else now_ms
        return self._store.feed_status(feed, now, self.stale_ms)

    def get_error_text(self) -> str:
        return self._store.error_text()

    def get_samples(self, now_ms: Optional[int] = None) -> tuple:
        """Pruned series samples, oldest first."""
        self._series.prune(self._clock() if now_ms is None else now_ms)
        return self._series.samples()

    def series(self, unit: Optional[str] = None, now_ms: Optional[int] = None) -> dict:
        """
        Pruned series projected for charting.

        Returns dict with t_ms, reference, funding_apy_pct, unit and
        venues (venue -> list of basis values in the unit).
        """
        unit = unit or self.unit
        if unit not in UNITS:
            raise ValueError(f"unit must be one of {UNITS}, got {unit!r}")
        self._series.prune(self._clock() if now_ms is None else now_ms)
        return {
            "unit": unit,
            "t_ms": self._series.timestamps(),
            "reference": self._series.reference_prices(),
            "funding_apy_pct": self._series.funding_apy(),
            "venues": {v: self._series.project(v, unit) for v in self._basis_venues()},
        }

    def snapshot(self, now_ms: Optional[int] = None) -> EngineSnapshot:
        """Consistent read-only copy of everything a renderer shows."""
        now = self._clock() if now_ms is None else now_ms
        self._series.prune(now)

        feeds: Dict[str, FeedView] = {}
        for name in self._store.feeds():
            st = self._store.get(name)
            feeds[name] = FeedView(
                feed=name,
                label=st.label,
                price=st.price,
                extra=st.extra,
                age_ms=st.get_age_ms(now),
                latency_ms=st.last_latency_ms,
                error=st.last_error,
                status=self._store.feed_status(name, now, self.stale_ms),
            )

        ref_state = self._store.get(REFERENCE_FEED)
        ref = _finite_or_none(ref_state.price)

        basis = {
            venue: VenueBasis(
                basis_usd=basis_usd(self._store.price(venue), ref),
                basis_bps=basis_bps(self._store.price(venue), ref),
            )
            for venue in self._basis_venues()
        }

        dislocations = {}
        for key, (venue_a, venue_b) in DISLOCATIONS.items():
            if venue_a in self._store and venue_b in self._store:
                a, b = self._store.price(venue_a), self._store.price(venue_b)
                dislocations[key] = VenueBasis(
                    basis_usd=dislocation_usd(a, b),
                    basis_bps=dislocation_bps(a, b),
                )

        futures_extra = self._store.get(FUTURES_FEED).extra if FUTURES_FEED in self._store else {}
        funding_rate = futures_extra.get("last_funding_rate")

        implied = None
        if FUTURES_FEED in self._store and SPOT_FEED in self._store:
            implied = implied_cross_rate(self._store.price(FUTURES_FEED), self._store.price(SPOT_FEED))

        samples = self._series.samples()
        change, change_pct = None, None
        if len(samples) >= 2:
            change, change_pct = price_change(samples[0].reference_price, samples[-1].reference_price)

        return EngineSnapshot(
            taken_ms=now,
            status=self._store.classify(now, self.stale_ms, paused=self.paused),
            paused=self.paused,
            unit=self.unit,
            refresh_ms=self.refresh_ms,
            window_ms=self.window_ms,
            last_tick_ms=self.last_tick_ms,
            reference_price=ref,
            publish_time_ms=ref_state.extra.get("publish_time_ms"),
            feeds=feeds,
            basis=basis,
            dislocations=dislocations,
            funding_rate=funding_rate,
            funding_apy_pct=funding_apy_pct(funding_rate, FundingConfig.PERIODS_PER_YEAR),
            next_funding_time_ms=futures_extra.get("next_funding_time_ms"),
            implied_xau_usdc=implied,
            header_change=change,
            header_change_pct=change_pct,
            error_text=self._store.error_text(),
            samples=samples,
        )
