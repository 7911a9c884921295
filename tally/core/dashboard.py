"""Dashboard state and the periodic refresh cycle.

Two writers touch the displayed state: the RefreshWorker thread (full
re-fetch every refresh_interval) and the signup listener thread (live count
pushes). Both swap whole DashboardState values under CounterStore's lock, so
readers always see a consistent snapshot and last-finisher-wins applies.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from tally.core.constants import BUCKET_TARGET_POINTS
from tally.core.pager import PageStrategy, SignupPager, probe_strategy
from tally.core.resample import chart_points, resample
from tally.core.series import EMPTY_VIEWS, SeriesViews, TimeRange, build_views, filter_range
from tally.core.trends import Stats, compute_stats

if TYPE_CHECKING:
    from tally.config import CounterConfig
    from tally.storage.database import Database

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DashboardState:
    views: SeriesViews = EMPTY_VIEWS
    stats: Stats | None = None
    current_count: int | float = 0
    last_updated_at: datetime | None = None
    loading: bool = True
    refreshed_at: datetime | None = None


class CounterStore:
    """Holds the current DashboardState. Every write replaces the whole value."""

    def __init__(self, state: DashboardState | None = None):
        self._lock = threading.Lock()
        self._state = state or DashboardState()

    def snapshot(self) -> DashboardState:
        with self._lock:
            return self._state

    def replace_all(self, state: DashboardState) -> None:
        with self._lock:
            self._state = state

    def set_live_count(self, count: int | float, at: datetime) -> None:
        with self._lock:
            self._state = replace(self._state, current_count=count, last_updated_at=at)

    def mark_loaded(self) -> None:
        """Clear the loading flag, keeping whatever data is already displayed."""
        with self._lock:
            if self._state.loading:
                self._state = replace(self._state, loading=False)


def chart_for(
    state: DashboardState,
    time_range: TimeRange,
    now: datetime,
    target_points: int = BUCKET_TARGET_POINTS,
) -> dict:
    """Chart payload for the selected range, built from the hourly view."""
    filtered = filter_range(state.views.hourly, time_range, now)
    buckets = resample(filtered, target_points)
    return {
        "range": TimeRange(time_range).value,
        "records": len(filtered),
        "points": chart_points(buckets),
    }


class RefreshWorker:
    """Background thread that re-fetches the full series and recomputes stats.

    Same lifecycle as the other background workers: daemon thread, stop
    event, one immediate cycle on start. refresh_once() is not reentrant; an
    overlapping call is skipped rather than queued.
    """

    def __init__(
        self,
        db: Database,
        store: CounterStore,
        config: CounterConfig,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.db = db
        self.store = store
        self.config = config
        self._clock = clock
        self._strategy: PageStrategy | None = None
        self._in_flight = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def strategy(self) -> PageStrategy:
        """Pagination strategy, probed on first use and fixed for the session."""
        if self._strategy is None:
            self._strategy = probe_strategy(self.db, self.config.table)
        return self._strategy

    def _pager(self) -> SignupPager:
        return SignupPager(
            self.db,
            self.strategy,
            table=self.config.table,
            page_size=self.config.page_size,
            max_pages=self.config.max_pages,
        )

    def refresh_once(self) -> bool:
        """Run one fetch/recompute cycle. Returns True if new state was published."""
        if not self._in_flight.acquire(blocking=False):
            logger.info("RefreshWorker: refresh already in flight, skipping")
            return False
        try:
            raw = self._pager().fetch_all_samples()
            if not raw:
                logger.warning("RefreshWorker: no rows returned after pagination")
                self.store.mark_loaded()
                return False

            now = self._clock()
            views = build_views(raw)
            latest = views.latest
            stats = compute_stats(views.raw, latest, self.config.target, now)
            self.store.replace_all(DashboardState(
                views=views,
                stats=stats,
                current_count=latest.count,
                last_updated_at=latest.timestamp,
                loading=False,
                refreshed_at=now,
            ))
            logger.debug(
                "RefreshWorker: %d raw rows, %d hourly points, count=%d",
                len(views.raw), len(views.hourly), latest.count,
            )
            return True
        except Exception:
            logger.warning("RefreshWorker: refresh failed, keeping previous state", exc_info=True)
            self.store.mark_loaded()
            return False
        finally:
            self._in_flight.release()

    def start(self) -> None:
        """Start the background refresh thread."""
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop, daemon=True, name="RefreshWorker",
        )
        self._thread.start()
        logger.info("RefreshWorker: started (interval=%.0fs)", self.config.refresh_interval)

    def stop(self) -> None:
        """Signal stop and wait for the current cycle to finish."""
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout=10)
        if self._thread.is_alive():
            logger.warning("RefreshWorker: thread did not stop within timeout")
        else:
            logger.info("RefreshWorker: stopped")
        self._thread = None

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            self.refresh_once()
            self._stop_event.wait(timeout=self.config.refresh_interval)
