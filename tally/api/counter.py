"""Counter endpoints — current count, trend stats, chart series."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from fastapi import APIRouter, Query

from tally.core.dashboard import chart_for
from tally.core.display import (
    completion_label,
    last_updated_label,
    progress_percent,
    remaining_signups,
)
from tally.core.series import TimeRange
from tally.core.services import Services


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def register_routes(router: APIRouter, svc: Services, clock: Callable[[], datetime] = _utcnow, **kw):
    store = svc.store
    counter = svc.config.counter

    @router.get("/counter")
    def api_counter():
        state = store.snapshot()
        count = state.current_count
        return {
            "count": count,
            "target": counter.target,
            "percent": progress_percent(count, counter.target),
            "remaining": remaining_signups(count, counter.target),
            "goal_reached": count >= counter.target,
            "last_updated": (
                last_updated_label(state.last_updated_at, clock())
                if state.last_updated_at else None
            ),
            "launch_at": counter.launch_at.isoformat(),
            "loading": state.loading,
        }

    @router.get("/stats")
    def api_stats():
        state = store.snapshot()
        return {
            "stats": state.stats.to_dict() if state.stats else None,
            "completion": completion_label(state.stats, state.current_count, counter.target),
            "loading": state.loading,
        }

    @router.get("/series")
    def api_series(
        time_range: str = Query("all", alias="range", pattern="^(all|7d|24h|1h)$"),
    ):
        state = store.snapshot()
        return {
            **chart_for(state, TimeRange(time_range), clock(), counter.bucket_target_points),
            "loading": state.loading,
        }
