"""Display helpers: labels and derived figures shown next to the counter."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from tally.core.constants import COMPLETED_LABEL, ETA_FORMAT, UNKNOWN_LABEL

if TYPE_CHECKING:
    from tally.core.trends import Stats

MINUTES_PER_DAY = 1440


def last_updated_label(updated_at: datetime, now: datetime) -> str:
    """Relative age of the latest data point, e.g. '< 1 min ago' or '12 min ago'."""
    minutes = max(0, int((now - updated_at).total_seconds() // 60))
    if minutes >= MINUTES_PER_DAY:
        days = minutes // MINUTES_PER_DAY
        unit = "day" if days == 1 else "days"
        return f"Last updated: {days} {unit} ago"
    if minutes == 0:
        return "< 1 min ago"
    return f"{minutes} min ago"


def progress_percent(count: float, target: int) -> float:
    return (count / target) * 100 if target > 0 else 0.0


def remaining_signups(count: float, target: int) -> float:
    return max(0, target - count)


def completion_label(stats: Stats | None, count: float, target: int) -> str:
    """'Completed' once the goal is met, the ETA when one exists, '-' otherwise."""
    if count >= target:
        return COMPLETED_LABEL
    if stats is not None and stats.estimated_completion is not None:
        return stats.estimated_completion.strftime(ETA_FORMAT)
    return UNKNOWN_LABEL
