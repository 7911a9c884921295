"""Apply row-change notifications to the displayed count."""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from tally.core.dashboard import CounterStore

logger = logging.getLogger(__name__)


def parse_count(raw: Any) -> int | float | None:
    """Coerce a pushed count to a number. Returns None when it isn't one."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(value):
        return None
    return int(value) if value.is_integer() else value


def extract_record(payload: Any) -> dict | None:
    """The changed row from a {new?, old?} payload; old covers deletes."""
    if isinstance(payload, (str, bytes)):
        payload = json.loads(payload)
    if not isinstance(payload, dict):
        return None
    record = payload.get("new") or payload.get("old")
    return record if isinstance(record, dict) else None


class LiveUpdater:
    """Push-driven updates of the current count.

    Only the displayed count and its last-updated time change; the stored
    series is reconciled by the next scheduled refresh. apply() never raises
    into the notification loop.
    """

    def __init__(self, store: CounterStore, clock: Callable[[], datetime] | None = None):
        self.store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def apply(self, payload: Any) -> bool:
        """Returns True when the payload carried a usable count."""
        try:
            record = extract_record(payload)
            if record is None:
                return False
            count = parse_count(record.get("count"))
            if count is None:
                return False
            self.store.set_live_count(count, self._clock())
            return True
        except Exception:
            logger.debug("LiveUpdater: ignoring malformed payload %r", payload, exc_info=True)
            return False
