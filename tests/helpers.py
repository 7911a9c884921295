"""Shared test helpers for Tally tests."""

from datetime import datetime, timedelta, timezone

from tally.core.series import Sample

T0 = datetime(2025, 10, 7, 0, 30, tzinfo=timezone.utc)


def at(minutes: float = 0, hours: float = 0, days: float = 0) -> datetime:
    """T0 offset by the given amount."""
    return T0 + timedelta(minutes=minutes, hours=hours, days=days)


def series(*pairs) -> list[Sample]:
    """Build a series from (minutes_after_T0, count) pairs."""
    return [Sample(timestamp=at(minutes=m), count=c) for m, c in pairs]


def make_rows(n: int, *, start: datetime = T0, step: timedelta = timedelta(minutes=1)) -> list[dict]:
    """n signups rows with ids 1..n, one per step, count growing by one."""
    return [
        {"id": i + 1, "timestamp": start + i * step, "count": i}
        for i in range(n)
    ]


class FakeSignupsDB:
    """In-memory stand-in for Database that answers the pager's keyset queries."""

    def __init__(self, rows: list[dict], *, has_id: bool = True, fail_on_page: int | None = None):
        self.rows = rows
        self.has_id = has_id
        self.fail_on_page = fail_on_page
        self.page_calls: list[tuple[str, tuple]] = []
        self.rollbacks = 0
        self.releases = 0

    def execute(self, query: str, params=None):
        if query.startswith("SELECT id FROM"):
            if not self.has_id:
                raise RuntimeError('column "id" does not exist')
            return [{"id": r["id"]} for r in self.rows[:1]]

        self.page_calls.append((query, params))
        if self.fail_on_page is not None and len(self.page_calls) == self.fail_on_page:
            raise ConnectionError("page request failed")

        key = "id" if "ORDER BY id" in query else "timestamp"
        if "WHERE" in query:
            cursor, limit = params
        else:
            cursor, (limit,) = None, params
        ordered = sorted(self.rows, key=lambda r: r[key])
        if cursor is not None:
            ordered = [r for r in ordered if r[key] > cursor]

        columns = ("id", "timestamp", "count") if query.startswith("SELECT id,") else ("timestamp", "count")
        return [{c: r[c] for c in columns} for r in ordered[:limit]]

    def rollback(self):
        self.rollbacks += 1

    def release_if_held(self):
        self.releases += 1
