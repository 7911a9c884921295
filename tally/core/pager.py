"""Ingestion: keyset-paginated reads of the signups table.

The pagination strategy is probed once per session and then passed to the
pager explicitly:

  - ID: ``WHERE id > last_id ORDER BY id`` when the table has an id column
  - TIMESTAMP: ``WHERE timestamp > last_ts ORDER BY timestamp`` otherwise

fetch_all_samples() fails soft: a page error is logged and the rows
collected so far are returned. Nothing here raises to the caller.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from tally.core.constants import MAX_PAGES, PAGE_SIZE, SIGNUPS_TABLE
from tally.core.series import Sample, sort_samples, to_utc

if TYPE_CHECKING:
    from tally.storage.database import Database

logger = logging.getLogger(__name__)


class PageStrategy(str, Enum):
    ID = "id"
    TIMESTAMP = "timestamp"


def probe_strategy(db: Database, table: str = SIGNUPS_TABLE) -> PageStrategy:
    """Pick id keyset pagination if the table has a selectable id column."""
    try:
        db.execute(f"SELECT id FROM {table} LIMIT 1")
    except Exception as e:
        logger.info("Pager: id probe failed (%s), using timestamp keyset", e)
        _safe_rollback(db)
        return PageStrategy.TIMESTAMP
    logger.info("Pager: id column present, using id keyset")
    return PageStrategy.ID


def _safe_rollback(db: Database) -> None:
    try:
        db.rollback()
    except Exception:
        logger.debug("Pager: rollback failed", exc_info=True)


def _row_to_sample(row: dict[str, Any]) -> Sample:
    count = row.get("count")
    return Sample(
        timestamp=to_utc(row["timestamp"]),
        count=int(count) if count is not None else 0,
        id=row.get("id"),
    )


class SignupPager:
    """Reads every row of the signups table, one keyset page at a time."""

    def __init__(
        self,
        db: Database,
        strategy: PageStrategy,
        *,
        table: str = SIGNUPS_TABLE,
        page_size: int = PAGE_SIZE,
        max_pages: int = MAX_PAGES,
    ):
        self.db = db
        self.strategy = strategy
        self.table = table
        self.page_size = page_size
        self.max_pages = max_pages

    def _page_query(self, has_cursor: bool) -> str:
        key = self.strategy.value
        columns = "id, timestamp, count" if self.strategy is PageStrategy.ID else "timestamp, count"
        where = f"WHERE {key} > %s " if has_cursor else ""
        return f"SELECT {columns} FROM {self.table} {where}ORDER BY {key} ASC LIMIT %s"

    def fetch_page(self, cursor: Any | None) -> list[dict]:
        """Fetch one page strictly after cursor (or from the start when None)."""
        if cursor is None:
            return self.db.execute(self._page_query(False), (self.page_size,))
        return self.db.execute(self._page_query(True), (cursor, self.page_size))

    def fetch_all_samples(self) -> list[Sample]:
        """Fetch the full ordered series. Returns a partial series on page errors."""
        samples: list[Sample] = []
        cursor: Any | None = None
        pages = 0

        while True:
            try:
                batch = self.fetch_page(cursor)
            except Exception:
                logger.error(
                    "Pager: error fetching page %d (%s keyset), keeping %d rows",
                    pages + 1, self.strategy.value, len(samples), exc_info=True,
                )
                _safe_rollback(self.db)
                break

            pages += 1
            if not batch:
                break

            for row in batch:
                try:
                    samples.append(_row_to_sample(row))
                except (KeyError, TypeError, ValueError):
                    logger.warning("Pager: skipping malformed row %r", row)

            cursor = batch[-1][self.strategy.value]
            if len(batch) < self.page_size:
                break
            if pages >= self.max_pages:
                logger.warning(
                    "Pager: safety break after %d pages (%d rows)", pages, len(samples),
                )
                break

        self.db.release_if_held()
        logger.debug("Pager: fetched %d rows in %d pages", len(samples), pages)
        return sort_samples(samples)
