"""Signup listener: Postgres LISTEN on the row-change channel, fed into LiveUpdater.

The backing table's trigger publishes each inserted/updated/deleted row as
a JSON NOTIFY payload shaped ``{"new": {...}, "old": {...}}``. LISTEN needs
a dedicated autocommit connection, so this thread opens its own instead of
borrowing from the pool.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

import psycopg
from psycopg import sql

from tally.core.constants import LISTEN_MAX_BACKOFF, LISTEN_POLL_TIMEOUT

if TYPE_CHECKING:
    from tally.core.live import LiveUpdater

logger = logging.getLogger(__name__)


class SignupListener:
    """Daemon thread relaying NOTIFY payloads to the live updater.

    Connection errors back off (x3, capped) and reconnect. The poll timeout
    bounds how long stop() waits between notifications.
    """

    RETRY_INTERVAL = 5.0

    def __init__(self, dsn: str, channel: str, updater: LiveUpdater):
        self.dsn = dsn
        self.channel = channel
        self.updater = updater
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.received = 0
        self.applied = 0

    def start(self) -> None:
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop, daemon=True, name="SignupListener",
        )
        self._thread.start()
        logger.info("SignupListener: started (channel=%s)", self.channel)

    def stop(self) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout=10)
        if self._thread.is_alive():
            logger.warning("SignupListener: thread did not stop within timeout")
        else:
            logger.info("SignupListener: stopped")
        self._thread = None

    def handle(self, payload: str) -> None:
        self.received += 1
        if self.updater.apply(payload):
            self.applied += 1

    def _run_loop(self) -> None:
        retry = self.RETRY_INTERVAL
        while not self._stop_event.is_set():
            try:
                with psycopg.connect(self.dsn, autocommit=True) as conn:
                    conn.execute(sql.SQL("LISTEN {}").format(sql.Identifier(self.channel)))
                    retry = self.RETRY_INTERVAL
                    self._listen(conn)
            except Exception:
                if self._stop_event.is_set():
                    break
                logger.warning(
                    "SignupListener: connection error, retrying in %.0fs", retry, exc_info=True,
                )
                self._stop_event.wait(timeout=retry)
                retry = min(retry * 3, LISTEN_MAX_BACKOFF)

    def _listen(self, conn: psycopg.Connection) -> None:
        """Relay notifications until stop is requested."""
        while not self._stop_event.is_set():
            for notify in conn.notifies(timeout=LISTEN_POLL_TIMEOUT):
                self.handle(notify.payload)
                if self._stop_event.is_set():
                    return
