"""Service container and factory. Centralizes component initialization and teardown."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tally.config import Config, load_config
from tally.core.dashboard import CounterStore, RefreshWorker
from tally.core.live import LiveUpdater
from tally.listeners.signup_listener import SignupListener
from tally.storage.database import Database

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Holds all initialized Tally components."""

    config: Config
    db: Database
    store: CounterStore
    refresh_worker: RefreshWorker
    live_updater: LiveUpdater
    signup_listener: SignupListener | None


def create_services(config: Config | None = None, db: Database | None = None) -> Services:
    """Build all Tally services from config.

    Args:
        config: Configuration to use. Loads from env if None.
        db: Database to use. Creates a new (unconnected) one if None.
    """
    if config is None:
        config = load_config()

    if db is None:
        db = Database(config.db)

    store = CounterStore()
    refresh_worker = RefreshWorker(db, store, config.counter)
    live_updater = LiveUpdater(store)

    signup_listener = None
    if config.counter.listen_enabled:
        signup_listener = SignupListener(db.dsn, config.counter.notify_channel, live_updater)
    else:
        logger.info("Live updates disabled; count refreshes every %.0fs only",
                    config.counter.refresh_interval)

    return Services(
        config=config,
        db=db,
        store=store,
        refresh_worker=refresh_worker,
        live_updater=live_updater,
        signup_listener=signup_listener,
    )


def start_workers(svc: Services) -> None:
    """Start the refresh cycle and the push subscription."""
    svc.refresh_worker.start()
    if svc.signup_listener:
        svc.signup_listener.start()
    logger.info("Tally started. Target: %d signups", svc.config.counter.target)


def stop_workers(svc: Services) -> None:
    """Release the subscription, the refresh timer and the connection pool."""
    if svc.signup_listener:
        svc.signup_listener.stop()
    svc.refresh_worker.stop()
    svc.db.close()
    logger.info("Tally stopped.")
