"""Configuration management. All settings from environment variables with sensible defaults."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from tally.core.constants import (
    BUCKET_TARGET_POINTS,
    LAUNCH_AT,
    MAX_PAGES,
    NOTIFY_CHANNEL,
    PAGE_SIZE,
    REFRESH_INTERVAL,
    SIGNUPS_TABLE,
    TARGET_SIGNUPS,
)

logger = logging.getLogger(__name__)

_BOOL_TRUTHY = ("true", "1", "yes")
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


@dataclass(frozen=True)
class DatabaseConfig:
    host: str = "localhost"
    port: int = 5432
    name: str = "tally"
    user: str = "tally"
    password: str = "tally-dev-password"
    url: str = ""  # full connection URL, wins over the discrete fields when set

    @property
    def dsn(self) -> str:
        if self.url:
            return self.url
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"


@dataclass(frozen=True)
class CounterConfig:
    table: str = SIGNUPS_TABLE
    target: int = TARGET_SIGNUPS
    launch_at: datetime = LAUNCH_AT
    page_size: int = PAGE_SIZE
    max_pages: int = MAX_PAGES
    refresh_interval: float = REFRESH_INTERVAL  # seconds
    notify_channel: str = NOTIFY_CHANNEL
    listen_enabled: bool = True
    bucket_target_points: int = BUCKET_TARGET_POINTS


@dataclass(frozen=True)
class Config:
    db: DatabaseConfig = field(default_factory=DatabaseConfig)
    counter: CounterConfig = field(default_factory=CounterConfig)
    http_host: str = "0.0.0.0"
    http_port: int = 8000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


def _parse_cors_origins(raw: str) -> list[str]:
    """Parse comma-separated CORS origins. '*' means allow all."""
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


def _parse_datetime(raw: str) -> datetime:
    """Parse an ISO-8601 instant. Naive values are taken as UTC."""
    value = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _validate_identifier(name: str, what: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"{what} must be a plain SQL identifier, got {name!r}")
    return name


def _positive_int(raw: str, what: str) -> int:
    value = int(raw)
    if value <= 0:
        raise ValueError(f"{what} must be positive, got {value}")
    return value


def load_config() -> Config:
    """Load configuration from environment variables.

    Raises ValueError on malformed values so a bad deployment fails at startup
    instead of on the first refresh cycle.
    """
    launch_raw = os.getenv("TALLY_LAUNCH_AT")

    counter = CounterConfig(
        table=_validate_identifier(os.getenv("TALLY_TABLE", SIGNUPS_TABLE), "TALLY_TABLE"),
        target=int(os.getenv("TALLY_TARGET", str(TARGET_SIGNUPS))),
        launch_at=_parse_datetime(launch_raw) if launch_raw else LAUNCH_AT,
        page_size=_positive_int(os.getenv("TALLY_PAGE_SIZE", str(PAGE_SIZE)), "TALLY_PAGE_SIZE"),
        max_pages=_positive_int(os.getenv("TALLY_MAX_PAGES", str(MAX_PAGES)), "TALLY_MAX_PAGES"),
        refresh_interval=float(os.getenv("TALLY_REFRESH_INTERVAL", str(REFRESH_INTERVAL))),
        notify_channel=_validate_identifier(
            os.getenv("TALLY_NOTIFY_CHANNEL", NOTIFY_CHANNEL), "TALLY_NOTIFY_CHANNEL",
        ),
        listen_enabled=os.getenv("TALLY_LISTEN_ENABLED", "true").lower() in _BOOL_TRUTHY,
        bucket_target_points=_positive_int(
            os.getenv("TALLY_BUCKET_TARGET_POINTS", str(BUCKET_TARGET_POINTS)),
            "TALLY_BUCKET_TARGET_POINTS",
        ),
    )
    if counter.refresh_interval <= 0:
        raise ValueError(f"TALLY_REFRESH_INTERVAL must be positive, got {counter.refresh_interval}")

    config = Config(
        db=DatabaseConfig(
            host=os.getenv("TALLY_DB_HOST", "localhost"),
            port=int(os.getenv("TALLY_DB_PORT", "5432")),
            name=os.getenv("TALLY_DB_NAME", "tally"),
            user=os.getenv("TALLY_DB_USER", "tally"),
            password=os.getenv("TALLY_DB_PASS", "tally-dev-password"),
            url=os.getenv("TALLY_DB_URL", ""),
        ),
        counter=counter,
        http_host=os.getenv("TALLY_HTTP_HOST", "0.0.0.0"),
        http_port=int(os.getenv("TALLY_HTTP_PORT", "8000")),
        cors_origins=_parse_cors_origins(os.getenv("TALLY_CORS_ORIGINS", "*")),
    )
    logger.debug(
        "Config loaded: table=%s target=%d page_size=%d refresh=%.0fs",
        counter.table, counter.target, counter.page_size, counter.refresh_interval,
    )
    return config
