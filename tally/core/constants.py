"""Centralized constants for Tally core modules."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


# ============================================================
# Goal
# ============================================================

TARGET_SIGNUPS = 5000
LAUNCH_AT = datetime(2025, 10, 7, 0, 30, tzinfo=timezone.utc)


# ============================================================
# Ingestion
# ============================================================

SIGNUPS_TABLE = "signups"
PAGE_SIZE = 1000   # conservative, stays under backend response caps
MAX_PAGES = 100    # safety cap against backend pagination bugs
REFRESH_INTERVAL = 60.0  # seconds between full re-fetches

NOTIFY_CHANNEL = "signups_changes"
LISTEN_POLL_TIMEOUT = 1.0  # seconds; bounds how long stop() waits on the listener
LISTEN_MAX_BACKOFF = 300.0


# ============================================================
# Rates
# ============================================================

PEAK_WINDOW = timedelta(hours=1)
MIN_HOURS = 1e-6  # floor for the average-rate denominator
LAST_DAY = timedelta(hours=24)


# ============================================================
# Resampling
# ============================================================

BUCKET_TARGET_POINTS = 240

MINUTE = timedelta(minutes=1)
HOUR = timedelta(hours=1)
DAY = timedelta(days=1)
WEEK = timedelta(days=7)

# Display
COMPLETED_LABEL = "Completed"
UNKNOWN_LABEL = "-"
ETA_FORMAT = "%b %d, %Y %H:%M"
