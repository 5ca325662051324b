"""Utility helpers for the Reclaimarr service."""

from __future__ import annotations

import base64
import re
import time
from datetime import datetime, timedelta, timezone

BYTES_PER_GIGABYTE = 1024 * 1024 * 1024
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36"
)

_DAY = timedelta(days=1)
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def normalize_timestamp(value: str) -> str:
    """Trim sub-microsecond precision so ISO timestamps parse cleanly.

    Jellyfin emits seven fractional digits (``2023-01-01T10:00:00.1234567Z``).
    """

    return _FRACTION_RE.sub(r"\1", value.strip())


def ensure_aware(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def elapsed_days(since: datetime, now: datetime) -> int:
    """Return whole days between two instants, rounded up.

    Exactly one day is ``1``; one day and one second is ``2``.
    """

    delta = abs(ensure_aware(now) - ensure_aware(since))
    return -(-delta // _DAY)


def format_gigabytes(size_bytes: int) -> str:
    """Render a byte count as gigabytes with two decimals."""

    return f"{size_bytes / BYTES_PER_GIGABYTE:.2f} GB"


def build_device_id(user_agent: str = DEFAULT_USER_AGENT, timestamp: int | None = None) -> str:
    """Return the device identifier Jellyfin expects in its auth header."""

    if timestamp is None:
        timestamp = int(time.time() * 1000)
    combined = f"{user_agent}|{timestamp}"
    return base64.b64encode(combined.encode("utf-8")).decode("ascii")
