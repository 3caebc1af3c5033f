"""Miscellaneous helper functions."""

from __future__ import annotations

import base64
import binascii
import datetime as dt
import re
from typing import Optional, Tuple

# Signed 32-bit bounds; readings must lie strictly between them.
INT32_MIN = -2147483648
INT32_MAX = 2147483647

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[^;,]+);base64,(?P<payload>.*)$", re.DOTALL)


def parse_iso_datetime(value: str | None) -> Optional[dt.datetime]:
    """Parse an ISO8601 datetime string into a :class:`datetime` object.

    The standard ``datetime.fromisoformat`` helper does not accept a lowercase
    ``z`` as the UTC designator. Some clients send timestamps that end with
    ``z`` instead of the canonical ``Z``. This function normalises that case
    and returns ``None`` if the value cannot be parsed or carries no time
    part (a bare date is not a reading timestamp).
    """
    if not value:
        return None
    if "T" not in value and "t" not in value and " " not in value.strip():
        return None
    try:
        if value.endswith("z"):
            value = value[:-1] + "Z"
        return dt.datetime.fromisoformat(value)
    except ValueError:
        return None


def billing_month(value: dt.datetime) -> str:
    """Return the ``YYYY-MM`` calendar month of ``value``.

    The month is taken from the timestamp as written; no timezone
    conversion happens, so ``2024-03-31T23:30:00-03:00`` belongs to March.
    """
    return f"{value.year:04d}-{value.month:02d}"


def is_int32_open(value: int) -> bool:
    """True when ``value`` lies strictly inside the signed 32-bit range."""
    return INT32_MIN < value < INT32_MAX


def split_data_uri(value: str) -> Optional[Tuple[str, str]]:
    """Split ``data:<mime>;base64,<payload>`` into ``(mime, payload)``.

    Returns ``None`` when ``value`` is not a base64 data URI.  The mime type
    is lower-cased; the payload is returned untouched.
    """
    match = _DATA_URI_RE.match(value.strip())
    if not match:
        return None
    return match.group("mime").strip().lower(), match.group("payload")


def decode_base64(payload: str) -> Optional[bytes]:
    """Strictly decode a base64 payload; ``None`` on any malformed input."""
    compact = "".join(payload.split())
    if not compact:
        return None
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError):
        return None


def utc_offset_minutes(value: dt.datetime) -> Optional[int]:
    """Offset of ``value`` from UTC in whole minutes, or ``None`` when naive."""
    offset = value.utcoffset()
    if offset is None:
        return None
    return int(offset.total_seconds() // 60)


def to_storage_datetime(value: dt.datetime) -> dt.datetime:
    """Aware timestamps are stored as UTC; naive ones as written."""
    if value.tzinfo is None:
        return value
    return value.astimezone(dt.timezone.utc)


def restore_client_datetime(stored: dt.datetime, offset_minutes: Optional[int]) -> dt.datetime:
    """Rebuild the timestamp the client sent from its stored UTC value and offset.

    SQLite hands ``DateTime(timezone=True)`` columns back naive while
    PostgreSQL returns them in the session timezone; both are handled.
    """
    if offset_minutes is None:
        return stored.replace(tzinfo=None)
    if stored.tzinfo is None:
        stored = stored.replace(tzinfo=dt.timezone.utc)
    return stored.astimezone(dt.timezone(dt.timedelta(minutes=offset_minutes)))
