"""
MoodTrack Backend — Identifier & Timestamp Primitives
=======================================================

Identifier:  `uuid.UUID`, assigned by the persistence layer on insert and
             exchanged with clients as its 32-character lowercase hex form.
             `parse_identifier` is the way back in: token claims carry the
             account id in that form and are parsed through it.
Timestamp:   timezone-aware UTC `datetime` truncated to milliseconds. Stored
             through `UTCDateTime`, which always hands back aware UTC values
             regardless of the backend (SQLite drops tzinfo on its own).
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

from moodtrack.exceptions import InvalidIdentifierError


def new_identifier() -> uuid.UUID:
    return uuid.uuid4()


def identifier_to_hex(value: uuid.UUID) -> str:
    return value.hex


def parse_identifier(value: str) -> uuid.UUID:
    """
    Parse the canonical hex form of an identifier.

    Raises:
        InvalidIdentifierError: `value` is not 32 hex characters.
    """
    if not isinstance(value, str) or len(value) != 32:
        raise InvalidIdentifierError(str(value))
    try:
        return uuid.UUID(hex=value)
    except ValueError as exc:
        raise InvalidIdentifierError(value) from exc


def truncate_to_millis(value: datetime) -> datetime:
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def utc_now() -> datetime:
    """Current instant, UTC, millisecond precision."""
    return truncate_to_millis(datetime.now(timezone.utc))


def ensure_utc(value: datetime) -> datetime:
    """Naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_rfc3339(value: datetime) -> str:
    """Serialize an instant as RFC3339, e.g. ``2025-03-01T08:30:00.125000+00:00``."""
    return ensure_utc(value).isoformat()


class UTCDateTime(TypeDecorator):
    """
    DateTime column that normalises to UTC on the way in and out.

    Bind: aware values are converted to UTC; naive values are assumed UTC.
    Result: always an aware UTC datetime.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        return ensure_utc(value)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        return ensure_utc(value)
