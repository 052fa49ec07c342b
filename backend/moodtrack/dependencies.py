"""
MoodTrack Backend — Request Dependencies
==========================================

What:  Per-request guards injected with `Depends(...)`:
       - get_current_user: Authorization header → verified TokenUser
       - get_pagination:   offset/limit query strings → Pagination

Auth extraction is synchronous and never touches the store. A token stays
valid for its whole lifetime even if the account is renamed or locked in the
meantime; routes that need fresher data must re-read the account themselves.

Query parameters are taken as raw strings and parsed here so that bad input
produces our ValidationError (400 / 40002) rather than FastAPI's 422.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import Depends, Header, Query

from moodtrack.config import Settings, get_settings
from moodtrack.exceptions import InvalidTokenError, ValidationError
from moodtrack.services import token_service
from moodtrack.services.token_service import TokenUser

BEARER_SCHEME = "bearer"

# Largest value a signed 64-bit OFFSET column accepts (SQLite and PostgreSQL)
MAX_PAGE_OFFSET = 2**63 - 1


# ══════════════════════════════════════════════════════════════════════════
# Authentication
# ══════════════════════════════════════════════════════════════════════════


def extract_bearer_token(header_value: Optional[str]) -> str:
    """Return the token from a `Bearer <token>` header value."""
    if not header_value:
        raise InvalidTokenError(context={"reason": "missing_header"})
    parts = header_value.split(" ")
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME or not parts[1]:
        raise InvalidTokenError(context={"reason": "malformed_header"})
    return parts[1]


def identity_from_authorization(
    header_value: Optional[str],
    secret: str,
    now: Optional[datetime] = None,
) -> TokenUser:
    token = extract_bearer_token(header_value)
    return token_service.verify(token, secret, now=now).user


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    app_settings: Settings = Depends(get_settings),
) -> TokenUser:
    """FastAPI dependency for protected routes."""
    return identity_from_authorization(authorization, app_settings.auth_secret)


# ══════════════════════════════════════════════════════════════════════════
# Query parameter parsing
# ══════════════════════════════════════════════════════════════════════════


def parse_int_param(name: str, raw: Optional[str]) -> Optional[int]:
    """None for an absent parameter; ValidationError for non-integers."""
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        raise ValidationError(message=f"Query parameter '{name}' must be an integer", field=name)


@dataclass(frozen=True)
class Pagination:
    offset: int
    limit: int

    @classmethod
    def from_query(
        cls,
        offset: Optional[str],
        limit: Optional[str],
        default_limit: int,
        max_limit: int,
    ) -> "Pagination":
        """
        Defaults: offset 0, limit `default_limit`.
        Rejected (not clamped): offset outside [0, MAX_PAGE_OFFSET],
        limit < 1, limit > max_limit.
        """
        parsed_offset = parse_int_param("offset", offset)
        parsed_limit = parse_int_param("limit", limit)

        if parsed_offset is None:
            parsed_offset = 0
        if parsed_limit is None:
            parsed_limit = default_limit

        if parsed_offset < 0 or parsed_offset > MAX_PAGE_OFFSET:
            raise ValidationError(
                message=f"offset must be between 0 and {MAX_PAGE_OFFSET}",
                field="offset",
            )
        if parsed_limit < 1 or parsed_limit > max_limit:
            raise ValidationError(
                message=f"limit must be between 1 and {max_limit}",
                field="limit",
            )
        return cls(offset=parsed_offset, limit=parsed_limit)


def get_pagination(
    offset: Optional[str] = Query(default=None, description="Items to skip (default 0)"),
    limit: Optional[str] = Query(default=None, description="Page size"),
    app_settings: Settings = Depends(get_settings),
) -> Pagination:
    return Pagination.from_query(
        offset,
        limit,
        default_limit=app_settings.default_page_limit,
        max_limit=app_settings.max_page_limit,
    )
