"""
MoodTrack Backend — Token Service
===================================

What:  Issues and verifies HS256 JWTs carrying an identity snapshot.
How:   PyJWT for signing and signature checks; expiry is checked here against
       an injectable `now` so tests can pin the clock.

Claims layout:
    {
        "exp": <iat + 86400>,
        "iat": <unix seconds>,
        "user": {"id": "<hex>", "first_name": ..., "last_name": ..., "email": ...}
    }

Every verification failure (bad signature, expired, malformed, wrong claim
types, a user id that is not 32 hex characters) surfaces as the same
InvalidTokenError. The secret is always passed in by the caller.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

import jwt
from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError
from pydantic import field_serializer, field_validator

from moodtrack.exceptions import InvalidIdentifierError, InvalidTokenError, TokenCreationError
from moodtrack.models.types import parse_identifier

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_TTL_SECONDS = 24 * 60 * 60


class TokenUser(BaseModel):
    """Identity carried by a token and injected into protected handlers."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    first_name: str
    last_name: str
    email: str

    @field_validator("id", mode="before")
    @classmethod
    def parse_hex_id(cls, value):
        # Claims carry the 32-hex wire form; dashed UUID strings are refused
        if isinstance(value, str):
            try:
                return parse_identifier(value)
            except InvalidIdentifierError as exc:
                raise ValueError(exc.message) from exc
        return value

    @field_serializer("id")
    def serialize_id(self, value: uuid.UUID) -> str:
        return value.hex

    @classmethod
    def from_user(cls, user) -> "TokenUser":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
        )


class Claims(BaseModel):
    model_config = ConfigDict(frozen=True)

    exp: int
    iat: int
    user: TokenUser

    @classmethod
    def new(cls, user: TokenUser, now: Optional[datetime] = None) -> "Claims":
        issued_at = int((now or datetime.now(timezone.utc)).timestamp())
        return cls(exp=issued_at + TOKEN_TTL_SECONDS, iat=issued_at, user=user)


def issue(user: TokenUser, secret: str, now: Optional[datetime] = None) -> str:
    """
    Sign a token for `user`.

    Raises:
        TokenCreationError: PyJWT could not encode/sign the payload.
    """
    claims = Claims.new(user, now=now)
    try:
        return jwt.encode(claims.model_dump(mode="json"), secret, algorithm=ALGORITHM)
    except (jwt.PyJWTError, TypeError, ValueError) as exc:
        logger.error("Token signing failed: %s", exc)
        raise TokenCreationError(context={"error_type": type(exc).__name__}) from exc


def verify(token: str, secret: str, now: Optional[datetime] = None) -> Claims:
    """
    Check signature, structure and expiry of `token`.

    A token issued at T is valid for now in [T, T + 86400); `exp` itself is
    already expired.
    """
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={
                "require": ["exp", "iat"],
                "verify_exp": False,
                "verify_iat": False,
            },
        )
        claims = Claims.model_validate(payload)
    except (jwt.PyJWTError, PydanticValidationError) as exc:
        logger.debug("Token rejected: %s", type(exc).__name__)
        raise InvalidTokenError() from exc

    current = int((now or datetime.now(timezone.utc)).timestamp())
    if current >= claims.exp:
        logger.debug("Token rejected: expired at %d (now %d)", claims.exp, current)
        raise InvalidTokenError()
    return claims
