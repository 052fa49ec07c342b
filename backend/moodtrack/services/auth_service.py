"""
MoodTrack Backend — Auth Service (Signup / Signin)
====================================================

What:  Account creation and sign-in workflows.
Who:   Called by the /api/auth route handlers.

Signup:
    1. Reject if the email is already registered          → ConflictError
    2. Hash the password on the hashing pool
    3. Persist the account (a concurrent duplicate that slips past step 1
       is caught from the unique index)                   → ConflictError
    4. Issue a token

Signin:
    1. Look up by email; unknown email                    → WrongCredentialsError
    2. Verify password; mismatch                          → WrongCredentialsError
    3. Locked account                                     → AccountLockedError
    4. Issue a token

Persisting and issuing are independent steps: if issuing fails after the
account row was written, the account exists and the user signs in later.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from moodtrack.exceptions import (
    AccountLockedError,
    ConflictError,
    DuplicateKeyError,
    WrongCredentialsError,
)
from moodtrack.models.types import identifier_to_hex, to_rfc3339
from moodtrack.models.user import User, users
from moodtrack.schemas.auth import SigninRequest, SigninResponseData, SignupRequest, SignupResponseData
from moodtrack.services import token_service
from moodtrack.services.password_service import PasswordService, password_service
from moodtrack.services.token_service import TokenUser

logger = logging.getLogger(__name__)

EMAIL_TAKEN_MESSAGE = "Email already registered"


class AuthService:
    def __init__(self, passwords: Optional[PasswordService] = None):
        self.passwords = passwords or password_service

    async def signup(self, db: AsyncSession, payload: SignupRequest, secret: str) -> SignupResponseData:
        email = str(payload.email)

        existing = await users.find_one(db, User.email == email)
        if existing is not None:
            raise ConflictError(message=EMAIL_TAKEN_MESSAGE, field="email")

        password_hash = await self.passwords.hash(payload.password)
        user = User.new(payload.first_name, payload.last_name, email, password_hash)

        try:
            user = await users.create(db, user)
        except DuplicateKeyError:
            raise ConflictError(message=EMAIL_TAKEN_MESSAGE, field="email")

        logger.info("Account created: %s", identifier_to_hex(user.id))
        token = token_service.issue(TokenUser.from_user(user), secret)

        return SignupResponseData(
            user_id=identifier_to_hex(user.id),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            created_at=to_rfc3339(user.created_at),
            token=token,
        )

    async def signin(self, db: AsyncSession, payload: SigninRequest, secret: str) -> SigninResponseData:
        user = await users.find_one(db, User.email == str(payload.email))
        if user is None:
            raise WrongCredentialsError(context={"reason": "unknown_email"})

        if not await self.passwords.verify(payload.password, user.password):
            raise WrongCredentialsError(context={"reason": "password_mismatch"})

        if user.is_locked:
            raise AccountLockedError(context={"user_id": identifier_to_hex(user.id)})

        token = token_service.issue(TokenUser.from_user(user), secret)
        logger.info("Account signed in: %s", identifier_to_hex(user.id))

        return SigninResponseData(
            user_id=identifier_to_hex(user.id),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            token=token,
        )


auth_service = AuthService()
