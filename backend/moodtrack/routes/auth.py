"""
MoodTrack Backend — Auth Route Handlers
=========================================

What:  POST /api/auth/signup and POST /api/auth/signin.
How:   Validates the body with pydantic, delegates to AuthService, wraps the
       result in the standard success envelope.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from moodtrack.config import Settings, get_settings
from moodtrack.database import get_db_session
from moodtrack.schemas.auth import SigninRequest, SigninResponseData, SignupRequest, SignupResponseData
from moodtrack.schemas.common import ErrorResponse, ResponseEnvelope
from moodtrack.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/signup",
    response_model=ResponseEnvelope[SignupResponseData],
    response_model_exclude_none=True,
    responses={
        400: {"description": "Invalid body or email already registered", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Register a new account",
)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
    app_settings: Settings = Depends(get_settings),
) -> ResponseEnvelope[SignupResponseData]:
    data = await auth_service.signup(db, payload, app_settings.auth_secret)
    return ResponseEnvelope[SignupResponseData].ok(data, message="User registered successfully")


@router.post(
    "/signin",
    response_model=ResponseEnvelope[SigninResponseData],
    response_model_exclude_none=True,
    responses={
        401: {"description": "Wrong email or password", "model": ErrorResponse},
        423: {"description": "Account is locked", "model": ErrorResponse},
    },
    summary="Sign in with email and password",
)
async def signin(
    payload: SigninRequest,
    db: AsyncSession = Depends(get_db_session),
    app_settings: Settings = Depends(get_settings),
) -> ResponseEnvelope[SigninResponseData]:
    data = await auth_service.signin(db, payload, app_settings.auth_secret)
    return ResponseEnvelope[SigninResponseData].ok(data, message="User signed in successfully")
