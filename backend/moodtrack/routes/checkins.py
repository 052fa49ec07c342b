"""
MoodTrack Backend — Check-in Route Handlers
=============================================

What:  POST /api/checkin (create) and GET /api/checkin (list, newest first).
Who:   Signed-in clients; both routes require a Bearer token.

Listing:
    GET /api/checkin?month=3&year=2026&offset=0&limit=20
    month/year/offset/limit arrive as raw strings and are parsed in
    moodtrack.dependencies, so malformed values answer 400 / 40002.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from moodtrack.database import get_db_session
from moodtrack.dependencies import Pagination, get_current_user, get_pagination, parse_int_param
from moodtrack.schemas.checkin import CreateCheckinRequest, PublicCheckin
from moodtrack.schemas.common import ErrorResponse, ResponseEnvelope
from moodtrack.services.checkin_service import checkin_service
from moodtrack.services.token_service import TokenUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Check-ins"])


@router.post(
    "/checkin",
    status_code=status.HTTP_201_CREATED,
    response_model=ResponseEnvelope[PublicCheckin],
    response_model_exclude_none=True,
    responses={
        400: {"description": "Rating or emotion out of range", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
    },
    summary="Record a mood check-in",
)
async def create_checkin(
    payload: CreateCheckinRequest,
    user: TokenUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ResponseEnvelope[PublicCheckin]:
    checkin = await checkin_service.create_checkin(db, user, payload)
    return ResponseEnvelope[PublicCheckin].ok(checkin)


@router.get(
    "/checkin",
    response_model=ResponseEnvelope[List[PublicCheckin]],
    response_model_exclude_none=True,
    responses={
        400: {"description": "Bad month, year or pagination parameters", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
    },
    summary="List the caller's check-ins, newest first",
)
async def list_checkins(
    user: TokenUser = Depends(get_current_user),
    month: Optional[str] = Query(default=None, description="1-12; applies together with year"),
    year: Optional[str] = Query(default=None, description="Four-digit year; applies together with month"),
    pagination: Pagination = Depends(get_pagination),
    db: AsyncSession = Depends(get_db_session),
) -> ResponseEnvelope[List[PublicCheckin]]:
    items, count = await checkin_service.list_checkins(
        db,
        user,
        pagination,
        month=parse_int_param("month", month),
        year=parse_int_param("year", year),
    )
    return ResponseEnvelope[List[PublicCheckin]].page(
        items,
        count=count,
        offset=pagination.offset,
        limit=pagination.limit,
    )
