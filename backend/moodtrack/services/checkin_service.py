"""
MoodTrack Backend — Check-in Service
======================================

What:  Creates check-ins for the signed-in account and lists them newest
       first, optionally restricted to one calendar month (UTC).

Month window:
    month and year both given → created_at in [first of month, first of next month)
    only one of them given     → no date restriction
    month outside 1-12         → ValidationError, whether or not year is given
    year outside 1-9999        → ValidationError (December 9999 too: no next month)
"""

import logging
from datetime import MAXYEAR, MINYEAR, datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from moodtrack.dependencies import Pagination
from moodtrack.exceptions import ValidationError
from moodtrack.models.checkin import CheckIn, checkins
from moodtrack.schemas.checkin import CreateCheckinRequest, PublicCheckin
from moodtrack.services.token_service import TokenUser

logger = logging.getLogger(__name__)


def month_window(month: int, year: int) -> Tuple[datetime, datetime]:
    """Half-open UTC interval covering `year`-`month`."""
    if month < 1 or month > 12:
        raise ValidationError(message="Month must be between 1 and 12", field="month")
    # The window end must itself be a representable datetime
    if year < MINYEAR or (year, month) >= (MAXYEAR, 12):
        raise ValidationError(
            message=f"Year must be between {MINYEAR} and {MAXYEAR}", field="year"
        )
    end_year, end_month = (year + 1, 1) if month == 12 else (year, month + 1)
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    end = datetime(end_year, end_month, 1, tzinfo=timezone.utc)
    return start, end


class CheckinService:
    async def create_checkin(
        self,
        db: AsyncSession,
        user: TokenUser,
        payload: CreateCheckinRequest,
    ) -> PublicCheckin:
        checkin = CheckIn.new(
            user=user.id,
            mood_rating=payload.mood_rating,
            primary_emotion=payload.primary_emotion,
            intensity=payload.intensity,
            energy_level=payload.energy_level,
            stress_level=payload.stress_level,
            wellbeing=payload.wellbeing,
            notes=payload.notes,
        )
        checkin = await checkins.create(db, checkin)
        logger.info("Check-in %s created for user %s", checkin.id.hex, user.id.hex)
        return PublicCheckin.from_model(checkin)

    async def list_checkins(
        self,
        db: AsyncSession,
        user: TokenUser,
        pagination: Pagination,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> Tuple[List[PublicCheckin], int]:
        if month is not None and (month < 1 or month > 12):
            raise ValidationError(message="Month must be between 1 and 12", field="month")

        filters = [CheckIn.user == user.id]
        if month is not None and year is not None:
            start, end = month_window(month, year)
            filters.append(CheckIn.created_at >= start)
            filters.append(CheckIn.created_at < end)

        items, count = await checkins.find_and_count(
            db,
            *filters,
            sort=(CheckIn.created_at.desc(),),
            offset=pagination.offset,
            limit=pagination.limit,
        )
        logger.debug("Returning %d of %d check-ins for user %s", len(items), count, user.id.hex)
        return [PublicCheckin.from_model(item) for item in items], count


checkin_service = CheckinService()
