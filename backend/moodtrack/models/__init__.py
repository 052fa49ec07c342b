"""
ORM models and their ModelStore instances.

Importing this package registers every table on `Base.metadata` (Alembic and
the test fixtures rely on that).
"""

import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from moodtrack.models.checkin import CheckIn, checkins
from moodtrack.models.user import User, users

logger = logging.getLogger(__name__)

ALL_STORES = (users, checkins)


async def sync_indexes(engine: AsyncEngine) -> None:
    """Declare tables and indexes for every entity kind. Safe to re-run."""
    for store in ALL_STORES:
        await store.sync_indexes(engine)
    logger.info("Indexes synchronized for %d collections", len(ALL_STORES))


__all__ = ["CheckIn", "User", "checkins", "users", "sync_indexes", "ALL_STORES"]
