"""
MoodTrack Backend — ModelStore Tests (SQLite)
===============================================

What we test:
    ✅ create assigns identifier and timestamps
    ✅ find_one returns first match or None
    ✅ find_and_count: M <= N returns all M; limit < M returns `limit`
       items newest first; count always M
    ✅ unique index violation → DuplicateKeyError
    ✅ sync_indexes is idempotent
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import inspect

from moodtrack.exceptions import DuplicateKeyError
from moodtrack.models import CheckIn, User, checkins, sync_indexes, users

BASE_TIME = datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc)


def make_checkin(owner: uuid.UUID, created_at: datetime = None, mood: int = 3) -> CheckIn:
    checkin = CheckIn.new(
        user=owner,
        mood_rating=mood,
        primary_emotion="joy",
        intensity=2,
        energy_level=3,
        stress_level=4,
        wellbeing=5,
    )
    if created_at is not None:
        checkin.created_at = created_at
        checkin.updated_at = created_at
    return checkin


async def seed_checkins(db, owner: uuid.UUID, count: int):
    created = []
    for i in range(count):
        created.append(await checkins.create(db, make_checkin(owner, BASE_TIME + timedelta(minutes=i))))
    return created


class TestCreate:
    @pytest.mark.asyncio
    async def test_assigns_identifier(self, db_session):
        user = await users.create(db_session, User.new("Ada", "Lovelace", "ada@example.com", "$2b$04$hash"))
        assert isinstance(user.id, uuid.UUID)
        assert user.created_at is not None
        assert user.updated_at == user.created_at

    @pytest.mark.asyncio
    async def test_fills_unset_timestamps(self, db_session):
        checkin = make_checkin(uuid.uuid4())
        checkin.created_at = None
        checkin.updated_at = None

        saved = await checkins.create(db_session, checkin)

        assert saved.created_at.tzinfo is not None
        assert saved.created_at.microsecond % 1000 == 0
        assert saved.updated_at == saved.created_at

    @pytest.mark.asyncio
    async def test_duplicate_email_raises_duplicate_key(self, db_session):
        await users.create(db_session, User.new("A", "B", "dup@example.com", "$2b$04$hash"))
        with pytest.raises(DuplicateKeyError):
            await users.create(db_session, User.new("C", "D", "dup@example.com", "$2b$04$hash"))
        await db_session.rollback()


class TestFindOne:
    @pytest.mark.asyncio
    async def test_match(self, db_session):
        created = await users.create(db_session, User.new("A", "B", "a@b.com", "$2b$04$hash"))
        found = await users.find_one(db_session, User.email == "a@b.com")
        assert found is not None
        assert found.id == created.id

    @pytest.mark.asyncio
    async def test_absent_is_none(self, db_session):
        assert await users.find_one(db_session, User.email == "nobody@example.com") is None

    @pytest.mark.asyncio
    async def test_respects_ordering(self, db_session):
        owner = uuid.uuid4()
        await seed_checkins(db_session, owner, 3)
        newest = await checkins.find_one(
            db_session, CheckIn.user == owner, order_by=(CheckIn.created_at.desc(),)
        )
        assert newest.created_at == BASE_TIME + timedelta(minutes=2)


class TestFindAndCount:
    @pytest.mark.asyncio
    async def test_fewer_matches_than_limit(self, db_session):
        owner = uuid.uuid4()
        await seed_checkins(db_session, owner, 3)

        items, count = await checkins.find_and_count(
            db_session, CheckIn.user == owner, sort=(CheckIn.created_at.desc(),), offset=0, limit=10
        )

        assert len(items) == 3
        assert count == 3

    @pytest.mark.asyncio
    async def test_limit_smaller_than_matches_newest_first(self, db_session):
        owner = uuid.uuid4()
        created = await seed_checkins(db_session, owner, 5)

        items, count = await checkins.find_and_count(
            db_session, CheckIn.user == owner, sort=(CheckIn.created_at.desc(),), offset=0, limit=2
        )

        assert count == 5
        assert [item.id for item in items] == [created[4].id, created[3].id]

    @pytest.mark.asyncio
    async def test_offset_window(self, db_session):
        owner = uuid.uuid4()
        created = await seed_checkins(db_session, owner, 5)

        items, count = await checkins.find_and_count(
            db_session, CheckIn.user == owner, sort=(CheckIn.created_at.desc(),), offset=3, limit=10
        )

        assert count == 5
        assert [item.id for item in items] == [created[1].id, created[0].id]

    @pytest.mark.asyncio
    async def test_filters_scope_both_page_and_count(self, db_session):
        mine, theirs = uuid.uuid4(), uuid.uuid4()
        await seed_checkins(db_session, mine, 2)
        await seed_checkins(db_session, theirs, 4)

        items, count = await checkins.find_and_count(db_session, CheckIn.user == mine, limit=10)

        assert count == 2
        assert all(item.user == mine for item in items)

    @pytest.mark.asyncio
    async def test_no_matches(self, db_session):
        items, count = await checkins.find_and_count(db_session, CheckIn.user == uuid.uuid4(), limit=5)
        assert items == []
        assert count == 0


class TestSyncIndexes:
    @pytest.mark.asyncio
    async def test_idempotent(self, db_engine):
        await sync_indexes(db_engine)
        await sync_indexes(db_engine)

        async with db_engine.connect() as conn:
            index_names = await conn.run_sync(
                lambda sync_conn: {
                    table: {ix["name"] for ix in inspect(sync_conn).get_indexes(table)}
                    for table in ("users", "checkins")
                }
            )

        assert "idx_users_email" in index_names["users"]
        assert "idx_checkins_user_created_at" in index_names["checkins"]

    def test_collection_names(self):
        assert users.collection == "users"
        assert checkins.collection == "checkins"
