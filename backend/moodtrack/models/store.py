"""
MoodTrack Backend — Generic Persistence Layer
===============================================

What:  One generic implementation of the operations every entity needs:
       create, find-one, find-and-count with pagination, index sync.
How:   `ModelStore[T]` wraps an ORM model class. The model supplies its
       collection (table) name, columns and declared indexes; the store
       supplies the behaviour. Entities do not inherit CRUD methods.
Who:   Services (auth, check-ins) and the startup index synchronization.

Operation semantics:
    create          Assigns the identifier and any unset timestamps, inserts,
                    flushes, returns the same entity with `id` populated.
    find_one        First match under the given ordering (or the store's
                    natural one). Absence is `None`, not an error.
    find_and_count  (page, total). The total ignores offset/limit and is a
                    second query against the same filter; a write landing
                    between the two is not corrected for.
    sync_indexes    Idempotent CREATE TABLE / CREATE INDEX with checkfirst.

Store failures are translated to DatabaseError (DuplicateKeyError for
integrity violations) and propagated. Nothing retries here; retry policy
belongs to the engine / driver configuration.
"""

import logging
from typing import Any, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import Connection, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from moodtrack.database import Base
from moodtrack.exceptions import DatabaseError, DuplicateKeyError
from moodtrack.models.types import new_identifier, utc_now

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class ModelStore(Generic[ModelT]):
    """
    Persistence capabilities for one entity kind.

    Args:
        model: ORM class. Must expose `id`, and the timestamp attributes
               named by `created_field` / `updated_field`.
    """

    def __init__(
        self,
        model: Type[ModelT],
        created_field: str = "created_at",
        updated_field: str = "updated_at",
    ):
        self.model = model
        self.created_field = created_field
        self.updated_field = updated_field

    @property
    def collection(self) -> str:
        return self.model.__tablename__

    # ── Writes ────────────────────────────────────────────────────────────

    async def create(self, db: AsyncSession, entity: ModelT) -> ModelT:
        """
        Persist a new entity and return it with its identifier assigned.

        Raises:
            DuplicateKeyError: a unique index rejected the row.
            DatabaseError: any other store failure.
        """
        entity.id = new_identifier()
        now = utc_now()
        if getattr(entity, self.created_field, None) is None:
            setattr(entity, self.created_field, now)
        if getattr(entity, self.updated_field, None) is None:
            setattr(entity, self.updated_field, getattr(entity, self.created_field))

        db.add(entity)
        try:
            await db.flush()
        except IntegrityError as exc:
            logger.warning("Integrity violation inserting into %s: %s", self.collection, exc.orig)
            raise DuplicateKeyError(
                message=f"Duplicate key in {self.collection}",
                context={"collection": self.collection, "error_type": type(exc.orig).__name__},
            ) from exc
        except SQLAlchemyError as exc:
            logger.error("Insert into %s failed: %s", self.collection, exc, exc_info=True)
            raise DatabaseError(
                context={"collection": self.collection, "error_type": type(exc).__name__},
            ) from exc

        logger.debug("Created %s %s", self.collection, entity.id.hex)
        return entity

    # ── Reads ─────────────────────────────────────────────────────────────

    async def find_one(
        self,
        db: AsyncSession,
        *filters: Any,
        order_by: Sequence[Any] = (),
    ) -> Optional[ModelT]:
        stmt = select(self.model)
        if filters:
            stmt = stmt.where(*filters)
        if order_by:
            stmt = stmt.order_by(*order_by)
        stmt = stmt.limit(1)

        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("find_one on %s failed: %s", self.collection, exc, exc_info=True)
            raise DatabaseError(
                context={"collection": self.collection, "error_type": type(exc).__name__},
            ) from exc
        return result.scalars().first()

    async def find_and_count(
        self,
        db: AsyncSession,
        *filters: Any,
        sort: Sequence[Any] = (),
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[ModelT], int]:
        """
        Return one window of matches plus the total number of matches.

        Query plan:
            SELECT ... WHERE <filters> ORDER BY <sort> LIMIT :limit OFFSET :offset
            SELECT count(*) ... WHERE <filters>
        """
        page_stmt = select(self.model)
        count_stmt = select(func.count()).select_from(self.model)
        if filters:
            page_stmt = page_stmt.where(*filters)
            count_stmt = count_stmt.where(*filters)
        if sort:
            page_stmt = page_stmt.order_by(*sort)
        if offset:
            page_stmt = page_stmt.offset(offset)
        if limit is not None:
            page_stmt = page_stmt.limit(limit)

        try:
            page_result = await db.execute(page_stmt)
            items = list(page_result.scalars().all())
            count_result = await db.execute(count_stmt)
            total = count_result.scalar_one()
        except SQLAlchemyError as exc:
            logger.error("find_and_count on %s failed: %s", self.collection, exc, exc_info=True)
            raise DatabaseError(
                context={"collection": self.collection, "error_type": type(exc).__name__},
            ) from exc

        return items, int(total)

    # ── Schema ────────────────────────────────────────────────────────────

    async def sync_indexes(self, engine: AsyncEngine) -> None:
        """Create the collection and its declared indexes if they are missing."""
        try:
            async with engine.begin() as conn:
                await conn.run_sync(self._sync_indexes)
        except SQLAlchemyError as exc:
            logger.error("Index sync for %s failed: %s", self.collection, exc, exc_info=True)
            raise DatabaseError(
                message=f"Could not synchronize indexes for {self.collection}",
                context={"collection": self.collection, "error_type": type(exc).__name__},
            ) from exc

    def _sync_indexes(self, connection: Connection) -> None:
        table = self.model.__table__
        table.create(connection, checkfirst=True)
        for index in sorted(table.indexes, key=lambda ix: ix.name or ""):
            index.create(connection, checkfirst=True)
            logger.info("Index %s on %s is in place", index.name, self.collection)
