"""
MoodTrack Backend — User (Account) Model
==========================================

Table: `users`
    id           UUID, assigned by ModelStore.create
    first_name   non-empty
    last_name    non-empty
    email        unique (idx_users_email)
    password     bcrypt hash, never plaintext, never serialized outward
    created_at / updated_at / locked_at (nullable)
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from moodtrack.database import Base
from moodtrack.models.store import ModelStore
from moodtrack.models.types import UTCDateTime, utc_now


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    password: Mapped[str] = mapped_column(String(128), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    locked_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    __table_args__ = (
        Index("idx_users_email", "email", unique=True),
    )

    @classmethod
    def new(cls, first_name: str, last_name: str, email: str, password_hash: str) -> "User":
        """
        Build an unsaved account. Takes the password HASH; hashing happens in
        PasswordService before an account object ever exists.
        """
        now = utc_now()
        return cls(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password=password_hash,
            created_at=now,
            updated_at=now,
            locked_at=None,
        )

    @property
    def is_locked(self) -> bool:
        return self.locked_at is not None

    def __repr__(self) -> str:
        # password deliberately omitted
        return f"<User(id={self.id}, email='{self.email}')>"


users = ModelStore(User)
