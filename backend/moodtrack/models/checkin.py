"""
MoodTrack Backend — CheckIn Model
===================================

What:  One mood check-in logged by an account.
How:   `user` holds the owning account's identifier. It is a plain reference,
       not a foreign key: accounts are never deleted in scope and the
       reference is not enforced by the store.

Query pattern: "this user's check-ins, newest first, optionally within one
calendar month" → compound index (user, created_at).
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, Index, SmallInteger, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from moodtrack.database import Base
from moodtrack.models.store import ModelStore
from moodtrack.models.types import UTCDateTime, utc_now

EMOTION_JOY = "joy"
EMOTION_SADNESS = "sadness"
EMOTION_ANGER = "anger"
EMOTION_FEAR = "fear"
EMOTION_DISGUST = "disgust"
EMOTION_SURPRISE = "surprise"

VALID_EMOTIONS = (
    EMOTION_JOY,
    EMOTION_SADNESS,
    EMOTION_ANGER,
    EMOTION_FEAR,
    EMOTION_DISGUST,
    EMOTION_SURPRISE,
)

RATING_MIN = 1
RATING_MAX = 5
RATING_FIELDS = ("mood_rating", "intensity", "energy_level", "stress_level", "wellbeing")


class CheckIn(Base):
    __tablename__ = "checkins"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    user: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    # Core mood data
    mood_rating: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    primary_emotion: Mapped[str] = mapped_column(String(20), nullable=False)
    intensity: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    # Well-being metrics
    energy_level: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    stress_level: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    wellbeing: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    __table_args__ = (
        Index("idx_checkins_user_created_at", "user", "created_at"),
        *(
            CheckConstraint(
                f"{name} BETWEEN {RATING_MIN} AND {RATING_MAX}",
                name=f"ck_checkins_{name}_range",
            )
            for name in RATING_FIELDS
        ),
    )

    @classmethod
    def new(
        cls,
        user: uuid.UUID,
        mood_rating: int,
        primary_emotion: str,
        intensity: int,
        energy_level: int,
        stress_level: int,
        wellbeing: int,
        notes: Optional[str] = None,
    ) -> "CheckIn":
        now = utc_now()
        return cls(
            user=user,
            mood_rating=mood_rating,
            primary_emotion=primary_emotion,
            intensity=intensity,
            energy_level=energy_level,
            stress_level=stress_level,
            wellbeing=wellbeing,
            notes=notes,
            created_at=now,
            updated_at=now,
        )

    def __repr__(self) -> str:
        return f"<CheckIn(id={self.id}, user={self.user}, created_at='{self.created_at}')>"


checkins = ModelStore(CheckIn)
