"""
MoodTrack Backend — Check-in Schemas
======================================

CreateCheckinRequest enforces every invariant of a check-in before anything
reaches the store: five JSON integers in [1, 5] and an emotion from the fixed
set. Ratings are strict, so `true` or `"3"` is refused rather than coerced.
PublicCheckin is the client-facing projection (hex ids, RFC3339 times).
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from moodtrack.models.checkin import RATING_MAX, RATING_MIN, VALID_EMOTIONS, CheckIn
from moodtrack.models.types import to_rfc3339


def _rating(description: str):
    return Field(ge=RATING_MIN, le=RATING_MAX, strict=True, description=description)


class CreateCheckinRequest(BaseModel):
    mood_rating: int = _rating("Overall mood, 1 (worst) to 5 (best)")
    primary_emotion: str = Field(description=f"One of: {', '.join(VALID_EMOTIONS)}")
    intensity: int = _rating("How strongly the emotion is felt")
    energy_level: int = _rating("Energy, 1 to 5")
    stress_level: int = _rating("Stress, 1 to 5")
    wellbeing: int = _rating("General wellbeing, 1 to 5")
    notes: Optional[str] = Field(default=None, max_length=5000)

    @field_validator("primary_emotion")
    @classmethod
    def validate_emotion(cls, v: str) -> str:
        if v not in VALID_EMOTIONS:
            raise ValueError(f"Invalid primary emotion '{v}'. Must be one of: {', '.join(VALID_EMOTIONS)}")
        return v


class PublicCheckin(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user: uuid.UUID
    mood_rating: int
    primary_emotion: str
    intensity: int
    energy_level: int
    stress_level: int
    wellbeing: int
    notes: Optional[str] = None
    updated_at: datetime
    created_at: datetime

    @field_serializer("id", "user")
    def serialize_identifier(self, value: uuid.UUID) -> str:
        return value.hex

    @field_serializer("updated_at", "created_at")
    def serialize_timestamp(self, value: datetime) -> str:
        return to_rfc3339(value)

    @classmethod
    def from_model(cls, checkin: CheckIn) -> "PublicCheckin":
        return cls.model_validate(checkin)
