"""
MoodTrack Backend — Meditation Music Schemas
"""

from pydantic import BaseModel, Field


class GenerateMusicRequest(BaseModel):
    duration: int = Field(ge=1, le=60, description="Session length in minutes")
    meditation_type: str = Field(min_length=1, max_length=50, description="e.g. mindfulness, breath, body_scan")
    music_atmosphere: str = Field(description="nature, ambient, piano, binaural, bowls, minimal")
    focus_area: str = Field(description="anxiety, sleep, focus, gratitude, compassion, pain, energy")
    background: str = Field(description="forest, beach, mountain, garden, space")


class GenerateMusicResponse(BaseModel):
    music_url: str = Field(description="Path of the generated audio file on this API")
