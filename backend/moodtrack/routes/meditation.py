"""
MoodTrack Backend — Meditation Music Routes
=============================================

What:  POST /api/meditation/generate-music (auth) and
       GET  /api/meditation/music/{filename}.
How:   Generation is delegated to MusicService; stored files are served
       straight from MUSIC_DIR with FileResponse.

Stored names are always `<uuid4>.mp3`; anything else is refused before the
filesystem is touched, which keeps `..` and absolute paths out.
"""

import logging
import re

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from moodtrack.dependencies import get_current_user
from moodtrack.exceptions import NotFoundError, ValidationError
from moodtrack.schemas.common import ErrorResponse, ResponseEnvelope
from moodtrack.schemas.meditation import GenerateMusicRequest, GenerateMusicResponse
from moodtrack.services.music_service import music_service
from moodtrack.services.token_service import TokenUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/meditation", tags=["Meditation"])

MUSIC_FILENAME_PATTERN = re.compile(
    r"^[0-9a-f]{8}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{12}\.mp3$"
)


@router.post(
    "/generate-music",
    response_model=ResponseEnvelope[GenerateMusicResponse],
    response_model_exclude_none=True,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        503: {"description": "Music provider unavailable", "model": ErrorResponse},
    },
    summary="Generate meditation music from preferences",
)
async def generate_music(
    payload: GenerateMusicRequest,
    user: TokenUser = Depends(get_current_user),
) -> ResponseEnvelope[GenerateMusicResponse]:
    logger.info(
        "Music requested by %s: %s/%s/%s, %d min",
        user.id.hex,
        payload.music_atmosphere,
        payload.focus_area,
        payload.background,
        payload.duration,
    )
    music_url = await music_service.generate(payload)
    return ResponseEnvelope[GenerateMusicResponse].ok(
        GenerateMusicResponse(music_url=music_url),
        message="Music generated successfully",
    )


@router.get(
    "/music/{filename}",
    response_class=FileResponse,
    responses={
        200: {"description": "Generated audio", "content": {"audio/mpeg": {}}},
        400: {"description": "Not a generated file name", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
    summary="Download a generated track",
)
async def serve_music(filename: str) -> FileResponse:
    if not MUSIC_FILENAME_PATTERN.match(filename):
        raise ValidationError(message="Invalid music file name", field="filename")

    path = music_service.resolve_file(filename)
    if not path.is_file():
        raise NotFoundError(resource="music file", resource_id=filename)

    return FileResponse(
        path=str(path),
        media_type="audio/mpeg",
        filename=filename,
        headers={"Cache-Control": "private, max-age=3600"},
    )
