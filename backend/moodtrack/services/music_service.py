"""
MoodTrack Backend — Meditation Music Service
==============================================

What:  Turns meditation preferences into a text prompt, asks the hosted
       music-generation model for audio, stores the result as an .mp3.
How:   httpx AsyncClient for the call, tenacity for retries, a circuit
       breaker in front of the provider, aiofiles for the write.
Who:   POST /api/meditation/generate-music.

Resilience Strategy:
    1. Retry transport errors and HTTP 429/5xx with exponential backoff + jitter
    2. Circuit breaker: after N failed calls, reject instantly for M seconds
    3. Other 4xx responses fail immediately (retrying cannot fix them)
"""

import logging
import time
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
import httpx
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from moodtrack.config import settings
from moodtrack.exceptions import CircuitBreakerOpenError, FileStorageError, MusicServiceError
from moodtrack.schemas.meditation import GenerateMusicRequest

logger = logging.getLogger(__name__)

MUSIC_URL_PREFIX = "/api/meditation/music"

ATMOSPHERE_PROMPTS = {
    "nature": "peaceful nature sounds with gentle flowing water, soft bird calls, and light forest ambience",
    "ambient": "ambient ethereal soundscape with subtle drones and gentle atmospheric textures",
    "piano": "soft minimalist piano with gentle reverb and occasional gentle string accompaniment",
    "binaural": "binaural beats at alpha frequency range with soft ambient pads and gentle oscillations",
    "bowls": "tibetan singing bowls and bells with long sustains and harmonically rich tones",
    "minimal": "minimal ambient soundscape with occasional soft tones and comfortable silence",
}
DEFAULT_ATMOSPHERE = "calm meditation music with soft ambient elements"

FOCUS_MOODS = {
    "anxiety": "calming, soothing, stress-reducing",
    "sleep": "extremely gentle, hypnotic, sleep-inducing",
    "focus": "subtly focusing, clear, present",
    "gratitude": "warm, uplifting, gentle positivity",
    "compassion": "heartwarming, loving, kind",
    "pain": "healing, pain-relieving, distracting",
    "energy": "subtly energizing, refreshing, revitalizing",
}
DEFAULT_FOCUS_MOOD = "peaceful, calming, centered"

BACKGROUND_ELEMENTS = {
    "forest": "with subtle woodland elements and gentle breeze sounds",
    "beach": "with distant soft waves and occasional ocean elements",
    "mountain": "with subtle high-altitude wind and open space feeling",
    "garden": "with gentle garden ambience and subtle natural elements",
    "space": "with cosmic overtones and vast spacious feeling",
}
DEFAULT_BACKGROUND = "with gentle natural elements"


def build_music_prompt(preferences: GenerateMusicRequest) -> str:
    """Unknown atmosphere / focus / background values fall back to neutral phrases."""
    base = ATMOSPHERE_PROMPTS.get(preferences.music_atmosphere, DEFAULT_ATMOSPHERE)
    mood = FOCUS_MOODS.get(preferences.focus_area, DEFAULT_FOCUS_MOOD)
    elements = BACKGROUND_ELEMENTS.get(preferences.background, DEFAULT_BACKGROUND)
    return (
        f"{base} - {mood}, perfect for {preferences.meditation_type} meditation, {elements}. "
        f"The music should last at least {preferences.duration} minutes."
    )


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════


class CircuitBreaker:
    """
    CLOSED ──(failures >= threshold)──▶ OPEN ──(recovery_timeout)──▶ HALF_OPEN
       ▲                                  ▲                              │
       └────────────(success)─────────────┼──────────(failure)───────────┘

    Not shared across worker processes; each uvicorn worker keeps its own.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.opened_at: Optional[float] = None

    def before_call(self) -> None:
        """Raise CircuitBreakerOpenError while the breaker is OPEN."""
        if self.state != self.OPEN:
            return
        elapsed = time.monotonic() - (self.opened_at or 0.0)
        if elapsed >= self.recovery_timeout:
            logger.info("Circuit breaker HALF_OPEN after %.1fs", elapsed)
            self.state = self.HALF_OPEN
            return
        raise CircuitBreakerOpenError(recovery_time=max(1, int(self.recovery_timeout - elapsed)))

    def record_success(self) -> None:
        if self.state != self.CLOSED:
            logger.info("Circuit breaker CLOSED (provider recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.opened_at = None

    def record_failure(self) -> None:
        self.failure_count += 1
        if self.state == self.HALF_OPEN or self.failure_count >= self.failure_threshold:
            if self.state != self.OPEN:
                logger.warning("Circuit breaker OPEN after %d failures", self.failure_count)
            self.state = self.OPEN
            self.opened_at = time.monotonic()


# ══════════════════════════════════════════════════════════════════════════
# Music Service
# ══════════════════════════════════════════════════════════════════════════


class RetryableProviderResponse(Exception):
    """Provider answered 429 or 5xx; worth another attempt."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"provider returned HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class MusicService:
    def __init__(
        self,
        api_url: Optional[str] = None,
        api_token: Optional[str] = None,
        music_dir: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_attempts: Optional[int] = None,
        min_wait: Optional[float] = None,
        max_wait: Optional[float] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        self.api_url = api_url or settings.music_api_url
        self.api_token = api_token or settings.huggingface_api_token
        self.music_dir = Path(music_dir or settings.music_dir)
        self.max_attempts = max_attempts or settings.retry_max_attempts
        self.min_wait = settings.retry_min_wait if min_wait is None else min_wait
        self.max_wait = settings.retry_max_wait if max_wait is None else max_wait
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                transport=self._transport,
                timeout=httpx.Timeout(settings.music_timeout, connect=10.0),
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def ensure_music_dir(self) -> Path:
        self.music_dir.mkdir(parents=True, exist_ok=True)
        return self.music_dir

    def resolve_file(self, filename: str) -> Path:
        """Absolute path of a stored file; the caller validates `filename`."""
        return (self.music_dir / filename).resolve()

    async def generate(self, preferences: GenerateMusicRequest) -> str:
        """
        Generate and store one track, returning its API path.

        Raises:
            CircuitBreakerOpenError: provider recently failing
            MusicServiceError: provider failed after retries
            FileStorageError: audio could not be written
        """
        request_id = uuid.uuid4().hex[:8]
        self.circuit_breaker.before_call()

        prompt = build_music_prompt(preferences)
        logger.debug("[%s] Music prompt: %s", request_id, prompt)

        try:
            audio = await self._call_provider_with_retry(prompt, request_id)
        except RetryError as exc:
            self.circuit_breaker.record_failure()
            last = exc.last_attempt.exception() if exc.last_attempt else None
            logger.error("[%s] Music provider retries exhausted: %s", request_id, last)
            raise MusicServiceError(
                message="Music generation failed after multiple attempts. Please try again later.",
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"request_id": request_id, "attempts": self.max_attempts},
            ) from exc
        except MusicServiceError:
            self.circuit_breaker.record_failure()
            raise

        self.circuit_breaker.record_success()
        filename = f"{uuid.uuid4()}.mp3"
        await self._store(filename, audio, request_id)
        return f"{MUSIC_URL_PREFIX}/{filename}"

    async def _call_provider_with_retry(self, prompt: str, request_id: str) -> bytes:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type((httpx.TransportError, RetryableProviderResponse)),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.min_wait,
                max=self.max_wait,
                jitter=1 if self.max_wait else 0,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        async for attempt in retrying:
            with attempt:
                return await self._call_provider(prompt, request_id)
        raise AssertionError("unreachable")  # pragma: no cover

    async def _call_provider(self, prompt: str, request_id: str) -> bytes:
        start_time = time.perf_counter()
        response = await self.client.post(
            self.api_url,
            headers={"Authorization": f"Bearer {self.api_token}"},
            json={"inputs": prompt},
        )
        duration_ms = (time.perf_counter() - start_time) * 1000

        if response.status_code == 429 or response.status_code >= 500:
            logger.warning(
                "[%s] Provider HTTP %d after %.0fms", request_id, response.status_code, duration_ms
            )
            raise RetryableProviderResponse(response.status_code, response.text[:500])
        if response.status_code >= 400:
            logger.error(
                "[%s] Provider rejected request: HTTP %d %s",
                request_id,
                response.status_code,
                response.text[:500],
            )
            raise MusicServiceError(
                message="Music generation request was rejected by the provider.",
                context={"request_id": request_id, "status": response.status_code},
            )

        logger.info(
            "[%s] Music generated in %.0fms (%d bytes)", request_id, duration_ms, len(response.content)
        )
        return response.content

    async def _store(self, filename: str, audio: bytes, request_id: str) -> None:
        path = self.ensure_music_dir() / filename
        try:
            async with aiofiles.open(path, "wb") as handle:
                await handle.write(audio)
        except OSError as exc:
            logger.error("[%s] Could not write %s: %s", request_id, path, exc)
            raise FileStorageError(
                message="Could not store generated music.",
                context={"request_id": request_id, "error": str(exc)},
            ) from exc


music_service = MusicService()
