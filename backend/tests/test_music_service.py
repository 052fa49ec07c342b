"""
MoodTrack Backend — Music Service Unit Tests (Mocked HTTP)
============================================================

The provider is faked with httpx.MockTransport; no network calls.

What we test:
    ✅ Prompt built from lookup tables, with fallbacks for unknown values
    ✅ Successful call stores <uuid4>.mp3 and returns its API path
    ✅ 5xx / 429 / transport errors are retried, then MusicServiceError
    ✅ Other 4xx fail without retrying
    ✅ Circuit breaker opens, rejects, half-opens and closes
"""

import time
import uuid

import httpx
import pytest

from moodtrack.exceptions import CircuitBreakerOpenError, MusicServiceError
from moodtrack.schemas.meditation import GenerateMusicRequest
from moodtrack.services.music_service import (
    MUSIC_URL_PREFIX,
    CircuitBreaker,
    MusicService,
    build_music_prompt,
)

AUDIO = b"ID3\x03\x00fake-mp3-bytes"


def preferences(**overrides) -> GenerateMusicRequest:
    values = {
        "duration": 10,
        "meditation_type": "mindfulness",
        "music_atmosphere": "piano",
        "focus_area": "sleep",
        "background": "beach",
    }
    values.update(overrides)
    return GenerateMusicRequest(**values)


def make_service(handler, music_dir, **kwargs) -> MusicService:
    kwargs.setdefault("max_attempts", 3)
    return MusicService(
        api_url="https://music.test/generate",
        api_token="hf-test",
        music_dir=str(music_dir),
        transport=httpx.MockTransport(handler),
        min_wait=0,
        max_wait=0,
        **kwargs,
    )


class TestBuildMusicPrompt:
    def test_known_values(self):
        prompt = build_music_prompt(preferences())
        assert prompt == (
            "soft minimalist piano with gentle reverb and occasional gentle string accompaniment"
            " - extremely gentle, hypnotic, sleep-inducing, perfect for mindfulness meditation,"
            " with distant soft waves and occasional ocean elements."
            " The music should last at least 10 minutes."
        )

    def test_unknown_values_fall_back(self):
        prompt = build_music_prompt(
            preferences(music_atmosphere="jazz", focus_area="luck", background="city", duration=5)
        )
        assert prompt.startswith("calm meditation music with soft ambient elements - peaceful, calming, centered")
        assert "with gentle natural elements." in prompt
        assert prompt.endswith("at least 5 minutes.")


class TestCircuitBreaker:
    def test_initial_state_is_closed(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        assert cb.state == CircuitBreaker.CLOSED
        cb.before_call()

    def test_stays_closed_under_threshold(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        cb.record_failure()
        cb.record_failure()
        assert cb.state == CircuitBreaker.CLOSED

    def test_open_rejects_calls(self):
        cb = CircuitBreaker(failure_threshold=2, recovery_timeout=60)
        cb.record_failure()
        cb.record_failure()

        assert cb.state == CircuitBreaker.OPEN
        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            cb.before_call()
        assert 1 <= exc_info.value.recovery_time <= 60

    def test_half_open_after_recovery_timeout(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        time.sleep(0.01)

        cb.before_call()

        assert cb.state == CircuitBreaker.HALF_OPEN

    def test_failure_while_half_open_reopens(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=0)
        cb.state = CircuitBreaker.HALF_OPEN
        cb.record_failure()
        assert cb.state == CircuitBreaker.OPEN

    def test_success_closes_and_resets(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        cb.record_success()
        assert cb.state == CircuitBreaker.CLOSED
        assert cb.failure_count == 0


class TestGenerate:
    @pytest.mark.asyncio
    async def test_success_stores_file(self, temp_music_dir):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=AUDIO)

        service = make_service(handler, temp_music_dir)
        music_url = await service.generate(preferences())
        await service.aclose()

        assert music_url.startswith(MUSIC_URL_PREFIX + "/")
        filename = music_url.rsplit("/", 1)[1]
        assert filename.endswith(".mp3")
        uuid.UUID(filename[: -len(".mp3")])
        assert (temp_music_dir / filename).read_bytes() == AUDIO

        assert len(seen) == 1
        assert seen[0].headers["Authorization"] == "Bearer hf-test"
        assert b"soft minimalist piano" in seen[0].content

    @pytest.mark.asyncio
    async def test_retries_server_errors_then_succeeds(self, temp_music_dir):
        statuses = iter([503, 429, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            status = next(statuses)
            return httpx.Response(status, content=AUDIO if status == 200 else b"busy")

        service = make_service(handler, temp_music_dir)
        music_url = await service.generate(preferences())

        assert music_url.endswith(".mp3")
        assert service.circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_exhausted_retries(self, temp_music_dir):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500, content=b"model loading")

        service = make_service(handler, temp_music_dir)
        with pytest.raises(MusicServiceError):
            await service.generate(preferences())

        assert len(calls) == 3
        assert service.circuit_breaker.failure_count == 1
        assert list(temp_music_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_transport_errors_are_retried(self, temp_music_dir):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        service = make_service(handler, temp_music_dir, max_attempts=2)
        with pytest.raises(MusicServiceError):
            await service.generate(preferences())

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, temp_music_dir):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(401, json={"error": "Invalid token"})

        service = make_service(handler, temp_music_dir)
        with pytest.raises(MusicServiceError):
            await service.generate(preferences())

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_open_breaker_skips_provider(self, temp_music_dir):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        service = make_service(
            handler,
            temp_music_dir,
            max_attempts=1,
            circuit_breaker=CircuitBreaker(failure_threshold=1, recovery_timeout=60),
        )
        with pytest.raises(MusicServiceError):
            await service.generate(preferences())
        with pytest.raises(CircuitBreakerOpenError):
            await service.generate(preferences())

        assert len(calls) == 1
