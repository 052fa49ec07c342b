"""
MoodTrack Backend — Password Hashing Service
==============================================

What:  bcrypt hash / verify, executed on a dedicated thread pool.
How:   Each call is submitted to a ThreadPoolExecutor owned by the service,
       so the event loop only awaits the resulting future. The executor is
       created lazily (or by start()) and closed from the application
       lifespan; once closed it stays closed until start() is called again.

Error mapping:
    hash()    bcrypt raised            → HashingError       (5006)
    verify()  stored hash malformed    → InvalidPasswordHashError (40008)
    either    pool shut down / broken  → TaskFailureError   (5005)
    verify()  wrong password           → False (not an error)

Cancellation of the awaiting coroutine propagates unchanged; the thread
finishes its current bcrypt call and the result is discarded.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, TypeVar

import bcrypt

from moodtrack.config import settings
from moodtrack.exceptions import HashingError, InvalidPasswordHashError, TaskFailureError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# bcrypt only looks at the first 72 bytes; longer inputs are refused upstream
BCRYPT_MAX_PASSWORD_BYTES = 72


class PasswordService:
    """
    Args:
        rounds:  bcrypt cost factor (log2 of iterations). Tests pass 4.
        workers: size of the hashing thread pool.
    """

    def __init__(self, rounds: Optional[int] = None, workers: Optional[int] = None):
        self.rounds = rounds if rounds is not None else settings.bcrypt_rounds
        self.workers = workers if workers is not None else settings.hashing_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._closed = False

    @property
    def executor(self) -> ThreadPoolExecutor:
        if self._closed:
            raise TaskFailureError(context={"error": "hashing pool is shut down"})
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.workers,
                thread_name_prefix="bcrypt",
            )
            logger.info(
                "Password hashing pool started (workers=%d, rounds=%d)",
                self.workers,
                self.rounds,
            )
        return self._executor

    def start(self) -> None:
        """Create the pool now instead of on the first hash; reopens after shutdown()."""
        self._closed = False
        self.executor

    def shutdown(self) -> None:
        """Stop the pool; later hash / verify calls raise TaskFailureError until start()."""
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
            logger.info("Password hashing pool stopped")

    async def _run_blocking(self, func: Callable[..., T], *args) -> T:
        loop = asyncio.get_running_loop()
        executor = self.executor
        try:
            future = loop.run_in_executor(executor, func, *args)
        except RuntimeError as exc:
            # ThreadPoolExecutor.submit after shutdown, or BrokenThreadPool
            logger.error("Hashing pool rejected work: %s", exc)
            raise TaskFailureError(context={"error": str(exc)}) from exc
        return await future

    @staticmethod
    def _hash_sync(password: bytes, rounds: int) -> str:
        try:
            return bcrypt.hashpw(password, bcrypt.gensalt(rounds=rounds)).decode("utf-8")
        except (ValueError, TypeError) as exc:
            raise HashingError(context={"error_type": type(exc).__name__}) from exc

    @staticmethod
    def _verify_sync(password: bytes, password_hash: bytes) -> bool:
        try:
            return bcrypt.checkpw(password, password_hash)
        except (ValueError, TypeError) as exc:
            raise InvalidPasswordHashError(context={"error_type": type(exc).__name__}) from exc

    async def hash(self, password: str) -> str:
        """Return a salted bcrypt hash of `password`."""
        encoded = password.encode("utf-8")
        if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
            raise HashingError(
                message="Password exceeds bcrypt input limit",
                context={"length": len(encoded)},
            )
        return await self._run_blocking(self._hash_sync, encoded, self.rounds)

    async def verify(self, password: str, password_hash: str) -> bool:
        """True when `password` matches `password_hash`."""
        encoded = password.encode("utf-8")
        if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
            # hash() never accepts such input, so no stored hash can match it
            return False
        return await self._run_blocking(
            self._verify_sync, encoded, password_hash.encode("utf-8")
        )


password_service = PasswordService()
