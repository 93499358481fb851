"""Expiring key-value stores for challenge sessions and pass tokens.

Two independent instances exist at runtime: the Challenge Store (session id to
target orientation) and the Pass-Token Store (pass token to verification
record). Each entry lives for a fixed TTL counted from its last ``set``; after
that it is unreachable even if nobody deletes it, and a background sweeper
reclaims the memory.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from threading import Lock
from typing import Generic, Protocol, TypeVar

import redis
from pydantic import BaseModel

from spatial_captcha.core.settings import settings
from spatial_captcha.schemas import ChallengeSession, PassTokenRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

SESSION_KEY_PREFIX = "captcha:session:"
PASS_TOKEN_KEY_PREFIX = "captcha:pass:"


class ExpiringStore(Protocol[T]):
    """Contract shared by every expiring store backend."""

    name: str
    ttl_seconds: float

    def set(self, key: str, value: T) -> None: ...

    def get(self, key: str) -> T | None: ...

    def delete(self, key: str) -> None: ...

    def pop(self, key: str) -> T | None: ...

    def sweep(self) -> int: ...

    def __len__(self) -> int: ...


class MemoryExpiringStore(Generic[T]):
    """In-process TTL cache guarded by a single lock.

    Every operation takes the lock, so a ``get`` racing a ``delete`` or
    ``pop`` on the same key observes either the full entry or nothing.
    """

    def __init__(
        self,
        ttl_seconds: float,
        *,
        name: str = "store",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.name = name
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: dict[str, tuple[float, T]] = {}
        self._lock = Lock()

    def set(self, key: str, value: T) -> None:
        """Insert or overwrite ``key``; its TTL restarts now."""
        expires_at = self._clock() + self.ttl_seconds
        with self._lock:
            self._entries[key] = (expires_at, value)

    def get(self, key: str) -> T | None:
        """Return the live value for ``key`` or None."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= now:
                del self._entries[key]
                return None
            return value

    def delete(self, key: str) -> None:
        """Remove ``key``; absent keys are ignored."""
        with self._lock:
            self._entries.pop(key, None)

    def pop(self, key: str) -> T | None:
        """Atomically return and remove the live value for ``key``."""
        now = self._clock()
        with self._lock:
            entry = self._entries.pop(key, None)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= now:
            return None
        return value

    def sweep(self) -> int:
        """Evict every expired entry and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisExpiringStore(Generic[M]):
    """Redis-backed store for multi-process deployments.

    Values are pydantic models serialised as JSON. Redis expires keys on its
    own, so ``sweep`` has nothing to do.
    """

    def __init__(
        self,
        client: redis.Redis,
        ttl_seconds: float,
        *,
        model: type[M],
        prefix: str,
        name: str = "store",
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.name = name
        self.ttl_seconds = float(ttl_seconds)
        self._client = client
        self._model = model
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _load(self, raw: bytes | str | None) -> M | None:
        if raw is None:
            return None
        return self._model.model_validate_json(raw)

    def set(self, key: str, value: M) -> None:
        self._client.set(self._key(key), value.model_dump_json(), ex=int(self.ttl_seconds))

    def get(self, key: str) -> M | None:
        return self._load(self._client.get(self._key(key)))

    def delete(self, key: str) -> None:
        self._client.delete(self._key(key))

    def pop(self, key: str) -> M | None:
        # GETDEL is a single server-side command, so only one caller can win.
        return self._load(self._client.getdel(self._key(key)))

    def sweep(self) -> int:
        return 0

    def __len__(self) -> int:
        return sum(1 for _ in self._client.scan_iter(match=f"{self._prefix}*"))


class StoreSweeper:
    """Periodically evicts expired entries from one or more stores.

    Runs as an asyncio task for the lifetime of the application so memory
    stays bounded even for keys nobody looks up again.
    """

    def __init__(self, schedule: list[tuple[ExpiringStore, float]]) -> None:
        self._schedule = schedule
        self._tasks: list[asyncio.Task[None]] = []
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def start(self) -> None:
        """Start one sweep loop per store."""
        if self.running:
            return
        self._stopping.clear()
        self._tasks = [
            asyncio.create_task(self._run(store, interval))
            for store, interval in self._schedule
        ]

    async def stop(self) -> None:
        """Stop all sweep loops and wait for them to finish."""
        if not self._tasks:
            return
        self._stopping.set()
        await asyncio.gather(*self._tasks)
        self._tasks = []

    async def _run(self, store: ExpiringStore, interval: float) -> None:
        interval = max(0.1, float(interval))
        while not self._stopping.is_set():
            try:
                removed = store.sweep()
            except Exception:
                logger.exception("Sweep of %s store failed", store.name)
            else:
                if removed:
                    logger.debug("Swept %d expired entries from %s store", removed, store.name)
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=interval)
            except TimeoutError:
                continue


class _StoreRegistry:
    """Process-wide store instances built lazily from settings."""

    challenge_store: ExpiringStore[ChallengeSession] | None = None
    pass_token_store: ExpiringStore[PassTokenRecord] | None = None
    redis_client: redis.Redis | None = None

    @classmethod
    def _redis(cls) -> redis.Redis:
        if cls.redis_client is None:
            cls.redis_client = redis.Redis.from_url(settings.redis_url)
        return cls.redis_client

    @classmethod
    def get_challenge_store(cls) -> ExpiringStore[ChallengeSession]:
        if cls.challenge_store is None:
            if settings.store_backend == "redis":
                cls.challenge_store = RedisExpiringStore(
                    cls._redis(),
                    settings.session_ttl_seconds,
                    model=ChallengeSession,
                    prefix=SESSION_KEY_PREFIX,
                    name="challenge",
                )
            else:
                cls.challenge_store = MemoryExpiringStore(
                    settings.session_ttl_seconds, name="challenge"
                )
        return cls.challenge_store

    @classmethod
    def get_pass_token_store(cls) -> ExpiringStore[PassTokenRecord]:
        if cls.pass_token_store is None:
            if settings.store_backend == "redis":
                cls.pass_token_store = RedisExpiringStore(
                    cls._redis(),
                    settings.pass_token_ttl_seconds,
                    model=PassTokenRecord,
                    prefix=PASS_TOKEN_KEY_PREFIX,
                    name="pass-token",
                )
            else:
                cls.pass_token_store = MemoryExpiringStore(
                    settings.pass_token_ttl_seconds, name="pass-token"
                )
        return cls.pass_token_store


def get_challenge_store() -> ExpiringStore[ChallengeSession]:
    """Return the process-wide Challenge Store."""
    return _StoreRegistry.get_challenge_store()


def get_pass_token_store() -> ExpiringStore[PassTokenRecord]:
    """Return the process-wide Pass-Token Store."""
    return _StoreRegistry.get_pass_token_store()


def build_sweeper() -> StoreSweeper:
    """Return a sweeper covering both process-wide stores."""
    return StoreSweeper(
        [
            (get_challenge_store(), settings.session_sweep_seconds),
            (get_pass_token_store(), settings.pass_token_sweep_seconds),
        ]
    )
