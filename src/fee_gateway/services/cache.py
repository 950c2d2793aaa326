"""Cache abstractions and the in-memory provider.

Every provider follows the same error posture: reads (``get``, ``exists``,
``mget``) never raise for a missing key or a backend failure and report a
miss instead, while writes (``set``, ``delete``, ``flush``, ``mset``)
propagate backend errors to the caller.
"""

import copy
import threading
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Protocol


class CacheError(Exception):
    """Base error raised by cache providers."""


class CacheConfigurationError(CacheError):
    """Raised when a provider cannot be built from the given configuration."""


class CacheBatchWriteError(CacheError):
    """Raised after a batch write in which one or more items failed."""

    def __init__(self, failures: Sequence[tuple[str, Exception]]) -> None:
        self.failures = list(failures)
        keys = ", ".join(key for key, _ in self.failures)
        super().__init__(
            f"Cache batch write failed for {len(self.failures)} key(s): {keys}"
        )


class CacheProviderKind(StrEnum):
    """Supported cache backends."""

    MEMORY = "memory"
    UPSTASH = "upstash"


@dataclass(frozen=True)
class UpstashCredentials:
    """Connection parameters for the Upstash Redis REST API."""

    url: str
    token: str


@dataclass(frozen=True)
class CacheConfig:
    """Cache provider selection and defaults."""

    provider: str
    upstash: UpstashCredentials | None = None
    default_ttl_seconds: int | None = None


@dataclass(frozen=True)
class CacheItem:
    """A single entry for a batch write."""

    key: str
    value: object
    ttl_seconds: int | None = None


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of the in-memory store."""

    size: int
    keys: list[str]


class CacheProvider(Protocol):
    """Cache interface for opaque key-value data."""

    async def get(self, key: str) -> object | None:
        """Return a cached value, or ``None`` if missing, expired or unreachable."""

    async def set(
        self, key: str, value: object, ttl_seconds: int | None = None
    ) -> None:
        """Store a value, falling back to the provider's default TTL."""

    async def delete(self, key: str) -> None:
        """Remove a key. Deleting a missing key is not an error."""

    async def exists(self, key: str) -> bool:
        """Return whether a live entry is stored under the key."""

    async def flush(self) -> None:
        """Remove every entry."""

    async def mget(self, keys: Sequence[str]) -> list[object | None]:
        """Return values in the same order as ``keys``."""

    async def mset(self, items: Iterable[CacheItem]) -> None:
        """Store every item, each with its own TTL."""

    async def close(self) -> None:
        """Release backend resources."""


def resolve_ttl(
    ttl_seconds: int | None, default_ttl_seconds: int | None
) -> int | None:
    """Return the effective TTL, or ``None`` when the entry never expires."""
    ttl = ttl_seconds if ttl_seconds is not None else default_ttl_seconds
    if ttl is None:
        return None
    if ttl < 0:
        msg = f"TTL must not be negative, got {ttl}"
        raise ValueError(msg)
    return ttl or None


def raise_for_failures(failures: Sequence[tuple[str, Exception]]) -> None:
    """Raise an aggregate error if any batch item failed."""
    if failures:
        raise CacheBatchWriteError(failures)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class _CacheEntry:
    value: object
    expires_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at


@dataclass
class InMemoryCache(CacheProvider):
    """In-memory cache with lazy expiry.

    Expired entries are dropped by the access that finds them; there is no
    background sweep. Values are deep-copied in and out of the store.
    """

    default_ttl_seconds: int | None = None
    clock: Callable[[], datetime] = _utcnow
    _entries: dict[str, _CacheEntry] = field(
        default_factory=dict, init=False, repr=False
    )
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    async def get(self, key: str) -> object | None:
        """Return a cached value if it hasn't expired."""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            return copy.deepcopy(entry.value)

    async def set(
        self, key: str, value: object, ttl_seconds: int | None = None
    ) -> None:
        """Store a cached value with an optional TTL."""
        ttl = resolve_ttl(ttl_seconds, self.default_ttl_seconds)
        expires_at = None if ttl is None else self.clock() + timedelta(seconds=ttl)
        entry = _CacheEntry(value=copy.deepcopy(value), expires_at=expires_at)
        with self._lock:
            self._entries[key] = entry

    async def delete(self, key: str) -> None:
        """Remove a cached value."""
        with self._lock:
            self._entries.pop(key, None)

    async def exists(self, key: str) -> bool:
        """Return whether the key holds a live entry."""
        with self._lock:
            return self._live_entry(key) is not None

    async def flush(self) -> None:
        """Remove all cached values."""
        with self._lock:
            self._entries.clear()

    async def mget(self, keys: Sequence[str]) -> list[object | None]:
        """Return cached values for each key in order."""
        return [await self.get(key) for key in keys]

    async def mset(self, items: Iterable[CacheItem]) -> None:
        """Store each item independently."""
        failures: list[tuple[str, Exception]] = []
        for item in items:
            try:
                await self.set(item.key, item.value, item.ttl_seconds)
            except Exception as exc:
                failures.append((item.key, exc))
        raise_for_failures(failures)

    async def close(self) -> None:
        """Nothing to release for the in-memory store."""

    def stats(self) -> CacheStats:
        """Return the current size and keys, including not-yet-purged entries."""
        with self._lock:
            return CacheStats(size=len(self._entries), keys=list(self._entries))

    def _live_entry(self, key: str) -> _CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self.clock()):
            del self._entries[key]
            return None
        return entry
