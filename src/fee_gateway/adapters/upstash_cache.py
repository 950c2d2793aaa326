"""Upstash Redis REST cache provider."""

import asyncio
import json
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import httpx

from fee_gateway.services.cache import (
    CacheConfig,
    CacheConfigurationError,
    CacheError,
    CacheItem,
    CacheProvider,
    raise_for_failures,
    resolve_ttl,
)

_logger = logging.getLogger(__name__)


class UpstashError(CacheError):
    """Raised when Upstash answers a command with an error payload."""


@dataclass
class UpstashCache(CacheProvider):
    """Cache backed by the Upstash Redis REST API.

    Each operation is one HTTP round trip. Expiry is enforced server-side.
    """

    url: str
    token: str
    http_client: httpx.AsyncClient
    default_ttl_seconds: int | None = None
    timeout_seconds: float = 10

    @classmethod
    def create(
        cls, url: str, token: str, default_ttl_seconds: int | None = None
    ) -> "UpstashCache":
        """Create an Upstash cache with a managed httpx session."""
        if not url or not token:
            msg = (
                "Upstash configuration required: "
                "UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN"
            )
            raise CacheConfigurationError(msg)
        _validate_url(url)
        return cls(
            url=url.rstrip("/"),
            token=token,
            http_client=httpx.AsyncClient(),
            default_ttl_seconds=default_ttl_seconds,
        )

    @classmethod
    def from_config(cls, config: CacheConfig) -> "UpstashCache":
        """Create an Upstash cache from a cache configuration."""
        credentials = config.upstash
        return cls.create(
            url=credentials.url if credentials else "",
            token=credentials.token if credentials else "",
            default_ttl_seconds=config.default_ttl_seconds,
        )

    async def get(self, key: str) -> object | None:
        """Return a cached value, or ``None`` on miss or backend failure."""
        try:
            raw = await self._command("GET", key)
        except Exception as exc:
            _logger.warning("Cache GET error for key %s: %s", key, exc)
            return None
        return _decode(raw)

    async def set(
        self, key: str, value: object, ttl_seconds: int | None = None
    ) -> None:
        """Store a value, with expiry when a TTL applies."""
        ttl = resolve_ttl(ttl_seconds, self.default_ttl_seconds)
        command: list[object] = ["SET", key, json.dumps(value)]
        if ttl is not None:
            command += ["EX", ttl]
        try:
            await self._command(*command)
        except Exception:
            _logger.exception("Cache SET error for key %s", key)
            raise

    async def delete(self, key: str) -> None:
        """Delete a key."""
        try:
            await self._command("DEL", key)
        except Exception:
            _logger.exception("Cache DELETE error for key %s", key)
            raise

    async def exists(self, key: str) -> bool:
        """Return whether the key exists, ``False`` on backend failure."""
        try:
            result = await self._command("EXISTS", key)
        except Exception as exc:
            _logger.warning("Cache EXISTS error for key %s: %s", key, exc)
            return False
        return result == 1

    async def flush(self) -> None:
        """Flush the current database."""
        try:
            await self._command("FLUSHDB")
        except Exception:
            _logger.exception("Cache FLUSH error")
            raise

    async def mget(self, keys: Sequence[str]) -> list[object | None]:
        """Return values for the keys in order, all ``None`` on failure."""
        keys = list(keys)
        if not keys:
            return []
        try:
            raw_values = await self._command("MGET", *keys)
            if not isinstance(raw_values, list) or len(raw_values) != len(keys):
                msg = f"Unexpected MGET result: {raw_values!r}"
                raise UpstashError(msg)
        except Exception as exc:
            _logger.warning("Cache MGET error for keys %s: %s", ", ".join(keys), exc)
            return [None] * len(keys)
        return [_decode(raw) for raw in raw_values]

    async def mset(self, items: Iterable[CacheItem]) -> None:
        """Store items with individual SET calls.

        MSET cannot carry a per-key expiry, so every item is written on its
        own. All items are attempted before failures are reported.
        """
        items = list(items)
        results = await asyncio.gather(
            *(self.set(item.key, item.value, item.ttl_seconds) for item in items),
            return_exceptions=True,
        )
        failures = [
            (item.key, result)
            for item, result in zip(items, results, strict=True)
            if isinstance(result, Exception)
        ]
        if failures:
            _logger.error(
                "Cache MSET failed for %s of %s keys", len(failures), len(items)
            )
        raise_for_failures(failures)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _command(self, *args: object) -> object:
        """Send one Redis command and return its result.

        The REST API answers ``{"result": ...}`` on success and
        ``{"error": "..."}`` when Redis rejects the command.
        """
        response = await self.http_client.post(
            self.url,
            headers={"Authorization": f"Bearer {self.token}"},
            json=[str(arg) for arg in args],
            timeout=self.timeout_seconds,
        )
        payload = response.json() if response.content else {}
        if isinstance(payload, dict) and payload.get("error"):
            raise UpstashError(str(payload["error"]))
        response.raise_for_status()
        return payload.get("result") if isinstance(payload, dict) else None


def _validate_url(url: str) -> None:
    """Reject REST URLs that could never be requested."""
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        msg = f"Invalid UPSTASH_REDIS_REST_URL: {exc}"
        raise CacheConfigurationError(msg) from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        msg = f"Invalid UPSTASH_REDIS_REST_URL: {url!r} is not an http(s) URL"
        raise CacheConfigurationError(msg)


def _decode(raw: object) -> object | None:
    """Decode a JSON-encoded value, returning other strings untouched."""
    if raw is None or not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        return raw
