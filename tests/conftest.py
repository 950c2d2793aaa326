"""Shared test fixtures."""

import json
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import httpx
import pytest

from fee_gateway.adapters.upstash_cache import UpstashCache
from fee_gateway.config import Settings
from fee_gateway.containers import AppContainer
from fee_gateway.services.cache import CacheItem, CacheProvider, InMemoryCache
from fee_gateway.services.fees import FeesService
from fee_gateway.services.warmup import CacheWarmupJob


@dataclass
class FakeClock:
    """Manually advanced UTC clock."""

    now: datetime = field(
        default_factory=lambda: datetime(2024, 1, 15, 12, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@dataclass
class FakeUpstashServer:
    """Emulates the subset of the Upstash REST API used by the gateway."""

    store: dict[str, str] = field(default_factory=dict)
    ttls: dict[str, int] = field(default_factory=dict)
    commands: list[list[str]] = field(default_factory=list)
    authorizations: list[str | None] = field(default_factory=list)
    fail_commands: set[str] = field(default_factory=set)
    fail_keys: set[str] = field(default_factory=set)

    def handle(self, request: httpx.Request) -> httpx.Response:  # noqa: PLR0911
        command = json.loads(request.content.decode())
        self.commands.append(command)
        self.authorizations.append(request.headers.get("Authorization"))
        name, args = command[0], command[1:]
        if name in self.fail_commands or (args and args[0] in self.fail_keys):
            return httpx.Response(500, json={"error": "ERR backend unavailable"})
        if name == "GET":
            return _result(self.store.get(args[0]))
        if name == "SET":
            self.store[args[0]] = args[1]
            if len(args) == 4 and args[2] == "EX":  # noqa: PLR2004
                self.ttls[args[0]] = int(args[3])
            else:
                self.ttls.pop(args[0], None)
            return _result("OK")
        if name == "DEL":
            return _result(int(self.store.pop(args[0], None) is not None))
        if name == "EXISTS":
            return _result(int(args[0] in self.store))
        if name == "FLUSHDB":
            self.store.clear()
            self.ttls.clear()
            return _result("OK")
        if name == "MGET":
            return _result([self.store.get(key) for key in args])
        return httpx.Response(400, json={"error": f"ERR unknown command '{name}'"})

    def cache(self, default_ttl_seconds: int | None = None) -> UpstashCache:
        transport = httpx.MockTransport(self.handle)
        return UpstashCache(
            url="https://fake.upstash.io",
            token="rest-token",
            http_client=httpx.AsyncClient(transport=transport),
            default_ttl_seconds=default_ttl_seconds,
        )


def _result(value: object) -> httpx.Response:
    return httpx.Response(200, json={"result": value})


@dataclass
class FailingWriteCache(CacheProvider):
    """Cache whose reads miss and whose writes always fail."""

    error: Exception = field(default_factory=lambda: ConnectionError("cache down"))
    writes: int = 0

    async def get(self, key: str) -> object | None:
        return None

    async def set(
        self, key: str, value: object, ttl_seconds: int | None = None
    ) -> None:
        self.writes += 1
        raise self.error

    async def delete(self, key: str) -> None:
        raise self.error

    async def exists(self, key: str) -> bool:
        return False

    async def flush(self) -> None:
        raise self.error

    async def mget(self, keys: Sequence[str]) -> list[object | None]:
        return [None for _ in keys]

    async def mset(self, items: Iterable[CacheItem]) -> None:
        raise self.error

    async def close(self) -> None:
        return None


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        cache_provider="memory",
        cron_enabled=False,
        tracing_enabled=False,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> InMemoryCache:
    return InMemoryCache(clock=clock)


@pytest.fixture
def upstash_server() -> FakeUpstashServer:
    return FakeUpstashServer()


@pytest.fixture
def fees_service(cache: InMemoryCache, clock: FakeClock) -> FeesService:
    return FeesService(cache=cache, clock=clock)


@pytest.fixture
def container(
    settings: Settings, cache: InMemoryCache, fees_service: FeesService
) -> AppContainer:
    async def close_resources() -> None:
        await cache.close()

    return AppContainer(
        settings=settings,
        cache=cache,
        fees_service=fees_service,
        warmup_job=CacheWarmupJob(fees_service=fees_service),
        close_resources=close_resources,
    )
