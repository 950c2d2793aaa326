"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from fee_gateway.config import Settings, parse_warmup_routes
from fee_gateway.services.cache import CacheProvider
from fee_gateway.services.cache_factory import create_cache_provider_from_env
from fee_gateway.services.fees import FeesService
from fee_gateway.services.warmup import CacheWarmupJob


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    cache: CacheProvider
    fees_service: FeesService
    warmup_job: CacheWarmupJob
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    cache = create_cache_provider_from_env(resolved_settings)
    fees_service = FeesService(cache=cache)
    warmup_job = CacheWarmupJob(
        fees_service=fees_service,
        routes=parse_warmup_routes(resolved_settings.cache_warmup_routes),
    )

    async def close_resources() -> None:
        await cache.close()

    return AppContainer(
        settings=resolved_settings,
        cache=cache,
        fees_service=fees_service,
        warmup_job=warmup_job,
        close_resources=close_resources,
    )
