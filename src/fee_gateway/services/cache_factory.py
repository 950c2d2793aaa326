"""Cache provider selection."""

import logging

from fee_gateway.adapters.upstash_cache import UpstashCache
from fee_gateway.config import Settings
from fee_gateway.services.cache import (
    CacheConfig,
    CacheConfigurationError,
    CacheProvider,
    CacheProviderKind,
    InMemoryCache,
    UpstashCredentials,
)

_logger = logging.getLogger(__name__)


def create_cache_provider(config: CacheConfig) -> CacheProvider:
    """Create the cache provider selected by the configuration."""
    try:
        kind = CacheProviderKind(config.provider)
    except ValueError as exc:
        msg = f"Unsupported cache provider: {config.provider}"
        raise CacheConfigurationError(msg) from exc

    match kind:
        case CacheProviderKind.UPSTASH:
            provider: CacheProvider = UpstashCache.from_config(config)
        case CacheProviderKind.MEMORY:
            provider = InMemoryCache(default_ttl_seconds=config.default_ttl_seconds)
    _logger.info("Cache provider initialised: %s", kind.value)
    return provider


def cache_config_from_settings(settings: Settings) -> CacheConfig:
    """Build a cache configuration from application settings."""
    provider = settings.cache_provider.strip().lower() or CacheProviderKind.MEMORY
    upstash = None
    if provider == CacheProviderKind.UPSTASH:
        upstash = UpstashCredentials(
            url=settings.upstash_redis_rest_url or "",
            token=settings.upstash_redis_rest_token or "",
        )
    return CacheConfig(
        provider=provider,
        upstash=upstash,
        default_ttl_seconds=settings.cache_default_ttl,
    )


def create_cache_provider_from_env(settings: Settings | None = None) -> CacheProvider:
    """Create the cache provider described by the environment."""
    resolved_settings = settings or Settings()
    return create_cache_provider(cache_config_from_settings(resolved_settings))
