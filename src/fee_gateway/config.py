"""Application configuration."""

import os
from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

VERSION = "0.1.0"
DEFAULT_ORIGIN_CHAIN_ID = "1"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    environment: str = _ENVIRONMENT
    service_name: str = "fee-gateway"
    cache_provider: str = "memory"
    upstash_redis_rest_url: str | None = None
    upstash_redis_rest_token: str | None = None
    cache_default_ttl: int = 300
    cors_origin: str = "*"
    tracing_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://localhost:4318/v1/traces"
    cron_enabled: bool = True
    cache_warmup_routes: str | None = None
    port: int = 3000

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


@dataclass(frozen=True)
class WarmupRoute:
    """Token route whose limits are pre-computed by the warmup job."""

    token: str
    destination_chain_id: str
    origin_chain_id: str = DEFAULT_ORIGIN_CHAIN_ID


def parse_warmup_routes(raw: str | None) -> list[WarmupRoute]:
    """Parse `token:destination[:origin]` routes from env."""
    if raw is None:
        return []
    routes: list[WarmupRoute] = []
    for chunk in raw.split(","):
        parts = [part.strip() for part in chunk.strip().split(":")]
        if len(parts) not in {2, 3} or not all(parts):
            continue
        if not all(part.isdigit() for part in parts[1:]):
            continue
        if len(parts) == 2:  # noqa: PLR2004
            routes.append(WarmupRoute(token=parts[0], destination_chain_id=parts[1]))
        else:
            routes.append(
                WarmupRoute(
                    token=parts[0],
                    destination_chain_id=parts[1],
                    origin_chain_id=parts[2],
                )
            )
    return routes
