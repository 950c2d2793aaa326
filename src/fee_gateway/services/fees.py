"""Fee quoting service with read-through caching.

Fee figures are a deterministic mock: each total is the amount scaled by a
fixed percentage in 18-decimal fixed point.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import TypeVar

from opentelemetry.trace import Span
from pydantic import ValidationError

from fee_gateway.domain.fees import (
    LimitsQuery,
    LimitsResponse,
    SuggestedFeesQuery,
    SuggestedFeesResponse,
    TotalRelayFee,
)
from fee_gateway.services.cache import CacheProvider
from fee_gateway.telemetry import add_span_attributes, add_span_event, with_span

RELAY_FEE_PCT = "0.0001"
LP_FEE_PCT = "0.0001"
CAPITAL_FEE_PCT = "0.00005"
RELAY_GAS_FEE_PCT = "0.00005"

ESTIMATED_FILL_TIME_SEC = 60
QUOTE_BLOCK = "18000000"
MIN_DEPOSIT = 1_000_000
EXCLUSIVE_RELAYER = "0x0000000000000000000000000000000000000000"
EXCLUSIVITY_WINDOW_SECONDS = 300

DEFAULT_LIMITS = LimitsResponse(
    min_deposit=str(MIN_DEPOSIT),
    max_deposit="1000000000000",
    max_deposit_instant="100000000000",
    max_deposit_short_delay="500000000000",
    recommended_deposit_instant="50000000000",
)

_WAD = 10**18

ModelT = TypeVar("ModelT", SuggestedFeesResponse, LimitsResponse)

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class FeesService:
    """Service for fee quotes and deposit limits."""

    cache: CacheProvider
    quote_ttl_seconds: int = 60
    limits_ttl_seconds: int = 300
    clock: Callable[[], datetime] = _utcnow

    async def get_suggested_fees(
        self, query: SuggestedFeesQuery
    ) -> SuggestedFeesResponse:
        """Return a fee quote, served from cache when available."""

        async def quote(span: Span) -> SuggestedFeesResponse:
            add_span_attributes(
                {
                    "bridge.amount": query.amount,
                    "bridge.destinationChainId": query.destination_chain_id,
                    "bridge.originChainId": query.origin_chain_id,
                }
            )
            cache_key = query.cache_key()
            cached = _load(SuggestedFeesResponse, await self.cache.get(cache_key))
            if cached is not None:
                add_span_attributes({"cache.hit": True})
                return cached

            add_span_attributes({"cache.hit": False})
            response = self._compute_quote(query)
            await self._store(cache_key, response, self.quote_ttl_seconds)
            return response

        return await with_span(
            "FeesService.get_suggested_fees",
            quote,
            {"service.name": "FeesService", "service.method": "get_suggested_fees"},
        )

    async def get_limits(self, query: LimitsQuery) -> LimitsResponse:
        """Return deposit limits for a route, served from cache when available."""

        async def limits(span: Span) -> LimitsResponse:
            add_span_attributes(
                {
                    "bridge.token": query.token,
                    "bridge.destinationChainId": query.destination_chain_id,
                    "bridge.originChainId": query.origin_chain_id,
                }
            )
            cache_key = query.cache_key()
            cached = _load(LimitsResponse, await self.cache.get(cache_key))
            if cached is not None:
                add_span_attributes({"cache.hit": True})
                return cached

            add_span_attributes({"cache.hit": False})
            response = DEFAULT_LIMITS.model_copy()
            await self._store(cache_key, response, self.limits_ttl_seconds)
            return response

        return await with_span(
            "FeesService.get_limits",
            limits,
            {"service.name": "FeesService", "service.method": "get_limits"},
        )

    def _compute_quote(self, query: SuggestedFeesQuery) -> SuggestedFeesResponse:
        amount = int(query.amount)
        relay_fee_total = fee_total(amount, RELAY_FEE_PCT)
        capital_fee_total = fee_total(amount, CAPITAL_FEE_PCT)
        relay_gas_fee_total = fee_total(amount, RELAY_GAS_FEE_PCT)
        now = self.clock()
        exclusive_relayer = None
        exclusivity_deadline = None
        if query.depositor:
            exclusive_relayer = EXCLUSIVE_RELAYER
            exclusivity_deadline = str(
                int(now.timestamp()) + EXCLUSIVITY_WINDOW_SECONDS
            )

        return SuggestedFeesResponse(
            estimated_fill_time_sec=ESTIMATED_FILL_TIME_SEC,
            relay_fee_pct=RELAY_FEE_PCT,
            relay_fee_total=str(relay_fee_total),
            lp_fee_pct=LP_FEE_PCT,
            timestamp=now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            is_amount_too_low=amount < MIN_DEPOSIT,
            quote_block=QUOTE_BLOCK,
            exclusive_relayer=exclusive_relayer,
            exclusivity_deadline=exclusivity_deadline,
            total_relay_fee=TotalRelayFee(
                pct=str(Decimal(RELAY_FEE_PCT) + Decimal(LP_FEE_PCT)),
                total=str(relay_fee_total + capital_fee_total + relay_gas_fee_total),
            ),
            capital_fee_pct=CAPITAL_FEE_PCT,
            capital_fee_total=str(capital_fee_total),
            relay_gas_fee_pct=RELAY_GAS_FEE_PCT,
            relay_gas_fee_total=str(relay_gas_fee_total),
        )

    async def _store(
        self,
        cache_key: str,
        response: SuggestedFeesResponse | LimitsResponse,
        ttl_seconds: int,
    ) -> None:
        payload = response.model_dump(by_alias=True, exclude_none=True)
        await self.cache.set(cache_key, payload, ttl_seconds)
        add_span_event("cache.write", {"cache.key": cache_key})


def fee_total(amount: int, pct: str) -> int:
    """Scale an integer amount by a decimal percentage, rounding down."""
    return amount * int(Decimal(pct) * _WAD) // _WAD


def _load(model: type[ModelT], cached: object | None) -> ModelT | None:
    if not isinstance(cached, dict):
        return None
    try:
        return model.model_validate(cached)
    except ValidationError:
        _logger.warning("Discarding malformed cached %s", model.__name__)
        return None
