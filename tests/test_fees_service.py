"""Tests for the fee quoting service."""

import asyncio
from dataclasses import dataclass

import pytest

from fee_gateway.domain.fees import LimitsQuery, SuggestedFeesQuery
from fee_gateway.services.cache import InMemoryCache
from fee_gateway.services.fees import FeesService, fee_total
from tests.conftest import FailingWriteCache, FakeClock

USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
DEPOSITOR = "0x0000000000000000000000000000000000000001"


@dataclass
class CountingCache(InMemoryCache):
    gets: int = 0
    sets: int = 0

    async def get(self, key: str) -> object | None:
        self.gets += 1
        return await super().get(key)

    async def set(
        self, key: str, value: object, ttl_seconds: int | None = None
    ) -> None:
        self.sets += 1
        await super().set(key, value, ttl_seconds)


def _quote(amount: str = "1000000", **extra: str) -> SuggestedFeesQuery:
    return SuggestedFeesQuery(
        amount=amount,
        input_token=USDC,
        output_token=USDC,
        destination_chain_id="10",
        **extra,
    )


def test_fee_total_rounds_down() -> None:
    assert fee_total(1_000_000, "0.0001") == 100
    assert fee_total(1_000_000, "0.00005") == 50
    assert fee_total(19_999, "0.0001") == 1
    assert fee_total(10**30, "0.0001") == 10**26


def test_suggested_fees_mock_figures(fees_service: FeesService) -> None:
    response = asyncio.run(fees_service.get_suggested_fees(_quote("5000000")))

    assert response.relay_fee_pct == "0.0001"
    assert response.relay_fee_total == "500"
    assert response.capital_fee_total == "250"
    assert response.relay_gas_fee_total == "250"
    assert response.total_relay_fee.pct == "0.0002"
    assert response.total_relay_fee.total == "1000"
    assert response.estimated_fill_time_sec == 60
    assert response.quote_block == "18000000"
    assert response.timestamp == "2024-01-15T12:00:00.000Z"
    assert response.is_amount_too_low is False
    assert response.exclusive_relayer is None


def test_amount_below_minimum_is_flagged(fees_service: FeesService) -> None:
    response = asyncio.run(fees_service.get_suggested_fees(_quote("100")))

    assert response.is_amount_too_low is True
    assert response.relay_fee_total == "0"


def test_depositor_adds_exclusivity(
    fees_service: FeesService, clock: FakeClock
) -> None:
    response = asyncio.run(
        fees_service.get_suggested_fees(_quote(depositor=DEPOSITOR))
    )

    assert response.exclusive_relayer == "0x" + "0" * 40
    assert response.exclusivity_deadline == str(int(clock.now.timestamp()) + 300)


def test_quote_is_cached_for_sixty_seconds(clock: FakeClock) -> None:
    cache = CountingCache(clock=clock)
    service = FeesService(cache=cache, clock=clock)
    query = _quote("5000000")

    first = asyncio.run(service.get_suggested_fees(query))
    clock.advance(30)
    second = asyncio.run(service.get_suggested_fees(query))

    assert second == first
    assert cache.sets == 1
    assert asyncio.run(cache.exists("fees:1:10:" + USDC + ":" + USDC + ":5000000"))

    clock.advance(31)
    third = asyncio.run(service.get_suggested_fees(query))

    assert cache.sets == 2
    assert third.timestamp == "2024-01-15T12:01:01.000Z"


def test_limits_are_cached_without_precision_loss(
    fees_service: FeesService, cache: InMemoryCache
) -> None:
    query = LimitsQuery(token=USDC, destination_chain_id="10")

    first = asyncio.run(fees_service.get_limits(query))
    cached = asyncio.run(cache.get(f"limits:1:10:{USDC}"))
    second = asyncio.run(fees_service.get_limits(query))

    assert first == second
    assert cached["maxDeposit"] == "1000000000000"
    assert int(second.min_deposit) < int(second.max_deposit)


def test_malformed_cache_entry_is_recomputed(
    fees_service: FeesService, cache: InMemoryCache
) -> None:
    asyncio.run(cache.set(f"limits:1:10:{USDC}", {"minDeposit": "1"}))

    response = asyncio.run(
        fees_service.get_limits(LimitsQuery(token=USDC, destination_chain_id="10"))
    )

    assert response.min_deposit == "1000000"


def test_cache_write_failure_propagates(clock: FakeClock) -> None:
    cache = FailingWriteCache()
    service = FeesService(cache=cache, clock=clock)

    with pytest.raises(ConnectionError):
        asyncio.run(service.get_suggested_fees(_quote()))
    assert cache.writes == 1
