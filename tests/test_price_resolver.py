"""Unit tests for the liquidity-weighted price resolver."""

from __future__ import annotations

import pytest

from cardano_token_api.services.price_resolver import WeightedPriceResolver
from cardano_token_api.services.price_source import ADA

from conftest import FakePriceSource, pool

TOKEN = "tok1"


@pytest.fixture
def resolver(source: FakePriceSource, thresholds) -> WeightedPriceResolver:
    return WeightedPriceResolver(source, thresholds)


# ---------------------------------------------------------------
# Weighted average
# ---------------------------------------------------------------


class TestWeighting:
    @pytest.mark.asyncio
    async def test_single_pool_is_suspicious(
        self, resolver: WeightedPriceResolver, source: FakePriceSource
    ) -> None:
        source.pools[TOKEN] = [pool(100, 50)]
        result = await resolver.resolve_price(TOKEN)
        assert result.weighted_price == pytest.approx(2.0)
        assert result.total_liquidity == 100
        assert result.pool_count == 1
        assert result.suspicious_concentration is True
        assert result.error is None

    @pytest.mark.asyncio
    async def test_weights_by_ada_liquidity(
        self, resolver: WeightedPriceResolver, source: FakePriceSource
    ) -> None:
        source.pools[TOKEN] = [pool(100, 100), pool(300, 100)]
        result = await resolver.resolve_price(TOKEN)
        assert result.weighted_price == pytest.approx(2.5)
        assert result.total_liquidity == 400
        assert result.pool_count == 2
        assert result.outliers_filtered is False
        assert result.suspicious_concentration is False

    @pytest.mark.asyncio
    async def test_outlier_pool_is_dropped(
        self, resolver: WeightedPriceResolver, source: FakePriceSource
    ) -> None:
        source.pools[TOKEN] = [pool(100, 100), pool(100, 0.01)]
        result = await resolver.resolve_price(TOKEN)
        assert result.weighted_price == pytest.approx(1.0)
        assert result.outliers_filtered is True
        assert result.pool_count == 1
        assert result.original_pool_count == 2
        assert result.total_liquidity == 100

    def test_dominant_pool_flags_concentration(self, resolver: WeightedPriceResolver) -> None:
        result = resolver.weigh([pool(960, 960), pool(40, 40)], original_pool_count=2)
        assert result.suspicious_concentration is True

    def test_balanced_pools_not_concentrated(self, resolver: WeightedPriceResolver) -> None:
        result = resolver.weigh([pool(900, 900), pool(100, 100)], original_pool_count=2)
        assert result.suspicious_concentration is False

    def test_median_fallback_when_all_out_of_range(self, resolver: WeightedPriceResolver) -> None:
        pools = [pool(1000, 0.1), pool(1000, 0.5), pool(10, 1e10)]
        result = resolver.weigh(pools, original_pool_count=3)
        # Median is 2000, capped at the maximum reasonable price
        assert result.weighted_price == pytest.approx(1000.0)
        assert result.median_fallback_used is True
        assert result.outliers_filtered is True
        assert result.suspicious_concentration is False
        assert result.total_liquidity == pytest.approx(2010)

    def test_price_stays_in_range(self, resolver: WeightedPriceResolver, thresholds) -> None:
        pools = [pool(50, 0.001), pool(200, 400), pool(5, 1e9), pool(70, 35)]
        result = resolver.weigh(pools, original_pool_count=4)
        assert thresholds.min_reasonable_price <= result.weighted_price <= thresholds.max_reasonable_price


# ---------------------------------------------------------------
# Empty and failing sources
# ---------------------------------------------------------------


class TestFallbacks:
    @pytest.mark.asyncio
    async def test_zero_pools_without_fallback(
        self, resolver: WeightedPriceResolver, source: FakePriceSource
    ) -> None:
        source.pools[TOKEN] = [pool(0, 0), pool(0, 500)]
        result = await resolver.resolve_price(TOKEN)
        assert result.weighted_price == 0
        assert result.empty_suspicious_pools is True
        assert result.original_pool_count == 2
        assert result.error is None

    @pytest.mark.asyncio
    async def test_zero_pools_use_average_price(
        self, resolver: WeightedPriceResolver, source: FakePriceSource
    ) -> None:
        source.pools[TOKEN] = [pool(0, 0)]
        source.fallback[(TOKEN, ADA)] = 0.3
        result = await resolver.resolve_price(TOKEN)
        assert result.weighted_price == pytest.approx(0.3)
        assert result.price_from_fallback_endpoint is True
        assert result.empty_suspicious_pools is True

    @pytest.mark.asyncio
    async def test_no_pools_tries_reverse_direction(
        self, resolver: WeightedPriceResolver, source: FakePriceSource
    ) -> None:
        source.fallback[(ADA, TOKEN)] = 0.7
        result = await resolver.resolve_price(TOKEN)
        assert source.fallback_calls == [(TOKEN, ADA), (ADA, TOKEN)]
        assert result.weighted_price == pytest.approx(0.7)
        assert result.no_pools_found is True
        assert result.price_from_fallback_endpoint is True
        assert result.pool_count == 0

    @pytest.mark.asyncio
    async def test_failing_first_direction_is_skipped(
        self, resolver: WeightedPriceResolver, source: FakePriceSource, upstream_error
    ) -> None:
        source.fallback[(TOKEN, ADA)] = upstream_error
        source.fallback[(ADA, TOKEN)] = 0.4
        result = await resolver.resolve_price(TOKEN)
        assert result.weighted_price == pytest.approx(0.4)

    @pytest.mark.asyncio
    async def test_no_pools_and_no_fallback(
        self, resolver: WeightedPriceResolver, source: FakePriceSource
    ) -> None:
        result = await resolver.resolve_price(TOKEN)
        assert result.weighted_price == 0
        assert result.no_pools_found is True
        assert result.suspicious_concentration is True
        assert result.price_from_fallback_endpoint is False

    @pytest.mark.asyncio
    async def test_upstream_error_becomes_zero_price(
        self, resolver: WeightedPriceResolver, source: FakePriceSource, upstream_error
    ) -> None:
        source.pools[TOKEN] = upstream_error
        result = await resolver.resolve_price(TOKEN)
        assert result.weighted_price == 0
        assert result.total_liquidity == 0
        assert result.error == "boom"
