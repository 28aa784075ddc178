"""
Weighted Price Resolver - turns raw pool quotes into one defensible price.
Liquidity-weighted average over in-range pools, with outlier rejection,
a median fallback and the aggregator's average-price endpoint as last resort.
"""
import logging
from typing import List, Optional

from cardano_token_api.core.config import ScoringThresholds
from cardano_token_api.core.errors import UpstreamError
from cardano_token_api.core.models import PoolQuote, PriceAssessment
from cardano_token_api.services.price_source import ADA, PriceSource

logger = logging.getLogger(__name__)


class WeightedPriceResolver:
    """
    Computes a PriceAssessment per token.
    Never raises: upstream failures become a zero-price assessment.
    """

    # Share of total liquidity above which the top pool is suspicious
    CONCENTRATION_THRESHOLD = 0.95

    def __init__(self, source: PriceSource, thresholds: Optional[ScoringThresholds] = None):
        self.source = source
        self.thresholds = thresholds or ScoringThresholds()

    async def resolve_price(self, token_id: str) -> PriceAssessment:
        try:
            pools = await self.source.get_pools(token_id)
            if not pools:
                return await self._no_pools(token_id)
            return await self.assess_pools(token_id, pools)
        except Exception as e:
            logger.error("Error calculating weighted price for %s: %s", token_id, e)
            return PriceAssessment(error=str(e))

    async def assess_pools(self, token_id: str, pools: List[PoolQuote]) -> PriceAssessment:
        """Run the pricing rules over an already fetched pool list."""
        valid_pools = [pool for pool in pools if pool.is_valid]

        # Pools exist but none carries liquidity on both sides
        if not valid_pools:
            logger.warning(
                "%d pools for %s but none with usable liquidity, trying average price",
                len(pools), token_id
            )
            fallback_price = await self._fallback_price(token_id)
            if fallback_price is not None:
                return PriceAssessment(
                    weighted_price=fallback_price,
                    original_pool_count=len(pools),
                    suspicious_concentration=True,
                    price_from_fallback_endpoint=True,
                    empty_suspicious_pools=True
                )
            return PriceAssessment(
                original_pool_count=len(pools),
                suspicious_concentration=True,
                empty_suspicious_pools=True
            )

        return self.weigh(valid_pools, original_pool_count=len(pools))

    def weigh(self, valid_pools: List[PoolQuote], original_pool_count: int) -> PriceAssessment:
        """
        Pure pricing over pools with liquidity on both sides.
        """
        low = self.thresholds.min_reasonable_price
        high = self.thresholds.max_reasonable_price

        has_outliers = any(not (low <= pool.price <= high) for pool in valid_pools)
        reasonable = (
            [pool for pool in valid_pools if low <= pool.price <= high]
            if has_outliers else valid_pools
        )

        if not reasonable:
            prices = sorted(pool.price for pool in valid_pools)
            median_price = prices[len(prices) // 2]
            return PriceAssessment(
                weighted_price=min(median_price, high),
                total_liquidity=sum(pool.base_amount for pool in valid_pools),
                pool_count=len(valid_pools),
                original_pool_count=original_pool_count,
                outliers_filtered=True,
                median_fallback_used=True
            )

        total_liquidity = sum(pool.base_amount for pool in reasonable)
        if total_liquidity == 0:
            return PriceAssessment(
                pool_count=len(reasonable),
                original_pool_count=original_pool_count,
                outliers_filtered=has_outliers
            )

        largest = max(pool.base_amount for pool in reasonable)
        suspicious = (
            len(reasonable) == 1
            or largest / total_liquidity > self.CONCENTRATION_THRESHOLD
        )

        weighted_price = sum(
            pool.price * (pool.base_amount / total_liquidity) for pool in reasonable
        )

        return PriceAssessment(
            weighted_price=weighted_price,
            total_liquidity=total_liquidity,
            pool_count=len(reasonable),
            original_pool_count=original_pool_count,
            outliers_filtered=has_outliers,
            suspicious_concentration=suspicious
        )

    async def _no_pools(self, token_id: str) -> PriceAssessment:
        logger.info("No pool data for %s, trying average price endpoint", token_id)
        fallback_price = await self._fallback_price(token_id)
        if fallback_price is not None:
            return PriceAssessment(
                weighted_price=fallback_price,
                suspicious_concentration=True,
                price_from_fallback_endpoint=True,
                no_pools_found=True
            )
        return PriceAssessment(
            suspicious_concentration=True,
            no_pools_found=True
        )

    async def _fallback_price(self, token_id: str) -> Optional[float]:
        """Average price token->ADA, then ADA->token."""
        for base, quote in ((token_id, ADA), (ADA, token_id)):
            try:
                price = await self.source.get_fallback_price(base, quote)
            except UpstreamError as e:
                logger.warning("Average price %s/%s unavailable: %s", base, quote, e.message)
                continue
            if price is not None and price > 0:
                logger.info("Found average price for %s via %s/%s: %s", token_id, base, quote, price)
                return price
        return None
