"""
Token Service - read side of the API.
Builds ranked listings from the published report and enriched records.
"""
import logging
from typing import Dict, List, Optional

from cardano_token_api.api.v1.schemas.responses import (
    RangeCounts,
    TokenDetail,
    TokenListItem,
    TokenStats,
)
from cardano_token_api.core.cache import TTLCache
from cardano_token_api.core.config import ScoringThresholds
from cardano_token_api.core.models import TokenRecord, VolumeEntry
from cardano_token_api.services.volume_service import VolumeService
from cardano_token_api.storage.base_store import TokenStore

logger = logging.getLogger(__name__)


class TokenService:
    """
    Serves token listings.

    Rank is never stored: it is the position in the sorted listing, computed
    whenever the cache is rebuilt.
    """

    def __init__(
        self,
        store: TokenStore,
        volume_service: VolumeService,
        min_listing_liquidity: float = 200.0,
        cache: Optional[TTLCache] = None,
        thresholds: Optional[ScoringThresholds] = None
    ):
        self.store = store
        self.volume_service = volume_service
        self.min_listing_liquidity = min_listing_liquidity
        self.thresholds = thresholds or ScoringThresholds()
        self.cache: TTLCache = cache or TTLCache(60)

    async def list_tokens(self) -> List[TokenListItem]:
        return await self.cache.get_or_compute(self._build_listing)

    async def _build_listing(self) -> List[TokenListItem]:
        report = await self.store.load_report()
        enhanced = await self.store.load_enhanced_tokens()
        volumes = await self.volume_service.volume_map()

        ranked: List[TokenRecord] = report.top_tokens_by_market_cap_valid if report else []
        ranked_ids = {record.token_id for record in ranked}

        rows: List[dict] = []
        for record in ranked:
            if record.liquidity >= self.min_listing_liquidity:
                rows.append(self._row(record, volumes, has_market_cap=True))

        # Visible but unranked: validated tokens outside the market cap ranking
        for record in enhanced:
            if record.token_id in ranked_ids or record.error:
                continue
            if not (record.validation and record.validation.valid):
                continue
            if record.price > 0 and record.liquidity >= self.min_listing_liquidity:
                rows.append(self._row(record, volumes, has_market_cap=False))

        rows.sort(key=lambda row: (
            not row["has_market_cap"],
            -(row["market_cap"] or 0) if row["has_market_cap"] else 0,
            row["ticker"]
        ))

        listing = [TokenListItem(rank=index + 1, **row) for index, row in enumerate(rows)]
        logger.info("Built token listing: %d tokens (%d ranked)", len(listing), len(ranked_ids))
        return listing

    @staticmethod
    def _row(record: TokenRecord, volumes: Dict[str, VolumeEntry], has_market_cap: bool) -> dict:
        volume = volumes.get(record.token_id)
        ticker = record.ticker or "UNKNOWN"
        return {
            "token_id": record.token_id,
            "ticker": ticker,
            "name": record.display_name or ticker,
            "market_cap": record.market_cap or None,
            "price": record.price or None,
            "liquidity": record.liquidity or None,
            "tvl": record.tvl or None,
            "pool_count": record.pool_count,
            "trust_score": record.trust_score,
            "has_market_cap": has_market_cap,
            "volume": volume.volume_in_ada if volume else 0.0,
            "volume_in_token": volume.volume_in_token if volume else 0.0,
            "order_count": volume.order_count if volume else 0,
        }

    async def top_by_market_cap(self, limit: int = 50) -> List[TokenListItem]:
        return [t for t in await self.list_tokens() if t.has_market_cap][:limit]

    async def top_by_tvl(self, limit: int = 50) -> List[TokenListItem]:
        tokens = [t for t in await self.list_tokens() if t.tvl and t.tvl > 0]
        return sorted(tokens, key=lambda t: -t.tvl)[:limit]

    async def top_by_volume(self, limit: int = 50) -> List[TokenListItem]:
        return sorted(await self.list_tokens(), key=lambda t: -t.volume)[:limit]

    async def search(self, query: str) -> List[TokenListItem]:
        query = (query or "").strip().lower()
        if not query:
            return []
        return [
            t for t in await self.list_tokens()
            if query in t.ticker.lower() or query in t.name.lower()
        ]

    async def get_token(self, token_id: str) -> Optional[TokenDetail]:
        token = next((t for t in await self.list_tokens() if t.token_id == token_id), None)
        if token is None:
            return None

        return TokenDetail(
            **token.model_dump(),
            detailed=await self.store.load_enhanced_token(token_id),
            volume_details=await self.volume_service.get_token_volume(token_id)
        )

    async def stats(self) -> TokenStats:
        tokens = await self.list_tokens()
        with_market_cap = [t for t in tokens if t.has_market_cap]

        return TokenStats(
            total=len(tokens),
            with_market_cap=len(with_market_cap),
            without_market_cap=len(tokens) - len(with_market_cap),
            with_liquidity=sum(1 for t in tokens if t.liquidity and t.liquidity > 0),
            high_trust=sum(
                1 for t in tokens
                if t.trust_score and t.trust_score >= self.thresholds.high_trust_threshold
            ),
            market_cap_ranges=RangeCounts.from_values(
                t.market_cap for t in with_market_cap if t.market_cap
            ),
            liquidity_ranges=RangeCounts.from_values(
                t.liquidity for t in tokens if t.liquidity and t.liquidity > 0
            ),
            volume=await self.volume_service.stats()
        )

    def clear_cache(self) -> None:
        logger.info("Clearing token listing cache")
        self.cache.invalidate()
