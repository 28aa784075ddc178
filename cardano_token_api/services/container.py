"""
Service wiring shared by the API process and the CLI.
"""
from dataclasses import dataclass
from typing import Optional

from cardano_token_api.core.cache import TTLCache
from cardano_token_api.core.config import Settings
from cardano_token_api.core.trust_lists import TrustLists, load_trust_lists
from cardano_token_api.services.dexhunter_client import DexHunterClient
from cardano_token_api.services.enrichment import BatchEnrichmentOrchestrator, TokenEnricher
from cardano_token_api.services.market_cap_validator import MarketCapValidator
from cardano_token_api.services.price_resolver import WeightedPriceResolver
from cardano_token_api.services.price_source import PriceSource
from cardano_token_api.services.rate_limiter import BatchRateLimiter
from cardano_token_api.services.scheduler import RefreshScheduler
from cardano_token_api.services.token_service import TokenService
from cardano_token_api.services.trust_scorer import TrustScorer
from cardano_token_api.services.volume_service import VolumeService
from cardano_token_api.storage.base_store import TokenStore
from cardano_token_api.storage.factory import build_token_store


@dataclass
class ServiceContainer:
    """Long-lived services for one process."""
    config: Settings
    store: TokenStore
    source: PriceSource
    orchestrator: BatchEnrichmentOrchestrator
    token_service: TokenService
    volume_service: VolumeService
    scheduler: RefreshScheduler


def build_services(
    config: Settings,
    store: Optional[TokenStore] = None,
    source: Optional[PriceSource] = None,
    trust_lists: Optional[TrustLists] = None,
    rate_limiter: Optional[BatchRateLimiter] = None
) -> ServiceContainer:
    """Build every service from settings; collaborators can be overridden for tests."""
    thresholds = config.scoring_thresholds()
    store = store or build_token_store(config)
    source = source or DexHunterClient(
        base_url=config.dexhunter_base_url,
        partner_id=config.dexhunter_partner_id,
        timeout=config.request_timeout_seconds
    )
    if trust_lists is None:
        trust_lists = load_trust_lists(config.trust_lists_path)

    enricher = TokenEnricher(
        source,
        WeightedPriceResolver(source, thresholds),
        TrustScorer(trust_lists, thresholds),
        MarketCapValidator(thresholds)
    )
    orchestrator = BatchEnrichmentOrchestrator(
        store,
        enricher,
        rate_limiter or BatchRateLimiter(config.batch_size, config.batch_delay_seconds),
        thresholds
    )
    volume_service = VolumeService(
        source,
        store,
        max_pages=config.volume_max_pages,
        per_page=config.volume_per_page,
        page_delay_seconds=config.volume_page_delay_seconds,
        cache_ttl_seconds=config.volume_cache_ttl_seconds
    )
    token_service = TokenService(
        store,
        volume_service,
        min_listing_liquidity=config.min_listing_liquidity,
        cache=TTLCache(config.cache_ttl_seconds),
        thresholds=thresholds
    )
    scheduler = RefreshScheduler(
        orchestrator,
        token_service,
        config.refresh_interval_minutes,
        volume_service=volume_service,
        volume_interval_minutes=config.volume_refresh_interval_minutes
    )

    return ServiceContainer(
        config=config,
        store=store,
        source=source,
        orchestrator=orchestrator,
        token_service=token_service,
        volume_service=volume_service,
        scheduler=scheduler
    )
