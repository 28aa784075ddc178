"""
Batch Enrichment - drives price resolution, trust scoring and market cap
validation over the whole token set and publishes the ranked report.
"""
import asyncio
import logging
from typing import Iterable, List, Optional, Sequence

from cardano_token_api.core.config import ScoringThresholds
from cardano_token_api.core.errors import PassAlreadyRunning, StoreError
from cardano_token_api.core.models import (
    MarketCapReport,
    PassSummary,
    RawTokenRecord,
    TokenRecord,
    ValidationParameters,
    utcnow,
)
from cardano_token_api.services.market_cap_validator import MarketCapValidator
from cardano_token_api.services.price_resolver import WeightedPriceResolver
from cardano_token_api.services.price_source import PriceSource
from cardano_token_api.services.rate_limiter import BatchRateLimiter
from cardano_token_api.services.trust_scorer import TrustScorer
from cardano_token_api.storage.base_store import TokenStore

logger = logging.getLogger(__name__)


class TokenEnricher:
    """
    Full pipeline for one token: price -> market cap -> trust -> validation.
    """

    # Copycat check: a similar ticker elsewhere has real supply while this one
    # reports none yet claims a large, liquid market
    COPYCAT_MIN_MCAP = 1_000_000
    COPYCAT_MIN_LIQUIDITY = 100_000

    def __init__(
        self,
        source: PriceSource,
        resolver: WeightedPriceResolver,
        scorer: TrustScorer,
        validator: MarketCapValidator
    ):
        self.source = source
        self.resolver = resolver
        self.scorer = scorer
        self.validator = validator

    async def enrich(
        self,
        raw: RawTokenRecord,
        peers: Sequence[RawTokenRecord] = ()
    ) -> TokenRecord:
        metadata, assessment = await asyncio.gather(
            self.source.get_token_metadata(raw.token_id),
            self.resolver.resolve_price(raw.token_id)
        )

        circulating = raw.circulating_supply if raw.circulating_supply > 0 else 0.0
        supply = circulating or raw.total_supply or 0.0
        price = assessment.weighted_price
        liquidity = assessment.total_liquidity
        market_cap = price * supply
        token_age = metadata.age_days() if metadata else 0
        ticker = raw.ticker or (metadata.ticker if metadata else None)

        copycat = self.detect_copycat(raw, ticker, circulating, market_cap, liquidity, peers)

        trust = self.scorer.score_token(
            raw.token_id,
            assessment.pool_count,
            assessment.suspicious_concentration,
            liquidity,
            market_cap,
            circulating,
            ticker,
            token_age,
            assessment.price_from_fallback_endpoint
        )

        validation = self.validator.validate(
            market_cap,
            liquidity,
            trust,
            circulating_supply=circulating,
            no_pools_found=assessment.no_pools_found,
            empty_suspicious_pools=assessment.empty_suspicious_pools,
            supply_discrepancy=copycat
        )

        return TokenRecord(
            token_id=raw.token_id,
            ticker=ticker,
            display_name=raw.name or (metadata.token_ascii if metadata else None) or ticker,
            price=price,
            market_cap=market_cap,
            fully_diluted_value=price * (raw.total_supply or 0.0),
            liquidity=liquidity,
            tvl=liquidity * 2,
            circulating_supply=circulating,
            total_supply=raw.total_supply,
            pool_count=assessment.pool_count,
            original_pool_count=assessment.original_pool_count,
            outliers_filtered=assessment.outliers_filtered,
            median_fallback_used=assessment.median_fallback_used,
            suspicious_concentration=assessment.suspicious_concentration,
            price_from_fallback_endpoint=assessment.price_from_fallback_endpoint,
            mcap_liquidity_ratio=round(market_cap / liquidity, 2) if liquidity > 0 else None,
            token_age_days=token_age,
            trust_assessment=trust,
            honeypot_risk=trust.is_honeypot or copycat,
            validation=validation,
            error=assessment.error
        )

    def detect_copycat(
        self,
        raw: RawTokenRecord,
        ticker: Optional[str],
        circulating: float,
        market_cap: float,
        liquidity: float,
        peers: Iterable[RawTokenRecord]
    ) -> bool:
        if not ticker or circulating > 0:
            return False
        if market_cap <= self.COPYCAT_MIN_MCAP or liquidity <= self.COPYCAT_MIN_LIQUIDITY:
            return False

        for peer in peers:
            if peer.token_id == raw.token_id or not peer.ticker:
                continue
            similar = peer.ticker in ticker or ticker in peer.ticker
            if similar and peer.circulating_supply > 0:
                logger.warning(
                    "Potential copycat detected: %s (%s) might be copying %s",
                    ticker, raw.token_id, peer.ticker
                )
                return True
        return False


def build_report(
    records: Sequence[TokenRecord],
    thresholds: ScoringThresholds
) -> MarketCapReport:
    """
    Aggregate counters plus the valid ranking: market cap > 0 and trust
    score at or above the moderate threshold, largest market cap first.
    """
    moderate = thresholds.moderate_trust_threshold
    high = thresholds.high_trust_threshold

    def scored_at_least(record: TokenRecord, minimum: int) -> bool:
        return record.trust_score is not None and record.trust_score >= minimum

    valid = [r for r in records if r.market_cap > 0 and scored_at_least(r, moderate)]
    invalid = [r for r in records if r.market_cap > 0 and not scored_at_least(r, moderate)]
    valid.sort(key=lambda r: (-r.market_cap, r.token_id))

    return MarketCapReport(
        total_tokens=len(records),
        tokens_with_market_cap=sum(1 for r in records if r.market_cap > 0),
        tokens_with_price=sum(1 for r in records if r.price > 0),
        tokens_with_total_supply=sum(1 for r in records if r.total_supply > 0),
        tokens_with_circulating_supply=sum(1 for r in records if r.circulating_supply > 0),
        tokens_with_liquidity=sum(1 for r in records if r.liquidity > 0),
        tokens_with_filtered_outliers=sum(1 for r in records if r.outliers_filtered),
        potential_honeypot_tokens=sum(1 for r in records if r.honeypot_risk),
        high_trust_tokens=sum(1 for r in records if scored_at_least(r, high)),
        tokens_with_invalid_market_caps=len(invalid),
        tokens_with_valid_market_caps=len(valid),
        failed_tokens=sum(1 for r in records if r.error),
        validation_parameters=ValidationParameters.from_thresholds(thresholds),
        top_tokens_by_market_cap_valid=valid
    )


class BatchEnrichmentOrchestrator:
    """
    Runs enrichment passes in rate-limited batches.

    Only one pass runs at a time; a second caller gets PassAlreadyRunning.
    """

    def __init__(
        self,
        store: TokenStore,
        enricher: TokenEnricher,
        rate_limiter: Optional[BatchRateLimiter] = None,
        thresholds: Optional[ScoringThresholds] = None
    ):
        self.store = store
        self.enricher = enricher
        self.rate_limiter = rate_limiter or BatchRateLimiter()
        self.thresholds = thresholds or ScoringThresholds()
        self.last_summary: Optional[PassSummary] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_pass(self, token_ids: Optional[Sequence[str]] = None) -> MarketCapReport:
        if self._running:
            raise PassAlreadyRunning("An enrichment pass is already in progress")

        self._running = True
        summary = PassSummary(started_at=utcnow())
        try:
            tokens = await self.store.load_all_token_records()
            if token_ids is not None:
                wanted = set(token_ids)
                tokens = [t for t in tokens if t.token_id in wanted]

            records = await self.enrich_all(tokens)

            for record in records:
                await self.store.save_enhanced_token(record)

            report = build_report(records, self.thresholds)
            await self.store.save_report(report)

            summary.succeeded = True
            summary.total_tokens = report.total_tokens
            summary.valid_tokens = report.tokens_with_valid_market_caps
            summary.failed_tokens = report.failed_tokens
            logger.info(
                "Enrichment pass complete: %d tokens, %d valid, %d failed",
                report.total_tokens, report.tokens_with_valid_market_caps, report.failed_tokens
            )
            return report
        except StoreError as e:
            summary.error = e.message
            logger.error("Enrichment pass aborted, report left untouched: %s", e.message)
            raise
        finally:
            summary.finished_at = utcnow()
            self.last_summary = summary
            self._running = False

    async def enrich_all(self, tokens: List[RawTokenRecord]) -> List[TokenRecord]:
        """Enrich every token, batch by batch; failures become degraded records."""
        limiter = self.rate_limiter
        total_batches = limiter.batch_count(len(tokens))
        logger.info(
            "Processing %d tokens in %d batches of %d",
            len(tokens), total_batches, limiter.batch_size
        )

        results: List[TokenRecord] = []
        for number, batch in enumerate(limiter.batches(tokens), start=1):
            outcomes = await asyncio.gather(
                *(self.enricher.enrich(token, tokens) for token in batch),
                return_exceptions=True
            )

            failed = 0
            for token, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    logger.error("Failed to process token %s: %s", token.token_id, outcome)
                    results.append(TokenRecord.degraded(token, str(outcome)))
                    failed += 1
                else:
                    results.append(outcome)

            logger.info(
                "Batch %d/%d complete: %d successful, %d failed",
                number, total_batches, len(batch) - failed, failed
            )

            if number < total_batches:
                await limiter.pause()

        return results
