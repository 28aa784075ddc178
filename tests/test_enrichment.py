"""Tests for single-token enrichment and batch passes."""

from __future__ import annotations

import asyncio
from typing import List

import pytest

from cardano_token_api.core.config import ScoringThresholds
from cardano_token_api.core.enums import TrustLevel
from cardano_token_api.core.errors import PassAlreadyRunning, StoreError
from cardano_token_api.core.models import RawTokenRecord, TokenRecord, TrustAssessment
from cardano_token_api.core.trust_lists import TrustLists
from cardano_token_api.services.enrichment import (
    BatchEnrichmentOrchestrator,
    TokenEnricher,
    build_report,
)
from cardano_token_api.services.market_cap_validator import MarketCapValidator
from cardano_token_api.services.price_resolver import WeightedPriceResolver
from cardano_token_api.services.rate_limiter import BatchRateLimiter
from cardano_token_api.services.trust_scorer import TrustScorer

from conftest import FakePriceSource, InMemoryTokenStore, metadata, no_sleep, pool


def make_enricher(source: FakePriceSource, lists: TrustLists = TrustLists()) -> TokenEnricher:
    thresholds = ScoringThresholds()
    return TokenEnricher(
        source,
        WeightedPriceResolver(source, thresholds),
        TrustScorer(lists, thresholds),
        MarketCapValidator(thresholds),
    )


def raw(token_id: str, ticker: str, circulating: float = 1e6) -> RawTokenRecord:
    return RawTokenRecord(
        token_id=token_id,
        ticker=ticker,
        name=ticker.title(),
        total_supply=circulating * 2,
        circulating_supply=circulating,
    )


def scored(token_id: str, market_cap: float, score: int) -> TokenRecord:
    return TokenRecord(
        token_id=token_id,
        price=1.0,
        market_cap=market_cap,
        trust_assessment=TrustAssessment(score=score, trust_level=TrustLevel.GOOD, is_honeypot=False),
    )


# ---------------------------------------------------------------
# TokenEnricher
# ---------------------------------------------------------------


class TestTokenEnricher:
    @pytest.mark.asyncio
    async def test_three_pool_token_end_to_end(self, source: FakePriceSource) -> None:
        source.pools["snek"] = [pool(1000, 1000 / 0.5), pool(2000, 2000 / 0.6), pool(500, 500 / 0.55)]
        source.metadata["snek"] = metadata("snek", "SNEK", 400)

        record = await make_enricher(source).enrich(raw("snek", "SNEK"))

        expected_price = (0.5 * 1000 + 0.6 * 2000 + 0.55 * 500) / 3500
        assert record.price == pytest.approx(expected_price)
        assert record.market_cap == pytest.approx(expected_price * 1e6)
        assert record.fully_diluted_value == pytest.approx(expected_price * 2e6)
        assert record.liquidity == pytest.approx(3500)
        assert record.tvl == pytest.approx(7000)
        assert record.pool_count == 3
        assert record.suspicious_concentration is False
        assert record.token_age_days == 400
        assert record.mcap_liquidity_ratio == pytest.approx(round(expected_price * 1e6 / 3500, 2))

        trust = record.trust_assessment
        assert trust.score == 125
        assert trust.trust_level == TrustLevel.HIGH
        assert trust.is_honeypot is False
        assert [b.reason for b in trust.bonuses] == [
            "Good number of liquidity pools (3)",
            "Token has existed for more than a year",
        ]
        assert trust.penalties == []
        assert record.validation.valid is True
        assert record.validation.reasons == []
        assert record.honeypot_risk is False

    @pytest.mark.asyncio
    async def test_no_liquidity_gives_zero_market_cap(self, source: FakePriceSource) -> None:
        record = await make_enricher(source).enrich(raw("ghost", "GHOST"))
        assert record.price == 0
        assert record.market_cap == 0
        assert record.mcap_liquidity_ratio is None
        assert record.trust_assessment.is_honeypot is True

    @pytest.mark.asyncio
    async def test_ticker_falls_back_to_metadata(self, source: FakePriceSource) -> None:
        source.metadata["tok"] = metadata("tok", "META", 10)
        record = await make_enricher(source).enrich(RawTokenRecord(token_id="tok"))
        assert record.ticker == "META"
        assert record.display_name == "META"

    @pytest.mark.asyncio
    async def test_copycat_of_supplied_peer(self, source: FakePriceSource) -> None:
        source.pools["fake"] = [pool(150_000, 1_000), pool(150_000, 1_000), pool(150_000, 1_000)]
        copy = RawTokenRecord(token_id="fake", ticker="HOSKY2", total_supply=1e6)
        original = raw("real", "HOSKY")

        record = await make_enricher(source).enrich(copy, peers=[copy, original])

        assert record.honeypot_risk is True
        assert record.validation.valid is False


# ---------------------------------------------------------------
# Report
# ---------------------------------------------------------------


class TestBuildReport:
    def test_ranking_filters_and_orders(self, thresholds) -> None:
        records = [
            scored("b", 500.0, 60),
            scored("a", 500.0, 60),
            scored("low", 9_000.0, 39),
            scored("big", 1_000.0, 90),
            scored("zero", 0.0, 90),
        ]
        report = build_report(records, thresholds)

        assert [r.token_id for r in report.top_tokens_by_market_cap_valid] == ["big", "a", "b"]
        assert report.tokens_with_valid_market_caps == 3
        assert report.tokens_with_invalid_market_caps == 1
        assert report.high_trust_tokens == 2
        assert report.total_tokens == 5
        assert report.validation_parameters.moderate_trust_threshold == 40


# ---------------------------------------------------------------
# BatchEnrichmentOrchestrator
# ---------------------------------------------------------------


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def make_orchestrator(
    store: InMemoryTokenStore,
    source: FakePriceSource,
    batch_size: int = 10,
    sleep=no_sleep,
) -> BatchEnrichmentOrchestrator:
    return BatchEnrichmentOrchestrator(
        store,
        make_enricher(source),
        BatchRateLimiter(batch_size, 2.0, sleep=sleep),
        ScoringThresholds(),
    )


class TestOrchestrator:
    @pytest.mark.asyncio
    async def test_pass_publishes_report(self, source: FakePriceSource) -> None:
        store = InMemoryTokenStore([raw("snek", "SNEK"), raw("ghost", "GHOST")])
        source.pools["snek"] = [pool(1000, 2000), pool(2000, 4000), pool(500, 1000)]
        source.metadata["snek"] = metadata("snek", "SNEK", 400)

        report = await make_orchestrator(store, source).run_pass()

        assert store.report is report
        assert set(store.enhanced) == {"snek", "ghost"}
        assert [r.token_id for r in report.top_tokens_by_market_cap_valid] == ["snek"]

    @pytest.mark.asyncio
    async def test_failed_token_becomes_degraded_record(self, source: FakePriceSource) -> None:
        store = InMemoryTokenStore([raw("ok", "OK"), raw("broken", "BRK")])
        source.metadata["broken"] = RuntimeError("unexpected payload")

        orchestrator = make_orchestrator(store, source)
        report = await orchestrator.run_pass()

        broken = store.enhanced["broken"]
        assert broken.error == "unexpected payload"
        assert broken.price == 0 and broken.market_cap == 0
        assert broken.trust_assessment is None
        assert report.failed_tokens == 1
        assert orchestrator.last_summary.succeeded is True

    @pytest.mark.asyncio
    async def test_pauses_between_batches_only(self, source: FakePriceSource) -> None:
        store = InMemoryTokenStore([raw(f"t{i:02d}", f"T{i:02d}") for i in range(25)])
        sleep = RecordingSleep()

        await make_orchestrator(store, source, batch_size=10, sleep=sleep).run_pass()

        assert sleep.calls == [2.0, 2.0]
        assert len(store.enhanced) == 25

    @pytest.mark.asyncio
    async def test_subset_of_tokens(self, source: FakePriceSource) -> None:
        store = InMemoryTokenStore([raw("a", "AAA"), raw("b", "BBB")])
        report = await make_orchestrator(store, source).run_pass(["b"])
        assert report.total_tokens == 1
        assert set(store.enhanced) == {"b"}

    @pytest.mark.asyncio
    async def test_second_pass_is_rejected_while_running(self, source: FakePriceSource) -> None:
        release = asyncio.Event()

        class SlowStore(InMemoryTokenStore):
            async def load_all_token_records(self):
                await release.wait()
                return await super().load_all_token_records()

        orchestrator = make_orchestrator(SlowStore([raw("a", "AAA")]), source)
        first = asyncio.create_task(orchestrator.run_pass())
        await asyncio.sleep(0)

        assert orchestrator.is_running is True
        with pytest.raises(PassAlreadyRunning):
            await orchestrator.run_pass()

        release.set()
        await first
        assert orchestrator.is_running is False

    @pytest.mark.asyncio
    async def test_store_failure_keeps_previous_report(self, source: FakePriceSource, thresholds) -> None:
        store = InMemoryTokenStore([raw("a", "AAA")])
        previous = build_report([scored("old", 1_000.0, 90)], thresholds)
        store.report = previous
        store.fail_saves = True

        orchestrator = make_orchestrator(store, source)
        with pytest.raises(StoreError):
            await orchestrator.run_pass()

        assert store.report is previous
        assert orchestrator.is_running is False
        assert orchestrator.last_summary.succeeded is False
        assert orchestrator.last_summary.error == "disk full"
