"""Shared fakes and fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest

from cardano_token_api.core.config import ScoringThresholds
from cardano_token_api.core.errors import StoreError, UpstreamError
from cardano_token_api.core.models import (
    MarketCapReport,
    PoolQuote,
    RawTokenRecord,
    TokenMetadata,
    TokenRecord,
    VolumeSnapshot,
)
from cardano_token_api.core.trust_lists import TrustLists
from cardano_token_api.services.price_source import PriceSource
from cardano_token_api.storage.base_store import TokenStore


# ---------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------


class FakePriceSource(PriceSource):
    """In-memory price source; values or exceptions are set per token."""

    def __init__(self) -> None:
        self.pools: Dict[str, Any] = {}
        self.fallback: Dict[Tuple[str, str], Any] = {}
        self.metadata: Dict[str, Any] = {}
        self.order_pages: List[Any] = []
        self.fallback_calls: List[Tuple[str, str]] = []
        self.order_page_calls: List[int] = []

    async def get_pools(self, token_id: str) -> List[PoolQuote]:
        value = self.pools.get(token_id, [])
        if isinstance(value, Exception):
            raise value
        return value

    async def get_fallback_price(self, token_id: str, quote_id: str) -> Optional[float]:
        self.fallback_calls.append((token_id, quote_id))
        value = self.fallback.get((token_id, quote_id))
        if isinstance(value, Exception):
            raise value
        return value

    async def get_token_metadata(self, token_id: str) -> Optional[TokenMetadata]:
        value = self.metadata.get(token_id)
        if isinstance(value, Exception):
            raise value
        return value

    async def get_global_orders(self, page: int, per_page: int) -> List[Dict[str, Any]]:
        self.order_page_calls.append(page)
        if page >= len(self.order_pages):
            return []
        value = self.order_pages[page]
        if isinstance(value, Exception):
            raise value
        return value


class InMemoryTokenStore(TokenStore):
    """Dict-backed store; set fail_saves to make every save raise StoreError."""

    def __init__(self, tokens: Optional[List[RawTokenRecord]] = None) -> None:
        self.tokens: List[RawTokenRecord] = list(tokens or [])
        self.enhanced: Dict[str, TokenRecord] = {}
        self.report: Optional[MarketCapReport] = None
        self.volume: Optional[VolumeSnapshot] = None
        self.fail_saves = False

    def _check(self) -> None:
        if self.fail_saves:
            raise StoreError("disk full", source="memory")

    async def load_all_token_records(self) -> List[RawTokenRecord]:
        return list(self.tokens)

    async def load_token_summary(self, token_id: str) -> Optional[RawTokenRecord]:
        return next((t for t in self.tokens if t.token_id == token_id), None)

    async def save_enhanced_token(self, record: TokenRecord) -> None:
        self._check()
        self.enhanced[record.token_id] = record

    async def load_enhanced_tokens(self) -> List[TokenRecord]:
        return list(self.enhanced.values())

    async def load_enhanced_token(self, token_id: str) -> Optional[TokenRecord]:
        return self.enhanced.get(token_id)

    async def save_report(self, report: MarketCapReport) -> None:
        self._check()
        self.report = report

    async def load_report(self) -> Optional[MarketCapReport]:
        return self.report

    async def save_volume_snapshot(self, snapshot: VolumeSnapshot) -> None:
        self._check()
        self.volume = snapshot

    async def load_volume_snapshot(self) -> Optional[VolumeSnapshot]:
        return self.volume


async def no_sleep(_seconds: float) -> None:
    return None


def pool(base: float, quote: float, dex: str = "minswap") -> PoolQuote:
    return PoolQuote(dex=dex, base_amount=base, quote_amount=quote)


def metadata(token_id: str, ticker: str, age_days: int) -> TokenMetadata:
    return TokenMetadata(
        token_id=token_id,
        ticker=ticker,
        token_ascii=ticker,
        creation_date=datetime.now(timezone.utc) - timedelta(days=age_days),
    )


# ---------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------


@pytest.fixture
def thresholds() -> ScoringThresholds:
    return ScoringThresholds()


@pytest.fixture
def source() -> FakePriceSource:
    return FakePriceSource()


@pytest.fixture
def store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


@pytest.fixture
def empty_lists() -> TrustLists:
    return TrustLists()


@pytest.fixture
def upstream_error() -> UpstreamError:
    return UpstreamError("boom", source="dexhunter")
