"""
Response schemas for v1 API endpoints.
Includes structured error handling.
"""
from typing import Optional, List, Iterable
from pydantic import BaseModel, Field
from datetime import datetime

from cardano_token_api.core.enums import ErrorCode
from cardano_token_api.core.models import TokenRecord, VolumeEntry, utcnow


# ===== Error Handling =====

class StructuredError(BaseModel):
    """Structured error body for failed requests."""
    code: ErrorCode
    message: str
    source: Optional[str] = Field(None, description="Which provider/service failed")
    retryable: bool = Field(False, description="Whether client should retry")
    timestamp: datetime = Field(default_factory=utcnow)


# ===== Token listings =====

class TokenListItem(BaseModel):
    """One row of a token listing; rank is derived at read time."""
    rank: int
    token_id: str
    ticker: str
    name: str
    market_cap: Optional[float] = None
    price: Optional[float] = None
    liquidity: Optional[float] = None
    tvl: Optional[float] = None
    pool_count: int = 0
    trust_score: Optional[int] = None
    has_market_cap: bool = False
    volume: float = 0.0
    volume_in_token: float = 0.0
    order_count: int = 0


class TokenDetail(TokenListItem):
    """Listing row plus the persisted enrichment and volume details."""
    detailed: Optional[TokenRecord] = None
    volume_details: Optional[VolumeEntry] = None


# ===== Statistics =====

class RangeCounts(BaseModel):
    """Histogram over order-of-magnitude buckets."""
    under_1k: int = 0
    under_10k: int = 0
    under_100k: int = 0
    under_1m: int = 0
    over_1m: int = 0

    @classmethod
    def from_values(cls, values: Iterable[float]) -> "RangeCounts":
        counts = cls()
        for value in values:
            if value < 1_000:
                counts.under_1k += 1
            elif value < 10_000:
                counts.under_10k += 1
            elif value < 100_000:
                counts.under_100k += 1
            elif value < 1_000_000:
                counts.under_1m += 1
            else:
                counts.over_1m += 1
        return counts


class VolumeStats(BaseModel):
    """24h volume aggregates."""
    timestamp: Optional[datetime] = None
    window_from: Optional[datetime] = None
    window_to: Optional[datetime] = None
    total_tokens_with_volume: int = 0
    total_volume_in_ada: float = 0.0
    total_order_count: int = 0
    volume_ranges: RangeCounts = Field(default_factory=RangeCounts)


class TokenStats(BaseModel):
    """Response for /v1/tokens/stats"""
    total: int
    with_market_cap: int
    without_market_cap: int
    with_liquidity: int
    high_trust: int
    timestamp: datetime = Field(default_factory=utcnow)
    market_cap_ranges: RangeCounts
    liquidity_ranges: RangeCounts
    volume: VolumeStats


# ===== Jobs =====

class RefreshResponse(BaseModel):
    """Response for /v1/refresh"""
    success: bool
    message: str
    total_tokens: int = 0
    valid_tokens: int = 0
    failed_tokens: int = 0
    generated_at: Optional[datetime] = None


class VolumeRefreshResponse(BaseModel):
    """Response for /v1/refresh/volume"""
    success: bool
    total_tokens: int
    window_from: datetime
    window_to: datetime


class StatusResponse(BaseModel):
    """Response for /v1/status"""
    pass_in_progress: bool
    last_pass_started_at: Optional[datetime] = None
    last_pass_finished_at: Optional[datetime] = None
    last_pass_succeeded: Optional[bool] = None
    last_pass_error: Optional[str] = None
    report_generated_at: Optional[datetime] = None
    listing_cache_age_seconds: Optional[float] = None
    refresh_interval_minutes: int = 0
    volume_refresh_in_progress: bool = False
    volume_refresh_interval_minutes: int = 0
    storage_backend: str
