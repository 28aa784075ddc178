"""
Pydantic models for the scoring pipeline and persisted records.
"""
from typing import Optional, List, Dict
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone

from .config import ScoringThresholds
from .enums import TrustLevel


def utcnow() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


# ===== Price source data =====

class PoolQuote(BaseModel):
    """One liquidity pool's state for a token/ADA pair."""
    dex: str = "unknown"
    base_amount: float = 0.0   # ADA side
    quote_amount: float = 0.0  # token side

    @property
    def is_valid(self) -> bool:
        return self.base_amount > 0 and self.quote_amount > 0

    @property
    def price(self) -> Optional[float]:
        """ADA per token; None when either side is empty."""
        if not self.is_valid:
            return None
        return self.base_amount / self.quote_amount


class TokenMetadata(BaseModel):
    """Token information returned by the price source."""
    token_id: str
    ticker: Optional[str] = None
    token_ascii: Optional[str] = None
    creation_date: Optional[datetime] = None
    is_verified: bool = False

    def age_days(self, now: Optional[datetime] = None) -> int:
        if self.creation_date is None:
            return 0
        now = now or utcnow()
        created = self.creation_date
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return max(0, (now - created).days)


class RawTokenRecord(BaseModel):
    """Token summary as loaded from the store, before enrichment."""
    model_config = ConfigDict(extra="allow")

    token_id: str
    ticker: Optional[str] = None
    name: Optional[str] = None
    total_supply: float = 0.0
    circulating_supply: float = 0.0


# ===== Pipeline outputs =====

class PriceAssessment(BaseModel):
    """Output of the weighted price resolver for one token."""
    model_config = ConfigDict(frozen=True)

    weighted_price: float = 0.0
    total_liquidity: float = 0.0
    pool_count: int = 0
    original_pool_count: int = 0
    outliers_filtered: bool = False
    median_fallback_used: bool = False
    suspicious_concentration: bool = False
    price_from_fallback_endpoint: bool = False
    no_pools_found: bool = False
    empty_suspicious_pools: bool = False
    error: Optional[str] = None


class Adjustment(BaseModel):
    """A single scoring rule that fired, with its signed point delta."""
    reason: str
    points: int


class TrustAssessment(BaseModel):
    """Output of the trust scorer for one token."""
    score: int = Field(..., ge=0)
    trust_level: TrustLevel
    is_honeypot: bool
    penalties: List[Adjustment] = Field(default_factory=list)
    bonuses: List[Adjustment] = Field(default_factory=list)
    price_from_fallback_endpoint: bool = False


class ValidationResult(BaseModel):
    """Market cap validation outcome."""
    valid: bool = True
    reasons: List[str] = Field(default_factory=list)


class TokenRecord(BaseModel):
    """Enriched token, persisted per pass and served by the API."""
    token_id: str
    ticker: Optional[str] = None
    display_name: Optional[str] = None

    price: float = 0.0
    market_cap: float = 0.0
    fully_diluted_value: float = 0.0
    liquidity: float = 0.0
    tvl: float = 0.0  # 2x the ADA-side liquidity
    circulating_supply: float = 0.0
    total_supply: float = 0.0

    pool_count: int = 0
    original_pool_count: int = 0
    outliers_filtered: bool = False
    median_fallback_used: bool = False
    suspicious_concentration: bool = False
    price_from_fallback_endpoint: bool = False
    mcap_liquidity_ratio: Optional[float] = None
    token_age_days: int = 0

    trust_assessment: Optional[TrustAssessment] = None
    honeypot_risk: bool = False
    validation: Optional[ValidationResult] = None

    error: Optional[str] = None
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def trust_score(self) -> Optional[int]:
        return self.trust_assessment.score if self.trust_assessment else None

    @classmethod
    def degraded(cls, raw: RawTokenRecord, error: str) -> "TokenRecord":
        """Record for a token whose enrichment raised."""
        return cls(
            token_id=raw.token_id,
            ticker=raw.ticker,
            display_name=raw.name or raw.ticker,
            circulating_supply=raw.circulating_supply,
            total_supply=raw.total_supply,
            error=error,
        )


class ValidationParameters(BaseModel):
    """Thresholds active when a report was generated."""
    min_liquidity_threshold: float
    max_mcap_liquidity_ratio: float
    min_pools_required: int
    min_reasonable_price: float
    max_reasonable_price: float
    moderate_trust_threshold: int

    @classmethod
    def from_thresholds(cls, thresholds: ScoringThresholds) -> "ValidationParameters":
        return cls(
            min_liquidity_threshold=thresholds.min_liquidity_threshold,
            max_mcap_liquidity_ratio=thresholds.max_mcap_liquidity_ratio,
            min_pools_required=thresholds.min_pools_required,
            min_reasonable_price=thresholds.min_reasonable_price,
            max_reasonable_price=thresholds.max_reasonable_price,
            moderate_trust_threshold=thresholds.moderate_trust_threshold,
        )


class MarketCapReport(BaseModel):
    """Ranked snapshot, fully replaced on each enrichment pass."""
    generated_at: datetime = Field(default_factory=utcnow)

    total_tokens: int = 0
    tokens_with_market_cap: int = 0
    tokens_with_price: int = 0
    tokens_with_total_supply: int = 0
    tokens_with_circulating_supply: int = 0
    tokens_with_liquidity: int = 0
    tokens_with_filtered_outliers: int = 0
    potential_honeypot_tokens: int = 0
    high_trust_tokens: int = 0
    tokens_with_invalid_market_caps: int = 0
    tokens_with_valid_market_caps: int = 0
    failed_tokens: int = 0

    validation_parameters: ValidationParameters
    top_tokens_by_market_cap_valid: List[TokenRecord] = Field(default_factory=list)


# ===== Volume =====

class VolumeEntry(BaseModel):
    """24h trading volume for one token."""
    token_id: str
    name: Optional[str] = None
    volume_in_ada: float = 0.0
    volume_in_token: float = 0.0
    order_count: int = 0


class VolumeSnapshot(BaseModel):
    """Aggregated volume over a time window."""
    timestamp: datetime = Field(default_factory=utcnow)
    window_from: datetime
    window_to: datetime
    tokens: List[VolumeEntry] = Field(default_factory=list)

    @property
    def total_tokens(self) -> int:
        return len(self.tokens)

    def by_token(self) -> Dict[str, VolumeEntry]:
        return {entry.token_id: entry for entry in self.tokens}


class PassSummary(BaseModel):
    """Short description of the last enrichment pass, for status endpoints."""
    started_at: datetime
    finished_at: Optional[datetime] = None
    succeeded: bool = False
    total_tokens: int = 0
    valid_tokens: int = 0
    failed_tokens: int = 0
    error: Optional[str] = None
