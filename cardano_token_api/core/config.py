"""
Configuration management using Pydantic settings.
Loads from environment variables with validation.
"""
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

from cardano_token_api.core.enums import StorageBackend


class ScoringThresholds(BaseModel):
    """Thresholds shared by the price resolver, trust scorer and validator."""
    min_reasonable_price: float = 0.000001  # ADA per token
    max_reasonable_price: float = 1000.0    # ADA per token
    min_liquidity_threshold: float = 500.0  # ADA
    max_mcap_liquidity_ratio: float = 10_000.0
    min_pools_required: int = 3
    moderate_trust_threshold: int = 40
    high_trust_threshold: int = 80

    model_config = {"frozen": True}


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # DexHunter
    dexhunter_base_url: str = "https://api-us.dexhunterv3.app"
    dexhunter_partner_id: str = ""
    request_timeout_seconds: float = 15.0

    # Storage
    storage_backend: StorageBackend = StorageBackend.FILE
    data_dir: str = "./token_data"
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_tokens_table: str = "tokens"
    supabase_enhanced_table: str = "enhanced_tokens"
    supabase_reports_table: str = "market_cap_reports"
    supabase_volume_table: str = "volume_snapshots"

    # Batch enrichment
    batch_size: int = 10
    batch_delay_seconds: float = 2.0
    refresh_interval_minutes: int = 0  # 0 disables the background loop
    refresh_token: Optional[str] = None

    # Volume
    volume_max_pages: int = 100
    volume_per_page: int = 50
    volume_page_delay_seconds: float = 0.5
    volume_refresh_interval_minutes: int = 0  # 0 disables the background loop

    # Cache settings
    cache_ttl_seconds: int = 60
    volume_cache_ttl_seconds: int = 300

    # Scoring
    trust_lists_path: Optional[str] = None
    min_reasonable_price: float = 0.000001
    max_reasonable_price: float = 1000.0
    min_liquidity_threshold: float = 500.0
    max_mcap_liquidity_ratio: float = 10_000.0
    min_pools_required: int = 3
    moderate_trust_threshold: int = 40
    high_trust_threshold: int = 80
    min_listing_liquidity: float = 200.0

    # App settings
    app_name: str = "Cardano Token Metrics API"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    log_json: bool = False
    debug: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    def scoring_thresholds(self) -> ScoringThresholds:
        """Snapshot of the scoring thresholds for the core pipeline."""
        return ScoringThresholds(
            min_reasonable_price=self.min_reasonable_price,
            max_reasonable_price=self.max_reasonable_price,
            min_liquidity_threshold=self.min_liquidity_threshold,
            max_mcap_liquidity_ratio=self.max_mcap_liquidity_ratio,
            min_pools_required=self.min_pools_required,
            moderate_trust_threshold=self.moderate_trust_threshold,
            high_trust_threshold=self.high_trust_threshold,
        )


settings = Settings()
