"""Abstract token store; flat files and Supabase implement the same contract."""

from abc import ABC, abstractmethod
from typing import List, Optional

from cardano_token_api.core.models import (
    MarketCapReport,
    RawTokenRecord,
    TokenRecord,
    VolumeSnapshot,
)


class TokenStore(ABC):
    """
    Contract for all storage backends.

    Loads never raise: an unreadable backend yields empty results and is
    logged. Saves raise StoreError so the enrichment pass can fail as a whole.
    """

    @abstractmethod
    async def load_all_token_records(self) -> List[RawTokenRecord]:
        """All raw token summaries (supply data) awaiting enrichment."""
        ...

    @abstractmethod
    async def load_token_summary(self, token_id: str) -> Optional[RawTokenRecord]:
        ...

    @abstractmethod
    async def save_enhanced_token(self, record: TokenRecord) -> None:
        ...

    @abstractmethod
    async def load_enhanced_tokens(self) -> List[TokenRecord]:
        ...

    @abstractmethod
    async def load_enhanced_token(self, token_id: str) -> Optional[TokenRecord]:
        ...

    @abstractmethod
    async def save_report(self, report: MarketCapReport) -> None:
        """Replace the published report."""
        ...

    @abstractmethod
    async def load_report(self) -> Optional[MarketCapReport]:
        ...

    @abstractmethod
    async def save_volume_snapshot(self, snapshot: VolumeSnapshot) -> None:
        ...

    @abstractmethod
    async def load_volume_snapshot(self) -> Optional[VolumeSnapshot]:
        ...
