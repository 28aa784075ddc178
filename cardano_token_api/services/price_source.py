"""
Price/liquidity source interface consumed by the scoring pipeline.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from cardano_token_api.core.models import PoolQuote, TokenMetadata

ADA = "ADA"
LOVELACE_ID = "000000000000000000000000000000000000000000000000000000006c6f76656c616365"


class PriceSource(ABC):
    """Contract for DEX aggregator clients."""

    @abstractmethod
    async def get_pools(self, token_id: str) -> List[PoolQuote]:
        """
        Liquidity pools for the (token, ADA) pair.
        Returns an empty list when the upstream answer is empty or malformed;
        raises UpstreamError when the request itself fails.
        """
        ...

    @abstractmethod
    async def get_fallback_price(self, token_id: str, quote_id: str) -> Optional[float]:
        """Aggregated average price of token_id quoted in quote_id, if known."""
        ...

    @abstractmethod
    async def get_token_metadata(self, token_id: str) -> Optional[TokenMetadata]:
        """Token info (ticker, creation date); None when unavailable."""
        ...

    @abstractmethod
    async def get_global_orders(self, page: int, per_page: int) -> List[Dict[str, Any]]:
        """One page of completed swap orders, newest first."""
        ...
