"""
DexHunter API client.
Fetches Cardano DEX pools, average prices, token info and swap orders.
"""
import logging
import httpx
from datetime import datetime
from typing import Dict, List, Optional, Any
from cardano_token_api.core.config import settings
from cardano_token_api.core.errors import UpstreamError
from cardano_token_api.core.models import PoolQuote, TokenMetadata
from cardano_token_api.services.price_source import ADA, PriceSource

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


class DexHunterClient(PriceSource):
    """Client for the DexHunter aggregator API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        partner_id: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url or settings.dexhunter_base_url
        self.partner_id = partner_id if partner_id is not None else settings.dexhunter_partner_id
        self.timeout = timeout or settings.request_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Content-Type": "application/json",
                "X-Partner-Id": self.partner_id
            },
            timeout=self.timeout,
            transport=self._transport
        )

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Perform a request and decode JSON, mapping failures to UpstreamError."""
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as e:
            raise UpstreamError(f"DexHunter timed out on {path}", source="dexhunter") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"DexHunter HTTP error on {path}: {str(e)}", source="dexhunter") from e
        except ValueError as e:
            raise UpstreamError(f"DexHunter returned invalid JSON on {path}", source="dexhunter") from e

    async def get_pools(self, token_id: str) -> List[PoolQuote]:
        """
        Fetch all pools pairing the token with ADA.

        DexHunter reports token_1 as the ADA side and token_2 as the token side.
        """
        data = await self._request("GET", f"/stats/pools/{ADA}/{token_id}")

        if not isinstance(data, list):
            logger.warning("Malformed pool list for %s: %s", token_id, type(data).__name__)
            return []

        pools = []
        for pool in data:
            if not isinstance(pool, dict):
                continue
            pools.append(PoolQuote(
                dex=str(pool.get("dex") or "unknown"),
                base_amount=_to_float(pool.get("token_1_amount")),
                quote_amount=_to_float(pool.get("token_2_amount"))
            ))
        return pools

    async def get_fallback_price(self, token_id: str, quote_id: str) -> Optional[float]:
        """
        Average price endpoint.
        token->ADA answers with price_ba, ADA->token with price_ab.
        """
        data = await self._request("GET", f"/swap/averagePrice/{token_id}/{quote_id}")
        if not isinstance(data, dict):
            return None

        field = "price_ab" if token_id == ADA else "price_ba"
        price = _to_float(data.get(field))
        return price if price > 0 else None

    async def get_token_metadata(self, token_id: str) -> Optional[TokenMetadata]:
        try:
            data = await self._request("GET", f"/swap/token/{token_id}")
        except UpstreamError as e:
            logger.warning("Token info unavailable for %s: %s", token_id, e.message)
            return None

        if not isinstance(data, dict):
            return None

        creation_date = None
        raw_date = data.get("creation_date")
        if raw_date:
            try:
                creation_date = datetime.fromisoformat(str(raw_date).replace("Z", "+00:00"))
            except ValueError:
                logger.debug("Unparseable creation_date for %s: %r", token_id, raw_date)

        return TokenMetadata(
            token_id=token_id,
            ticker=data.get("ticker"),
            token_ascii=data.get("token_ascii"),
            creation_date=creation_date,
            is_verified=bool(data.get("is_verified", False))
        )

    async def get_global_orders(self, page: int, per_page: int) -> List[Dict[str, Any]]:
        payload = {
            "page": page,
            "perPage": per_page,
            "filters": [
                {"filterType": "STATUS", "values": ["COMPLETE"]}
            ],
            "orderSorts": "STARTTIME",
            "sortDirection": "DESC"
        }
        data = await self._request("POST", "/swap/globalOrders", json=payload)
        if not isinstance(data, dict):
            return []
        orders = data.get("orders") or []
        return [order for order in orders if isinstance(order, dict)]
