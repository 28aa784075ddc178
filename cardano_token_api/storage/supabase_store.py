"""Supabase (PostgREST) storage backend over httpx."""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from cardano_token_api.core.config import Settings
from cardano_token_api.core.errors import StoreError
from cardano_token_api.core.models import (
    MarketCapReport,
    RawTokenRecord,
    TokenRecord,
    VolumeSnapshot,
)
from cardano_token_api.storage.base_store import TokenStore

logger = logging.getLogger(__name__)


class SupabaseTokenStore(TokenStore):
    """
    Tables (all keyed by text ids, payloads as jsonb):

        tokens(token_id, ticker, name, total_supply, circulating_supply)
        enhanced_tokens(token_id primary key, data jsonb, updated_at)
        market_cap_reports(generated_at, data jsonb)
        volume_snapshots(timestamp, data jsonb)
    """

    def __init__(
        self,
        config: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._config = config
        self._transport = transport
        self.rest_url = config.supabase_url.rstrip("/") + "/rest/v1"

    def _client(self) -> httpx.AsyncClient:
        key = self._config.supabase_key
        return httpx.AsyncClient(
            base_url=self.rest_url,
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
            },
            timeout=self._config.request_timeout_seconds,
            transport=self._transport,
        )

    async def _select(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        async with self._client() as client:
            response = await client.get(f"/{table}", params=params)
            response.raise_for_status()
            rows = response.json()
        return rows if isinstance(rows, list) else []

    async def _safe_select(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        try:
            return await self._select(table, params)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Supabase read from %s failed: %s", table, e)
            return []

    async def _write(self, table: str, row: Dict[str, Any], upsert: bool) -> None:
        headers = {"Prefer": "resolution=merge-duplicates" if upsert else "return=minimal"}
        try:
            async with self._client() as client:
                response = await client.post(f"/{table}", json=row, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise StoreError(f"Supabase write to {table} failed: {e}", source="supabase") from e

    # ===== Raw summaries =====

    async def load_all_token_records(self) -> List[RawTokenRecord]:
        rows = await self._safe_select(self._config.supabase_tokens_table, {"select": "*"})
        tokens = []
        for row in rows:
            try:
                tokens.append(RawTokenRecord.model_validate(row))
            except ValidationError as e:
                logger.error("Skipping malformed token row: %s", e)
        logger.info("Loaded %d tokens from Supabase", len(tokens))
        return tokens

    async def load_token_summary(self, token_id: str) -> Optional[RawTokenRecord]:
        rows = await self._safe_select(
            self._config.supabase_tokens_table,
            {"select": "*", "token_id": f"eq.{token_id}", "limit": "1"}
        )
        if not rows:
            return None
        try:
            return RawTokenRecord.model_validate(rows[0])
        except ValidationError as e:
            logger.error("Malformed token row for %s: %s", token_id, e)
            return None

    # ===== Enriched records =====

    async def save_enhanced_token(self, record: TokenRecord) -> None:
        await self._write(
            self._config.supabase_enhanced_table,
            {
                "token_id": record.token_id,
                "data": record.model_dump(mode="json"),
                "updated_at": record.updated_at.isoformat(),
            },
            upsert=True,
        )

    async def load_enhanced_tokens(self) -> List[TokenRecord]:
        rows = await self._safe_select(self._config.supabase_enhanced_table, {"select": "data"})
        return [record for record in (self._parse(row, TokenRecord) for row in rows) if record]

    async def load_enhanced_token(self, token_id: str) -> Optional[TokenRecord]:
        rows = await self._safe_select(
            self._config.supabase_enhanced_table,
            {"select": "data", "token_id": f"eq.{token_id}", "limit": "1"}
        )
        return self._parse(rows[0], TokenRecord) if rows else None

    # ===== Report / volume =====

    async def save_report(self, report: MarketCapReport) -> None:
        await self._write(
            self._config.supabase_reports_table,
            {"generated_at": report.generated_at.isoformat(), "data": report.model_dump(mode="json")},
            upsert=False,
        )

    async def load_report(self) -> Optional[MarketCapReport]:
        rows = await self._safe_select(
            self._config.supabase_reports_table,
            {"select": "data", "order": "generated_at.desc", "limit": "1"}
        )
        return self._parse(rows[0], MarketCapReport) if rows else None

    async def save_volume_snapshot(self, snapshot: VolumeSnapshot) -> None:
        await self._write(
            self._config.supabase_volume_table,
            {"timestamp": snapshot.timestamp.isoformat(), "data": snapshot.model_dump(mode="json")},
            upsert=False,
        )

    async def load_volume_snapshot(self) -> Optional[VolumeSnapshot]:
        rows = await self._safe_select(
            self._config.supabase_volume_table,
            {"select": "data", "order": "timestamp.desc", "limit": "1"}
        )
        return self._parse(rows[0], VolumeSnapshot) if rows else None

    @staticmethod
    def _parse(row: Dict[str, Any], model):
        try:
            return model.model_validate(row.get("data") or {})
        except ValidationError as e:
            logger.error("Malformed %s row: %s", model.__name__, e)
            return None
