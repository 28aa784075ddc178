"""Flat-file JSON storage backend."""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from cardano_token_api.core.errors import StoreError
from cardano_token_api.core.models import (
    MarketCapReport,
    RawTokenRecord,
    TokenRecord,
    VolumeSnapshot,
)
from cardano_token_api.storage.base_store import TokenStore

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

SUMMARY_SUFFIX = "_summary.json"
ENHANCED_SUFFIX = "_enhanced_refined.json"
REPORT_FILE = "market_cap_report_refined.json"
VOLUME_FILE = "token_volumes.json"


def _write_atomic(path: Path, payload: str) -> None:
    """Write via a temp file in the same directory, then rename over the target."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(payload)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def _read_model(path: Path, model: Type[M]) -> Optional[M]:
    try:
        return model.model_validate_json(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValidationError, ValueError) as e:
        logger.error("Error loading %s: %s", path.name, e)
        return None


class FileTokenStore(TokenStore):
    """
    JSON files under a data directory:

        <data_dir>/summaries/<token_id>_summary.json          raw supply data
        <data_dir>/summaries/<token_id>_enhanced_refined.json enriched record
        <data_dir>/market_cap_report_refined.json             published report
        <data_dir>/token_volumes.json                         24h volume snapshot
    """

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)
        self.summaries_dir = self.data_dir / "summaries"

    # ===== Raw summaries =====

    async def load_all_token_records(self) -> List[RawTokenRecord]:
        return await asyncio.to_thread(self._load_all_summaries)

    def _load_all_summaries(self) -> List[RawTokenRecord]:
        if not self.summaries_dir.is_dir():
            logger.error("Summaries directory %s not found", self.summaries_dir)
            return []

        tokens = []
        for path in sorted(self.summaries_dir.glob(f"*{SUMMARY_SUFFIX}")):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                if isinstance(data, dict) and data.get("token_id"):
                    tokens.append(RawTokenRecord.model_validate(data))
            except (OSError, ValueError, ValidationError) as e:
                logger.error("Error loading file %s: %s", path.name, e)

        logger.info("Loaded %d tokens from %s", len(tokens), self.summaries_dir)
        return tokens

    async def load_token_summary(self, token_id: str) -> Optional[RawTokenRecord]:
        path = self.summaries_dir / f"{token_id}{SUMMARY_SUFFIX}"
        return await asyncio.to_thread(_read_model, path, RawTokenRecord)

    # ===== Enriched records =====

    async def save_enhanced_token(self, record: TokenRecord) -> None:
        path = self.summaries_dir / f"{record.token_id}{ENHANCED_SUFFIX}"
        await self._save(path, record)

    async def load_enhanced_tokens(self) -> List[TokenRecord]:
        return await asyncio.to_thread(self._load_all_enhanced)

    def _load_all_enhanced(self) -> List[TokenRecord]:
        if not self.summaries_dir.is_dir():
            return []
        records = []
        for path in sorted(self.summaries_dir.glob(f"*{ENHANCED_SUFFIX}")):
            record = _read_model(path, TokenRecord)
            if record is not None:
                records.append(record)
        return records

    async def load_enhanced_token(self, token_id: str) -> Optional[TokenRecord]:
        path = self.summaries_dir / f"{token_id}{ENHANCED_SUFFIX}"
        return await asyncio.to_thread(_read_model, path, TokenRecord)

    # ===== Report / volume =====

    async def save_report(self, report: MarketCapReport) -> None:
        await self._save(self.data_dir / REPORT_FILE, report)

    async def load_report(self) -> Optional[MarketCapReport]:
        return await asyncio.to_thread(_read_model, self.data_dir / REPORT_FILE, MarketCapReport)

    async def save_volume_snapshot(self, snapshot: VolumeSnapshot) -> None:
        await self._save(self.data_dir / VOLUME_FILE, snapshot)

    async def load_volume_snapshot(self) -> Optional[VolumeSnapshot]:
        return await asyncio.to_thread(_read_model, self.data_dir / VOLUME_FILE, VolumeSnapshot)

    async def _save(self, path: Path, model: BaseModel) -> None:
        payload = model.model_dump_json(indent=2)
        try:
            await asyncio.to_thread(_write_atomic, path, payload)
        except OSError as e:
            raise StoreError(f"Failed to write {path}: {e}", source="file") from e
