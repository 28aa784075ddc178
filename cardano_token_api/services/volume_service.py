"""
Volume Service - 24h trading volume per token from completed swap orders.
"""
import asyncio
import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional

from cardano_token_api.api.v1.schemas.responses import RangeCounts, VolumeStats
from cardano_token_api.core.cache import TTLCache
from cardano_token_api.core.errors import PassAlreadyRunning, UpstreamError
from cardano_token_api.core.models import TokenMetadata, VolumeEntry, VolumeSnapshot, utcnow
from cardano_token_api.services.price_source import LOVELACE_ID, PriceSource
from cardano_token_api.services.rate_limiter import BatchRateLimiter
from cardano_token_api.storage.base_store import TokenStore

logger = logging.getLogger(__name__)

VOLUME_WINDOW = timedelta(hours=24)
UNKNOWN_TOKEN_NAME = "Unknown"


def _amount(order: Dict[str, Any], key: str) -> float:
    try:
        return float(order.get(key) or 0)
    except (TypeError, ValueError):
        return 0.0


def _order_time(order: Dict[str, Any]) -> Optional[datetime]:
    raw = order.get("submission_time")
    if not raw:
        return None
    try:
        return datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return None


def aggregate_volumes(orders: List[Dict[str, Any]]) -> List[VolumeEntry]:
    """
    Per-token volume over a list of completed orders.

    Each side of an order counts once for its token. ADA volume is only
    known when the counter-asset is lovelace. Sorted by ADA volume, largest first.
    """
    volume_ada: Dict[str, float] = defaultdict(float)
    volume_token: Dict[str, float] = defaultdict(float)
    order_count: Dict[str, int] = defaultdict(int)

    for order in orders:
        token_in = order.get("token_id_in")
        token_out = order.get("token_id_out")
        if not token_in or not token_out:
            continue

        amount_in = _amount(order, "amount_in")
        amount_out = _amount(order, "actual_out_amount")

        # Token sold
        if token_in != LOVELACE_ID:
            order_count[token_in] += 1
            volume_token[token_in] += amount_in
            if token_out == LOVELACE_ID:
                volume_ada[token_in] += amount_out

        # Token bought
        if token_out != LOVELACE_ID:
            order_count[token_out] += 1
            if token_in == LOVELACE_ID:
                volume_ada[token_out] += amount_in
                volume_token[token_out] += amount_out

    entries = [
        VolumeEntry(
            token_id=token_id,
            volume_in_ada=volume_ada[token_id],
            volume_in_token=volume_token[token_id],
            order_count=count
        )
        for token_id, count in order_count.items()
        if count > 0
    ]
    entries.sort(key=lambda e: (-e.volume_in_ada, e.token_id))
    return entries


def display_name(token_id: str, metadata: Optional[TokenMetadata]) -> str:
    """Ticker, then ASCII name, then the first 10 characters of the id."""
    if metadata is None:
        return token_id[:10]
    return metadata.ticker or metadata.token_ascii or token_id[:10]


class VolumeService:
    """Builds, persists and serves the rolling 24h volume snapshot."""

    def __init__(
        self,
        source: PriceSource,
        store: TokenStore,
        max_pages: int = 100,
        per_page: int = 50,
        page_delay_seconds: float = 0.5,
        cache_ttl_seconds: float = 300,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        cache: Optional[TTLCache] = None,
        name_batch_size: int = 5,
        name_batch_delay_seconds: float = 1.0
    ):
        self.source = source
        self.store = store
        self.max_pages = max_pages
        self.per_page = per_page
        self.page_delay_seconds = page_delay_seconds
        self._sleep = sleep
        self.cache: TTLCache = cache or TTLCache(cache_ttl_seconds)
        self.name_limiter = BatchRateLimiter(name_batch_size, name_batch_delay_seconds, sleep=sleep)
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def refresh(self, now: Optional[datetime] = None) -> VolumeSnapshot:
        """
        Rebuild the snapshot from the last 24h of orders and persist it.
        Raises PassAlreadyRunning if another refresh has not finished yet.
        """
        if self._running:
            raise PassAlreadyRunning("A volume refresh is already in progress")

        self._running = True
        try:
            window_to = now or utcnow()
            window_from = window_to - VOLUME_WINDOW

            orders = await self._collect_orders(window_from, window_to)
            entries = aggregate_volumes(orders)
            await self._resolve_names(entries)
            snapshot = VolumeSnapshot(
                window_from=window_from,
                window_to=window_to,
                tokens=entries
            )

            await self.store.save_volume_snapshot(snapshot)
            self.cache.set(snapshot)
            logger.info(
                "Volume refreshed: %d orders, %d tokens with volume",
                len(orders), snapshot.total_tokens
            )
            return snapshot
        finally:
            self._running = False

    async def _resolve_names(self, entries: List[VolumeEntry]) -> None:
        """Fill each entry's display name from token metadata, batch by batch."""
        limiter = self.name_limiter
        total_batches = limiter.batch_count(len(entries))

        for number, batch in enumerate(limiter.batches(entries), start=1):
            outcomes = await asyncio.gather(
                *(self.source.get_token_metadata(entry.token_id) for entry in batch),
                return_exceptions=True
            )
            for entry, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    logger.warning("Token info unavailable for %s: %s", entry.token_id, outcome)
                    entry.name = UNKNOWN_TOKEN_NAME
                else:
                    entry.name = display_name(entry.token_id, outcome)

            if number < total_batches:
                await limiter.pause()

    async def _collect_orders(self, window_from: datetime, window_to: datetime) -> List[Dict[str, Any]]:
        collected: List[Dict[str, Any]] = []

        for page in range(self.max_pages):
            try:
                orders = await self.source.get_global_orders(page, self.per_page)
            except UpstreamError as e:
                logger.error("Stopping order pagination at page %d: %s", page, e.message)
                break

            for order in orders:
                placed = _order_time(order)
                if placed is not None and window_from <= placed <= window_to:
                    collected.append(order)

            if len(orders) < self.per_page:
                break
            oldest = _order_time(orders[-1])
            if oldest is not None and oldest < window_from:
                break

            if self.page_delay_seconds > 0:
                await self._sleep(self.page_delay_seconds)

        return collected

    async def get_snapshot(self) -> Optional[VolumeSnapshot]:
        cached = self.cache.get()
        if cached is not None:
            return cached
        snapshot = await self.store.load_volume_snapshot()
        if snapshot is not None:
            self.cache.set(snapshot)
        return snapshot

    async def volume_map(self) -> Dict[str, VolumeEntry]:
        snapshot = await self.get_snapshot()
        return snapshot.by_token() if snapshot else {}

    async def get_token_volume(self, token_id: str) -> VolumeEntry:
        return (await self.volume_map()).get(token_id) or VolumeEntry(token_id=token_id)

    async def top_by_volume(self, limit: int = 50) -> List[VolumeEntry]:
        snapshot = await self.get_snapshot()
        if snapshot is None:
            return []
        return sorted(snapshot.tokens, key=lambda e: -e.volume_in_ada)[:limit]

    async def stats(self) -> VolumeStats:
        snapshot = await self.get_snapshot()
        if snapshot is None:
            return VolumeStats()
        volumes = [entry.volume_in_ada for entry in snapshot.tokens]
        return VolumeStats(
            timestamp=snapshot.timestamp,
            window_from=snapshot.window_from,
            window_to=snapshot.window_to,
            total_tokens_with_volume=snapshot.total_tokens,
            total_volume_in_ada=sum(volumes),
            total_order_count=sum(entry.order_count for entry in snapshot.tokens),
            volume_ranges=RangeCounts.from_values(volumes)
        )

    def clear_cache(self) -> None:
        self.cache.invalidate()
