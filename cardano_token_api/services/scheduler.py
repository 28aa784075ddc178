"""
Periodic enrichment and volume refreshes running inside the API process.
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from cardano_token_api.core.errors import PassAlreadyRunning
from cardano_token_api.services.enrichment import BatchEnrichmentOrchestrator
from cardano_token_api.services.token_service import TokenService
from cardano_token_api.services.volume_service import VolumeService

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """
    Runs an enrichment pass every `interval_minutes` and a volume refresh every
    `volume_interval_minutes`. Each loop refreshes once right away, then waits
    for its interval. An interval of 0 disables that loop; errors never stop it.
    """

    def __init__(
        self,
        orchestrator: BatchEnrichmentOrchestrator,
        token_service: TokenService,
        interval_minutes: int,
        volume_service: Optional[VolumeService] = None,
        volume_interval_minutes: int = 0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.orchestrator = orchestrator
        self.token_service = token_service
        self.volume_service = volume_service
        self.interval_seconds = interval_minutes * 60
        self.volume_interval_seconds = volume_interval_minutes * 60 if volume_service else 0
        self._sleep = sleep
        self._tasks: List[asyncio.Task] = []

    @property
    def enabled(self) -> bool:
        return self.interval_seconds > 0 or self.volume_interval_seconds > 0

    def start(self) -> None:
        if self._tasks:
            return
        if self.interval_seconds > 0:
            self._tasks.append(asyncio.create_task(
                self._loop(self.run_once, self.interval_seconds), name="enrichment-refresh"
            ))
            logger.info("Background enrichment refresh every %d minutes", self.interval_seconds // 60)
        if self.volume_interval_seconds > 0:
            self._tasks.append(asyncio.create_task(
                self._loop(self.run_volume_once, self.volume_interval_seconds), name="volume-refresh"
            ))
            logger.info("Background volume refresh every %d minutes", self.volume_interval_seconds // 60)

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []

    async def run_once(self) -> None:
        try:
            await self.orchestrator.run_pass()
            self.token_service.clear_cache()
        except PassAlreadyRunning:
            logger.info("Skipping scheduled refresh, a pass is already running")
        except Exception:
            logger.exception("Scheduled refresh failed, keeping previous report")

    async def run_volume_once(self) -> None:
        try:
            await self.volume_service.refresh()
            self.token_service.clear_cache()
        except PassAlreadyRunning:
            logger.info("Skipping scheduled volume refresh, one is already running")
        except Exception:
            logger.exception("Scheduled volume refresh failed, keeping previous snapshot")

    async def _loop(self, job: Callable[[], Awaitable[None]], interval_seconds: int) -> None:
        while True:
            await job()
            await self._sleep(interval_seconds)
