"""
Batch pacing for upstream rate limits.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Iterator, List, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BatchRateLimiter:
    """
    Splits work into fixed-size batches and waits a fixed delay between them.

    The sleep function is injectable so tests can run batches without waiting.
    """

    def __init__(
        self,
        batch_size: int = 10,
        delay_seconds: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if delay_seconds < 0:
            raise ValueError("delay_seconds cannot be negative")
        self.batch_size = batch_size
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def batches(self, items: Sequence[T]) -> Iterator[List[T]]:
        for start in range(0, len(items), self.batch_size):
            yield list(items[start:start + self.batch_size])

    def batch_count(self, total: int) -> int:
        return (total + self.batch_size - 1) // self.batch_size

    async def pause(self) -> None:
        """Wait between two batches."""
        if self.delay_seconds > 0:
            logger.debug("Waiting %.2fs before next batch", self.delay_seconds)
            await self._sleep(self.delay_seconds)
