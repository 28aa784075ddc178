"""
Single-value TTL cache with an injectable clock.
"""
import time
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class TTLCache(Generic[T]):
    """
    Holds one computed value until it expires or is invalidated.

    The clock returns monotonic seconds; tests pass a fake to control expiry.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._value: Optional[T] = None
        self._stored_at: Optional[float] = None

    @property
    def is_fresh(self) -> bool:
        if self._stored_at is None:
            return False
        return self._clock() - self._stored_at < self.ttl_seconds

    @property
    def age_seconds(self) -> Optional[float]:
        if self._stored_at is None:
            return None
        return self._clock() - self._stored_at

    def get(self) -> Optional[T]:
        """Cached value, or None when empty or expired."""
        return self._value if self.is_fresh else None

    def set(self, value: T) -> None:
        self._value = value
        self._stored_at = self._clock()

    def invalidate(self) -> None:
        self._value = None
        self._stored_at = None

    async def get_or_compute(self, compute: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value, recomputing it once expired."""
        if self.is_fresh:
            return self._value  # type: ignore[return-value]
        value = await compute()
        self.set(value)
        return value
