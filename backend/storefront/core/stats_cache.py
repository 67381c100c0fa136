"""
Statistics Cache

Process-wide, single-slot TTL cache for the admin statistics aggregate.

- get(): serve the cached value while fresh, otherwise recompute ("warm")
- invalidate(): drop the slot; the next get() recomputes exactly once
- refresh_after_write(): invalidate + fire-and-forget background re-warm,
  controlled by STATS_WARM_ON_WRITE. Background failures are logged only.

Concurrent misses are not coalesced: two requests that both miss will
both recompute, and the last one to finish wins the slot.
"""
import logging
import threading
import time
from typing import Any, Callable, Optional

from storefront.core.config import settings

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Any]


def _now_ms() -> float:
    return time.time() * 1000


class StatsCache:
    """
    Single in-memory slot holding (value, expires_at_ms)
    """

    def __init__(
        self,
        ttl_ms: Optional[int] = None,
        clock: Callable[[], float] = _now_ms,
        warm_on_write: Optional[bool] = None
    ):
        self.ttl_ms = ttl_ms if ttl_ms is not None else settings.STATS_CACHE_TTL_MS
        self._clock = clock
        self._warm_on_write = warm_on_write
        self._entry: Optional[tuple] = None

    @property
    def warm_on_write(self) -> bool:
        if self._warm_on_write is not None:
            return self._warm_on_write
        return settings.stats_warm_on_write

    def get(self, fetcher: Fetcher) -> Any:
        """Cached value if not expired, otherwise recompute and cache"""
        entry = self._entry
        if entry is not None and entry[1] > self._clock():
            return entry[0]
        return self.warm(fetcher)

    def warm(self, fetcher: Fetcher) -> Any:
        """
        Recompute the aggregate and store it.

        Fetcher errors are logged and re-raised to the caller.
        """
        start = self._clock()
        try:
            value = fetcher()
        except Exception:
            logger.exception("Failed to warm stats cache")
            raise

        finished = self._clock()
        self._entry = (value, finished + self.ttl_ms)
        logger.info(f"stats warmed (took {finished - start:.0f}ms), ttl={self.ttl_ms}ms")
        return value

    def invalidate(self) -> None:
        self._entry = None
        logger.info("stats cache invalidated")

    def peek(self) -> Any:
        """Current cached value (even if expired), or None"""
        return self._entry[0] if self._entry is not None else None

    def debug_info(self) -> Optional[dict]:
        return {"expires_at": self._entry[1]} if self._entry is not None else None

    def maybe_warm(self, fetcher: Fetcher) -> Any:
        """Warm unless STATS_WARM_ON_WRITE=false; returns None when skipped"""
        if not self.warm_on_write:
            logger.info("stats warm skipped due to STATS_WARM_ON_WRITE=false")
            return None
        return self.warm(fetcher)

    def _warm_in_background(self, fetcher: Fetcher) -> None:
        try:
            self.maybe_warm(fetcher)
        except Exception as e:
            logger.error(f"Failed to warm stats after write: {e}")

    def refresh_after_write(self, fetcher: Fetcher, background_tasks=None) -> None:
        """
        Invalidate, then re-warm without blocking the writer.

        Args:
            fetcher: Callable computing the aggregate
            background_tasks: FastAPI BackgroundTasks of the current request.
                When omitted, a daemon thread does the warm.
        """
        self.invalidate()
        if background_tasks is not None:
            background_tasks.add_task(self._warm_in_background, fetcher)
        else:
            threading.Thread(
                target=self._warm_in_background,
                args=(fetcher,),
                daemon=True
            ).start()


# Global cache instance
stats_cache = StatsCache()


def refresh_statistics_after_write(background_tasks=None) -> None:
    """
    Invalidate the global statistics slot and re-warm it in the background

    Called by every write that changes orders, quotes, products or pricing.
    """
    from storefront.repositories.stats_repository import StatsRepository

    try:
        stats_cache.refresh_after_write(StatsRepository().compute_statistics, background_tasks)
    except Exception as e:
        logger.error(f"Error invalidating/warming stats cache: {e}")
