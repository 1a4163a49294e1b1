"""
Analytics runtime

Owns the event buffer and the batch processor for the lifetime of the
application. Built and torn down explicitly by the app's lifespan handler;
nothing here runs at import time.
"""
import logging
from typing import Optional

from app.core.cache import BaseCache, InMemoryCache
from app.core.config import AnalyticsConfig

from .batch_processor import BatchProcessor, PersistFn

logger = logging.getLogger(__name__)


class AnalyticsRuntime:
    def __init__(
        self,
        config: AnalyticsConfig,
        persist: PersistFn,
        cache: Optional[BaseCache] = None,
    ):
        self.config = config
        self.cache = cache or InMemoryCache(cleanup_interval_ms=config.CACHE_CLEANUP_MS)
        self.processor = BatchProcessor(
            self.cache,
            persist,
            max_batch_size=config.MAX_BATCH_SIZE,
            flush_interval_ms=config.FLUSH_INTERVAL_MS,
            cache_key_prefix=config.CACHE_KEY_PREFIX,
        )
        self._initialized = False

    def initialize(self) -> None:
        """Start cache housekeeping and the periodic flush (needs a running loop)"""
        if self._initialized:
            return
        self.cache.initialize()
        self.processor.start()
        self._initialized = True
        logger.info("Analytics system started")

    async def destroy(self) -> None:
        """Final flush, then release the buffer"""
        if not self._initialized:
            return
        await self.processor.stop()
        await self.cache.destroy()
        self._initialized = False
        logger.info("Analytics system stopped")

    def status(self) -> dict:
        return {
            "running": self.processor.is_active(),
            "pending": self.processor.get_pending_count(),
        }
