"""
Analytics Batch Processor

Buffers analytics events in a cache and writes them to the database in bulk.
Two triggers call the same ``flush()``:

- volume trigger: the pending count reaches ``max_batch_size``
- time trigger: a background task fires every ``flush_interval_ms``

Everything runs on one asyncio loop. The in-flight flag is checked and set
before the first ``await`` in ``flush()``, so at most one flush runs at a time.
"""
import asyncio
import logging
import time
import uuid
from typing import Any, Awaitable, Callable, List, Optional, Set

from app.core.cache import BaseCache
from app.models import AnalyticsEvent

logger = logging.getLogger(__name__)

PersistFn = Callable[[List[AnalyticsEvent]], Awaitable[Any]]

DEFAULT_MAX_BATCH_SIZE = 500
DEFAULT_FLUSH_INTERVAL_MS = 1000
DEFAULT_CACHE_KEY_PREFIX = "analytics:event:"


class BatchProcessor:
    """
    Collects events in a cache and periodically flushes them to storage.

    Usage::

        processor = BatchProcessor(InMemoryCache(), repo.insert_many)
        processor.start()
        await processor.add_event(event)
        ...
        await processor.stop()  # final flush
    """

    def __init__(
        self,
        cache: BaseCache,
        persist: PersistFn,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
        flush_interval_ms: int = DEFAULT_FLUSH_INTERVAL_MS,
        cache_key_prefix: str = DEFAULT_CACHE_KEY_PREFIX,
    ):
        self.cache = cache
        self.persist = persist
        self.max_batch_size = max_batch_size
        self.flush_interval_ms = flush_interval_ms
        self.cache_key_prefix = cache_key_prefix

        self._pending = 0
        self._running = False
        self._flushing = False
        self._idle = asyncio.Event()
        self._idle.set()
        self._timer_task: Optional[asyncio.Task] = None
        self._background: Set[asyncio.Task] = set()

    def start(self) -> None:
        """Arm the periodic flush. No-op if already running."""
        if self._running:
            return
        self._running = True
        self._timer_task = asyncio.get_running_loop().create_task(self._run_timer())
        logger.info(
            f"Analytics batch processor started "
            f"(max_batch_size={self.max_batch_size}, flush_interval_ms={self.flush_interval_ms})"
        )

    async def stop(self) -> None:
        """Disarm the timer and flush whatever is still buffered. No-op if stopped."""
        if not self._running:
            return
        self._running = False

        if self._timer_task is not None:
            self._timer_task.cancel()
            try:
                await self._timer_task
            except asyncio.CancelledError:
                pass
            self._timer_task = None

        # let a flush that was already running finish before the final one
        await self._idle.wait()
        await self.flush()
        logger.info(f"Analytics batch processor stopped (pending={self._pending})")

    async def _run_timer(self) -> None:
        interval = self.flush_interval_ms / 1000.0
        while True:
            await asyncio.sleep(interval)
            try:
                # shielded so stop() cancelling the timer never interrupts a write
                await asyncio.shield(self.flush())
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Error flushing analytics events")

    def _generate_key(self) -> str:
        return f"{self.cache_key_prefix}{int(time.time() * 1000)}-{uuid.uuid4().hex}"

    async def add_event(self, event: AnalyticsEvent) -> None:
        """Buffer one event; schedules a background flush at the volume threshold."""
        await self.cache.set(self._generate_key(), event)
        self._pending += 1

        if self._pending >= self.max_batch_size:
            self._spawn_flush()

    def _spawn_flush(self) -> None:
        task = asyncio.get_running_loop().create_task(self.flush())
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Error flushing analytics events", exc_info=exc)

    async def flush(self) -> None:
        """
        Persist every buffered event in one bulk write.

        Concurrent calls while a flush is in flight return immediately.
        Persistence failures are logged and leave the buffer and pending
        count untouched so the next trigger retries the same events.
        Buffer (cache) failures propagate to the caller.
        """
        if self._flushing:
            return

        self._flushing = True
        self._idle.clear()
        try:
            keys = [
                key for key in await self.cache.keys()
                if key.startswith(self.cache_key_prefix)
            ]
            if not keys:
                self._pending = 0
                logger.debug("Analytics flush skipped: nothing buffered")
                return

            events: List[AnalyticsEvent] = []
            flushed_keys: List[str] = []
            for key in keys:
                event = await self.cache.get(key)
                if event is not None:
                    events.append(event)
                    flushed_keys.append(key)

            if not events:
                self._pending = 0
                return

            try:
                await self.persist(events)
            except Exception:
                logger.exception(
                    f"Error writing {len(events)} analytics events; will retry on next flush"
                )
                return

            for key in flushed_keys:
                await self.cache.delete(key)

            self._pending = 0
            logger.debug(f"Flushed {len(events)} analytics events")
        finally:
            self._flushing = False
            self._idle.set()

    def get_pending_count(self) -> int:
        """Number of events added since the last successful flush"""
        return self._pending

    def is_active(self) -> bool:
        return self._running
