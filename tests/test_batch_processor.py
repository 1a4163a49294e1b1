"""
Tests for the analytics batch processor
"""
import asyncio
from unittest.mock import AsyncMock

import pytest

from app.analytics.batch_processor import BatchProcessor
from app.core.cache import InMemoryCache
from app.core.errors import CacheError, DatabaseError
from conftest import make_event


async def settle(rounds: int = 5):
    for _ in range(rounds):
        await asyncio.sleep(0)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_and_stop(self, cache, persist):
        processor = BatchProcessor(cache, persist)
        assert not processor.is_active()

        processor.start()
        assert processor.is_active()

        await processor.stop()
        assert not processor.is_active()

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self, cache, persist):
        processor = BatchProcessor(cache, persist)
        processor.start()
        timer = processor._timer_task
        processor.start()

        assert processor._timer_task is timer
        await processor.stop()

    @pytest.mark.asyncio
    async def test_stop_when_not_running(self, cache, persist):
        processor = BatchProcessor(cache, persist)
        await processor.stop()
        persist.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stop_flushes_remaining_events(self, cache, persist):
        processor = BatchProcessor(cache, persist, flush_interval_ms=60_000)
        processor.start()
        await processor.add_event(make_event("/a"))
        await processor.add_event(make_event("/b"))

        await processor.stop()

        persist.assert_awaited_once()
        assert sorted(e.path for e in persist.await_args.args[0]) == ["/a", "/b"]
        assert processor.get_pending_count() == 0
        assert await cache.size() == 0

    @pytest.mark.asyncio
    async def test_restart_after_stop(self, cache, persist):
        processor = BatchProcessor(cache, persist)
        processor.start()
        await processor.stop()
        processor.start()

        assert processor.is_active()
        await processor.stop()


class TestBuffering:
    @pytest.mark.asyncio
    async def test_add_event_buffers_and_counts(self, cache, persist):
        processor = BatchProcessor(cache, persist)

        await processor.add_event(make_event("/"))
        await processor.add_event(make_event("/about", ip="10.0.0.0"))

        assert processor.get_pending_count() == 2
        keys = await cache.keys()
        assert len(keys) == 2
        assert all(k.startswith("analytics:event:") for k in keys)
        persist.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_keys_are_unique(self, cache, persist):
        processor = BatchProcessor(cache, persist)
        for _ in range(50):
            await processor.add_event(make_event())

        assert await cache.size() == 50

    @pytest.mark.asyncio
    async def test_custom_key_prefix(self, cache, persist):
        processor = BatchProcessor(cache, persist, cache_key_prefix="custom:analytics:")
        await processor.add_event(make_event())

        keys = await cache.keys()
        assert any(k.startswith("custom:analytics:") for k in keys)


class TestTriggers:
    @pytest.mark.asyncio
    async def test_volume_trigger_flushes_in_background(self, cache, persist):
        processor = BatchProcessor(cache, persist, max_batch_size=3)

        for i in range(3):
            await processor.add_event(make_event(f"/page{i}"))

        # the caller did not wait for the write
        persist.assert_not_awaited()

        await settle()
        persist.assert_awaited_once()
        assert len(persist.await_args.args[0]) == 3
        assert processor.get_pending_count() == 0

    @pytest.mark.asyncio
    async def test_time_trigger(self, cache, persist):
        processor = BatchProcessor(cache, persist, flush_interval_ms=20)
        processor.start()
        await processor.add_event(make_event())

        await asyncio.sleep(0.1)

        persist.assert_awaited()
        assert processor.get_pending_count() == 0
        await processor.stop()

    @pytest.mark.asyncio
    async def test_timer_survives_cache_errors(self, persist):
        cache = InMemoryCache(cleanup_interval_ms=0)
        cache.keys = AsyncMock(side_effect=CacheError("down"))
        processor = BatchProcessor(cache, persist, flush_interval_ms=10)
        processor.start()

        await asyncio.sleep(0.05)

        assert cache.keys.await_count >= 2
        assert processor.is_active()
        cache.keys = AsyncMock(return_value=[])
        await processor.stop()


class TestFlush:
    @pytest.mark.asyncio
    async def test_flush_persists_events(self, cache, persist):
        processor = BatchProcessor(cache, persist)
        event = make_event()

        await processor.add_event(event)
        await processor.flush()

        persist.assert_awaited_once_with([event])
        assert processor.get_pending_count() == 0
        assert await cache.size() == 0

    @pytest.mark.asyncio
    async def test_empty_flush(self, cache, persist):
        processor = BatchProcessor(cache, persist)
        await processor.flush()
        persist.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_flush_ignores_foreign_keys(self, cache, persist):
        await cache.set("session:abc", {"user": 1})
        processor = BatchProcessor(cache, persist)
        await processor.add_event(make_event())

        await processor.flush()

        assert len(persist.await_args.args[0]) == 1
        assert await cache.keys() == ["session:abc"]

    @pytest.mark.asyncio
    async def test_flush_skips_expired_entries(self, cache, persist):
        processor = BatchProcessor(cache, persist)
        event = make_event("/a")
        await processor.add_event(event)
        await cache.set("analytics:event:ghost", make_event("/ghost"), ttl_ms=1)
        await asyncio.sleep(0.02)

        await processor.flush()

        persist.assert_awaited_once_with([event])
        assert processor.get_pending_count() == 0
        assert await cache.size() == 0

    @pytest.mark.asyncio
    async def test_flush_with_only_expired_entries(self, cache, persist):
        processor = BatchProcessor(cache, persist)
        await processor.add_event(make_event())
        [key] = await cache.keys()
        await cache.set(key, make_event(), ttl_ms=1)
        await asyncio.sleep(0.02)
        assert processor.get_pending_count() == 1

        await processor.flush()

        persist.assert_not_awaited()
        assert processor.get_pending_count() == 0

    @pytest.mark.asyncio
    async def test_flush_skips_keys_removed_after_listing(self, cache, persist):
        processor = BatchProcessor(cache, persist)
        event = make_event("/kept")
        await processor.add_event(event)
        live_keys = await cache.keys()
        # listed by keys() but already gone when read
        cache.keys = AsyncMock(return_value=live_keys + ["analytics:event:gone"])

        await processor.flush()

        persist.assert_awaited_once_with([event])
        assert processor.get_pending_count() == 0

    @pytest.mark.asyncio
    async def test_flush_when_every_listed_key_is_gone(self, cache, persist):
        processor = BatchProcessor(cache, persist)
        await processor.add_event(make_event())
        cache.keys = AsyncMock(return_value=["analytics:event:gone"])

        await processor.flush()

        persist.assert_not_awaited()
        assert processor.get_pending_count() == 0

    @pytest.mark.asyncio
    async def test_concurrent_flushes_write_once(self, cache):
        release = asyncio.Event()

        async def slow_persist(events):
            await release.wait()
            return []

        persist = AsyncMock(side_effect=slow_persist)
        processor = BatchProcessor(cache, persist)
        for _ in range(5):
            await processor.add_event(make_event())

        first = asyncio.create_task(processor.flush())
        await settle()
        await asyncio.gather(processor.flush(), processor.flush(), processor.flush())
        release.set()
        await first

        assert persist.await_count == 1
        assert len(persist.await_args.args[0]) == 5

    @pytest.mark.asyncio
    async def test_persistence_failure_keeps_events_for_retry(self, cache):
        persist = AsyncMock(side_effect=DatabaseError("insert failed"))
        processor = BatchProcessor(cache, persist)
        event = make_event()
        await processor.add_event(event)

        await processor.flush()

        assert processor.get_pending_count() == 1
        assert await cache.size() == 1

        persist.side_effect = None
        persist.return_value = []
        await processor.flush()

        assert persist.await_count == 2
        assert persist.await_args.args[0] == [event]
        assert processor.get_pending_count() == 0

    @pytest.mark.asyncio
    async def test_cache_errors_propagate(self, persist):
        cache = InMemoryCache(cleanup_interval_ms=0)
        cache.keys = AsyncMock(side_effect=CacheError("down"))
        processor = BatchProcessor(cache, persist)

        with pytest.raises(CacheError):
            await processor.flush()

        # the in-flight flag is released
        cache.keys = AsyncMock(return_value=[])
        await processor.flush()
        cache.keys.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stop_waits_for_in_flight_flush(self, cache):
        release = asyncio.Event()
        batches = []

        async def slow_persist(events):
            batches.append(len(events))
            await release.wait()

        processor = BatchProcessor(cache, AsyncMock(side_effect=slow_persist), flush_interval_ms=60_000)
        processor.start()
        await processor.add_event(make_event())
        in_flight = asyncio.create_task(processor.flush())
        await settle()

        await processor.add_event(make_event("/late"))
        stopping = asyncio.create_task(processor.stop())
        await settle()
        assert not stopping.done()

        release.set()
        await asyncio.gather(in_flight, stopping)

        assert batches[0] == 1
        assert sum(batches) >= 2
        assert await cache.size() == 0
