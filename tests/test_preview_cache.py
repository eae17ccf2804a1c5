"""Tests for the filter preview cache."""

import asyncio
import threading
import time

import pytest

from photo_enhancer.processing.filters import ArtisticFilter, BasicFilter, CustomFilter, CustomFilterParams
from photo_enhancer.services.preview_cache import FilterPreviewCache, make_cache_key
from photo_enhancer.utils.errors import CacheComputeError, ConfigurationError
from photo_enhancer.utils.imaging import PixelBuffer


class TestDeduplication:
    """Concurrent callers share a single computation."""

    def test_sync_factory_runs_once(self, gray_buffer):
        cache = FilterPreviewCache()
        calls = []
        lock = threading.Lock()

        def factory():
            with lock:
                calls.append(1)
            time.sleep(0.05)
            return gray_buffer

        async def run():
            return await asyncio.gather(*(cache.get_or_compute("k", factory) for _ in range(10)))

        results = asyncio.run(run())
        assert len(calls) == 1
        assert all(result is gray_buffer for result in results)
        assert len(cache) == 1

    def test_async_factory_runs_once(self, gray_buffer):
        cache = FilterPreviewCache()
        calls = []

        async def factory():
            calls.append(1)
            await asyncio.sleep(0.02)
            return gray_buffer

        async def run():
            return await asyncio.gather(*(cache.get_or_compute("k", factory) for _ in range(10)))

        asyncio.run(run())
        assert len(calls) == 1
        assert cache.pending_count == 0

    def test_hit_skips_factory(self, gray_buffer, sample_buffer):
        cache = FilterPreviewCache()

        async def first():
            return gray_buffer

        async def second():
            return sample_buffer

        async def run():
            await cache.get_or_compute("k", first)
            return await cache.get_or_compute("k", second)

        assert asyncio.run(run()) is gray_buffer


class TestBound:
    """Size bound and FIFO eviction."""

    def test_sixty_inserts_keep_fifty_newest(self, gray_buffer):
        cache = FilterPreviewCache()

        async def factory():
            return gray_buffer

        async def run():
            for i in range(60):
                await cache.get_or_compute(f"key-{i}", factory)

        asyncio.run(run())
        assert len(cache) == 50
        for i in range(10):
            assert f"key-{i}" not in cache
        for i in range(10, 60):
            assert f"key-{i}" in cache
        assert cache.keys()[0] == "key-10"

    def test_eviction_is_insertion_order(self, gray_buffer):
        cache = FilterPreviewCache(max_entries=3, evict_count=2)

        async def factory():
            return gray_buffer

        async def run():
            for key in ("a", "b", "c"):
                await cache.get_or_compute(key, factory)
            # a hit does not refresh the entry
            await cache.get_or_compute("a", factory)
            await cache.get_or_compute("d", factory)

        asyncio.run(run())
        assert cache.keys() == ["c", "d"]

    def test_invalid_configuration(self):
        with pytest.raises(ConfigurationError):
            FilterPreviewCache(max_entries=0)
        with pytest.raises(ConfigurationError):
            FilterPreviewCache(evict_count=0)


class TestFailures:
    """A failing factory never poisons the cache."""

    def test_all_callers_get_fallback(self, gray_buffer, sample_buffer):
        reported = []
        cache = FilterPreviewCache(error_reporter=reported.append)

        async def factory():
            await asyncio.sleep(0.02)
            raise RuntimeError("boom")

        async def run():
            return await asyncio.gather(
                *(cache.get_or_compute("k", factory, fallback=sample_buffer) for _ in range(5))
            )

        results = asyncio.run(run())
        assert all(result is sample_buffer for result in results)
        assert len(reported) == 1
        assert isinstance(reported[0], CacheComputeError)
        assert isinstance(reported[0].original_error, RuntimeError)
        assert "k" not in cache
        assert cache.pending_count == 0

    def test_raises_without_fallback(self):
        cache = FilterPreviewCache(error_reporter=lambda error: None)

        def factory():
            raise ValueError("bad")

        async def run():
            await cache.get_or_compute("k", factory)

        with pytest.raises(CacheComputeError) as exc_info:
            asyncio.run(run())
        assert exc_info.value.key == "k"

    def test_retry_after_failure(self, gray_buffer):
        cache = FilterPreviewCache(error_reporter=lambda error: None)
        attempts = []

        async def flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("first call fails")
            return gray_buffer

        async def run_twice():
            with pytest.raises(CacheComputeError):
                await cache.get_or_compute("k", flaky)
            return await cache.get_or_compute("k", flaky)

        assert asyncio.run(run_twice()) is gray_buffer
        assert len(attempts) == 2
        assert cache.get("k") is gray_buffer


class TestClear:
    """Tests for clearing the cache."""

    def test_clear_drops_entries(self, gray_buffer):
        cache = FilterPreviewCache()

        async def factory():
            return gray_buffer

        async def run():
            await cache.get_or_compute("a", factory)
            await cache.get_or_compute("b", factory)

        asyncio.run(run())
        cache.clear()
        assert len(cache) == 0
        assert cache.get("a") is None

    def test_in_flight_result_not_stored_after_clear(self, gray_buffer):
        cache = FilterPreviewCache()

        async def run():
            release = asyncio.Event()

            async def factory():
                await release.wait()
                return gray_buffer

            task = asyncio.ensure_future(cache.get_or_compute("k", factory))
            await asyncio.sleep(0)
            cache.clear()
            release.set()
            return await task

        assert asyncio.run(run()) is gray_buffer
        assert "k" not in cache


class TestCacheKey:
    """Tests for cache key construction."""

    def test_key_components(self, gray_buffer):
        key = make_cache_key(gray_buffer, ArtisticFilter("neon"))
        assert key.startswith(gray_buffer.fingerprint())
        assert "_neon_" in key

    def test_keys_differ_by_buffer_and_params(self, gray_buffer, sample_buffer):
        spec = CustomFilter(CustomFilterParams(brightness=1.1))
        other = CustomFilter(CustomFilterParams(brightness=1.2))
        assert make_cache_key(gray_buffer, spec) != make_cache_key(sample_buffer, spec)
        assert make_cache_key(gray_buffer, spec) != make_cache_key(gray_buffer, other)

    def test_same_pixels_same_key(self, gray_buffer):
        copy = PixelBuffer(gray_buffer.pixels.copy())
        spec = BasicFilter("warm")
        assert make_cache_key(gray_buffer, spec) == make_cache_key(copy, spec)
