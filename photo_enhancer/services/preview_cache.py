# Filter preview caching
"""
Memoization of filter previews for instant hover feedback.

The cache is an explicit object owned by whoever serves previews; there is no
module-level instance. Concurrent requests for the same key share a single
computation: the first caller runs the factory and later callers await the
same future.
"""

import asyncio
import inspect
from collections import OrderedDict
from concurrent.futures import Executor
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..config import settings
from ..utils.errors import CacheComputeError, ConfigurationError
from ..utils.imaging import PixelBuffer
from ..utils.logger import get_logger

logger = get_logger(__name__)

_CACHE = settings.CACHE_DEFAULTS

Factory = Callable[[], Union[PixelBuffer, Awaitable[PixelBuffer]]]
ErrorReporter = Callable[[CacheComputeError], None]


def make_cache_key(buffer: PixelBuffer, spec) -> str:
    """Key for ``spec`` applied to ``buffer``: fingerprint, filter id and params."""
    return f"{buffer.fingerprint()}_{spec.filter_id}_{spec.serialized_params()}"


class FilterPreviewCache:
    """
    Bounded cache of computed previews with per-key deduplication.

    Once an insertion pushes the size past ``max_entries``, the
    ``evict_count`` oldest insertions are dropped.
    """

    def __init__(
        self,
        max_entries: int = _CACHE["max_entries"],
        evict_count: int = _CACHE["evict_count"],
        executor: Optional[Executor] = None,
        error_reporter: Optional[ErrorReporter] = None,
    ):
        if max_entries < 1:
            raise ConfigurationError(f"max_entries must be positive, got {max_entries}",
                                     setting_name="max_entries")
        if evict_count < 1:
            raise ConfigurationError(f"evict_count must be positive, got {evict_count}",
                                     setting_name="evict_count")
        self._max_entries = max_entries
        self._evict_count = evict_count
        self._executor = executor
        self._report_error = error_reporter or self._log_error

        self._entries: "OrderedDict[str, PixelBuffer]" = OrderedDict()
        self._in_flight: Dict[str, asyncio.Future] = {}
        self._generation = 0

    @staticmethod
    def _log_error(error: CacheComputeError) -> None:
        logger.error("Preview computation failed: %s", error)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def keys(self) -> List[str]:
        """Stored keys, oldest insertion first."""
        return list(self._entries)

    def get(self, key: str) -> Optional[PixelBuffer]:
        return self._entries.get(key)

    @property
    def pending_count(self) -> int:
        return len(self._in_flight)

    def clear(self) -> None:
        """Drop every entry and in-flight marker.

        Computations already running still resolve their callers but do not
        store their result.
        """
        self._entries.clear()
        self._in_flight.clear()
        self._generation += 1
        logger.debug("Preview cache cleared")

    async def get_or_compute(self, key: str, factory: Factory,
                             fallback: Optional[PixelBuffer] = None) -> PixelBuffer:
        """Return the cached value for ``key``, computing it at most once.

        Args:
            key: Cache key, see :func:`make_cache_key`.
            factory: Zero-argument callable producing the value. Plain
                callables run in the executor; coroutine functions are awaited.
            fallback: Returned to every caller if the computation fails.

        Raises:
            CacheComputeError: if the computation fails and no fallback was given.
        """
        cached = self._entries.get(key)
        if cached is not None:
            return cached

        pending = self._in_flight.get(key)
        if pending is not None:
            return await self._wait_for(pending, fallback)

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._in_flight[key] = future
        generation = self._generation

        try:
            result = await self._run_factory(loop, factory)
        except asyncio.CancelledError:
            self._release(key, future)
            self._fail(future, CacheComputeError("Preview computation was cancelled", key=key))
            raise
        except Exception as e:
            self._release(key, future)
            error = CacheComputeError(f"Preview computation failed for '{key}'", key=key, original_error=e)
            self._report_error(error)
            self._fail(future, error)
            if fallback is not None:
                return fallback
            raise error

        self._release(key, future)
        if generation == self._generation:
            self._store(key, result)
        future.set_result(result)
        return result

    async def _run_factory(self, loop, factory: Factory) -> Any:
        if inspect.iscoroutinefunction(factory):
            return await factory()
        result = await loop.run_in_executor(self._executor, factory)
        if inspect.isawaitable(result):
            result = await result
        return result

    @staticmethod
    async def _wait_for(future: asyncio.Future, fallback: Optional[PixelBuffer]) -> PixelBuffer:
        try:
            # shield: a cancelled waiter must not cancel the shared computation
            return await asyncio.shield(future)
        except CacheComputeError:
            if fallback is not None:
                return fallback
            raise

    @staticmethod
    def _fail(future: asyncio.Future, error: CacheComputeError) -> None:
        if future.done():
            return
        future.set_exception(error)
        # Mark retrieved so an un-awaited failure is not logged again by asyncio
        future.exception()

    def _release(self, key: str, future: asyncio.Future) -> None:
        if self._in_flight.get(key) is future:
            del self._in_flight[key]

    def _store(self, key: str, value: PixelBuffer) -> None:
        self._entries[key] = value
        if len(self._entries) > self._max_entries:
            for _ in range(min(self._evict_count, len(self._entries))):
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted preview %s", evicted)
