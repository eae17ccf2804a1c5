from __future__ import annotations

import asyncio
import functools
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Iterable, Optional, Protocol, Union

from ..config import settings
from ..io import codec
from ..processing import enhancement, filters
from ..processing.metrics import ImageMetrics, analyze_metrics
from ..utils.imaging import PixelBuffer
from ..utils.logger import get_logger
from .preview_cache import FilterPreviewCache, make_cache_key

logger = get_logger(__name__)

EncodedImage = Union[bytes, bytearray, str]


class PreviewCacheProtocol(Protocol):
    async def get_or_compute(self, key, factory, fallback=None) -> PixelBuffer: ...

    def clear(self) -> None: ...


class EnhancementService:
    """Thin facade over codec + processing + preview cache."""

    def __init__(
        self,
        cache: Optional[PreviewCacheProtocol] = None,
        executor: Optional[Executor] = None,
        output_format: str = settings.CODEC_DEFAULTS["output_format"],
        quality: int = settings.CODEC_DEFAULTS["jpeg_quality"],
    ) -> None:
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=settings.CACHE_DEFAULTS["max_workers"],
            thread_name_prefix="photo-enhancer",
        )
        self._cache = cache if cache is not None else FilterPreviewCache(executor=self._executor)
        self._output_format = output_format
        self._quality = quality

    @property
    def cache(self) -> PreviewCacheProtocol:
        return self._cache

    def analyze(self, buffer: PixelBuffer) -> ImageMetrics:
        return analyze_metrics(buffer)

    def enhance(
        self,
        buffer: PixelBuffer,
        hints: Optional[Iterable[str]] = None,
        aggressive: bool = False,
    ) -> PixelBuffer:
        return enhancement.enhance(buffer, hints=hints, aggressive=aggressive)

    def apply_filter(self, buffer: PixelBuffer, spec: filters.FilterSpec) -> PixelBuffer:
        return filters.apply_filter(buffer, spec)

    def _encode(self, buffer: PixelBuffer, fmt: Optional[str]) -> bytes:
        return codec.encode_image(buffer, fmt or self._output_format, self._quality)

    def enhance_bytes(
        self,
        data: EncodedImage,
        hints: Optional[Iterable[str]] = None,
        aggressive: bool = False,
        fmt: Optional[str] = None,
    ) -> bytes:
        """Decode, enhance and re-encode a captured photo."""
        buffer = codec.decode_image(data)
        return self._encode(self.enhance(buffer, hints, aggressive), fmt)

    def apply_filter_bytes(self, data: EncodedImage, spec: filters.FilterSpec,
                           fmt: Optional[str] = None) -> bytes:
        buffer = codec.decode_image(data)
        return self._encode(self.apply_filter(buffer, spec), fmt)

    async def preview(self, buffer: PixelBuffer, spec: filters.FilterSpec) -> PixelBuffer:
        """Memoized filter preview; the unfiltered source is returned on failure."""
        key = make_cache_key(buffer, spec)
        return await self._cache.get_or_compute(
            key,
            functools.partial(filters.apply_filter, buffer, spec),
            fallback=buffer,
        )

    async def enhance_async(
        self,
        buffer: PixelBuffer,
        hints: Optional[Iterable[str]] = None,
        aggressive: bool = False,
    ) -> PixelBuffer:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor,
            functools.partial(self.enhance, buffer, list(hints or ()), aggressive),
        )

    def clear_previews(self) -> None:
        self._cache.clear()

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)
            logger.debug("Enhancement service executor shut down")
