# Image quality metrics
"""
Exposure, contrast, sharpness and channel-balance analysis of a pixel buffer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..config import settings
from ..utils.imaging import PixelBuffer, luminance, channel_means
from ..utils.logger import get_logger

logger = get_logger(__name__)

_T = settings.METRICS_THRESHOLDS


@dataclass(frozen=True)
class ImageMetrics:
    """Measured image quality plus the correction flags derived from it."""

    brightness: float                      # mean luminance, 0-255
    contrast: float                        # stddev(luminance) / 255, 0-1
    sharpness: float                       # mean interior gradient / 255, 0-1
    channel_means: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    is_underexposed: bool = False
    is_overexposed: bool = False
    needs_sharpening: bool = False
    needs_contrast_boost: bool = False
    needs_white_balance: bool = False

    @classmethod
    def from_measurements(cls, brightness: float, contrast: float, sharpness: float,
                          means: Tuple[float, float, float]) -> "ImageMetrics":
        return cls(
            brightness=brightness,
            contrast=contrast,
            sharpness=sharpness,
            channel_means=means,
            is_underexposed=brightness < _T["underexposed_brightness"],
            is_overexposed=brightness > _T["overexposed_brightness"],
            needs_sharpening=sharpness < _T["sharpening_sharpness"],
            needs_contrast_boost=contrast < _T["contrast_boost_contrast"],
            needs_white_balance=is_color_cast(means),
        )


def is_color_cast(means: Tuple[float, float, float],
                  deviation: float = _T["white_balance_deviation"]) -> bool:
    """True if any channel mean strays more than ``deviation`` from the grand mean."""
    gray = sum(means) / 3.0
    return any(abs(mean - gray) > gray * deviation for mean in means)


def measure_sharpness(lum: np.ndarray) -> float:
    """Mean |center - right| + |center - bottom| over interior pixels, / 255.

    Images narrower or shorter than 3 pixels have no interior and score 0.
    """
    height, width = lum.shape[:2]
    if height < 3 or width < 3:
        return 0.0
    center = lum[1:-1, 1:-1]
    right = lum[1:-1, 2:]
    bottom = lum[2:, 1:-1]
    gradient = np.abs(center - right) + np.abs(center - bottom)
    return float(gradient.mean()) / 255.0


def analyze_metrics(buffer: PixelBuffer) -> ImageMetrics:
    """Compute :class:`ImageMetrics` for ``buffer`` in O(W*H) without mutating it."""
    if buffer.is_empty:
        logger.warning("Cannot analyze an empty %dx%d buffer; returning zero metrics.",
                       buffer.width, buffer.height)
        return ImageMetrics.from_measurements(0.0, 0.0, 0.0, (0.0, 0.0, 0.0))

    lum = luminance(buffer.pixels)
    brightness = float(lum.mean())
    contrast = float(lum.std()) / 255.0  # population stddev
    sharpness = measure_sharpness(lum)
    means = channel_means(buffer.pixels)

    metrics = ImageMetrics.from_measurements(
        min(255.0, max(0.0, brightness)),
        min(1.0, max(0.0, contrast)),
        min(1.0, max(0.0, sharpness)),
        means,
    )
    logger.debug(
        "Metrics %dx%d: brightness=%.1f contrast=%.3f sharpness=%.3f means=(%.1f, %.1f, %.1f)",
        buffer.width, buffer.height, metrics.brightness, metrics.contrast, metrics.sharpness, *means,
    )
    return metrics
