# Automatic quality enhancement
"""
Deterministic corrective pipeline driven by image metrics and optional hints.

The steps always run in the same order, each feeding the next:

1. combined brightness x contrast x saturation pass (one color matrix)
2. gray-world white balance
3. variance-triggered median denoising
4. unsharp-mask sharpening

Reordering changes the output. A step that fails on an edge case is skipped
and the pipeline carries on with the image obtained so far.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from . import color_matrix as cm
from .hints import HintMatcher, match_hints
from .metrics import ImageMetrics, analyze_metrics
from .primitives import ColorOps, SpatialOps
from ..config import settings
from ..utils.errors import skip_step_on_error
from ..utils.imaging import PixelBuffer, to_working, from_working
from ..utils.logger import get_logger

logger = get_logger(__name__)

_ENH = settings.ENHANCEMENT_DEFAULTS
_T = settings.METRICS_THRESHOLDS


@dataclass(frozen=True)
class EnhancementParams:
    """Corrections derived for one image; never stored."""
    brightness: float = 1.0
    contrast: float = 1.0
    saturation: float = 1.0
    aggressiveness: float = 1.0
    exposure_fixed: bool = False
    white_balance: bool = False
    denoise: bool = False
    sharpen: bool = False

    @property
    def has_linear_correction(self) -> bool:
        return self.brightness != 1.0 or self.contrast != 1.0 or self.saturation != 1.0

    @property
    def aggressive(self) -> bool:
        return self.aggressiveness != 1.0


def derive_enhancement_params(
    metrics: ImageMetrics,
    hints: Optional[Iterable[str]] = None,
    aggressive: bool = False,
    hint_matcher: HintMatcher = match_hints,
) -> EnhancementParams:
    """Turn metrics (and hints) into correction magnitudes and flags."""
    a = _ENH["aggressive_multiplier"] if aggressive else 1.0

    brightness = 1.0
    contrast = 1.0
    saturation = 1.0
    exposure_fixed = False
    denoise = False
    sharpen = metrics.needs_sharpening
    white_balance = metrics.needs_white_balance

    if metrics.is_underexposed:
        # up to 40% (60% aggressive) toward mid exposure
        brightness = 1.0 + (_T["underexposed_brightness"] - metrics.brightness) / 255.0 * (_ENH["underexposure_gain"] * a)
        exposure_fixed = True
        denoise = True
    elif metrics.is_overexposed:
        brightness = 1.0 - (metrics.brightness - _T["overexposed_brightness"]) / 255.0 * (_ENH["overexposure_gain"] * a)
        exposure_fixed = True

    if metrics.needs_contrast_boost:
        contrast = 1.0 + (_T["contrast_boost_contrast"] - metrics.contrast) * _ENH["contrast_gain"] * a

    if metrics.sharpness < _T["denoise_sharpness"]:
        denoise = True

    requested = hint_matcher(hints or ())
    if requested.brightness and not exposure_fixed:
        brightness = 1.0 + _ENH["hint_brightness_gain"] * a
    if requested.contrast:
        contrast = max(contrast, 1.0 + _ENH["hint_contrast_gain"] * a)
    if requested.sharpen:
        sharpen = True
    if requested.saturation:
        saturation = 1.0 + _ENH["hint_saturation_gain"] * a
    if requested.denoise:
        denoise = True
    if requested.white_balance:
        white_balance = True

    return EnhancementParams(
        brightness=brightness,
        contrast=contrast,
        saturation=saturation,
        aggressiveness=a,
        exposure_fixed=exposure_fixed,
        white_balance=white_balance,
        denoise=denoise,
        sharpen=sharpen,
    )


@skip_step_on_error("linear_correction")
def _apply_linear_correction(image, params: EnhancementParams, mean_luminance: float):
    # Contrast pivots on the brightened mean luminance: a flat image keeps
    # its corrected exposure.
    pivot = mean_luminance * params.brightness
    matrix = cm.compose(
        cm.brightness(params.brightness),
        cm.contrast(params.contrast, pivot=pivot),
        cm.saturate(params.saturation),
    )
    return cm.apply_matrix(image, matrix)


@skip_step_on_error("white_balance")
def _apply_white_balance(image):
    return ColorOps.correct_white_balance(image, _ENH["wb_max_factor"])


@skip_step_on_error("denoise")
def _apply_denoise(image, aggressive: bool):
    intensity = _ENH["denoise_intensity_aggressive"] if aggressive else _ENH["denoise_intensity"]
    return SpatialOps.denoise(image, intensity, _ENH["denoise_variance_scale"])


@skip_step_on_error("sharpen")
def _apply_sharpening(image, aggressive: bool):
    intensity = _ENH["sharpen_intensity_aggressive"] if aggressive else _ENH["sharpen_intensity"]
    return SpatialOps.unsharp_mask(image, intensity, _ENH["unsharp_sigma"], _ENH["unsharp_kernel_size"])


def enhance(
    buffer: PixelBuffer,
    metrics: Optional[ImageMetrics] = None,
    hints: Optional[Iterable[str]] = None,
    aggressive: bool = False,
    hint_matcher: HintMatcher = match_hints,
) -> PixelBuffer:
    """Run the corrective pipeline on ``buffer`` and return a new buffer.

    Args:
        buffer: Source image; never modified.
        metrics: Pre-computed metrics for ``buffer``. Computed when omitted.
        hints: Free-text improvement suggestions (matched best-effort).
        aggressive: Scale every correction by the aggressive multiplier.
        hint_matcher: Callable mapping hints to :class:`HintFlags`.

    Returns:
        The enhanced buffer; an identical copy when nothing needs fixing or
        the buffer is degenerate.
    """
    if buffer.is_empty:
        logger.warning("Skipping enhancement of an empty %dx%d buffer.", buffer.width, buffer.height)
        return buffer.copy()

    if metrics is None:
        metrics = analyze_metrics(buffer)
    params = derive_enhancement_params(metrics, hints, aggressive, hint_matcher)
    logger.debug("Enhancement params: %s", params)

    image = to_working(buffer)

    if params.has_linear_correction:
        image = _apply_linear_correction(image, params, metrics.brightness)
    if params.white_balance:
        image = _apply_white_balance(image)
    if params.denoise:
        image = _apply_denoise(image, params.aggressive)
    if params.sharpen:
        image = _apply_sharpening(image, params.aggressive)

    return from_working(image)
