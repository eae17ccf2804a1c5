# Artistic and basic filters
"""
Named and parametrized filter styles built from the primitive operations.

Three kinds of filter share one entry point, :func:`apply_filter`:

- :class:`BasicFilter`: legacy CSS-style filters collapsed into a single
  color-matrix pass.
- :class:`ArtisticFilter`: eight named styles, each a fixed chain of steps.
- :class:`CustomFilter`: a fully parametrized chain (brightness, contrast,
  saturation, hue, vignette, grain, blur and an optional color matrix).

Every filter is pure: the source buffer is never touched and every output
channel is clamped to [0, 255].
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from . import color_matrix as cm
from .primitives import ColorOps, SpatialOps
from ..config import settings
from ..utils.errors import skip_step_on_error
from ..utils.imaging import PixelBuffer, to_working, from_working, luminance
from ..utils.logger import get_logger

logger = get_logger(__name__)

_F = settings.FILTER_DEFAULTS


class BasicKind(str, Enum):
    NONE = "none"
    VINTAGE = "vintage"
    BLACKWHITE = "blackwhite"
    WARM = "warm"
    COOL = "cool"


class ArtisticKind(str, Enum):
    IMPRESSIONIST = "impressionist"
    POPART = "popart"
    CINEMATIC = "cinematic"
    VIBRANT = "vibrant"
    DREAMY = "dreamy"
    DRAMATIC = "dramatic"
    RETRO = "retro"
    NEON = "neon"


@dataclass(frozen=True)
class CustomFilterParams:
    """Parameters of the custom filter; defaults are the identity values."""
    brightness: float = 1.0
    contrast: float = 1.0
    saturation: float = 1.0
    hue: float = 0.0                       # degrees
    vignette: float = 0.0                  # 0-1
    grain: float = 0.0                     # 0-1
    blur: float = 0.0                      # pixels
    color_matrix: Optional[Tuple[float, ...]] = None

    def __post_init__(self):
        if self.color_matrix is not None:
            values = tuple(float(v) for v in self.color_matrix)
            if len(values) != 20:
                raise ValueError(f"color_matrix needs 20 coefficients, got {len(values)}")
            object.__setattr__(self, "color_matrix", values)

    @property
    def is_identity(self) -> bool:
        return self == CustomFilterParams()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.color_matrix is not None:
            data["color_matrix"] = list(self.color_matrix)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CustomFilterParams":
        """Build params from a mapping, ignoring unknown keys."""
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        return cls(**known)


@dataclass(frozen=True)
class BasicFilter:
    kind: BasicKind = BasicKind.NONE

    def __post_init__(self):
        object.__setattr__(self, "kind", BasicKind(self.kind))

    @property
    def filter_id(self) -> str:
        return self.kind.value

    def serialized_params(self) -> str:
        return ""


@dataclass(frozen=True)
class ArtisticFilter:
    kind: ArtisticKind

    def __post_init__(self):
        object.__setattr__(self, "kind", ArtisticKind(self.kind))

    @property
    def filter_id(self) -> str:
        return self.kind.value

    def serialized_params(self) -> str:
        return ""


@dataclass(frozen=True)
class CustomFilter:
    params: CustomFilterParams = field(default_factory=CustomFilterParams)

    @property
    def filter_id(self) -> str:
        return "custom"

    def serialized_params(self) -> str:
        return json.dumps(self.params.to_dict(), sort_keys=True)


FilterSpec = Union[BasicFilter, ArtisticFilter, CustomFilter]


# --- Basic filters ---
_BASIC_MATRICES = {
    BasicKind.VINTAGE: cm.compose(cm.sepia(0.5), cm.contrast(1.2), cm.brightness(0.95)),
    BasicKind.BLACKWHITE: cm.grayscale(),
    BasicKind.WARM: cm.compose(cm.sepia(0.3), cm.saturate(1.2), cm.brightness(1.05)),
    BasicKind.COOL: cm.compose(cm.hue_rotate(180), cm.saturate(0.8), cm.brightness(1.1)),
}


def apply_basic_filter(buffer: PixelBuffer, kind: Union[BasicKind, str]) -> PixelBuffer:
    """Apply a legacy filter as one color-matrix pass. ``none`` is an exact copy."""
    kind = BasicKind(kind)
    if kind is BasicKind.NONE or buffer.is_empty:
        return buffer.copy()
    image = cm.apply_matrix(to_working(buffer), _BASIC_MATRICES[kind])
    return from_working(image)


# --- Artistic filters ---
_NEON_MIX = (
    (1.2, 0.1, 0.1),
    (0.1, 0.8, 0.3),
    (0.1, 0.3, 1.2),
)

Step = Tuple[str, Callable, tuple]

_ARTISTIC_STEPS: Dict[ArtisticKind, List[Step]] = {
    ArtisticKind.IMPRESSIONIST: [
        ("soft_blur", SpatialOps.soft_blur, (1.5,)),
        ("contrast", ColorOps.adjust_contrast, (0.7,)),
        ("pastel_push", ColorOps.pastel_push, (_F["pastel_lift"], _F["pastel_desaturation"])),
    ],
    ArtisticKind.POPART: [
        ("saturation", ColorOps.adjust_saturation, (1.5,)),
        ("contrast", ColorOps.adjust_contrast, (1.4,)),
        ("vivid_push", ColorOps.adjust_saturation, (1.5,)),
    ],
    ArtisticKind.CINEMATIC: [
        ("brightness", ColorOps.adjust_brightness, (0.85,)),
        ("contrast", ColorOps.adjust_contrast, (1.3,)),
        ("tint", ColorOps.tint_channels, (0.9, 0.95, 1.0)),
    ],
    ArtisticKind.VIBRANT: [
        ("saturation", ColorOps.adjust_saturation, (1.4,)),
        ("normalize", ColorOps.normalize_luminance,
         (_F["vibrant_target_luminance"], _F["vibrant_tolerance"])),
    ],
    ArtisticKind.DREAMY: [
        ("soft_blur", SpatialOps.soft_blur, (0.8,)),
        ("brightness", ColorOps.adjust_brightness, (1.15,)),
        ("contrast", ColorOps.adjust_contrast, (0.85,)),
    ],
    ArtisticKind.DRAMATIC: [
        ("contrast", ColorOps.adjust_contrast, (1.5,)),
        ("brightness", ColorOps.adjust_brightness, (0.9,)),
        ("vignette", SpatialOps.apply_vignette, (0.3,)),
    ],
    ArtisticKind.RETRO: [
        ("sepia", ColorOps.apply_sepia, (0.4,)),
        ("grain", SpatialOps.add_grain, (0.15,)),
        ("contrast", ColorOps.adjust_contrast, (1.1,)),
    ],
    ArtisticKind.NEON: [
        ("saturation", ColorOps.adjust_saturation, (1.6,)),
        ("contrast", ColorOps.adjust_contrast, (1.4,)),
        ("channel_mix", ColorOps.mix_channels, (_NEON_MIX,)),
    ],
}


def _run_steps(image: np.ndarray, steps: List[Step]) -> np.ndarray:
    for name, op, args in steps:
        image = skip_step_on_error(name)(op)(image, *args)
    return image


def apply_artistic_filter(buffer: PixelBuffer, kind: Union[ArtisticKind, str]) -> PixelBuffer:
    """Apply one of the named artistic styles."""
    kind = ArtisticKind(kind)
    if buffer.is_empty:
        return buffer.copy()
    logger.debug("Applying artistic filter '%s' to %dx%d", kind.value, buffer.width, buffer.height)
    return from_working(_run_steps(to_working(buffer), _ARTISTIC_STEPS[kind]))


# --- Custom filter ---
def _custom_contrast(image, factor):
    """Increase stretches around the fixed pivot; decrease flattens toward the mean."""
    if factor >= 1.0:
        return ColorOps.adjust_contrast(image, factor)
    mean = float(luminance(image).mean())
    return ColorOps.adjust_contrast(image, max(0.0, factor), pivot=mean)


def _custom_saturation(image, factor):
    if factor >= 1.0:
        return ColorOps.boost_saturation_hsv(image, factor)
    return ColorOps.adjust_saturation(image, max(0.0, factor))


def _custom_steps(params: CustomFilterParams) -> List[Step]:
    steps: List[Step] = []
    if params.brightness != 1.0:
        steps.append(("brightness", ColorOps.adjust_brightness, (params.brightness,)))
    if params.contrast != 1.0:
        steps.append(("contrast", _custom_contrast, (params.contrast,)))
    if params.saturation != 1.0:
        steps.append(("saturation", _custom_saturation, (params.saturation,)))
    if params.hue % 360 != 0:
        steps.append(("hue", ColorOps.rotate_hue, (params.hue,)))
    if params.vignette > 0:
        steps.append(("vignette", SpatialOps.apply_vignette, (params.vignette,)))
    if params.grain > 0:
        steps.append(("grain", SpatialOps.add_grain, (params.grain,)))
    if params.blur > 0:
        steps.append(("blur", SpatialOps.soft_blur, (params.blur,)))
    if params.color_matrix is not None and not cm.is_identity(params.color_matrix):
        steps.append(("color_matrix", ColorOps.apply_color_matrix, (params.color_matrix,)))
    return steps


def apply_custom_filter(buffer: PixelBuffer, params: Optional[CustomFilterParams] = None) -> PixelBuffer:
    """Apply the parametrized chain; identity parameters are skipped."""
    params = params or CustomFilterParams()
    steps = _custom_steps(params)
    if not steps or buffer.is_empty:
        return buffer.copy()
    logger.debug("Applying custom filter steps: %s", [name for name, _, _ in steps])
    return from_working(_run_steps(to_working(buffer), steps))


def apply_filter(buffer: PixelBuffer, spec: FilterSpec) -> PixelBuffer:
    """Dispatch ``spec`` to the matching filter family."""
    if isinstance(spec, BasicFilter):
        return apply_basic_filter(buffer, spec.kind)
    if isinstance(spec, ArtisticFilter):
        return apply_artistic_filter(buffer, spec.kind)
    if isinstance(spec, CustomFilter):
        return apply_custom_filter(buffer, spec.params)
    raise ValueError(f"Unsupported filter spec: {spec!r}")
