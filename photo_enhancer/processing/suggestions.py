# Style suggestion parsing
"""
Normalization of text responses from an external style-suggestion model.

The model is asked for a bare JSON object but routinely wraps it in markdown
fences or returns out-of-range values. Everything here degrades to a safe
default instead of raising.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .filters import ArtisticKind, CustomFilterParams
from ..utils.errors import ErrorCategory, handle_errors
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_STYLE = ArtisticKind.VIBRANT
DEFAULT_CONFIDENCE = 0.5
MISSING_CONFIDENCE = 0.7
DEFAULT_REASON = "Style suggested from photo analysis"
DEFAULT_STYLE_DESCRIPTION = "Custom style tuned for this photo"
NEUTRAL_STYLE_DESCRIPTION = "No filter applied"

# (low, high, neutral) per custom parameter
CUSTOM_PARAM_RANGES = {
    "brightness": (0.8, 1.2, 1.0),
    "contrast": (0.9, 1.3, 1.0),
    "saturation": (0.7, 1.4, 1.0),
    "hue": (-30.0, 30.0, 0.0),
    "vignette": (0.0, 0.3, 0.0),
    "grain": (0.0, 0.2, 0.0),
    "blur": (0.0, 2.0, 0.0),
}

_FENCE_RE = re.compile(r"```(?:json)?\n?")


@dataclass(frozen=True)
class ArtisticSuggestion:
    style: ArtisticKind
    confidence: float
    reason: str


@dataclass(frozen=True)
class CustomFilterSuggestion:
    params: CustomFilterParams = field(default_factory=CustomFilterParams)
    style_description: str = NEUTRAL_STYLE_DESCRIPTION


def _strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


@handle_errors(fallback_value=None, category=ErrorCategory.USER_INPUT)
def _decode_json(text: str) -> Any:
    return json.loads(_strip_fences(text))


def _load_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse ``text`` into a JSON object, or None when it isn't one."""
    if not text or not text.strip():
        return None
    data = _decode_json(text)
    if data is not None and not isinstance(data, dict):
        logger.warning(f"Suggestion response is not an object: {type(data).__name__}")
        return None
    return data


def _fallback_suggestion(reason: str) -> ArtisticSuggestion:
    return ArtisticSuggestion(DEFAULT_STYLE, DEFAULT_CONFIDENCE, reason)


def parse_artistic_suggestion(text: Optional[str]) -> ArtisticSuggestion:
    """Turn a model response into an :class:`ArtisticSuggestion`.

    Empty, unparsable or invalid-style responses fall back to ``vibrant``
    with confidence 0.5. A missing or out-of-range confidence becomes 0.7.
    """
    if not text or not text.strip():
        return _fallback_suggestion("Empty response, default suggestion")

    data = _load_object(text)
    if data is None:
        return _fallback_suggestion("Unparsable response, default suggestion")

    try:
        style = ArtisticKind(data.get("style"))
    except ValueError:
        logger.warning(f"Invalid style in suggestion response: {data.get('style')!r}")
        return _fallback_suggestion("Invalid style, default suggestion")

    confidence = data.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) or not 0.0 <= confidence <= 1.0:
        confidence = MISSING_CONFIDENCE

    reason = data.get("reason") or DEFAULT_REASON
    return ArtisticSuggestion(style, float(confidence), str(reason))


def _clamp_param(name: str, value: Any) -> float:
    low, high, neutral = CUSTOM_PARAM_RANGES[name]
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value == 0:
        # missing or zero values fall back to neutral
        value = neutral
    return float(max(low, min(high, value)))


def default_custom_filter_params() -> CustomFilterSuggestion:
    """Neutral custom params (no visible change)."""
    return CustomFilterSuggestion()


def parse_custom_filter_params(text: Optional[str]) -> CustomFilterSuggestion:
    """Turn a model response into clamped custom filter params.

    Every parameter is clamped to its allowed range; failures yield the
    neutral params.
    """
    data = _load_object(text)
    if data is None:
        return default_custom_filter_params()

    values = {name: _clamp_param(name, data.get(name)) for name in CUSTOM_PARAM_RANGES}

    matrix = data.get("color_matrix", data.get("colorMatrix"))
    if matrix is not None:
        if isinstance(matrix, list) and len(matrix) == 20 and all(
                isinstance(v, (int, float)) and not isinstance(v, bool) for v in matrix):
            values["color_matrix"] = tuple(matrix)
        else:
            logger.warning("Ignoring malformed color matrix in suggestion response")

    description = data.get("style_description") or data.get("styleDescription") or DEFAULT_STYLE_DESCRIPTION
    return CustomFilterSuggestion(CustomFilterParams(**values), str(description))
