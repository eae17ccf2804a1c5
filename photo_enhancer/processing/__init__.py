# Processing package initialization
from .metrics import ImageMetrics, analyze_metrics
from .hints import HintFlags, match_hints, DEFAULT_HINT_KEYWORDS
from .primitives import ColorOps, SpatialOps
from .enhancement import EnhancementParams, derive_enhancement_params, enhance
from .filters import (
    BasicKind, ArtisticKind, BasicFilter, ArtisticFilter, CustomFilter,
    CustomFilterParams, FilterSpec,
    apply_basic_filter, apply_artistic_filter, apply_custom_filter, apply_filter
)
from .suggestions import (
    ArtisticSuggestion, CustomFilterSuggestion,
    parse_artistic_suggestion, parse_custom_filter_params, default_custom_filter_params
)
