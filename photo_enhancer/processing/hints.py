# Free-text improvement hints
"""
Best-effort mapping from free-text improvement hints to correction flags.

Hints come from an upstream photo review (often an LLM, often in French) and
are matched by case-insensitive substring search. The matcher is a plain
callable so the enhancement pipeline can be given a different one.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Tuple


@dataclass(frozen=True)
class HintFlags:
    """Corrections requested by the hints."""
    brightness: bool = False
    contrast: bool = False
    sharpen: bool = False
    saturation: bool = False
    denoise: bool = False
    white_balance: bool = False

    def any(self) -> bool:
        return any((self.brightness, self.contrast, self.sharpen,
                    self.saturation, self.denoise, self.white_balance))


DEFAULT_HINT_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "brightness": ("luminosité", "luminosite", "brightness"),
    "contrast": ("contraste", "contrast"),
    "sharpen": ("netteté", "netete", "sharp", "flou"),
    "saturation": ("saturation", "couleur", "color"),
    "denoise": ("bruit", "noise", "grain"),
    "white_balance": ("balance", "blanc", "white balance"),
}

HintMatcher = Callable[[Iterable[str]], HintFlags]


def match_hints(hints: Optional[Iterable[str]],
                keywords: Dict[str, Tuple[str, ...]] = DEFAULT_HINT_KEYWORDS) -> HintFlags:
    """Flag each correction whose keywords appear in any hint."""
    if not hints:
        return HintFlags()
    lowered = [str(hint).lower() for hint in hints if hint]
    flags = {
        name: any(term in hint for hint in lowered for term in terms)
        for name, terms in keywords.items()
        if name in HintFlags.__dataclass_fields__
    }
    return HintFlags(**flags)
