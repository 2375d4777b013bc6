"""Heuristic confidence for a machine translation. The chat UI offers a retry when this is low."""
import re

from mandi_notify.core.languages import HIGH_CONFIDENCE_PAIRS

BASE_CONFIDENCE = 0.85
MIN_CONFIDENCE = 0.3
MAX_CONFIDENCE = 0.95

_DIGIT = re.compile(r"[0-9]")


def score(original: str, translated: str, from_lang: str, to_lang: str) -> float:
    """Adjust the base score for text shape and language pair, then clamp to [0.3, 0.95]."""
    confidence = BASE_CONFIDENCE

    if len(original) < 10:
        confidence += 0.1  # short texts translate reliably
    if len(original) > 100:
        confidence -= 0.1
    if _DIGIT.search(original):
        confidence += 0.05  # numbers survive translation

    if frozenset({from_lang, to_lang}) in HIGH_CONFIDENCE_PAIRS:
        confidence += 0.05

    if translated == original and from_lang != to_lang:
        confidence -= 0.3  # model echoed the input
    if len(translated) < len(original) * 0.3:
        confidence -= 0.2  # truncated
    if len(translated) > len(original) * 3:
        confidence -= 0.1  # padded / explained instead of translated

    return min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, confidence))
