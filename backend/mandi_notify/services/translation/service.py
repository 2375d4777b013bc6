"""
Translate text for the chat surface and attach a confidence score.
Validation here; the backend below just calls the model.
"""
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

from mandi_notify.core.constants import MAX_TRANSLATION_CHARS
from mandi_notify.core.errors import TranslationError, ValidationError, classify_translation_error
from mandi_notify.core.languages import is_supported
from mandi_notify.services.translation.backend import TranslationBackend
from mandi_notify.services.translation.confidence import score

logger = logging.getLogger(__name__)


@dataclass
class TranslationResult:
    original_text: str
    translated_text: str
    confidence: float
    from_language: str
    to_language: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        return {
            "originalText": d["original_text"],
            "translatedText": d["translated_text"],
            "confidence": d["confidence"],
            "fromLanguage": d["from_language"],
            "toLanguage": d["to_language"],
            "timestamp": d["timestamp"],
        }


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _validate(text: Any, from_lang: Any, to_lang: Any) -> None:
    if not text or not isinstance(text, str):
        raise ValidationError("Invalid input: 'text' must be a non-empty string")
    if not from_lang or not isinstance(from_lang, str):
        raise ValidationError("Invalid input: 'fromLang' must be a valid language code")
    if not to_lang or not isinstance(to_lang, str):
        raise ValidationError("Invalid input: 'toLang' must be a valid language code")
    if not text.strip():
        raise ValidationError("Text cannot be empty or only whitespace")
    if len(text) > MAX_TRANSLATION_CHARS:
        raise ValidationError(f"Text too long (maximum {MAX_TRANSLATION_CHARS} characters allowed)")


def translate_text(backend: TranslationBackend, text: str, from_lang: str, to_lang: str) -> TranslationResult:
    """
    Translate text between two supported languages.
    Same-language requests return the input with confidence 1.0 without calling the backend.
    Raises ValidationError for bad input and TranslationError (user-facing message) for backend failures.
    """
    _validate(text, from_lang, to_lang)

    if from_lang == to_lang:
        return TranslationResult(text, text, 1.0, from_lang, to_lang, _now())

    if not is_supported(from_lang):
        raise ValidationError(f"Unsupported source language: {from_lang}")
    if not is_supported(to_lang):
        raise ValidationError(f"Unsupported target language: {to_lang}")

    try:
        translated = (backend.translate(text, from_lang, to_lang) or "").strip()
    except Exception as e:
        logger.error("Translation backend error (%s -> %s): %s", from_lang, to_lang, e)
        raise classify_translation_error(e) from e
    if not translated:
        raise TranslationError("Empty translation result received. Please try again.")

    confidence = score(text, translated, from_lang, to_lang)
    logger.info(
        "Translation completed: %s -> %s (original_length=%s translated_length=%s confidence=%.2f)",
        from_lang,
        to_lang,
        len(text),
        len(translated),
        confidence,
    )
    return TranslationResult(text, translated, confidence, from_lang, to_lang, _now())
