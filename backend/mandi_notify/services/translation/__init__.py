"""Chat translation: LLM backend, validation, confidence scoring."""
from mandi_notify.services.translation.backend import AgentTranslationBackend, TranslationBackend
from mandi_notify.services.translation.service import TranslationResult, translate_text

__all__ = [
    "AgentTranslationBackend",
    "TranslationBackend",
    "TranslationResult",
    "translate_text",
]
