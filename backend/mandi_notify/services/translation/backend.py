"""Translation backends. The service depends only on the TranslationBackend protocol."""
import logging
import threading
from typing import Protocol

from pydantic_ai import Agent
from pydantic_ai.settings import ModelSettings

from mandi_notify.core.languages import MANDI_TERMINOLOGY, language_name

logger = logging.getLogger(__name__)

TRANSLATOR_INSTRUCTIONS = f"""{MANDI_TERMINOLOGY}

You translate short messages between buyers and sellers.
Maintain the context and meaning, especially for agricultural and trading terms.
Only return the translated text, nothing else."""


class TranslationBackend(Protocol):
    def translate(self, text: str, from_lang: str, to_lang: str) -> str:
        """Return the translated text. Raise on provider failure; the service classifies the error."""
        ...


class AgentTranslationBackend:
    """LLM translation through a pydantic-ai Agent. The agent is built on first use."""

    def __init__(self, model: str, *, temperature: float = 0.3, max_tokens: int = 1000) -> None:
        self._model = model
        self._model_settings = ModelSettings(temperature=temperature, top_p=0.8, max_tokens=max_tokens)
        self._agent: Agent | None = None
        self._lock = threading.Lock()

    def _get_agent(self) -> Agent:
        with self._lock:
            if self._agent is None:
                self._agent = Agent(
                    model=self._model,
                    instructions=TRANSLATOR_INSTRUCTIONS,
                    retries=1,
                    model_settings=self._model_settings,
                )
            return self._agent

    def translate(self, text: str, from_lang: str, to_lang: str) -> str:
        prompt = (
            f"Translate the following text from {language_name(from_lang)} to {language_name(to_lang)}.\n\n"
            f'Text to translate: "{text}"'
        )
        result = self._get_agent().run_sync(prompt)
        return str(result.output)
