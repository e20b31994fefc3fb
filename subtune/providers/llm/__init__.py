"""Translation backends."""

from subtune.providers.llm.base import TranslationBackend, build_translation_prompt
from subtune.providers.llm.ollama import OllamaTranslationBackend
from subtune.providers.llm.openai_compat import OpenAICompatTranslationBackend

__all__ = [
    "OllamaTranslationBackend",
    "OpenAICompatTranslationBackend",
    "TranslationBackend",
    "build_translation_prompt",
]
