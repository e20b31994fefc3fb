"""Translation backend interface and prompt construction."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from subtune.utils.languages import language_name, normalize_language

# Shorter inputs get the compact prompt without a context block.
_SHORT_TEXT_CHARS = 50


@runtime_checkable
class TranslationBackend(Protocol):
    """Anything that can translate one piece of text."""

    async def translate(
        self,
        text: str,
        *,
        source_language: str,
        target_language: str,
        context: str | None = None,
    ) -> str: ...


def build_translation_prompt(
    text: str,
    *,
    source_language: str,
    target_language: str,
    context: str | None = None,
) -> str:
    """Build a prompt asking for a JSON `{"text": ...}` translation."""
    target_name = language_name(target_language)
    source_name = language_name(source_language)
    target_code = normalize_language(target_language) or target_language
    header = (
        "You are a professional subtitle translator.\n"
        "\n"
        f"CRITICAL: You must translate the text from {source_name} to {target_name} ONLY. "
        "Do not translate to any other language.\n"
        f"The target language is: {target_name} (language code: {target_code})\n"
        "\n"
        f'Return ONLY the translation in JSON format as {{"text":"your {target_name} translation here"}}.\n'
        "Do not include any explanations, alternatives, or text in other languages.\n"
        "\n"
    )
    ctx = str(context or "").strip()
    if len(text) < _SHORT_TEXT_CHARS and not ctx:
        return header + f'Text to translate: "{text}"\n'

    prompt = header + f"[Text to translate]\n{text}\n\n"
    if ctx:
        prompt += (
            "[Context for reference - DO NOT translate this part]\n"
            f"{ctx}\n\n"
            f"Remember: Only translate the text in the [Text to translate] section above to {target_name}.\n"
        )
    return prompt
