"""Backend factory and registry."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from subtune.exceptions import ConfigurationError
from subtune.providers.asr.base import TranscriptionBackend
from subtune.providers.audio.ffmpeg import FFmpegMediaToolkit
from subtune.providers.llm.base import TranslationBackend


def get_media_toolkit(config: Mapping[str, Any]) -> FFmpegMediaToolkit:
    return FFmpegMediaToolkit(
        ffmpeg_bin=str(config.get("ffmpeg_bin") or "ffmpeg"),
        sample_rate=int(config.get("sample_rate", 16000)),
        timeout_s=config.get("timeout_s"),
    )


def get_transcription_backend(config: Mapping[str, Any]) -> TranscriptionBackend:
    """Get a transcription backend based on configuration."""
    provider_type = str(config.get("provider", "whisper_cpp")).strip().lower()
    media = get_media_toolkit(config)
    timeout_s = config.get("timeout_s")
    work_dir = config.get("work_dir")
    cache = None
    if config.get("cache_dir"):
        from subtune.services.transcription_cache import TranscriptionCache

        cache = TranscriptionCache(str(config["cache_dir"]))

    match provider_type:
        case "whisper_cpp" | "whisper-cpp" | "whispercpp":
            from subtune.providers.asr.whisper_cpp import WhisperCppBackend

            return WhisperCppBackend(
                binary_path=str(config.get("binary_path") or "whisper-cli"),
                models_dir=str(config.get("models_dir") or "./models"),
                media=media,
                timeout_s=timeout_s,
                threads=config.get("threads"),
                work_dir=work_dir,
                cache=cache,
            )
        case "openai_whisper" | "openai" | "whisper":
            from subtune.providers.asr.openai_whisper import OpenAIWhisperBackend

            binary = str(config.get("binary_path") or "")
            if not binary or binary == "whisper-cli":
                binary = "whisper"
            return OpenAIWhisperBackend(
                binary_path=binary,
                media=media,
                timeout_s=timeout_s,
                work_dir=work_dir,
                cache=cache,
            )
        case _:
            raise ConfigurationError(f"Unknown transcription provider: {provider_type}")


def get_translation_backend(config: Mapping[str, Any]) -> TranslationBackend:
    """Get a translation backend based on configuration."""
    provider_type = str(config.get("provider", "ollama")).strip().lower()
    model = str(config.get("model") or "").strip()
    if not model:
        raise ConfigurationError(f"translation provider {provider_type!r} requires a model")
    timeout = float(config.get("request_timeout_s", 300.0))

    match provider_type:
        case "ollama":
            from subtune.providers.llm.ollama import OllamaTranslationBackend

            return OllamaTranslationBackend(
                model=model,
                endpoint=config.get("endpoint"),
                timeout=timeout,
            )
        case "openai_compat" | "openai":
            from subtune.providers.llm.openai_compat import OpenAICompatTranslationBackend

            return OpenAICompatTranslationBackend(
                api_key=str(config.get("api_key") or ""),
                model=model,
                base_url=config.get("endpoint"),
                timeout=timeout,
                provider=provider_type,
            )
        case _:
            raise ConfigurationError(f"Unknown translation provider: {provider_type}")
