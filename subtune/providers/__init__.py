"""Backends for external collaborators (whisper tools, LLM servers, ffmpeg)."""

from subtune.providers.registry import (
    get_media_toolkit,
    get_transcription_backend,
    get_translation_backend,
)

__all__ = ["get_media_toolkit", "get_transcription_backend", "get_translation_backend"]
