"""Transcription backends."""

from subtune.providers.asr.base import CliTranscriptionBackend, TranscriptionBackend
from subtune.providers.asr.openai_whisper import OpenAIWhisperBackend
from subtune.providers.asr.whisper_cpp import WhisperCppBackend

__all__ = [
    "CliTranscriptionBackend",
    "OpenAIWhisperBackend",
    "TranscriptionBackend",
    "WhisperCppBackend",
]
