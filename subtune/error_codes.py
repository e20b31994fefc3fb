"""Canonical error codes surfaced to callers."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    UNKNOWN = "UNKNOWN"
    CONFIGURATION = "CONFIGURATION"

    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"
    BACKEND_TIMEOUT = "BACKEND_TIMEOUT"

    EXPLORATION_EXHAUSTED = "EXPLORATION_EXHAUSTED"
    TRANSCRIPTION_REJECTED = "TRANSCRIPTION_REJECTED"
    LANGUAGE_UNSUPPORTED = "LANGUAGE_UNSUPPORTED"

    TRANSLATION_FAILED = "TRANSLATION_FAILED"
    TRANSLATION_UNIT_FAILED = "TRANSLATION_UNIT_FAILED"
