"""openai-whisper (`whisper` CLI) transcription backend."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any

from subtune.exceptions import BackendUnavailableError
from subtune.models.segment import SegmentSet, SegmentSetBuilder
from subtune.providers.asr.base import CliTranscriptionBackend
from subtune.utils.languages import LANGUAGE_NAMES, normalize_language

logger = logging.getLogger(__name__)

_NAME_TO_CODE = {name.lower(): code for code, name in LANGUAGE_NAMES.items()}


def confidence_from_logprob(avg_logprob: Any) -> float | None:
    if not isinstance(avg_logprob, (int, float)):
        return None
    return min(1.0, max(0.0, math.exp(float(avg_logprob))))


class OpenAIWhisperBackend(CliTranscriptionBackend):
    provider = "openai_whisper"

    def build_command(
        self,
        wav_path: Path,
        output_dir: Path,
        *,
        model: str,
        temperature: float,
        language_hint: str | None,
    ) -> tuple[list[str], Path]:
        args = [
            self.binary_path,
            str(wav_path),
            "--model",
            str(model),
            "--output_dir",
            str(output_dir),
            "--output_format",
            "json",
            "--temperature",
            f"{float(temperature):g}",
        ]
        language = normalize_language(language_hint)
        if language:
            args += ["--language", language]
        return args, output_dir / f"{wav_path.stem}.json"

    def parse_output(self, data: dict[str, Any]) -> SegmentSet:
        raw_language = str(data.get("language") or "").strip().lower()
        language = _NAME_TO_CODE.get(raw_language) or normalize_language(raw_language) or "unknown"
        items = data.get("segments")
        if not isinstance(items, list):
            raise BackendUnavailableError(self.provider, "JSON output has no segments list")

        builder = SegmentSetBuilder(language=language, backend_info=self.provider)
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                start = float(item.get("start", 0.0))
                end = float(item.get("end", 0.0))
            except (TypeError, ValueError):
                continue
            if end <= start:
                logger.debug("skip zero-length segment (start=%s, end=%s)", start, end)
                continue
            builder.add(
                start,
                end,
                str(item.get("text") or ""),
                confidence=confidence_from_logprob(item.get("avg_logprob")),
            )
        return builder.build()
