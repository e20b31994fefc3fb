"""whisper.cpp (`whisper-cli`) transcription backend."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from subtune.exceptions import BackendUnavailableError
from subtune.models.segment import SegmentSet, SegmentSetBuilder
from subtune.providers.asr.base import CliTranscriptionBackend
from subtune.providers.audio.ffmpeg import FFmpegMediaToolkit
from subtune.utils.languages import normalize_language

if TYPE_CHECKING:
    from subtune.services.transcription_cache import TranscriptionCache

logger = logging.getLogger(__name__)


class WhisperCppBackend(CliTranscriptionBackend):
    provider = "whisper_cpp"

    def __init__(
        self,
        *,
        binary_path: str = "whisper-cli",
        models_dir: str = "./models",
        media: FFmpegMediaToolkit | None = None,
        timeout_s: float | None = None,
        threads: int | None = None,
        work_dir: str | None = None,
        cache: TranscriptionCache | None = None,
    ) -> None:
        super().__init__(
            binary_path=binary_path,
            media=media,
            timeout_s=timeout_s,
            work_dir=work_dir,
            cache=cache,
        )
        self.models_dir = models_dir
        self.threads = threads

    def model_path(self, model: str) -> Path:
        """Resolve a model id (`base`, `medium`, ...) or an explicit path to a ggml file."""
        candidate = Path(model).expanduser()
        if candidate.suffix == ".bin" or candidate.exists():
            return candidate
        return Path(self.models_dir) / f"ggml-{model}.bin"

    def build_command(
        self,
        wav_path: Path,
        output_dir: Path,
        *,
        model: str,
        temperature: float,
        language_hint: str | None,
    ) -> tuple[list[str], Path]:
        out_base = output_dir / "transcript"
        args = [
            self.binary_path,
            "-m",
            str(self.model_path(model)),
            "-f",
            str(wav_path),
            "-oj",
            "-of",
            str(out_base),
            "-l",
            normalize_language(language_hint) or "auto",
            "-tp",
            f"{float(temperature):g}",
        ]
        if self.threads:
            args += ["-t", str(int(self.threads))]
        return args, out_base.with_suffix(".json")

    def parse_output(self, data: dict[str, Any]) -> SegmentSet:
        result = data.get("result") if isinstance(data.get("result"), dict) else {}
        language = normalize_language(result.get("language")) or "unknown"
        items = data.get("transcription")
        if not isinstance(items, list):
            raise BackendUnavailableError(self.provider, "JSON output has no transcription list")

        builder = SegmentSetBuilder(language=language, backend_info=self.provider)
        for item in items:
            if not isinstance(item, dict):
                continue
            offsets = item.get("offsets") or {}
            try:
                start = float(offsets.get("from", 0)) / 1000.0
                end = float(offsets.get("to", 0)) / 1000.0
            except (TypeError, ValueError):
                continue
            if end <= start:
                logger.debug("skip zero-length segment (start=%s, end=%s)", start, end)
                continue
            builder.add(start, end, str(item.get("text") or ""))
        return builder.build()
