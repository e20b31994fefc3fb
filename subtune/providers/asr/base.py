"""Transcription backend interface and shared CLI plumbing."""

from __future__ import annotations

import json
import logging
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from subtune.exceptions import BackendUnavailableError
from subtune.models.segment import SegmentSet
from subtune.providers.audio.ffmpeg import FFmpegMediaToolkit
from subtune.utils.subprocess import run_tool

if TYPE_CHECKING:
    from subtune.services.transcription_cache import TranscriptionCache

logger = logging.getLogger(__name__)


@runtime_checkable
class TranscriptionBackend(Protocol):
    """Anything that turns audio into a SegmentSet.

    Returned timings are on the source-audio timeline regardless of the tempo
    the audio was played at.
    """

    async def transcribe(
        self,
        audio_path: str,
        *,
        model: str,
        tempo_percent: int = 100,
        temperature: float = 0.0,
        language_hint: str | None = None,
    ) -> SegmentSet: ...


class CliTranscriptionBackend(ABC):
    """Base for backends that shell out to a whisper command line tool.

    Each call renders a tempo-adjusted WAV into a scratch directory, runs the
    tool, parses its JSON output and rescales timestamps by `tempo / 100`.
    With a `cache`, results are stored per (audio, model, tempo, temperature,
    language hint) and a hit skips both ffmpeg and the tool.
    """

    provider: str = "cli"

    def __init__(
        self,
        *,
        binary_path: str,
        media: FFmpegMediaToolkit | None = None,
        timeout_s: float | None = None,
        work_dir: str | None = None,
        cache: TranscriptionCache | None = None,
    ) -> None:
        self.binary_path = binary_path
        self.media = media or FFmpegMediaToolkit()
        self.timeout_s = timeout_s
        self.work_dir = work_dir
        self.cache = cache

    @abstractmethod
    def build_command(
        self,
        wav_path: Path,
        output_dir: Path,
        *,
        model: str,
        temperature: float,
        language_hint: str | None,
    ) -> tuple[list[str], Path]:
        """Return the argv to run and the path of the JSON file it will write."""

    @abstractmethod
    def parse_output(self, data: dict[str, Any]) -> SegmentSet:
        """Convert the tool's JSON output into a SegmentSet on the played-audio timeline."""

    async def transcribe(
        self,
        audio_path: str,
        *,
        model: str,
        tempo_percent: int = 100,
        temperature: float = 0.0,
        language_hint: str | None = None,
    ) -> SegmentSet:
        cache_args = {
            "provider": self.provider,
            "model": model,
            "tempo_percent": int(tempo_percent),
            "temperature": float(temperature),
            "language_hint": language_hint,
        }
        if self.cache is not None:
            cached = await self.cache.get(audio_path, **cache_args)
            if cached is not None:
                logger.info("transcription cache hit (model=%s, tempo=%s)", model, tempo_percent)
                return cached

        if self.work_dir:
            Path(self.work_dir).mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix="subtune-asr-", dir=self.work_dir) as tmp:
            tmp_dir = Path(tmp)
            wav_path = tmp_dir / f"tempo_{int(tempo_percent)}.wav"
            await self.media.apply_tempo(str(audio_path), str(wav_path), int(tempo_percent))

            args, json_path = self.build_command(
                wav_path,
                tmp_dir,
                model=model,
                temperature=float(temperature),
                language_hint=language_hint,
            )
            logger.info(
                "transcribing (provider=%s, model=%s, tempo=%s, audio=%s)",
                self.provider,
                model,
                tempo_percent,
                audio_path,
            )
            await run_tool(self.provider, args, timeout_s=self.timeout_s)
            data = self._load_json(json_path)

        segments = self.parse_output(data)
        if int(tempo_percent) != 100:
            segments = segments.rescaled(int(tempo_percent) / 100.0)
        if self.cache is not None:
            await self.cache.put(audio_path, segments, **cache_args)
        return segments

    def _load_json(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            raise BackendUnavailableError(self.provider, f"output file missing: {path.name}")
        try:
            data = json.loads(path.read_text(encoding="utf-8", errors="replace"))
        except json.JSONDecodeError as exc:
            raise BackendUnavailableError(self.provider, f"malformed JSON output: {exc}") from exc
        if not isinstance(data, dict):
            raise BackendUnavailableError(self.provider, "JSON output is not an object")
        return data
