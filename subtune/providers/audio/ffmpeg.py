"""FFmpeg-based audio utilities."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from subtune.utils.subprocess import run_tool

logger = logging.getLogger(__name__)

# atempo accepts factors in [0.5, 2.0] per filter instance on older ffmpeg builds.
_ATEMPO_MIN = 0.5
_ATEMPO_MAX = 2.0


def resolve_ffmpeg_bin(ffmpeg_bin: str = "ffmpeg") -> str:
    ffmpeg_bin = (ffmpeg_bin or "ffmpeg").strip()
    if Path(ffmpeg_bin).exists():
        return ffmpeg_bin
    return shutil.which(ffmpeg_bin) or ffmpeg_bin


def atempo_filter(tempo_percent: int) -> str:
    """Build an `atempo` filter chain for a tempo given in percent (100 = unchanged)."""
    if tempo_percent <= 0:
        raise ValueError("tempo_percent must be positive")
    factor = float(tempo_percent) / 100.0
    parts: list[str] = []
    while factor > _ATEMPO_MAX:
        parts.append(f"atempo={_ATEMPO_MAX}")
        factor /= _ATEMPO_MAX
    while factor < _ATEMPO_MIN:
        parts.append(f"atempo={_ATEMPO_MIN}")
        factor /= _ATEMPO_MIN
    parts.append(f"atempo={factor:g}")
    return ",".join(parts)


class FFmpegMediaToolkit:
    """Extracts speech-ready audio (16 kHz mono PCM WAV) and renders tempo variants."""

    provider = "ffmpeg"

    def __init__(
        self,
        ffmpeg_bin: str = "ffmpeg",
        *,
        sample_rate: int = 16000,
        timeout_s: float | None = None,
    ) -> None:
        self.ffmpeg_bin = resolve_ffmpeg_bin(ffmpeg_bin)
        self.sample_rate = int(sample_rate)
        self.timeout_s = timeout_s

    def _audio_args(self, input_path: str, output_path: str, extra: list[str]) -> list[str]:
        return [
            self.ffmpeg_bin,
            "-i",
            str(input_path),
            "-vn",
            "-acodec",
            "pcm_s16le",
            "-ar",
            str(self.sample_rate),
            "-ac",
            "1",
            *extra,
            "-y",
            str(output_path),
        ]

    async def extract_audio(self, media_path: str, output_path: str) -> str:
        """Extract the audio track of a media file."""
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        await run_tool(
            self.provider,
            self._audio_args(media_path, output_path, []),
            timeout_s=self.timeout_s,
        )
        logger.info("audio extracted (input=%s, output=%s)", media_path, output_path)
        return str(output_path)

    async def apply_tempo(self, audio_path: str, output_path: str, tempo_percent: int) -> str:
        """Render `audio_path` played at `tempo_percent` of its original speed."""
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        extra: list[str] = []
        if int(tempo_percent) != 100:
            extra = ["-af", atempo_filter(int(tempo_percent))]
        await run_tool(
            self.provider,
            self._audio_args(audio_path, output_path, extra),
            timeout_s=self.timeout_s,
        )
        logger.debug("tempo rendered (tempo=%s, output=%s)", tempo_percent, output_path)
        return str(output_path)
