"""Persistent cache of backend transcriptions and extracted audio.

Entries are keyed by a SHA-256 of the audio file contents, so a re-extracted
copy of the same audio at another path still hits.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from pathlib import Path

from subtune.models.segment import SegmentSet
from subtune.models.serializers import deserialize_segment_set, serialize_segment_set
from subtune.services.translation_cache import read_entry, write_entry

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


def file_digest(path: str | Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def transcription_key(
    audio_digest: str,
    *,
    provider: str,
    model: str,
    tempo_percent: int,
    temperature: float,
    language_hint: str | None,
) -> str:
    h = hashlib.sha256()
    parts = (
        audio_digest,
        provider,
        model,
        str(int(tempo_percent)),
        f"{float(temperature):g}",
        language_hint or "auto",
    )
    for part in parts:
        h.update(part.encode("utf-8"))
        h.update(b"\x00")
    return h.hexdigest()


class TranscriptionCache:
    """Transcriptions under `root/transcriptions/<aa>/<key>.json`, audio under `root/audio/`."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).expanduser()
        self._digests: dict[tuple[str, int, int], str] = {}

    async def digest(self, path: str | Path) -> str:
        """Content hash of `path`, memoized by (path, size, mtime)."""
        resolved = Path(path).resolve()
        stat = resolved.stat()
        memo_key = (str(resolved), int(stat.st_size), int(stat.st_mtime_ns))
        cached = self._digests.get(memo_key)
        if cached is None:
            cached = await asyncio.to_thread(file_digest, resolved)
            self._digests[memo_key] = cached
        return cached

    async def _entry_path(
        self,
        audio_path: str | Path,
        *,
        provider: str,
        model: str,
        tempo_percent: int,
        temperature: float,
        language_hint: str | None,
    ) -> Path:
        key = transcription_key(
            await self.digest(audio_path),
            provider=provider,
            model=model,
            tempo_percent=tempo_percent,
            temperature=temperature,
            language_hint=language_hint,
        )
        return self.root / "transcriptions" / key[:2] / f"{key}.json"

    async def get(
        self,
        audio_path: str | Path,
        *,
        provider: str,
        model: str,
        tempo_percent: int,
        temperature: float,
        language_hint: str | None,
    ) -> SegmentSet | None:
        path = await self._entry_path(
            audio_path,
            provider=provider,
            model=model,
            tempo_percent=tempo_percent,
            temperature=temperature,
            language_hint=language_hint,
        )
        data = await asyncio.to_thread(read_entry, path)
        if data is None:
            return None
        try:
            return deserialize_segment_set(data)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("transcription cache entry invalid (path=%s, error=%s)", path, exc)
            return None

    async def put(
        self,
        audio_path: str | Path,
        segments: SegmentSet,
        *,
        provider: str,
        model: str,
        tempo_percent: int,
        temperature: float,
        language_hint: str | None,
    ) -> None:
        path = await self._entry_path(
            audio_path,
            provider=provider,
            model=model,
            tempo_percent=tempo_percent,
            temperature=temperature,
            language_hint=language_hint,
        )
        await asyncio.to_thread(write_entry, path, serialize_segment_set(segments))

    async def audio_path_for(self, media_path: str | Path) -> Path:
        """Where the extracted audio of `media_path` is kept."""
        return self.root / "audio" / f"{await self.digest(media_path)}.wav"
