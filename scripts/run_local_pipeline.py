from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from subtune.config import Settings, TranscriptionMode, TranslationMode
from subtune.exceptions import SubTuneError
from subtune.models.serializers import (
    serialize_segment_set,
    serialize_translation_report,
    serialize_tune_result,
)
from subtune.pipeline.context import PipelineContext
from subtune.pipeline.factory import create_subtitle_pipeline
from subtune.providers import get_media_toolkit
from subtune.services.transcription_cache import TranscriptionCache
from subtune.utils.logging_setup import setup_logging

logger = logging.getLogger("subtune.scripts.run_local_pipeline")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Transcribe and translate a local media file.")
    parser.add_argument("--media", required=True, help="Path to local video/audio file")
    parser.add_argument(
        "--target-language",
        action="append",
        default=[],
        help="Target language code (repeatable)",
    )
    parser.add_argument(
        "--transcription-mode",
        choices=[m.value for m in TranscriptionMode],
        default=None,
        help="Override TRANSCRIBER_MODE",
    )
    parser.add_argument(
        "--translation-mode",
        choices=[m.value for m in TranslationMode],
        default=None,
        help="Override TRANSLATE_MODE",
    )
    parser.add_argument("--source-language", default=None, help="Force the translation source language")
    parser.add_argument("--output", default=None, help="Write the JSON result here (default: stdout)")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    return parser.parse_args()


async def _audio_for(settings: Settings, media_path: Path) -> Path:
    """Extract the audio track, reusing a cached extraction of the same media."""
    media = get_media_toolkit(settings.transcription_backend_config())
    if not settings.transcriber.cache_dir:
        audio_path = Path(settings.data_dir) / "audio" / f"{media_path.stem}.wav"
        await media.extract_audio(str(media_path), str(audio_path))
        return audio_path

    audio_path = await TranscriptionCache(settings.transcriber.cache_dir).audio_path_for(media_path)
    if audio_path.exists():
        logger.info("audio cache hit (media=%s, audio=%s)", media_path, audio_path)
        return audio_path
    partial = audio_path.with_name(f"{audio_path.stem}.part.wav")
    await media.extract_audio(str(media_path), str(partial))
    partial.replace(audio_path)
    return audio_path


async def _run() -> int:
    args = _parse_args()
    media_path = Path(args.media)
    if not media_path.exists():
        raise SystemExit(f"Media not found: {media_path}")

    settings = Settings()
    if args.source_language:
        settings.translate.source_language = str(args.source_language)
    setup_logging(settings, level=args.log_level)

    audio_path = await _audio_for(settings, media_path)

    initial: PipelineContext = {
        "media_path": str(media_path),
        "audio_path": str(audio_path),
        "target_languages": [str(lang) for lang in args.target_language],
    }
    if args.transcription_mode:
        initial["transcription_mode"] = str(args.transcription_mode)
    if args.translation_mode:
        initial["translation_mode"] = str(args.translation_mode)

    pipeline = create_subtitle_pipeline(settings)
    try:
        context = await pipeline.run(initial)
    except SubTuneError as exc:
        logger.error("pipeline failed (error_code=%s, error=%s)", getattr(exc, "error_code", None), exc)
        return 1
    finally:
        await pipeline.close()

    transcription = context["transcription"]
    result: dict[str, Any] = {
        "media": str(media_path),
        "detected_language": transcription.detected_language,
        "source_language": transcription.source_language,
        "tempo": transcription.tempo_percent,
        "tuning": serialize_tune_result(transcription.tuning) if transcription.tuning else None,
        "transcript": serialize_segment_set(transcription.segments),
        "translations": {
            lang: serialize_translation_report(report)
            for lang, report in (context.get("translations") or {}).items()
        },
    }
    payload = json.dumps(result, ensure_ascii=False, indent=2)
    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
    else:
        print(payload)

    failed = sum(len(v) for v in (context.get("translation_failures") or {}).values())
    return 2 if failed else 0


def main() -> None:
    raise SystemExit(asyncio.run(_run()))


if __name__ == "__main__":
    main()
