"""Audio/media tooling."""

from subtune.providers.audio.ffmpeg import FFmpegMediaToolkit

__all__ = ["FFmpegMediaToolkit"]
