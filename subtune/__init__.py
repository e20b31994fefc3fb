"""subtune: quality-gated transcription tuning and subtitle translation."""

__version__ = "0.1.0"
