"""Configuration management using pydantic-settings."""

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from subtune.exceptions import ConfigurationError
from subtune.models.quality import QualityThresholds

_ENV_FILES = (".env", "../.env")

DEFAULT_ACCEPTABLE_LANGUAGES = (
    "en,ja,ko,zh,fr,de,es,ru,it,pt,pl,nl,tr,ar,hi,th,vi,sv,da,no,fi,he,hu,cs,sk,bg,hr,sl,"
    "et,lv,lt,mt,ga,cy,eu,ca,gl,is,mk,sq,be,uk,az,kk,ky,uz,tg,am,ka,hy,ne,si,my,km,lo,"
    "gu,pa,ta,te,kn,ml,bn,as,or,mr"
)


class TranscriptionMode(str, Enum):
    SIMPLE = "simple"
    TUNED = "tuned"


class TranslationMode(str, Enum):
    SIMPLE = "simple"
    CONTEXT = "context"
    NLP = "nlp"


def _lower(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class TranscriberConfig(BaseSettings):
    """Transcription backend and tempo exploration configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSCRIBER_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = "whisper_cpp"
    binary_path: str = "whisper-cli"
    mode: TranscriptionMode = TranscriptionMode.TUNED
    explore_model: str = "base"
    transcribe_model: str = "medium"
    acceptable_languages: str = DEFAULT_ACCEPTABLE_LANGUAGES
    fallback_language: str = "en"  # empty disables the fallback
    language: str | None = None  # hint; None lets the backend detect
    explore_steps: int = Field(default=10, ge=1)
    explore_range_min: int = Field(default=80, gt=0)
    explore_range_max: int = Field(default=110, gt=0)
    temperature: float = Field(default=0.0, ge=0.0, le=1.0)
    timeout_s: float = Field(default=3600.0, gt=0)
    threads: int | None = Field(default=None, ge=1)
    cache_dir: str | None = None  # transcription and extracted-audio cache; None disables

    @field_validator("mode", "provider", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Any:
        return _lower(value)

    @model_validator(mode="after")
    def _validate_range(self) -> "TranscriberConfig":
        if int(self.explore_range_min) > int(self.explore_range_max):
            raise ConfigurationError(
                "TRANSCRIBER_EXPLORE_RANGE_MIN must be <= TRANSCRIBER_EXPLORE_RANGE_MAX "
                f"(got {self.explore_range_min} > {self.explore_range_max})"
            )
        return self

    def acceptable_language_list(self) -> list[str]:
        out: list[str] = []
        for raw in str(self.acceptable_languages or "").split(","):
            code = raw.strip().lower()
            if code and code not in out:
                out.append(code)
        return out


class TranslateConfig(BaseSettings):
    """Translation backend and strategy configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSLATE_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = "ollama"
    endpoint: str = "http://localhost:11434"
    model: str = "llama3.2:3b"
    api_key: str = ""
    source_language: str | None = None
    max_retries: int = Field(default=3, ge=0)
    mode: TranslationMode = TranslationMode.SIMPLE
    nlp_gap_threshold: float = Field(default=2.0, ge=0)
    nlp_soft_sentence_chars: int = Field(
        default=200,
        ge=1,
        description="Close a merged sentence unit past this many characters once it holds a sentence boundary.",
    )
    nlp_max_sentence_chars: int = Field(
        default=800,
        ge=1,
        description="Close a merged sentence unit once its text grows past this many characters.",
    )
    context_window_size: int = Field(default=2, ge=0)
    request_timeout_s: float = Field(default=300.0, gt=0)
    cache_dir: str | None = None

    @field_validator("mode", "provider", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Any:
        return _lower(value)


class QualityConfig(BaseSettings):
    """Quality gate thresholds."""

    model_config = SettingsConfigDict(
        env_prefix="QUALITY_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    repetitive_segment_threshold: float = Field(default=0.8, ge=0, le=1)
    max_tokens_threshold: float = Field(default=50.0, gt=0)
    min_quality_score: float = Field(default=0.7, ge=0, le=1)
    repetition_ngram_size: int = Field(default=3, ge=1)
    repetition_window: int = Field(default=32, ge=1)


class MediaConfig(BaseSettings):
    """Media toolkit (ffmpeg) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MEDIA_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ffmpeg_bin: str = "ffmpeg"
    sample_rate: int = Field(default=16000, ge=8000)


class ConcurrencyConfig(BaseSettings):
    """Bounded fan-out limits."""

    model_config = SettingsConfigDict(
        env_prefix="CONCURRENCY_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    exploration: int = Field(default=2, ge=1)
    translation: int = Field(default=4, ge=1)


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = "INFO"
    console_level: str | None = None  # defaults to `level`
    file_level: str | None = None  # defaults to `level`
    library_level: str = "WARNING"
    library_loggers: str = "httpx,httpcore"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"
    console: bool = True
    file: str | None = None
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=0)
    backup_count: int = Field(default=5, ge=0)


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILES, env_file_encoding="utf-8", extra="ignore"
    )

    models_dir: str = "./models"
    data_dir: str = "./data"
    log_dir: str = "./logs"

    transcriber: TranscriberConfig = TranscriberConfig()
    translate: TranslateConfig = TranslateConfig()
    quality: QualityConfig = QualityConfig()
    media: MediaConfig = MediaConfig()
    concurrency: ConcurrencyConfig = ConcurrencyConfig()
    logging: LoggingSettings = LoggingSettings()

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        self.models_dir = str(Path(self.models_dir).expanduser().resolve())
        self.data_dir = str(Path(self.data_dir).expanduser().resolve())
        self.log_dir = str(Path(self.log_dir).expanduser().resolve())
        return self

    def quality_thresholds(self) -> QualityThresholds:
        return QualityThresholds(
            repetitive_segment_threshold=float(self.quality.repetitive_segment_threshold),
            max_tokens_threshold=float(self.quality.max_tokens_threshold),
            min_quality_score=float(self.quality.min_quality_score),
            ngram_size=int(self.quality.repetition_ngram_size),
            window=int(self.quality.repetition_window),
        )

    def transcription_backend_config(self) -> dict[str, Any]:
        """Return a transcription backend config dict for the provider registry."""
        cfg = self.transcriber.model_dump()
        cfg["models_dir"] = self.models_dir
        cfg["ffmpeg_bin"] = self.media.ffmpeg_bin
        cfg["sample_rate"] = int(self.media.sample_rate)
        cfg["work_dir"] = str(Path(self.data_dir) / "work")
        return cfg

    def translation_backend_config(self) -> dict[str, Any]:
        """Return a translation backend config dict for the provider registry."""
        cfg = self.translate.model_dump()
        provider = str(cfg.get("provider") or "").strip().lower()
        if not provider:
            raise ConfigurationError("translation provider is not configured")
        endpoint = str(cfg.get("endpoint") or "").strip()
        if not endpoint:
            raise ConfigurationError(f"translation provider {provider!r} requires an endpoint")
        cfg["endpoint"] = endpoint.rstrip("/")
        return cfg

