from __future__ import annotations

import pytest

from subtune.config import (
    ConcurrencyConfig,
    LoggingSettings,
    MediaConfig,
    QualityConfig,
    Settings,
    TranscriberConfig,
    TranslateConfig,
)


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        data_dir=str(tmp_path / "data"),
        models_dir=str(tmp_path / "models"),
        log_dir=str(tmp_path / "logs"),
        transcriber=TranscriberConfig(_env_file=None),
        translate=TranslateConfig(_env_file=None),
        quality=QualityConfig(_env_file=None),
        media=MediaConfig(_env_file=None),
        concurrency=ConcurrencyConfig(_env_file=None),
        logging=LoggingSettings(_env_file=None),
    )
