"""Persistent cache of accepted translations."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def cache_key(*, model: str, target_language: str, context: str | None, text: str) -> str:
    """SHA-256 over the inputs that determine a translation."""
    h = hashlib.sha256()
    for part in (model, target_language, context or "", text):
        h.update(str(part).encode("utf-8"))
        h.update(b"\x00")
    return h.hexdigest()


def read_entry(path: Path) -> dict[str, Any] | None:
    """Load a JSON cache entry; unreadable or corrupt entries count as misses."""
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("cache entry unreadable (path=%s, error=%s)", path, exc)
        return None
    return data if isinstance(data, dict) else None


def write_entry(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    tmp.replace(path)


class TranslationCache:
    """JSON file per entry under `root/<aa>/<key>.json`.

    File access runs in a worker thread so that concurrent translation units
    do not block the event loop.
    """

    def __init__(self, root: str | Path, *, model: str) -> None:
        self.root = Path(root).expanduser()
        self.model = model

    def _path(self, text: str, target_language: str, context: str | None) -> Path:
        key = cache_key(model=self.model, target_language=target_language, context=context, text=text)
        return self.root / key[:2] / f"{key}.json"

    async def get(self, text: str, *, target_language: str, context: str | None = None) -> str | None:
        data = await asyncio.to_thread(read_entry, self._path(text, target_language, context))
        value = data.get("translation") if data is not None else None
        return value if isinstance(value, str) else None

    async def put(
        self,
        text: str,
        translation: str,
        *,
        target_language: str,
        context: str | None = None,
    ) -> None:
        payload = {
            "model": self.model,
            "target_language": target_language,
            "source": text,
            "translation": translation,
        }
        await asyncio.to_thread(write_entry, self._path(text, target_language, context), payload)
