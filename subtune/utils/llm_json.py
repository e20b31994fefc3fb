"""Helpers for extracting translations from LLM output."""

from __future__ import annotations

import json
import re
from typing import Any, cast

_THINK_BLOCK_RE = re.compile(r"^\s*<think>[\s\S]*?</think>\s*", re.IGNORECASE)
_THINK_TAG_RE = re.compile(r"</?think>\s*", re.IGNORECASE)
_CODE_BLOCK_PATTERNS = (
    re.compile(r"```json\s*([\s\S]*?)\s*```"),
    re.compile(r"```\s*([\s\S]*?)\s*```"),
)

_CHATTER_PREFIXES = ("Here are", "Option", "**Option", "Translation:", "- ", "* ")
_CHATTER_MARKERS = ("(Captures", "maintains")

JSONData = dict[str, Any] | list[Any]


def strip_reasoning(text: str) -> str:
    text = _THINK_BLOCK_RE.sub("", str(text or "")).strip()
    return _THINK_TAG_RE.sub("", text).strip()


def parse_llm_json(text: str) -> JSONData:
    """Parse JSON from LLM output, supporting Markdown code blocks.

    Raises:
        json.JSONDecodeError: If no JSON object/array can be recovered.
    """
    text = strip_reasoning(text)
    for pattern in _CODE_BLOCK_PATTERNS:
        match = pattern.search(text)
        if match:
            text = match.group(1).strip()
            break

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        first_error = exc
    else:
        if isinstance(data, dict):
            return cast(dict[str, Any], data)
        if isinstance(data, list):
            return data
        raise json.JSONDecodeError("Expected a JSON object/array", text, 0)

    starts = [(idx, ch) for ch in ("{", "[") if (idx := text.find(ch)) != -1]
    if not starts:
        raise first_error
    start_idx, start_ch = min(starts)
    end_idx = text.rfind("}" if start_ch == "{" else "]")
    if end_idx <= start_idx:
        raise first_error
    data = json.loads(text[start_idx : end_idx + 1])
    if isinstance(data, (dict, list)):
        return data
    raise first_error


def clean_translation_response(response: str) -> str:
    """Pick the translation line out of a chatty free-text answer.

    Lines offering alternatives, bullet lists, labels and fully bold headings
    are skipped. When nothing survives, the first non-empty line is returned.
    """
    lines = str(response or "").splitlines()
    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            continue
        if trimmed.startswith(_CHATTER_PREFIXES) or any(m in trimmed for m in _CHATTER_MARKERS):
            continue
        if trimmed.startswith("**") and trimmed.endswith("**"):
            continue
        if len(trimmed) > 3:
            return trimmed
    for line in lines:
        if line.strip():
            return line.strip()
    return str(response or "").strip()


def extract_translation_text(raw: str, *, key: str = "text") -> str:
    """Return the translated text from a `{"text": ...}` answer, or clean the raw answer."""
    cleaned = strip_reasoning(raw)
    try:
        data = parse_llm_json(cleaned)
    except json.JSONDecodeError:
        return clean_translation_response(cleaned)
    if isinstance(data, dict):
        value = data.get(key)
        if isinstance(value, str):
            return value.strip()
        for alt in ("translation", "translated_text", "response"):
            value = data.get(alt)
            if isinstance(value, str):
                return value.strip()
    return clean_translation_response(cleaned)
