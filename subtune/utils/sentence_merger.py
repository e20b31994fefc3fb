"""Merge consecutive segments into sentence-level groups by silence gaps."""

from __future__ import annotations

import re
from collections.abc import Iterable

from subtune.models.segment import Segment

# Terminal punctuation followed by a space and a capital letter.
_STRONG_ENDING_RE = re.compile(r"[.!?] [A-Z]")


def has_strong_sentence_ending(text: str) -> bool:
    return _STRONG_ENDING_RE.search(text) is not None


def merge_segments(
    segments: Iterable[Segment],
    *,
    gap_threshold: float,
    max_chars: int | None = None,
    soft_max_chars: int | None = None,
) -> list[list[Segment]]:
    """Group consecutive non-blank segments into sentences.

    A gap (`next.start - prev.end`) strictly greater than `gap_threshold` is a
    hard boundary. A group is also closed once its joined text is longer than
    `max_chars`, or longer than `soft_max_chars` while it already contains a
    sentence boundary (see `has_strong_sentence_ending`). Blank segments are
    skipped and never join a group.
    """
    groups: list[list[Segment]] = []
    current: list[Segment] = []
    parts: list[str] = []
    for seg in segments:
        if seg.is_blank:
            continue
        if current:
            gap = float(seg.start) - float(current[-1].end)
            if gap > float(gap_threshold):
                groups.append(current)
                current, parts = [], []
        current.append(seg)
        parts.append(seg.text.strip())
        joined = " ".join(parts)
        too_long = max_chars is not None and len(joined) > int(max_chars)
        soft_split = (
            soft_max_chars is not None
            and len(joined) > int(soft_max_chars)
            and has_strong_sentence_ending(joined)
        )
        if too_long or soft_split:
            groups.append(current)
            current, parts = [], []
    if current:
        groups.append(current)
    return groups
