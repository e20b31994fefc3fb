"""Distribute a merged-unit translation back onto its source segments."""

from __future__ import annotations

import math
import re
from typing import Sequence

from subtune.models.segment import Segment

_PUNCTUATION_RE = re.compile(r"[。，！？；：、,.!?;:]")
_CJK_RE = re.compile(r"[぀-ヿ一-鿿가-힯]")
_WORD_RE = re.compile(r"\w")


def _contains_cjk(text: str) -> bool:
    return bool(_CJK_RE.search(text))


def _joiner_for_text(text: str) -> str:
    if any(ch.isspace() for ch in text):
        return " "
    if _contains_cjk(text):
        return ""
    return " "


def _split_on_punctuation(text: str) -> list[str]:
    # Keep the punctuation attached to the piece it ends.
    pieces: list[str] = []
    start = 0
    for match in _PUNCTUATION_RE.finditer(text):
        piece = text[start : match.end()].strip()
        if piece and not _PUNCTUATION_RE.fullmatch(piece):
            pieces.append(piece)
        elif piece and pieces:
            pieces[-1] = pieces[-1] + piece
        start = match.end()
    tail = text[start:].strip()
    if tail:
        pieces.append(tail)
    return pieces


def _split_units_no_punctuation(text: str) -> tuple[list[str], str]:
    cleaned = str(text or "").strip()
    if not cleaned:
        return [], ""
    if any(ch.isspace() for ch in cleaned):
        return [u for u in cleaned.split() if u], " "
    return [ch for ch in cleaned if not ch.isspace()], ""


def _valid_halves(left: str, right: str) -> tuple[str, str] | None:
    if _WORD_RE.search(left) and _WORD_RE.search(right):
        return left, right
    return None


def _split_piece_in_two(piece: str) -> tuple[str, str] | None:
    """Halve a piece by words (or characters); halves must both contain a word character."""
    raw = str(piece or "").strip()
    if not raw:
        return None
    if any(ch.isspace() for ch in raw):
        words = [w for w in raw.split() if w]
        if len(words) < 2:
            return None
        mid = len(words) // 2
        return _valid_halves(" ".join(words[:mid]), " ".join(words[mid:]))

    chars = [ch for ch in raw if not ch.isspace()]
    if len(chars) < 2:
        return None
    mid = len(chars) // 2
    return _valid_halves("".join(chars[:mid]), "".join(chars[mid:]))


def _subdivide_pieces(pieces: list[str], *, target_count: int) -> list[str]:
    out = [p for p in pieces if str(p).strip()]
    while out and len(out) < target_count:
        longest_idx = max(range(len(out)), key=lambda i: len(out[i]))
        split = _split_piece_in_two(out[longest_idx])
        if split is None:
            break
        out = out[:longest_idx] + list(split) + out[longest_idx + 1 :]
    return out


def allocate_counts_by_duration(total_pieces: int, segments: Sequence[Segment]) -> list[int]:
    """Largest-remainder allocation of pieces to segments, one piece minimum each."""
    n = len(segments)
    if n <= 0:
        return []
    if total_pieces <= 0:
        return [0] * n
    if n == 1:
        return [total_pieces]
    if total_pieces < n:
        return [1] * total_pieces + [0] * (n - total_pieces)

    counts = [1] * n
    remaining = total_pieces - n
    if remaining <= 0:
        return counts

    durations = [max(0.0, float(seg.end) - float(seg.start)) for seg in segments]
    total_duration = sum(durations)
    if total_duration <= 0:
        for i in range(remaining):
            counts[i % n] += 1
        return counts

    ideal_extras = [dur / total_duration * remaining for dur in durations]
    floor_extras = [int(math.floor(x)) for x in ideal_extras]
    for i, extra in enumerate(floor_extras):
        counts[i] += extra
    remaining -= sum(floor_extras)

    order = sorted(
        range(n),
        key=lambda i: (ideal_extras[i] - floor_extras[i], durations[i]),
        reverse=True,
    )
    for i in range(max(0, remaining)):
        counts[order[i % n]] += 1
    return counts


def _assign(pieces: list[str], counts: list[int], joiner: str, fallback: str) -> list[str]:
    out: list[str] = []
    idx = 0
    for cnt in counts:
        take = max(1, int(cnt))
        assigned = pieces[idx : idx + take]
        idx += take
        if not assigned:
            assigned = [pieces[-1]]
        chunk = joiner.join(p.strip() for p in assigned if p.strip()).strip()
        out.append(chunk or pieces[-1].strip() or fallback)
    return out


def distribute_translation(translation: str, segments: Sequence[Segment]) -> dict[int, str]:
    """Split a translation of merged segments into per-segment texts keyed by segment id.

    Rules:
    - Prefer splitting after punctuation; punctuation stays with its piece.
    - Without punctuation, split into words (spaced text) or characters.
    - Pieces are allocated to segments in order, weighted by segment duration.
    - No segment receives empty text unless the translation itself is blank.
    - If there are more segments than pieces, the last piece is repeated.
    """
    if not segments:
        return {}

    text = str(translation or "").strip()
    if not text:
        return {int(seg.id): "" for seg in segments}
    if len(segments) == 1:
        return {int(segments[0].id): text}

    if _PUNCTUATION_RE.search(text):
        pieces = _subdivide_pieces(_split_on_punctuation(text) or [text], target_count=len(segments))
        joiner = _joiner_for_text(text)
    else:
        pieces, joiner = _split_units_no_punctuation(text)
    if not pieces:
        pieces = [text]

    if len(pieces) < len(segments):
        pieces = pieces + [pieces[-1]] * (len(segments) - len(pieces))

    counts = allocate_counts_by_duration(len(pieces), segments)
    chunks = _assign(pieces, counts, joiner, text)
    return {int(seg.id): chunk for seg, chunk in zip(segments, chunks)}
