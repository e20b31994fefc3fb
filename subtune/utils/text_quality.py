"""Token-level text statistics used by the quality gate."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Sequence

_CJK_CHARS = "぀-ヿ㐀-䶿一-鿿가-힯豈-﫿"
_TOKEN_RE = re.compile(rf"[{_CJK_CHARS}]|[^\s{_CJK_CHARS}]+")
_NON_WORD_RE = re.compile(r"[^\w]+")

# Segments shorter than this are scored as if they lasted this long.
MIN_RATE_DURATION_S = 1.0


def normalize_token(token: str) -> str:
    return _NON_WORD_RE.sub("", str(token or "").casefold())


def tokenize(text: str) -> list[str]:
    """Split text into normalized tokens.

    Whitespace separates words; CJK, kana and hangul characters are one token
    each. Tokens consisting only of punctuation are dropped.
    """
    out: list[str] = []
    for raw in _TOKEN_RE.findall(str(text or "")):
        tok = normalize_token(raw)
        if tok:
            out.append(tok)
    return out


def repetition_ratio(tokens: Sequence[str], *, ngram_size: int = 3, window: int = 32) -> float:
    """Fraction of tokens covered by an n-gram that already occurred within `window` tokens.

    Short inputs use shorter n-grams (at most half the token count) so that
    two-word stutters are still detected.
    """
    n = len(tokens)
    if n < 2:
        return 0.0
    size = max(1, min(int(ngram_size), n // 2))
    repeated = [False] * n
    last_seen: dict[tuple[str, ...], int] = {}
    for i in range(0, n - size + 1):
        gram = tuple(tokens[i : i + size])
        prev = last_seen.get(gram)
        if prev is not None and i - prev <= int(window):
            for k in range(i, i + size):
                repeated[k] = True
        last_seen[gram] = i
    return sum(repeated) / n


def duplicate_text_ratio(texts: Sequence[str]) -> float:
    """Fraction of texts that repeat an earlier text verbatim (after normalization)."""
    normalized = [" ".join(tokenize(t)) for t in texts]
    normalized = [t for t in normalized if t]
    if not normalized:
        return 0.0
    counts = Counter(normalized)
    duplicates = sum(c - 1 for c in counts.values() if c > 1)
    return duplicates / len(normalized)


def token_rate(token_count: int, duration_s: float | None) -> float:
    """Tokens per second; 0.0 when the duration is unknown."""
    if duration_s is None:
        return 0.0
    return float(token_count) / max(float(duration_s), MIN_RATE_DURATION_S)
