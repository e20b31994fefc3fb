"""Time-stamped segment models shared by transcription and translation."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class Segment:
    """A time-bounded unit of transcribed or translated text (seconds)."""

    id: int
    start: float
    end: float
    text: str
    confidence: float | None = None
    language: str | None = None  # overrides SegmentSet.language when set

    def __post_init__(self) -> None:
        if float(self.end) <= float(self.start):
            raise ValueError(
                f"segment {self.id}: end ({self.end}) must be greater than start ({self.start})"
            )
        if self.confidence is not None and not 0.0 <= float(self.confidence) <= 1.0:
            raise ValueError(f"segment {self.id}: confidence must be within [0, 1]")

    @property
    def duration(self) -> float:
        return float(self.end) - float(self.start)

    @property
    def is_blank(self) -> bool:
        return not str(self.text or "").strip()


@dataclass(frozen=True)
class SegmentSet:
    """Ordered, immutable collection of segments for one transcript or translation pass.

    Segments are ordered by start time. Time overlaps produced by a backend are
    tolerated as-is. Every stage produces a new SegmentSet instead of mutating
    its input.
    """

    segments: tuple[Segment, ...]
    language: str
    duration: float | None = None
    backend_info: str | None = None

    def __post_init__(self) -> None:
        segments = tuple(self.segments)
        object.__setattr__(self, "segments", segments)
        for prev, cur in zip(segments, segments[1:]):
            if cur.start < prev.start:
                raise ValueError(
                    f"segments must be ordered by start time (id={cur.id} starts before id={prev.id})"
                )

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def __getitem__(self, index: int) -> Segment:
        return self.segments[index]

    @property
    def text(self) -> str:
        return " ".join(s.text.strip() for s in self.segments if s.text.strip())

    @property
    def ids(self) -> list[int]:
        return [int(s.id) for s in self.segments]

    def is_empty(self) -> bool:
        return all(s.is_blank for s in self.segments)

    def language_of(self, segment: Segment) -> str:
        return segment.language or self.language

    def with_texts(
        self,
        texts: Mapping[int, str],
        *,
        language: str | None = None,
        backend_info: str | None = None,
        segment_languages: Mapping[int, str] | None = None,
    ) -> SegmentSet:
        """Return a new set with texts replaced by segment id; timings are kept as-is."""
        overrides = dict(segment_languages or {})
        segments = tuple(
            replace(
                seg,
                text=texts.get(seg.id, seg.text),
                language=overrides.get(seg.id, seg.language),
            )
            for seg in self.segments
        )
        return SegmentSet(
            segments=segments,
            language=language or self.language,
            duration=self.duration,
            backend_info=backend_info if backend_info is not None else self.backend_info,
        )

    def rescaled(self, factor: float) -> SegmentSet:
        """Return a new set with every timestamp multiplied by `factor`."""
        if factor <= 0:
            raise ValueError("factor must be positive")
        segments = tuple(
            replace(seg, start=float(seg.start) * factor, end=float(seg.end) * factor)
            for seg in self.segments
        )
        duration = float(self.duration) * factor if self.duration is not None else None
        return replace(self, segments=segments, duration=duration)


@dataclass
class SegmentSetBuilder:
    """Collects raw segments and builds an immutable SegmentSet.

    Ids are assigned in insertion order; segments are then stably sorted by
    start time.
    """

    language: str = "unknown"
    duration: float | None = None
    backend_info: str | None = None
    _pending: list[Segment] = field(default_factory=list)

    def add(
        self,
        start: float,
        end: float,
        text: str,
        *,
        confidence: float | None = None,
        language: str | None = None,
    ) -> SegmentSetBuilder:
        self._pending.append(
            Segment(
                id=len(self._pending),
                start=float(start),
                end=float(end),
                text=str(text or "").strip(),
                confidence=confidence,
                language=language,
            )
        )
        return self

    def __len__(self) -> int:
        return len(self._pending)

    def build(self) -> SegmentSet:
        ordered = sorted(self._pending, key=lambda s: float(s.start))
        duration = self.duration
        if duration is None and ordered:
            duration = max(float(s.end) for s in ordered)
        return SegmentSet(
            segments=tuple(ordered),
            language=str(self.language or "unknown"),
            duration=duration,
            backend_info=self.backend_info,
        )
