from __future__ import annotations

from subtune.models.segment import Segment
from subtune.utils.languages import language_name, normalize_language
from subtune.utils.sentence_merger import has_strong_sentence_ending, merge_segments


def _segs(*spans: tuple[float, float, str]) -> list[Segment]:
    return [Segment(id=i, start=s, end=e, text=t) for i, (s, e, t) in enumerate(spans)]


def test_gap_larger_than_threshold_splits() -> None:
    segs = _segs((0, 1, "Hello"), (1.5, 2, "world."), (5, 6, "Next"))
    groups = merge_segments(segs, gap_threshold=2.0)
    assert [[s.id for s in g] for g in groups] == [[0, 1], [2]]


def test_gap_equal_to_threshold_merges() -> None:
    segs = _segs((0, 1, "a"), (3, 4, "b"))
    assert len(merge_segments(segs, gap_threshold=2.0)) == 1


def test_blank_segments_are_skipped() -> None:
    segs = _segs((0, 1, "a"), (1, 2, "  "), (2, 3, "b"))
    groups = merge_segments(segs, gap_threshold=2.0)
    assert [[s.id for s in g] for g in groups] == [[0, 2]]


def test_max_chars_closes_group() -> None:
    segs = _segs((0, 1, "aaaa"), (1, 2, "bbbb"), (2, 3, "cccc"))
    groups = merge_segments(segs, gap_threshold=2.0, max_chars=6)
    assert [[s.id for s in g] for g in groups] == [[0, 1], [2]]


def test_soft_cap_splits_only_after_a_sentence_boundary() -> None:
    run_on = "and then we kept walking up the hill for a while"
    sentence = "We reached the top. Then it rained"
    segs = _segs((0, 1, run_on), (1, 2, run_on), (2, 3, sentence), (3, 4, "on the way down"))

    without_boundary = merge_segments(segs[:2], gap_threshold=2.0, soft_max_chars=60)
    assert [[s.id for s in g] for g in without_boundary] == [[0, 1]]

    groups = merge_segments(segs, gap_threshold=2.0, soft_max_chars=60)
    assert [[s.id for s in g] for g in groups] == [[0, 1, 2], [3]]


def test_strong_sentence_ending() -> None:
    assert has_strong_sentence_ending("It works. The end")
    assert has_strong_sentence_ending("Really? Yes")
    assert not has_strong_sentence_ending("version 2.0 is out. then lowercase")
    assert not has_strong_sentence_ending("no boundary here.")


def test_language_helpers() -> None:
    assert normalize_language("pt_BR") == "pt"
    assert language_name("JA") == "Japanese"
    assert language_name("xx") == "xx"
