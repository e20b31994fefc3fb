from __future__ import annotations

import pytest

from subtune.providers.audio.ffmpeg import FFmpegMediaToolkit, atempo_filter
from subtune.utils.subprocess import RunResult


def test_atempo_filter_chains_out_of_range_factors() -> None:
    assert atempo_filter(110) == "atempo=1.1"
    assert atempo_filter(80) == "atempo=0.8"
    assert atempo_filter(300) == "atempo=2.0,atempo=1.5"
    with pytest.raises(ValueError):
        atempo_filter(0)


@pytest.mark.asyncio
async def test_apply_tempo_builds_pcm_command(tmp_path, monkeypatch) -> None:
    seen: list[list[str]] = []

    async def _fake_run_tool(provider, args, *, timeout_s=None):
        seen.append(list(args))
        return RunResult(returncode=0, stdout=b"", stderr=b"")

    monkeypatch.setattr("subtune.providers.audio.ffmpeg.run_tool", _fake_run_tool)
    toolkit = FFmpegMediaToolkit("ffmpeg-test-bin", sample_rate=16000)
    out = tmp_path / "out" / "a.wav"

    await toolkit.apply_tempo("in.wav", str(out), 90)
    await toolkit.apply_tempo("in.wav", str(out), 100)

    first, neutral = seen
    assert first[first.index("-af") + 1] == "atempo=0.9"
    assert first[first.index("-acodec") + 1] == "pcm_s16le"
    assert first[first.index("-ar") + 1] == "16000"
    assert first[first.index("-ac") + 1] == "1"
    assert first[-1] == str(out)
    assert "-af" not in neutral
    assert out.parent.is_dir()
