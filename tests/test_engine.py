"""Tests for the engine module."""

from pathlib import Path
from unittest.mock import patch

import pytest

from epitrim.engine import EngineResult, process, required_tools
from epitrim.errors import InputError
from epitrim.manifest import CleanConfig, Manifest, MergeConfig, TrimConfig

from fakes import FakeRunner

DURATIONS = {
    "untrimmed.episode.mkv": "60.000000",
    "video.episode.mkv": "48.000000",
    "episode.mkv": "50.000000",
}


def _manifest(temp_dir: Path, **kwargs) -> Manifest:
    return Manifest(
        temp_dir=temp_dir,
        trim=kwargs.get("trim", TrimConfig(ad_length_ms=10000, est_keyframe_ms=12000)),
        merge=kwargs.get("merge", MergeConfig(audio_lang="jpn")),
        clean=kwargs.get("clean", CleanConfig()),
    )


class TestEngineResult:
    def test_defaults(self):
        r = EngineResult(output_path=Path("episode.mkv"))
        assert r.duration_original_ms == 0
        assert r.duration_final_ms == 0
        assert r.key_frame_gap_ms is None
        assert r.stages == []


class TestRequiredTools:
    def test_all_stages(self, tmp_path: Path):
        assert required_tools(_manifest(tmp_path)) == ["ffprobe", "ffmpeg", "mkclean"]

    def test_clean_only(self, tmp_path: Path):
        m = _manifest(
            tmp_path, trim=TrimConfig(enabled=False), merge=MergeConfig(enabled=False)
        )
        assert required_tools(m) == ["ffprobe", "mkclean"]


@patch("epitrim.engine.ffutil.check_tools")
class TestProcess:
    def test_runs_stages_in_order(self, mock_check, episode_dir: Path):
        runner = FakeRunner(durations=DURATIONS)
        result = process(_manifest(episode_dir), runner=runner)

        assert result.stages == ["trim", "merge", "clean"]
        assert result.output_path == episode_dir / "episode.mkv"
        assert result.duration_original_ms == 60000
        assert result.duration_final_ms == 50000
        assert result.key_frame_gap_ms == 2000

        tools = [Path(c[0]).name for c in runner.calls if Path(c[0]).name != "ffprobe"]
        assert tools == ["ffmpeg", "ffmpeg", "ffmpeg", "ffmpeg", "mkclean"]
        mock_check.assert_called_once_with(None, ["ffprobe", "ffmpeg", "mkclean"])
        assert sorted(p.name for p in episode_dir.iterdir()) == ["episode.mkv"]

    def test_skips_disabled_stages(self, mock_check, episode_dir: Path):
        runner = FakeRunner(durations=DURATIONS)
        m = _manifest(episode_dir, trim=TrimConfig(enabled=False), clean=CleanConfig(enabled=False))
        result = process(m, runner=runner)

        assert result.stages == ["merge"]
        assert result.key_frame_gap_ms is None
        assert result.duration_original_ms == 50000
        assert [Path(c[0]).name for c in runner.calls] == ["ffprobe", "ffmpeg", "ffprobe"]

    def test_merges_subtitles(self, mock_check, episode_dir: Path):
        (episode_dir / "subtitles.episode.ass").write_text("[Script Info]")
        runner = FakeRunner(durations=DURATIONS)
        m = _manifest(episode_dir, merge=MergeConfig(audio_lang="jpn", subtitle_lang="eng"))
        process(m, runner=runner)

        merge_cmd = runner.tool_calls("ffmpeg")[-1]
        assert "language=eng" in merge_cmd
        assert not (episode_dir / "subtitles.episode.ass").exists()

    def test_error_stops_pipeline(self, mock_check, episode_dir: Path):
        runner = FakeRunner(durations={**DURATIONS, "video.episode.mkv": "55.000000"})
        with pytest.raises(InputError):
            process(_manifest(episode_dir), runner=runner)
        assert runner.tool_calls("mkclean") == []

    def test_progress(self, mock_check, episode_dir: Path):
        seen: list[tuple[str, float]] = []
        process(
            _manifest(episode_dir),
            runner=FakeRunner(durations=DURATIONS),
            on_progress=lambda stage, frac: seen.append((stage, frac)),
        )
        fracs = [f for _, f in seen]
        assert fracs == sorted(fracs)
        assert seen[-1] == ("Done", 1.0)
        assert all(0.0 <= f <= 1.0 for f in fracs)
