"""Tests for retry-rename and temp-directory staging."""

from pathlib import Path
from unittest.mock import patch

import pytest

from epitrim.errors import MissingFileError, RenameError
from epitrim.staging import (
    EPISODE,
    UNTRIMMED,
    remove_stale,
    retry_rename,
    stage,
)


class TestRetryRename:
    def test_renames(self, tmp_path: Path):
        src = tmp_path / "a.mkv"
        src.write_text("data")
        retry_rename(src, tmp_path / "b.mkv")
        assert not src.exists()
        assert (tmp_path / "b.mkv").read_text() == "data"

    def test_overwrites_existing_destination(self, tmp_path: Path):
        (tmp_path / "a.mkv").write_text("new")
        (tmp_path / "b.mkv").write_text("old")
        retry_rename(tmp_path / "a.mkv", tmp_path / "b.mkv")
        assert (tmp_path / "b.mkv").read_text() == "new"

    def test_succeeds_after_transient_failures(self, tmp_path: Path):
        locked = PermissionError("file is in use")
        with patch.object(Path, "replace", side_effect=[locked, locked, locked, None]) as mock_replace:
            retry_rename(tmp_path / "a.mkv", tmp_path / "b.mkv", max_attempts=4)
        assert mock_replace.call_count == 4

    def test_gives_up_after_max_attempts(self, tmp_path: Path):
        with patch.object(Path, "replace", side_effect=PermissionError("file is in use")) as mock_replace:
            with pytest.raises(RenameError, match="after 10 attempts") as exc_info:
                retry_rename(tmp_path / "a.mkv", tmp_path / "b.mkv")
        assert mock_replace.call_count == 10
        assert isinstance(exc_info.value.__cause__, PermissionError)

    def test_missing_source_exhausts_budget(self, tmp_path: Path):
        with pytest.raises(RenameError):
            retry_rename(tmp_path / "nope.mkv", tmp_path / "b.mkv", max_attempts=2)

    def test_rejects_zero_attempts(self, tmp_path: Path):
        with pytest.raises(ValueError):
            retry_rename(tmp_path / "a.mkv", tmp_path / "b.mkv", max_attempts=0)

    @patch("epitrim.staging.time.sleep")
    def test_delay_between_attempts(self, mock_sleep, tmp_path: Path):
        with patch.object(Path, "replace", side_effect=[OSError("busy"), None]):
            retry_rename(tmp_path / "a.mkv", tmp_path / "b.mkv", delay=0.25)
        mock_sleep.assert_called_once_with(0.25)


class TestRemoveStale:
    def test_removes_present_ignores_missing(self, tmp_path: Path):
        (tmp_path / "prefix.episode.mkv").write_text("x")
        remove_stale(tmp_path, "prefix.episode.mkv", "video.episode.mkv")
        assert list(tmp_path.iterdir()) == []


class TestStage:
    def test_moves_canonical_aside(self, episode_dir: Path):
        staged = stage(episode_dir, UNTRIMMED)
        assert staged == episode_dir / UNTRIMMED
        assert staged.read_text() == "original episode"
        assert not (episode_dir / EPISODE).exists()

    def test_replaces_stale_staged_file(self, episode_dir: Path):
        (episode_dir / UNTRIMMED).write_text("stale")
        stage(episode_dir, UNTRIMMED)
        assert (episode_dir / UNTRIMMED).read_text() == "original episode"

    def test_resumes_from_staged_file(self, tmp_path: Path):
        (tmp_path / UNTRIMMED).write_text("left over")
        staged = stage(tmp_path, UNTRIMMED)
        assert staged.read_text() == "left over"

    def test_nothing_to_stage(self, tmp_path: Path):
        with pytest.raises(MissingFileError, match="episode.mkv"):
            stage(tmp_path, UNTRIMMED)
