"""Shared test fixtures."""

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def episode_dir(tmp_path: Path) -> Path:
    (tmp_path / "episode.mkv").write_text("original episode")
    return tmp_path


@pytest.fixture
def sample_manifest_path() -> Path:
    return FIXTURES_DIR / "sample_manifest.json"
