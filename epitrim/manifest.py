"""JSON manifest schema: the contract between CLI/API and engine."""

import json
from dataclasses import dataclass, field
from pathlib import Path

from epitrim.runner import DEFAULT_TIMEOUT
from epitrim.staging import SUBTITLES


@dataclass
class TrimConfig:
    """Configuration for removing the leading advertisement."""

    enabled: bool = True
    ad_length_ms: int = 0
    est_keyframe_ms: int = 0
    crf: int = 5


@dataclass
class MergeConfig:
    """Configuration for subtitle and language-tag remuxing."""

    enabled: bool = True
    audio_lang: str = "jpn"
    subtitle_lang: str = ""
    subtitle_file: str = SUBTITLES


@dataclass
class CleanConfig:
    """Configuration for the mkclean optimization pass."""

    enabled: bool = True


@dataclass
class Manifest:
    """Top-level post-processing manifest."""

    temp_dir: Path
    engine_dir: Path | None = None
    version: str = "1"
    timeout: float | None = DEFAULT_TIMEOUT
    trim: TrimConfig = field(default_factory=TrimConfig)
    merge: MergeConfig = field(default_factory=MergeConfig)
    clean: CleanConfig = field(default_factory=CleanConfig)


def load_manifest(path: str | Path) -> Manifest:
    """Load and validate a manifest from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())

    if "temp_dir" not in data:
        raise ValueError("Manifest must contain a 'temp_dir' field")

    trim = TrimConfig(**data["trim"]) if "trim" in data else TrimConfig()
    merge = MergeConfig(**data["merge"]) if "merge" in data else MergeConfig()
    clean = CleanConfig(**data["clean"]) if "clean" in data else CleanConfig()

    engine_dir = data.get("engine_dir")
    timeout = data.get("timeout", DEFAULT_TIMEOUT)

    return Manifest(
        version=data.get("version", "1"),
        temp_dir=Path(data["temp_dir"]),
        engine_dir=Path(engine_dir) if engine_dir else None,
        timeout=float(timeout) if timeout is not None else None,
        trim=trim,
        merge=merge,
        clean=clean,
    )
