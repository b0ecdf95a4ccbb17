"""Subtitle merger: remuxes an ASS track and language tags into the episode."""

import logging
from pathlib import Path

from epitrim import ffutil, staging
from epitrim.errors import MissingFileError
from epitrim.runner import ToolRunner

logger = logging.getLogger(__name__)


def merge_subtitles(
    work_dir: Path,
    audio_lang: str,
    subtitle_lang: str = "",
    engine_dir: Path | None = None,
    runner: ToolRunner | None = None,
    subtitle_file: str = staging.SUBTITLES,
) -> Path:
    """Tag audio (and subtitle) languages, adding the subtitle track if given.

    An empty *subtitle_lang* means there is no subtitle track to add.
    """
    work_dir = Path(work_dir)
    ffmpeg = ffutil.tool_path("ffmpeg", engine_dir)

    if subtitle_lang and not (work_dir / subtitle_file).exists():
        raise MissingFileError(f"Subtitle file {subtitle_file} not found in {work_dir}")

    staging.stage(work_dir, staging.UNMERGED)

    logger.info("Merging episode (audio=%s, subtitles=%s)", audio_lang, subtitle_lang or "none")
    ffutil.run_tool(
        ffutil.remux_args(
            ffmpeg, staging.UNMERGED, staging.EPISODE, audio_lang,
            subtitle_file=subtitle_file, subtitle_lang=subtitle_lang,
        ),
        work_dir, "merging subtitles", runner,
    )

    staging.remove_stale(work_dir, subtitle_file, staging.UNMERGED)
    return work_dir / staging.EPISODE
