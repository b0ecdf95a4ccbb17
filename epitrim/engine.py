"""Orchestrator: runs the post-processing stages defined by a Manifest."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from epitrim import ffutil, staging
from epitrim.editors.clean import clean_episode
from epitrim.editors.merge import merge_subtitles
from epitrim.editors.trim import trim_episode
from epitrim.manifest import Manifest
from epitrim.models import TimingParams
from epitrim.runner import SubprocessRunner, ToolRunner

logger = logging.getLogger(__name__)


@dataclass
class EngineResult:
    output_path: Path
    duration_original_ms: int = 0
    duration_final_ms: int = 0
    key_frame_gap_ms: int | None = None
    stages: list[str] = field(default_factory=list)


def required_tools(manifest: Manifest) -> list[str]:
    tools = ["ffprobe"]
    if manifest.trim.enabled or manifest.merge.enabled:
        tools.append("ffmpeg")
    if manifest.clean.enabled:
        tools.append("mkclean")
    return tools


def process(
    manifest: Manifest,
    runner: ToolRunner | None = None,
    on_progress: Callable[[str, float], None] | None = None,
) -> EngineResult:
    """Execute the enabled stages in order: trim, merge, clean.

    Args:
        manifest: Validated post-processing manifest.
        runner: Tool runner; defaults to subprocesses with the manifest timeout.
        on_progress: Optional callback(stage_name, fraction_complete).
    """

    def _progress(stage: str, frac: float) -> None:
        if on_progress:
            on_progress(stage, frac)

    def _sub_progress(base: float, span: float):
        """Return a callback that maps a stage's [0,1] to [base, base+span]."""
        def cb(stage: str, frac: float) -> None:
            _progress(stage, base + frac * span)
        return cb

    runner = runner or SubprocessRunner(timeout=manifest.timeout)
    work_dir = Path(manifest.temp_dir)
    engine_dir = manifest.engine_dir

    ffutil.check_tools(engine_dir, required_tools(manifest))

    stages: list[str] = []
    gap_ms = None

    # --- Trim ---
    if manifest.trim.enabled:
        logger.info("Trimming %s", work_dir / staging.EPISODE)
        trim_result = trim_episode(
            work_dir,
            TimingParams(
                ad_length_ms=manifest.trim.ad_length_ms,
                est_keyframe_ms=manifest.trim.est_keyframe_ms,
            ),
            engine_dir=engine_dir,
            runner=runner,
            crf=manifest.trim.crf,
            on_progress=_sub_progress(0.05, 0.65),
        )
        gap_ms = trim_result.key_frame_gap_ms
        duration_original = trim_result.untrimmed_ms
        stages.append("trim")
    else:
        _progress("Probing episode", 0.0)
        duration_original = ffutil.probe_duration_ms(staging.EPISODE, work_dir, engine_dir, runner)

    # --- Merge ---
    if manifest.merge.enabled:
        _progress("Merging subtitles", 0.75)
        merge_subtitles(
            work_dir,
            manifest.merge.audio_lang,
            manifest.merge.subtitle_lang,
            engine_dir=engine_dir,
            runner=runner,
            subtitle_file=manifest.merge.subtitle_file,
        )
        stages.append("merge")

    # --- Clean ---
    if manifest.clean.enabled:
        _progress("Optimizing container", 0.85)
        clean_episode(work_dir, engine_dir=engine_dir, runner=runner)
        stages.append("clean")

    _progress("Verifying result", 0.95)
    duration_final = ffutil.probe_duration_ms(staging.EPISODE, work_dir, engine_dir, runner)

    _progress("Done", 1.0)
    return EngineResult(
        output_path=work_dir / staging.EPISODE,
        duration_original_ms=duration_original,
        duration_final_ms=duration_final,
        key_frame_gap_ms=gap_ms,
        stages=stages,
    )
