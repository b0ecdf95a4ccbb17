"""Ad trimmer: removes the leading advertisement with frame accuracy.

The body of the episode is stream-copied from the first keyframe after the
estimated offset. The short stretch between the end of the ad and that
keyframe is re-encoded separately and joined back on the front.
"""

import logging
from pathlib import Path
from typing import Callable

from epitrim import ffutil, staging
from epitrim.errors import InputError
from epitrim.models import TimingParams, TrimResult
from epitrim.runner import ToolRunner

logger = logging.getLogger(__name__)


def trim_episode(
    work_dir: Path,
    timing: TimingParams,
    engine_dir: Path | None = None,
    runner: ToolRunner | None = None,
    crf: int = 5,
    on_progress: Callable[[str, float], None] | None = None,
) -> TrimResult:
    """Trim ``episode.mkv`` in *work_dir* in place."""

    def _progress(step: str, frac: float) -> None:
        if on_progress:
            on_progress(step, frac)

    if timing.ad_length_ms < 0 or timing.est_keyframe_ms < 0:
        raise InputError(
            f"Timing values must be non-negative (ad={timing.ad_length_ms}ms, "
            f"keyframe={timing.est_keyframe_ms}ms)"
        )

    work_dir = Path(work_dir)
    ffmpeg = ffutil.tool_path("ffmpeg", engine_dir)

    _progress("Staging untrimmed episode", 0.0)
    staging.remove_stale(work_dir, staging.PREFIX, staging.VIDEO, staging.CONCAT_LIST)
    staging.stage(work_dir, staging.UNTRIMMED)

    untrimmed_ms = ffutil.probe_duration_ms(staging.UNTRIMMED, work_dir, engine_dir, runner)
    logger.info("Untrimmed length: %dms", untrimmed_ms)

    _progress("Cutting at estimated keyframe", 0.15)
    ffutil.run_tool(
        ffutil.rough_cut_args(ffmpeg, staging.UNTRIMMED, timing.est_keyframe_ms, staging.VIDEO),
        work_dir, "creating the video clip", runner,
    )

    _progress("Measuring video clip", 0.40)
    video_ms = ffutil.probe_duration_ms(staging.VIDEO, work_dir, engine_dir, runner)
    frame_rate = ffutil.probe_frame_rate(staging.VIDEO, work_dir, engine_dir, runner)

    gap_ms = timing.key_frame_gap_ms(untrimmed_ms, video_ms)
    logger.info("Video clip: %dms at %.8f fps, keyframe gap %dms", video_ms, frame_rate, gap_ms)
    if gap_ms < 0:
        raise InputError(
            f"Keyframe gap is negative ({gap_ms}ms): the rough cut at "
            f"{timing.est_keyframe_ms}ms landed before the end of the "
            f"{timing.ad_length_ms}ms ad; raise the keyframe estimate"
        )

    if gap_ms == 0:
        # The rough cut landed exactly on the end of the ad
        staging.retry_rename(work_dir / staging.VIDEO, work_dir / staging.EPISODE)
    else:
        _progress("Encoding intro prefix", 0.50)
        ffutil.run_tool(
            ffutil.fine_cut_args(
                ffmpeg, staging.UNTRIMMED, timing.ad_length_ms, gap_ms,
                frame_rate, staging.PREFIX, crf=crf,
            ),
            work_dir, "creating the prefix clip", runner,
        )

        _progress("Joining prefix and video", 0.80)
        ffutil.write_concat_list(work_dir / staging.CONCAT_LIST, [staging.PREFIX, staging.VIDEO])
        ffutil.run_tool(
            ffutil.concat_args(ffmpeg, staging.CONCAT_LIST, staging.EPISODE),
            work_dir, "merging video and prefix", runner,
        )

    staging.remove_stale(
        work_dir, staging.UNTRIMMED, staging.PREFIX, staging.VIDEO, staging.CONCAT_LIST
    )
    _progress("Trim complete", 1.0)

    return TrimResult(
        untrimmed_ms=untrimmed_ms,
        video_ms=video_ms,
        key_frame_gap_ms=gap_ms,
        frame_rate=frame_rate,
    )
