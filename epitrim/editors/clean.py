"""Container cleaner: rewrites the episode with mkclean for playback."""

from pathlib import Path

from epitrim import ffutil, staging
from epitrim.runner import ToolRunner


def clean_episode(
    work_dir: Path,
    engine_dir: Path | None = None,
    runner: ToolRunner | None = None,
) -> Path:
    work_dir = Path(work_dir)
    mkclean = ffutil.tool_path("mkclean", engine_dir)

    staging.stage(work_dir, staging.DIRTY)
    ffutil.run_tool(
        ffutil.optimize_args(mkclean, staging.DIRTY, staging.EPISODE),
        work_dir, "optimizing the mkv", runner,
    )

    staging.remove_stale(work_dir, staging.DIRTY)
    return work_dir / staging.EPISODE
