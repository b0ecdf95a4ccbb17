"""Working-file names and rename-based staging inside the temp directory."""

import logging
import time
from pathlib import Path

from epitrim.errors import MissingFileError, RenameError

logger = logging.getLogger(__name__)

EPISODE = "episode.mkv"
UNTRIMMED = "untrimmed.episode.mkv"
VIDEO = "video.episode.mkv"
PREFIX = "prefix.episode.mkv"
CONCAT_LIST = "list.episode.txt"
UNMERGED = "unmerged.episode.mkv"
SUBTITLES = "subtitles.episode.ass"
DIRTY = "dirty.episode.mkv"

RENAME_ATTEMPTS = 10


def retry_rename(
    src: Path,
    dst: Path,
    max_attempts: int = RENAME_ATTEMPTS,
    delay: float = 0.0,
) -> None:
    """Rename *src* to *dst*, retrying while the OS still holds the file.

    A tool that just exited can keep its handle open for a moment on some
    platforms, so a single failed attempt is not treated as fatal.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: OSError | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            Path(src).replace(dst)
            return
        except OSError as e:
            last_error = e
            logger.debug("Rename %s -> %s failed (attempt %d/%d): %s",
                         src, dst, attempt, max_attempts, e)
            if delay and attempt < max_attempts:
                time.sleep(delay)

    raise RenameError(
        f"Unable to rename {Path(src).name} to {Path(dst).name} "
        f"after {max_attempts} attempts"
    ) from last_error


def remove_stale(work_dir: Path, *names: str) -> None:
    """Delete leftovers from an earlier run; missing files are fine."""
    for name in names:
        path = Path(work_dir) / name
        if path.exists():
            logger.debug("Removing stale %s", path)
            path.unlink()


def stage(work_dir: Path, staged_name: str, max_attempts: int = RENAME_ATTEMPTS) -> Path:
    """Move the canonical episode aside under *staged_name* and return its path.

    If the canonical file is gone but *staged_name* exists, a previous run
    crashed after staging; that file is the input and is reused.
    """
    work_dir = Path(work_dir)
    canonical = work_dir / EPISODE
    staged = work_dir / staged_name

    if canonical.exists():
        remove_stale(work_dir, staged_name)
        retry_rename(canonical, staged, max_attempts)
    elif staged.exists():
        logger.info("Resuming from %s left by an earlier run", staged_name)
    else:
        raise MissingFileError(f"Neither {EPISODE} nor {staged_name} exists in {work_dir}")
    return staged
