"""External tool invocation.

Pipeline code talks to ffmpeg/ffprobe/mkclean through a runner object with a
single ``run(args, cwd)`` method, so tests can substitute a fake.
"""

import logging
import subprocess
from pathlib import Path
from typing import Protocol

from epitrim.errors import MissingFileError, ToolNotFoundError, ToolTimeoutError
from epitrim.models import ToolResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 3600.0


class ToolRunner(Protocol):
    def run(self, args: list[str], cwd: Path) -> ToolResult:
        ...


class SubprocessRunner:
    """Runs tools as child processes, killing them after ``timeout`` seconds."""

    def __init__(self, timeout: float | None = DEFAULT_TIMEOUT):
        self.timeout = timeout

    def run(self, args: list[str], cwd: Path) -> ToolResult:
        logger.debug("Running in %s: %s", cwd, " ".join(args))
        if not Path(cwd).is_dir():
            raise MissingFileError(f"Working directory {cwd} does not exist")
        try:
            result = subprocess.run(
                args,
                cwd=str(cwd),
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(f"{args[0]} could not be executed") from e
        except subprocess.TimeoutExpired as e:
            stderr = e.stderr if isinstance(e.stderr, str) else (e.stderr or b"").decode(errors="replace")
            raise ToolTimeoutError(
                f"{Path(args[0]).name} timed out after {self.timeout}s",
                args=args,
                stderr=stderr,
            ) from e
        return ToolResult(
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )
