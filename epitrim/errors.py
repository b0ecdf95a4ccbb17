"""Exception hierarchy for the post-processing pipeline."""


class PostProcessError(Exception):
    """Base error for every pipeline stage."""


class ToolNotFoundError(PostProcessError, FileNotFoundError):
    """Raised when ffmpeg, ffprobe or mkclean cannot be located."""


class MissingFileError(PostProcessError, FileNotFoundError):
    """Raised when a file a stage needs is not in the working directory."""


class RenameError(PostProcessError, OSError):
    """Raised when a rename still fails after every retry."""


class InputError(PostProcessError, ValueError):
    """Raised for inconsistent timing input, e.g. a negative keyframe gap."""


class ProbeError(PostProcessError):
    """Raised when ffprobe fails on a file."""

    def __init__(self, message: str, filename: str | None = None, stderr: str = ""):
        super().__init__(message)
        self.filename = filename
        self.stderr = stderr


class ParseError(ProbeError, ValueError):
    """Raised when ffprobe output cannot be parsed."""


class ExternalProcessError(PostProcessError):
    """Raised when an ffmpeg or mkclean invocation exits non-zero."""

    def __init__(self, message: str, args: list[str] | None = None,
                 returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.cmd = list(args or [])
        self.returncode = returncode
        self.stderr = stderr

    def __str__(self) -> str:
        msg = super().__str__()
        if self.stderr:
            return f"{msg}: {self.stderr.strip()[-500:]}"
        return msg


class ToolTimeoutError(ExternalProcessError, TimeoutError):
    """Raised when an external tool runs past its timeout and is killed."""
