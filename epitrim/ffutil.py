"""FFmpeg/ffprobe/mkclean command helpers."""

import math
import shutil
from decimal import Decimal, InvalidOperation
from pathlib import Path

from epitrim.errors import ExternalProcessError, ParseError, ProbeError, ToolNotFoundError
from epitrim.models import ProbeResult, ToolResult
from epitrim.runner import SubprocessRunner, ToolRunner


def tool_path(name: str, engine_dir: Path | None = None) -> str:
    """Resolve an executable inside *engine_dir*, or leave it to PATH when unset."""
    if engine_dir is None:
        return name
    engine_dir = Path(engine_dir)
    for candidate in (name, name + ".exe"):
        found = shutil.which(candidate, path=str(engine_dir))
        if found is not None:
            return str(Path(found).resolve())
    raise ToolNotFoundError(f"Unable to find {name} in {engine_dir}")


def check_tools(engine_dir: Path | None = None, names=("ffmpeg", "ffprobe")) -> None:
    """Raise ToolNotFoundError unless every tool in *names* can be found."""
    for name in names:
        if engine_dir is None:
            if shutil.which(name) is None:
                raise ToolNotFoundError(f"{name} not found on PATH")
        else:
            tool_path(name, engine_dir)


def format_seconds(ms: int) -> str:
    """Milliseconds as an ffmpeg timestamp in seconds, e.g. 12000 -> '12.000'."""
    return f"{ms / 1000:.3f}"


def parse_duration_ms(text: str, filename: str = "") -> int:
    """Parse ffprobe's ``format=duration`` seconds into whole milliseconds.

    Truncates rather than rounds, so "1.9999" becomes 1999.
    """
    raw = text.strip()
    try:
        seconds = Decimal(raw)
        return int(seconds * 1000)
    except (InvalidOperation, ValueError, OverflowError) as e:
        raise ParseError(
            f"There was an error parsing the length of {filename}: {raw!r}",
            filename=filename,
        ) from e


def parse_frame_rate(text: str, filename: str = "") -> float:
    """Resolve an ffprobe rational like "24000/1001" to a float."""
    raw = text.strip()
    parts = raw.split("/")
    if len(parts) != 2:
        raise ParseError(
            f"Frame rate of {filename} is not a fraction: {raw!r}", filename=filename
        )
    numerator, denominator = parts
    try:
        num = float(numerator)
    except ValueError as e:
        raise ParseError(
            f"There was an error parsing the numerator of the frame rate for {filename}",
            filename=filename,
        ) from e
    try:
        den = float(denominator)
    except ValueError as e:
        raise ParseError(
            f"There was an error parsing the denominator of the frame rate for {filename}",
            filename=filename,
        ) from e
    if not (math.isfinite(num) and math.isfinite(den)):
        raise ParseError(f"Frame rate of {filename} is not finite: {raw!r}", filename=filename)
    if den == 0:
        raise ParseError(f"Frame rate of {filename} has a zero denominator", filename=filename)
    rate = num / den
    if rate <= 0:
        raise ParseError(f"Frame rate of {filename} is not positive: {raw!r}", filename=filename)
    return rate


def _ffprobe(
    filename: str,
    entries: list[str],
    work_dir: Path,
    engine_dir: Path | None,
    runner: ToolRunner | None,
) -> str:
    runner = runner or SubprocessRunner()
    cmd = [
        tool_path("ffprobe", engine_dir),
        "-v", "error",
        *entries,
        "-of", "default=noprint_wrappers=1:nokey=1",
        filename,
    ]
    result = runner.run(cmd, Path(work_dir))
    if result.returncode != 0:
        raise ProbeError(
            f"There was an error measuring {filename} (rc={result.returncode})",
            filename=filename,
            stderr=result.stderr,
        )
    return result.stdout


def probe_duration_ms(
    filename: str,
    work_dir: Path,
    engine_dir: Path | None = None,
    runner: ToolRunner | None = None,
) -> int:
    """Container duration of *filename* in milliseconds."""
    out = _ffprobe(filename, ["-show_entries", "format=duration"], work_dir, engine_dir, runner)
    return parse_duration_ms(out, filename)


def probe_frame_rate(
    filename: str,
    work_dir: Path,
    engine_dir: Path | None = None,
    runner: ToolRunner | None = None,
) -> float:
    """Exact average frame rate of the first video stream.

    ffmpeg's own rate guess rounds rates like 30000/1001, which shows up as a
    frame jump where the re-encoded prefix meets the stream-copied body.
    """
    out = _ffprobe(
        filename,
        ["-select_streams", "v:0", "-show_entries", "stream=avg_frame_rate"],
        work_dir, engine_dir, runner,
    )
    return parse_frame_rate(out, filename)


def probe(
    filename: str,
    work_dir: Path,
    engine_dir: Path | None = None,
    runner: ToolRunner | None = None,
) -> ProbeResult:
    return ProbeResult(
        duration_ms=probe_duration_ms(filename, work_dir, engine_dir, runner),
        frame_rate=probe_frame_rate(filename, work_dir, engine_dir, runner),
    )


def run_tool(
    args: list[str],
    work_dir: Path,
    description: str,
    runner: ToolRunner | None = None,
) -> ToolResult:
    """Run a cut/merge/optimize command, raising ExternalProcessError on failure."""
    runner = runner or SubprocessRunner()
    result = runner.run(args, Path(work_dir))
    if result.returncode != 0:
        raise ExternalProcessError(
            f"There was an error while {description} (rc={result.returncode})",
            args=args,
            returncode=result.returncode,
            stderr=result.stderr,
        )
    return result


def rough_cut_args(ffmpeg: str, source: str, seek_ms: int, output: str) -> list[str]:
    """Stream-copy cut from the first keyframe at or after *seek_ms*."""
    return [
        ffmpeg,
        "-ss", format_seconds(seek_ms),
        "-i", source,
        "-c", "copy",
        "-avoid_negative_ts", "1",
        "-y", output,
    ]


def fine_cut_args(
    ffmpeg: str,
    source: str,
    seek_ms: int,
    duration_ms: int,
    frame_rate: float,
    output: str,
    crf: int = 5,
) -> list[str]:
    """Re-encoded cut that may start between keyframes.

    Audio is encoded to AAC to match the stream-copied body it is joined to.
    """
    return [
        ffmpeg,
        "-ss", format_seconds(seek_ms),
        "-i", source,
        "-t", format_seconds(duration_ms),
        "-crf", str(crf),
        "-fps_mode", "cfr",
        "-r", f"{frame_rate:.8f}",
        "-c:a", "aac",
        "-y", output,
    ]


def concat_args(ffmpeg: str, list_file: str, output: str) -> list[str]:
    return [
        ffmpeg,
        "-f", "concat",
        "-i", list_file,
        "-c", "copy",
        "-y", output,
    ]


def remux_args(
    ffmpeg: str,
    source: str,
    output: str,
    audio_lang: str,
    subtitle_file: str | None = None,
    subtitle_lang: str = "",
) -> list[str]:
    """Stream-copy remux that tags languages and optionally adds an ASS track."""
    cmd = [ffmpeg, "-i", source]
    if subtitle_lang:
        cmd += ["-f", "ass", "-i", subtitle_file]
    cmd += [
        "-c:v", "copy",
        "-c:a", "copy",
        "-metadata:s:a:0", f"language={audio_lang}",
    ]
    if subtitle_lang:
        cmd += [
            "-metadata:s:s:0", f"language={subtitle_lang}",
            "-disposition:s:0", "default",
        ]
    cmd += ["-y", output]
    return cmd


def optimize_args(mkclean: str, source: str, output: str) -> list[str]:
    return [mkclean, "--optimize", source, output]


def escape_concat_path(name: str) -> str:
    """Quote a filename for an ffmpeg concat list entry."""
    return "'" + name.replace("'", "'\\''") + "'"


def write_concat_list(path: Path, names: list[str]) -> Path:
    """Write an ffmpeg concat demuxer list, one ``file`` line per entry."""
    lines = [f"file {escape_concat_path(n)}" for n in names]
    Path(path).write_text("\n".join(lines) + "\n", encoding="utf-8")
    return Path(path)
