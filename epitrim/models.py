"""Shared data types used across epitrim."""

from dataclasses import dataclass


@dataclass
class ToolResult:
    """Outcome of one external tool invocation."""

    returncode: int
    stdout: str = ""
    stderr: str = ""


@dataclass
class ProbeResult:
    """Metadata extracted from a media file via ffprobe."""

    duration_ms: int
    frame_rate: float


@dataclass
class TimingParams:
    """Caller-supplied advertisement timing, in milliseconds."""

    ad_length_ms: int
    est_keyframe_ms: int

    def key_frame_gap_ms(self, untrimmed_ms: int, video_ms: int) -> int:
        """Length of content between the end of the ad and the first keyframe."""
        return (untrimmed_ms - video_ms) - self.ad_length_ms


@dataclass
class TrimResult:
    untrimmed_ms: int
    video_ms: int
    key_frame_gap_ms: int
    frame_rate: float
