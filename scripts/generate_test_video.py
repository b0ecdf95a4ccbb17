#!/usr/bin/env python3
"""Generate a synthetic episode for epitrim pipeline testing.

Produces a 60-second episode.mkv with a 10-second "advertisement" followed by
the show, encoded with a keyframe every 4 seconds at 24000/1001 fps so the
first keyframe after the ad lands at 12s:
  0-10s   1 kHz tone + white   (ad)
  10-60s  440 Hz tone + blue   (episode)

Trim it with --ad-length 10000 --keyframe 12000.
"""

import subprocess
import sys
from pathlib import Path


def generate_test_episode(output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)

    filter_complex = (
        "sine=f=1000:d=10[a0];"
        "sine=f=440:d=50[a1];"
        "[a0][a1]concat=n=2:v=0:a=1[aout];"
        "color=c=white:s=320x240:d=10:r=24000/1001[v0];"
        "color=c=blue:s=320x240:d=50:r=24000/1001[v1];"
        "[v0][v1]concat=n=2:v=1:a=0[vout]"
    )

    cmd = [
        "ffmpeg", "-y",
        "-filter_complex", filter_complex,
        "-map", "[vout]",
        "-map", "[aout]",
        "-c:v", "libx264",
        "-force_key_frames", "expr:gte(t,n_forced*4)",
        "-c:a", "aac",
        "-shortest",
        str(output),
    ]
    subprocess.run(cmd, check=True)
    print(f"Generated: {output}")


if __name__ == "__main__":
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("temp/episode.mkv")
    generate_test_episode(out)
