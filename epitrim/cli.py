"""Thin CLI entry point. Builds a Manifest and calls the engine."""

import argparse
import logging
import os
import sys
from pathlib import Path

from epitrim.engine import process
from epitrim.errors import PostProcessError
from epitrim.manifest import CleanConfig, Manifest, MergeConfig, TrimConfig, load_manifest
from epitrim.prompt import ask_milliseconds, pause
from epitrim.runner import DEFAULT_TIMEOUT


def setup_logging(verbose: bool = False) -> None:
    level_name = "DEBUG" if verbose else (os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="epitrim",
        description="epitrim: trim ads, merge subtitles and optimize downloaded episodes.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    proc = sub.add_parser("process", help="Post-process episode.mkv in a temp directory")
    proc.add_argument("temp_dir", nargs="?", type=Path, help="Directory holding episode.mkv")
    proc.add_argument("--manifest", "-m", type=Path, help="Path to a JSON manifest file")
    proc.add_argument("--engine-dir", type=Path, help="Directory holding ffmpeg, ffprobe and mkclean")
    proc.add_argument("--ad-length", type=int, help="Advertisement length in ms")
    proc.add_argument("--keyframe", type=int, help="Estimated first keyframe after the ad, in ms")
    proc.add_argument("--crf", type=int, default=5, help="CRF for the re-encoded prefix")
    proc.add_argument("--audio-lang", type=str, default="jpn", help="Audio language tag")
    proc.add_argument("--subtitle-lang", type=str, default="", help="Subtitle language tag (empty: none)")
    proc.add_argument("--no-trim", action="store_true", help="Skip ad trimming")
    proc.add_argument("--no-merge", action="store_true", help="Skip subtitle merging")
    proc.add_argument("--no-clean", action="store_true", help="Skip mkclean optimization")
    proc.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="Per-tool timeout in seconds")
    proc.add_argument("--pause", action="store_true", help="Wait for Enter before exiting")

    serve = sub.add_parser("serve", help="Launch the web API")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")
    return parser


def manifest_from_args(args: argparse.Namespace) -> Manifest:
    trim_enabled = not args.no_trim
    ad_length = args.ad_length
    keyframe = args.keyframe
    if trim_enabled and ad_length is None:
        ad_length = ask_milliseconds("Advertisement length (ms): ")
    if trim_enabled and keyframe is None:
        keyframe = ask_milliseconds("Estimated keyframe offset (ms): ")

    return Manifest(
        temp_dir=args.temp_dir,
        engine_dir=args.engine_dir,
        timeout=args.timeout,
        trim=TrimConfig(
            enabled=trim_enabled,
            ad_length_ms=ad_length or 0,
            est_keyframe_ms=keyframe or 0,
            crf=args.crf,
        ),
        merge=MergeConfig(
            enabled=not args.no_merge,
            audio_lang=args.audio_lang,
            subtitle_lang=args.subtitle_lang,
        ),
        clean=CleanConfig(enabled=not args.no_clean),
    )


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    setup_logging(args.verbose)

    if args.command == "serve":
        from epitrim.web import create_app
        app = create_app()
        print(f"epitrim web API: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False)
        return

    if args.manifest:
        m = load_manifest(args.manifest)
    elif args.temp_dir:
        m = manifest_from_args(args)
    else:
        print("Error: provide either a TEMP_DIR argument or --manifest.", file=sys.stderr)
        sys.exit(1)

    def on_progress(stage: str, frac: float) -> None:
        print(f"  [{frac:3.0%}] {stage}")

    try:
        result = process(m, on_progress=on_progress)
    except PostProcessError as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.pause:
            pause()
        sys.exit(1)

    print()
    print(f"Done! Output: {result.output_path}")
    print(f"  Duration: {result.duration_original_ms / 1000:.3f}s -> {result.duration_final_ms / 1000:.3f}s")
    if result.key_frame_gap_ms is not None:
        print(f"  Re-encoded prefix: {result.key_frame_gap_ms}ms")
    print(f"  Stages: {', '.join(result.stages) or 'none'}")
    if args.pause:
        pause()


if __name__ == "__main__":
    main()
