#!/usr/bin/env python3
"""Run HLS conversion or audio extraction from the command line.

Useful for re-processing an upload by hand or checking a new ladder before
rolling it out. Reads the same environment variables as the handlers
(FFMPEG_PATH, RENDITION_LADDER, MAX_PARALLEL_RENDITIONS, ...).

Usage:
    python hls-convert.py hls --input lesson.mp4 --output-dir out/lesson

    # Standalone audio for transcription
    python hls-convert.py audio --input lesson.mp4 --output-dir out/lesson --format wav

    # Show the ladder that would be used
    python hls-convert.py ladder --json
"""

import argparse
import json
import sys

from src.audio_extractor.extractor import AudioExtractor
from src.engine.ffmpeg import get_engine
from src.renditions.ladder import get_ladder
from src.shared.exceptions import TranscodingPipelineError
from src.shared.models import AudioFormat
from src.transcoder.orchestrator import TranscodeOrchestrator


def run_hls(args: argparse.Namespace) -> dict:
    """Convert input into renditions plus master manifest."""
    ladder = get_ladder()
    manifest_path = TranscodeOrchestrator(get_engine(), ladder).convert(args.input, args.output_dir)
    return {
        "master_manifest_path": str(manifest_path),
        "renditions": ladder.labels,
    }


def run_audio(args: argparse.Namespace) -> dict:
    """Extract the audio track."""
    audio_path = AudioExtractor(get_engine()).extract(args.input, args.output_dir, args.format)
    return {"audio_path": str(audio_path)}


def show_ladder(args: argparse.Namespace) -> dict:
    """Describe the configured ladder."""
    return {
        "renditions": [
            {**spec.model_dump(), "bandwidth": spec.bandwidth}
            for spec in get_ladder()
        ],
    }


def main():
    parser = argparse.ArgumentParser(
        description="Convert videos to adaptive-bitrate HLS or extract audio",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    hls = subparsers.add_parser("hls", help="Produce renditions and master.m3u8")
    hls.add_argument("--input", required=True, help="Source video file")
    hls.add_argument("--output-dir", required=True, help="Destination directory")
    hls.set_defaults(func=run_hls)

    audio = subparsers.add_parser("audio", help="Extract audio.<format>")
    audio.add_argument("--input", required=True, help="Source video file")
    audio.add_argument("--output-dir", required=True, help="Destination directory")
    audio.add_argument(
        "--format",
        choices=[f.value for f in AudioFormat],
        default=AudioFormat.MP3.value,
        help="Audio container (default: mp3)"
    )
    audio.set_defaults(func=run_audio)

    ladder = subparsers.add_parser("ladder", help="Print the configured rendition ladder")
    ladder.set_defaults(func=show_ladder)

    args = parser.parse_args()

    try:
        result = args.func(args)
    except TranscodingPipelineError as e:
        if args.json:
            print(json.dumps({"status": "FAILED", "error": e.to_dict()}, indent=2))
        else:
            print(f"Error [{e.error_code}]: {e.message}")
            for key, value in e.details.items():
                print(f"  {key}: {value}")
        sys.exit(1)

    if args.json:
        print(json.dumps({"status": "COMPLETED", **result}, indent=2))
        return

    if "master_manifest_path" in result:
        print(f"Master manifest: {result['master_manifest_path']}")
        print(f"Renditions: {', '.join(result['renditions'])}")
    elif "audio_path" in result:
        print(f"Audio: {result['audio_path']}")
    else:
        print(f"{'label':<10} {'resolution':<12} {'video':>8} {'audio':>8} {'bandwidth':>10} {'segment':>8}")
        print("-" * 62)
        for r in result["renditions"]:
            print(
                f"{r['label']:<10} {r['width']}x{r['height']:<7} {r['video_bitrate']:>8} "
                f"{r['audio_bitrate']:>8} {r['bandwidth']:>10} {r['segment_seconds']:>7}s"
            )


if __name__ == "__main__":
    main()
