"""
Command-line interface for offline feature analysis.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pulsescope.config import ConfigError, EngineConfig, load_config
from pulsescope.pipeline import AnalysisPipeline

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pulsescope-analyze",
        description="Replay an audio file through the real-time feature engine",
    )

    parser.add_argument(
        "input",
        type=Path,
        help="Input audio file (wav, mp3, flac)",
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output manifest file path (default: <input>_features.json)",
    )

    parser.add_argument(
        "-f", "--fps",
        type=int,
        default=60,
        help="Frames per second to replay at (default: 60)",
    )

    parser.add_argument(
        "-s", "--sample-rate",
        type=int,
        default=22050,
        help="Audio sample rate for analysis (default: 22050)",
    )

    parser.add_argument(
        "--format",
        choices=["json", "numpy"],
        default="json",
        help="Output format (default: json)",
    )

    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="JSON engine configuration file",
    )

    parser.add_argument(
        "--include-spectrum",
        action="store_true",
        help="Write raw frequency data into each JSON frame",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress progress output",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print manifest summary to stdout",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    # Validate input
    if not args.input.exists():
        print(f"Error: Input file not found: {args.input}", file=sys.stderr)
        return 1

    config = EngineConfig()
    if args.config is not None:
        try:
            config = load_config(args.config)
        except (OSError, ConfigError) as exc:
            print(f"Error: Invalid config {args.config}: {exc}", file=sys.stderr)
            return 1

    # Determine output path
    output_path = args.output
    if output_path is None:
        suffix = ".npz" if args.format == "numpy" else ".json"
        output_path = args.input.with_name(f"{args.input.stem}_features{suffix}")

    try:
        pipeline = AnalysisPipeline(
            config=config,
            target_fps=args.fps,
            sample_rate=args.sample_rate,
            include_spectrum=args.include_spectrum,
        )
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    LOGGER.info("Processing %s at %d fps", args.input, args.fps)

    result = pipeline.process(
        args.input,
        output_path=output_path,
        format=args.format,
    )

    if not args.quiet:
        print(f"Tempo: {result['tempo']} BPM (confidence {result['tempo_confidence']:.2f})")
        print(f"Duration: {result['duration']:.2f}s")
        print(f"Frames: {result['n_frames']}")
        print(f"Output: {result['output_path']}")

    if args.summary:
        manifest = result["manifest"]
        print("\n--- Manifest Summary ---")
        print(json.dumps(manifest["metadata"], indent=2))

        frames = manifest["frames"]
        if len(frames) > 0:
            print(f"\nFirst frame: {json.dumps(frames[0], indent=2)}")
        if len(frames) > 1:
            mid = len(frames) // 2
            print(f"\nMiddle frame ({mid}): {json.dumps(frames[mid], indent=2)}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
