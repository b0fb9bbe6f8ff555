"""
Command-line interface for spatialbox.

Usage:
  spatialbox video.mp4                      # Box tree and spatial audio
  spatialbox --json video.mp4               # JSON to stdout
  spatialbox -o report.json *.mp4           # JSON export
  spatialbox --inject 4 -o out.mp4 in.mp4   # Add first-order ambisonic SA3D
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import os
import shutil
import sys
import tempfile

from spatialbox._version import __version__
from spatialbox.boxes import Mpeg4Container
from spatialbox.config import get_config
from spatialbox.errors import BoxError
from spatialbox.formatters import format_default, format_json, format_json_list
from spatialbox.metadata import inject_spatial_audio, open_mp4, write_mp4

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, get_config().logging.level, None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(name)s: %(message)s")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for spatialbox CLI."""
    parser = argparse.ArgumentParser(
        prog="spatialbox",
        description="Inspect MP4/MOV box structure and inject spatial audio metadata.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  spatialbox video.mp4                      # Box tree and spatial audio
  spatialbox --json video.mp4               # JSON to stdout
  spatialbox -o report.json *.mp4           # JSON export
  spatialbox --inject 4 -o out.mp4 in.mp4   # Add first-order ambisonic SA3D
        """,
    )
    parser.add_argument("files", nargs="+", help="Media file(s) to read")
    parser.add_argument(
        "-o",
        "--output",
        help="With --inject: output media file. Otherwise: save JSON report",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument("--json", action="store_true", help="Print JSON instead of text")
    mode_group.add_argument(
        "--inject",
        metavar="CHANNELS",
        type=int,
        help="Insert or replace an SA3D box for this many ambisonic channels (4, 9, 16, ...)",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if args.inject is not None:
        if not args.output:
            print("Error: --inject requires -o/--output for the new file", file=sys.stderr)
            return 1
        if len(args.files) != 1:
            print("Error: --inject requires exactly one input file", file=sys.stderr)
            return 1
        return inject_file(args.files[0], args.output, args.inject)

    loaded: list[tuple[str, Mpeg4Container]] = []
    errors = 0

    for file_path in args.files:
        try:
            tree = open_mp4(file_path)
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            errors += 1
            continue
        except BoxError as e:
            print(f"Error reading {file_path}: {e}", file=sys.stderr)
            errors += 1
            continue

        loaded.append((file_path, tree))
        if args.json:
            print(format_json(file_path, tree))
        elif not args.output:
            print(format_default(file_path, tree))
            print()

    # JSON export
    if args.output and loaded:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(format_json_list(loaded))
        print(f"Report saved to: {args.output}")

    return 1 if errors > 0 else 0


def inject_file(input_file: str, output: str, num_channels: int) -> int:
    """Inject SA3D metadata and write the result atomically.

    The new file is written to a temporary path first and only moved over
    ``output`` once it is complete, so ``output`` may equal ``input_file``.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        tree = open_mp4(input_file)
        updated = inject_spatial_audio(tree, num_channels)
    except (FileNotFoundError, ValueError, BoxError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not updated:
        print(
            f"Error: no {num_channels}-channel audio track found in {input_file}",
            file=sys.stderr,
        )
        return 1

    temp_dir = get_config().io.temp_dir
    out_dir = temp_dir or os.path.dirname(os.path.abspath(output))
    fd, temp_path = tempfile.mkstemp(prefix=".spatialbox-", suffix=".tmp", dir=out_dir)
    os.close(fd)
    try:
        write_mp4(tree, input_file, temp_path)
        if temp_dir:
            shutil.move(temp_path, output)
        else:
            os.replace(temp_path, output)
    except (OSError, ValueError) as e:
        with contextlib.suppress(OSError):
            os.unlink(temp_path)
        print(f"Error writing {output}: {e}", file=sys.stderr)
        return 1

    logger.info("Wrote %s with %d SA3D box(es)", output, updated)
    print(f"Injected SA3D ({num_channels} channels) into {updated} track(s): {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
