"""CLI for the ScienceIO annotation client.

Commands:
    scienceio annotate   Annotate text and print the results as JSON

Credentials are read from SCIENCEIO_API_KEY_ID and SCIENCEIO_API_KEY_SECRET
(a .env file in the working directory is loaded first).

Examples:
    # Annotate a sentence
    scienceio annotate "ALS is often called Lou Gehrig's disease."

    # Annotate a file, at most 4 chunk jobs in flight
    scienceio annotate -f notes.txt --max-concurrent 4

    # Keep successful chunks when some fail
    cat notes.txt | scienceio annotate --partial
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import traceback
from datetime import datetime
from pathlib import Path

from scienceio.client import ScienceIO
from scienceio.config import load_config, load_credentials
from scienceio.errors import ScienceIOError
from scienceio.models import AnnotationResult, ChunkFailure

# =============================================================================
# LOGGING SETUP
# =============================================================================

logger = logging.getLogger("scienceio")


def _setup_logging(log_dir: Path | None = None, verbose: bool = False) -> Path | None:
    """Configure logging with console and optional file handlers.

    Args:
        log_dir: Directory for a timestamped log file (no file logging if None)
        verbose: If True, set console to DEBUG level

    Returns:
        Path to the log file, or None when logging to console only
    """
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console_handler)

    if log_dir is None:
        return None

    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"scienceio_{timestamp}.log"

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(file_handler)

    logger.info("Logging initialized - log file: %s", log_file)
    return log_file


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="scienceio",
        description="Annotate text with the ScienceIO structure API",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose console logging")
    parser.add_argument("--log-dir", type=Path, default=None, help="Write a log file here")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    annotate_parser = subparsers.add_parser(
        "annotate",
        help="Annotate text and print results as JSON",
    )
    annotate_parser.add_argument(
        "text",
        nargs="?",
        default=None,
        help="Text to annotate (reads --file or stdin when omitted)",
    )
    annotate_parser.add_argument(
        "-f",
        "--file",
        type=Path,
        default=None,
        help="Read text to annotate from this file",
    )
    annotate_parser.add_argument(
        "--max-concurrent",
        type=int,
        default=None,
        help="Maximum chunk jobs in flight (default: unbounded)",
    )
    annotate_parser.add_argument(
        "--partial",
        action="store_true",
        help="Report failed chunks instead of failing the whole call",
    )
    annotate_parser.add_argument(
        "--api-url",
        default=None,
        help="Override the ScienceIO API URL",
    )

    return parser


def _read_input_text(args: argparse.Namespace) -> str:
    if args.text is not None:
        return str(args.text)
    if args.file is not None:
        return Path(args.file).read_text(encoding="utf-8")
    return sys.stdin.read()


def _run_annotate(args: argparse.Namespace) -> int:
    """Run the annotate subcommand.

    Returns:
        Process exit code
    """
    try:
        credentials = load_credentials()
    except ScienceIOError as e:
        print(e.message, file=sys.stderr)
        return 1

    try:
        text = _read_input_text(args)
    except OSError as e:
        print(f"Error: cannot read {args.file}: {e}", file=sys.stderr)
        return 1

    config = load_config()
    if args.api_url:
        config = config.model_copy(update={"api_url": args.api_url})

    if args.max_concurrent is not None and args.max_concurrent < 1:
        print("Error: --max-concurrent must be positive", file=sys.stderr)
        return 1

    client = ScienceIO(
        credentials.api_id,
        credentials.api_secret,
        config=config,
        max_concurrent=args.max_concurrent,
    )

    results: list[AnnotationResult] | list[AnnotationResult | ChunkFailure]
    try:
        if args.partial:
            results = asyncio.run(client.annotate_partial(text))
        else:
            results = asyncio.run(client.annotate(text))
    except ScienceIOError as e:
        logger.error("Annotation failed: %s: %s", type(e).__name__, e)
        logger.debug("Traceback:\n%s", traceback.format_exc())
        print(f"Error: {e}", file=sys.stderr)
        return 1

    json.dump([result.to_dict() for result in results], sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")

    return 1 if any(isinstance(r, ChunkFailure) for r in results) else 0


def main() -> None:
    """Run the ScienceIO CLI."""
    parser = _create_parser()
    args = parser.parse_args()

    _setup_logging(args.log_dir, args.verbose)

    if args.command == "annotate":
        exit_code = _run_annotate(args)
        sys.exit(exit_code)
    else:
        parser.print_help()
        sys.exit(0 if args.command is None else 1)


if __name__ == "__main__":
    main()
