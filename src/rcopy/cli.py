from __future__ import annotations

import argparse
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys

from rcopy.config import FileConfig, build_options, load_config
from rcopy.models import EXIT_INVALID_CONFIG, EXIT_RUNTIME_OR_PRECONDITION_ERROR
from rcopy.run_service import run_copy_job


LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}") from None
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rcopy",
        description=(
            "Recursive copy with a progress bar, dry-run mode, file exclusion "
            "and multi-threaded support."
        ),
    )
    parser.add_argument("source", type=Path, help="Source directory (or a single file)")
    parser.add_argument("destination", type=Path, help="Destination directory")
    parser.add_argument(
        "-s",
        "--single-thread",
        action="store_true",
        help="Copy using only one thread, will be slower!",
    )
    parser.add_argument(
        "-j",
        "--workers",
        type=_positive_int,
        default=None,
        help="Number of copy threads (default: number of CPUs)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show per-file/directory output")

    only = parser.add_mutually_exclusive_group()
    only.add_argument(
        "--only-files",
        action="store_true",
        help="Only output file copy operations (use --verbose or -v to output file and dir operations)",
    )
    only.add_argument(
        "--only-dirs",
        action="store_true",
        help="Only output directory creation (use --verbose or -v to output file and dir operations)",
    )

    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        help="Simulate copy without writing any files (lists operations unless --only-* is given)",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="EXT",
        help="Exclude files by extension (e.g. --exclude .psd --exclude tmp)",
    )
    parser.add_argument(
        "--no-recursive",
        action="store_true",
        help="Copy only the top-level directory contents (non-recursive)",
    )
    parser.add_argument("--follow-symlinks", action="store_true", help="Descend into symlinked directories")
    parser.add_argument(
        "--preserve-metadata",
        action="store_true",
        help="Also copy timestamps and other metadata",
    )
    parser.add_argument("--no-progress", action="store_true", help="Do not draw a progress bar")
    parser.add_argument("--config", type=Path, default=None, help="YAML or JSON file with default options")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for messages written to stderr",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file")
    return parser


def _configure_logging(level: str, log_file: Path | None) -> list[logging.Handler]:
    logger = logging.getLogger("rcopy")
    logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [stream_handler]

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for handler in handlers:
        logger.addHandler(handler)
    return handlers


def _release_logging(handlers: list[logging.Handler]) -> None:
    logger = logging.getLogger("rcopy")
    for handler in handlers:
        logger.removeHandler(handler)
        handler.close()


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    handlers = _configure_logging(args.log_level, args.log_file)
    try:
        file_config: FileConfig | None = None
        if args.config is not None:
            try:
                file_config = load_config(args.config)
            except Exception as exc:
                print(f"Invalid config: {exc}", file=sys.stderr)
                return EXIT_INVALID_CONFIG

        try:
            options = build_options(
                file_config,
                excludes=args.exclude,
                single_thread=args.single_thread,
                workers=args.workers,
                dry_run=args.dry_run,
                no_recursive=args.no_recursive,
                verbose=args.verbose,
                only_files=args.only_files,
                only_dirs=args.only_dirs,
                follow_symlinks=args.follow_symlinks,
                preserve_metadata=args.preserve_metadata,
                no_progress=args.no_progress,
            )
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return EXIT_RUNTIME_OR_PRECONDITION_ERROR

        exit_code, _ = run_copy_job(args.source, args.destination, options)
        return exit_code
    finally:
        _release_logging(handlers)


if __name__ == "__main__":
    raise SystemExit(main())
