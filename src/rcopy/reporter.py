from __future__ import annotations

from pathlib import Path
from typing import Callable

from rcopy.models import CopyTask, RunResult, Verbosity


BANNER_WIDTH = 41

Writer = Callable[[str], None]


def _rule(title: str = "") -> str:
    if not title:
        return "-" * BANNER_WIDTH
    return title.center(BANNER_WIDTH, "-")


def format_size(num_bytes: int) -> str:
    size = float(num_bytes)
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if size < 1024 or unit == "TiB":
            return f"{int(size)} {unit}" if unit == "B" else f"{size:.2f} {unit}"
        size /= 1024
    return f"{num_bytes} B"


def format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.2f}ms"
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes, rest = divmod(seconds, 60)
    return f"{int(minutes)}m {rest:.2f}s"


class SummaryReporter:
    def __init__(self, verbosity: Verbosity, write: Writer = print) -> None:
        self.verbosity = verbosity
        self.write = write

    def on_task(self, task: CopyTask) -> None:
        if task.is_dir:
            if self.verbosity.shows_dirs:
                self.write(f"[DIR] {task.destination}")
        elif self.verbosity.shows_files:
            self.write(f"[FILE] {task.source} -> {task.destination}")

    def print_header(self, recursive: bool, dry_run: bool, single_thread: bool) -> None:
        self.write("")
        self.write(_rule("RCOPY"))
        self.write("")
        self.write("Recursive Mode (default)" if recursive else "Non-Recursive Mode")
        if dry_run:
            self.write("Dry-run mode enabled — no files will be written.")
        self.write("Single Threaded Copying..." if single_thread else "Multi-Threaded Copying...")
        self.write("")

    def print_summary(self, result: RunResult) -> None:
        snapshot = result.snapshot
        verb = "would have been copied" if result.dry_run else "copied"
        self.write("")
        self.write(_rule("DRY RUN COMPLETE" if result.dry_run else "COPY COMPLETE"))
        self.write("")
        self.write(f"{snapshot.files_copied} file(s), {snapshot.dirs_created} directory(ies) {verb}.")
        self.write(f"Data: {format_size(snapshot.bytes_copied)}")
        self.write(f"Excluded: {snapshot.files_excluded} file(s)")
        self.write(f"Errors: {len(snapshot.errors)}")
        for error in snapshot.errors:
            self.write(f"  {error.describe()}")
        self.write(f"Duration: {format_duration(result.elapsed_seconds)}")
        self.write("")
        self.write(_rule())
        self.write("")

    def print_single_file(self, source: Path, target: Path, result: RunResult) -> None:
        verb = "Would copy" if result.dry_run else "Copied"
        self.write("")
        self.write(_rule("DRY RUN COMPLETE" if result.dry_run else "COPY COMPLETE"))
        self.write("")
        if result.snapshot.errors:
            for error in result.snapshot.errors:
                self.write(f"Error copying file: {error.cause}")
        else:
            self.write(f"{verb}: {source} -> {target}")
        self.write(f"Duration: {format_duration(result.elapsed_seconds)}")
        self.write("")
        self.write(_rule())
        self.write("")
