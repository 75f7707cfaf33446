from __future__ import annotations

import logging
from pathlib import Path

from rcopy.copy_engine import run_copy
from rcopy.executor import CopyExecutor
from rcopy.models import (
    EXIT_INVALID_CONFIG,
    EXIT_PARTIAL_FAILURES,
    EXIT_RUNTIME_OR_PRECONDITION_ERROR,
    EXIT_SUCCESS,
    CopyOptions,
    CopyPreconditionError,
    CopyTask,
    RunResult,
    TaskKind,
)
from rcopy.progress import ProgressMonitor, ProgressState
from rcopy.reporter import SummaryReporter
from rcopy.walker import validate_roots


__all__ = [
    "EXIT_INVALID_CONFIG",
    "EXIT_PARTIAL_FAILURES",
    "EXIT_RUNTIME_OR_PRECONDITION_ERROR",
    "EXIT_SUCCESS",
    "copy_single_file",
    "run_copy_job",
]


def _single_file_target(source: Path, destination: Path) -> Path:
    if destination.is_dir():
        return destination / source.name
    return destination


def copy_single_file(source: Path, destination: Path, options: CopyOptions) -> tuple[Path, RunResult]:
    target = _single_file_target(source, destination)
    if target.exists() and source.resolve() == target.resolve():
        raise CopyPreconditionError(f"Source and destination paths are the same: {source}")

    progress = ProgressState()
    progress.record_discovered()
    task = CopyTask(source=source, destination=target, kind=TaskKind.FILE)
    CopyExecutor(options, progress).execute(task)

    elapsed = progress.finish()
    snapshot = progress.snapshot()
    result = RunResult(
        snapshot=snapshot,
        elapsed_seconds=elapsed,
        exit_status=EXIT_PARTIAL_FAILURES if snapshot.errors else EXIT_SUCCESS,
        dry_run=options.dry_run,
    )
    return target, result


def run_copy_job(
    source: Path,
    destination: Path,
    options: CopyOptions,
    reporter: SummaryReporter | None = None,
    logger: logging.Logger | None = None,
) -> tuple[int, RunResult | None]:
    log = logger or logging.getLogger("rcopy.run")
    reporter = reporter or SummaryReporter(options.verbosity)

    try:
        if source.is_file():
            target, result = copy_single_file(source, destination, options)
            reporter.print_single_file(source, target, result)
            log.info("Single file %s -> %s finished with status %s", source, target, result.exit_status)
            return result.exit_status, result

        validate_roots(source, destination)
        reporter.print_header(options.recursive, options.dry_run, options.single_thread)
        progress = ProgressState()
        monitor = ProgressMonitor(progress, enabled=options.show_progress, fallback=reporter.write)
        default_write = reporter.write
        reporter.write = monitor.write
        try:
            with monitor:
                result = run_copy(
                    source,
                    destination,
                    options,
                    progress=progress,
                    on_success=reporter.on_task,
                )
        finally:
            reporter.write = default_write
    except CopyPreconditionError as exc:
        log.error("Error: %s", exc)
        return EXIT_RUNTIME_OR_PRECONDITION_ERROR, None

    reporter.print_summary(result)
    snapshot = result.snapshot
    log.info(
        "%s -> %s | files=%s dirs=%s bytes=%s excluded=%s errors=%s",
        source,
        destination,
        snapshot.files_copied,
        snapshot.dirs_created,
        snapshot.bytes_copied,
        snapshot.files_excluded,
        len(snapshot.errors),
    )
    return result.exit_status, result
