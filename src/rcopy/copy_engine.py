from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
from pathlib import Path
import queue
from typing import Iterable

from rcopy.exclusion import ExclusionFilter
from rcopy.executor import CopyExecutor, TaskCallback
from rcopy.models import (
    EXIT_PARTIAL_FAILURES,
    EXIT_SUCCESS,
    CopyOptions,
    CopyTask,
    RunResult,
)
from rcopy.progress import ProgressState
from rcopy.walker import walk


log = logging.getLogger("rcopy.engine")


def run_single(tasks: Iterable[CopyTask], executor: CopyExecutor) -> None:
    for task in tasks:
        executor.execute(task)


def _drain(task_queue: "queue.SimpleQueue[CopyTask]", executor: CopyExecutor) -> None:
    while True:
        try:
            task = task_queue.get_nowait()
        except queue.Empty:
            return
        executor.execute(task)


def run_pool(tasks: Iterable[CopyTask], executor: CopyExecutor, workers: int) -> None:
    """Create every directory in walk order, then copy files on ``workers`` threads."""
    file_queue: queue.SimpleQueue[CopyTask] = queue.SimpleQueue()
    file_count = 0
    for task in tasks:
        if task.is_dir:
            executor.execute(task)
        else:
            file_queue.put(task)
            file_count += 1

    pool_size = max(1, min(workers, file_count))
    log.info("Directory skeleton ready; copying %s file(s) on %s worker(s)", file_count, pool_size)
    if not file_count:
        return

    with ThreadPoolExecutor(max_workers=pool_size, thread_name_prefix="rcopy-worker") as pool:
        futures = [pool.submit(_drain, file_queue, executor) for _ in range(pool_size)]
        for future in futures:
            future.result()


def run_copy(
    source_root: Path,
    destination_root: Path,
    options: CopyOptions,
    progress: ProgressState | None = None,
    on_success: TaskCallback | None = None,
    executor: CopyExecutor | None = None,
) -> RunResult:
    """Copy ``source_root`` into ``destination_root`` and return the final counts.

    Raises ``CopyPreconditionError`` before touching the filesystem when the
    roots are unusable; every other failure is recorded on ``progress``.
    """
    progress = progress or ProgressState()
    executor = executor or CopyExecutor(options, progress, on_success=on_success)

    tasks = walk(
        source_root,
        destination_root,
        recursive=options.recursive,
        exclusion=ExclusionFilter(options.excludes),
        follow_symlinks=options.follow_symlinks,
        progress=progress,
    )

    if options.single_thread:
        log.info("Copying %s -> %s on a single thread", source_root, destination_root)
        run_single(tasks, executor)
    else:
        log.info("Copying %s -> %s with up to %s workers", source_root, destination_root, options.pool_size)
        run_pool(tasks, executor, options.pool_size)

    elapsed = progress.finish()
    snapshot = progress.snapshot()
    exit_status = EXIT_PARTIAL_FAILURES if snapshot.errors else EXIT_SUCCESS
    return RunResult(
        snapshot=snapshot,
        elapsed_seconds=elapsed,
        exit_status=exit_status,
        dry_run=options.dry_run,
    )
