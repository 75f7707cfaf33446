from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator

from rcopy.exclusion import ExclusionFilter
from rcopy.models import CopyPreconditionError, CopyTask, ErrorStage, TaskKind
from rcopy.progress import ProgressState


log = logging.getLogger("rcopy.walker")


def validate_roots(source_root: Path, destination_root: Path) -> None:
    if not source_root.exists():
        raise CopyPreconditionError(f"Source does not exist: {source_root}")
    if not source_root.is_dir():
        raise CopyPreconditionError(f"Source is not a directory: {source_root}")

    source_resolved = source_root.resolve()
    destination_resolved = destination_root.resolve()

    if source_resolved == destination_resolved:
        raise CopyPreconditionError(f"Source and destination paths are the same: {source_root}")

    if destination_resolved.is_relative_to(source_resolved):
        raise CopyPreconditionError(
            f"Destination is inside source, which would recurse: {destination_root}"
        )


def _scan(directory: Path) -> list[os.DirEntry[str]]:
    with os.scandir(directory) as entries:
        return sorted(entries, key=lambda entry: entry.name)


def _identity(path: Path) -> tuple[int, int]:
    stat = path.stat()
    return stat.st_dev, stat.st_ino


def walk(
    source_root: Path,
    destination_root: Path,
    *,
    recursive: bool = True,
    exclusion: ExclusionFilter | None = None,
    follow_symlinks: bool = False,
    progress: ProgressState | None = None,
) -> Iterator[CopyTask]:
    """Yield the tasks that mirror ``source_root`` under ``destination_root``.

    Preconditions are checked eagerly, so a bad source/destination pair raises
    ``CopyPreconditionError`` from this call rather than on first iteration.
    Directories are visited depth-first in name order through an explicit
    stack of pending entry lists; each directory's task comes before anything
    inside it.
    """
    validate_roots(source_root, destination_root)
    if exclusion is None:
        exclusion = ExclusionFilter(())
    return _walk(source_root, destination_root, recursive, exclusion, follow_symlinks, progress)


def _walk(
    source_root: Path,
    destination_root: Path,
    recursive: bool,
    exclusion: ExclusionFilter,
    follow_symlinks: bool,
    progress: ProgressState | None,
) -> Iterator[CopyTask]:
    visited: set[tuple[int, int]] = set()
    pending: list[Iterator[os.DirEntry[str]]] = []

    def emit(task: CopyTask) -> CopyTask:
        if progress is not None:
            progress.record_discovered()
        return task

    def traversal_failed(task: CopyTask, exc: OSError) -> None:
        log.warning("Cannot read directory %s: %s", task.source, exc)
        if progress is not None:
            progress.record_error(task, ErrorStage.TRAVERSE, exc)

    def descend(source_dir: Path, task: CopyTask) -> None:
        if follow_symlinks:
            try:
                identity = _identity(source_dir)
            except OSError as exc:
                traversal_failed(task, exc)
                return
            if identity in visited:
                log.debug("Skipping already visited directory %s", source_dir)
                return
            visited.add(identity)
        try:
            entries = _scan(source_dir)
        except OSError as exc:
            traversal_failed(task, exc)
            return
        pending.append(iter(entries))

    root_task = CopyTask(source=source_root, destination=destination_root, kind=TaskKind.DIRECTORY)
    yield emit(root_task)
    descend(source_root, root_task)

    while pending:
        entry = next(pending[-1], None)
        if entry is None:
            pending.pop()
            continue

        source_path = Path(entry.path)
        relative = source_path.relative_to(source_root)
        destination_path = destination_root / relative

        try:
            is_link = entry.is_symlink()
            is_dir = entry.is_dir(follow_symlinks=True)
        except OSError as exc:
            log.warning("Cannot inspect %s: %s", source_path, exc)
            is_link, is_dir = False, False

        if is_dir:
            if is_link and not follow_symlinks:
                log.debug("Not following symlinked directory %s", source_path)
                continue
            dir_task = CopyTask(source=source_path, destination=destination_path, kind=TaskKind.DIRECTORY)
            yield emit(dir_task)
            if recursive:
                descend(source_path, dir_task)
            continue

        if not exclusion.included(entry.name):
            log.debug("Excluded %s", source_path)
            if progress is not None:
                progress.record_excluded()
            continue

        try:
            size_bytes = entry.stat(follow_symlinks=True).st_size
        except OSError:
            size_bytes = None
        yield emit(
            CopyTask(
                source=source_path,
                destination=destination_path,
                kind=TaskKind.FILE,
                size_bytes=size_bytes,
            )
        )
