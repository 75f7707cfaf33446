from __future__ import annotations

import logging
from pathlib import Path
import shutil
import tempfile
from typing import Callable

from rcopy.models import CopyOptions, CopyTask, ErrorStage
from rcopy.progress import ProgressState


log = logging.getLogger("rcopy.executor")

TaskCallback = Callable[[CopyTask], None]


def _safe_copy(source_file: Path, destination_file: Path, preserve_metadata: bool) -> None:
    copier = shutil.copy2 if preserve_metadata else shutil.copy
    with tempfile.NamedTemporaryFile(
        delete=False,
        dir=str(destination_file.parent),
        prefix=".rcopy-",
        suffix=".part",
    ) as tmp:
        tmp_path = Path(tmp.name)
    try:
        copier(source_file, tmp_path)
        tmp_path.replace(destination_file)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


class CopyExecutor:
    """Runs one task at a time against the filesystem, or simulates it.

    Every ``OSError`` becomes a ``TaskError`` on the shared progress state;
    ``execute`` only reports success or failure.
    """

    def __init__(
        self,
        options: CopyOptions,
        progress: ProgressState,
        on_success: TaskCallback | None = None,
    ) -> None:
        self.options = options
        self.progress = progress
        self.on_success = on_success
        # Written only while directories are executed, which always finishes
        # before file tasks fan out to other threads.
        self._failed_dirs: set[Path] = set()

    def execute(self, task: CopyTask) -> bool:
        if task.is_dir:
            ok = self._create_directory(task)
        else:
            ok = self._copy(task)
        if ok and self.on_success is not None:
            self.on_success(task)
        return ok

    def make_directory(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def copy_file(self, source: Path, destination: Path) -> int:
        _safe_copy(source, destination, preserve_metadata=self.options.preserve_metadata)
        return destination.stat().st_size

    def _create_directory(self, task: CopyTask) -> bool:
        if not self.options.dry_run:
            try:
                self.make_directory(task.destination)
            except OSError as exc:
                self._failed_dirs.add(task.destination)
                log.warning("Failed to create directory %s: %s", task.destination, exc)
                self.progress.record_error(task, ErrorStage.CREATE, exc)
                return False
        log.debug("Created directory %s", task.destination)
        self.progress.record_dir_created()
        return True

    def _copy(self, task: CopyTask) -> bool:
        if task.destination.parent in self._failed_dirs:
            log.warning("Skipping %s: parent directory was not created", task.source)
            self.progress.record_error(task, ErrorStage.COPY, "parent directory was not created")
            return False
        try:
            if self.options.dry_run:
                size_bytes = task.source.stat().st_size
            else:
                size_bytes = self.copy_file(task.source, task.destination)
        except OSError as exc:
            log.warning("Failed to copy %s: %s", task.source, exc)
            self.progress.record_error(task, ErrorStage.COPY, exc)
            return False
        log.debug("Copied %s -> %s", task.source, task.destination)
        self.progress.record_file_copied(size_bytes)
        return True
