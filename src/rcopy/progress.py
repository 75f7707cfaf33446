from __future__ import annotations

import threading
import time
from typing import Callable

from tqdm import tqdm

from rcopy.models import CopyTask, ErrorStage, ProgressSnapshot, TaskError


class ProgressState:
    """Counters and error log shared by every worker of a single run.

    Counters live behind one small lock so a snapshot always sees a coherent
    set of values; the error log has its own lock so appending an error never
    contends with counter increments.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.start_time = clock()
        self._finished_at: float | None = None

        self._counter_lock = threading.Lock()
        self._files_copied = 0
        self._dirs_created = 0
        self._bytes_copied = 0
        self._files_excluded = 0
        self._tasks_discovered = 0

        self._error_lock = threading.Lock()
        self._errors: list[TaskError] = []

    def record_discovered(self, count: int = 1) -> None:
        with self._counter_lock:
            self._tasks_discovered += count

    def record_excluded(self, count: int = 1) -> None:
        with self._counter_lock:
            self._files_excluded += count

    def record_dir_created(self) -> None:
        with self._counter_lock:
            self._dirs_created += 1

    def record_file_copied(self, size_bytes: int) -> None:
        with self._counter_lock:
            self._files_copied += 1
            self._bytes_copied += size_bytes

    def record_error(self, task: CopyTask, stage: ErrorStage, cause: BaseException | str) -> TaskError:
        error = TaskError(task=task, stage=stage, cause=str(cause))
        with self._error_lock:
            self._errors.append(error)
        return error

    def snapshot(self) -> ProgressSnapshot:
        with self._counter_lock:
            files_copied = self._files_copied
            dirs_created = self._dirs_created
            bytes_copied = self._bytes_copied
            files_excluded = self._files_excluded
            tasks_discovered = self._tasks_discovered
        with self._error_lock:
            errors = tuple(self._errors)
        return ProgressSnapshot(
            files_copied=files_copied,
            dirs_created=dirs_created,
            bytes_copied=bytes_copied,
            files_excluded=files_excluded,
            tasks_discovered=tasks_discovered,
            errors=errors,
        )

    def finish(self) -> float:
        if self._finished_at is None:
            self._finished_at = self._clock()
        return self._finished_at - self.start_time

    def elapsed(self) -> float:
        end = self._finished_at if self._finished_at is not None else self._clock()
        return end - self.start_time


class ProgressMonitor:
    """Draws a tqdm bar from periodic snapshots on its own daemon thread."""

    def __init__(
        self,
        state: ProgressState,
        interval: float = 0.1,
        enabled: bool = True,
        fallback: Callable[[str], None] = print,
    ) -> None:
        self.state = state
        self.interval = interval
        self.enabled = enabled
        self.fallback = fallback
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._bar: tqdm | None = None

    @property
    def active(self) -> bool:
        return self._bar is not None

    def start(self) -> "ProgressMonitor":
        if not self.enabled or self._thread is not None:
            return self
        self._bar = tqdm(total=0, unit="item", dynamic_ncols=True, leave=True)
        self._thread = threading.Thread(target=self._poll_loop, name="rcopy-progress", daemon=True)
        self._thread.start()
        return self

    def _refresh(self) -> None:
        if self._bar is None:
            return
        snapshot = self.state.snapshot()
        total = max(snapshot.tasks_discovered, snapshot.tasks_done)
        if self._bar.total != total:
            self._bar.total = total
        self._bar.n = snapshot.tasks_done
        self._bar.set_postfix(errors=len(snapshot.errors), refresh=False)
        self._bar.refresh()

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            self._refresh()

    def write(self, line: str) -> None:
        if self._bar is not None:
            tqdm.write(line)
        else:
            self.fallback(line)

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if self._bar is not None:
            self._refresh()
            self._bar.close()
            self._bar = None

    def __enter__(self) -> "ProgressMonitor":
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
