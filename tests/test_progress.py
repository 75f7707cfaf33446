from pathlib import Path
import threading

from rcopy.models import CopyTask, ErrorStage, TaskKind
from rcopy.progress import ProgressMonitor, ProgressState


def _task(name: str) -> CopyTask:
    return CopyTask(source=Path("/src") / name, destination=Path("/dst") / name, kind=TaskKind.FILE)


def test_concurrent_increments_are_not_lost() -> None:
    state = ProgressState()

    def worker() -> None:
        for _ in range(1000):
            state.record_file_copied(2)
            state.record_dir_created()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    snapshot = state.snapshot()
    assert snapshot.files_copied == 8000
    assert snapshot.bytes_copied == 16000
    assert snapshot.dirs_created == 8000


def test_snapshots_are_never_torn() -> None:
    state = ProgressState()
    stop = threading.Event()
    torn: list[tuple[int, int]] = []

    def reader() -> None:
        while not stop.is_set():
            snapshot = state.snapshot()
            if snapshot.bytes_copied != snapshot.files_copied * 3:
                torn.append((snapshot.files_copied, snapshot.bytes_copied))

    thread = threading.Thread(target=reader)
    thread.start()
    for _ in range(20000):
        state.record_file_copied(3)
    stop.set()
    thread.join()

    assert torn == []


def test_errors_keep_append_order_within_a_thread() -> None:
    state = ProgressState()

    for index in range(5):
        state.record_error(_task(f"f{index}"), ErrorStage.COPY, OSError(f"boom {index}"))

    errors = state.snapshot().errors
    assert [error.task.source.name for error in errors] == ["f0", "f1", "f2", "f3", "f4"]
    assert errors[0].cause == "boom 0"


def test_traversal_errors_are_kept_out_of_task_error_count() -> None:
    state = ProgressState()
    state.record_error(_task("dir"), ErrorStage.TRAVERSE, "denied")
    state.record_error(_task("file"), ErrorStage.COPY, "denied")

    snapshot = state.snapshot()
    assert snapshot.task_errors == 1
    assert snapshot.traversal_errors == 1
    assert snapshot.tasks_done == 1


def test_elapsed_is_frozen_by_finish() -> None:
    ticks = iter([10.0, 12.5, 99.0])
    state = ProgressState(clock=lambda: next(ticks))

    assert state.finish() == 2.5
    assert state.finish() == 2.5
    assert state.elapsed() == 2.5


def test_disabled_monitor_writes_through_fallback() -> None:
    lines: list[str] = []
    monitor = ProgressMonitor(ProgressState(), enabled=False, fallback=lines.append)

    with monitor:
        assert not monitor.active
        monitor.write("[FILE] a -> b")

    assert lines == ["[FILE] a -> b"]


def test_enabled_monitor_polls_and_closes() -> None:
    state = ProgressState()
    monitor = ProgressMonitor(state, interval=0.01)

    with monitor:
        assert monitor.active
        state.record_discovered(2)
        state.record_dir_created()
        state.record_file_copied(5)

    assert not monitor.active
