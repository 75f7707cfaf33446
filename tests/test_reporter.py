from pathlib import Path

from rcopy.models import CopyTask, ErrorStage, ProgressSnapshot, RunResult, TaskError, TaskKind, Verbosity
from rcopy.reporter import SummaryReporter, format_duration, format_size


DIR_TASK = CopyTask(source=Path("/src/sub"), destination=Path("/dst/sub"), kind=TaskKind.DIRECTORY)
FILE_TASK = CopyTask(source=Path("/src/a.txt"), destination=Path("/dst/a.txt"), kind=TaskKind.FILE)


def _events(verbosity: Verbosity) -> list[str]:
    lines: list[str] = []
    reporter = SummaryReporter(verbosity, write=lines.append)
    reporter.on_task(DIR_TASK)
    reporter.on_task(FILE_TASK)
    return lines


def test_per_task_output_follows_verbosity() -> None:
    dir_line = f"[DIR] {DIR_TASK.destination}"
    file_line = f"[FILE] {FILE_TASK.source} -> {FILE_TASK.destination}"

    assert _events(Verbosity.QUIET) == []
    assert _events(Verbosity.ONLY_DIRS) == [dir_line]
    assert _events(Verbosity.ONLY_FILES) == [file_line]
    assert _events(Verbosity.VERBOSE) == [dir_line, file_line]


def test_summary_is_printed_even_when_quiet() -> None:
    lines: list[str] = []
    snapshot = ProgressSnapshot(
        files_copied=1,
        dirs_created=2,
        bytes_copied=2048,
        files_excluded=1,
        tasks_discovered=4,
        errors=(TaskError(task=FILE_TASK, stage=ErrorStage.COPY, cause="disk full"),),
    )

    SummaryReporter(Verbosity.QUIET, write=lines.append).print_summary(
        RunResult(snapshot=snapshot, elapsed_seconds=1.5, exit_status=2)
    )

    text = "\n".join(lines)
    assert "--------------COPY COMPLETE--------------" in text
    assert "1 file(s), 2 directory(ies) copied." in text
    assert "Data: 2.00 KiB" in text
    assert "Excluded: 1 file(s)" in text
    assert "Errors: 1" in text
    assert "[copy] /src/a.txt: disk full" in text
    assert "Duration: 1.50s" in text


def test_dry_run_summary_wording() -> None:
    lines: list[str] = []

    SummaryReporter(Verbosity.VERBOSE, write=lines.append).print_summary(
        RunResult(snapshot=ProgressSnapshot(), elapsed_seconds=0.0, exit_status=0, dry_run=True)
    )

    text = "\n".join(lines)
    assert "DRY RUN COMPLETE" in text
    assert "0 file(s), 0 directory(ies) would have been copied." in text


def test_header_describes_mode() -> None:
    lines: list[str] = []

    SummaryReporter(Verbosity.QUIET, write=lines.append).print_header(
        recursive=False, dry_run=True, single_thread=True
    )

    assert "Non-Recursive Mode" in lines
    assert "Dry-run mode enabled — no files will be written." in lines
    assert "Single Threaded Copying..." in lines


def test_formatters() -> None:
    assert format_size(512) == "512 B"
    assert format_size(3 * 1024 * 1024) == "3.00 MiB"
    assert format_duration(0.25) == "250.00ms"
    assert format_duration(125.5) == "2m 5.50s"
