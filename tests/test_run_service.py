from pathlib import Path

from rcopy.models import CopyOptions, Verbosity
from rcopy.reporter import SummaryReporter
from rcopy.run_service import (
    EXIT_PARTIAL_FAILURES,
    EXIT_RUNTIME_OR_PRECONDITION_ERROR,
    EXIT_SUCCESS,
    run_copy_job,
)


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _reporter(lines: list[str], verbosity: Verbosity = Verbosity.QUIET) -> SummaryReporter:
    return SummaryReporter(verbosity, write=lines.append)


def test_run_copy_job_copies_tree_and_reports(tmp_path: Path) -> None:
    src = tmp_path / "repo"
    target = tmp_path / "target"
    _write(src / "a.txt", "1")
    _write(src / "nested" / "b.txt", "22")
    lines: list[str] = []
    options = CopyOptions(show_progress=False, verbosity=Verbosity.VERBOSE, workers=2)

    exit_code, result = run_copy_job(src, target, options, reporter=_reporter(lines, Verbosity.VERBOSE))

    assert exit_code == EXIT_SUCCESS
    assert result is not None
    assert result.snapshot.files_copied == 2
    assert result.snapshot.dirs_created == 2
    assert (target / "nested" / "b.txt").read_text(encoding="utf-8") == "22"
    assert "Multi-Threaded Copying..." in lines
    assert f"[DIR] {target / 'nested'}" in lines
    assert f"[FILE] {src / 'a.txt'} -> {target / 'a.txt'}" in lines
    assert "2 file(s), 2 directory(ies) copied." in lines


def test_run_copy_job_precondition_failure_returns_error_without_result(tmp_path: Path, caplog) -> None:
    src = tmp_path / "repo"
    _write(src / "a.txt", "1")
    lines: list[str] = []

    exit_code, result = run_copy_job(src, src, CopyOptions(show_progress=False), reporter=_reporter(lines))

    assert exit_code == EXIT_RUNTIME_OR_PRECONDITION_ERROR
    assert result is None
    assert lines == []
    assert "Source and destination paths are the same" in caplog.text


def test_run_copy_job_missing_source(tmp_path: Path) -> None:
    exit_code, result = run_copy_job(
        tmp_path / "missing",
        tmp_path / "target",
        CopyOptions(show_progress=False),
        reporter=_reporter([]),
    )

    assert exit_code == EXIT_RUNTIME_OR_PRECONDITION_ERROR
    assert result is None
    assert not (tmp_path / "target").exists()


def test_single_file_source_is_copied_into_existing_directory(tmp_path: Path) -> None:
    src = tmp_path / "notes.txt"
    _write(src, "hello")
    target_dir = tmp_path / "out"
    target_dir.mkdir()
    lines: list[str] = []

    exit_code, result = run_copy_job(src, target_dir, CopyOptions(show_progress=False), reporter=_reporter(lines))

    assert exit_code == EXIT_SUCCESS
    assert result is not None and result.snapshot.files_copied == 1
    assert (target_dir / "notes.txt").read_text(encoding="utf-8") == "hello"
    assert f"Copied: {src} -> {target_dir / 'notes.txt'}" in lines


def test_single_file_dry_run_and_failure(tmp_path: Path) -> None:
    src = tmp_path / "notes.txt"
    _write(src, "hello")
    lines: list[str] = []

    dry_code, _ = run_copy_job(
        src, tmp_path / "renamed.txt", CopyOptions(dry_run=True, show_progress=False), reporter=_reporter(lines)
    )
    failed_code, failed = run_copy_job(
        src, tmp_path / "no" / "such" / "dir.txt", CopyOptions(show_progress=False), reporter=_reporter(lines)
    )

    assert dry_code == EXIT_SUCCESS
    assert not (tmp_path / "renamed.txt").exists()
    assert f"Would copy: {src} -> {tmp_path / 'renamed.txt'}" in lines
    assert failed_code == EXIT_PARTIAL_FAILURES
    assert failed is not None and len(failed.snapshot.errors) == 1
