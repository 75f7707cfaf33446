from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
import os


EXIT_SUCCESS = 0
EXIT_RUNTIME_OR_PRECONDITION_ERROR = 1
EXIT_PARTIAL_FAILURES = 2
EXIT_INVALID_CONFIG = 3


class CopyPreconditionError(ValueError):
    """Raised before any task runs when the source/destination pair is unusable."""


class TaskKind(str, Enum):
    DIRECTORY = "directory"
    FILE = "file"


class ErrorStage(str, Enum):
    TRAVERSE = "traverse"
    CREATE = "create"
    COPY = "copy"


class Verbosity(str, Enum):
    QUIET = "quiet"
    ONLY_FILES = "only-files"
    ONLY_DIRS = "only-dirs"
    VERBOSE = "verbose"

    @property
    def shows_files(self) -> bool:
        return self in (Verbosity.ONLY_FILES, Verbosity.VERBOSE)

    @property
    def shows_dirs(self) -> bool:
        return self in (Verbosity.ONLY_DIRS, Verbosity.VERBOSE)


@dataclass(frozen=True, slots=True)
class CopyTask:
    source: Path
    destination: Path
    kind: TaskKind
    size_bytes: int | None = None

    @property
    def is_dir(self) -> bool:
        return self.kind is TaskKind.DIRECTORY


@dataclass(frozen=True, slots=True)
class TaskError:
    task: CopyTask
    stage: ErrorStage
    cause: str

    def describe(self) -> str:
        return f"[{self.stage.value}] {self.task.source}: {self.cause}"


def default_workers() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True, slots=True)
class CopyOptions:
    recursive: bool = True
    single_thread: bool = False
    workers: int = field(default_factory=default_workers)
    dry_run: bool = False
    verbosity: Verbosity = Verbosity.QUIET
    excludes: frozenset[str] = frozenset()
    follow_symlinks: bool = False
    preserve_metadata: bool = False
    show_progress: bool = True

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError(f"workers must be a positive integer, got {self.workers}")

    @property
    def pool_size(self) -> int:
        return 1 if self.single_thread else self.workers


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    files_copied: int = 0
    dirs_created: int = 0
    bytes_copied: int = 0
    files_excluded: int = 0
    tasks_discovered: int = 0
    errors: tuple[TaskError, ...] = ()

    @property
    def task_errors(self) -> int:
        return sum(1 for error in self.errors if error.stage is not ErrorStage.TRAVERSE)

    @property
    def traversal_errors(self) -> int:
        return sum(1 for error in self.errors if error.stage is ErrorStage.TRAVERSE)

    @property
    def tasks_done(self) -> int:
        return self.files_copied + self.dirs_created + self.task_errors


@dataclass(frozen=True, slots=True)
class RunResult:
    snapshot: ProgressSnapshot
    elapsed_seconds: float
    exit_status: int
    dry_run: bool = False
