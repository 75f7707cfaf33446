from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
from typing import Any, Iterable

import yaml

from rcopy.exclusion import normalize_extensions
from rcopy.models import CopyOptions, Verbosity, default_workers


log = logging.getLogger("rcopy.config")

VERBOSE_OVERRIDE_WARNING = "--verbose overrides --only-files and --only-dirs"


@dataclass(slots=True)
class FileConfig:
    exclude: list[str] = field(default_factory=list)
    recursive: bool = True
    workers: int | None = None
    single_thread: bool = False
    dry_run: bool = False
    follow_symlinks: bool = False
    preserve_metadata: bool = False
    verbosity: Verbosity | None = None
    progress: bool = True


def _as_bool(value: Any, field_name: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise ValueError(f"{field_name} must be a boolean")


def _as_positive_int(value: Any, field_name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{field_name} must be a positive integer")
    return value


def _as_list_of_strings(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or any(not isinstance(item, str) for item in value):
        raise ValueError(f"{field_name} must be a list of strings")
    return [item for item in value if item.strip()]


def _as_verbosity(value: Any, field_name: str) -> Verbosity | None:
    if value is None:
        return None
    try:
        return Verbosity(value)
    except ValueError:
        choices = ", ".join(level.value for level in Verbosity)
        raise ValueError(f"{field_name} must be one of: {choices}") from None


def _load_raw_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ValueError(f"Config file does not exist: {config_path}")

    suffix = config_path.suffix.lower()
    text = config_path.read_text(encoding="utf-8")
    if suffix in {".yml", ".yaml"}:
        loaded = yaml.safe_load(text)
    elif suffix == ".json":
        loaded = json.loads(text)
    else:
        raise ValueError("Config file must be .yaml/.yml or .json")

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError("Config root must be an object")
    return loaded


def load_config(config_path: Path) -> FileConfig:
    raw = _load_raw_config(config_path)
    return FileConfig(
        exclude=_as_list_of_strings(raw.get("exclude"), "exclude"),
        recursive=_as_bool(raw.get("recursive"), "recursive", default=True),
        workers=_as_positive_int(raw.get("workers"), "workers"),
        single_thread=_as_bool(raw.get("singleThread"), "singleThread", default=False),
        dry_run=_as_bool(raw.get("dryRun"), "dryRun", default=False),
        follow_symlinks=_as_bool(raw.get("followSymlinks"), "followSymlinks", default=False),
        preserve_metadata=_as_bool(raw.get("preserveMetadata"), "preserveMetadata", default=False),
        verbosity=_as_verbosity(raw.get("verbosity"), "verbosity"),
        progress=_as_bool(raw.get("progress"), "progress", default=True),
    )


def resolve_verbosity(
    verbose: bool,
    only_files: bool,
    only_dirs: bool,
    dry_run: bool,
    default: Verbosity | None = None,
) -> Verbosity:
    if only_files and only_dirs:
        raise ValueError("--only-files and --only-dirs cannot be combined")
    if verbose:
        if only_files or only_dirs:
            log.warning(VERBOSE_OVERRIDE_WARNING)
        return Verbosity.VERBOSE
    if only_files:
        return Verbosity.ONLY_FILES
    if only_dirs:
        return Verbosity.ONLY_DIRS
    if default is not None:
        return default
    # A dry run lists what it would do unless told otherwise.
    return Verbosity.VERBOSE if dry_run else Verbosity.QUIET


def build_options(
    file_config: FileConfig | None = None,
    *,
    excludes: Iterable[str] = (),
    single_thread: bool = False,
    workers: int | None = None,
    dry_run: bool = False,
    no_recursive: bool = False,
    verbose: bool = False,
    only_files: bool = False,
    only_dirs: bool = False,
    follow_symlinks: bool = False,
    preserve_metadata: bool = False,
    no_progress: bool = False,
) -> CopyOptions:
    """Merge command-line flags over config-file defaults.

    Flags can only switch behavior on; excludes from both sources are combined.
    """
    base = file_config or FileConfig()
    run_dry = dry_run or base.dry_run
    resolved_workers = _as_positive_int(workers, "workers") or base.workers or default_workers()
    return CopyOptions(
        recursive=base.recursive and not no_recursive,
        single_thread=single_thread or base.single_thread,
        workers=resolved_workers,
        dry_run=run_dry,
        verbosity=resolve_verbosity(verbose, only_files, only_dirs, run_dry, default=base.verbosity),
        excludes=normalize_extensions([*base.exclude, *excludes]),
        follow_symlinks=follow_symlinks or base.follow_symlinks,
        preserve_metadata=preserve_metadata or base.preserve_metadata,
        show_progress=base.progress and not no_progress,
    )
