from __future__ import annotations

from typing import Iterable

import pathspec


_GLOB_SPECIALS = "\\*?[]!#"


def normalize_extensions(values: Iterable[str]) -> frozenset[str]:
    """Lowercase extensions with any leading dots stripped; blanks are dropped."""
    normalized: set[str] = set()
    for value in values:
        ext = value.strip().lstrip(".").lower()
        if ext:
            normalized.add(ext)
    return frozenset(normalized)


def file_extension(filename: str) -> str | None:
    stem, dot, ext = filename.rpartition(".")
    if not dot or not stem or not ext:
        return None
    return ext


def _escape(ext: str) -> str:
    return "".join(f"\\{char}" if char in _GLOB_SPECIALS else char for char in ext)


class ExclusionFilter:
    def __init__(self, extensions: Iterable[str]) -> None:
        self.extensions = normalize_extensions(extensions)
        patterns = [f"*.{_escape(ext)}" for ext in sorted(self.extensions)]
        self._spec = pathspec.PathSpec.from_lines("gitwildmatch", patterns)

    def __bool__(self) -> bool:
        return bool(self.extensions)

    def included(self, filename: str) -> bool:
        if not self.extensions:
            return True
        lowered = filename.lower()
        if file_extension(lowered) is None:
            return True
        return not self._spec.match_file(lowered)


def included(filename: str, extensions: Iterable[str]) -> bool:
    return ExclusionFilter(extensions).included(filename)
