"""Deterministic source file selection by include/ignore globs."""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path


def _pattern_variants(pattern: str) -> tuple[str, ...]:
    """Let `**/` also match zero directories."""
    variants = [pattern]
    collapsed = pattern.replace("/**/", "/")
    if collapsed.startswith("**/"):
        collapsed = collapsed[3:]
    if collapsed != pattern:
        variants.append(collapsed)
    return tuple(variants)


def glob_matches(relative_path: str, patterns: tuple[str, ...]) -> bool:
    """Return True when a project-relative path matches any glob."""
    anchored = f"/{relative_path}"
    return any(
        fnmatch.fnmatchcase(relative_path, variant) or fnmatch.fnmatchcase(anchored, variant)
        for pattern in patterns
        for variant in _pattern_variants(pattern)
    )


@dataclass(slots=True, frozen=True)
class FileMatcher:
    """Include/ignore glob predicate of one extraction agent."""

    include: tuple[str, ...]
    ignore: tuple[str, ...] = ()

    def __call__(self, relative_path: str) -> bool:
        return self.matches(relative_path)

    def matches(self, relative_path: str) -> bool:
        """Return True when the path is included and not ignored."""
        path = relative_path.replace(os.sep, "/")
        if not glob_matches(path, self.include):
            return False
        return not glob_matches(path, self.ignore)


def _pruned_dir_names(patterns: tuple[str, ...]) -> set[str]:
    """Extract directory names to skip from **/name/** ignore globs."""
    output: set[str] = set()
    for pattern in patterns:
        if not pattern.startswith("**/") or not pattern.endswith("/**"):
            continue
        name = pattern[3:-3].strip("/")
        if not name or any(char in name for char in "*?[]{}"):
            continue
        output.add(name)
    return output


def discover_files(
    root: Path,
    matcher: FileMatcher,
    exclude_dirs: tuple[str, ...] = (".git", "__pycache__"),
) -> list[str]:
    """Walk the project tree and return sorted relative paths accepted by `matcher`."""
    root = root.resolve()
    pruned = set(exclude_dirs) | _pruned_dir_names(matcher.ignore)
    output: list[str] = []
    stack: list[Path] = [root]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                ordered_entries = sorted(entries, key=lambda item: item.name)
        except OSError:
            continue
        for entry in reversed(ordered_entries):
            full_path = Path(entry.path)
            if entry.is_dir(follow_symlinks=False):
                if entry.name not in pruned:
                    stack.append(full_path)
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            relative = full_path.relative_to(root).as_posix()
            if matcher.matches(relative):
                output.append(relative)
    output.sort()
    return output
