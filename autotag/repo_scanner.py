"""Repository walking with a fixed deny-list and configured excludes."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Sequence

from .extractors.languages import detect_language
from .logging import get_logger
from .models import FileMeta, RepoManifest

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    ".tox",
    ".nox",
    "node_modules",
    "bower_components",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    ".idea",
    ".vscode",
    ".next",
    ".nuxt",
    ".gradle",
    ".terraform",
    ".cache",
    "dist",
    "build",
    "target",
    "coverage",
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}

logger = get_logger("scanner")


@dataclass
class IgnoreRule:
    """Represents an exclude pattern from .autotag.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            if self.directory_only and rel_path.startswith(f"{self.pattern}/"):
                return True
            return False

        for part in rel_path.split("/"):
            if fnmatchcase(part, self.pattern):
                return True
        return False


def build_ignore_rule(pattern: str) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        has_slash="/" in pattern,
    )


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    return any(rule.matches(rel_path, is_dir) for rule in rules)


def _log_walk_error(error: OSError) -> None:
    logger.debug("Skipping unreadable directory %s: %s", error.filename, error.strerror)


def _iter_files(root: Path, rules: Sequence[IgnoreRule]) -> Iterator[str]:
    for dirpath, dirnames, filenames in os.walk(root, onerror=_log_walk_error):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept = []
        for name in dirnames:
            if name in _EXCLUDED_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if _should_ignore(rel_path, True, rules):
                continue
            kept.append(name)
        dirnames[:] = sorted(kept)

        for filename in sorted(filenames):
            if filename in _EXCLUDED_FILES:
                continue
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _should_ignore(rel_path, False, rules):
                continue
            yield rel_path


class RepoScanner:
    """Walks the repository tree without a depth limit."""

    def __init__(self, exclude_paths: Sequence[str] = ()) -> None:
        self._rules: List[IgnoreRule] = [
            rule for rule in (build_ignore_rule(pattern) for pattern in exclude_paths) if rule
        ]

    def scan(self, root: str | Path) -> RepoManifest:
        """Return every non-excluded file with its extension-implied language.

        A missing or unreadable root yields an empty manifest.
        """
        root_path = Path(root).expanduser().resolve()
        if not root_path.is_dir():
            logger.warning("Repository path is not a readable directory: %s", root_path)
            return RepoManifest(root=str(root_path), files=[])

        files = [
            FileMeta(path=rel_path, language=detect_language(rel_path))
            for rel_path in _iter_files(root_path, self._rules)
        ]
        logger.debug("Scanner discovered %d files under %s", len(files), root_path)
        return RepoManifest(root=str(root_path), files=files)


__all__ = ["IgnoreRule", "RepoScanner", "build_ignore_rule"]
