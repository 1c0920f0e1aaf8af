from __future__ import annotations

from pathlib import Path
from typing import Iterable

from treemetrics.parsing.treesitter import language_for_path


IGNORED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".idea",
    ".vscode",
    "node_modules",
    "bower_components",
    "dist",
    "build",
    "coverage",
    "out",
}


def iter_source_files(root: str, enabled_languages: set[str]) -> Iterable[str]:
    root_path = Path(root)
    if root_path.is_file():
        candidates = [root_path]
    else:
        candidates = sorted(root_path.rglob("*"))
    for path in candidates:
        if not path.is_file():
            continue
        if path != root_path and any(part in IGNORED_DIRS for part in path.relative_to(root_path).parts):
            continue
        language = language_for_path(str(path))
        if language is None:
            continue
        if language not in enabled_languages:
            continue
        yield str(path)
