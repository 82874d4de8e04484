"""Locate the enclosing project root by walking upward to a marker file."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from .logging import get_logger

DEFAULT_MARKERS = (
    "package.json",
    "tsconfig.json",
    ".git",
    "yarn.lock",
    "pnpm-lock.yaml",
    "lerna.json",
    "nx.json",
    "rush.json",
    ".depmirror.yml",
)

_LOGGER = get_logger("project_root")


def find_project_root(start: str | Path, markers: Sequence[str] = DEFAULT_MARKERS) -> Path:
    """Return the nearest ancestor of ``start`` containing a marker.

    Falls back to the starting directory (or the parent of a starting file)
    when no ancestor carries a marker.
    """
    origin = Path(start).expanduser().resolve()
    directory = origin if origin.is_dir() else origin.parent
    for candidate in (directory, *directory.parents):
        for marker in markers:
            if (candidate / marker).exists():
                _LOGGER.debug("Project root %s found via %s", candidate, marker)
                return candidate
    _LOGGER.debug("No project marker above %s; using it as the root", directory)
    return directory


__all__ = ["DEFAULT_MARKERS", "find_project_root"]
