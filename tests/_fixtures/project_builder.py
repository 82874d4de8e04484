"""Helper utilities for constructing temporary JS/TS projects in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import List, Mapping

from depmirror.models import SourceFile
from depmirror.scanner import ProjectScanner


class ProjectBuilder:
    """Utility for writing files into a throwaway project and rescanning it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "project"
        self.root.mkdir()
        # package.json marks the root so detection never walks above tmp_path.
        (self.root / "package.json").write_text('{"name": "sample"}\n', encoding="utf-8")
        self._scanner = ProjectScanner()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def scan(self) -> List[SourceFile]:
        """Return a fresh listing of the project's analyzable files."""
        return self._scanner.scan(self.root)

    def path(self) -> Path:
        """Return the project root path."""
        return self.root


__all__ = ["ProjectBuilder"]
