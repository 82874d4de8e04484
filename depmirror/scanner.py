"""Project scanning: file discovery, ignore rules and role assignment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath
from typing import Iterator, List, Optional, Sequence

from .errors import AnalysisError, Err, ErrorKind
from .logging import get_logger
from .models import SourceFile
from .parsing.base import CODE_EXTENSIONS, DOC_EXTENSIONS

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".idea",
    ".vscode",
    ".next",
    ".nuxt",
    ".depmirror",
    "dist",
    "build",
    "coverage",
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}

_LANGUAGE_BY_SUFFIX = {
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".mts": "TypeScript",
    ".cts": "TypeScript",
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    ".md": "Markdown",
    ".markdown": "Markdown",
    ".mdx": "MDX",
}

_TEST_DIRECTORIES = {"__tests__", "test", "tests"}
_TEST_MARKERS = (".test.", ".spec.")

_LOGGER = get_logger("scanner")


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or configured exclude paths."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
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
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def detect_role(relative_path: str, code_extensions: Sequence[str] = CODE_EXTENSIONS) -> Optional[str]:
    """Return ``test``, ``docs`` or ``code`` for a project file, or None to skip it."""
    path = PurePosixPath(relative_path)
    suffix = path.suffix.lower()
    if suffix in DOC_EXTENSIONS:
        return "docs"
    if suffix not in code_extensions:
        return None
    if any(marker in path.name for marker in _TEST_MARKERS):
        return "test"
    if any(part in _TEST_DIRECTORIES for part in path.parts[:-1]):
        return "test"
    return "code"


class ProjectScanner:
    """Walks a project to list the code, test and documentation files to analyze."""

    def __init__(
        self,
        *,
        extra_extensions: Sequence[str] = (),
        exclude_paths: Sequence[str] = (),
    ) -> None:
        self.code_extensions = tuple(CODE_EXTENSIONS) + tuple(
            ext for ext in extra_extensions if ext not in CODE_EXTENSIONS
        )
        self._extra_rules = [rule for rule in map(build_ignore_rule, exclude_paths) if rule is not None]

    def scan(self, root: str | Path) -> List[SourceFile]:
        """Return discovered files sorted by relative path."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.is_dir():
            raise AnalysisError(
                Err(
                    ErrorKind.INVALID_PROJECT_ROOT,
                    "Project root does not exist or is not a directory",
                    {"root": str(root_path)},
                )
            )

        rules = _parse_gitignore(root_path / ".gitignore")
        rules.extend(self._extra_rules)

        files: List[SourceFile] = []
        for path in _iter_files(root_path, rules):
            rel_path = path.relative_to(root_path).as_posix()
            role = detect_role(rel_path, self.code_extensions)
            if role is None:
                continue
            try:
                size = path.stat().st_size
            except OSError as exc:
                _LOGGER.warning("Cannot stat %s: %s", rel_path, exc)
                size = 0
            files.append(
                SourceFile(
                    path=rel_path,
                    role=role,
                    size=size,
                    language=_LANGUAGE_BY_SUFFIX.get(path.suffix.lower()),
                )
            )
        files.sort(key=lambda source: source.path)
        _LOGGER.debug("Discovered %d files under %s", len(files), root_path)
        return files


def _iter_files(root: Path, rules: Sequence[IgnoreRule]) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept_dirs = []
        for name in sorted(dirnames):
            if name in _EXCLUDED_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if should_ignore(rel_path, True, rules):
                continue
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for filename in sorted(filenames):
            if filename in _EXCLUDED_FILES:
                continue
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if should_ignore(rel_path, False, rules):
                continue
            yield current_dir / filename


__all__ = [
    "IgnoreRule",
    "ProjectScanner",
    "build_ignore_rule",
    "detect_role",
    "should_ignore",
]
