"""Grouping of external library imports across a project."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..logging import get_logger
from ..models import DependencyRecord, LibraryGroup, LibraryMember

# package.json section -> dependency type; earlier sections win for duplicates.
DECLARATION_SECTIONS: Tuple[Tuple[str, str], ...] = (
    ("dependencies", "dependency"),
    ("devDependencies", "devDependency"),
    ("peerDependencies", "peerDependency"),
)

# Ordered: the first role with a matching marker wins.
LIBRARY_ROLES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("test", ("test", "jest", "vitest", "mocha", "chai")),
    ("type", ("@types/", "typescript")),
    ("script", ("webpack", "vite", "rollup", "babel", "esbuild", "tsc")),
    ("config", ("config", "eslint", "prettier")),
    ("utility", ("lodash", "ramda", "util")),
)

_LOGGER = get_logger("classify.libraries")


def library_group_key(specifier: str) -> str:
    """Collapse sub-path and scope variants of a package specifier to one key.

    ``node:fs/promises`` becomes ``node/fs``, ``@scope/pkg/sub`` becomes
    ``@scope/pkg`` and ``lodash/debounce`` becomes ``lodash``.
    """
    if ":" in specifier and not specifier.startswith("@"):
        namespace, _, rest = specifier.partition(":")
        return f"{namespace}/{rest.split('/')[0]}"
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) >= 2:
        return f"{parts[0]}/{parts[1]}"
    return parts[0]


def library_role(name: str) -> str:
    for role, markers in LIBRARY_ROLES:
        if any(marker in name for marker in markers):
            return role
    return "service"


def load_package_manifest(root: Path) -> Dict[str, object]:
    """Return the parsed package.json contents or an empty dict."""
    package_json = root / "package.json"
    if not package_json.exists():
        return {}
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        _LOGGER.warning("Ignoring unreadable %s: %s", package_json, exc)
        return {}
    if isinstance(data, dict):
        return data
    return {}


def declared_libraries(manifest: Mapping[str, object]) -> Dict[str, Tuple[str, str]]:
    """Map each declared package name to its ``(version, dependency_type)``."""
    declared: Dict[str, Tuple[str, str]] = {}
    for section, dependency_type in DECLARATION_SECTIONS:
        entries = manifest.get(section)
        if not isinstance(entries, dict):
            continue
        for name, version in entries.items():
            if name not in declared:
                declared[name] = (str(version), dependency_type)
    return declared


class LibraryCatalog:
    """Accumulates external library usage; one writer per analysis run."""

    def __init__(self, declared: Optional[Mapping[str, Tuple[str, str]]] = None) -> None:
        self._declared: Dict[str, Tuple[str, str]] = dict(declared or {})
        self._groups: Dict[str, LibraryGroup] = {}
        self._members: Dict[str, Dict[str, LibraryMember]] = {}

    def add(self, record: DependencyRecord, file_path: str) -> LibraryGroup:
        key = library_group_key(record.source)
        group = self._groups.get(key)
        if group is None:
            group = LibraryGroup(key=key)
            self._groups[key] = group
            self._members[key] = {}
        if record.source not in group.specifiers:
            group.specifiers.append(record.source)
        if file_path not in group.files:
            group.files.append(file_path)

        members = self._members[key]
        for name in record.imported_members:
            self._merge(members, name, record.is_type_only)
        for name in record.type_members:
            self._merge(members, name, True)
        group.members = [members[name] for name in sorted(members)]
        return group

    def extend(self, records: Iterable[DependencyRecord], file_path: str) -> None:
        for record in records:
            self.add(record, file_path)

    def groups(self) -> List[LibraryGroup]:
        result: List[LibraryGroup] = []
        for key in sorted(self._groups):
            group = self._groups[key]
            version, dependency_type = self._declared.get(key, (None, None))
            result.append(
                LibraryGroup(
                    key=key,
                    members=list(group.members),
                    specifiers=sorted(group.specifiers),
                    files=sorted(group.files),
                    role=library_role(key),
                    version=version,
                    dependency_type=dependency_type,
                )
            )
        return result

    def __len__(self) -> int:
        return len(self._groups)

    @staticmethod
    def _merge(members: Dict[str, LibraryMember], name: str, is_type_only: bool) -> None:
        existing = members.get(name)
        if existing is None:
            members[name] = LibraryMember(name=name, is_type_only=is_type_only)
        elif existing.is_type_only and not is_type_only:
            # A value import anywhere makes the member a runtime dependency.
            existing.is_type_only = False


__all__ = [
    "LibraryCatalog",
    "declared_libraries",
    "library_group_key",
    "library_role",
    "load_package_manifest",
]
