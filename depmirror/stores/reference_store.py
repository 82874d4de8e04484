"""JSON persistence for project reference data."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..logging import get_logger
from ..models import (
    DependencyRecord,
    DocumentMetadata,
    ExportRecord,
    FileDependencies,
    FileMetadata,
    GraphEdge,
    LibraryGroup,
    LibraryMember,
    ProjectInfo,
    ProjectReferenceData,
    Statistics,
    TestMetadata,
)

_STORE_VERSION = 1

_LOGGER = get_logger("stores.reference")


class ReferenceStore:
    """Reads and writes ``ProjectReferenceData`` as a versioned JSON document."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def save(self, data: ProjectReferenceData) -> Path:
        payload = {"version": _STORE_VERSION, "data": data.to_dict()}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        return self._path

    def load(self) -> Optional[ProjectReferenceData]:
        """Return the stored data, or None when missing, unreadable or from another version."""
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            _LOGGER.warning("Ignoring unreadable reference data at %s: %s", self._path, exc)
            return None
        if not isinstance(payload, dict) or payload.get("version") != _STORE_VERSION:
            return None
        data = payload.get("data")
        if not isinstance(data, dict):
            return None
        try:
            return _reference_from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            _LOGGER.warning("Ignoring malformed reference data at %s: %s", self._path, exc)
            return None


def _reference_from_dict(payload: Dict[str, Any]) -> ProjectReferenceData:
    files = [_file_from_dict(entry) for entry in payload.get("files", [])]
    graph = payload.get("reference_graph") or {}
    edges = [
        GraphEdge(
            source=entry["from"],
            target=entry["to"],
            weight=float(entry["weight"]),
            dependency=_record_from_dict(entry["dependency"]),
        )
        for entry in graph.get("edges", [])
    ]
    libraries = [
        LibraryGroup(
            key=entry["key"],
            members=[LibraryMember(**member) for member in entry.get("members", [])],
            specifiers=list(entry.get("specifiers", [])),
            files=list(entry.get("files", [])),
            role=entry.get("role", "service"),
            version=entry.get("version"),
            dependency_type=entry.get("dependency_type"),
        )
        for entry in payload.get("libraries", [])
    ]
    return ProjectReferenceData(
        project=ProjectInfo(**payload["project"]),
        files=files,
        statistics=Statistics(**payload["statistics"]),
        edges=edges,
        libraries=libraries,
    )


def _record_from_dict(payload: Dict[str, Any]) -> DependencyRecord:
    return DependencyRecord(**payload)


def _records(entries: Optional[List[Dict[str, Any]]]) -> List[DependencyRecord]:
    return [_record_from_dict(entry) for entry in entries or []]


def _dependencies_from_dict(payload: Dict[str, Any]) -> FileDependencies:
    dependencies = FileDependencies(
        internal=_records(payload.get("internal")),
        external=_records(payload.get("external")),
        builtin=_records(payload.get("builtin")),
    )
    for bucket in ("test", "docs"):
        entries = payload.get(bucket)
        if not isinstance(entries, dict):
            continue
        for records in entries.values():
            for record in _records(records):
                dependencies.add(record)
    return dependencies


def _file_from_dict(payload: Dict[str, Any]) -> FileMetadata:
    fields = dict(payload)
    fields["dependencies"] = _dependencies_from_dict(fields.get("dependencies") or {})
    fields["exports"] = [ExportRecord(**entry) for entry in fields.get("exports") or []]
    if fields.get("test_metadata") is not None:
        fields["test_metadata"] = TestMetadata(**fields["test_metadata"])
    if fields.get("document_metadata") is not None:
        fields["document_metadata"] = DocumentMetadata(**fields["document_metadata"])
    return FileMetadata(**fields)


__all__ = ["ReferenceStore"]
