"""Four-phase construction of the project reference graph."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, List, Optional, Sequence

from .cycles import find_cycles
from ..classify.classifier import DependencyClassifier
from ..classify.libraries import LibraryCatalog, declared_libraries, load_package_manifest
from ..errors import AnalysisError, Err, ErrorKind, Ok, Result
from ..ids import IdentifierGenerator
from ..logging import get_logger
from ..models import (
    CATEGORIES,
    LINKABLE_CATEGORIES,
    ROLES,
    FileMetadata,
    GraphEdge,
    ProjectInfo,
    ProjectReferenceData,
    SourceFile,
    Statistics,
)
from ..parsing.base import ImportParser

REFERENCE_DATA_VERSION = "1.0.0"

_LOGGER = get_logger("graph")


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ReferenceGraphBuilder:
    """Builds ``ProjectReferenceData`` from an enumerated file list.

    Phases run strictly in order: identifiers for every file, per-file
    classification, edge construction with derived dependents, and finally
    statistics. The result is a pure function of the files and their contents
    apart from ``analyzed_at``.
    """

    def __init__(
        self,
        project_root: str | Path,
        classifier: DependencyClassifier,
        parser: ImportParser,
        *,
        id_generator: Optional[IdentifierGenerator] = None,
        project_name: Optional[str] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.project_root = Path(project_root)
        self.classifier = classifier
        self.parser = parser
        self.id_generator = id_generator or IdentifierGenerator()
        self.project_name = project_name or self.project_root.name
        self._clock = clock

    def build(self, files: Sequence[SourceFile]) -> ProjectReferenceData:
        if not files:
            raise AnalysisError(
                Err(
                    ErrorKind.EMPTY_INPUT,
                    "No files were found to analyze",
                    {"root": str(self.project_root)},
                )
            )

        ordered = sorted({source.path: source for source in files}.values(), key=lambda source: source.path)
        contents = self.read_sources(ordered)
        file_ids = self.assign_identifiers(ordered, contents)
        catalog = LibraryCatalog(declared_libraries(load_package_manifest(self.project_root)))
        nodes = [self._file_metadata(source, file_ids, contents[source.path], catalog) for source in ordered]
        edges = self._connect(nodes)
        statistics = self._statistics(nodes, edges)

        _LOGGER.info(
            "Analyzed %d files: %d dependencies, %d edges, %d orphaned",
            statistics.total_files,
            statistics.total_dependencies,
            len(edges),
            statistics.orphaned_files,
        )
        return ProjectReferenceData(
            project=ProjectInfo(
                root=str(self.project_root),
                name=self.project_name,
                analyzed_at=self._clock().isoformat().replace("+00:00", "Z"),
                version=REFERENCE_DATA_VERSION,
            ),
            files=nodes,
            statistics=statistics,
            edges=edges,
            libraries=catalog.groups(),
        )

    # ------------------------------------------------------------------
    # Phases

    def read_sources(self, files: Sequence[SourceFile]) -> Dict[str, Optional[str]]:
        """Read every file; unreadable files map to None and are logged."""
        contents: Dict[str, Optional[str]] = {}
        for source in files:
            result = self._read(source)
            if isinstance(result, Err):
                _LOGGER.warning("%s; recording it without dependencies", result.describe())
                contents[source.path] = None
            else:
                contents[source.path] = result.value
        return contents

    def assign_identifiers(
        self, ordered: Sequence[SourceFile], contents: Dict[str, Optional[str]]
    ) -> Dict[str, str]:
        file_ids: Dict[str, str] = {}
        for source in ordered:
            file_ids[source.path] = self.id_generator.generate(
                source.path,
                self.project_root,
                content=contents.get(source.path),
                role=source.role,
            )
        return file_ids

    def _file_metadata(
        self,
        source: SourceFile,
        file_ids: Dict[str, str],
        content: Optional[str],
        catalog: LibraryCatalog,
    ) -> FileMetadata:
        meta = FileMetadata(
            file_id=file_ids[source.path],
            file_path=str(self.project_root / source.path),
            relative_path=source.path,
            role=source.role,
            language=source.language,
            size=source.size,
            clusters=cluster_labels(source.path, source.role),
        )
        if content is None:
            meta.readable = False
            return meta

        _LOGGER.debug("Classifying %s (%s)", source.path, source.role)
        raw = self.parser.parse_imports(source.path, content)
        meta.exports = self.parser.parse_exports(source.path, content)
        classification = self.classifier.classify(self.project_root / source.path, source.role, raw, content)

        for record in classification.records:
            if record.category in LINKABLE_CATEGORIES and record.resolved_path:
                record.target_file_id = file_ids.get(record.resolved_path)
            meta.dependencies.add(record)
            if record.category == "external":
                catalog.add(record, source.path)

        meta.framework = classification.framework
        meta.complexity = classification.complexity
        meta.lines_of_code = classification.lines_of_code
        meta.test_metadata = classification.test_metadata
        meta.document_metadata = classification.document_metadata
        meta.risk_factors = list(classification.risk_factors)
        return meta

    @staticmethod
    def _connect(nodes: Sequence[FileMetadata]) -> List[GraphEdge]:
        edges: List[GraphEdge] = []
        dependents: Dict[str, set[str]] = {node.file_id: set() for node in nodes}
        for node in nodes:
            for record in node.dependencies:
                if record.target_file_id is None:
                    continue
                edges.append(
                    GraphEdge(
                        source=node.file_id,
                        target=record.target_file_id,
                        dependency=record,
                        weight=record.confidence,
                    )
                )
                dependents.setdefault(record.target_file_id, set()).add(node.file_id)
        for node in nodes:
            node.dependents = sorted(dependents.get(node.file_id, ()))
        return edges

    @staticmethod
    def _statistics(nodes: Sequence[FileMetadata], edges: Sequence[GraphEdge]) -> Statistics:
        files_by_role = {role: 0 for role in ROLES}
        by_category = {category: 0 for category in CATEGORIES}
        total_dependencies = 0
        orphaned = 0
        for node in nodes:
            files_by_role[node.role] = files_by_role.get(node.role, 0) + 1
            for record in node.dependencies:
                by_category[record.category] += 1
                total_dependencies += 1
            if is_orphan(node):
                orphaned += 1

        adjacency: Dict[str, List[str]] = {node.file_id: [] for node in nodes}
        for edge in edges:
            adjacency[edge.source].append(edge.target)
        cycles = find_cycles(adjacency)
        in_cycle = {file_id for cycle in cycles for file_id in cycle}
        for node in nodes:
            if node.file_id in in_cycle and "circular-dependencies" not in node.risk_factors:
                node.risk_factors.append("circular-dependencies")

        return Statistics(
            total_files=len(nodes),
            files_by_role=files_by_role,
            total_dependencies=total_dependencies,
            dependencies_by_category=by_category,
            average_dependencies_per_file=round(total_dependencies / len(nodes), 2) if nodes else 0.0,
            circular_dependencies=len(cycles),
            orphaned_files=orphaned,
            cycles=cycles,
        )

    # ------------------------------------------------------------------
    # Internal helpers

    def _read(self, source: SourceFile) -> Result[str]:
        path = self.project_root / source.path
        try:
            return Ok(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            return Err(
                ErrorKind.FILE_ACCESS_DENIED,
                f"Could not read file: {exc.__class__.__name__}",
                {"path": source.path, "root": str(self.project_root)},
            )


def is_orphan(node: FileMetadata) -> bool:
    return not node.dependents and not node.dependencies.internal


def cluster_labels(relative_path: str, role: str) -> List[str]:
    parts = PurePosixPath(relative_path).parts
    top = parts[0] if len(parts) > 1 else "root"
    return [top, role]


__all__ = [
    "REFERENCE_DATA_VERSION",
    "ReferenceGraphBuilder",
    "cluster_labels",
    "is_orphan",
]
