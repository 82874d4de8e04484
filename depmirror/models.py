"""Core data models shared across depmirror components."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterator, List, Optional

ROLES = ("code", "test", "docs")

CATEGORIES = (
    "internal",
    "external",
    "builtin",
    "test-target",
    "test-utility",
    "test-setup",
    "doc-reference",
    "doc-link",
    "doc-asset",
)

# Categories whose resolved target may carry a file id and produce a graph edge.
LINKABLE_CATEGORIES = ("internal", "test-target", "doc-reference")


@dataclass
class SourceFile:
    """A discovered project file with its role."""

    path: str
    role: str
    size: int = 0
    language: Optional[str] = None


@dataclass
class RawImport:
    """Import, require or link reference extracted by a parser."""

    specifier: str
    line: int
    import_style: str = "import"
    imported_members: List[str] = field(default_factory=list)
    type_members: List[str] = field(default_factory=list)
    is_type_only: bool = False
    text: Optional[str] = None


@dataclass
class ExportRecord:
    """Exported symbol extracted by a parser."""

    name: str
    export_type: str
    declaration_type: str
    line: int
    parent_class: Optional[str] = None
    is_async: bool = False
    is_static: bool = False
    visibility: str = "public"


@dataclass
class DependencyRecord:
    """Classified reference from one file to a module, file, link or asset."""

    source: str
    line: int
    category: str
    confidence: float
    resolved_path: Optional[str] = None
    exists: bool = False
    is_type_only: bool = False
    import_style: str = "import"
    imported_members: List[str] = field(default_factory=list)
    type_members: List[str] = field(default_factory=list)
    target_file_id: Optional[str] = None


@dataclass
class TestDependencies:
    """Test-role buckets."""

    __test__ = False

    targets: List[DependencyRecord] = field(default_factory=list)
    utilities: List[DependencyRecord] = field(default_factory=list)
    setup: List[DependencyRecord] = field(default_factory=list)


@dataclass
class DocDependencies:
    """Docs-role buckets."""

    references: List[DependencyRecord] = field(default_factory=list)
    links: List[DependencyRecord] = field(default_factory=list)
    assets: List[DependencyRecord] = field(default_factory=list)


@dataclass
class FileDependencies:
    """Dependencies of one file partitioned by category."""

    internal: List[DependencyRecord] = field(default_factory=list)
    external: List[DependencyRecord] = field(default_factory=list)
    builtin: List[DependencyRecord] = field(default_factory=list)
    test: Optional[TestDependencies] = None
    docs: Optional[DocDependencies] = None

    def add(self, record: DependencyRecord) -> None:
        category = record.category
        if category == "internal":
            self.internal.append(record)
        elif category == "external":
            self.external.append(record)
        elif category == "builtin":
            self.builtin.append(record)
        elif category.startswith("test-"):
            if self.test is None:
                self.test = TestDependencies()
            bucket = {
                "test-target": self.test.targets,
                "test-utility": self.test.utilities,
                "test-setup": self.test.setup,
            }[category]
            bucket.append(record)
        elif category.startswith("doc-"):
            if self.docs is None:
                self.docs = DocDependencies()
            bucket = {
                "doc-reference": self.docs.references,
                "doc-link": self.docs.links,
                "doc-asset": self.docs.assets,
            }[category]
            bucket.append(record)
        else:
            raise ValueError(f"Unknown dependency category: {category}")

    def __iter__(self) -> Iterator[DependencyRecord]:
        yield from self.internal
        yield from self.external
        yield from self.builtin
        if self.test is not None:
            yield from self.test.targets
            yield from self.test.utilities
            yield from self.test.setup
        if self.docs is not None:
            yield from self.docs.references
            yield from self.docs.links
            yield from self.docs.assets

    def __len__(self) -> int:
        return sum(1 for _ in self)


@dataclass
class TestMetadata:
    """Framework and shape of a test file."""

    __test__ = False

    framework: str = "unknown"
    test_type: str = "unit"
    test_count: int = 0
    async_tests: int = 0
    mocks: int = 0
    assertions: int = 0


@dataclass
class DocumentMetadata:
    """Summary of a documentation file."""

    title: Optional[str] = None
    word_count: int = 0
    link_count: int = 0
    broken_links: int = 0


@dataclass
class FileClassification:
    """Classifier output for a single file."""

    records: List[DependencyRecord] = field(default_factory=list)
    framework: Optional[str] = None
    complexity: int = 0
    lines_of_code: int = 0
    test_metadata: Optional[TestMetadata] = None
    document_metadata: Optional[DocumentMetadata] = None
    risk_factors: List[str] = field(default_factory=list)


@dataclass
class FileMetadata:
    """Node of the reference graph: one analyzed file."""

    file_id: str
    file_path: str
    relative_path: str
    role: str
    language: Optional[str] = None
    size: int = 0
    dependencies: FileDependencies = field(default_factory=FileDependencies)
    dependents: List[str] = field(default_factory=list)
    clusters: List[str] = field(default_factory=list)
    risk_factors: List[str] = field(default_factory=list)
    exports: List[ExportRecord] = field(default_factory=list)
    framework: Optional[str] = None
    complexity: int = 0
    lines_of_code: int = 0
    test_metadata: Optional[TestMetadata] = None
    document_metadata: Optional[DocumentMetadata] = None
    readable: bool = True


@dataclass
class GraphEdge:
    """Directed edge between two analyzed files."""

    source: str
    target: str
    dependency: DependencyRecord
    weight: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.source,
            "to": self.target,
            "weight": self.weight,
            "dependency": asdict(self.dependency),
        }


@dataclass
class Statistics:
    """Aggregate counts over an analyzed project."""

    total_files: int = 0
    files_by_role: Dict[str, int] = field(default_factory=dict)
    total_dependencies: int = 0
    dependencies_by_category: Dict[str, int] = field(default_factory=dict)
    average_dependencies_per_file: float = 0.0
    circular_dependencies: int = 0
    orphaned_files: int = 0
    cycles: List[List[str]] = field(default_factory=list)


@dataclass
class LibraryMember:
    """Imported name from an external library."""

    name: str
    is_type_only: bool = False


@dataclass
class LibraryGroup:
    """External library usage merged across every file of the project."""

    key: str
    members: List[LibraryMember] = field(default_factory=list)
    specifiers: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)
    role: str = "service"
    version: Optional[str] = None
    dependency_type: Optional[str] = None


@dataclass
class ProjectInfo:
    """Identifies the analyzed project and the run."""

    root: str
    name: str
    analyzed_at: str
    version: str


@dataclass
class ProjectReferenceData:
    """Complete result of one analysis run."""

    project: ProjectInfo
    files: List[FileMetadata]
    statistics: Statistics
    edges: List[GraphEdge] = field(default_factory=list)
    libraries: List[LibraryGroup] = field(default_factory=list)

    def file_by_id(self, file_id: str) -> Optional[FileMetadata]:
        for meta in self.files:
            if meta.file_id == file_id:
                return meta
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project": asdict(self.project),
            "files": [asdict(meta) for meta in self.files],
            "statistics": asdict(self.statistics),
            "reference_graph": {"edges": [edge.to_dict() for edge in self.edges]},
            "libraries": [asdict(group) for group in self.libraries],
        }


__all__ = [
    "CATEGORIES",
    "LINKABLE_CATEGORIES",
    "ROLES",
    "DependencyRecord",
    "DocDependencies",
    "DocumentMetadata",
    "ExportRecord",
    "FileClassification",
    "FileDependencies",
    "FileMetadata",
    "GraphEdge",
    "LibraryGroup",
    "LibraryMember",
    "ProjectInfo",
    "ProjectReferenceData",
    "RawImport",
    "SourceFile",
    "Statistics",
    "TestDependencies",
    "TestMetadata",
]
