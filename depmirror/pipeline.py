"""Pipeline orchestration for analyze, mapping and verification runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Callable, Dict, List, Optional, Sequence

from .classify.classifier import DependencyClassifier
from .classify.resolver import load_tsconfig_aliases
from .config import ConfigError, DepMirrorConfig, load_config
from .errors import AnalysisError, Err, ErrorKind, Ok
from .graph.builder import ReferenceGraphBuilder
from .ids import IdentifierGenerator
from .logging import get_logger
from .mapping.codec import PathCodec
from .models import ProjectReferenceData, SourceFile
from .parsing import ImportParser, create_parser
from .project_root import find_project_root
from .scanner import ProjectScanner
from .stores.reference_store import ReferenceStore

# Sub-document trees the codec writes below the docs root.
_GENERATED_TREES = ("methods", "classes", "libraries")


@dataclass
class ProjectContext:
    """Everything one run needs to know about a project."""

    root: Path
    config: DepMirrorConfig
    codec: PathCodec
    files: List[SourceFile] = field(default_factory=list)


@dataclass
class AnalysisOutcome:
    """Result of an analysis run that was written to disk."""

    data: ProjectReferenceData
    output_path: Path


@dataclass
class VerificationReport:
    """Round-trip verification summary across a project."""

    total_files: int
    valid: int
    perfect_matches: int
    failures: List[Dict[str, Optional[str]]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.total_files == self.perfect_matches


class ProjectAnalyzer:
    """Coordinates scanning, parsing, classification and graph construction."""

    def __init__(
        self,
        scanner: ProjectScanner | None = None,
        parser: ImportParser | None = None,
        *,
        config_loader: Callable[[Path], DepMirrorConfig] = load_config,
        detect_root: bool = True,
    ) -> None:
        self._scanner = scanner
        self._parser = parser
        self._config_loader = config_loader
        self._detect_root = detect_root
        self.logger = get_logger("pipeline")

    def prepare(self, path: str | Path) -> ProjectContext:
        """Resolve the project root, load config and enumerate analyzable files."""
        start = Path(path).expanduser().resolve()
        if not start.exists():
            raise AnalysisError(
                Err(
                    ErrorKind.INVALID_PROJECT_ROOT,
                    "Path does not exist",
                    {"path": str(path), "root": str(start)},
                )
            )
        root = find_project_root(start) if self._detect_root else start
        config = self._config_loader(root)
        codec = PathCodec(root, config.docs_root, config.namespace)
        scanner = self._scanner or ProjectScanner(
            extra_extensions=config.extensions,
            exclude_paths=config.exclude_paths,
        )
        discovered = scanner.scan(root)
        files = [source for source in discovered if not self._is_generated_document(codec, root, source)]
        skipped = len(discovered) - len(files)
        if skipped:
            self.logger.debug("Skipped %d generated documents under %s", skipped, codec.docs_root)
        self.logger.info("Discovered %d files under %s", len(files), root)
        return ProjectContext(root=root, config=config, codec=codec, files=files)

    def analyze(self, path: str | Path) -> ProjectReferenceData:
        """Build the reference graph for the project containing ``path``."""
        context = self.prepare(path)
        return self._builder(context).build(context.files)

    def run_analysis(self, path: str | Path, *, output: Optional[Path] = None) -> AnalysisOutcome:
        """Analyze the project and persist the reference data."""
        context = self.prepare(path)
        data = self._builder(context).build(context.files)
        target = ReferenceStore(output or context.config.output_path).save(data)
        self.logger.info("Reference data written to %s", target)
        return AnalysisOutcome(data=data, output_path=target)

    def generate_project_mapping_table(self, path: str | Path) -> Dict[str, Any]:
        """Return every source file with its identifier and mirrored document path."""
        context = self.prepare(path)
        builder = self._builder(context)
        contents = builder.read_sources(context.files)
        file_ids = builder.assign_identifiers(context.files, contents)
        mappings = []
        for source in context.files:
            mappings.append(
                {
                    "source_file": source.path,
                    "file_id": file_ids[source.path],
                    "document_file": str(context.codec.encode(context.root / source.path)),
                }
            )
        return {
            "total_files": len(mappings),
            "namespace": context.config.namespace,
            "mappings": mappings,
        }

    def verify_all(self, path: str | Path) -> VerificationReport:
        """Round-trip every discovered file through the codec."""
        context = self.prepare(path)
        results = context.codec.verify_batch(context.root / source.path for source in context.files)
        failures = [
            {"source_file": result.source_file, "error": result.error or "round trip mismatch"}
            for result in results.values()
            if not result.perfect_match
        ]
        for failure in failures:
            self.logger.warning("Mapping failed for %s: %s", failure["source_file"], failure["error"])
        return VerificationReport(
            total_files=len(results),
            valid=sum(1 for result in results.values() if result.valid),
            perfect_matches=sum(1 for result in results.values() if result.perfect_match),
            failures=failures,
        )

    def map_files(self, path: str | Path, sources: Sequence[str | Path]) -> Dict[str, str]:
        """Map explicit source paths (relative to the project root) to document paths."""
        context = self.prepare(path)
        return context.codec.batch_mapping(
            source if Path(source).is_absolute() else context.root / source for source in sources
        )

    # ------------------------------------------------------------------
    # Internal helpers

    def _builder(self, context: ProjectContext) -> ReferenceGraphBuilder:
        config = context.config
        aliases = load_tsconfig_aliases(context.root)
        aliases.update(config.aliases)
        classifier = DependencyClassifier(
            context.root,
            aliases=aliases,
            utility_patterns=config.test.utility_patterns,
            setup_patterns=config.test.setup_patterns,
        )
        generator = IdentifierGenerator(config.ids.strategy, hash_length=config.ids.hash_length)
        return ReferenceGraphBuilder(
            context.root,
            classifier,
            self._parser or self._create_parser(config),
            id_generator=generator,
        )

    @staticmethod
    def _create_parser(config: DepMirrorConfig) -> ImportParser:
        try:
            return create_parser(config.parser)
        except (ValueError, RuntimeError) as exc:
            raise ConfigError(f"Cannot use parser '{config.parser}': {exc}") from exc

    @staticmethod
    def _is_generated_document(codec: PathCodec, root: Path, source: SourceFile) -> bool:
        if source.role != "docs":
            return False
        absolute = root / source.path
        try:
            relative_to_docs = PurePosixPath(absolute.relative_to(codec.docs_root).as_posix())
        except ValueError:
            return False
        if relative_to_docs.parts and relative_to_docs.parts[0] in _GENERATED_TREES:
            return True
        decoded = codec.try_decode(absolute)
        return isinstance(decoded, Ok) and decoded.value.is_file()


__all__ = ["AnalysisOutcome", "ProjectAnalyzer", "ProjectContext", "VerificationReport"]
