"""Classification and confidence scoring of raw import and link records."""

from __future__ import annotations

import re
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .resolver import ModuleResolver, Resolution, is_relative
from ..logging import get_logger
from ..models import (
    DependencyRecord,
    DocumentMetadata,
    FileClassification,
    RawImport,
    TestMetadata,
)
from ..parsing.regex import strip_fenced_blocks

NODE_BUILTINS = frozenset(
    {
        "fs",
        "path",
        "os",
        "crypto",
        "http",
        "https",
        "url",
        "util",
        "events",
        "stream",
        "buffer",
        "child_process",
        "cluster",
        "dgram",
        "dns",
        "net",
        "readline",
        "repl",
        "tls",
        "tty",
        "vm",
        "zlib",
        "assert",
        "querystring",
        "punycode",
        "string_decoder",
        "timers",
        "console",
        "process",
        "global",
    }
)

# Ordered: the first framework with a matching marker wins.
TEST_FRAMEWORKS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("jest", ("@jest", "jest")),
    ("vitest", ("vitest", "@vitest")),
    ("mocha", ("mocha", "chai")),
    ("cypress", ("cypress", "@cypress")),
    ("playwright", ("@playwright", "playwright")),
)

CODE_FRAMEWORKS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("react", ("react", "@types/react", "react-dom")),
    ("vue", ("vue", "@vue", "nuxt")),
    ("angular", ("@angular", "rxjs")),
    ("svelte", ("svelte", "@sveltejs")),
    ("express", ("express", "@types/express")),
    ("nestjs", ("@nestjs",)),
    ("next", ("next", "@next")),
    ("gatsby", ("gatsby", "@gatsby")),
)

TEST_UTILITY_PATTERNS = ("@testing-library", "enzyme", "sinon", "nock", "supertest", "msw")
TEST_SETUP_PATTERNS = ("setup", "mocks", "fixtures", "test-utils")

MOCK_PATTERNS = ("jest.mock", "vi.mock", "sinon.stub", "sinon.spy", "cy.intercept")
ASSERTION_PATTERNS = ("expect(", "assert.", "should.", "chai.")

ASSET_EXTENSIONS = (
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".svg",
    ".webp",
    ".pdf",
    ".doc",
    ".docx",
    ".xls",
    ".xlsx",
    ".ppt",
    ".pptx",
    ".zip",
    ".tar",
    ".gz",
    ".json",
    ".xml",
    ".csv",
)
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp")
ASSET_DIRECTORIES = ("/assets/", "/images/", "/media/")
DOCUMENT_EXTENSIONS = (".md", ".markdown", ".mdx")

# Prefixes conventionally aliased to the source tree even without configuration.
COMMON_ALIAS_PREFIXES = ("@/", "~/")

HEAVY_MOCKING_THRESHOLD = 5
MIN_ASSERTIONS = 3
MIN_DOCUMENT_WORDS = 50
HIGH_COMPLEXITY_THRESHOLD = 10

_URL_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")
_TEST_CASE = re.compile(r"\b(?:it|test)(?:\.only|\.skip)?\s*\(")
_ASYNC_TEST = re.compile(r"\b(?:it|test)\([^,]+,\s*async")
_BRANCH_PATTERNS = tuple(
    re.compile(pattern)
    for pattern in (
        r"\bif\b",
        r"\belse\b",
        r"\bfor\b",
        r"\bwhile\b",
        r"\bswitch\b",
        r"\bcase\b",
        r"\bcatch\b",
        r"\btry\b",
        r"\?(?![.?:])[^:\n]*:",
    )
)
_FRONT_MATTER_TITLE = re.compile(r"\A---\s*\n(?:.*\n)*?title:\s*[\"']?(.+?)[\"']?\s*\n(?:.*\n)*?---", re.MULTILINE)
_HEADING = re.compile(r"^#\s+(.+?)\s*#*\s*$", re.MULTILINE)

_LOGGER = get_logger("classify")


def clamp(value: float) -> float:
    return max(0.0, min(1.0, round(value, 4)))


def specifier_stem(specifier: str) -> str:
    name = PurePosixPath(specifier.split("#", 1)[0].split("?", 1)[0]).name
    if name in ("", ".", ".."):
        return ""
    stem = PurePosixPath(name).stem
    return stem or name


def is_builtin(specifier: str, builtins: Iterable[str] = NODE_BUILTINS) -> bool:
    if specifier.startswith("node:"):
        return True
    return specifier.split("/", 1)[0] in builtins


def detect_test_framework(specifiers: Iterable[str]) -> str:
    sources = list(specifiers)
    for framework, markers in TEST_FRAMEWORKS:
        if any(marker in source for source in sources for marker in markers):
            return framework
    return "unknown"


def detect_code_framework(specifiers: Iterable[str]) -> Optional[str]:
    sources = list(specifiers)
    for framework, markers in CODE_FRAMEWORKS:
        if any(marker in source for source in sources for marker in markers):
            return framework
    return None


def detect_test_type(content: str) -> str:
    if "cy." in content or "playwright" in content:
        return "e2e"
    if "render" in content or "mount" in content:
        return "component"
    if "request" in content or "supertest" in content:
        return "integration"
    return "unit"


def count_patterns(content: str, patterns: Sequence[str]) -> int:
    return sum(content.count(pattern) for pattern in patterns)


def complexity_score(content: str) -> int:
    return 1 + sum(len(pattern.findall(content)) for pattern in _BRANCH_PATTERNS)


def document_title(content: str) -> Optional[str]:
    front_matter = _FRONT_MATTER_TITLE.search(content)
    if front_matter:
        return front_matter.group(1).strip()
    heading = _HEADING.search(strip_fenced_blocks(content))
    return heading.group(1).strip() if heading else None


class DependencyClassifier:
    """Turns parser records into categorized, confidence-scored dependency records.

    The classifier never parses. It receives raw records from an ``ImportParser``
    together with the declaring file's role and content, resolves relative and
    aliased specifiers on disk, and derives test, document and code metadata.
    """

    def __init__(
        self,
        project_root: str | Path,
        *,
        aliases: Optional[Mapping[str, str]] = None,
        builtin_modules: Iterable[str] = NODE_BUILTINS,
        utility_patterns: Sequence[str] = (),
        setup_patterns: Sequence[str] = (),
    ) -> None:
        self.project_root = Path(project_root)
        self.resolver = ModuleResolver(self.project_root, aliases)
        self.builtin_modules = frozenset(builtin_modules)
        self.utility_patterns = TEST_UTILITY_PATTERNS + tuple(utility_patterns)
        self.framework_markers = tuple(
            marker for _, markers in TEST_FRAMEWORKS for marker in markers
        )
        self.setup_patterns = TEST_SETUP_PATTERNS + tuple(setup_patterns)

    # ------------------------------------------------------------------
    # Categories

    def is_alias(self, specifier: str) -> bool:
        if self.resolver.alias_target(specifier) is not None:
            return True
        return specifier.startswith(COMMON_ALIAS_PREFIXES)

    def code_category(self, specifier: str) -> str:
        if is_relative(specifier):
            return "internal"
        if is_builtin(specifier, self.builtin_modules):
            return "builtin"
        if self.is_alias(specifier):
            return "internal"
        return "external"

    def test_category(self, specifier: str) -> str:
        if any(pattern in specifier for pattern in self.setup_patterns):
            return "test-setup"
        is_utility = any(pattern in specifier for pattern in self.utility_patterns)
        if is_relative(specifier) and not is_utility:
            return "test-target"
        if is_utility or any(marker in specifier for marker in self.framework_markers):
            return "test-utility"
        return self.code_category(specifier)

    @staticmethod
    def document_category(specifier: str, import_style: str = "link") -> str:
        if _URL_SCHEME.match(specifier):
            return "doc-link"
        if is_asset(specifier, import_style):
            return "doc-asset"
        return "doc-reference"

    def category(self, specifier: str, role: str, import_style: str = "import") -> str:
        if role == "test":
            return self.test_category(specifier)
        if role == "docs":
            return self.document_category(specifier, import_style)
        return self.code_category(specifier)

    # ------------------------------------------------------------------
    # Records

    def classify_record(
        self, file_path: Path, role: str, raw: RawImport, content: str
    ) -> DependencyRecord:
        specifier = raw.specifier.strip()
        category = self.category(specifier, role, raw.import_style)
        resolution = self._resolve(file_path, specifier, category)
        resolved_path = self._display_path(resolution.path) if resolution.path else None
        return DependencyRecord(
            source=specifier,
            line=raw.line,
            category=category,
            confidence=self._confidence(category, specifier, raw, resolution, content),
            resolved_path=resolved_path,
            exists=resolution.exists,
            is_type_only=raw.is_type_only,
            import_style=raw.import_style,
            imported_members=list(raw.imported_members),
            type_members=list(raw.type_members),
        )

    def classify(
        self,
        file_path: str | Path,
        role: str,
        records: Sequence[RawImport],
        content: str,
    ) -> FileClassification:
        """Classify every record of one file and derive its role-specific metadata."""
        path = Path(file_path)
        if not path.is_absolute():
            path = self.project_root / path

        dependencies: List[DependencyRecord] = []
        by_specifier: Dict[str, DependencyRecord] = {}
        for raw in records:
            if not raw.specifier or not raw.specifier.strip():
                _LOGGER.debug("Skipping empty specifier in %s line %s", path, raw.line)
                continue
            specifier = raw.specifier.strip()
            existing = by_specifier.get(specifier)
            if existing is not None:
                _merge_record(existing, raw)
                continue
            record = self.classify_record(path, role, raw, content)
            by_specifier[specifier] = record
            dependencies.append(record)

        result = FileClassification(
            records=dependencies,
            lines_of_code=sum(1 for line in content.splitlines() if line.strip()),
        )
        specifiers = [record.source for record in dependencies]
        if role == "test":
            result.test_metadata = self.test_metadata(specifiers, content)
            result.framework = result.test_metadata.framework
            result.complexity = complexity_score(content)
            if result.test_metadata.mocks > HEAVY_MOCKING_THRESHOLD:
                result.risk_factors.append("heavy-mocking")
            if result.test_metadata.assertions < MIN_ASSERTIONS:
                result.risk_factors.append("insufficient-assertions")
        elif role == "docs":
            result.document_metadata = self.document_metadata(dependencies, content)
            if result.document_metadata.broken_links > 0:
                result.risk_factors.append("broken-links")
            if result.document_metadata.word_count < MIN_DOCUMENT_WORDS:
                result.risk_factors.append("insufficient-documentation")
        else:
            result.framework = detect_code_framework(specifiers)
            result.complexity = complexity_score(content)
            if result.complexity > HIGH_COMPLEXITY_THRESHOLD:
                result.risk_factors.append("high-complexity")
        return result

    @staticmethod
    def test_metadata(specifiers: Sequence[str], content: str) -> TestMetadata:
        return TestMetadata(
            framework=detect_test_framework(specifiers),
            test_type=detect_test_type(content),
            test_count=len(_TEST_CASE.findall(content)),
            async_tests=len(_ASYNC_TEST.findall(content)),
            mocks=count_patterns(content, MOCK_PATTERNS),
            assertions=count_patterns(content, ASSERTION_PATTERNS),
        )

    @staticmethod
    def document_metadata(records: Sequence[DependencyRecord], content: str) -> DocumentMetadata:
        broken = sum(
            1
            for record in records
            if record.category in ("doc-reference", "doc-asset") and not record.exists
        )
        return DocumentMetadata(
            title=document_title(content),
            word_count=len(strip_fenced_blocks(content).split()),
            link_count=len(records),
            broken_links=broken,
        )

    # ------------------------------------------------------------------
    # Internal helpers

    def _resolve(self, file_path: Path, specifier: str, category: str) -> Resolution:
        if category in ("external", "builtin", "doc-link", "test-utility"):
            return Resolution(path=None, exists=False)
        if category.startswith("doc-"):
            return self.resolver.resolve(specifier, file_path, extra_extensions=DOCUMENT_EXTENSIONS)
        return self.resolver.resolve(specifier, file_path)

    def _display_path(self, path: Path) -> str:
        try:
            return path.relative_to(self.project_root).as_posix()
        except ValueError:
            return path.as_posix()

    @staticmethod
    def _confidence(
        category: str,
        specifier: str,
        raw: RawImport,
        resolution: Resolution,
        content: str,
    ) -> float:
        exists = resolution.exists
        if category == "test-target":
            stem = specifier_stem(specifier)
            score = 0.5 + (0.3 if exists else 0.0) + (0.2 if stem and stem in content else 0.0)
        elif category == "test-utility":
            score = 0.9
        elif category == "test-setup":
            score = 0.8
        elif category == "internal":
            score = 0.5 + (0.4 if exists else 0.0) + (0.1 if is_relative(specifier) else 0.0)
        elif category == "external":
            score = 0.9
        elif category == "builtin":
            score = 1.0
        elif category == "doc-link":
            score = 0.8
        elif category == "doc-asset":
            image = raw.import_style in ("image", "html-image") or specifier.lower().endswith(IMAGE_EXTENSIONS)
            score = 0.6 + (0.3 if exists else 0.0) + (0.1 if image else 0.0)
        elif category == "doc-reference":
            score = 0.5 + (0.4 if exists else 0.0) + (0.1 if raw.text else 0.0)
        else:
            raise ValueError(f"Unknown dependency category: {category}")
        return clamp(score)


def _merge_record(record: DependencyRecord, raw: RawImport) -> None:
    # One record per specifier and file; the first occurrence keeps its line.
    for name in raw.imported_members:
        if name not in record.imported_members:
            record.imported_members.append(name)
    for name in raw.type_members:
        if name not in record.type_members:
            record.type_members.append(name)
    record.is_type_only = record.is_type_only and raw.is_type_only


def is_asset(specifier: str, import_style: str = "link") -> bool:
    if import_style in ("image", "html-image"):
        return True
    target = specifier.split("#", 1)[0].split("?", 1)[0].lower()
    if target.endswith(ASSET_EXTENSIONS):
        return True
    padded = f"/{target}"
    return any(directory in padded for directory in ASSET_DIRECTORIES)


__all__ = [
    "ASSET_EXTENSIONS",
    "CODE_FRAMEWORKS",
    "DependencyClassifier",
    "NODE_BUILTINS",
    "TEST_FRAMEWORKS",
    "TEST_SETUP_PATTERNS",
    "TEST_UTILITY_PATTERNS",
    "clamp",
    "complexity_score",
    "detect_code_framework",
    "detect_test_framework",
    "detect_test_type",
    "document_title",
    "is_asset",
    "is_builtin",
    "specifier_stem",
]
