"""Tests for dependency classification and confidence scoring."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from depmirror.classify.classifier import (
    DependencyClassifier,
    complexity_score,
    detect_test_framework,
    document_title,
    is_asset,
    is_builtin,
    specifier_stem,
)
from depmirror.models import RawImport


def _write(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
    return path


@pytest.fixture
def classifier(tmp_path: Path) -> DependencyClassifier:
    return DependencyClassifier(tmp_path, aliases={"#app/": "src/"})


@pytest.mark.parametrize(
    ("specifier", "expected"),
    [
        ("./utils", "internal"),
        ("../shared/config", "internal"),
        ("fs", "builtin"),
        ("fs/promises", "builtin"),
        ("node:crypto", "builtin"),
        ("@/components/Button", "internal"),
        ("~/lib/http", "internal"),
        ("#app/api", "internal"),
        ("react", "external"),
        ("@scope/pkg", "external"),
    ],
)
def test_code_categories(classifier: DependencyClassifier, specifier: str, expected: str) -> None:
    assert classifier.category(specifier, "code") == expected


@pytest.mark.parametrize(
    ("specifier", "expected"),
    [
        ("./setupTests", "test-setup"),
        ("../fixtures/users", "test-setup"),
        ("@testing-library/react", "test-utility"),
        ("jest", "test-utility"),
        ("vitest", "test-utility"),
        ("./UserService", "test-target"),
        ("../src/chain", "test-target"),
        ("../src/majestic", "test-target"),
        ("../src/setupRoutes", "test-setup"),
        ("./msw-handlers", "test-utility"),
        ("react", "external"),
        ("path", "builtin"),
    ],
)
def test_test_categories(classifier: DependencyClassifier, specifier: str, expected: str) -> None:
    assert classifier.category(specifier, "test") == expected


@pytest.mark.parametrize(
    ("specifier", "style", "expected"),
    [
        ("https://example.com", "link", "doc-link"),
        ("mailto:team@example.com", "link", "doc-link"),
        ("./images/arch.png", "image", "doc-asset"),
        ("./data/schema.json", "link", "doc-asset"),
        ("assets/logo", "link", "doc-asset"),
        ("./setup.md", "link", "doc-reference"),
    ],
)
def test_document_categories(
    classifier: DependencyClassifier, specifier: str, style: str, expected: str
) -> None:
    assert classifier.category(specifier, "docs", style) == expected


def test_helpers() -> None:
    assert is_builtin("node:test")
    assert not is_builtin("lodash")
    assert specifier_stem("./services/UserService.ts") == "UserService"
    assert specifier_stem("..") == ""
    assert detect_test_framework(["@jest/globals", "vitest"]) == "jest"
    assert detect_test_framework(["./x"]) == "unknown"
    assert is_asset("logo.SVG")
    assert not is_asset("./guide.md")
    assert complexity_score("const x = 1;") == 1
    assert complexity_score("if (a) { b } else { c }") == 3


def test_document_title_prefers_front_matter() -> None:
    assert document_title("---\ntitle: Guide\n---\n# Heading\n") == "Guide"
    assert document_title("intro\n\n# Heading\n") == "Heading"
    assert document_title("no heading here") is None


def test_classify_code_file_scores_internal_edges(tmp_path: Path, classifier: DependencyClassifier) -> None:
    _write(tmp_path / "src" / "UserService.ts", "export class UserService {}\n")
    index = _write(tmp_path / "src" / "index.ts", "import { UserService } from './UserService';\n")
    records = [
        RawImport(specifier="./UserService", line=1, imported_members=["UserService"]),
        RawImport(specifier="./Missing", line=2),
        RawImport(specifier="react", line=3),
        RawImport(specifier="fs", line=4),
        RawImport(specifier="   ", line=5),
    ]
    result = classifier.classify(index, "code", records, index.read_text(encoding="utf-8"))

    assert [record.category for record in result.records] == ["internal", "internal", "external", "builtin"]
    found, missing, external, builtin = result.records
    assert found.resolved_path == "src/UserService.ts"
    assert found.exists is True
    assert found.confidence == pytest.approx(1.0)
    assert missing.exists is False
    assert missing.resolved_path is None
    assert missing.confidence == pytest.approx(0.6)
    assert external.confidence == pytest.approx(0.9)
    assert builtin.confidence == pytest.approx(1.0)
    assert result.framework == "react"
    assert result.complexity == 1
    assert result.risk_factors == []
    assert all(0.0 <= record.confidence <= 1.0 for record in result.records)


def test_classify_test_file_collects_metadata(tmp_path: Path, classifier: DependencyClassifier) -> None:
    _write(tmp_path / "src" / "UserService.ts", "export class UserService {}\n")
    test_file = _write(
        tmp_path / "src" / "UserService.test.ts",
        """
        import { describe, it, expect } from 'vitest';
        import { UserService } from './UserService';

        describe('UserService', () => {
          it('creates', async () => {
            expect(new UserService()).toBeTruthy();
          });
        });
        """,
    )
    content = test_file.read_text(encoding="utf-8")
    records = [
        RawImport(specifier="vitest", line=1, imported_members=["describe", "it", "expect"]),
        RawImport(specifier="./UserService", line=2, imported_members=["UserService"]),
    ]
    result = classifier.classify(test_file, "test", records, content)

    utility, target = result.records
    assert utility.category == "test-utility"
    assert utility.confidence == pytest.approx(0.9)
    assert target.category == "test-target"
    assert target.resolved_path == "src/UserService.ts"
    assert target.confidence == pytest.approx(1.0)

    metadata = result.test_metadata
    assert metadata is not None
    assert metadata.framework == "vitest"
    assert metadata.test_count == 1
    assert metadata.async_tests == 1
    assert metadata.assertions == 1
    assert result.framework == "vitest"
    assert "insufficient-assertions" in result.risk_factors
    assert "heavy-mocking" not in result.risk_factors


def test_classify_merges_repeated_specifiers(tmp_path: Path, classifier: DependencyClassifier) -> None:
    _write(tmp_path / "src" / "UserService.ts", "export class UserService {}\n")
    source = _write(tmp_path / "src" / "index.ts")
    records = [
        RawImport(specifier="./UserService", line=1, type_members=["User"], is_type_only=True),
        RawImport(specifier="./UserService", line=2, imported_members=["getUserById"]),
        RawImport(specifier="./UserService", line=3, imported_members=["getUserById", "UserService"]),
    ]
    result = classifier.classify(source, "code", records, "")

    assert len(result.records) == 1
    record = result.records[0]
    assert record.line == 1
    assert record.imported_members == ["getUserById", "UserService"]
    assert record.type_members == ["User"]
    assert record.is_type_only is False


def test_classify_document_counts_broken_links(tmp_path: Path, classifier: DependencyClassifier) -> None:
    _write(tmp_path / "docs" / "setup.md", "# Setup\n")
    guide = _write(tmp_path / "docs" / "guide.md", "# Guide\n\nSee [setup](./setup.md) and [gone](./gone.md).\n")
    records = [
        RawImport(specifier="./setup.md", line=3, import_style="link", text="setup"),
        RawImport(specifier="./gone.md", line=3, import_style="link", text="gone"),
        RawImport(specifier="https://example.com", line=4, import_style="link"),
    ]
    result = classifier.classify(guide, "docs", records, guide.read_text(encoding="utf-8"))

    setup, gone, link = result.records
    assert setup.category == "doc-reference"
    assert setup.resolved_path == "docs/setup.md"
    assert setup.confidence == pytest.approx(1.0)
    assert gone.confidence == pytest.approx(0.6)
    assert link.category == "doc-link"

    metadata = result.document_metadata
    assert metadata is not None
    assert metadata.title == "Guide"
    assert metadata.link_count == 3
    assert metadata.broken_links == 1
    assert result.risk_factors == ["broken-links", "insufficient-documentation"]


def test_high_complexity_is_flagged(tmp_path: Path, classifier: DependencyClassifier) -> None:
    content = "\n".join(f"if (x > {index}) {{ y(); }}" for index in range(12))
    result = classifier.classify(tmp_path / "src" / "busy.ts", "code", [], content)
    assert result.complexity == 13
    assert result.risk_factors == ["high-complexity"]
