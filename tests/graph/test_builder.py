"""Tests for reference graph construction."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest

from depmirror.classify.classifier import DependencyClassifier
from depmirror.errors import AnalysisError, ErrorKind
from depmirror.graph.builder import ReferenceGraphBuilder, cluster_labels, is_orphan
from depmirror.models import SourceFile
from depmirror.parsing import RegexParser
from tests._fixtures.project_builder import ProjectBuilder


def _builder(root: Path) -> ReferenceGraphBuilder:
    return ReferenceGraphBuilder(
        root,
        DependencyClassifier(root),
        RegexParser(),
        clock=lambda: datetime(2024, 1, 1, tzinfo=UTC),
    )


def test_build_links_internal_imports(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/index.ts": "import { UserService } from './UserService';\n",
            "src/UserService.ts": "export class UserService {}\n",
        }
    )
    data = _builder(project_builder.path()).build(project_builder.scan())

    assert data.project.analyzed_at == "2024-01-01T00:00:00Z"
    assert data.project.name == "project"
    assert [meta.file_id for meta in data.files] == ["user-service", "index"]
    assert len(data.edges) == 1
    edge = data.edges[0]
    assert (edge.source, edge.target) == ("index", "user-service")
    assert edge.weight == pytest.approx(1.0)
    assert edge.dependency.resolved_path == "src/UserService.ts"

    service = data.file_by_id("user-service")
    assert service is not None
    assert service.dependents == ["index"]
    assert service.clusters == ["src", "code"]
    assert [export.name for export in service.exports] == ["UserService"]

    stats = data.statistics
    assert stats.total_files == 2
    assert stats.total_dependencies == 1
    assert stats.dependencies_by_category["internal"] == 1
    assert stats.files_by_role == {"code": 2, "test": 0, "docs": 0}
    assert stats.average_dependencies_per_file == pytest.approx(0.5)
    assert stats.orphaned_files == 0
    assert stats.circular_dependencies == 0


def test_repeated_imports_of_one_module_make_one_edge(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/index.ts": (
                "import type { User } from './UserService';\n"
                "import { getUserById } from './UserService';\n"
            ),
            "src/UserService.ts": "export interface User {}\nexport function getUserById() {}\n",
        }
    )
    data = _builder(project_builder.path()).build(project_builder.scan())

    assert len(data.edges) == 1
    assert data.edges[0].dependency.imported_members == ["getUserById"]
    assert data.edges[0].dependency.type_members == ["User"]
    assert data.statistics.total_dependencies == 1
    assert data.statistics.dependencies_by_category["internal"] == 1
    service = data.file_by_id("user-service")
    assert service is not None
    assert service.dependents == ["index"]


def test_orphan_count_follows_added_and_removed_files(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/index.ts": "import { UserService } from './UserService';\n",
            "src/UserService.ts": "export class UserService {}\n",
            "src/orphan.ts": "export const unused = 1;\n",
        }
    )
    root = project_builder.path()
    assert _builder(root).build(project_builder.scan()).statistics.orphaned_files == 1

    (root / "src" / "orphan.ts").unlink()
    assert _builder(root).build(project_builder.scan()).statistics.orphaned_files == 0


def test_external_imports_are_grouped_as_libraries(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/a.ts": "import debounce from 'lodash/debounce';\nimport { readFile } from 'fs';\n",
            "src/b.ts": "import { map } from 'lodash';\n",
            "package.json": '{"name": "sample", "dependencies": {"lodash": "^4.17.21"}}\n',
        }
    )
    data = _builder(project_builder.path()).build(project_builder.scan())

    assert [group.key for group in data.libraries] == ["lodash"]
    group = data.libraries[0]
    assert (group.version, group.dependency_type, group.role) == ("^4.17.21", "dependency", "utility")
    assert group.files == ["src/a.ts", "src/b.ts"]
    assert [member.name for member in group.members] == ["debounce", "map"]
    assert data.statistics.dependencies_by_category["builtin"] == 1
    assert data.edges == []


def test_cycles_are_counted_and_flagged(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/a.ts": "import { b } from './b';\nexport const a = 1;\n",
            "src/b.ts": "import { a } from './a';\nexport const b = 2;\n",
            "src/c.ts": "import { a } from './a';\n",
        }
    )
    data = _builder(project_builder.path()).build(project_builder.scan())

    assert data.statistics.circular_dependencies == 1
    assert data.statistics.cycles == [["a", "b"]]
    for file_id in ("a", "b"):
        meta = data.file_by_id(file_id)
        assert meta is not None
        assert "circular-dependencies" in meta.risk_factors
    c_meta = data.file_by_id("c")
    assert c_meta is not None
    assert "circular-dependencies" not in c_meta.risk_factors


def test_test_and_doc_files_link_to_targets(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/UserService.ts": "export class UserService {}\n",
            "tests/UserService.test.ts": """
                import { UserService } from '../src/UserService';
                import { describe, it, expect } from 'vitest';

                describe('UserService', () => {
                  it('exists', () => {
                    expect(UserService).toBeDefined();
                  });
                });
            """,
            "docs/guide.md": "# Guide\n\nRead [the service](../src/UserService.ts).\n",
        }
    )
    data = _builder(project_builder.path()).build(project_builder.scan())

    service = data.file_by_id("user-service")
    assert service is not None
    test_meta = data.file_by_id("tests-user-service-test")
    doc_meta = data.file_by_id("docs-guide")
    assert test_meta is not None and doc_meta is not None
    assert service.dependents == ["docs-guide", "tests-user-service-test"]

    assert test_meta.dependencies.test is not None
    assert [record.target_file_id for record in test_meta.dependencies.test.targets] == ["user-service"]
    assert test_meta.test_metadata is not None
    assert test_meta.test_metadata.framework == "vitest"
    assert doc_meta.document_metadata is not None
    assert doc_meta.document_metadata.broken_links == 0
    assert data.statistics.files_by_role == {"code": 1, "test": 1, "docs": 1}
    # Test and doc files depend on the service but have no dependents or internal imports.
    assert is_orphan(test_meta)
    assert is_orphan(doc_meta)
    assert not is_orphan(service)


def test_unreadable_file_is_recorded_without_dependencies(project_builder: ProjectBuilder) -> None:
    project_builder.write({"src/index.ts": "import { x } from './broken';\n"})
    (project_builder.path() / "src" / "broken.ts").write_bytes(b"\xff\xfe\x00not utf-8 \xc3\x28")
    data = _builder(project_builder.path()).build(project_builder.scan())

    broken = data.file_by_id("broken")
    assert broken is not None
    assert broken.readable is False
    assert len(broken.dependencies) == 0
    assert broken.dependents == ["index"]


def test_build_rejects_empty_input(tmp_path: Path) -> None:
    with pytest.raises(AnalysisError) as excinfo:
        _builder(tmp_path).build([])
    assert excinfo.value.kind is ErrorKind.EMPTY_INPUT


def test_duplicate_sources_are_analyzed_once(project_builder: ProjectBuilder) -> None:
    project_builder.write({"src/index.ts": "export const x = 1;\n"})
    source = SourceFile(path="src/index.ts", role="code")
    data = _builder(project_builder.path()).build([source, source])
    assert [meta.file_id for meta in data.files] == ["index"]


def test_cluster_labels() -> None:
    assert cluster_labels("src/a/b.ts", "code") == ["src", "code"]
    assert cluster_labels("README.md", "docs") == ["root", "docs"]
