"""Tests for the analyze/mapping/verify pipeline."""

from __future__ import annotations

from pathlib import Path

import pytest

from depmirror.config import ConfigError
from depmirror.errors import AnalysisError, ErrorKind
from depmirror.pipeline import ProjectAnalyzer
from depmirror.stores import ReferenceStore
from tests._fixtures.project_builder import ProjectBuilder


def _sample_project(project_builder: ProjectBuilder) -> Path:
    project_builder.write(
        {
            "src/index.ts": "import { UserService } from './UserService';\n",
            "src/UserService.ts": "export class UserService {}\n",
        }
    )
    return project_builder.path()


def test_analyze_detects_root_from_nested_path(project_builder: ProjectBuilder) -> None:
    root = _sample_project(project_builder)
    data = ProjectAnalyzer().analyze(root / "src")

    assert data.project.root == str(root.resolve())
    assert data.statistics.total_files == 2
    assert len(data.edges) == 1
    assert data.statistics.orphaned_files == 0


def test_run_analysis_persists_reference_data(project_builder: ProjectBuilder) -> None:
    root = _sample_project(project_builder)
    outcome = ProjectAnalyzer().run_analysis(root)

    assert outcome.output_path == root.resolve() / ".depmirror" / "reference.json"
    loaded = ReferenceStore(outcome.output_path).load()
    assert loaded is not None
    assert loaded.to_dict() == outcome.data.to_dict()

    # The output directory never feeds back into the next scan.
    again = ProjectAnalyzer().analyze(root)
    assert again.statistics.total_files == 2


def test_mapping_table_lists_every_file(project_builder: ProjectBuilder) -> None:
    root = _sample_project(project_builder).resolve()
    table = ProjectAnalyzer().generate_project_mapping_table(root)

    assert table["total_files"] == 2
    assert table["namespace"] is None
    assert table["mappings"] == [
        {
            "source_file": "src/UserService.ts",
            "file_id": "user-service",
            "document_file": str(root / "docs" / "src" / "UserService.ts.md"),
        },
        {
            "source_file": "src/index.ts",
            "file_id": "index",
            "document_file": str(root / "docs" / "src" / "index.ts.md"),
        },
    ]


def test_config_controls_docs_root_and_namespace(project_builder: ProjectBuilder) -> None:
    root = _sample_project(project_builder)
    project_builder.write({".depmirror.yml": "docs_root: site\nnamespace: v1\n"})
    table = ProjectAnalyzer().generate_project_mapping_table(root)

    assert table["namespace"] == "v1"
    documents = [entry["document_file"] for entry in table["mappings"]]
    assert documents[1] == str(root.resolve() / "site" / "v1" / "src" / "index.ts.md")


def test_generated_documents_are_not_analyzed(project_builder: ProjectBuilder) -> None:
    root = _sample_project(project_builder)
    project_builder.write(
        {
            "docs/src/index.ts.md": "# index.ts\n",
            "docs/methods/src/UserService/find.md": "# find\n",
            "docs/libraries/lodash.md": "# lodash\n",
            "docs/guide.md": "# Guide\n",
        }
    )
    files = ProjectAnalyzer().prepare(root).files
    assert [source.path for source in files] == [
        "docs/guide.md",
        "src/UserService.ts",
        "src/index.ts",
    ]


def test_config_exclude_paths_reach_the_scan(project_builder: ProjectBuilder) -> None:
    root = _sample_project(project_builder)
    project_builder.write(
        {
            ".depmirror.yml": "exclude_paths:\n  - legacy/\n",
            "legacy/old.js": "",
        }
    )
    files = ProjectAnalyzer().prepare(root).files
    assert [source.path for source in files] == ["src/UserService.ts", "src/index.ts"]


def test_verify_all_round_trips_project(project_builder: ProjectBuilder) -> None:
    root = _sample_project(project_builder)
    report = ProjectAnalyzer().verify_all(root)
    assert report.ok
    assert report.total_files == 2
    assert report.valid == 2
    assert report.failures == []


def test_map_files_accepts_relative_paths(project_builder: ProjectBuilder) -> None:
    root = _sample_project(project_builder).resolve()
    mapping = ProjectAnalyzer().map_files(root, ["src/index.ts", "/outside/file.ts"])
    assert mapping == {str(root / "src" / "index.ts"): str(root / "docs" / "src" / "index.ts.md")}


def test_analyze_rejects_missing_path(tmp_path: Path) -> None:
    with pytest.raises(AnalysisError) as excinfo:
        ProjectAnalyzer().analyze(tmp_path / "missing")
    assert excinfo.value.kind is ErrorKind.INVALID_PROJECT_ROOT


def test_analyze_rejects_project_without_files(project_builder: ProjectBuilder) -> None:
    with pytest.raises(AnalysisError) as excinfo:
        ProjectAnalyzer().analyze(project_builder.path())
    assert excinfo.value.kind is ErrorKind.EMPTY_INPUT


def test_unknown_parser_is_a_config_error(project_builder: ProjectBuilder) -> None:
    root = _sample_project(project_builder)
    project_builder.write({".depmirror.yml": "parser: bogus\n"})
    with pytest.raises(ConfigError):
        ProjectAnalyzer().analyze(root)


def test_tsconfig_aliases_create_internal_edges(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "tsconfig.json": '{"compilerOptions": {"baseUrl": ".", "paths": {"@lib/*": ["lib/*"]}}}',
            "src/index.ts": "import { add } from '@lib/math';\n",
            "lib/math.ts": "export function add(a: number, b: number) { return a + b; }\n",
        }
    )
    data = ProjectAnalyzer().analyze(project_builder.path())
    assert [(edge.source, edge.target) for edge in data.edges] == [("index", "math")]
    index = data.file_by_id("index")
    assert index is not None
    assert index.dependencies.internal[0].confidence == pytest.approx(0.9)
