"""Tests for project root detection."""

from __future__ import annotations

from pathlib import Path

from depmirror.project_root import find_project_root


def test_finds_nearest_marker(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    nested = root / "packages" / "web" / "src"
    nested.mkdir(parents=True)
    (root / "package.json").write_text("{}", encoding="utf-8")
    (root / "packages" / "web" / "tsconfig.json").write_text("{}", encoding="utf-8")

    assert find_project_root(nested) == (root / "packages" / "web").resolve()
    assert find_project_root(nested, markers=("package.json",)) == root.resolve()


def test_starting_file_uses_its_directory(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text("{}", encoding="utf-8")
    source = tmp_path / "index.ts"
    source.write_text("", encoding="utf-8")
    assert find_project_root(source) == tmp_path.resolve()


def test_falls_back_to_start_without_markers(tmp_path: Path) -> None:
    lonely = tmp_path / "lonely"
    lonely.mkdir()
    assert find_project_root(lonely, markers=("no-such-marker.json",)) == lonely.resolve()
