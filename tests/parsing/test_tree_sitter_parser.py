"""Tests for the tree-sitter parser."""

from __future__ import annotations

import textwrap

import pytest

from depmirror.parsing import available_parsers, create_parser
from depmirror.parsing.tree_sitter import TREE_SITTER_AVAILABLE, TreeSitterParser


def test_tree_sitter_parser_requires_library() -> None:
    if TREE_SITTER_AVAILABLE:
        assert "tree-sitter" in available_parsers()
        assert isinstance(create_parser("tree-sitter"), TreeSitterParser)
    else:
        assert "tree-sitter" not in available_parsers()
        with pytest.raises(RuntimeError):
            TreeSitterParser()


def test_create_parser_rejects_unknown_name() -> None:
    with pytest.raises(ValueError):
        create_parser("does-not-exist")


@pytest.mark.skipif(not TREE_SITTER_AVAILABLE, reason="tree-sitter not installed")
def test_tree_sitter_parser_extracts_imports() -> None:
    content = textwrap.dedent(
        """
        import { readFile } from 'fs';
        import type { User } from './types';
        export { helper } from './helper';
        const lodash = require('lodash');
        """
    ).lstrip("\n")
    records = TreeSitterParser().parse_imports("src/app.ts", content)

    assert [record.specifier for record in records] == ["fs", "./types", "./helper", "lodash"]
    assert records[0].imported_members == ["readFile"]
    assert records[1].is_type_only is True
    assert records[2].import_style == "export-from"
    assert records[3].import_style == "require"
    assert records[3].imported_members == ["lodash"]
    assert records[3].line == 4


@pytest.mark.skipif(not TREE_SITTER_AVAILABLE, reason="tree-sitter not installed")
def test_tree_sitter_parser_extracts_exports_and_methods() -> None:
    content = textwrap.dedent(
        """
        export class UserService {
          async findById(id: string) {
            return id;
          }
        }
        export function load() {}
        """
    ).lstrip("\n")
    exports = TreeSitterParser().parse_exports("src/user.ts", content)
    names = {(record.name, record.export_type) for record in exports}

    assert ("UserService", "named") in names
    assert ("load", "named") in names
    method = next(record for record in exports if record.export_type == "method")
    assert method.name == "findById"
    assert method.parent_class == "UserService"
    assert method.is_async is True
