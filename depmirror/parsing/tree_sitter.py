"""Tree-sitter powered import and export parser for JavaScript and TypeScript."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Dict, Iterator, List, Optional, Tuple

from .base import ImportParser, is_document
from .regex import parse_links
from ..models import ExportRecord, RawImport

try:  # pragma: no cover - optional dependency
    from tree_sitter import Node, Parser
    from tree_sitter_language_pack import get_parser

    TREE_SITTER_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    Node = None  # type: ignore[assignment,misc]
    Parser = None  # type: ignore[assignment,misc]
    get_parser = None  # type: ignore[assignment]
    TREE_SITTER_AVAILABLE = False


_LANGUAGE_BY_SUFFIX = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascript",
}

_DECLARATION_TYPES = {
    "function_declaration": "function",
    "generator_function_declaration": "function",
    "class_declaration": "class",
    "abstract_class_declaration": "class",
    "interface_declaration": "interface",
    "type_alias_declaration": "type",
    "enum_declaration": "enum",
    "lexical_declaration": "variable",
    "variable_declaration": "variable",
}


class TreeSitterParser(ImportParser):
    """Walks tree-sitter syntax trees; markdown links still go through the link extractor."""

    name = "tree-sitter"

    def __init__(self) -> None:
        if not TREE_SITTER_AVAILABLE:
            raise RuntimeError(
                "tree-sitter is required for this parser. Install it with "
                "`pip install depmirror[treesitter]`."
            )
        self._parsers: Dict[str, Parser] = {}

    def parse_imports(self, path: str, content: str) -> List[RawImport]:
        if is_document(path):
            return parse_links(content)
        parsed = self._parse(path, content)
        if parsed is None:
            return []
        root, source = parsed
        records: List[RawImport] = []
        for node in _walk(root):
            if node.type == "import_statement":
                record = self._import_record(node, source)
            elif node.type == "export_statement" and node.child_by_field_name("source") is not None:
                record = self._export_from_record(node, source)
            elif node.type == "call_expression":
                record = self._call_record(node, source)
            else:
                continue
            if record is not None:
                records.append(record)
        return records

    def parse_exports(self, path: str, content: str) -> List[ExportRecord]:
        if is_document(path):
            return []
        parsed = self._parse(path, content)
        if parsed is None:
            return []
        root, source = parsed
        exports: List[ExportRecord] = []
        for node in _walk(root):
            if node.type == "export_statement" and node.child_by_field_name("source") is None:
                exports.extend(self._export_records(node, source))
            elif node.type in ("class_declaration", "abstract_class_declaration"):
                exports.extend(self._method_records(node, source))
        exports.sort(key=lambda record: (record.line, record.name))
        return exports

    # ------------------------------------------------------------------
    # Internal helpers

    def _parse(self, path: str, content: str) -> Optional[Tuple["Node", bytes]]:
        language = _LANGUAGE_BY_SUFFIX.get(PurePosixPath(path).suffix.lower())
        if language is None:
            return None
        parser = self._parsers.get(language)
        if parser is None:
            parser = get_parser(language)
            self._parsers[language] = parser
        source = content.encode("utf-8")
        return parser.parse(source).root_node, source

    def _import_record(self, node: "Node", source: bytes) -> Optional[RawImport]:
        source_node = node.child_by_field_name("source")
        if source_node is None:
            return None
        type_only = _text(node, source).lstrip().startswith("import type")
        members, type_members = _clause_members(node, source, type_only)
        return RawImport(
            specifier=_unquote(_text(source_node, source)),
            line=node.start_point[0] + 1,
            import_style="import",
            imported_members=members,
            type_members=type_members,
            is_type_only=type_only or (bool(type_members) and not members),
        )

    def _export_from_record(self, node: "Node", source: bytes) -> Optional[RawImport]:
        source_node = node.child_by_field_name("source")
        if source_node is None:
            return None
        type_only = _text(node, source).lstrip().startswith("export type")
        members, type_members = _clause_members(node, source, type_only)
        return RawImport(
            specifier=_unquote(_text(source_node, source)),
            line=node.start_point[0] + 1,
            import_style="export-from",
            imported_members=members,
            type_members=type_members,
            is_type_only=type_only,
        )

    def _call_record(self, node: "Node", source: bytes) -> Optional[RawImport]:
        function = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        if function is None or arguments is None:
            return None
        callee = _text(function, source)
        if callee == "require":
            style = "require"
        elif function.type == "import" or callee == "import":
            style = "dynamic"
        else:
            return None
        literal = next((child for child in arguments.named_children if child.type == "string"), None)
        if literal is None:
            return None
        members: List[str] = []
        declarator = node.parent
        if style == "require" and declarator is not None and declarator.type == "variable_declarator":
            name_node = declarator.child_by_field_name("name")
            if name_node is not None:
                if name_node.type == "object_pattern":
                    members = [
                        _text(child.child_by_field_name("key") or child, source)
                        for child in name_node.named_children
                    ]
                else:
                    members = [_text(name_node, source)]
        return RawImport(
            specifier=_unquote(_text(literal, source)),
            line=node.start_point[0] + 1,
            import_style=style,
            imported_members=members,
        )

    def _export_records(self, node: "Node", source: bytes) -> Iterator[ExportRecord]:
        is_default = any(child.type == "default" for child in node.children)
        export_type = "default" if is_default else "named"
        line = node.start_point[0] + 1
        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            declaration_type = _DECLARATION_TYPES.get(declaration.type, declaration.type)
            is_async = _text(declaration, source).lstrip().startswith("async")
            if declaration.type in ("lexical_declaration", "variable_declaration"):
                for declarator in declaration.named_children:
                    name_node = declarator.child_by_field_name("name")
                    if name_node is not None:
                        yield ExportRecord(_text(name_node, source), export_type, declaration_type, line)
                return
            name_node = declaration.child_by_field_name("name")
            name = _text(name_node, source) if name_node is not None else "default"
            yield ExportRecord(name, export_type, declaration_type, line, is_async=is_async)
            return
        value = node.child_by_field_name("value")
        if value is not None:
            name = _text(value, source) if value.type == "identifier" else "default"
            yield ExportRecord(name, "default", "identifier", line)
            return
        for clause in node.named_children:
            if clause.type != "export_clause":
                continue
            for specifier in clause.named_children:
                alias = specifier.child_by_field_name("alias")
                name_node = alias or specifier.child_by_field_name("name")
                if name_node is not None:
                    yield ExportRecord(_text(name_node, source), "named", "re-export", line)

    def _method_records(self, node: "Node", source: bytes) -> Iterator[ExportRecord]:
        name_node = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        if name_node is None or body is None:
            return
        class_name = _text(name_node, source)
        for member in body.named_children:
            if member.type != "method_definition":
                continue
            method_name_node = member.child_by_field_name("name")
            if method_name_node is None:
                continue
            method_name = _text(method_name_node, source)
            if method_name == "constructor":
                continue
            modifiers = {child.type for child in member.children}
            visibility = "public"
            for child in member.children:
                if child.type == "accessibility_modifier":
                    visibility = _text(child, source)
            yield ExportRecord(
                name=method_name,
                export_type="method",
                declaration_type="method",
                line=member.start_point[0] + 1,
                parent_class=class_name,
                is_async="async" in modifiers,
                is_static="static" in modifiers,
                visibility=visibility,
            )


def _walk(node: "Node") -> Iterator["Node"]:
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def _text(node: "Node", source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def _unquote(value: str) -> str:
    return value.strip().strip("'\"`")


def _clause_members(node: "Node", source: bytes, type_only: bool) -> Tuple[List[str], List[str]]:
    members: List[str] = []
    type_members: List[str] = []
    for child in _walk(node):
        if child.type in ("import_specifier", "export_specifier"):
            name_node = child.child_by_field_name("name")
            if name_node is None:
                continue
            is_type = type_only or _text(child, source).lstrip().startswith("type ")
            (type_members if is_type else members).append(_text(name_node, source))
        elif child.type == "import_clause":
            for part in child.named_children:
                if part.type == "identifier":
                    (type_members if type_only else members).append(_text(part, source))
        elif child.type == "namespace_import":
            identifier = next((part for part in child.named_children if part.type == "identifier"), None)
            if identifier is not None:
                (type_members if type_only else members).append(_text(identifier, source))
    return members, type_members


__all__ = ["TREE_SITTER_AVAILABLE", "TreeSitterParser"]
