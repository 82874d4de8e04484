"""Regex-based import, export and link extraction for JS/TS sources and markdown."""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from .base import ImportParser, is_document, line_number
from ..models import ExportRecord, RawImport

_STATIC_IMPORT = re.compile(
    r"^[ \t]*import\s+(type\s+)?([\w$*{}\s,]+?)\s+from\s+['\"]([^'\"]+)['\"]",
    re.MULTILINE,
)
_SIDE_EFFECT_IMPORT = re.compile(r"^[ \t]*import\s+['\"]([^'\"]+)['\"]", re.MULTILINE)
_EXPORT_FROM = re.compile(
    r"^[ \t]*export\s+(type\s+)?(\*(?:\s+as\s+[\w$]+)?|\{[^}]*\})\s+from\s+['\"]([^'\"]+)['\"]",
    re.MULTILINE,
)
_REQUIRE = re.compile(
    r"(?:(?:const|let|var)\s+(\{[^}]*\}|[\w$]+)\s*=\s*)?\brequire\(\s*['\"]([^'\"]+)['\"]\s*\)"
)
_DYNAMIC_IMPORT = re.compile(r"\bimport\(\s*['\"]([^'\"]+)['\"]\s*\)")

_EXPORT_FUNCTION = re.compile(
    r"^[ \t]*export\s+(default\s+)?(async\s+)?function\*?\s*([\w$]*)", re.MULTILINE
)
_EXPORT_CLASS = re.compile(
    r"^[ \t]*export\s+(default\s+)?(?:abstract\s+)?class\s+([\w$]*)", re.MULTILINE
)
_EXPORT_VARIABLE = re.compile(r"^[ \t]*export\s+(const|let|var)\s+([\w$]+)", re.MULTILINE)
_EXPORT_TYPE = re.compile(
    r"^[ \t]*export\s+(?:declare\s+)?(interface|type|enum)\s+([\w$]+)", re.MULTILINE
)
_EXPORT_LIST = re.compile(r"^[ \t]*export\s+(type\s+)?\{([^}]*)\}(?!\s*from)", re.MULTILINE)
_EXPORT_DEFAULT_NAME = re.compile(r"^[ \t]*export\s+default\s+([\w$]+)\s*;?\s*$", re.MULTILINE)

_CLASS_HEADER = re.compile(r"^[ \t]*(?:export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+([\w$]+)[^{]*\{", re.MULTILINE)
_METHOD = re.compile(
    r"^[ \t]+(?:(public|private|protected)\s+)?(static\s+)?(?:readonly\s+)?(async\s+)?\*?([\w$]+)\s*(?:<[^>]*>)?\([^)]*\)\s*(?::\s*[^{=;]+)?\{",
    re.MULTILINE,
)
_NOT_METHODS = frozenset({"if", "for", "while", "switch", "catch", "function", "constructor", "return"})

_FENCED_BLOCK = re.compile(r"^(```|~~~).*?^\1[^\n]*$", re.MULTILINE | re.DOTALL)
_MARKDOWN_LINK = re.compile(r"(!?)\[([^\]]*)\]\(\s*<?([^)\s>]+)>?(?:\s+[\"'][^\"']*[\"'])?\s*\)")
_HTML_LINK = re.compile(r"<a\s+[^>]*?href=[\"']([^\"']+)[\"'][^>]*>(.*?)</a>", re.IGNORECASE | re.DOTALL)
_HTML_IMAGE = re.compile(r"<img\s+[^>]*?src=[\"']([^\"']+)[\"']", re.IGNORECASE)
_WIKI_LINK = re.compile(r"\[\[([^\]|#]+)(?:#[^\]|]*)?(?:\|([^\]]+))?\]\]")


class RegexParser(ImportParser):
    """Extracts references with regular expressions; fast but syntax-unaware."""

    name = "regex"

    def parse_imports(self, path: str, content: str) -> List[RawImport]:
        if is_document(path):
            return parse_links(content)
        return self._parse_code_imports(content)

    def parse_exports(self, path: str, content: str) -> List[ExportRecord]:
        if is_document(path):
            return []
        exports: List[ExportRecord] = []
        for match in _EXPORT_FUNCTION.finditer(content):
            is_default = bool(match.group(1))
            exports.append(
                ExportRecord(
                    name=match.group(3) or "default",
                    export_type="default" if is_default else "named",
                    declaration_type="function",
                    line=line_number(content, match.start()),
                    is_async=bool(match.group(2)),
                )
            )
        for match in _EXPORT_CLASS.finditer(content):
            is_default = bool(match.group(1))
            exports.append(
                ExportRecord(
                    name=match.group(2) or "default",
                    export_type="default" if is_default else "named",
                    declaration_type="class",
                    line=line_number(content, match.start()),
                )
            )
        for match in _EXPORT_VARIABLE.finditer(content):
            exports.append(
                ExportRecord(
                    name=match.group(2),
                    export_type="named",
                    declaration_type="variable",
                    line=line_number(content, match.start()),
                )
            )
        for match in _EXPORT_TYPE.finditer(content):
            exports.append(
                ExportRecord(
                    name=match.group(2),
                    export_type="named",
                    declaration_type=match.group(1),
                    line=line_number(content, match.start()),
                )
            )
        for match in _EXPORT_LIST.finditer(content):
            line = line_number(content, match.start())
            for name, alias, _ in _split_members(match.group(2)):
                exports.append(
                    ExportRecord(
                        name=alias or name,
                        export_type="named",
                        declaration_type="type" if match.group(1) else "re-export",
                        line=line,
                    )
                )
        for match in _EXPORT_DEFAULT_NAME.finditer(content):
            if match.group(1) in {"function", "class", "async", "abstract"}:
                continue
            exports.append(
                ExportRecord(
                    name=match.group(1),
                    export_type="default",
                    declaration_type="identifier",
                    line=line_number(content, match.start()),
                )
            )
        exports.extend(self._parse_methods(content))
        exports.sort(key=lambda record: (record.line, record.name))
        return exports

    def _parse_code_imports(self, content: str) -> List[RawImport]:
        records: List[Tuple[int, RawImport]] = []
        for match in _STATIC_IMPORT.finditer(content):
            type_only = bool(match.group(1))
            members, type_members = _parse_clause(match.group(2), type_only)
            records.append(
                (
                    match.start(),
                    RawImport(
                        specifier=match.group(3),
                        line=line_number(content, match.start()),
                        import_style="import",
                        imported_members=members,
                        type_members=type_members,
                        is_type_only=type_only or (bool(type_members) and not members),
                    ),
                )
            )
        for match in _SIDE_EFFECT_IMPORT.finditer(content):
            records.append(
                (
                    match.start(),
                    RawImport(
                        specifier=match.group(1),
                        line=line_number(content, match.start()),
                        import_style="import",
                    ),
                )
            )
        for match in _EXPORT_FROM.finditer(content):
            type_only = bool(match.group(1))
            clause = match.group(2)
            members, type_members = ([], []) if clause.startswith("*") else _parse_clause(clause, type_only)
            records.append(
                (
                    match.start(),
                    RawImport(
                        specifier=match.group(3),
                        line=line_number(content, match.start()),
                        import_style="export-from",
                        imported_members=members,
                        type_members=type_members,
                        is_type_only=type_only,
                    ),
                )
            )
        for match in _REQUIRE.finditer(content):
            binding = match.group(1) or ""
            members = [name for name, _, _ in _split_members(binding.strip("{}"))] if binding.startswith("{") else []
            if binding and not binding.startswith("{"):
                members = [binding]
            records.append(
                (
                    match.start(),
                    RawImport(
                        specifier=match.group(2),
                        line=line_number(content, match.start()),
                        import_style="require",
                        imported_members=members,
                    ),
                )
            )
        for match in _DYNAMIC_IMPORT.finditer(content):
            records.append(
                (
                    match.start(),
                    RawImport(
                        specifier=match.group(1),
                        line=line_number(content, match.start()),
                        import_style="dynamic",
                    ),
                )
            )
        records.sort(key=lambda item: item[0])
        return [record for _, record in records]

    @staticmethod
    def _parse_methods(content: str) -> List[ExportRecord]:
        methods: List[ExportRecord] = []
        for header in _CLASS_HEADER.finditer(content):
            body_start = header.end()
            body_end = _matching_brace(content, body_start - 1)
            body = content[body_start:body_end]
            for match in _METHOD.finditer(body):
                name = match.group(4)
                if name in _NOT_METHODS:
                    continue
                methods.append(
                    ExportRecord(
                        name=name,
                        export_type="method",
                        declaration_type="method",
                        line=line_number(content, body_start + match.start()),
                        parent_class=header.group(1),
                        is_async=bool(match.group(3)),
                        is_static=bool(match.group(2)),
                        visibility=match.group(1) or "public",
                    )
                )
        return methods


def strip_fenced_blocks(content: str) -> str:
    """Blank out fenced code blocks while keeping line numbers stable."""
    return _FENCED_BLOCK.sub(lambda match: "\n" * match.group(0).count("\n"), content)


def parse_links(content: str) -> List[RawImport]:
    """Extract markdown, HTML and wiki links, ignoring fenced code and pure anchors."""
    text = strip_fenced_blocks(content)
    records: List[Tuple[int, RawImport]] = []

    def _add(offset: int, target: str, style: str, label: Optional[str]) -> None:
        target = target.strip()
        if not target or target.startswith("#"):
            return
        records.append(
            (
                offset,
                RawImport(
                    specifier=target,
                    line=line_number(text, offset),
                    import_style=style,
                    text=(label or "").strip() or None,
                ),
            )
        )

    for match in _MARKDOWN_LINK.finditer(text):
        style = "image" if match.group(1) else "link"
        _add(match.start(), match.group(3), style, match.group(2))
    for match in _HTML_LINK.finditer(text):
        label = re.sub(r"<[^>]+>", "", match.group(2))
        _add(match.start(), match.group(1), "html-link", label)
    for match in _HTML_IMAGE.finditer(text):
        _add(match.start(), match.group(1), "html-image", None)
    for match in _WIKI_LINK.finditer(text):
        _add(match.start(), match.group(1), "wiki", match.group(2) or match.group(1))
    records.sort(key=lambda item: item[0])
    return [record for _, record in records]


def _parse_clause(clause: str, type_only: bool) -> Tuple[List[str], List[str]]:
    members: List[str] = []
    type_members: List[str] = []
    clause = clause.strip()
    braced = ""
    if "{" in clause:
        head, _, rest = clause.partition("{")
        braced = rest.rsplit("}", 1)[0]
        clause = head
    for part in clause.split(","):
        part = part.strip()
        if not part:
            continue
        if part.startswith("*"):
            _, _, alias = part.partition(" as ")
            target = type_members if type_only else members
            target.append(alias.strip() or "*")
        else:
            (type_members if type_only else members).append(part)
    for name, alias, is_type in _split_members(braced):
        if type_only or is_type:
            type_members.append(name)
        else:
            members.append(name)
    return members, type_members


def _split_members(text: str) -> List[Tuple[str, Optional[str], bool]]:
    result: List[Tuple[str, Optional[str], bool]] = []
    for part in text.split(","):
        part = " ".join(part.split())
        if not part:
            continue
        is_type = part.startswith("type ")
        if is_type:
            part = part[len("type ") :]
        name, _, alias = part.partition(" as ")
        name = name.strip()
        if not name:
            continue
        # object destructuring in require uses "name: alias"
        name = name.split(":", 1)[0].strip()
        result.append((name, alias.strip() or None, is_type))
    return result


def _matching_brace(content: str, open_index: int) -> int:
    depth = 0
    for index in range(open_index, len(content)):
        char = content[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return len(content)


__all__ = ["RegexParser", "parse_links", "strip_fenced_blocks"]
