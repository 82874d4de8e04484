"""Parser implementations and lookup by name."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable

from .base import CODE_EXTENSIONS, DOC_EXTENSIONS, ImportParser, is_document
from .regex import RegexParser, parse_links, strip_fenced_blocks
from .tree_sitter import TREE_SITTER_AVAILABLE, TreeSitterParser

_ENTRY_POINT_GROUP = "depmirror.parsers"

_BUILTIN_FACTORIES: Dict[str, Callable[[], ImportParser]] = {
    "regex": RegexParser,
    "tree-sitter": TreeSitterParser,
}


def available_parsers() -> list[str]:
    names = [name for name in _BUILTIN_FACTORIES if name != "tree-sitter" or TREE_SITTER_AVAILABLE]
    names.extend(entry.name for entry in _iter_entry_points() if entry.name not in names)
    return names


def create_parser(name: str = "regex") -> ImportParser:
    """Return a parser instance registered under ``name``."""
    key = name.lower()
    factory = _BUILTIN_FACTORIES.get(key)
    if factory is None:
        for entry in _iter_entry_points():
            if entry.name.lower() == key:
                factory = entry.load()
                break
    if factory is None:
        raise ValueError(f"Unknown parser requested: {name}")
    instance = factory()
    if not isinstance(instance, ImportParser):
        raise TypeError(f"Parser factory for '{name}' did not return an ImportParser instance")
    return instance


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "CODE_EXTENSIONS",
    "DOC_EXTENSIONS",
    "ImportParser",
    "RegexParser",
    "TREE_SITTER_AVAILABLE",
    "TreeSitterParser",
    "available_parsers",
    "create_parser",
    "is_document",
    "parse_links",
    "strip_fenced_blocks",
]
