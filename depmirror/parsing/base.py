"""Base classes for import and export parsers."""

from abc import ABC, abstractmethod
from pathlib import PurePosixPath
from typing import List

from ..models import ExportRecord, RawImport

CODE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")
DOC_EXTENSIONS = (".md", ".markdown", ".mdx")


class ImportParser(ABC):
    """Contract for parsers that turn file content into raw import and export records."""

    name = "base"

    @abstractmethod
    def parse_imports(self, path: str, content: str) -> List[RawImport]:
        """Return imports, requires and links declared in ``content``."""

    @abstractmethod
    def parse_exports(self, path: str, content: str) -> List[ExportRecord]:
        """Return the symbols ``content`` exports."""

    def supports(self, path: str) -> bool:
        return PurePosixPath(path).suffix.lower() in CODE_EXTENSIONS + DOC_EXTENSIONS


def is_document(path: str) -> bool:
    return PurePosixPath(path).suffix.lower() in DOC_EXTENSIONS


def line_number(content: str, offset: int) -> int:
    return content.count("\n", 0, offset) + 1
