"""Reversible mapping between source files and their mirrored documents."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, Optional

from ..errors import AnalysisError, Err, Ok, Result, path_error, unwrap
from ..logging import get_logger

DOCUMENT_SUFFIX = ".md"

_LOGGER = get_logger("mapping")


@dataclass
class MappingInfo:
    """Where a source file lives, where its document lives, and whether both exist."""

    source_file: str
    document_file: str
    relative_path: str
    source_exists: bool
    document_exists: bool


@dataclass
class MappingVerification:
    """Outcome of encoding a source path and decoding it back."""

    valid: bool
    source_file: str
    document_file: Optional[str] = None
    reversed_source: Optional[str] = None
    perfect_match: bool = False
    error: Optional[str] = None


class PathCodec:
    """Encodes source paths as document paths under a docs root and decodes them back.

    The relative path of a source file is copied verbatim into the mirrored tree
    and suffixed with ``.md``. No character is escaped or renamed, so decoding only
    has to strip the mirror prefix and the suffix.
    """

    def __init__(
        self,
        project_root: str | Path,
        docs_root: str | Path = "./docs",
        namespace: Optional[str] = None,
    ) -> None:
        self.project_root = _normalise(Path(project_root).expanduser(), Path.cwd())
        self.docs_root = _normalise(Path(docs_root).expanduser(), self.project_root)
        self.namespace = namespace or None
        if self.namespace is not None:
            cleaned = PurePosixPath(self.namespace)
            if cleaned.is_absolute() or ".." in cleaned.parts:
                raise AnalysisError(
                    path_error(
                        "Namespace must be a relative path inside the docs root",
                        path=self.namespace,
                        root=self.docs_root,
                    )
                )
            self.mirror_root = _normalise(Path(*cleaned.parts), self.docs_root)
        else:
            self.mirror_root = self.docs_root

    # ------------------------------------------------------------------
    # File mirroring

    def relative_path(self, source_path: str | Path) -> Result[str]:
        """Return the project-relative POSIX path of ``source_path``."""
        absolute = _normalise(Path(source_path).expanduser(), self.project_root)
        try:
            relative = absolute.relative_to(self.project_root)
        except ValueError:
            return path_error(
                "Source path is outside the project root",
                path=source_path,
                root=self.project_root,
            )
        if not relative.parts:
            return path_error(
                "Source path must name a file below the project root",
                path=source_path,
                root=self.project_root,
            )
        return Ok(relative.as_posix())

    def try_encode(self, source_path: str | Path) -> Result[Path]:
        relative = self.relative_path(source_path)
        if isinstance(relative, Err):
            return relative
        return Ok(self.mirror_root / f"{relative.value}{DOCUMENT_SUFFIX}")

    def encode(self, source_path: str | Path) -> Path:
        """Return the document path mirroring ``source_path``."""
        return unwrap(self.try_encode(source_path))

    def try_decode(self, document_path: str | Path) -> Result[Path]:
        absolute = _normalise(Path(document_path).expanduser(), self.project_root)
        try:
            relative = absolute.relative_to(self.mirror_root)
        except ValueError:
            return path_error(
                "Document path is outside the mirror root",
                path=document_path,
                root=self.mirror_root,
            )
        name = relative.as_posix()
        if not relative.parts or not name.endswith(DOCUMENT_SUFFIX):
            return path_error(
                f"Document path must end with {DOCUMENT_SUFFIX}",
                path=document_path,
                root=self.mirror_root,
            )
        source_relative = name[: -len(DOCUMENT_SUFFIX)]
        if not source_relative or source_relative.endswith("/"):
            return path_error(
                "Document path does not mirror a source file",
                path=document_path,
                root=self.mirror_root,
            )
        return Ok(self.project_root / source_relative)

    def decode(self, document_path: str | Path) -> Path:
        """Return the source path mirrored by ``document_path``."""
        return unwrap(self.try_decode(document_path))

    def verify(self, source_path: str | Path) -> MappingVerification:
        """Encode then decode ``source_path`` and report whether the round trip is exact."""
        expected = _normalise(Path(source_path).expanduser(), self.project_root)
        encoded = self.try_encode(source_path)
        if isinstance(encoded, Err):
            return MappingVerification(
                valid=False, source_file=str(expected), error=encoded.describe()
            )
        decoded = self.try_decode(encoded.value)
        if isinstance(decoded, Err):
            return MappingVerification(
                valid=False,
                source_file=str(expected),
                document_file=str(encoded.value),
                error=decoded.describe(),
            )
        return MappingVerification(
            valid=True,
            source_file=str(expected),
            document_file=str(encoded.value),
            reversed_source=str(decoded.value),
            perfect_match=decoded.value == expected,
        )

    def verify_batch(self, source_paths: Iterable[str | Path]) -> Dict[str, MappingVerification]:
        results: Dict[str, MappingVerification] = {}
        for source_path in source_paths:
            verification = self.verify(source_path)
            results[verification.source_file] = verification
        return results

    def mapping_info(self, source_path: str | Path) -> MappingInfo:
        absolute = _normalise(Path(source_path).expanduser(), self.project_root)
        relative = unwrap(self.relative_path(absolute))
        document = self.mirror_root / f"{relative}{DOCUMENT_SUFFIX}"
        return MappingInfo(
            source_file=str(absolute),
            document_file=str(document),
            relative_path=relative,
            source_exists=absolute.exists(),
            document_exists=document.exists(),
        )

    def batch_mapping(self, source_paths: Iterable[str | Path]) -> Dict[str, str]:
        """Map every encodable source path to its document; failures are logged and skipped."""
        mapping: Dict[str, str] = {}
        for source_path in source_paths:
            encoded = self.try_encode(source_path)
            if isinstance(encoded, Err):
                _LOGGER.warning("Skipping %s: %s", source_path, encoded.describe())
                continue
            absolute = _normalise(Path(source_path).expanduser(), self.project_root)
            mapping[str(absolute)] = str(encoded.value)
        return mapping

    def ensure_document_directory(self, source_path: str | Path) -> Path:
        document = self.encode(source_path)
        document.parent.mkdir(parents=True, exist_ok=True)
        return document

    # ------------------------------------------------------------------
    # Sub-documents

    def method_document_path(self, source_path: str | Path, method_name: str) -> Path:
        return self._member_document_path("methods", source_path, method_name)

    def class_document_path(self, source_path: str | Path, class_name: str) -> Path:
        return self._member_document_path("classes", source_path, class_name)

    def library_document_path(self, library_name: str) -> Path:
        sanitized = library_name.replace("@", "_").replace("/", "_")
        return self.docs_root / "libraries" / f"{sanitized}{DOCUMENT_SUFFIX}"

    def _member_document_path(self, kind: str, source_path: str | Path, member: str) -> Path:
        relative = PurePosixPath(unwrap(self.relative_path(source_path)))
        stem = relative.stem if relative.suffix else relative.name
        return self.docs_root / kind / Path(*relative.parent.parts) / stem / f"{member}{DOCUMENT_SUFFIX}"


def _normalise(path: Path, base: Path) -> Path:
    # normpath collapses "." and ".." without following symlinks
    absolute = path if path.is_absolute() else base / path
    return Path(os.path.normpath(absolute))


__all__ = [
    "DOCUMENT_SUFFIX",
    "MappingInfo",
    "MappingVerification",
    "PathCodec",
]
