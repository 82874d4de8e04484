"""Deterministic, human-readable identifiers for files and methods."""

from __future__ import annotations

import hashlib
import os
import re
from pathlib import Path, PurePosixPath
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set

from .errors import AnalysisError, Err, ErrorKind
from .logging import get_logger

STRATEGIES = ("path-based", "semantic", "role-based")

MAX_IDENTIFIER_LENGTH = 100

_LOGGER = get_logger("ids")

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATORS = re.compile(r"[\s_.]+")
_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9-]")
_REPEATED_HYPHENS = re.compile(r"-{2,}")
_VALID_IDENTIFIER = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")

# Directory names that carry no meaning in an identifier.
_NOISE_TOKENS = frozenset({"src", "source", "lib"})


def to_kebab_case(value: str) -> str:
    """Convert ``value`` to lower kebab-case, splitting camelCase and acronyms."""
    text = _ACRONYM_BOUNDARY.sub(r"\1-\2", value)
    text = _CAMEL_BOUNDARY.sub(r"\1-\2", text)
    text = _SEPARATORS.sub("-", text)
    text = _INVALID_CHARS.sub("", text).lower()
    return _REPEATED_HYPHENS.sub("-", text).strip("-")


def is_valid_identifier(value: str) -> bool:
    return bool(_VALID_IDENTIFIER.match(value)) and len(value) <= MAX_IDENTIFIER_LENGTH


def _short_hash(seed: str, length: int) -> str:
    return hashlib.sha256(seed.encode("utf-8")).hexdigest()[:length]


def _strip_extension(name: str) -> str:
    stem, extension = os.path.splitext(name)
    return stem if extension else name


class IdentifierGenerator:
    """Issues file and method identifiers for one analysis run.

    The base token for a path depends only on the strategy and the path. A hash
    suffix is appended only when the base token was already issued by this
    instance, so callers must route every identifier of a run through the same
    generator in a stable order.
    """

    def __init__(
        self,
        strategy: str = "path-based",
        *,
        hash_length: int = 4,
        max_attempts: int = 16,
    ) -> None:
        if strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown identifier strategy '{strategy}'. Expected one of: {', '.join(STRATEGIES)}"
            )
        if hash_length < 1:
            raise ValueError("hash_length must be positive")
        self.strategy = strategy
        self.hash_length = hash_length
        self.max_attempts = max_attempts
        self._issued: Set[str] = set()

    @property
    def issued(self) -> FrozenSet[str]:
        return frozenset(self._issued)

    def reset(self) -> None:
        self._issued.clear()

    def base_token(
        self,
        path: str | Path,
        project_root: str | Path | None = None,
        *,
        role: Optional[str] = None,
    ) -> str:
        """Return the un-suffixed identifier, falling back to a path hash when invalid."""
        relative = _relative_parts(path, project_root)
        if self.strategy == "semantic":
            token = to_kebab_case(_strip_extension(relative[-1])) if relative else ""
        else:
            token = _path_token(relative)
            if self.strategy == "role-based":
                if not role:
                    raise ValueError("role-based identifiers require a role")
                role_token = to_kebab_case(role)
                token = f"{role_token}-{token}" if token else role_token

        if not is_valid_identifier(token):
            fallback = "file-" + _short_hash("/".join(relative), 12)
            _LOGGER.debug("Identifier '%s' for %s is not valid; using %s", token, path, fallback)
            return fallback
        return token

    def generate(
        self,
        path: str | Path,
        project_root: str | Path | None = None,
        *,
        content: Optional[str] = None,
        role: Optional[str] = None,
    ) -> str:
        """Issue a file identifier, disambiguating against identifiers already issued."""
        base = self.base_token(path, project_root, role=role)
        seed = content if content is not None else "/".join(_relative_parts(path, project_root))
        return self._claim(base, seed, path=str(path), root=str(project_root or ""))

    def generate_batch(
        self,
        paths: Iterable[str | Path],
        project_root: str | Path | None = None,
        *,
        contents: Optional[Mapping[str, str]] = None,
        roles: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, str]:
        """Issue identifiers for ``paths`` in lexicographic order."""
        ordered: List[str] = sorted({str(path) for path in paths})
        identifiers: Dict[str, str] = {}
        for path in ordered:
            identifiers[path] = self.generate(
                path,
                project_root,
                content=(contents or {}).get(path),
                role=(roles or {}).get(path),
            )
        return identifiers

    def generate_method_id(
        self, method_name: str, file_id: str, start_line: Optional[int] = None
    ) -> str:
        method_token = to_kebab_case(method_name) or f"m{_short_hash(method_name, 8)}"
        base = f"{file_id}--{method_token}"
        if base in self._issued and start_line:
            base = f"{base}-l{start_line}"
        return self._claim(base, f"{file_id}:{method_name}:{start_line or ''}", path=method_name, root=file_id)

    def _claim(self, base: str, seed: str, *, path: str, root: str) -> str:
        if base not in self._issued:
            self._issued.add(base)
            return base
        for attempt in range(self.max_attempts):
            salted = seed if attempt == 0 else f"{seed}#{attempt}"
            candidate = f"{base}-{_short_hash(salted, self.hash_length)}"
            if candidate not in self._issued:
                self._issued.add(candidate)
                return candidate
        raise AnalysisError(
            Err(
                ErrorKind.IDENTIFIER_COLLISION_EXHAUSTED,
                f"Could not derive a unique identifier from '{base}' after {self.max_attempts} attempts",
                {"path": path, "root": root},
            )
        )


def _relative_parts(path: str | Path, project_root: str | Path | None) -> List[str]:
    candidate = PurePosixPath(Path(path).as_posix())
    if project_root is not None:
        root = PurePosixPath(Path(os.path.normpath(Path(project_root).absolute())).as_posix())
        if not candidate.is_absolute():
            candidate = root / candidate
        candidate = PurePosixPath(os.path.normpath(str(candidate)))
        try:
            candidate = candidate.relative_to(root)
        except ValueError:
            pass
    return [part for part in candidate.parts if part not in ("/", ".", "")]


def _path_token(parts: List[str]) -> str:
    if not parts:
        return ""
    tokens: List[str] = []
    for directory in parts[:-1]:
        token = to_kebab_case(directory)
        if token and token not in _NOISE_TOKENS:
            tokens.append(token)
    stem = to_kebab_case(_strip_extension(parts[-1]))
    if stem:
        tokens.append(stem)
    return "-".join(tokens)


__all__ = [
    "IdentifierGenerator",
    "MAX_IDENTIFIER_LENGTH",
    "STRATEGIES",
    "is_valid_identifier",
    "to_kebab_case",
]
