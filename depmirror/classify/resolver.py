"""Filesystem resolution of relative and aliased module specifiers."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional, Sequence

from ..logging import get_logger

RESOLVE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".json")

# Compiled-output specifiers that point at a TypeScript source on disk.
_SOURCE_SWAPS = {
    ".js": (".ts", ".tsx"),
    ".jsx": (".tsx",),
    ".mjs": (".mts",),
    ".cjs": (".cts",),
}

_LOGGER = get_logger("classify.resolver")


@dataclass
class Resolution:
    """Observed outcome of resolving one specifier."""

    path: Optional[Path]
    exists: bool
    denied: bool = False


def is_relative(specifier: str) -> bool:
    return specifier.startswith(("./", "../", "/")) or specifier in (".", "..")


class ModuleResolver:
    """Resolves specifiers against the declaring file's directory or configured aliases."""

    def __init__(
        self,
        project_root: Path,
        aliases: Optional[Mapping[str, str]] = None,
        *,
        extensions: Sequence[str] = RESOLVE_EXTENSIONS,
    ) -> None:
        self.project_root = project_root
        self.extensions = tuple(extensions)
        normalised = {_strip_glob(prefix): _strip_glob(target) for prefix, target in (aliases or {}).items()}
        # Longest prefix wins when aliases overlap.
        self.aliases: Dict[str, str] = dict(
            sorted(normalised.items(), key=lambda item: (-len(item[0]), item[0]))
        )

    def alias_target(self, specifier: str) -> Optional[str]:
        for prefix, target in self.aliases.items():
            bare = prefix.rstrip("/")
            if specifier == bare:
                return target
            if prefix.endswith("/") and specifier.startswith(prefix):
                return f"{target.rstrip('/')}/{specifier[len(prefix):]}" if target else specifier[len(prefix):]
            if not prefix.endswith("/") and specifier.startswith(f"{prefix}/"):
                return f"{target.rstrip('/')}/{specifier[len(prefix) + 1:]}"
        return None

    def resolve(
        self,
        specifier: str,
        from_file: Path,
        *,
        extra_extensions: Sequence[str] = (),
    ) -> Resolution:
        """Resolve ``specifier`` declared in ``from_file``; only files that exist are reported."""
        target = _strip_fragment(specifier)
        if not target:
            return Resolution(path=None, exists=False)

        if target.startswith("/"):
            base = self.project_root / target.lstrip("/")
        elif is_relative(target) or _is_document(from_file):
            base = from_file.parent / target
        else:
            aliased = self.alias_target(target)
            if aliased is None:
                return Resolution(path=None, exists=False)
            base = self.project_root / aliased
        base = Path(os.path.normpath(base))

        try:
            for candidate in self._candidates(base, tuple(extra_extensions)):
                if candidate.is_file():
                    return Resolution(path=candidate, exists=True)
        except PermissionError as exc:
            _LOGGER.warning("Permission denied while resolving %s from %s: %s", specifier, from_file, exc)
            return Resolution(path=None, exists=False, denied=True)
        return Resolution(path=None, exists=False)

    def _candidates(self, base: Path, extra_extensions: Sequence[str]) -> Iterator[Path]:
        yield base
        for swap in _SOURCE_SWAPS.get(base.suffix, ()):
            yield base.with_suffix(swap)
        for extension in self.extensions + extra_extensions:
            yield base.with_name(f"{base.name}{extension}")
        for extension in self.extensions + extra_extensions:
            yield base / f"index{extension}"


def load_tsconfig_aliases(project_root: Path) -> Dict[str, str]:
    """Read ``compilerOptions.paths`` from tsconfig.json as prefix to directory aliases."""
    tsconfig = project_root / "tsconfig.json"
    try:
        payload = json.loads(tsconfig.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        _LOGGER.debug("Ignoring unreadable tsconfig.json: %s", exc)
        return {}
    options = payload.get("compilerOptions") if isinstance(payload, dict) else None
    if not isinstance(options, dict):
        return {}
    base_url = options.get("baseUrl") if isinstance(options.get("baseUrl"), str) else "."
    paths = options.get("paths")
    if not isinstance(paths, dict):
        return {}
    aliases: Dict[str, str] = {}
    for prefix, targets in paths.items():
        if not isinstance(prefix, str) or not isinstance(targets, list) or not targets:
            continue
        first = targets[0]
        if not isinstance(first, str):
            continue
        combined = os.path.normpath(os.path.join(base_url, _strip_glob(first)))
        if _strip_glob(first).endswith("/"):
            combined += "/"
        aliases[_strip_glob(prefix)] = combined
    return aliases


def _strip_glob(value: str) -> str:
    return value[:-1] if value.endswith("*") else value


def _strip_fragment(specifier: str) -> str:
    for marker in ("#", "?"):
        specifier = specifier.split(marker, 1)[0]
    return specifier.strip()


def _is_document(path: Path) -> bool:
    # Markdown links are relative to the document even without a leading "./".
    return path.suffix.lower() in (".md", ".markdown", ".mdx")


__all__ = [
    "RESOLVE_EXTENSIONS",
    "ModuleResolver",
    "Resolution",
    "is_relative",
    "load_tsconfig_aliases",
]
