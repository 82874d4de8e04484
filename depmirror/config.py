"""Configuration loading for depmirror (.depmirror.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .ids import STRATEGIES

CONFIG_FILENAME = ".depmirror.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class IdConfig:
    """Identifier generation settings."""

    strategy: str = "path-based"
    hash_length: int = 4


@dataclass
class TestConfig:
    """Extra test-classification patterns appended to the built-in tables."""

    __test__ = False

    utility_patterns: List[str] = field(default_factory=list)
    setup_patterns: List[str] = field(default_factory=list)


@dataclass
class DepMirrorConfig:
    """Represents the settings defined in .depmirror.yml."""

    root: Path
    docs_root: str = "./docs"
    namespace: Optional[str] = None
    ids: IdConfig = field(default_factory=IdConfig)
    parser: str = "regex"
    exclude_paths: List[str] = field(default_factory=list)
    extensions: List[str] = field(default_factory=list)
    aliases: Dict[str, str] = field(default_factory=dict)
    test: TestConfig = field(default_factory=TestConfig)
    output: Optional[Path] = None

    @property
    def output_path(self) -> Path:
        return self.output or self.root / ".depmirror" / "reference.json"


def load_config(config_path: Path) -> DepMirrorConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DepMirrorConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = DepMirrorConfig(root=root)

    docs_root = _as_str(data.get("docs_root"))
    if docs_root:
        config.docs_root = docs_root
    config.namespace = _as_str(data.get("namespace")) or None

    ids_data = _as_dict(data.get("ids"))
    if ids_data:
        strategy = _as_str(ids_data.get("strategy")) or config.ids.strategy
        if strategy not in STRATEGIES:
            raise ConfigError(
                f"ids.strategy must be one of {', '.join(STRATEGIES)}; got '{strategy}'"
            )
        hash_length = _as_int(ids_data.get("hash_length"))
        if hash_length is not None and not 1 <= hash_length <= 64:
            raise ConfigError("ids.hash_length must be between 1 and 64")
        config.ids = IdConfig(strategy=strategy, hash_length=hash_length or config.ids.hash_length)

    parser = _as_str(data.get("parser"))
    if parser:
        config.parser = parser.lower()

    config.exclude_paths = _as_str_list(data.get("exclude_paths"))
    config.extensions = [
        ext if ext.startswith(".") else f".{ext}" for ext in _as_str_list(data.get("extensions"))
    ]

    aliases = data.get("aliases")
    if aliases is not None and not isinstance(aliases, dict):
        raise ConfigError("aliases must be a mapping of prefix to directory")
    config.aliases = {
        str(prefix): str(target)
        for prefix, target in _as_dict(aliases).items()
        if isinstance(target, (str, int, float))
    }

    test_data = _as_dict(data.get("test"))
    if test_data:
        config.test = TestConfig(
            utility_patterns=_as_str_list(test_data.get("utility_patterns")),
            setup_patterns=_as_str_list(test_data.get("setup_patterns")),
        )

    output = _as_str(data.get("output"))
    if output:
        config.output = root / output

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DepMirrorConfig",
    "IdConfig",
    "TestConfig",
    "load_config",
]
