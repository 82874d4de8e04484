"""Dependency classification, module resolution and library grouping."""

from __future__ import annotations

from .classifier import (
    NODE_BUILTINS,
    TEST_FRAMEWORKS,
    DependencyClassifier,
    clamp,
    detect_test_framework,
    detect_test_type,
    is_asset,
    is_builtin,
)
from .libraries import LibraryCatalog, library_group_key
from .resolver import ModuleResolver, Resolution, is_relative, load_tsconfig_aliases

__all__ = [
    "DependencyClassifier",
    "LibraryCatalog",
    "ModuleResolver",
    "NODE_BUILTINS",
    "Resolution",
    "TEST_FRAMEWORKS",
    "clamp",
    "detect_test_framework",
    "detect_test_type",
    "is_asset",
    "is_builtin",
    "is_relative",
    "library_group_key",
    "load_tsconfig_aliases",
]
