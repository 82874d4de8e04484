"""Persistence helpers for depmirror outputs."""

from .reference_store import ReferenceStore

__all__ = ["ReferenceStore"]
