"""Result types and the error taxonomy shared by depmirror components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Closed set of failure kinds surfaced by the analysis core."""

    PATH_RESOLUTION = "path-resolution"
    IDENTIFIER_COLLISION_EXHAUSTED = "identifier-collision-exhausted"
    FILE_ACCESS_DENIED = "file-access-denied"
    INVALID_PROJECT_ROOT = "invalid-project-root"
    EMPTY_INPUT = "empty-input"

    @property
    def fatal(self) -> bool:
        return self is not ErrorKind.FILE_ACCESS_DENIED


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful result carrying a value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed result carrying the error kind and the paths involved."""

    kind: ErrorKind
    message: str
    context: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return False

    @property
    def fatal(self) -> bool:
        return self.kind.fatal

    def describe(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}: {value}" for key, value in sorted(self.context.items()))
        return f"{self.message} ({details})"


Result = Union[Ok[T], Err]


class AnalysisError(RuntimeError):
    """Raised when a fatal ``Err`` reaches a caller that expects a plain value."""

    def __init__(self, error: Err) -> None:
        super().__init__(error.describe())
        self.error = error

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


def unwrap(result: Result[T]) -> T:
    """Return the value of ``Ok`` or raise ``AnalysisError`` for ``Err``."""
    if isinstance(result, Ok):
        return result.value
    raise AnalysisError(result)


def path_error(message: str, *, path: object, root: object) -> Err:
    return Err(
        ErrorKind.PATH_RESOLUTION,
        message,
        {"path": str(path), "root": str(root)},
    )


__all__ = [
    "AnalysisError",
    "Err",
    "ErrorKind",
    "Ok",
    "Result",
    "path_error",
    "unwrap",
]
