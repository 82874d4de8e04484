"""Tests for depmirror.errors."""

from __future__ import annotations

import pytest

from depmirror.errors import AnalysisError, Err, ErrorKind, Ok, path_error, unwrap


def test_only_file_access_denied_is_non_fatal() -> None:
    fatal = {kind for kind in ErrorKind if kind.fatal}
    assert ErrorKind.FILE_ACCESS_DENIED not in fatal
    assert fatal == set(ErrorKind) - {ErrorKind.FILE_ACCESS_DENIED}


def test_err_describe_includes_sorted_context() -> None:
    error = Err(ErrorKind.PATH_RESOLUTION, "bad path", {"root": "/project", "path": "/elsewhere/a.ts"})
    assert error.describe() == "bad path (path: /elsewhere/a.ts, root: /project)"
    assert error.ok is False
    assert error.fatal is True


def test_unwrap_returns_value_for_ok() -> None:
    result = Ok(42)
    assert result.ok is True
    assert unwrap(result) == 42


def test_unwrap_raises_analysis_error_for_err() -> None:
    error = path_error("outside", path="/tmp/a.ts", root="/project")
    with pytest.raises(AnalysisError) as excinfo:
        unwrap(error)
    assert excinfo.value.kind is ErrorKind.PATH_RESOLUTION
    assert excinfo.value.error.context == {"path": "/tmp/a.ts", "root": "/project"}
    assert "outside" in str(excinfo.value)
