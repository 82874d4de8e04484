"""Tests for depmirror logging configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from depmirror.logging import ComponentFilter, configure_logging, console_level, get_logger


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    logger = logging.getLogger("depmirror")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _record(name: str) -> logging.LogRecord:
    return logging.LogRecord(name, logging.INFO, __file__, 1, "message", None, None)


def test_component_filter_names_the_pipeline_stage() -> None:
    stage = _record("depmirror.graph")
    root = _record("depmirror")
    foreign = _record("uvicorn.error")
    component_filter = ComponentFilter()

    assert component_filter.filter(stage) is True
    assert component_filter.filter(root) is True
    assert component_filter.filter(foreign) is True
    assert stage.component == "graph: "
    assert root.component == ""
    assert foreign.component == ""


@pytest.mark.parametrize(
    ("verbose", "quiet", "expected"),
    [
        (False, False, logging.INFO),
        (True, False, logging.DEBUG),
        (False, True, logging.WARNING),
    ],
)
def test_console_level(verbose: bool, quiet: bool, expected: int) -> None:
    assert console_level(verbose=verbose, quiet=quiet) == expected


def test_console_level_rejects_verbose_and_quiet() -> None:
    with pytest.raises(ValueError):
        console_level(verbose=True, quiet=True)


def test_quiet_console_still_writes_info_to_log_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "run.log"
    logger = configure_logging(quiet=True, log_file=log_file)
    stream_handler, file_handler = logger.handlers

    assert stream_handler.level == logging.WARNING
    assert file_handler.level == logging.INFO

    get_logger("scanner").info("Discovered 2 files")
    file_handler.flush()
    assert "INFO depmirror.scanner: Discovered 2 files" in log_file.read_text(encoding="utf-8")


def test_reconfiguring_replaces_handlers() -> None:
    configure_logging()
    logger = configure_logging(verbose=True)
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
