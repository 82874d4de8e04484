"""Logging utilities for depmirror commands."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "depmirror"
_CONSOLE_FORMAT = "[depmirror] %(levelname)s %(component)s%(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the depmirror hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class ComponentFilter(logging.Filter):
    """Expose the pipeline stage (``scanner``, ``graph``...) as ``%(component)s``."""

    def filter(self, record: logging.LogRecord) -> bool:
        prefix = f"{_LOGGER_NAME}."
        component = record.name[len(prefix):] if record.name.startswith(prefix) else ""
        record.component = f"{component}: " if component else ""
        return True


def console_level(*, verbose: bool = False, quiet: bool = False) -> int:
    if verbose and quiet:
        raise ValueError("verbose and quiet logging are mutually exclusive")
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the depmirror logger.

    Console output goes to stderr so JSON printed on stdout stays parseable;
    ``quiet`` limits it to warnings. The optional file sink keeps INFO records
    even when the console is quiet.
    """
    level = console_level(verbose=verbose, quiet=quiet)
    file_level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(min(level, file_level) if log_file is not None else level)
    logger.propagate = False

    # Repeated CLI invocations in one process would otherwise stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.addFilter(ComponentFilter())
    stream_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["ComponentFilter", "configure_logging", "console_level", "get_logger"]
