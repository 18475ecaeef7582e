"""Logging setup for conveyor runs.

Components log under ``conveyor.components.<name>`` and run concurrently, so
the console format prefixes every line with the logger scope below
``conveyor`` (``components.e2e``, ``pipeline``, ...).
"""

from __future__ import annotations

import logging
from typing import Iterable

_ROOT_LOGGER = "conveyor"
_CONSOLE_FORMAT = "[%(scope)s] %(levelname)s %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}" if name else _ROOT_LOGGER)


def component_logger_name(component: str) -> str:
    return f"{_ROOT_LOGGER}.components.{component}"


class ScopeFilter(logging.Filter):
    """Adds ``record.scope``: the logger name relative to the conveyor root."""

    def filter(self, record: logging.LogRecord) -> bool:
        prefix = f"{_ROOT_LOGGER}."
        if record.name.startswith(prefix):
            record.scope = record.name[len(prefix):]
        else:
            record.scope = record.name
        return True


def configure_logging(
    *, verbose: bool = False, debug_components: Iterable[str] = ()
) -> logging.Logger:
    """Send conveyor logs to stderr.

    ``verbose`` lowers every logger to DEBUG. ``debug_components`` does the
    same for the named components only, leaving the rest at INFO.
    """
    root = logging.getLogger(_ROOT_LOGGER)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.propagate = False
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.addFilter(ScopeFilter())
    handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    root.addHandler(handler)

    for component in debug_components:
        logging.getLogger(component_logger_name(component.lower())).setLevel(logging.DEBUG)
    return root


__all__ = ["ScopeFilter", "component_logger_name", "configure_logging", "get_logger"]
