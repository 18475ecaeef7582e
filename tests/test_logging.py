"""Tests for conveyor.logging."""

from __future__ import annotations

import logging
from typing import Iterator

import pytest

from conveyor.logging import ScopeFilter, component_logger_name, configure_logging, get_logger


@pytest.fixture
def restore_loggers() -> Iterator[None]:
    root = logging.getLogger("conveyor")
    state = (root.level, root.propagate, list(root.handlers))
    touched = [logging.getLogger(component_logger_name(name)) for name in ("e2e", "emit")]
    yield
    root.setLevel(state[0])
    root.propagate = state[1]
    root.handlers[:] = state[2]
    for logger in touched:
        logger.setLevel(logging.NOTSET)


def test_console_lines_carry_the_logger_scope(restore_loggers: None) -> None:
    root = configure_logging()
    (handler,) = root.handlers
    record = get_logger("components.e2e").makeRecord(
        "conveyor.components.e2e", logging.INFO, __file__, 1, "Finished %d assets", (3,), None
    )

    assert handler.filter(record)
    assert handler.format(record) == "[components.e2e] INFO Finished 3 assets"


def test_debug_components_only_lower_their_own_level(restore_loggers: None) -> None:
    configure_logging(debug_components=["E2E"])

    assert get_logger("components.e2e").getEffectiveLevel() == logging.DEBUG
    assert get_logger("components.emit").getEffectiveLevel() == logging.INFO
    assert get_logger("pipeline").getEffectiveLevel() == logging.INFO


def test_repeated_configuration_keeps_one_handler(restore_loggers: None) -> None:
    configure_logging()
    root = configure_logging(verbose=True)

    assert len(root.handlers) == 1
    assert root.level == logging.DEBUG


def test_scope_filter_leaves_foreign_loggers_untouched() -> None:
    record = logging.LogRecord("asyncio", logging.WARNING, __file__, 1, "msg", None, None)

    ScopeFilter().filter(record)

    assert record.scope == "asyncio"
