"""Tests for logging setup."""

import logging

import pytest

from healsim.logging import HealsimFormatter, get_logger, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.lines: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.lines.append(self.format(record))


def test_setup_uses_given_handler(restore_root_logger):
    handler = ListHandler()

    root = setup_logging("DEBUG", handler=handler)
    get_logger("healsim.test").debug("tick %d", 3)

    assert root.level == logging.DEBUG
    assert root.handlers == [handler]
    assert isinstance(handler.formatter, HealsimFormatter)
    assert handler.lines[-1].endswith("| DEBUG    | healsim.test | tick 3")


def test_json_output(restore_root_logger):
    handler = ListHandler()

    setup_logging("INFO", json_output=True, handler=handler)
    get_logger("healsim.test").info("started")

    line = handler.lines[-1]
    assert line.startswith('{"timestamp": "')
    assert '"level": "INFO"' in line
    assert '"message": "started"' in line


def test_unknown_level_falls_back_to_info(restore_root_logger):
    root = setup_logging("chatty", handler=ListHandler())
    assert root.level == logging.INFO


def test_engine_modules_log_through_root(restore_root_logger, engine):
    handler = ListHandler()
    setup_logging("INFO", handler=handler)

    engine.heal_faults()

    assert any("healsim.healer" in line for line in handler.lines)
