import json
import logging

import pytest

import filtro.models.operations  # noqa: F401
from filtro.log import ConsoleFormatter, configure_logging, log_timing


@pytest.fixture
def package_logger():
    logger = logging.getLogger("filtro")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


def test_import_attaches_only_null_handler():
    """Importing the package leaves output routing to the application."""
    handlers = logging.getLogger("filtro").handlers
    assert handlers
    assert all(isinstance(h, logging.NullHandler) for h in handlers)


def test_configure_logging_is_opt_in(package_logger, monkeypatch):
    """configure_logging adds one console handler, once, at the env level."""
    monkeypatch.setenv("FILTRO_LOG_LEVEL", "debug")
    configure_logging()
    configure_logging()
    consoles = [h for h in package_logger.handlers if isinstance(h.formatter, ConsoleFormatter)]
    assert len(consoles) == 1
    assert package_logger.level == logging.DEBUG


def test_log_timing_reports_failures(caplog):
    """A failing block logs a .failed event and re-raises."""
    caplog.set_level(logging.INFO, logger="filtro")
    logger = logging.getLogger("filtro.test")
    with pytest.raises(KeyError):
        with log_timing(logger, "step", rows=3):
            raise KeyError("x")
    events = [json.loads(r.getMessage())["event"] for r in caplog.records if r.name == "filtro.test"]
    assert events == ["step.start", "step.failed"]
