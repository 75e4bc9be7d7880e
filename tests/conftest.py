import logging

import pytest
from _pytest.mark import Mark

from usergate.core import Config, UsergateSettings, reset_usergate_config

empty_mark = Mark("", (), {})


def by_slow_marker(item):
    # Unit tests first, then slow unit tests, then integration tests, then slow integration tests
    is_slow = 0 if item.get_closest_marker("slow") is None else 1
    is_integration = 1 if "integration" in str(item.fspath) else 0
    return (is_integration, is_slow)


def pytest_addoption(parser):
    parser.addoption("--slow-last", action="store_true", default=False)


def pytest_collection_modifyitems(items, config):
    if config.getoption("--slow-last"):
        items.sort(key=by_slow_marker)


@pytest.fixture(autouse=True)
def isolated_usergate_config(tmp_path, monkeypatch):
    """Point log files at a temporary directory and start every test from a fresh config cache."""
    monkeypatch.setenv("USERGATE__LOG_DIR", str(tmp_path / "logs"))
    reset_usergate_config()
    yield
    reset_usergate_config()


@pytest.fixture(autouse=True)
def configure_logging_for_tests(caplog):
    """Configure logging to work properly with caplog fixture.

    This fixture ensures that all usergate loggers propagate their messages to the root logger so that caplog can
    capture them properly.
    """
    caplog.set_level(logging.DEBUG)

    root_logger = logging.getLogger()
    original_level = root_logger.level
    root_logger.setLevel(logging.DEBUG)

    usergate_logger = logging.getLogger("usergate")
    original_propagate = usergate_logger.propagate
    usergate_logger.propagate = True

    yield

    root_logger.setLevel(original_level)
    usergate_logger.propagate = original_propagate


@pytest.fixture
def make_config(tmp_path):
    """Build a Config from UsergateSettings defaults with the given USERGATE overrides, ignoring the environment."""

    def _make(**overrides) -> Config:
        overrides.setdefault("LOG_DIR", str(tmp_path / "logs"))
        return Config([{"USERGATE": UsergateSettings()}, {"USERGATE": overrides}], apply_env=False)

    return _make
