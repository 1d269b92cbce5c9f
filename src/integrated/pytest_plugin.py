"""
pytest plugin for integrated.

Registered through the pytest11 entry point, so installing the package is
enough. Adds two command-line options and the integrated_config fixture.
"""

import pytest

from .config import CONFIG_FILE, load_config
from .log import LEVELS, configure_logging


def pytest_addoption(parser):
    group = parser.getgroup("integrated", "integration tests with a simulated browser")
    group.addoption(
        "--integrated-config",
        default=CONFIG_FILE,
        help=f"Path to the integrated JSON config (default: {CONFIG_FILE})",
    )
    group.addoption(
        "--integrated-log-level",
        choices=LEVELS,
        default="warning",
        help="Log level for integrated's structured logging (default: warning)",
    )


def pytest_configure(config):
    configure_logging(config.getoption("--integrated-log-level"))


@pytest.fixture(scope="session")
def integrated_config(request):
    """The project configuration, loaded once per test session."""
    return load_config(request.config.getoption("--integrated-config"))
