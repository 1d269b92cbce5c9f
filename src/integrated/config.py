"""
Project configuration.

Read once from integrated.json at the project root and handed to every
test instance. A missing file is not an error; defaults apply.

Example integrated.json:
    {
        "baseUrl": "http://localhost:8888",
        "pdo": {"connection": "sqlite", "database": "storage/database.sqlite"},
        "selenium": {"browser": "firefox"}
    }
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .exceptions import ConfigError

CONFIG_FILE = "integrated.json"
DEFAULT_BASE_URL = "http://localhost:8888"
DEFAULT_WEBDRIVER_HOST = "http://localhost:4444/wd/hub"
DEFAULT_BROWSER = "firefox"
DEFAULT_LOG_PATH = "tests/logs/output.txt"
DEFAULT_SCREENSHOT_PATH = "tests/logs/screenshot.png"
NOT_FOUND_MARKERS = ["Sorry, the page you are looking for could not be found."]


@dataclass
class DatabaseConfig:
    """Connection settings for row lookups."""

    connection: str = "sqlite"
    database: str = ":memory:"
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DatabaseConfig":
        data = dict(data)
        connection = data.pop("connection", data.pop("driver", "sqlite"))
        database = data.pop("database", ":memory:")
        return cls(connection=connection, database=database, options=data)


@dataclass
class RemoteConfig:
    """Settings for live browser sessions."""

    browser: str = DEFAULT_BROWSER
    host: str = DEFAULT_WEBDRIVER_HOST
    driver: str = "webdriver"  # webdriver | playwright
    headless: bool = True
    not_found_markers: List[str] = field(default_factory=lambda: list(NOT_FOUND_MARKERS))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RemoteConfig":
        remote = cls()
        remote.browser = data.get("browser", remote.browser)
        remote.host = data.get("host", remote.host)
        remote.driver = data.get("driver", remote.driver)
        remote.headless = bool(data.get("headless", remote.headless))
        markers = data.get("notFoundMarkers", data.get("not_found_markers"))
        if markers is not None:
            remote.not_found_markers = list(markers)
        return remote


@dataclass
class Config:
    """Harness-wide settings passed into each emulator."""

    base_url: Optional[str] = None
    database: Optional[DatabaseConfig] = None
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    log_path: str = DEFAULT_LOG_PATH
    screenshot_path: str = DEFAULT_SCREENSHOT_PATH
    max_redirects: int = 20
    timeout: float = 30.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Build a Config from the decoded integrated.json contents."""
        if not isinstance(data, dict):
            raise ConfigError("The configuration file must contain a JSON object.")

        config = cls()
        config.base_url = data.get("baseUrl", data.get("base_url"))

        database = data.get("pdo", data.get("database"))
        if database is not None:
            if not isinstance(database, dict):
                raise ConfigError("The 'pdo' setting must be an object.")
            config.database = DatabaseConfig.from_dict(database)

        remote = data.get("selenium", data.get("remote"))
        if remote is not None:
            if not isinstance(remote, dict):
                raise ConfigError("The 'selenium' setting must be an object.")
            config.remote = RemoteConfig.from_dict(remote)

        config.log_path = data.get("logPath", config.log_path)
        config.screenshot_path = data.get("screenshotPath", config.screenshot_path)

        try:
            config.max_redirects = int(data.get("maxRedirects", config.max_redirects))
            config.timeout = float(data.get("timeout", config.timeout))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        return config


def load_config(path: Union[str, Path] = CONFIG_FILE) -> Config:
    """
    Load the project configuration.

    Args:
        path: Location of the JSON file (default: ./integrated.json)

    Returns:
        Config with defaults for anything the file leaves out

    Raises:
        ConfigError: the file exists but is not valid JSON
    """
    path = Path(path)
    if not path.exists():
        return Config()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Couldn't parse {path}: {e}") from e

    return Config.from_dict(data)
