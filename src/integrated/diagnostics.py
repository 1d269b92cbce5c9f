"""
Failure diagnostics.

When a page fails to load or an assertion misses, the page body is written
to tests/logs/output.txt so the failure can be read without re-running the
test with extra flags.
"""

from pathlib import Path
from typing import Optional, Union

import structlog

from .config import DEFAULT_LOG_PATH, DEFAULT_SCREENSHOT_PATH

logger = structlog.get_logger(__name__)


class Diagnostics:
    """Writes page bodies and screenshots to the log directory."""

    def __init__(
        self,
        log_path: Union[str, Path] = DEFAULT_LOG_PATH,
        screenshot_path: Union[str, Path] = DEFAULT_SCREENSHOT_PATH,
    ):
        self.log_path = Path(log_path)
        self.screenshot_path = Path(screenshot_path)

    def capture(self, body: Optional[str]) -> Optional[Path]:
        """
        Write the latest page body to the log file.

        Best effort: an unwritable log is reported and skipped so it never
        hides the failure being diagnosed.

        Returns:
            The path written, or None if the write failed
        """
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self.log_path.write_text(body or "", encoding="utf-8")
        except OSError as e:
            logger.warning("diagnostics_write_failed", path=str(self.log_path), error=str(e))
            return None

        logger.info("diagnostics_written", path=str(self.log_path), size=len(body or ""))
        return self.log_path

    def save_screenshot(self, png: bytes, destination: Optional[Union[str, Path]] = None) -> Path:
        """Write a PNG screenshot, creating the directory if needed."""
        path = Path(destination) if destination else self.screenshot_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(png)
        logger.info("screenshot_saved", path=str(path))
        return path
