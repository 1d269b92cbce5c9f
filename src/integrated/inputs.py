"""Staging area for form input collected between navigations."""

from typing import Any, Dict, Optional

import structlog

from .locator import ElementHandle, ElementKind, ElementLocator, normalize_key
from .page import PageState

logger = structlog.get_logger(__name__)


class InputStage:
    """
    Ordered key -> value store for fields filled before a submission.

    Keys are checked against the current page when they are staged, so a
    typo in a field name fails on the fill() call rather than later on
    press(). Values are strings (text, selected option), booleans
    (checkboxes) or pathlib.Path objects (file uploads).

    Usage:
        stage = InputStage()
        stage.stage(page, "#email", "alice@example.com")
        stage.consume()  # {"email": "alice@example.com"}, stage is now empty
    """

    def __init__(self, locator: Optional[ElementLocator] = None):
        self.locator = locator or ElementLocator()
        self._values: Dict[str, Any] = {}

    def stage(self, page: PageState, key: str, value: Any) -> ElementHandle:
        """
        Record a value for the element named by key.

        Raises:
            ElementNotFound: the key does not resolve on the current page
        """
        handle = self.locator.locate(page, key, ElementKind.FIELD)
        name = normalize_key(key)
        self._values[name] = value
        logger.debug("input_staged", key=name, strategy=handle.strategy)
        return handle

    def consume(self) -> Dict[str, Any]:
        """Return everything staged so far and empty the stage."""
        values, self._values = self._values, {}
        return values

    def clear(self) -> None:
        self._values = {}

    def snapshot(self) -> Dict[str, Any]:
        """A copy of the staged values, leaving the stage untouched."""
        return dict(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: str) -> bool:
        return normalize_key(key) in self._values

    def __getitem__(self, key: str) -> Any:
        return self._values[normalize_key(key)]
