"""
Playwright browser driver.

Runs the remote session against a browser launched locally by Playwright,
or one reached over a Playwright websocket endpoint.
"""

from typing import Any, List, Optional

import structlog

from ..config import DEFAULT_BROWSER
from ..exceptions import ConfigError, NoAlertOpen
from .remote import BrowserDriver, DriverElementMissing, css_string, xpath_string

logger = structlog.get_logger(__name__)

BROWSER_TYPES = {
    "firefox": "firefox",
    "chrome": "chromium",
    "chromium": "chromium",
    "edge": "chromium",
    "safari": "webkit",
    "webkit": "webkit",
}


class PlaywrightDriver(BrowserDriver):
    """
    Browser driver backed by Playwright's sync API.

    Dialogs are accepted as soon as they open so the page never blocks;
    their messages are kept so alert_text() can report the latest one.

    Args:
        browser: firefox, chrome, chromium, edge, safari or webkit
        headless: Launch without a window
        ws_endpoint: Connect to an already running Playwright server instead
    """

    def __init__(self, browser: str = DEFAULT_BROWSER, headless: bool = True, ws_endpoint: Optional[str] = None):
        from playwright.sync_api import sync_playwright

        type_name = BROWSER_TYPES.get(browser.lower())
        if type_name is None:
            raise ConfigError(f"Unsupported browser for Playwright: {browser}")

        self._playwright = sync_playwright().start()
        browser_type = getattr(self._playwright, type_name)
        if ws_endpoint:
            self.browser = browser_type.connect(ws_endpoint)
        else:
            self.browser = browser_type.launch(headless=headless)
        self.page = self.browser.new_page()

        self._alerts: List[str] = []
        self.page.on("dialog", self._on_dialog)
        logger.info("playwright_started", browser=type_name, endpoint=ws_endpoint)

    def _on_dialog(self, dialog) -> None:
        self._alerts.append(dialog.message)
        dialog.accept()

    def open(self, url: str) -> None:
        self.page.goto(url)

    def source(self) -> str:
        return self.page.content()

    def current_url(self) -> str:
        return self.page.url

    def _selector(self, strategy: str, value: str) -> str:
        if strategy == "id":
            return f"[id={css_string(value)}]"
        if strategy == "css selector":
            return value
        if strategy == "link text":
            return f"xpath=//a[normalize-space(.)={xpath_string(value)}]"
        if strategy == "xpath":
            return f"xpath={value}"
        raise ValueError(f"Unknown locator strategy: {strategy}")

    def find(self, strategy: str, value: str) -> Any:
        locator = self.page.locator(self._selector(strategy, value))
        if locator.count() == 0:
            raise DriverElementMissing(f"{strategy}={value}")
        return locator.first

    def click(self, element: Any) -> None:
        element.click()
        self.page.wait_for_load_state()

    def set_value(self, element: Any, value: str) -> None:
        element.fill(value)

    def is_checked(self, element: Any) -> bool:
        return element.is_checked()

    def tag_name(self, element: Any) -> str:
        return element.evaluate("e => e.tagName").lower()

    def attribute(self, element: Any, name: str) -> Optional[str]:
        return element.get_attribute(name)

    def select_option(self, element: Any, option: str) -> None:
        values = element.evaluate("s => Array.from(s.options).map(o => o.value)")
        if option in values:
            element.select_option(value=option)
        else:
            element.select_option(label=option)

    def attach_file(self, element: Any, path: str) -> None:
        element.set_input_files(path)

    def submit(self, element: Any) -> None:
        element.evaluate("f => f.requestSubmit ? f.requestSubmit() : f.submit()")
        self.page.wait_for_load_state()

    def alert_text(self) -> str:
        if not self._alerts:
            raise NoAlertOpen("No alert box is open.")
        return self._alerts[-1]

    def accept_alert(self) -> None:
        if not self._alerts:
            raise NoAlertOpen("No alert box is open.")
        message = self._alerts.pop()
        logger.debug("alert_accepted", message=message)

    def screenshot(self) -> bytes:
        return self.page.screenshot()

    def close(self) -> None:
        self.browser.close()
        self._playwright.stop()
        logger.info("playwright_stopped")
