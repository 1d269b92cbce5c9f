"""
Remote browser session backend.

Commands go to a live, stateful browser. The browser follows redirects and
runs JavaScript on its own, so the page body and URL are read back from
the session after each command. There is no HTTP status to read; a page
showing a known not-found marker counts as 500 and anything else as 200.

Forms are not serialized. Staged input is replayed against the live page
one element at a time, then the submit button is clicked.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

import structlog

from ..config import Config, RemoteConfig
from ..exceptions import ConfigError, ElementNotFound, UnsupportedOperation
from ..forms import FormDescriptor
from ..locator import ElementHandle
from ..page import PageState
from .base import Backend

logger = structlog.get_logger(__name__)

# WebDriver locator strategies.
BY_ID = "id"
BY_CSS = "css selector"
BY_LINK_TEXT = "link text"
BY_XPATH = "xpath"

FORM_CONTROLS = ("input", "select", "textarea")


class DriverElementMissing(LookupError):
    """Raised by drivers when a lookup matches nothing."""


class BrowserDriver(ABC):
    """
    The handful of live-browser commands the remote session needs.

    Element objects are whatever the driver library hands back; the session
    only passes them back into the same driver.
    """

    @abstractmethod
    def open(self, url: str) -> None:
        pass

    @abstractmethod
    def source(self) -> str:
        pass

    @abstractmethod
    def current_url(self) -> str:
        pass

    @abstractmethod
    def find(self, strategy: str, value: str) -> Any:
        """
        Find the first element matching a WebDriver locator.

        Args:
            strategy: One of "id", "css selector", "link text", "xpath"
            value: Locator value

        Raises:
            DriverElementMissing: nothing matched
        """
        pass

    @abstractmethod
    def click(self, element: Any) -> None:
        pass

    @abstractmethod
    def set_value(self, element: Any, value: str) -> None:
        pass

    @abstractmethod
    def is_checked(self, element: Any) -> bool:
        pass

    @abstractmethod
    def tag_name(self, element: Any) -> str:
        pass

    @abstractmethod
    def attribute(self, element: Any, name: str) -> Optional[str]:
        pass

    @abstractmethod
    def select_option(self, element: Any, option: str) -> None:
        """Choose an option of a <select> by value, falling back to its label."""
        pass

    @abstractmethod
    def attach_file(self, element: Any, path: str) -> None:
        pass

    @abstractmethod
    def submit(self, element: Any) -> None:
        """Submit a <form> element directly."""
        pass

    @abstractmethod
    def alert_text(self) -> str:
        """Text of the open alert box; raises NoAlertOpen if there is none."""
        pass

    @abstractmethod
    def accept_alert(self) -> None:
        pass

    @abstractmethod
    def screenshot(self) -> bytes:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


def create_driver(remote: RemoteConfig) -> BrowserDriver:
    """Build the browser driver named by the remote configuration."""
    if remote.driver == "webdriver":
        from .webdriver import WebDriverDriver

        return WebDriverDriver(host=remote.host, browser=remote.browser, headless=remote.headless)

    if remote.driver == "playwright":
        from .playwright import PlaywrightDriver

        endpoint = remote.host if remote.host.startswith("ws") else None
        return PlaywrightDriver(browser=remote.browser, headless=remote.headless, ws_endpoint=endpoint)

    raise ConfigError(f"Unknown remote driver: {remote.driver}")


def css_string(value: str) -> str:
    """Quote a value for use inside a CSS attribute selector."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def xpath_string(value: str) -> str:
    """Quote a value as an XPath string literal."""
    if '"' not in value:
        return f'"{value}"'
    if "'" not in value:
        return f"'{value}'"
    parts = value.split('"')
    return "concat(" + ", '\"', ".join(f'"{part}"' for part in parts) + ")"


def control_selector(key: str) -> str:
    """CSS selector for the form control whose id or name is key."""
    quoted = css_string(key)
    return ", ".join(f"{tag}[id={quoted}], {tag}[name={quoted}]" for tag in FORM_CONTROLS)


class RemoteSession(Backend):
    """
    Backend that drives a live browser.

    Example:
        ```python
        backend = RemoteSession(Config())  # WebDriver at localhost:4444, Firefox
        with Emulator(backend) as browser:
            browser.visit("/").click("Sign in").wait(2).see("Welcome back")
        ```

    Args:
        config: Harness configuration (remote.browser, remote.host, remote.driver)
        driver_factory: Callable taking a RemoteConfig and returning a
            BrowserDriver; overrides remote.driver
    """

    name = "remote"
    follows_redirects = True
    is_live = True

    def __init__(self, config: Optional[Config] = None, driver_factory=None):
        super().__init__(config)
        self.driver_factory = driver_factory or create_driver

    def _open_session(self) -> BrowserDriver:
        remote = self.config.remote
        logger.info("browser_session_starting", driver=remote.driver, browser=remote.browser, host=remote.host)
        return self.driver_factory(remote)

    def navigate(
        self,
        method: str,
        url: str,
        form_data: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, Path]] = None,
        headers: Optional[Mapping[str, str]] = None,
        json: Any = None,
    ) -> PageState:
        if method.upper() != "GET" or files or json is not None:
            raise UnsupportedOperation(
                f"A live browser session can only open pages; can't send a {method.upper()} request to {url}."
            )
        if form_data:
            url = f"{url}{'&' if '?' in url else '?'}{urlencode(form_data, doseq=True)}"

        self.current_session().open(url)
        logger.debug("navigate", backend=self.name, url=url)
        return self.refresh()

    def refresh(self) -> PageState:
        driver = self.current_session()
        body = driver.source()
        return PageState(url=driver.current_url(), status_code=self._status_code(body), body=body)

    def _status_code(self, body: str) -> int:
        # No real HTTP status is available from a browser session.
        lowered = body.lower()
        for marker in self.config.remote.not_found_markers:
            if marker.lower() in lowered:
                return 500
        return 200

    def follow(self, page: PageState, link: ElementHandle, url: str) -> PageState:
        driver = self.current_session()
        driver.click(self._element_for(link, page.url))
        return self.refresh()

    def submit(self, page: PageState, form: FormDescriptor, staged: Dict[str, Any]) -> PageState:
        driver = self.current_session()

        for key, value in staged.items():
            element = self._find(page.url, key, BY_CSS, control_selector(key))
            self._apply(element, key, value, page.url)

        if form.button is not None:
            driver.click(self._element_for(form.button, page.url))
        else:
            driver.submit(self._find(page.url, "form", BY_CSS, "form"))

        return self.refresh()

    def _apply(self, element: Any, key: str, value: Any, url: str) -> None:
        driver = self.current_session()
        tag = driver.tag_name(element).lower()
        input_type = (driver.attribute(element, "type") or "text").lower() if tag == "input" else None

        if input_type == "checkbox":
            wanted = value if isinstance(value, bool) else bool(value)
            # Only click when the box is not already in the wanted state.
            if driver.is_checked(element) != wanted:
                driver.click(element)
        elif input_type == "radio":
            name = driver.attribute(element, "name") or key
            selector = f"input[type=radio][name={css_string(name)}][value={css_string(str(value))}]"
            driver.click(self._find(url, key, BY_CSS, selector))
        elif tag == "select":
            driver.select_option(element, str(value))
        elif input_type == "file" or isinstance(value, Path):
            driver.attach_file(element, str(Path(value).resolve()))
        else:
            driver.set_value(element, str(value))

    def _element_for(self, handle: ElementHandle, url: str) -> Any:
        """Find the live counterpart of an element located in a snapshot."""
        tag = handle.tag_name
        if handle.strategy == "id":
            return self._find(url, handle.key, BY_ID, handle.element_id)
        if handle.strategy == "name":
            return self._find(url, handle.key, BY_CSS, f"{tag}[name={css_string(handle.name)}]")
        if handle.strategy == "value":
            return self._find(url, handle.key, BY_CSS, f"{tag}[value={css_string(handle.element['value'])}]")
        if handle.strategy == "alt":
            if tag == "a":
                return self._find(url, handle.key, BY_XPATH, f"//a[.//img[@alt={xpath_string(handle.key)}]]")
            return self._find(url, handle.key, BY_CSS, f"input[alt={css_string(handle.key)}]")
        if tag == "a":
            return self._find(url, handle.key, BY_LINK_TEXT, handle.text)
        return self._find(url, handle.key, BY_XPATH, f"//{tag}[normalize-space(.)={xpath_string(handle.text)}]")

    def _find(self, url: str, key: str, strategy: str, value: str) -> Any:
        try:
            return self.current_session().find(strategy, value)
        except DriverElementMissing as e:
            raise ElementNotFound(
                key,
                url,
                f"Couldn't find an element with a name or id attribute of '{key}' in the browser on '{url}'.",
            ) from e

    def alert_text(self) -> str:
        return self.current_session().alert_text()

    def accept_alert(self) -> None:
        self.current_session().accept_alert()

    def screenshot(self) -> bytes:
        return self.current_session().screenshot()
