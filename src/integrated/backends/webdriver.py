"""
Selenium WebDriver browser driver.

Connects to a WebDriver server (Selenium standalone or Grid) and forwards
the remote session's commands to it.
"""

from typing import Any, Optional

import structlog

from ..config import DEFAULT_BROWSER, DEFAULT_WEBDRIVER_HOST
from ..exceptions import ConfigError, NoAlertOpen
from .remote import BrowserDriver, DriverElementMissing

logger = structlog.get_logger(__name__)


class WebDriverDriver(BrowserDriver):
    """
    Browser driver backed by selenium's Remote WebDriver.

    Args:
        host: WebDriver server URL
        browser: firefox, chrome, chromium, edge or safari
        headless: Ask the browser to run without a window
    """

    def __init__(self, host: str = DEFAULT_WEBDRIVER_HOST, browser: str = DEFAULT_BROWSER, headless: bool = True):
        from selenium import webdriver

        self.host = host
        self.browser = browser
        self.driver = webdriver.Remote(command_executor=host, options=self._options(webdriver, browser, headless))
        logger.info("webdriver_connected", host=host, browser=browser)

    @staticmethod
    def _options(webdriver, browser: str, headless: bool):
        name = browser.lower()
        if name == "firefox":
            options = webdriver.FirefoxOptions()
            if headless:
                options.add_argument("-headless")
        elif name in ("chrome", "chromium"):
            options = webdriver.ChromeOptions()
            if headless:
                options.add_argument("--headless=new")
        elif name == "edge":
            options = webdriver.EdgeOptions()
            if headless:
                options.add_argument("--headless=new")
        elif name == "safari":
            options = webdriver.SafariOptions()
        else:
            raise ConfigError(f"Unsupported browser for WebDriver: {browser}")
        return options

    def open(self, url: str) -> None:
        self.driver.get(url)

    def source(self) -> str:
        return self.driver.page_source

    def current_url(self) -> str:
        return self.driver.current_url

    def find(self, strategy: str, value: str) -> Any:
        from selenium.common.exceptions import NoSuchElementException

        try:
            return self.driver.find_element(strategy, value)
        except NoSuchElementException as e:
            raise DriverElementMissing(f"{strategy}={value}") from e

    def click(self, element: Any) -> None:
        element.click()

    def set_value(self, element: Any, value: str) -> None:
        element.clear()
        element.send_keys(value)

    def is_checked(self, element: Any) -> bool:
        return element.is_selected()

    def tag_name(self, element: Any) -> str:
        return element.tag_name

    def attribute(self, element: Any, name: str) -> Optional[str]:
        return element.get_attribute(name)

    def select_option(self, element: Any, option: str) -> None:
        from selenium.common.exceptions import NoSuchElementException
        from selenium.webdriver.support.ui import Select

        select = Select(element)
        try:
            select.select_by_value(option)
        except NoSuchElementException:
            select.select_by_visible_text(option)

    def attach_file(self, element: Any, path: str) -> None:
        element.send_keys(path)

    def submit(self, element: Any) -> None:
        element.submit()

    def alert_text(self) -> str:
        from selenium.common.exceptions import NoAlertPresentException

        try:
            return self.driver.switch_to.alert.text
        except NoAlertPresentException as e:
            raise NoAlertOpen("No alert box is open.") from e

    def accept_alert(self) -> None:
        from selenium.common.exceptions import NoAlertPresentException

        try:
            self.driver.switch_to.alert.accept()
        except NoAlertPresentException as e:
            raise NoAlertOpen("No alert box is open.") from e

    def screenshot(self) -> bytes:
        return self.driver.get_screenshot_as_png()

    def close(self) -> None:
        self.driver.quit()
        logger.info("webdriver_closed", host=self.host)
