"""
Base classes for pytest test classes.

Subclass one of these and each test method gets a fresh emulator as
self.browser. Methods tagged @setup run before the test; methods tagged
@teardown run after it, followed by the backend shutdown, even when the
test body failed.

Example:
    ```python
    from integrated import AppTest, setup

    from myproject.app import app


    class TestSignup(AppTest):
        app = app

        @setup
        def start_clean(self):
            reset_database()

        def test_register(self):
            self.browser.visit("/register").type("alice", "#name").press("Sign Up").see("Welcome")
    ```
"""

from typing import Optional

import pytest

from .backends import Backend, InProcessDispatcher, RemoteSession, StatelessCrawler
from .config import Config
from .emulator import Emulator


class IntegrationTest:
    """Binds one Emulator per test to self.browser."""

    base_url: Optional[str] = None
    browser: Emulator

    def create_backend(self, config: Config) -> Backend:
        raise NotImplementedError("Subclasses must say which backend to drive")

    @pytest.fixture(autouse=True)
    def _integrated_browser(self, integrated_config):
        self.browser = Emulator(
            self.create_backend(integrated_config),
            integrated_config,
            base_url=self.base_url,
            hook_target=self,
        )
        try:
            self.browser.setup()
            yield self.browser
        finally:
            self.browser.teardown()


class CrawlerTest(IntegrationTest):
    """Tests that crawl a running server over HTTP."""

    def create_backend(self, config: Config) -> Backend:
        return StatelessCrawler(config)


class AppTest(IntegrationTest):
    """
    Tests that dispatch into an ASGI app in-process.

    Set the app class attribute, or override create_app().
    """

    app = None

    def create_app(self):
        if self.app is None:
            raise NotImplementedError("Set the 'app' attribute or override create_app()")
        return self.app

    def create_backend(self, config: Config) -> Backend:
        return InProcessDispatcher(self.create_app(), config)


class BrowserTest(IntegrationTest):
    """Tests that drive a real browser over WebDriver or Playwright."""

    def create_backend(self, config: Config) -> Backend:
        return RemoteSession(config)
