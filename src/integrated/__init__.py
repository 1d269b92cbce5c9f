"""
integrated - Fluent integration testing with a simulated browser

Write tests the way a user clicks through a site:
1. Visit a page and look for text
2. Fill in fields, tick boxes, pick options
3. Press a button and check where you landed

The same test runs against three execution models:
- StatelessCrawler: real HTTP requests to a running server (httpx)
- InProcessDispatcher: requests dispatched straight into an ASGI app
- RemoteSession: a live browser over WebDriver or Playwright

Quick Start:
    ```python
    from integrated import AppTest

    from myproject.app import app


    class TestLogin(AppTest):
        app = app

        def test_login(self):
            self.browser.visit("/login") \\
                .type("alice", "#username") \\
                .type("secret", "#password") \\
                .press("Log In") \\
                .see_page_is("/dashboard") \\
                .and_see("Welcome, alice")
    ```

Without pytest:
    ```python
    from integrated import Emulator
    from integrated.backends import StatelessCrawler

    with Emulator(StatelessCrawler(), base_url="http://localhost:8888") as browser:
        browser.visit("/").click("About").see("Our team")
    ```

Hooks:
    ```python
    from integrated import CrawlerTest, setup, teardown

    class TestCart(CrawlerTest):
        @setup
        def seed(self):
            ...

        @teardown
        def clean(self):
            ...
    ```
"""

from .config import (
    Config,
    DatabaseConfig,
    RemoteConfig,
    load_config,
)
from .exceptions import (
    IntegratedError,
    ElementNotFound,
    FormNotFound,
    AmbiguousForm,
    PageLoadFailure,
    AssertionFailure,
    RedirectLoopDetected,
    UnsupportedOperation,
    NoAlertOpen,
    NoPageLoaded,
    ConfigError,
)
from .page import PageState
from .locator import ElementHandle, ElementKind, ElementLocator
from .forms import FormDescriptor, FormResolver
from .inputs import InputStage
from .backends import (
    Backend,
    StatelessCrawler,
    InProcessDispatcher,
    RemoteSession,
    BrowserDriver,
    create_backend,
)
from .database import DatabaseAdapter
from .diagnostics import Diagnostics
from .hooks import setup, teardown, hooks_for, run_hooks
from .emulator import Emulator, EmulatorState, create_emulator
from .testcase import IntegrationTest, CrawlerTest, AppTest, BrowserTest

__version__ = "0.1.0"
__author__ = "integrated Contributors"
__license__ = "MIT"

__all__ = [
    # Main classes
    "Emulator",
    "EmulatorState",
    "create_emulator",
    # Test cases
    "IntegrationTest",
    "CrawlerTest",
    "AppTest",
    "BrowserTest",
    "setup",
    "teardown",
    "hooks_for",
    "run_hooks",
    # Backends
    "Backend",
    "StatelessCrawler",
    "InProcessDispatcher",
    "RemoteSession",
    "BrowserDriver",
    "create_backend",
    # Page model
    "PageState",
    "ElementHandle",
    "ElementKind",
    "ElementLocator",
    "FormDescriptor",
    "FormResolver",
    "InputStage",
    # Configuration
    "Config",
    "DatabaseConfig",
    "RemoteConfig",
    "load_config",
    "DatabaseAdapter",
    "Diagnostics",
    # Errors
    "IntegratedError",
    "ElementNotFound",
    "FormNotFound",
    "AmbiguousForm",
    "PageLoadFailure",
    "AssertionFailure",
    "RedirectLoopDetected",
    "UnsupportedOperation",
    "NoAlertOpen",
    "NoPageLoaded",
    "ConfigError",
]
