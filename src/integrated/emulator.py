"""
The browser emulator.

Emulator is the object tests talk to. It keeps the current page, stages
form input until a button is pressed, and turns every navigation into a
call on one execution backend. Every fluent call returns the emulator, so
a test reads as a sentence:

    browser.visit("/login") \\
        .type("alice", "#username") \\
        .type("secret", "#password") \\
        .press("Log In") \\
        .see_page_is("/dashboard") \\
        .and_see("Welcome, alice")

Assertion misses and failed page loads write the page body to the
diagnostics log before raising.
"""

import json
import os
import re
import time
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union
from urllib.parse import urljoin

import structlog

from .api import ApiRequests
from .backends import Backend, create_backend
from .config import DEFAULT_BASE_URL, Config, load_config
from .database import DatabaseAdapter
from .diagnostics import Diagnostics
from .exceptions import AssertionFailure, ConfigError, NoAlertOpen, NoPageLoaded, PageLoadFailure, RedirectLoopDetected
from .forms import FormResolver
from .hooks import SETUP, TEARDOWN, run_hooks
from .inputs import InputStage
from .locator import ElementKind, ElementLocator, normalize_key
from .page import PageState, prepare_url, same_url

logger = structlog.get_logger(__name__)

# Larger waits are almost always milliseconds passed by mistake.
MAX_WAIT_SECONDS = 1000
DEFAULT_WAIT_SECONDS = 4


class EmulatorState(Enum):
    IDLE = "idle"
    ON_PAGE = "on_page"


class Emulator(ApiRequests):
    """
    Fluent browser emulator over a pluggable backend.

    Example:
        ```python
        from integrated import Emulator
        from integrated.backends import InProcessDispatcher

        with Emulator(InProcessDispatcher(app)) as browser:
            browser.visit("/register").type("alice", "#name").press("Sign Up").see("Welcome")
        ```

    Args:
        backend: Execution backend (crawler, dispatcher or remote session)
        config: Harness configuration (defaults to the backend's)
        base_url: Base URL for relative paths; falls back to config.base_url,
            then the backend's default, then http://localhost:8888
        database: DatabaseAdapter for see_in_database(); built lazily from
            config.database when omitted
        diagnostics: Where failure output goes (defaults to config paths)
        hook_target: Object whose @setup/@teardown hooks run around a test
    """

    def __init__(
        self,
        backend: Backend,
        config: Optional[Config] = None,
        base_url: Optional[str] = None,
        database: Optional[DatabaseAdapter] = None,
        diagnostics: Optional[Diagnostics] = None,
        hook_target: Any = None,
    ):
        self.backend = backend
        self.config = config or backend.config
        self.base_url = base_url or self.config.base_url or backend.default_base_url or DEFAULT_BASE_URL
        self.locator = ElementLocator()
        self.inputs = InputStage(self.locator)
        self.forms = FormResolver(self.locator)
        self.diagnostics = diagnostics or Diagnostics(self.config.log_path, self.config.screenshot_path)
        self.hook_target = self if hook_target is None else hook_target
        self.headers: Dict[str, str] = {}
        self._database = database
        self._page: Optional[PageState] = None
        self._closed = False

    # Page state

    @property
    def state(self) -> EmulatorState:
        return EmulatorState.IDLE if self._page is None else EmulatorState.ON_PAGE

    @property
    def page(self) -> PageState:
        return self._require_page("read the page")

    @property
    def current_url(self) -> Optional[str]:
        return self._page.url if self._page is not None else None

    @property
    def status_code(self) -> Optional[int]:
        return self._page.status_code if self._page is not None else None

    @property
    def body(self) -> str:
        return self._page.body if self._page is not None else ""

    content = body

    def prepare_url(self, path: str) -> str:
        return prepare_url(path, self.base_url)

    def _require_page(self, operation: str) -> PageState:
        if self._page is None:
            raise NoPageLoaded(operation)
        return self._page

    def _set_page(self, page: PageState) -> None:
        self._page = page

    def _fail(self, message: str):
        self.diagnostics.capture(self.body)
        logger.info("assertion_failed", url=self.current_url, message=message)
        raise AssertionFailure(message)

    def _land(self, page: PageState, resend: Optional[Callable[[str], PageState]] = None) -> PageState:
        """
        Follow redirects the backend left for us, then make the result current.

        resend(url) repeats the original request on a new URL. It is used for
        307 and 308; any other redirect is followed with a GET.
        """
        hops = 0
        while not self.backend.follows_redirects and page.is_redirect:
            hops += 1
            if hops > self.config.max_redirects:
                raise RedirectLoopDetected(page.location, hops - 1)
            logger.debug("redirect_followed", backend=self.backend.name, target=page.location, hop=hops)
            if resend is not None and page.preserves_method:
                page = resend(page.location)
            else:
                resend = None
                page = self.backend.navigate("GET", page.location)
        self._set_page(page)
        return page

    # Navigation

    def visit(self, path: str):
        """
        Open a page and assert that it loaded.

        Args:
            path: Absolute URL, or a path joined onto the base URL

        Raises:
            PageLoadFailure: the final response was not a 200
            RedirectLoopDetected: too many redirects
        """
        url = self.prepare_url(path)
        self.inputs.clear()
        logger.info("visit", url=url, backend=self.backend.name)

        self._land(self.backend.navigate("GET", url))
        self.assert_page_loaded(url)
        return self

    def assert_page_loaded(self, uri: Optional[str] = None, message: Optional[str] = None):
        """Raise PageLoadFailure unless the current page answered 200."""
        page = self._require_page("check the page load")
        uri = uri or page.url
        if page.status_code == 200:
            return self

        self.diagnostics.capture(page.body)
        message = message or f"A GET request to '{uri}' failed. Got a {page.status_code} code instead."
        detail = self.backend.describe_failure(page)
        if detail:
            message = f"{message}\n\n{detail}"
        logger.warning("page_load_failed", url=uri, status=page.status_code)
        raise PageLoadFailure(uri, page.status_code, message)

    def click(self, name: str):
        """
        Follow the link whose text, id or name matches.

        Raises:
            ElementNotFound: no such link; nothing is navigated
        """
        page = self._require_page(f"click '{name}'")
        link = self.locator.locate(page, name, ElementKind.LINK)
        url = self.prepare_url(urljoin_href(page.url, link.href))

        self.inputs.clear()
        logger.info("click", link=name, url=url)
        self._land(self.backend.follow(page, link, url))
        self.assert_page_loaded(url)
        return self

    def follow(self, text: str):
        return self.click(text)

    # Form input

    def type(self, text: str, element: str):
        """Fill in a text field, found by id or name."""
        self.inputs.stage(self._require_page(f"type into '{element}'"), element, text)
        return self

    def fill(self, text: str, element: str):
        return self.type(text, element)

    def check(self, element: str):
        self.inputs.stage(self._require_page(f"check '{element}'"), element, True)
        return self

    def tick(self, element: str):
        return self.check(element)

    def uncheck(self, element: str):
        self.inputs.stage(self._require_page(f"uncheck '{element}'"), element, False)
        return self

    def select(self, element: str, option: str):
        """Choose an option of a dropdown by its value or label."""
        self.inputs.stage(self._require_page(f"select from '{element}'"), element, option)
        return self

    def attach_file(self, element: str, path: Union[str, Path]):
        self.inputs.stage(self._require_page(f"attach a file to '{element}'"), element, Path(path))
        return self

    def press(self, button_text: str):
        """Submit the form owning the button, with everything staged so far."""
        return self.submit_form(button_text)

    def submit_form(self, button_text: Optional[str] = None, data: Optional[Dict[str, Any]] = None):
        """
        Submit a form.

        Args:
            button_text: Text, value, name or id of the submit button. When
                omitted the page must hold exactly one form.
            data: Extra field values, laid over anything staged

        Raises:
            FormNotFound: no form matched
            PageLoadFailure: the response to the submission was not a 200
        """
        page = self._require_page("submit a form")
        staged = self.inputs.snapshot()
        for key, value in (data or {}).items():
            staged[normalize_key(key)] = value

        # Staged input survives a button that does not resolve.
        form = self.forms.resolve(page, button_text, staged)
        self.inputs.clear()
        logger.info("submit", method=form.method, action=form.action, fields=sorted(form.fields))

        self._land(
            self.backend.submit(page, form, staged),
            resend=lambda url: self.backend.navigate(form.method, url, form.fields, form.files),
        )
        self.assert_page_loaded(form.action)
        return self

    # Assertions

    def see(self, text: str):
        """
        Assert that the page body matches text, case-insensitively.

        text is used as a regular expression; if it isn't a valid one it is
        searched for literally.
        """
        page = self._require_page(f"look for '{text}'")
        try:
            found = re.search(text, page.body, re.IGNORECASE)
        except re.error:
            found = re.search(re.escape(text), page.body, re.IGNORECASE)

        if not found:
            self._fail(f"Could not find '{text}' on the page, '{page.url}'.")
        return self

    def see_page_is(self, path: str):
        """Assert that the current URL is path (trailing slashes ignored)."""
        uri = self.prepare_url(path)
        self.assert_page_loaded(uri)
        if not same_url(uri, self._page.url):
            self._fail(f"Expected to be on the page, {uri}, but wasn't.")
        return self

    def on_page(self, path: str):
        return self.see_page_is(path)

    @property
    def database(self) -> DatabaseAdapter:
        if self._database is None:
            if self.config.database is None:
                raise ConfigError("No database is configured; add a 'pdo' section to integrated.json.")
            self._database = DatabaseAdapter.from_config(self.config.database)
        return self._database

    def see_in_database(self, table: str, fields: Dict[str, Any]):
        """Assert that table holds at least one row with the given column values."""
        count = self.database.row_count(table, fields)
        if count <= 0:
            self._fail(
                f"Didn't see row in the '{table}' table that matched the attributes '{json.dumps(fields)}'."
            )
        return self

    def verify_in_database(self, table: str, fields: Dict[str, Any]):
        return self.see_in_database(table, fields)

    def see_file(self, path: Union[str, Path]):
        if not Path(path).exists():
            self._fail(f"Failed asserting that file '{path}' exists.")
        return self

    # Live sessions

    def wait(self, seconds: float = DEFAULT_WAIT_SECONDS):
        """Pause, then re-read the page on live backends."""
        if seconds >= MAX_WAIT_SECONDS:
            seconds = DEFAULT_WAIT_SECONDS
        time.sleep(seconds)

        if self.backend.is_live and self._page is not None:
            self._set_page(self.backend.refresh())
        return self

    def see_in_alert(self, text: str, accept: bool = True):
        try:
            alert = self.backend.alert_text()
        except NoAlertOpen:
            self._fail(f"Could not see '{text}' because no alert box was shown.")

        if text not in alert:
            self._fail(f"Expected the alert box to contain '{text}', but it said '{alert}'.")
        if accept:
            self.accept_alert()
        return self

    def accept_alert(self):
        try:
            self.backend.accept_alert()
        except NoAlertOpen:
            self._fail("Tried to accept the alert, but there wasn't one.")
        return self

    def snap(self, destination: Optional[Union[str, Path]] = None):
        """Save a screenshot of the live page."""
        self.diagnostics.save_screenshot(self.backend.screenshot(), destination)
        return self

    def dump(self):
        """Write the page to the diagnostics log, print it and stop the process."""
        self.diagnostics.capture(self.body)
        print(self.body, flush=True)
        os._exit(1)

    # Lifecycle

    def setup(self):
        run_hooks(self.hook_target, SETUP)
        return self

    def teardown(self) -> None:
        """Run teardown hooks, then release the backend session once."""
        try:
            run_hooks(self.hook_target, TEARDOWN)
        finally:
            if not self._closed:
                self._closed = True
                self.backend.close()
            self._page = None
            self.inputs.clear()

    def __enter__(self):
        try:
            return self.setup()
        except BaseException:
            self.teardown()
            raise

    def __exit__(self, exc_type, exc, tb):
        self.teardown()
        return False

    # Chained aliases, e.g. browser.visit("/").and_see("Home").and_click("About")
    and_visit = visit
    and_see = see
    and_see_page_is = see_page_is
    and_on_page = on_page
    and_click = click
    and_follow = follow
    and_type = type
    and_fill = fill
    and_check = check
    and_tick = tick
    and_uncheck = uncheck
    and_select = select
    and_attach_file = attach_file
    and_press = press
    and_submit_form = submit_form
    and_see_in_database = see_in_database
    and_verify_in_database = verify_in_database
    and_see_file = see_file
    and_wait = wait
    and_see_in_alert = see_in_alert
    and_accept_alert = accept_alert
    and_snap = snap


def urljoin_href(page_url: str, href: Optional[str]) -> str:
    """Absolute target of a link; an anchor without href points at the page itself."""
    return urljoin(page_url, href) if href else page_url


def create_emulator(backend_type: str = "crawler", config: Optional[Config] = None, **kwargs) -> Emulator:
    """
    Create an Emulator with sensible defaults.

    Reads ./integrated.json when no config is given.

    Args:
        backend_type: "crawler", "dispatcher" or "remote"
        config: Harness configuration
        **kwargs: Passed to the backend (app= for the dispatcher)

    Returns:
        Configured Emulator instance

    Example:
        browser = create_emulator()
        browser = create_emulator("dispatcher", app=app)
    """
    config = config or load_config()
    return Emulator(create_backend(backend_type, config, **kwargs), config)
