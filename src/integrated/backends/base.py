"""
Abstract base interface for execution backends.

A backend performs navigations and submissions against one concrete
execution model and reports the resulting page back as a PageState. The
emulator only relies on this contract, so backends can be swapped without
touching test code.
"""

from abc import ABC, abstractmethod
from contextlib import ExitStack
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import structlog

from ..config import Config
from ..forms import FormDescriptor
from ..locator import ElementHandle
from ..exceptions import UnsupportedOperation
from ..page import PageState

logger = structlog.get_logger(__name__)


class Backend(ABC):
    """
    Abstract interface for execution backends.

    Implement this interface to drive the emulator through a new execution
    model.

    Example:
        class MyBackend(Backend):
            name = "mine"

            def _open_session(self):
                return MyClient()

            def navigate(self, method, url, form_data=None, files=None, headers=None, json=None):
                response = self.current_session().send(method, url, form_data)
                return PageState(response.url, response.status, response.text)
    """

    name = "backend"

    # Whether navigate() already resolves redirects. When False, the
    # emulator follows 3xx responses itself with explicit GETs.
    follows_redirects = False

    # Whether the backend drives a live page that can change between
    # navigations (client-side rendering, alerts, screenshots).
    is_live = False

    # Base URL used when neither the test nor the config names one.
    default_base_url: Optional[str] = None

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self._session = None

    def current_session(self):
        """Return the backend session, creating it on first use."""
        if self._session is None:
            self._session = self._open_session()
            logger.debug("session_opened", backend=self.name)
        return self._session

    @property
    def has_session(self) -> bool:
        return self._session is not None

    @abstractmethod
    def _open_session(self):
        """Create the backend-specific session (client, app, browser)."""
        pass

    @abstractmethod
    def navigate(
        self,
        method: str,
        url: str,
        form_data: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, Path]] = None,
        headers: Optional[Mapping[str, str]] = None,
        json: Any = None,
    ) -> PageState:
        """
        Issue one navigation and return the resulting page.

        Args:
            method: HTTP method
            url: Absolute URL
            form_data: Query parameters for GET, form body otherwise
            files: Field name -> local path of files to upload
            headers: Extra request headers
            json: JSON body, for API calls

        Returns:
            PageState of the response
        """
        pass

    def follow(self, page: PageState, link: ElementHandle, url: str) -> PageState:
        """Follow a link found on the page. Plain backends just GET its href."""
        return self.navigate("GET", url)

    def submit(self, page: PageState, form: FormDescriptor, staged: Dict[str, Any]) -> PageState:
        """
        Submit a resolved form.

        The default sends one encoded form body built from the descriptor.
        """
        return self.navigate(form.method, form.action, form.fields, form.files)

    def refresh(self) -> PageState:
        """Re-read the current page from a live session."""
        raise UnsupportedOperation(f"The {self.name} backend has no live page to refresh.")

    def alert_text(self) -> str:
        raise UnsupportedOperation(f"The {self.name} backend can't read alert boxes.")

    def accept_alert(self) -> None:
        raise UnsupportedOperation(f"The {self.name} backend can't accept alert boxes.")

    def screenshot(self) -> bytes:
        raise UnsupportedOperation(f"The {self.name} backend can't take screenshots.")

    def describe_failure(self, page: PageState) -> str:
        """Extra detail to append to a page-load failure message."""
        return ""

    def close(self) -> None:
        """Release the session. Safe to call more than once."""
        session, self._session = self._session, None
        if session is not None:
            self._close_session(session)
            logger.debug("session_closed", backend=self.name)

    def _close_session(self, session) -> None:
        close = getattr(session, "close", None)
        if close is not None:
            close()


def request_options(
    stack: ExitStack,
    method: str,
    form_data: Optional[Mapping[str, Any]] = None,
    files: Optional[Mapping[str, Path]] = None,
    json: Any = None,
) -> Dict[str, Any]:
    """
    Keyword arguments for an httpx-style request.

    GET data goes into the query string; other methods send a form body,
    multipart when files are attached. Upload handles are registered on the
    stack so they close once the request is done.
    """
    options: Dict[str, Any] = {}
    if method == "GET":
        if form_data:
            options["params"] = dict(form_data)
    elif json is not None:
        options["json"] = json
    else:
        if form_data:
            options["data"] = dict(form_data)
        if files:
            options["files"] = {
                name: (Path(path).name, stack.enter_context(open(path, "rb")))
                for name, path in files.items()
            }
    return options
