"""
In-process dispatch backend.

Requests go straight into an ASGI application through Starlette's
TestClient, with no network hop. Redirects are followed here until the
application answers with something other than a redirect. Each hop is a GET,
except 307 and 308, which repeat the original method and body.
"""

from contextlib import ExitStack
from pathlib import Path
from typing import Any, Mapping, Optional
from urllib.parse import urljoin

import structlog
from starlette.testclient import TestClient

from ..config import Config
from ..exceptions import RedirectLoopDetected
from ..page import METHOD_PRESERVING_REDIRECTS, PageState
from .base import Backend, request_options

logger = structlog.get_logger(__name__)


class InProcessDispatcher(Backend):
    """
    Backend that dispatches requests into the application under test.

    Example:
        ```python
        from myproject.app import app

        browser = Emulator(InProcessDispatcher(app))
        browser.visit("/register").type("alice", "#name").press("Sign Up")
        ```

    Args:
        app: ASGI application (Starlette, FastAPI, ...)
        config: Harness configuration
        headers: Headers sent with every request
    """

    name = "dispatcher"
    follows_redirects = True
    default_base_url = "http://localhost"

    def __init__(self, app, config: Optional[Config] = None, headers: Optional[Mapping[str, str]] = None):
        super().__init__(config)
        self.app = app
        self.headers = dict(headers or {})

    def _open_session(self) -> TestClient:
        return TestClient(
            self.app,
            base_url=self.default_base_url,
            raise_server_exceptions=False,
            headers=self.headers,
        )

    def navigate(
        self,
        method: str,
        url: str,
        form_data: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, Path]] = None,
        headers: Optional[Mapping[str, str]] = None,
        json: Any = None,
    ) -> PageState:
        method = method.upper()
        response = self._dispatch(method, url, form_data, files, headers, json)

        hops = 0
        while response.is_redirect:
            hops += 1
            target = urljoin(str(response.url), response.headers["location"])
            if hops > self.config.max_redirects:
                raise RedirectLoopDetected(target, hops - 1)
            logger.debug("redirect_followed", backend=self.name, target=target, hop=hops)
            if response.status_code not in METHOD_PRESERVING_REDIRECTS:
                method, form_data, files, json = "GET", None, None, None
            response = self._dispatch(method, target, form_data, files, headers, json)

        return PageState(
            url=str(response.url),
            status_code=response.status_code,
            body=response.text,
            headers=dict(response.headers),
        )

    def _dispatch(self, method, url, form_data, files, headers, json):
        client = self.current_session()

        with ExitStack() as stack:
            options = request_options(stack, method, form_data, files, json)
            response = client.request(method, url, headers=headers, follow_redirects=False, **options)

        logger.debug("navigate", backend=self.name, method=method, url=url, status=response.status_code)
        return response

    def describe_failure(self, page: PageState) -> str:
        if page.status_code < 500:
            return ""

        # Error pages usually name the exception in their title or heading.
        soup = page.snapshot
        for selector in (".exception_title", "title", "h1"):
            element = soup.select_one(selector)
            if element is not None:
                text = " ".join(element.get_text(" ").split())
                if text:
                    return text
        return page.body.strip()[:200]
