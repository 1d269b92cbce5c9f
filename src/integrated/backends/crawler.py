"""
Stateless HTTP crawler backend.

Every navigation is one outbound request made with httpx; the raw response
becomes the new page. Redirects are not followed here: a 3xx comes back as
its own PageState and the emulator issues the follow-up GET.
"""

from contextlib import ExitStack
from pathlib import Path
from typing import Any, Mapping, Optional

import httpx
import structlog

from ..config import Config
from ..page import PageState
from .base import Backend, request_options

logger = structlog.get_logger(__name__)


class StatelessCrawler(Backend):
    """
    Backend that talks to a running application over HTTP.

    Example:
        ```python
        backend = StatelessCrawler(Config(base_url="http://localhost:8888"))
        browser = Emulator(backend)
        browser.visit("/login").see("Sign in")
        ```

    Args:
        config: Harness configuration
        transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
        headers: Headers sent with every request
    """

    name = "crawler"
    follows_redirects = False

    def __init__(
        self,
        config: Optional[Config] = None,
        transport: Optional[httpx.BaseTransport] = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        super().__init__(config)
        self.transport = transport
        self.headers = dict(headers or {})

    def _open_session(self) -> httpx.Client:
        return httpx.Client(
            follow_redirects=False,
            timeout=self.config.timeout,
            headers=self.headers,
            transport=self.transport,
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
        client = self.current_session()
        method = method.upper()

        with ExitStack() as stack:
            options = request_options(stack, method, form_data, files, json)
            response = client.request(method, url, headers=headers, **options)

        logger.debug("navigate", backend=self.name, method=method, url=url, status=response.status_code)
        return PageState(
            url=str(response.url),
            status_code=response.status_code,
            body=response.text,
            headers=dict(response.headers),
        )
