"""
Page snapshots and URL helpers.

Every navigation or submission produces a PageState. The emulator keeps
exactly one of them as the current page and never mutates it.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

# Redirect codes that repeat the original method and body on the new URL.
METHOD_PRESERVING_REDIRECTS = (307, 308)


@dataclass(frozen=True)
class PageState:
    """Immutable result of one navigation."""

    url: str
    status_code: int
    body: str
    headers: Mapping[str, str] = field(default_factory=dict)
    snapshot: Any = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self.snapshot is None:
            object.__setattr__(self, "snapshot", BeautifulSoup(self.body or "", "html.parser"))

    @property
    def location(self) -> Optional[str]:
        """Absolute redirect target, if the response carried one."""
        for name, value in self.headers.items():
            if name.lower() == "location":
                return urljoin(self.url, value)
        return None

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400 and self.location is not None

    @property
    def preserves_method(self) -> bool:
        return self.is_redirect and self.status_code in METHOD_PRESERVING_REDIRECTS

    def title(self) -> str:
        soup = self.snapshot
        if soup.title and soup.title.string:
            return soup.title.string.strip()
        return ""


def prepare_url(url: str, base_url: str) -> str:
    """
    Turn a user-supplied path into an absolute URL.

    A leading slash is dropped, anything not starting with "http" is joined
    onto the base URL, and the trailing slash is trimmed.

    Examples:
        prepare_url("/login", "http://localhost:8888")  -> "http://localhost:8888/login"
        prepare_url("/", "http://localhost:8888")       -> "http://localhost:8888"
        prepare_url("http://x.test/a", "...")           -> "http://x.test/a"
    """
    if url.startswith("/"):
        url = url[1:]

    if not url.startswith("http"):
        url = f"{base_url.rstrip('/')}/{url}".rstrip("/")

    return url


def same_url(left: str, right: str) -> bool:
    """Compare two absolute URLs, ignoring a trailing slash."""
    return left.rstrip("/") == right.rstrip("/")
