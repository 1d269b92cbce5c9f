"""
Execution backends for integrated.

Each backend implements the Backend interface, so the same test can run
against a different execution model by swapping the backend.

Available Backends:
    - StatelessCrawler: real HTTP requests with httpx, one per navigation
    - InProcessDispatcher: requests dispatched into an ASGI app, no network
    - RemoteSession: a live browser over WebDriver (selenium) or Playwright

Example:
    ```python
    from integrated.backends import InProcessDispatcher, StatelessCrawler
    from integrated import Emulator

    # Against a running server
    browser = Emulator(StatelessCrawler(), base_url="http://localhost:8888")

    # Against the app object itself
    browser = Emulator(InProcessDispatcher(app))
    ```
"""

from typing import Optional

from ..config import Config
from ..exceptions import ConfigError
from .base import Backend
from .crawler import StatelessCrawler
from .dispatcher import InProcessDispatcher
from .remote import BrowserDriver, DriverElementMissing, RemoteSession

BACKENDS = {
    StatelessCrawler.name: StatelessCrawler,
    InProcessDispatcher.name: InProcessDispatcher,
    RemoteSession.name: RemoteSession,
}


def create_backend(name: str, config: Optional[Config] = None, **kwargs) -> Backend:
    """
    Build a backend by name.

    Args:
        name: "crawler", "dispatcher" or "remote"
        config: Harness configuration
        **kwargs: Backend-specific arguments (app= for the dispatcher)
    """
    try:
        backend_class = BACKENDS[name]
    except KeyError:
        raise ConfigError(f"Unknown backend '{name}'. Choose from: {', '.join(BACKENDS)}") from None
    return backend_class(config=config, **kwargs)


__all__ = [
    "Backend",
    "StatelessCrawler",
    "InProcessDispatcher",
    "RemoteSession",
    "BrowserDriver",
    "DriverElementMissing",
    "BACKENDS",
    "create_backend",
]
