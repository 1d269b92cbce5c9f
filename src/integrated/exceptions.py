"""
Error taxonomy for integrated.

Locator and form errors are programmer-input mistakes (a bad selector or
button text) and propagate straight away. Page-load and assertion failures
are test failures; the emulator writes the current page to the diagnostics
log before raising them.
"""

from typing import Optional


class IntegratedError(Exception):
    """Base class for every error raised by integrated."""


class ElementNotFound(IntegratedError, LookupError):
    """No element on the current page matched the given key."""

    def __init__(self, key: str, url: Optional[str] = None, message: Optional[str] = None):
        self.key = key
        self.url = url
        if message is None:
            message = f"Nothing matched '{key}' on the page, '{url}'."
        super().__init__(message)


class FormNotFound(ElementNotFound):
    """The form to submit could not be determined."""

    def __init__(self, key: Optional[str], url: Optional[str] = None, message: Optional[str] = None):
        if message is None:
            if key:
                message = f"Couldn't find a form that contains a button with text '{key}' on '{url}'."
            else:
                message = f"Couldn't find a form on '{url}'."
        super().__init__(key or "", url, message)


class AmbiguousForm(FormNotFound):
    """More than one form is on the page and no button text picked one."""

    def __init__(self, url: Optional[str] = None, count: int = 0):
        self.count = count
        super().__init__(
            None,
            url,
            f"Found {count} forms on '{url}'; pass the text of a button to pick one.",
        )


class PageLoadFailure(IntegratedError, AssertionError):
    """A navigation did not produce a 200 response."""

    def __init__(self, url: str, status_code: int, message: Optional[str] = None):
        self.url = url
        self.status_code = status_code
        if message is None:
            message = f"A GET request to '{url}' failed. Got a {status_code} code instead."
        super().__init__(message)


class AssertionFailure(IntegratedError, AssertionError):
    """A see/on_page/database expectation was not met."""


class RedirectLoopDetected(IntegratedError):
    """Redirects kept coming past the configured hop limit."""

    def __init__(self, url: str, hops: int):
        self.url = url
        self.hops = hops
        super().__init__(f"Gave up following redirects after {hops} hops; last target was '{url}'.")


class UnsupportedOperation(IntegratedError, NotImplementedError):
    """The active backend cannot perform the requested operation."""


class NoAlertOpen(IntegratedError, LookupError):
    """A live session was asked about an alert box, but none is showing."""


class NoPageLoaded(IntegratedError):
    """A page-dependent operation was called before any visit()."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Can't {operation}: no page has been loaded yet. Call visit() first.")


class ConfigError(IntegratedError, ValueError):
    """The project configuration file could not be read."""
