"""Tests for page snapshots, URL helpers and element lookup."""

import pytest

from integrated.exceptions import ElementNotFound
from integrated.locator import ElementKind, ElementLocator, normalize_key
from integrated.page import PageState, prepare_url, same_url

PAGE_HTML = """
<html><head><title> Sign in </title></head><body>
  <a href="/help">Need   help?</a>
  <a id="home-link" href="/">Home</a>
  <a name="docs" href="/docs">Documentation</a>
  <a href="/logo"><img src="logo.png" alt="Company logo"></a>
  <form>
    <label>Email <input id="email" name="user_email"></label>
    <input name="nickname">
    <input id="go" type="submit" name="commit" value="Go!">
    <button type="submit">  Sign   in </button>
    <input type="image" src="ok.png" alt="OK">
    <input type="button" value="Not a submit">
  </form>
</body></html>
"""


@pytest.fixture
def page():
    return PageState(url="http://localhost:8888/login", status_code=200, body=PAGE_HTML)


class TestPrepareUrl:
    """Test turning user paths into absolute URLs."""

    def test_path_joined_onto_base(self):
        """Relative paths should be joined onto the base URL."""
        assert prepare_url("/login", "http://localhost:8888") == "http://localhost:8888/login"
        assert prepare_url("login", "http://localhost:8888/") == "http://localhost:8888/login"

    def test_root_trims_trailing_slash(self):
        """The root path should not leave a dangling slash."""
        assert prepare_url("/", "http://localhost:8888") == "http://localhost:8888"

    def test_absolute_url_untouched(self):
        """Absolute URLs should pass through as given."""
        assert prepare_url("https://example.com/a/", "http://localhost") == "https://example.com/a/"

    def test_same_url_ignores_trailing_slash(self):
        assert same_url("http://x.test/a/", "http://x.test/a")
        assert not same_url("http://x.test/a", "http://x.test/b")


class TestPageState:
    """Test the immutable page snapshot."""

    def test_snapshot_parsed_from_body(self, page):
        """The body should be parsed once into a snapshot."""
        assert page.snapshot.find(id="email") is not None
        assert page.title() == "Sign in"

    def test_redirect_location_is_absolute(self):
        """Location headers should be resolved against the page URL."""
        redirect = PageState("http://x.test/old", 302, "", headers={"Location": "/new"})
        assert redirect.is_redirect
        assert redirect.location == "http://x.test/new"

    def test_non_redirect(self, page):
        assert not page.is_redirect
        assert page.location is None

    def test_frozen(self, page):
        """Pages should not be mutable after creation."""
        with pytest.raises(Exception):
            page.url = "http://elsewhere"


class TestElementLocator:
    """Test key resolution by element kind."""

    def test_normalize_key(self):
        assert normalize_key("#email") == "email"
        assert normalize_key("email") == "email"

    def test_field_by_id_before_name(self, page):
        """A '#key' should match an id first."""
        handle = ElementLocator().locate(page, "#email")
        assert handle.strategy == "id"
        assert handle.name == "user_email"

    def test_field_by_name(self, page):
        handle = ElementLocator().locate(page, "nickname")
        assert handle.strategy == "name"
        assert handle.tag_name == "input"

    def test_link_by_normalized_text(self, page):
        """Link text should match after collapsing whitespace."""
        handle = ElementLocator().locate(page, "Need help?", ElementKind.LINK)
        assert handle.strategy == "text"
        assert handle.href == "/help"

    def test_link_by_image_alt(self, page):
        handle = ElementLocator().locate(page, "Company logo", ElementKind.LINK)
        assert handle.strategy == "alt"
        assert handle.href == "/logo"

    def test_link_by_id_then_name(self, page):
        """Links should fall back to id, then name."""
        locator = ElementLocator()
        assert locator.locate(page, "home-link", ElementKind.LINK).strategy == "id"
        assert locator.locate(page, "docs", ElementKind.LINK).strategy == "name"

    def test_buttons(self, page):
        """Buttons resolve by id, name, value, text and image alt."""
        locator = ElementLocator()
        assert locator.locate(page, "#go", ElementKind.BUTTON).strategy == "id"
        assert locator.locate(page, "commit", ElementKind.BUTTON).strategy == "name"
        assert locator.locate(page, "Go!", ElementKind.BUTTON).strategy == "value"
        assert locator.locate(page, "Sign in", ElementKind.BUTTON).strategy == "text"
        assert locator.locate(page, "OK", ElementKind.BUTTON).strategy == "alt"

    def test_plain_button_input_is_still_a_button(self, page):
        handle = ElementLocator().find(page, "Not a submit", ElementKind.BUTTON)
        assert handle is not None
        assert handle.input_type == "button"

    def test_missing_link_names_the_key(self, page):
        """A miss should raise ElementNotFound naming the key."""
        with pytest.raises(ElementNotFound) as exc_info:
            ElementLocator().locate(page, "Nonexistent Link", ElementKind.LINK)

        assert exc_info.value.key == "Nonexistent Link"
        assert exc_info.value.url == page.url
        assert "Nonexistent Link" in str(exc_info.value)

    def test_missing_field(self, page):
        with pytest.raises(ElementNotFound):
            ElementLocator().locate(page, "#nope")
        assert not ElementLocator().exists(page, "#nope")

    def test_locate_is_pure(self, page):
        """Repeated lookups should give the same element and leave the page alone."""
        locator = ElementLocator()
        before = page.body
        first = locator.locate(page, "#email")
        second = locator.locate(page, "#email")
        assert first.element is second.element
        assert page.body == before


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
