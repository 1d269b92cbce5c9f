"""
Element lookup over a page snapshot.

Users name elements the way they read them: a CSS-style id ("#email"), a
form field name ("email"), a link's visible text ("Sign up") or a button's
label ("Log In"). The locator turns such a key into one concrete element,
trying the strategies in a fixed order so the same key always resolves the
same way.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from bs4 import Tag

from .exceptions import ElementNotFound
from .page import PageState


class ElementKind(Enum):
    FIELD = "field"
    LINK = "link"
    BUTTON = "button"


BUTTON_INPUT_TYPES = ("submit", "button", "image")


def normalize_key(key: str) -> str:
    """Strip one leading '#', so "#email" and "email" name the same field."""
    if key.startswith("#"):
        return key[1:]
    return key


def visible_text(element: Tag) -> str:
    return " ".join(element.get_text(" ").split())


@dataclass(frozen=True)
class ElementHandle:
    """An element found on the page, plus how it was found."""

    key: str
    strategy: str  # id | name | text | value | alt
    element: Tag = field(repr=False, compare=False)

    @property
    def tag_name(self) -> str:
        return self.element.name

    @property
    def attrs(self) -> Dict[str, Any]:
        return dict(self.element.attrs)

    @property
    def name(self) -> Optional[str]:
        return self.element.get("name")

    @property
    def element_id(self) -> Optional[str]:
        return self.element.get("id")

    @property
    def input_type(self) -> Optional[str]:
        if self.element.name != "input":
            return None
        return (self.element.get("type") or "text").lower()

    @property
    def href(self) -> Optional[str]:
        return self.element.get("href")

    @property
    def text(self) -> str:
        return visible_text(self.element)


class ElementLocator:
    """
    Resolves user keys into elements of a PageState snapshot.

    Resolution order by kind:
        FIELD:  id, then name attribute (any element)
        LINK:   visible text (or image alt), then id, then name (anchors only)
        BUTTON: id, name, value attribute, button text, image alt

    Example:
        locator = ElementLocator()
        handle = locator.locate(page, "#email")
        handle.name  # "email"
    """

    def locate(
        self,
        page: PageState,
        key: str,
        kind: ElementKind = ElementKind.FIELD,
    ) -> ElementHandle:
        """
        Find the element a key refers to.

        Args:
            page: Page whose snapshot is searched
            key: User-supplied key ("#id", "name", link text or button label)
            kind: What sort of element is wanted

        Returns:
            ElementHandle for the first match in document order

        Raises:
            ElementNotFound: nothing on the page matched any strategy
        """
        handle = self.find(page, key, kind)
        if handle is None:
            raise ElementNotFound(key, page.url, self._failure_message(key, kind, page.url))
        return handle

    def find(
        self,
        page: PageState,
        key: str,
        kind: ElementKind = ElementKind.FIELD,
    ) -> Optional[ElementHandle]:
        """Like locate(), but returns None instead of raising."""
        soup = page.snapshot
        if kind == ElementKind.LINK:
            return self._find_link(soup, key)
        if kind == ElementKind.BUTTON:
            return self._find_button(soup, key)
        return self._find_field(soup, key)

    def exists(self, page: PageState, key: str, kind: ElementKind = ElementKind.FIELD) -> bool:
        return self.find(page, key, kind) is not None

    def _find_field(self, soup, key: str) -> Optional[ElementHandle]:
        name = normalize_key(key)
        if not name:
            return None

        element = soup.find(id=name)
        if element is not None:
            return ElementHandle(key, "id", element)

        element = soup.find(attrs={"name": name})
        if element is not None:
            return ElementHandle(key, "name", element)

        return None

    def _find_link(self, soup, key: str) -> Optional[ElementHandle]:
        links: List[Tag] = soup.find_all("a")
        wanted = " ".join(key.split())

        for link in links:
            if visible_text(link) == wanted:
                return ElementHandle(key, "text", link)
            for image in link.find_all("img"):
                if image.get("alt") == key:
                    return ElementHandle(key, "alt", link)

        # Second pass: the user may have given a name or id instead.
        name = normalize_key(key)
        for attribute in ("id", "name"):
            for link in links:
                if link.get(attribute) == name:
                    return ElementHandle(key, attribute, link)

        return None

    def _find_button(self, soup, key: str) -> Optional[ElementHandle]:
        buttons = list(self._buttons(soup))
        name = normalize_key(key)
        wanted = " ".join(key.split())

        for attribute, expected in (("id", name), ("name", name), ("value", key)):
            for button in buttons:
                if button.get(attribute) == expected:
                    return ElementHandle(key, attribute, button)

        for button in buttons:
            if button.name == "button" and visible_text(button) == wanted:
                return ElementHandle(key, "text", button)
            if button.name == "input" and button.get("alt") == key:
                return ElementHandle(key, "alt", button)

        return None

    @staticmethod
    def _buttons(soup) -> Iterable[Tag]:
        for element in soup.find_all(["button", "input"]):
            if element.name == "button":
                yield element
            elif (element.get("type") or "text").lower() in BUTTON_INPUT_TYPES:
                yield element

    @staticmethod
    def _failure_message(key: str, kind: ElementKind, url: str) -> str:
        if kind == ElementKind.LINK:
            return f"Couldn't see a link with a body, name, or id attribute of, '{key}' on '{url}'."
        if kind == ElementKind.BUTTON:
            return f"Couldn't see a button with a value, name, id or text of, '{key}' on '{url}'."
        return f"Nothing matched the '{key}' CSS query provided for {url}."
