"""
Form resolution.

Finds the form a submission targets and turns it into a FormDescriptor:
the method, the absolute action URL and the field values a browser would
send, with staged input laid over the form's own defaults.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

from bs4 import Tag

from .exceptions import AmbiguousForm, FormNotFound
from .locator import ElementHandle, ElementKind, ElementLocator, normalize_key
from .page import PageState

# Inputs that never contribute a value of their own.
SKIPPED_INPUT_TYPES = ("reset", "button", "submit", "image", "file")


@dataclass
class FormDescriptor:
    """Everything needed to submit one form."""

    method: str
    action: str
    fields: Dict[str, Any] = field(default_factory=dict)
    files: Dict[str, Path] = field(default_factory=dict)
    button: Optional[ElementHandle] = field(default=None, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "action": self.action,
            "fields": dict(self.fields),
            "files": {name: str(path) for name, path in self.files.items()},
        }


class FormResolver:
    """
    Locates a submittable form and materializes its values.

    Example:
        resolver = FormResolver()
        form = resolver.resolve(page, "Log In", {"username": "alice"})
        form.method, form.action, form.fields
    """

    def __init__(self, locator: Optional[ElementLocator] = None):
        self.locator = locator or ElementLocator()

    def resolve(
        self,
        page: PageState,
        button_text: Optional[str] = None,
        staged: Optional[Dict[str, Any]] = None,
    ) -> FormDescriptor:
        """
        Resolve the form to submit.

        Args:
            page: Current page
            button_text: Label, value, name or id of the submit button. When
                omitted the page must hold exactly one form.
            staged: Values to lay over the form defaults

        Raises:
            FormNotFound: no such button, or the button is outside any form
            AmbiguousForm: no button given and the page has several forms
        """
        button = None
        if button_text:
            button = self.locator.find(page, button_text, ElementKind.BUTTON)
            if button is None:
                raise FormNotFound(button_text, page.url)
            form = self._owning_form(page, button.element)
            if form is None:
                raise FormNotFound(button_text, page.url)
        else:
            forms = page.snapshot.find_all("form")
            if not forms:
                raise FormNotFound(None, page.url)
            if len(forms) > 1:
                raise AmbiguousForm(page.url, len(forms))
            form = forms[0]

        fields = self._defaults(form, button)
        descriptor = FormDescriptor(
            method=self._method(form, fields),
            action=self._action(page, form, button),
            fields=fields,
            button=button,
        )
        self._overlay(descriptor, form, staged or {})
        return descriptor

    @staticmethod
    def _owning_form(page: PageState, button: Tag) -> Optional[Tag]:
        form_id = button.get("form")
        if form_id:
            return page.snapshot.find("form", id=form_id)
        return button.find_parent("form")

    @staticmethod
    def _controls(form: Tag) -> List[Tag]:
        controls = [
            element
            for element in form.find_all(["input", "select", "textarea", "button"])
            if element.get("name") and not element.has_attr("disabled")
        ]
        form_id = form.get("id")
        if form_id:
            # Controls placed elsewhere on the page with form="<id>".
            root = form
            while root.parent is not None:
                root = root.parent
            for element in root.find_all(["input", "select", "textarea", "button"], attrs={"form": form_id}):
                if any(element is control for control in controls):
                    continue
                if element.get("name") and not element.has_attr("disabled"):
                    controls.append(element)
        return controls

    def _defaults(self, form: Tag, button: Optional[ElementHandle]) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        for element in self._controls(form):
            name = element["name"]

            if element.name == "button":
                if button is not None and element is button.element:
                    fields[name] = element.get("value", "")
                continue

            if element.name == "textarea":
                fields[name] = element.get_text()
                continue

            if element.name == "select":
                value = self._selected(element)
                if value is not None:
                    fields[name] = value
                continue

            input_type = (element.get("type") or "text").lower()
            if input_type in ("submit", "image"):
                if button is not None and element is button.element:
                    fields[name] = element.get("value", "")
                continue
            if input_type in SKIPPED_INPUT_TYPES:
                continue
            if input_type in ("checkbox", "radio"):
                if element.has_attr("checked"):
                    fields[name] = element.get("value", "on")
                continue
            fields[name] = element.get("value", "")
        return fields

    @staticmethod
    def _selected(select: Tag) -> Any:
        options = select.find_all("option")
        chosen = [option for option in options if option.has_attr("selected")]
        if select.has_attr("multiple"):
            return [_option_value(option) for option in chosen]
        if chosen:
            return _option_value(chosen[-1])
        if options:
            return _option_value(options[0])
        return None

    @staticmethod
    def _method(form: Tag, fields: Dict[str, Any]) -> str:
        method = (form.get("method") or "GET").upper()
        spoofed = fields.get("_method")
        if method == "POST" and isinstance(spoofed, str) and spoofed:
            return spoofed.upper()
        return method

    @staticmethod
    def _action(page: PageState, form: Tag, button: Optional[ElementHandle]) -> str:
        action = None
        if button is not None:
            action = button.element.get("formaction")
        if not action:
            action = form.get("action")
        if not action:
            return page.url
        return urljoin(page.url, action)

    def _overlay(self, descriptor: FormDescriptor, form: Tag, staged: Dict[str, Any]) -> None:
        controls = self._controls(form)
        by_name: Dict[str, List[Tag]] = {}
        by_id: Dict[str, Tag] = {}
        for element in controls:
            by_name.setdefault(element["name"], []).append(element)
            if element.get("id"):
                by_id[element["id"]] = element

        for key, value in staged.items():
            key = normalize_key(key)
            if key in by_name:
                name = key
            elif key in by_id:
                name = by_id[key]["name"]
            else:
                # Out-of-form field: applied directly by name.
                self._assign(descriptor, key, value)
                continue

            elements = by_name[name]
            first = elements[0]
            input_type = (first.get("type") or "text").lower() if first.name == "input" else None

            if input_type == "checkbox":
                if value is False:
                    descriptor.fields.pop(name, None)
                elif value is True:
                    descriptor.fields[name] = first.get("value", "on")
                else:
                    descriptor.fields[name] = value
            elif input_type == "radio":
                descriptor.fields[name] = value
            elif input_type == "file":
                descriptor.files[name] = Path(value)
            elif first.name == "select" and isinstance(value, str):
                descriptor.fields[name] = _match_option(first, value)
            else:
                self._assign(descriptor, name, value)

    @staticmethod
    def _assign(descriptor: FormDescriptor, name: str, value: Any) -> None:
        if isinstance(value, Path):
            descriptor.files[name] = value
        else:
            descriptor.fields[name] = value


def _option_value(option: Tag) -> str:
    if option.has_attr("value"):
        return option["value"]
    return option.get_text().strip()


def _match_option(select: Tag, wanted: str) -> str:
    """Value of the option whose value or label is wanted; wanted itself if none is."""
    options = select.find_all("option")
    for option in options:
        if _option_value(option) == wanted:
            return wanted
    for option in options:
        if option.get_text().strip() == wanted:
            return _option_value(option)
    return wanted
