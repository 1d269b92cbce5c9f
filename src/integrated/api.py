"""
JSON API requests and assertions.

Mixed into the Emulator. Requests made here record the response as the
current page but, unlike visit(), do not insist on a 200: API tests check
the status code themselves with see_status_code().
"""

import json
from typing import Any, Dict, Mapping, Optional

import structlog

from .page import PageState

logger = structlog.get_logger(__name__)


def json_has_fragment(fragment: Mapping[str, Any], data: Any) -> bool:
    """
    Whether fragment's key/value pairs all appear together in one object
    somewhere inside data, at any depth.
    """
    if isinstance(data, dict):
        if all(key in data and data[key] == value for key, value in fragment.items()):
            return True
        return any(json_has_fragment(fragment, value) for value in data.values())
    if isinstance(data, list):
        return any(json_has_fragment(fragment, item) for item in data)
    return False


class ApiRequests:
    """
    Request helpers for JSON endpoints.

    Example:
        browser.post("/api/users", {"name": "alice"}).see_status_code(201)
        browser.get("/api/users").see_json_contains({"name": "alice"})
    """

    headers: Dict[str, str]

    def with_headers(self, headers: Mapping[str, str]):
        """Send these headers with every following API request."""
        self.headers.update(headers)
        return self

    def _call(self, method: str, uri: str, data: Optional[Mapping[str, Any]] = None, json_body: Any = None):
        url = self.prepare_url(uri)
        page = self.backend.navigate(method, url, form_data=data, headers=dict(self.headers), json=json_body)
        logger.info("api_request", method=method, url=url, status=page.status_code)
        self.inputs.clear()
        self._set_page(page)
        return self

    def get(self, uri: str, params: Optional[Mapping[str, Any]] = None):
        return self._call("GET", uri, params)

    def hit(self, uri: str, params: Optional[Mapping[str, Any]] = None):
        return self.get(uri, params)

    def post(self, uri: str, data: Optional[Mapping[str, Any]] = None, json: Any = None):
        return self._call("POST", uri, data, json)

    def put(self, uri: str, data: Optional[Mapping[str, Any]] = None, json: Any = None):
        return self._call("PUT", uri, data, json)

    def patch(self, uri: str, data: Optional[Mapping[str, Any]] = None, json: Any = None):
        return self._call("PATCH", uri, data, json)

    def delete(self, uri: str):
        return self._call("DELETE", uri)

    def _decoded(self, operation: str) -> Any:
        page: PageState = self._require_page(operation)
        try:
            return json.loads(page.body)
        except ValueError:
            self._fail(f"Failed asserting that the following response was JSON: {page.body}")

    def see_json(self):
        """Assert that the last response body is JSON."""
        self._decoded("check for JSON")
        return self

    def see_is_json(self):
        return self.see_json()

    def see_status_code(self, code: int):
        page = self._require_page("check the status code")
        if page.status_code != code:
            self._fail(f"Expected a {code} status code, but got {page.status_code} from '{page.url}'.")
        return self

    def see_status_code_is(self, code: int):
        return self.see_status_code(code)

    def see_json_equals(self, expected: Any):
        """
        Assert that the response decodes to exactly the expected value.

        Args:
            expected: A dict/list, or a JSON-encoded string
        """
        if isinstance(expected, str):
            expected = json.loads(expected)
        actual = self._decoded("compare JSON")
        if actual != expected:
            self._fail(f"Expected the response JSON to equal {json.dumps(expected)}, got {json.dumps(actual)}.")
        return self

    def see_json_contains(self, expected: Mapping[str, Any]):
        """Assert that the response holds an object containing every pair of expected."""
        actual = self._decoded("search JSON")
        if not json_has_fragment(expected, actual):
            self._fail(f"Expected {json.dumps(expected)} to exist in {self.body}, but it didn't.")
        return self
