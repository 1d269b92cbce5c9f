"""Tests for the JSON API helpers."""

import pytest

from integrated.api import json_has_fragment
from integrated.emulator import Emulator
from integrated.exceptions import AssertionFailure


@pytest.fixture
def api(dispatcher, config):
    emulator = Emulator(dispatcher, config)
    yield emulator
    emulator.teardown()


class TestJsonFragments:
    """Test nested fragment search."""

    def test_top_level(self):
        assert json_has_fragment({"a": 1}, {"a": 1, "b": 2})
        assert not json_has_fragment({"a": 2}, {"a": 1})

    def test_all_pairs_must_match_in_one_object(self):
        data = [{"a": 1}, {"b": 2}]
        assert json_has_fragment({"a": 1}, data)
        assert not json_has_fragment({"a": 1, "b": 2}, data)

    def test_nested(self):
        data = {"user": {"profile": {"city": "Lisbon", "zip": "1000"}}}
        assert json_has_fragment({"city": "Lisbon"}, data)
        assert json_has_fragment({"profile": {"city": "Lisbon", "zip": "1000"}}, data)

    def test_scalars(self):
        assert not json_has_fragment({"a": 1}, "a")


class TestApiRequests:
    """Test API calls against the demo app."""

    def test_get_json(self, api):
        api.get("/api/users").see_status_code(200).see_json().see_is_json()
        api.see_json_contains({"name": "bob"})
        api.see_json_contains({"city": "Lisbon", "active": True})

    def test_hit_alias(self, api):
        api.hit("/api/users").see_status_code_is(200)

    def test_post_json(self, api):
        api.post("/api/users", json={"name": "carol"}).see_status_code(201)
        api.see_json_equals({"id": 3, "name": "carol"})
        api.see_json_equals('{"name": "carol", "id": 3}')

    def test_no_200_required(self, api):
        """API calls record error responses instead of raising."""
        api.get("/missing").see_status_code(404)

    def test_status_mismatch(self, api):
        api.get("/missing")
        with pytest.raises(AssertionFailure) as exc_info:
            api.see_status_code(200)
        assert "Expected a 200 status code, but got 404" in str(exc_info.value)

    def test_not_json(self, api):
        api.get("/about")
        with pytest.raises(AssertionFailure) as exc_info:
            api.see_json()
        assert str(exc_info.value).startswith("Failed asserting that the following response was JSON:")

    def test_contains_miss(self, api):
        api.get("/api/users")
        with pytest.raises(AssertionFailure) as exc_info:
            api.see_json_contains({"name": "mallory"})
        assert '{"name": "mallory"}' in str(exc_info.value)

    def test_equals_miss(self, api):
        api.get("/api/users")
        with pytest.raises(AssertionFailure):
            api.see_json_equals([])

    def test_verbs_and_headers(self, api):
        api.with_headers({"X-Token": "t0k"})

        api.put("/echo", {"a": "1"}).see_json_contains({"method": "PUT", "token": "t0k"})
        api.see_json_contains({"a": "1"})
        api.patch("/echo", {"b": "2"}).see_json_contains({"method": "PATCH"})
        api.delete("/echo").see_json_contains({"method": "DELETE"})
        api.post("/echo", {"c": "3"}).see_json_contains({"form": {"c": "3"}})

    def test_api_call_drops_staged_input(self, api):
        """Input staged on an earlier page must not leak into a later submission."""
        api.visit("/login").type("alice", "#username")

        api.get("/echo")

        assert len(api.inputs) == 0

    def test_307_repeats_method_and_body(self, api):
        api.post("/moved", {"c": "3"}).see_status_code(200)
        api.see_json_contains({"method": "POST", "form": {"c": "3"}})
        assert api.current_url == "http://localhost/echo"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
