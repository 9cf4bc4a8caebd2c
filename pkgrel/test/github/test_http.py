"""Tests for github/http.py - HTTP client abstraction."""

from __future__ import annotations

import pytest

from pkgrel.core.result import Err, Ok
from pkgrel.github.http import HttpClient, HttpError, HttpResponse, MockHttpClient


class TestHttpError:
    def test_str(self) -> None:
        error = HttpError(url="https://api.github.com", message="Connection refused")
        assert str(error) == "Connection refused (https://api.github.com)"

    def test_is_frozen(self) -> None:
        error = HttpError(url="u", message="m")
        with pytest.raises(AttributeError):
            error.message = "x"  # type: ignore[misc]


class TestHttpResponse:
    def test_ok_range(self) -> None:
        assert HttpResponse(200).ok
        assert HttpResponse(204).ok
        assert not HttpResponse(404).ok
        assert not HttpResponse(500).ok

    def test_json_object(self) -> None:
        assert HttpResponse(200, b'{"id": 1}').json() == {"id": 1}

    def test_empty_body_is_empty_object(self) -> None:
        assert HttpResponse(204, b"").json() == {}

    def test_non_object_or_garbage(self) -> None:
        assert HttpResponse(200, b"[1, 2]").json() is None
        assert HttpResponse(502, b"<html>bad gateway</html>").json() is None


class TestMockHttpClient:
    def test_isinstance_check(self) -> None:
        assert isinstance(MockHttpClient(), HttpClient)

    def test_scripted_json(self) -> None:
        client = MockHttpClient()
        client.set_json("GET", "https://x/a", {"id": 3})

        result = client.request("GET", "https://x/a")

        assert isinstance(result, Ok)
        assert result.value.json() == {"id": 3}

    def test_unknown_request_is_not_found(self) -> None:
        client = MockHttpClient()
        result = client.request("GET", "https://x/missing")
        assert isinstance(result, Ok)
        assert result.value.status == 404
        assert result.value.json() == {"message": "Not Found"}

    def test_transport_error(self) -> None:
        client = MockHttpClient()
        client.set_response("POST", "https://x/a", HttpError(url="https://x/a", message="down"))
        result = client.request("POST", "https://x/a", data=b"{}")
        assert isinstance(result, Err)
        assert result.error.message == "down"

    def test_records_calls(self) -> None:
        client = MockHttpClient()
        client.request("DELETE", "https://x/1", headers={"Accept": "json"})
        client.request("POST", "https://x/2", data=b"payload")

        assert client.methods() == ["DELETE", "POST"]
        assert client.calls[0].headers == {"Accept": "json"}
        assert client.calls[1].data == b"payload"
