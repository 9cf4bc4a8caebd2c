"""Tests for github/releases.py against a scripted HTTP client."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pkgrel.core.result import Err, Ok
from pkgrel.github.http import HttpError, HttpResponse, MockHttpClient
from pkgrel.github.releases import ReleasesApi, url_without_token

API = "https://api.github.com"
UPLOADS = "https://uploads.github.com"
TOKEN = "t0k"
TAG_URL = f"{API}/repos/user/pkg/releases/tags/v1.2.3?access_token={TOKEN}"
CREATE_URL = f"{API}/repos/user/pkg/releases?access_token={TOKEN}"


def _api(client: MockHttpClient, **kwargs: Any) -> ReleasesApi:
    return ReleasesApi(client=client, repo="user/pkg", token=TOKEN, **kwargs)


class TestFindRelease:
    def test_not_found_is_none(self) -> None:
        client = MockHttpClient()
        assert _api(client).find_release("v1.2.3") == Ok(None)
        assert client.calls[0].url == TAG_URL

    def test_existing_release_id(self) -> None:
        client = MockHttpClient()
        client.set_json("GET", TAG_URL, {"id": 42, "tag_name": "v1.2.3"})
        assert _api(client).find_release("v1.2.3") == Ok(42)

    def test_other_message_is_an_error(self) -> None:
        client = MockHttpClient()
        client.set_json("GET", TAG_URL, {"message": "Bad credentials"}, status=401)
        result = _api(client).find_release("v1.2.3")
        assert isinstance(result, Err)
        assert result.error.kind == "api_failed"
        assert "Bad credentials" in result.error.message

    def test_response_without_id_or_message(self) -> None:
        client = MockHttpClient()
        client.set_json("GET", TAG_URL, {"tag_name": "v1.2.3"})
        result = _api(client).find_release("v1.2.3")
        assert isinstance(result, Err)
        assert TOKEN not in (result.error.hint or "")

    def test_error_status_without_message(self) -> None:
        client = MockHttpClient()
        client.set_response("GET", TAG_URL, HttpResponse(500, b""))
        result = _api(client).find_release("v1.2.3")
        assert isinstance(result, Err)
        assert "HTTP 500" in result.error.message

    def test_non_json_body(self) -> None:
        client = MockHttpClient()
        client.set_response("GET", TAG_URL, HttpResponse(502, b"<html></html>"))
        result = _api(client).find_release("v1.2.3")
        assert isinstance(result, Err)
        assert "non-JSON" in result.error.message

    def test_transport_error(self) -> None:
        client = MockHttpClient()
        client.set_response("GET", TAG_URL, HttpError(url=TAG_URL, message="refused"))
        result = _api(client).find_release("v1.2.3")
        assert isinstance(result, Err)
        assert "refused" in result.error.message


class TestCreateRelease:
    def test_posts_published_release(self) -> None:
        client = MockHttpClient()
        client.set_json("POST", CREATE_URL, {"id": 7}, status=201)

        result = _api(client).create_release(tag="v1.2.3", name="1.2.3", body="Release for pkg")

        assert result == Ok(7)
        call = client.calls[0]
        assert call.method == "POST"
        assert call.headers["Content-Type"] == "application/json"
        assert json.loads(call.data or b"") == {
            "tag_name": "v1.2.3",
            "name": "1.2.3",
            "body": "Release for pkg",
            "draft": False,
            "prerelease": False,
        }

    def test_validation_failure_carries_errors(self) -> None:
        client = MockHttpClient()
        client.set_json(
            "POST",
            CREATE_URL,
            {
                "message": "Validation Failed",
                "errors": [{"resource": "Release", "code": "already_exists"}],
            },
            status=422,
        )
        result = _api(client).create_release(tag="v1.2.3", name="1.2.3", body="b")
        assert isinstance(result, Err)
        assert result.error.message == "GitHub: Validation Failed"
        assert result.error.hint == "already_exists"

    def test_missing_id(self) -> None:
        client = MockHttpClient()
        client.set_json("POST", CREATE_URL, {"url": "x"}, status=201)
        result = _api(client).create_release(tag="v1.2.3", name="1.2.3", body="b")
        assert isinstance(result, Err)
        assert "no id" in result.error.message


class TestDeleteRelease:
    def test_no_content_is_success(self) -> None:
        client = MockHttpClient()
        url = f"{API}/repos/user/pkg/releases/42?access_token={TOKEN}"
        client.set_response("DELETE", url, HttpResponse(204, b""))
        assert _api(client).delete_release(42) == Ok(None)

    def test_failure(self) -> None:
        client = MockHttpClient()
        result = _api(client).delete_release(42)
        assert isinstance(result, Err)


class TestUploadAsset:
    def test_upload_request(self, tmp_path: Path) -> None:
        archive = tmp_path / "pkg-1.2.3.tar.gz"
        archive.write_bytes(b"\x1f\x8bdata")
        url = f"{UPLOADS}/repos/user/pkg/releases/7/assets?name=pkg-1.2.3.tar.gz"
        client = MockHttpClient()
        client.set_json("POST", url, {"id": 99}, status=201)

        result = _api(client).upload_asset(
            7, archive, name="pkg-1.2.3.tar.gz", content_type="application/gzip"
        )

        assert result == Ok(None)
        call = client.calls[0]
        assert call.url == url
        assert call.headers["Authorization"] == f"token {TOKEN}"
        assert call.headers["Content-Type"] == "application/gzip"
        assert call.data == b"\x1f\x8bdata"

    def test_upload_failure(self, tmp_path: Path) -> None:
        archive = tmp_path / "a.zip"
        archive.write_bytes(b"PK")
        client = MockHttpClient()
        result = _api(client).upload_asset(7, archive, name="a.zip", content_type="application/zip")
        assert isinstance(result, Err)
        assert "HTTP 404" in result.error.message


class TestAuthModes:
    def test_query_mode_has_no_auth_header(self) -> None:
        client = MockHttpClient()
        _api(client).find_release("v1")
        assert "access_token=" in client.calls[0].url
        assert "Authorization" not in client.calls[0].headers

    def test_header_mode(self) -> None:
        client = MockHttpClient()
        _api(client, auth="header").find_release("v1")
        call = client.calls[0]
        assert call.url == f"{API}/repos/user/pkg/releases/tags/v1"
        assert call.headers["Authorization"] == f"token {TOKEN}"

    def test_custom_api_url(self) -> None:
        client = MockHttpClient()
        _api(client, api_url="https://ghe.example.com/api/v3", auth="header").find_release("v1")
        assert client.calls[0].url.startswith("https://ghe.example.com/api/v3/repos/")


def test_url_without_token() -> None:
    assert url_without_token(TAG_URL) == f"{API}/repos/user/pkg/releases/tags/v1.2.3"
    assert url_without_token(f"{API}/x?a=1&access_token=s") == f"{API}/x?a=1"
