"""GitHub releases REST calls.

Four endpoints are used:

    GET    /repos/{repo}/releases/tags/{tag}
    DELETE /repos/{repo}/releases/{id}
    POST   /repos/{repo}/releases
    POST   {uploads}/repos/{repo}/releases/{id}/assets?name=...

The first three authenticate with the token in the query string (or an
``Authorization`` header when configured); uploads always use the header.
"""

from __future__ import annotations

import json
import urllib.parse
from dataclasses import dataclass
from pathlib import Path

from pkgrel.core.config import AuthMode
from pkgrel.core.errors import ReleaseError
from pkgrel.core.result import Err, Ok, Result
from pkgrel.core.structured import StrDict, get_int, get_str
from pkgrel.github.http import HttpClient, HttpResponse

__all__ = ["ReleasesApi", "NOT_FOUND"]

NOT_FOUND = "Not Found"

_ACCEPT = "application/vnd.github+json"


@dataclass(frozen=True, slots=True)
class ReleasesApi:
    """Release operations for one repository.

    Attributes:
        client: Transport.
        repo: ``owner/name``.
        token: API credential.
        api_url: Base URL of the REST API.
        upload_url: Base URL of the asset upload host.
        auth: Token transport for the REST API calls.
    """

    client: HttpClient
    repo: str
    token: str
    api_url: str = "https://api.github.com"
    upload_url: str = "https://uploads.github.com"
    auth: AuthMode = "query"

    def find_release(self, tag: str) -> Result[int | None, ReleaseError]:
        """Release id for ``tag``, or None when the API answers "Not Found"."""
        tag_q = urllib.parse.quote(tag, safe="")
        url = self._api(f"/repos/{self.repo}/releases/tags/{tag_q}")
        payload = self._call("GET", url)
        if isinstance(payload, Err):
            return payload

        data = payload.value
        message = get_str(data, "message")
        if message == NOT_FOUND:
            return Ok(None)
        release_id = get_int(data, "id")
        if release_id is not None:
            return Ok(release_id)
        if message:
            return Err(ReleaseError(kind="api_failed", message=f"GitHub: {message}"))
        return Err(
            ReleaseError(
                kind="api_failed",
                message=f"unexpected response looking up release {tag}",
                hint=url_without_token(url),
            )
        )

    def delete_release(self, release_id: int) -> Result[None, ReleaseError]:
        url = self._api(f"/repos/{self.repo}/releases/{release_id}")
        payload = self._call("DELETE", url)
        if isinstance(payload, Err):
            return payload
        message = get_str(payload.value, "message")
        if message:
            return Err(ReleaseError(kind="api_failed", message=f"GitHub: {message}"))
        return Ok(None)

    def create_release(self, *, tag: str, name: str, body: str) -> Result[int, ReleaseError]:
        """Create a published (non-draft, non-prerelease) release; returns its id."""
        url = self._api(f"/repos/{self.repo}/releases")
        request = {
            "tag_name": tag,
            "name": name,
            "body": body,
            "draft": False,
            "prerelease": False,
        }
        payload = self._call("POST", url, data=json.dumps(request).encode("utf-8"))
        if isinstance(payload, Err):
            return payload

        data = payload.value
        message = get_str(data, "message")
        if message:
            return Err(
                ReleaseError(kind="api_failed", message=f"GitHub: {message}", hint=_errors(data))
            )
        release_id = get_int(data, "id")
        if release_id is None:
            return Err(
                ReleaseError(
                    kind="api_failed",
                    message=f"release {tag} was not created: response has no id",
                )
            )
        return Ok(release_id)

    def upload_asset(
        self,
        release_id: int,
        path: Path,
        *,
        name: str,
        content_type: str,
    ) -> Result[None, ReleaseError]:
        query = urllib.parse.urlencode({"name": name})
        url = f"{self.upload_url}/repos/{self.repo}/releases/{release_id}/assets?{query}"
        headers = {
            "Accept": _ACCEPT,
            "Authorization": f"token {self.token}",
            "Content-Type": content_type,
        }
        result = self.client.request("POST", url, headers=headers, data=path.read_bytes())
        if isinstance(result, Err):
            return Err(
                ReleaseError(kind="api_failed", message=f"upload of {name} failed: {result.error}")
            )

        response = result.value
        if not response.ok:
            message = get_str(response.json() or {}, "message") or "no details"
            return Err(
                ReleaseError(
                    kind="api_failed",
                    message=f"upload of {name} failed (HTTP {response.status}): {message}",
                )
            )
        return Ok(None)

    def _api(self, path: str) -> str:
        url = f"{self.api_url}{path}"
        if self.auth == "query":
            url += "?" + urllib.parse.urlencode({"access_token": self.token})
        return url

    def _headers(self, *, has_body: bool) -> dict[str, str]:
        headers = {"Accept": _ACCEPT}
        if self.auth == "header":
            headers["Authorization"] = f"token {self.token}"
        if has_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _call(
        self, method: str, url: str, *, data: bytes | None = None
    ) -> Result[StrDict, ReleaseError]:
        result = self.client.request(
            method, url, headers=self._headers(has_body=data is not None), data=data
        )
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="api_failed",
                    message=f"{method} request failed: {result.error.message}",
                    hint=url_without_token(url),
                )
            )
        return _decode(method, url, result.value)


def _decode(method: str, url: str, response: HttpResponse) -> Result[StrDict, ReleaseError]:
    data = response.json()
    if data is None:
        return Err(
            ReleaseError(
                kind="api_failed",
                message=f"{method} returned a non-JSON body (HTTP {response.status})",
                hint=url_without_token(url),
            )
        )
    if not response.ok and get_str(data, "message") is None:
        data = {**data, "message": f"HTTP {response.status}"}
    return Ok(data)


def _errors(data: StrDict) -> str | None:
    """Flatten the ``errors`` list of a validation failure into one line."""
    errors = data.get("errors")
    if not isinstance(errors, list):
        return None
    parts: list[str] = []
    for item in errors:
        if isinstance(item, dict):
            parts.append(str(item.get("message") or item.get("code") or item))
        else:
            parts.append(str(item))
    return "; ".join(parts) or None


def url_without_token(url: str) -> str:
    """URL safe to print: the access_token query parameter is dropped."""
    parts = urllib.parse.urlsplit(url)
    query = [
        (k, v)
        for k, v in urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
        if k != "access_token"
    ]
    return urllib.parse.urlunsplit(parts._replace(query=urllib.parse.urlencode(query)))
