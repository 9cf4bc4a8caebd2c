"""HTTP client abstraction for the releases API.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Scripted implementation for testing

Any HTTP status is a response, not an error: the releases API reports
"Not Found" and validation failures in the JSON body, and callers need to
read it. ``HttpError`` is reserved for requests that got no response.
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from pkgrel.core.result import Err, Ok, Result
from pkgrel.core.structured import StrDict, as_str_dict

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "MockHttpClient",
    "RealHttpClient",
    "RecordedRequest",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """Transport failure (DNS, refused connection, TLS...).

    Attributes:
        url: The URL that failed
        message: Human-readable error message
    """

    url: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} ({self.url})"


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status: int
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> StrDict | None:
        """Body as a JSON object; ``{}`` for an empty body, None if not an object."""
        if not self.body.strip():
            return {}
        try:
            data: object = json.loads(self.body.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None
        return as_str_dict(data)


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations."""

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: bytes | None = None,
    ) -> Result[HttpResponse, HttpError]:
        """Send one request.

        Returns:
            Ok(HttpResponse) for any HTTP status, Err(HttpError) when no
            response was received.
        """
        ...


class RealHttpClient:
    """HTTP client using urllib with system certificates and no timeout."""

    def __init__(self, user_agent: str = "pkgrel") -> None:
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: bytes | None = None,
    ) -> Result[HttpResponse, HttpError]:
        all_headers = {"User-Agent": self.user_agent, **(headers or {})}
        req = urllib.request.Request(url, data=data, headers=all_headers, method=method)
        try:
            with urllib.request.urlopen(req, context=self._ssl_context) as response:
                return Ok(HttpResponse(status=response.status, body=response.read()))
        except urllib.error.HTTPError as e:
            body = e.read() if e.fp is not None else b""
            return Ok(HttpResponse(status=e.code, body=body))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, message=str(e.reason)))
        except ValueError as e:
            return Err(HttpError(url=url, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, message=str(e)))


@dataclass(frozen=True, slots=True)
class RecordedRequest:
    method: str
    url: str
    headers: dict[str, str]
    data: bytes | None


def _empty_requests() -> list[RecordedRequest]:
    return []


@dataclass
class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are matched on (method, url). Unknown requests answer 404 with
    the API's "Not Found" body.

    Usage:
        client = MockHttpClient()
        client.set_json("GET", url, {"id": 7})
        client.request("GET", url)  # Ok(HttpResponse(200, b'{"id": 7}'))
    """

    calls: list[RecordedRequest] = field(default_factory=_empty_requests)
    _responses: dict[tuple[str, str], HttpResponse | HttpError] = field(default_factory=dict)

    def set_json(self, method: str, url: str, payload: object, *, status: int = 200) -> None:
        body = json.dumps(payload).encode("utf-8")
        self._responses[(method, url)] = HttpResponse(status=status, body=body)

    def set_response(self, method: str, url: str, response: HttpResponse | HttpError) -> None:
        self._responses[(method, url)] = response

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: bytes | None = None,
    ) -> Result[HttpResponse, HttpError]:
        self.calls.append(RecordedRequest(method, url, dict(headers or {}), data))

        response = self._responses.get((method, url))
        if response is None:
            return Ok(HttpResponse(status=404, body=b'{"message": "Not Found"}'))
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def methods(self) -> list[str]:
        """HTTP methods of recorded calls, in order."""
        return [c.method for c in self.calls]
