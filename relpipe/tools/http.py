"""HTTP client abstraction for release providers.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Scripted implementation for testing
"""

from __future__ import annotations

import json
import ssl
import threading
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, BinaryIO, Protocol, cast, runtime_checkable

from relpipe.core.result import Err, Ok, Result
from relpipe.core.structured import as_str_dict

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
]

_TRANSIENT_STATUSES = frozenset({408, 425, 429, 500, 502, 503, 504})


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 when no response was received)
        message: Human-readable error message
        permanent: Set for failures that repeating the request cannot fix,
            such as a malformed URL or an unparsable response body
    """

    url: str
    status: int
    message: str
    permanent: bool = False

    @property
    def is_transient(self) -> bool:
        """Network failures, timeouts, throttling and 5xx are worth retrying."""
        if self.permanent:
            return False
        return self.status == 0 or self.status in _TRANSIENT_STATUSES

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for the HTTP operations a release provider needs."""

    def get_json(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[dict[str, Any], HttpError]: ...

    def post_json(
        self,
        url: str,
        payload: Mapping[str, object],
        headers: Mapping[str, str] | None = None,
    ) -> Result[dict[str, Any], HttpError]: ...

    def upload(
        self,
        url: str,
        body: BinaryIO,
        *,
        size: int,
        content_type: str,
        headers: Mapping[str, str] | None = None,
    ) -> Result[dict[str, Any], HttpError]:
        """POST a binary stream of ``size`` bytes; the caller owns ``body``."""
        ...


def _parse_json_object(url: str, raw: bytes) -> Result[dict[str, Any], HttpError]:
    if not raw.strip():
        return Ok({})
    try:
        data_obj: object = json.loads(raw.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}", permanent=True))
    data = as_str_dict(data_obj)
    if data is None:
        return Err(HttpError(url=url, status=0, message="Expected JSON object", permanent=True))
    return Ok(cast(dict[str, Any], data))


class RealHttpClient:
    """Real HTTP client using urllib.

    Handles HTTPS with system certificates, JSON bodies and streamed
    uploads. ``default_headers`` are sent with every request. Uploads use
    ``upload_timeout`` when it is set, since large assets take longer than
    API calls.
    """

    def __init__(
        self,
        timeout: float = 60.0,
        upload_timeout: float | None = None,
        user_agent: str = "relpipe",
        default_headers: Mapping[str, str] | None = None,
    ) -> None:
        self.timeout = timeout
        self.upload_timeout = upload_timeout
        self.user_agent = user_agent
        self.default_headers = dict(default_headers or {})
        self._ssl_context = ssl.create_default_context()

    def _headers(self, extra: Mapping[str, str] | None) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent, **self.default_headers}
        if extra:
            headers.update(extra)
        return headers

    def _request(
        self,
        url: str,
        *,
        method: str,
        data: bytes | BinaryIO | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Result[bytes, HttpError]:
        try:
            req = urllib.request.Request(url, data=data, method=method, headers=self._headers(headers))
            seconds = self.timeout if timeout is None else timeout
            with urllib.request.urlopen(req, timeout=seconds, context=self._ssl_context) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e), permanent=True))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def get_json(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[dict[str, Any], HttpError]:
        result = self._request(url, method="GET", headers=headers)
        if isinstance(result, Err):
            return result
        return _parse_json_object(url, result.value)

    def post_json(
        self,
        url: str,
        payload: Mapping[str, object],
        headers: Mapping[str, str] | None = None,
    ) -> Result[dict[str, Any], HttpError]:
        body = json.dumps(dict(payload)).encode("utf-8")
        result = self._request(
            url,
            method="POST",
            data=body,
            headers={"Content-Type": "application/json", **(headers or {})},
        )
        if isinstance(result, Err):
            return result
        return _parse_json_object(url, result.value)

    def upload(
        self,
        url: str,
        body: BinaryIO,
        *,
        size: int,
        content_type: str,
        headers: Mapping[str, str] | None = None,
    ) -> Result[dict[str, Any], HttpError]:
        result = self._request(
            url,
            method="POST",
            data=body,
            headers={
                "Content-Type": content_type,
                "Content-Length": str(size),
                **(headers or {}),
            },
            timeout=self.upload_timeout,
        )
        if isinstance(result, Err):
            return result
        return _parse_json_object(url, result.value)


@dataclass(frozen=True, slots=True)
class RecordedCall:
    method: str
    url: str
    payload: Mapping[str, object] | None = None
    body: bytes | None = None


class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are queued per (method, URL prefix); each call pops the next
    queued response for the longest matching prefix, and the last one
    repeats once the queue is down to one entry.

    Usage:
        client = MockHttpClient()
        client.queue("POST", "https://api.github.com/repos/o/r/releases", {"id": 7})
        result = client.post_json("https://api.github.com/repos/o/r/releases", {})
        assert result == Ok({"id": 7})
    """

    def __init__(self) -> None:
        self._responses: dict[tuple[str, str], list[dict[str, Any] | HttpError]] = {}
        self.calls: list[RecordedCall] = []
        self._lock = threading.Lock()

    def queue(self, method: str, url_prefix: str, *responses: dict[str, Any] | HttpError) -> None:
        self._responses.setdefault((method, url_prefix), []).extend(responses)

    def _next(self, method: str, url: str) -> Result[dict[str, Any], HttpError]:
        with self._lock:
            keys = [k for k in self._responses if k[0] == method and url.startswith(k[1])]
            if not keys:
                return Err(HttpError(url=url, status=404, message="Not found (mock)"))
            queue = self._responses[max(keys, key=lambda k: len(k[1]))]
            response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def get_json(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[dict[str, Any], HttpError]:
        self.calls.append(RecordedCall("GET", url))
        return self._next("GET", url)

    def post_json(
        self,
        url: str,
        payload: Mapping[str, object],
        headers: Mapping[str, str] | None = None,
    ) -> Result[dict[str, Any], HttpError]:
        self.calls.append(RecordedCall("POST", url, payload=dict(payload)))
        return self._next("POST", url)

    def upload(
        self,
        url: str,
        body: BinaryIO,
        *,
        size: int,
        content_type: str,
        headers: Mapping[str, str] | None = None,
    ) -> Result[dict[str, Any], HttpError]:
        self.calls.append(RecordedCall("UPLOAD", url, body=body.read()))
        return self._next("UPLOAD", url)
