"""HTTP client abstraction for the change-request host and the registry.

This module provides:
- HttpClient: Protocol for HTTP reads (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Scripted implementation for testing
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from relop.core.result import Err, Ok, Result

__all__ = [
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors and timeouts)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    @property
    def is_transient(self) -> bool:
        """Network failure, rate limiting or a server-side error."""
        return self.status == 0 or self.status == 429 or self.status >= 500

    @property
    def is_auth_failure(self) -> bool:
        return self.status in (401, 403)

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP GET requests."""

    def get_json(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[object, HttpError]:
        """Fetch URL and parse the body as JSON (object or array)."""
        ...

    def get_text(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[str, HttpError]:
        """Fetch URL and return the body as text."""
        ...


class RealHttpClient:
    """HTTP client using urllib with system certificates."""

    def __init__(self, timeout: float = 30.0, user_agent: str = "release-operator") -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def _request(self, url: str, headers: Mapping[str, str] | None) -> Result[bytes, HttpError]:
        all_headers = {"User-Agent": self.user_agent}
        if headers:
            all_headers.update(headers)

        try:
            req = urllib.request.Request(url, headers=all_headers)
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def get_json(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[object, HttpError]:
        result = self._request(url, headers)
        if isinstance(result, Err):
            return result

        try:
            data: object = json.loads(result.value.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            # A 200 with a garbage body is not worth retrying.
            return Err(HttpError(url=url, status=200, message=f"JSON parse error: {e}"))
        return Ok(data)

    def get_text(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[str, HttpError]:
        result = self._request(url, headers)
        if isinstance(result, Err):
            return result

        try:
            return Ok(result.value.decode("utf-8"))
        except UnicodeDecodeError as e:
            return Err(HttpError(url=url, status=200, message=f"Decode error: {e}"))


class MockHttpClient:
    """Scripted HTTP client for testing.

    Responses registered for a URL are served in order; the last one repeats.
    Unknown URLs answer 404.

    Usage:
        client = MockHttpClient()
        client.set_json(url, HttpError(url, 503, "busy"), {"ok": True})
        client.get_json(url)  # Err(503)
        client.get_json(url)  # Ok({"ok": True})
    """

    def __init__(self) -> None:
        self._json_responses: dict[str, list[object]] = {}
        self._text_responses: dict[str, list[str | HttpError]] = {}
        self.calls: list[tuple[str, str, dict[str, str]]] = []

    def set_json(self, url: str, *responses: object) -> None:
        self._json_responses[url] = list(responses)

    def set_text(self, url: str, *responses: str | HttpError) -> None:
        self._text_responses[url] = list(responses)

    def urls(self, method: str | None = None) -> list[str]:
        return [url for m, url, _ in self.calls if method is None or m == method]

    def get_json(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[object, HttpError]:
        self.calls.append(("get_json", url, dict(headers or {})))
        queue = self._json_responses.get(url)
        if not queue:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))

        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def get_text(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[str, HttpError]:
        self.calls.append(("get_text", url, dict(headers or {})))
        queue = self._text_responses.get(url)
        if not queue:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))

        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)
