"""Minimal HTTP client for REST API providers.

Wraps urllib.request with:
- A base URL that request paths are resolved against
- HTTP basic authentication on every request
- A fixed per-request timeout
- Non-2xx responses returned as values instead of raised
"""

import base64
import json
import socket
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any

from deploy.exceptions import RequestFailedError

USER_AGENT = "deploy-providers/0.1"

# Characters left unescaped in request paths; ';' and '=' carry matrix params
SAFE_PATH_CHARS = "/;=:@+,~-._"


@dataclass
class HttpResponse:
    """Status and body of a completed request."""

    status: int
    reason: str
    body: bytes = b""

    @property
    def ok(self) -> bool:
        """True for any 2xx status."""
        return self.status // 100 == 2

    def json(self) -> dict[str, Any]:
        """Parse the body as a JSON object.

        Returns:
            Parsed object, or an empty dict if the body is empty, invalid,
            or not a JSON object
        """
        try:
            data = json.loads(self.body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return {}
        return data if isinstance(data, dict) else {}


class HttpClient:
    """Authenticated client bound to one API base URL."""

    def __init__(
        self,
        base_url: str,
        user: str,
        key: str,
        timeout: int = 60,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        token = base64.b64encode(f"{user}:{key}".encode()).decode("ascii")
        self._auth_header = f"Basic {token}"

    def url_for(self, path: str) -> str:
        """Build the absolute URL for an API path."""
        return self.base_url + urllib.parse.quote(path, safe=SAFE_PATH_CHARS)

    def request(
        self,
        method: str,
        path: str,
        body: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        """Send a request and return its response.

        Args:
            method: HTTP method
            path: Path relative to the base URL
            body: Request body
            headers: Extra request headers

        Returns:
            HttpResponse for any status the server answered with

        Raises:
            RequestFailedError: If no response was received (connection
                failure or timeout)
        """
        url = self.url_for(path)
        req = urllib.request.Request(url, data=body, method=method)
        req.add_header("Authorization", self._auth_header)
        req.add_header("User-Agent", USER_AGENT)
        for name, value in (headers or {}).items():
            req.add_header(name, value)

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                return HttpResponse(
                    status=response.status,
                    reason=response.reason or "",
                    body=response.read(),
                )
        except urllib.error.HTTPError as e:
            return HttpResponse(status=e.code, reason=str(e.reason or ""), body=e.read())
        except urllib.error.URLError as e:
            raise RequestFailedError(method, url, None, details=str(e.reason)) from e
        except (TimeoutError, socket.timeout) as e:
            raise RequestFailedError(
                method, url, None, details=f"Timed out after {self.timeout}s"
            ) from e

    def head(self, path: str) -> HttpResponse:
        return self.request("HEAD", path)

    def post_json(self, path: str, payload: Any = None) -> HttpResponse:
        """POST a JSON payload (or no body when payload is None)."""
        body = json.dumps(payload).encode("utf-8") if payload is not None else None
        return self.request(
            "POST",
            path,
            body=body,
            headers={"Content-Type": "application/json"},
        )

    def put(self, path: str, body: bytes) -> HttpResponse:
        return self.request("PUT", path, body=body)
