from __future__ import annotations

import json
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Protocol

from hardshipdocs.core.errors import RemoteCallError

_BODY_EXCERPT_CHARS = 500


@dataclass(slots=True)
class HttpRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None


@dataclass(slots=True)
class HttpResponse:
    status: int
    headers: dict[str, str]
    body: bytes

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    def json(self) -> object:
        if not self.body:
            return None
        try:
            return json.loads(self.body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise RemoteCallError(
                f"Response body is not valid JSON (status {self.status})",
                status=self.status,
                body=_excerpt(self.body),
            ) from exc


class HttpTransport(Protocol):
    def send(self, request: HttpRequest) -> HttpResponse: ...


class UrllibTransport:
    """Blocking HTTP transport built on urllib; raises RemoteCallError on any failure."""

    def __init__(self, timeout_seconds: float = 120.0) -> None:
        self.timeout_seconds = timeout_seconds

    def send(self, request: HttpRequest) -> HttpResponse:
        raw = urllib.request.Request(
            request.url,
            data=request.body,
            headers=request.headers,
            method=request.method,
        )
        try:
            with urllib.request.urlopen(raw, timeout=self.timeout_seconds) as response:
                return HttpResponse(
                    status=int(response.status),
                    headers={k.lower(): v for k, v in response.headers.items()},
                    body=response.read(),
                )
        except urllib.error.HTTPError as exc:
            body = exc.read() if exc.fp is not None else b""
            raise RemoteCallError(
                f"{request.method} {request.url} failed with HTTP {exc.code}",
                status=exc.code,
                body=_excerpt(body),
            ) from exc
        except (urllib.error.URLError, TimeoutError, OSError) as exc:
            raise RemoteCallError(f"{request.method} {request.url} failed: {exc}") from exc


def json_request(method: str, url: str, payload: object, headers: dict[str, str]) -> HttpRequest:
    merged = {"Content-Type": "application/json"}
    merged.update(headers)
    return HttpRequest(
        method=method,
        url=url,
        headers=merged,
        body=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
    )


def _excerpt(body: bytes) -> str:
    return body[:_BODY_EXCERPT_CHARS].decode("utf-8", errors="replace")
