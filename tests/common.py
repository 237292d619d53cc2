import asyncio
from http import HTTPStatus
from typing import Any

import httpx

from geo_gateway import signer

BASE_URL = "https://gateway.test"
KEY_ID = "AKIDtest"
SECRET = "s3cr3t"


class RecordingTransport(httpx.AsyncBaseTransport):
    """Transport double that records every request and answers with a fixed response."""

    def __init__(
        self,
        status_code: int = HTTPStatus.OK,
        payload: Any = None,
        text: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.payload = {} if payload is None else payload
        self.text = text
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        await request.aread()
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]


class FailingTransport(httpx.AsyncBaseTransport):
    """Transport that raises the given httpx error to simulate network failure."""

    def __init__(self, exc_cls: type[httpx.RequestError] = httpx.ConnectError) -> None:
        self._exc_cls = exc_cls
        self.calls = 0

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        raise self._exc_cls("Network failure", request=request)


class HangingTransport(httpx.AsyncBaseTransport):
    """Transport that never answers until cancelled."""

    def __init__(self) -> None:
        self.calls = 0

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        await asyncio.Event().wait()
        raise AssertionError("unreachable")


def echo_handler(request: httpx.Request) -> httpx.Response:
    """httpx.MockTransport handler that echoes the received request back as JSON."""
    return httpx.Response(
        HTTPStatus.OK,
        json={
            "method": request.method,
            "path": request.url.path,
            "query": request.url.query.decode(),
            "headers": dict(request.headers),
            "body": request.content.decode(),
        },
    )


def parse_authorization(value: str) -> dict[str, str]:
    """Split `hmac id="..", algorithm="..", ...` into a dict."""
    scheme, _, params = value.partition(" ")
    assert scheme == "hmac"
    parsed = {}
    for part in params.split(", "):
        key, _, raw = part.partition("=")
        parsed[key] = raw.strip('"')
    return parsed


def recompute_signature(secret: str, method: str, path: str, query: str, headers: dict[str, str], body: str) -> str:
    """Recompute a signature the way the gateway does, from what was received on the wire."""
    auth = parse_authorization(headers["authorization"])
    names = auth["headers"].split(" ")
    block = "".join(f"{name}: {headers[name]}\n" for name in names)
    md5 = signer.content_md5(body.encode()) if body else ""
    path_and_query = f"{path}?{query}" if query else path
    return signer.sign(secret, f"{block}{method}\napplication/json\n\n{md5}\n{path_and_query}")
