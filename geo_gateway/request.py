from collections.abc import Mapping, Sequence
from email.utils import formatdate
from typing import Any

import httpx
from pydantic_core import PydanticSerializationError, from_json, to_json

from geo_gateway import signer
from geo_gateway.config import DEFAULT_SOURCE, DEFAULT_TIMEOUT_SECONDS
from geo_gateway.errors import RequestTimeoutError, SerializationError, TransportError
from geo_gateway.logger import logger
from geo_gateway.models.common import ClientIdentity

QueryParams = Mapping[str, str | Sequence[str]] | Sequence[tuple[str, str]]


def http_date() -> str:
    """Current UTC time in HTTP date format, e.g. `Mon, 02 Jan 2006 15:04:05 GMT`."""
    return formatdate(usegmt=True)


def normalize_query(params: QueryParams | None) -> list[tuple[str, str]]:
    """Flatten a mapping or a sequence of pairs into `(key, value)` tuples."""
    if not params:
        return []
    if isinstance(params, Mapping):
        items: list[tuple[str, str]] = []
        for key, value in params.items():
            if isinstance(value, str):
                items.append((key, value))
            else:
                items.extend((key, str(v)) for v in value)
        return items
    return [(str(key), str(value)) for key, value in params]


class GatewayRequest:
    """One outbound call to the gateway.

    Headers, query and body are accumulated through the `set_*` methods and
    only turned into a signed `httpx.Request` by `build()`, so the signature
    always covers the final state of the request.

    The `x-date` header is stamped when the object is created, not when it is
    sent.
    """

    def __init__(
        self,
        identity: ClientIdentity,
        method: str,
        path: str,
        source: str = DEFAULT_SOURCE,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.identity = identity
        self.method = method
        self.path = path
        # httpx.Headers is case-insensitive and exposes lower-cased keys.
        self.headers = httpx.Headers(
            {
                "accept": signer.ACCEPT,
                "source": source,
                "x-date": http_date(),
            }
        )
        self.query: list[tuple[str, str]] = []
        self.body: bytes | None = None
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    def set_headers(self, extra: Mapping[str, str]) -> "GatewayRequest":
        """Merge `extra` into the headers; existing names are overwritten."""
        self.headers.update(extra)
        return self

    def set_query(self, params: QueryParams | None) -> "GatewayRequest":
        """Replace the whole query string."""
        self.query = normalize_query(params)
        return self

    def set_body(self, value: Any) -> "GatewayRequest":
        """Serialize `value` as compact JSON and use it as the request body.

        Raises SerializationError when the value cannot be represented as JSON,
        including NaN and infinite floats.
        """
        try:
            body = to_json(value)
        except PydanticSerializationError as exc:
            raise SerializationError(f"Failed to encode request body as JSON: {exc}") from exc

        # to_json writes NaN/Infinity literals, which are not valid JSON.
        try:
            from_json(body, allow_inf_nan=False)
        except ValueError as exc:
            raise SerializationError(f"Request body is not valid JSON: {exc}") from exc

        self.body = body
        return self

    @property
    def url(self) -> str:
        if not self.query:
            return f"{self.identity.base_url}{self.path}"
        return f"{self.identity.base_url}{self.path}?{signer.encode_query(self.query)}"

    def authorization(self, headers: Mapping[str, str] | None = None) -> str:
        """Signature header value for the current state of this request."""
        return signer.authorization(
            key_id=self.identity.access_key_id,
            secret=self.identity.access_key_secret.get_secret_value(),
            method=self.method,
            path=self.path,
            headers=self.headers if headers is None else headers,
            query=self.query,
            body=self.body,
        )

    def build(self, timeout: float | None = None) -> httpx.Request:
        """Freeze the current state into an `httpx.Request`, signing it if credentials are set."""
        headers = httpx.Headers(self.headers)
        if self.identity.signing_enabled:
            # A caller-supplied authorization header must not end up in the signed set.
            headers.pop("authorization", None)
            headers["Authorization"] = self.authorization(headers)

        timeout_value = self._timeout_seconds if timeout is None else timeout
        return httpx.Request(
            self.method,
            self.url,
            headers=headers,
            content=self.body,
            extensions={"timeout": httpx.Timeout(timeout_value).as_dict()},
        )

    async def send(self, timeout: float | None = None) -> httpx.Response:
        """Send the request and return the raw response.

        No retries are attempted. Cancelling the awaiting task aborts the call.
        """
        request = self.build(timeout)
        timeout_value = self._timeout_seconds if timeout is None else timeout
        logger.debug(
            f"Sending gateway request method={self.method} path={self.path} "
            f"signed={self.identity.signing_enabled}"
        )
        try:
            async with httpx.AsyncClient(timeout=timeout_value, transport=self._transport) as client:
                response = await client.send(request)
        except httpx.TimeoutException as exc:
            logger.error(f"Gateway request timed out method={self.method} path={self.path} timeout={timeout_value}")
            raise RequestTimeoutError(f"Request to gateway timed out after {timeout_value}s: {repr(exc)}") from exc
        except httpx.RequestError as exc:
            logger.error(f"Gateway request failed method={self.method} path={self.path} error={repr(exc)}")
            raise TransportError(f"Request to gateway failed: {repr(exc)}") from exc

        logger.debug(f"Gateway responded method={self.method} path={self.path} status={response.status_code}")
        return response
