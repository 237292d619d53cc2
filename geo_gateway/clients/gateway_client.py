from collections.abc import Sequence
from http import HTTPStatus
from typing import Any, TypeVar

import httpx
from pydantic import SecretStr, TypeAdapter, ValidationError

from geo_gateway.clients.base import BaseGeoClient
from geo_gateway.config import DEFAULT_SOURCE, DEFAULT_TIMEOUT_SECONDS, GatewaySettings
from geo_gateway.errors import AuthenticationError, HttpStatusError, SerializationError
from geo_gateway.models.common import ClientIdentity
from geo_gateway.models.geo_models import City, Country, State
from geo_gateway.request import GatewayRequest, QueryParams

T = TypeVar("T")

_COUNTRIES = TypeAdapter(list[Country])
_STATES = TypeAdapter(list[State])
_CITIES = TypeAdapter(list[City])


class GatewayClient(BaseGeoClient):
    """Client for the geo/IP endpoints published behind the OpenAPI gateway.

    When both `access_key_id` and `access_key_secret` are given every request
    carries an HMAC `Authorization` header, otherwise requests go out unsigned.
    """

    def __init__(
        self,
        base_url: str,
        access_key_id: str = "",
        access_key_secret: str = "",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        source: str = DEFAULT_SOURCE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.identity = ClientIdentity(
            base_url=base_url,
            access_key_id=access_key_id,
            access_key_secret=SecretStr(access_key_secret),
        )
        self._timeout_seconds = timeout_seconds
        self._source = source
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: GatewaySettings, transport: httpx.AsyncBaseTransport | None = None
    ) -> "GatewayClient":
        return cls(
            base_url=settings.url,
            access_key_id=settings.key,
            access_key_secret=settings.secret.get_secret_value(),
            timeout_seconds=settings.timeout_seconds,
            source=settings.source,
            transport=transport,
        )

    def request(self, method: str, path: str) -> GatewayRequest:
        """Start a new request; the caller adds query/headers/body and sends it."""
        return GatewayRequest(
            self.identity,
            method,
            path,
            source=self._source,
            timeout_seconds=self._timeout_seconds,
            transport=self._transport,
        )

    async def ping(self) -> dict[str, Any]:
        data = await self._get("/")
        return self._expect_object(data)

    async def get_ip(self, ip: str) -> dict[str, Any]:
        data = await self._get("/ip", {"value": ip})
        return self._expect_object(data)

    async def get_countries(self, fields: Sequence[str] = ()) -> list[Country]:
        data = await self._get("/geo/countries", {"fields": ",".join(fields)})
        return self._decode(_COUNTRIES, data)

    async def get_states(self, country: str, fields: Sequence[str] = ()) -> list[State]:
        data = await self._get("/geo/states", {"country": country, "fields": ",".join(fields)})
        return self._decode(_STATES, data)

    async def get_cities(self, country: str, state: str, fields: Sequence[str] = ()) -> list[City]:
        data = await self._get(
            "/geo/cities",
            {"country": country, "state": state, "fields": ",".join(fields)},
        )
        return self._decode(_CITIES, data)

    async def _get(self, path: str, query: QueryParams | None = None) -> Any:
        """Send a GET request and return the decoded JSON payload.

        The status code is checked before decoding, so gateway error pages
        surface as HttpStatusError rather than as JSON decode failures.
        """
        response = await self.request("GET", path).set_query(query).send()
        self._handle_http_errors(response)
        return self._parse_json(response)

    @staticmethod
    def _handle_http_errors(response: httpx.Response) -> None:
        """Map non-2xx status codes from the gateway to domain-specific errors."""
        status_code = response.status_code
        if response.is_success:
            return

        if status_code in (HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN):
            # The gateway rejected the key id, the signature or an expired x-date.
            raise AuthenticationError(
                status_code,
                f"Authentication with gateway failed (HTTP {status_code}).",
                body=response.text,
            )

        raise HttpStatusError(status_code, f"Gateway returned HTTP {status_code}: {response.text}", body=response.text)

    @staticmethod
    def _parse_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise SerializationError(f"Failed to decode gateway response as JSON: {exc}") from exc

    @staticmethod
    def _expect_object(data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise SerializationError(f"Expected a JSON object from gateway, got {type(data).__name__}")
        return data

    @staticmethod
    def _decode(adapter: TypeAdapter[list[T]], data: Any) -> list[T]:
        try:
            return adapter.validate_python(data)
        except ValidationError as exc:
            raise SerializationError(f"Unexpected gateway payload: {exc}") from exc
