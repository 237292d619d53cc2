from collections.abc import Iterator, Sequence
from typing import Any

import pytest
from fastapi.testclient import TestClient

from geo_gateway.clients.base import BaseGeoClient
from geo_gateway.config import get_settings
from geo_gateway.errors import (
    AuthenticationError,
    HttpStatusError,
    RequestTimeoutError,
    SerializationError,
    TransportError,
)
from geo_gateway.main import app, get_gateway_client
from geo_gateway.models.geo_models import City, Country, State


class _FakeGeoClient(BaseGeoClient):
    """Test double for GatewayClient that records calls and returns canned data."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    async def ping(self) -> dict[str, Any]:
        self.calls.append(("ping", ()))
        return {"msg": "pong"}

    async def get_ip(self, ip: str) -> dict[str, Any]:
        self.calls.append(("get_ip", (ip,)))
        return {"ip": ip, "country": "United States"}

    async def get_countries(self, fields: Sequence[str] = ()) -> list[Country]:
        self.calls.append(("get_countries", (list(fields),)))
        return [Country(name="China", iso2="CN", emoji_u="U+1F1E8 U+1F1F3")]

    async def get_states(self, country: str, fields: Sequence[str] = ()) -> list[State]:
        self.calls.append(("get_states", (country, list(fields))))
        return [State(name="Guangdong", state_code="GD")]

    async def get_cities(self, country: str, state: str, fields: Sequence[str] = ()) -> list[City]:
        self.calls.append(("get_cities", (country, state, list(fields))))
        return [City(name="Shenzhen", wiki_data_id="Q15174")]


class _ErrorRaisingClient(_FakeGeoClient):
    """Test double that always raises a configured exception."""

    def __init__(self, exc: Exception) -> None:
        super().__init__()
        self._exc = exc

    async def get_ip(self, ip: str) -> dict[str, Any]:
        raise self._exc


@pytest.fixture
def fake_client() -> Iterator[_FakeGeoClient]:
    fake = _FakeGeoClient()
    app.dependency_overrides[get_gateway_client] = lambda: fake
    try:
        yield fake
    finally:
        app.dependency_overrides.clear()


def _call_lookup_with_error(exc: Exception) -> tuple[int, dict]:
    """Helper that wires a failing client and calls the /v1/ip endpoint."""
    app.dependency_overrides[get_gateway_client] = lambda: _ErrorRaisingClient(exc)
    client = TestClient(app)
    try:
        response = client.get("/v1/ip?ip=8.8.8.8")
        return response.status_code, response.json()
    finally:
        app.dependency_overrides.clear()


def test_health() -> None:
    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ping(fake_client: _FakeGeoClient) -> None:
    response = TestClient(app).get("/v1/ping")

    assert response.status_code == 200
    assert response.json() == {"msg": "pong"}


def test_ip_lookup(fake_client: _FakeGeoClient) -> None:
    response = TestClient(app).get("/v1/ip", params={"ip": "8.8.8.8"})

    assert response.status_code == 200
    assert response.json()["ip"] == "8.8.8.8"
    assert fake_client.calls == [("get_ip", ("8.8.8.8",))]


def test_ip_lookup_rejects_invalid_ip(fake_client: _FakeGeoClient) -> None:
    response = TestClient(app).get("/v1/ip", params={"ip": "qwerty"})

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_ip"
    assert fake_client.calls == []


def test_ip_lookup_requires_ip(fake_client: _FakeGeoClient) -> None:
    response = TestClient(app).get("/v1/ip")

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_request"


def test_countries(fake_client: _FakeGeoClient) -> None:
    response = TestClient(app).get("/v1/geo/countries", params={"fields": "name,iso2"})

    assert response.status_code == 200
    body = response.json()
    assert body[0]["iso2"] == "CN"
    assert body[0]["emojiU"] == "U+1F1E8 U+1F1F3"
    assert fake_client.calls == [("get_countries", (["name", "iso2"],))]


def test_states(fake_client: _FakeGeoClient) -> None:
    response = TestClient(app).get("/v1/geo/states", params={"country": "CN"})

    assert response.status_code == 200
    assert response.json()[0]["state_code"] == "GD"
    assert fake_client.calls == [("get_states", ("CN", []))]


def test_states_require_country(fake_client: _FakeGeoClient) -> None:
    response = TestClient(app).get("/v1/geo/states")

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_request"


def test_cities(fake_client: _FakeGeoClient) -> None:
    response = TestClient(app).get("/v1/geo/cities", params={"country": "CN", "state": "GD", "fields": "name"})

    assert response.status_code == 200
    assert response.json()[0]["wikiDataId"] == "Q15174"
    assert fake_client.calls == [("get_cities", ("CN", "GD", ["name"]))]


def test_ip_lookup_maps_authentication_error_to_502() -> None:
    status_code, body = _call_lookup_with_error(AuthenticationError(403, "Authentication with gateway failed"))

    assert status_code == 502
    assert body["code"] == "upstream_auth_failed"


def test_ip_lookup_maps_http_status_error_to_502() -> None:
    status_code, body = _call_lookup_with_error(HttpStatusError(500, "Gateway returned HTTP 500"))

    assert status_code == 502
    assert body["code"] == "upstream_error"
    assert "HTTP 500" in body["message"]


def test_ip_lookup_maps_serialization_error_to_502() -> None:
    status_code, body = _call_lookup_with_error(SerializationError("bad payload"))

    assert status_code == 502
    assert body["code"] == "upstream_invalid_response"


def test_ip_lookup_maps_timeout_to_504() -> None:
    status_code, body = _call_lookup_with_error(RequestTimeoutError("timed out"))

    assert status_code == 504
    assert body["code"] == "upstream_timeout"


def test_ip_lookup_maps_transport_error_to_502() -> None:
    status_code, body = _call_lookup_with_error(TransportError("Upstream failure"))

    assert status_code == 502
    assert body["code"] == "upstream_unavailable"
    assert "Upstream failure" in body["message"]


def test_missing_gateway_settings_is_a_server_error(monkeypatch: pytest.MonkeyPatch) -> None:
    """An unset GATEWAY_URL is reported as 500, never as a bad request from the caller."""
    monkeypatch.delenv("GATEWAY_URL", raising=False)
    get_settings.cache_clear()
    try:
        response = TestClient(app).get("/v1/ping")
    finally:
        get_settings.cache_clear()

    assert response.status_code == 500
    assert response.json()["code"] == "not_configured"
