from typing import Annotated, Any

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from geo_gateway.clients.base import BaseGeoClient
from geo_gateway.clients.gateway_client import GatewayClient
from geo_gateway.config import get_settings
from geo_gateway.errors import ConfigurationError, GatewayError
from geo_gateway.exception_handlers import (
    configuration_exception_handler,
    gateway_exception_handler,
    pydantic_validation_exception_handler,
    request_validation_exception_handler,
    unhandled_exception_handler,
)
from geo_gateway.logger import logger
from geo_gateway.models.geo_models import City, Country, State
from geo_gateway.models.request_models import CitiesRequest, CountriesRequest, IPLookupRequest, StatesRequest
from geo_gateway.models.response_models import ErrorResponse, HealthResponse

app = FastAPI(
    title="Geo Gateway Service",
    version="0.1.0",
    description="Geo/IP lookups proxied to the signed OpenAPI gateway.",
)
logger.info("Started Geo Gateway Service")

UPSTREAM_ERRORS: dict[int | str, dict[str, Any]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse},
    status.HTTP_504_GATEWAY_TIMEOUT: {"model": ErrorResponse},
}


def get_gateway_client() -> BaseGeoClient:
    """Dependency to provide a gateway client built from the current settings.

    Settings are loaded here rather than through `Depends(get_settings)` so
    that a broken environment is reported as a server error, not as an
    invalid request.
    """
    try:
        settings = get_settings()
    except ValidationError as exc:
        raise ConfigurationError(f"Gateway settings are invalid: {exc}") from exc
    return GatewayClient.from_settings(settings.gateway)


app.add_exception_handler(ValidationError, pydantic_validation_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
app.add_exception_handler(ConfigurationError, configuration_exception_handler)
app.add_exception_handler(GatewayError, gateway_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.get(
    "/health",
    tags=["health"],
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
)
async def health() -> HealthResponse:
    """Basic health check endpoint; does not call the gateway."""
    return HealthResponse(status="ok")


@app.get(
    "/v1/ping",
    tags=["gateway"],
    status_code=status.HTTP_200_OK,
    responses=UPSTREAM_ERRORS,
    summary="Ping the upstream gateway.",
)
async def ping(
    request: Request,
    client: Annotated[BaseGeoClient, Depends(get_gateway_client)],
) -> dict[str, Any]:
    logger.info(f"Pinging gateway path={request.url.path} method={request.method}")
    return await client.ping()


@app.get(
    "/v1/ip",
    tags=["ip"],
    status_code=status.HTTP_200_OK,
    responses=UPSTREAM_ERRORS,
    summary="Look up information for an IP address.",
)
async def ip_lookup(
    request: Request,
    query: Annotated[IPLookupRequest, Depends()],
    client: Annotated[BaseGeoClient, Depends(get_gateway_client)],
) -> dict[str, Any]:
    logger.info(f"Performing IP lookup path={request.url.path} method={request.method} ip={query.ip}")
    return await client.get_ip(query.ip)


@app.get(
    "/v1/geo/countries",
    tags=["geo"],
    response_model=list[Country],
    status_code=status.HTTP_200_OK,
    responses=UPSTREAM_ERRORS,
    summary="List countries.",
)
async def countries(
    request: Request,
    query: Annotated[CountriesRequest, Depends()],
    client: Annotated[BaseGeoClient, Depends(get_gateway_client)],
) -> list[Country]:
    logger.info(f"Listing countries path={request.url.path} method={request.method} fields={query.field_list}")
    return await client.get_countries(query.field_list)


@app.get(
    "/v1/geo/states",
    tags=["geo"],
    response_model=list[State],
    status_code=status.HTTP_200_OK,
    responses=UPSTREAM_ERRORS,
    summary="List the states of a country.",
)
async def states(
    request: Request,
    query: Annotated[StatesRequest, Depends()],
    client: Annotated[BaseGeoClient, Depends(get_gateway_client)],
) -> list[State]:
    logger.info(
        f"Listing states path={request.url.path} method={request.method} "
        f"country={query.country} fields={query.field_list}"
    )
    return await client.get_states(query.country, query.field_list)


@app.get(
    "/v1/geo/cities",
    tags=["geo"],
    response_model=list[City],
    status_code=status.HTTP_200_OK,
    responses=UPSTREAM_ERRORS,
    summary="List the cities of a state.",
)
async def cities(
    request: Request,
    query: Annotated[CitiesRequest, Depends()],
    client: Annotated[BaseGeoClient, Depends(get_gateway_client)],
) -> list[City]:
    logger.info(
        f"Listing cities path={request.url.path} method={request.method} "
        f"country={query.country} state={query.state} fields={query.field_list}"
    )
    return await client.get_cities(query.country, query.state, query.field_list)
