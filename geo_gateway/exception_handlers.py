from collections.abc import Sequence
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from geo_gateway.errors import (
    AuthenticationError,
    ConfigurationError,
    GatewayError,
    HttpStatusError,
    RequestTimeoutError,
    SerializationError,
    TransportError,
)
from geo_gateway.logger import logger
from geo_gateway.models.response_models import ErrorResponse

# Most specific first; the first isinstance match wins.
GATEWAY_ERROR_RESPONSES: list[tuple[type[GatewayError], int, str]] = [
    (AuthenticationError, status.HTTP_502_BAD_GATEWAY, "upstream_auth_failed"),
    (HttpStatusError, status.HTTP_502_BAD_GATEWAY, "upstream_error"),
    (SerializationError, status.HTTP_502_BAD_GATEWAY, "upstream_invalid_response"),
    (RequestTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT, "upstream_timeout"),
    (TransportError, status.HTTP_502_BAD_GATEWAY, "upstream_unavailable"),
]


def _normalize_pydantic_errors(errors: Sequence[Any]) -> list[dict[str, Any]]:
    """Make sure Pydantic error dicts are JSON-serializable."""
    normalized: list[dict[str, Any]] = []
    for error in errors:
        e = dict(error)
        ctx = e.get("ctx")
        if isinstance(ctx, dict):
            # Convert any non-serializable ctx values (e.g. exceptions) to strings.
            e["ctx"] = {k: str(v) for k, v in ctx.items()}
        normalized.append(e)
    return normalized


def _build_validation_error_payload(errors: Sequence[Any]) -> dict:
    """Normalize validation errors into a consistent error payload.

    Internal validation details are not exposed to clients.
    """
    code = "invalid_request"
    message = "Invalid request parameters"

    for error in _normalize_pydantic_errors(errors):
        loc = error.get("loc", ())
        # Handle both request-level ("query", "ip") and model-level ("ip") locations.
        if len(loc) >= 1 and loc[-1] == "ip" and error.get("type") != "missing":
            code = "invalid_ip"
            message = "The supplied IP address is not a valid IPv4 or IPv6 address."
            break

    return ErrorResponse(code=code, message=message).model_dump()


async def pydantic_validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle Pydantic validation errors raised during dependency resolution."""
    logger.info(
        "Pydantic validation error during request handling "
        f"path={request.url.path} method={request.method} errors={exc.errors()}"
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_build_validation_error_payload(exc.errors()))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle missing or malformed query parameters detected by FastAPI itself."""
    logger.info(
        "Request validation error during request handling "
        f"path={request.url.path} method={request.method} errors={exc.errors()}"
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_build_validation_error_payload(exc.errors()))


async def gateway_exception_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Translate gateway failures into 502/504 responses."""
    status_code, code = status.HTTP_502_BAD_GATEWAY, "upstream_error"
    for error_cls, mapped_status, mapped_code in GATEWAY_ERROR_RESPONSES:
        if isinstance(exc, error_cls):
            status_code, code = mapped_status, mapped_code
            break

    logger.exception(
        "Gateway error while processing request "
        f"path={request.url.path} method={request.method} code={code} error={exc}"
    )
    content = ErrorResponse(code=code, message=str(exc)).model_dump()
    return JSONResponse(status_code=status_code, content=content)


async def configuration_exception_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    """Report a service that cannot reach the gateway because of its own settings."""
    logger.error(f"Service misconfigured path={request.url.path} method={request.method} error={exc}")
    content = ErrorResponse(
        code="not_configured",
        message="The service is not configured to reach the gateway.",
    ).model_dump()
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected errors to return a structured 500 response."""
    logger.exception(
        f"Unhandled exception while processing request: {repr(exc)} path={request.url.path} method={request.method}"
    )
    content = ErrorResponse(
        code="internal_error",
        message="An unexpected error occurred while processing the request.",
    ).model_dump()
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
    )
