class AppError(Exception):
    """Base application error for the geo gateway client."""


class GatewayError(AppError):
    """Base error for failures talking to the OpenAPI gateway."""


class TransportError(GatewayError):
    """Raised when the request never produced a response (DNS, connect, reset...)."""


class RequestTimeoutError(TransportError):
    """Raised when the gateway did not answer within the configured timeout."""


class SerializationError(GatewayError):
    """Raised when a request body or a response payload cannot be (de)serialized."""


class HttpStatusError(GatewayError):
    """Raised when the gateway answers with a non-2xx status code."""

    def __init__(self, status_code: int, message: str, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthenticationError(HttpStatusError):
    """Raised when the gateway rejects our credentials or signature (HTTP 401/403)."""


class ConfigurationError(AppError):
    """Raised when the settings needed to reach the gateway are missing or invalid."""
