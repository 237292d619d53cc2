from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Response model for the health check endpoint."""

    status: str


class ErrorResponse(BaseModel):
    """Shape of every error payload returned by the service."""

    code: str
    message: str
