import uvicorn

from geo_gateway.config import get_settings
from geo_gateway.logger import configure_logging


def main() -> None:
    """Run the FastAPI application with uvicorn on the configured address."""
    settings = get_settings()
    uvicorn.run(
        "geo_gateway.main:app",
        host=settings.listen_host,
        port=settings.listen_port,
        log_config=configure_logging(settings.log),
    )


if __name__ == "__main__":
    main()
