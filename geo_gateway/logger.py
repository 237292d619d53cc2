from logging import config, getLogger
from typing import Any

from geo_gateway.config import LoggingSettings

LOGGER_NAME = "geo_gateway"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def build_log_config(level: str) -> dict[str, Any]:
    """dictConfig for the SDK logger and uvicorn, everything at `level`.

    httpx is held at WARNING so that its per-request INFO lines do not
    duplicate our own send/response logging.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": "%(levelprefix)s %(asctime)s - %(name)s - %(message)s",
                "datefmt": DATE_FORMAT,
            },
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": '%(levelprefix)s %(asctime)s - %(client_addr)s - "%(request_line)s" %(status_code)s',
                "datefmt": DATE_FORMAT,
            },
        },
        "handlers": {
            "stderr": {"class": "logging.StreamHandler", "formatter": "default", "stream": "ext://sys.stderr"},
            "access": {"class": "logging.StreamHandler", "formatter": "access", "stream": "ext://sys.stdout"},
        },
        "loggers": {
            LOGGER_NAME: {"handlers": ["stderr"], "level": level, "propagate": False},
            "httpx": {"handlers": ["stderr"], "level": "WARNING", "propagate": False},
            "uvicorn": {"handlers": ["stderr"], "level": level, "propagate": False},
            "uvicorn.access": {"handlers": ["access"], "level": level, "propagate": False},
        },
    }


def configure_logging(settings: LoggingSettings | None = None) -> dict[str, Any]:
    """Apply the logging setup and return it, so uvicorn can be given the same dict."""
    log_config = build_log_config((settings or LoggingSettings()).level)
    config.dictConfig(log_config)
    return log_config


configure_logging()

logger = getLogger(LOGGER_NAME)
