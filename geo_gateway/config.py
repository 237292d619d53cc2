"""Environment-driven settings.

Sources, highest priority first: process environment, `.env`, defaults.
Names are case-insensitive (`ADDRESS` and `address` are equivalent).
"""

from functools import lru_cache
from logging import getLevelNamesMapping

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SOURCE = "apigw test"
DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_HOST = "0.0.0.0"


def split_address(address: str) -> tuple[str, int]:
    """Split `host:port` into its parts.

    An empty host means all interfaces; IPv6 hosts are written in brackets
    (`[::1]:9000`) and returned without them.
    """
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"address must be host:port, got {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        raise ValueError(f"IPv6 hosts must be bracketed, e.g. [::1]:9000, got {address!r}")

    port_number = int(port)
    if not 0 < port_number < 65536:
        raise ValueError(f"port must be between 1 and 65535, got {port_number}")
    return host or DEFAULT_HOST, port_number


class LoggingSettings(BaseSettings):
    """Log verbosity (`LOG_LEVEL`)."""

    model_config = SettingsConfigDict(env_prefix="LOG_", env_file=".env", extra="ignore")

    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in getLevelNamesMapping():
            raise ValueError(f"unknown log level {value!r}")
        return level


class DatabaseSettings(BaseSettings):
    """Database connection settings (`DATABASE_URI`, `DATABASE_DBNAME`)."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_", env_file=".env", extra="ignore")

    uri: str = ""
    dbname: str = ""


class GatewaySettings(BaseSettings):
    """Location and credentials of the OpenAPI gateway (`GATEWAY_*`)."""

    model_config = SettingsConfigDict(env_prefix="GATEWAY_", env_file=".env", extra="ignore")

    url: str = Field(description="Gateway base URL, e.g. https://service-xxxx.gz.apigw.tencentcs.com/release")
    key: str = Field(default="", description="Access key id; signing is skipped when empty")
    secret: SecretStr = Field(default=SecretStr(""), description="Access key secret; signing is skipped when empty")
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    source: str = DEFAULT_SOURCE


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    address: str = Field(default=":9000", description="Listen address of the HTTP service, host:port")
    log: LoggingSettings = Field(default_factory=LoggingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)

    @field_validator("address")
    @classmethod
    def _validate_address(cls, value: str) -> str:
        split_address(value)
        return value

    @property
    def listen_host(self) -> str:
        return split_address(self.address)[0]

    @property
    def listen_port(self) -> int:
        return split_address(self.address)[1]


@lru_cache
def get_settings() -> Settings:
    return Settings()
