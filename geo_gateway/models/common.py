from typing import Any

from pydantic import BaseModel, ConfigDict, SecretStr, field_validator


class ClientIdentity(BaseModel):
    """Gateway location and the key pair used to sign requests.

    Either credential may be empty, in which case requests go out unsigned.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str
    access_key_id: str = ""
    access_key_secret: SecretStr = SecretStr("")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def signing_enabled(self) -> bool:
        return bool(self.access_key_id) and bool(self.access_key_secret.get_secret_value())


class GeoPoint(BaseModel):
    """Shared latitude/longitude fields for geo entities."""

    latitude: float | None = None
    longitude: float | None = None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_lat_lon(cls, value: Any) -> float | None:
        """Allow latitude/longitude to be provided as strings, numbers, or null.

        The dataset behind the gateway stores coordinates as strings; this
        validator normalizes them into floats while gracefully handling
        missing or invalid values.
        """
        if value is None:
            return None
        try:
            # For general GPS and mapping, 5-6 decimal places (e.g., 34.052235)
            return round(float(value), 6)
        except (TypeError, ValueError):
            return None
