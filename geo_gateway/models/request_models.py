from ipaddress import ip_address

from pydantic import BaseModel, Field, field_validator


def split_fields(value: str | None) -> list[str]:
    """Turn `name, iso2,,capital` into `["name", "iso2", "capital"]`."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


class IPLookupRequest(BaseModel):
    """Query parameters of `/v1/ip`."""

    ip: str = Field(
        description="IPv4 or IPv6 address to look up.",
        examples=["8.8.8.8", "2001:4860:4860::8888"],
    )

    @field_validator("ip", mode="before")
    @classmethod
    def _validate_ip(cls, value: str) -> str:
        """Validate that ip is a valid IP address (IPv4 or IPv6), surrounding blanks removed."""
        value_str = str(value).strip()
        try:
            ip_address(value_str)
        except ValueError as exc:
            raise ValueError("ip must be a valid IPv4 or IPv6 address") from exc

        return value_str


class CountriesRequest(BaseModel):
    """Query parameters of `/v1/geo/countries`."""

    fields: str | None = Field(
        default=None,
        description="Comma-separated list of fields to return. All fields when omitted.",
        examples=["name,iso2,capital"],
    )

    @property
    def field_list(self) -> list[str]:
        return split_fields(self.fields)


class StatesRequest(CountriesRequest):
    """Query parameters of `/v1/geo/states`."""

    country: str = Field(min_length=1, description="ISO2 code of the country.", examples=["CN"])


class CitiesRequest(StatesRequest):
    """Query parameters of `/v1/geo/cities`."""

    state: str = Field(min_length=1, description="State code within the country.", examples=["GD"])
