from typing import Any

from pydantic import ConfigDict, Field

from geo_gateway.models.common import GeoPoint


class Country(GeoPoint):
    """A country as served by `/geo/countries`.

    All fields are optional: the `fields` query parameter lets callers ask
    for a subset only.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int | None = None
    name: str | None = None
    iso3: str | None = None
    iso2: str | None = None
    numeric_code: str | None = None
    phone_code: str | None = None
    capital: str | None = None
    currency: str | None = None
    currency_name: str | None = None
    currency_symbol: str | None = None
    tld: str | None = None
    native: str | None = None
    region: str | None = None
    subregion: str | None = None
    nationality: str | None = None
    timezones: list[dict[str, Any]] | None = None
    translations: dict[str, str] | None = None
    emoji: str | None = None
    emoji_u: str | None = Field(default=None, alias="emojiU")


class State(GeoPoint):
    """A first-level administrative division as served by `/geo/states`."""

    id: int | None = None
    name: str | None = None
    country_id: int | None = None
    country_code: str | None = None
    country_name: str | None = None
    state_code: str | None = None
    type: str | None = None


class City(GeoPoint):
    """A city as served by `/geo/cities`."""

    model_config = ConfigDict(populate_by_name=True)

    id: int | None = None
    name: str | None = None
    state_id: int | None = None
    state_code: str | None = None
    state_name: str | None = None
    country_id: int | None = None
    country_code: str | None = None
    country_name: str | None = None
    wiki_data_id: str | None = Field(default=None, alias="wikiDataId")
