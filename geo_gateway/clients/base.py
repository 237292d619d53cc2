from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from geo_gateway.models.geo_models import City, Country, State


class BaseGeoClient(ABC):
    """Abstract interface of the gateway's geo/IP endpoints.

    The service layer depends on this rather than on the concrete HTTP client,
    which keeps it easy to swap in test doubles.
    """

    @abstractmethod
    async def ping(self) -> dict[str, Any]:
        """Check that the gateway is reachable and the credentials are accepted."""
        raise NotImplementedError

    @abstractmethod
    async def get_ip(self, ip: str) -> dict[str, Any]:
        """Look up information about an explicit IP address."""
        raise NotImplementedError

    @abstractmethod
    async def get_countries(self, fields: Sequence[str] = ()) -> list[Country]:
        raise NotImplementedError

    @abstractmethod
    async def get_states(self, country: str, fields: Sequence[str] = ()) -> list[State]:
        raise NotImplementedError

    @abstractmethod
    async def get_cities(self, country: str, state: str, fields: Sequence[str] = ()) -> list[City]:
        raise NotImplementedError
