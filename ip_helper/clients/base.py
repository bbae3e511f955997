from abc import ABC, abstractmethod
from collections.abc import Iterable

from ip_helper.errors import IpProviderError
from ip_helper.logger import logger
from ip_helper.models.common import IPGeolocationData

NOT_FOUND = "not found"


def remove_duplicates(values: Iterable[str]) -> list[str]:
    """Drop repeated values, keeping the first occurrence of each in order."""
    return list(dict.fromkeys(values))


class BaseGeoLookup(ABC):
    """Abstract base for all geolocation backends.

    Concrete implementations (local MaxMind database, ipapi.co, ip-api.com)
    implement `_find` and map backend-specific responses into
    `IPGeolocationData`, raising `IpProviderError` subclasses on failure.

    Callers only use `lookup`, which never raises: a failed lookup degrades to
    the single-element `["not found"]` answer so every transport always has
    something to send back.
    """

    name: str = "base"

    async def lookup(self, ip: str) -> list[str]:
        """Return the de-duplicated locality fields for `ip`, or `["not found"]`."""
        try:
            data = await self._find(ip)
        except IpProviderError as exc:
            logger.info(f"Geolocation lookup miss provider={self.name} ip={ip} error={exc!r}")
            return [NOT_FOUND]
        return remove_duplicates(data.locality_fields())

    @abstractmethod
    async def _find(self, ip: str) -> IPGeolocationData:
        """Look up geolocation information for an explicit IP address."""
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release backend resources. Stateless backends have nothing to do."""
        return None
