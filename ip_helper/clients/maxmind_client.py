import asyncio
from pathlib import Path

import geoip2.database
import geoip2.errors
import geoip2.models
import maxminddb

from ip_helper.clients.base import BaseGeoLookup
from ip_helper.errors import ConfigurationError, InvalidIpError, IpNotFoundError, UpstreamServiceError
from ip_helper.models.common import IPGeolocationData


class MaxMindCity(BaseGeoLookup):
    """Lookup backed by a local MaxMind GeoLite2/GeoIP2 City database.

    The reader is opened once and only read afterwards, so a single instance is
    shared by the HTTP and raw-socket fronts without locking. Lookups run in a
    worker thread to keep the event loop free while the tree is walked.
    """

    name = "maxmind"

    def __init__(self, db_path: str | Path, locale: str = "en") -> None:
        self._db_path = Path(db_path)
        try:
            self._reader = geoip2.database.Reader(str(self._db_path), locales=[locale])
        except (OSError, ValueError, maxminddb.InvalidDatabaseError) as exc:
            raise ConfigurationError(f"Cannot open geo database {self._db_path}: {exc}") from exc

    async def _find(self, ip: str) -> IPGeolocationData:
        try:
            response = await asyncio.to_thread(self._reader.city, ip)
        except geoip2.errors.AddressNotFoundError as exc:
            raise IpNotFoundError(f"No geolocation information found for {ip}.") from exc
        except ValueError as exc:
            # geoip2 raises ValueError for strings that are not IP addresses.
            raise InvalidIpError(str(exc)) from exc
        except (geoip2.errors.GeoIP2Error, maxminddb.InvalidDatabaseError) as exc:
            raise UpstreamServiceError(f"Geo database lookup failed: {exc!r}") from exc

        return self._normalize_response(ip, response)

    @staticmethod
    def _normalize_response(ip: str, response: geoip2.models.City) -> IPGeolocationData:
        """Map a geoip2 City record into our normalized schema.

        `name` attributes are already localized by the reader's locale list.
        """
        return IPGeolocationData(
            ip=ip,
            country=response.country.iso_code or "",
            country_name=response.country.name or "",
            region=response.subdivisions.most_specific.name,
            city=response.city.name,
        )

    async def aclose(self) -> None:
        self._reader.close()
