from typing import Any

from ip_helper.clients.base import BaseGeoLookup
from ip_helper.logger import logger
from ip_helper.models.response_models import GeoResult
from ip_helper.net import strip_port
from ip_helper.resolver import resolve_identity


class IpInfoService:
    """Resolve-then-lookup pipeline shared by every transport.

    Transports only differ in how they obtain the caller address and how they
    frame the answer; everything between is done here.
    """

    def __init__(self, geo_lookup: BaseGeoLookup) -> None:
        self._geo_lookup = geo_lookup

    @property
    def geo_lookup(self) -> BaseGeoLookup:
        return self._geo_lookup

    async def describe(self, ip: str) -> GeoResult:
        """Geolocate an already-resolved IP address."""
        info = await self._geo_lookup.lookup(ip)
        return GeoResult(ip=ip, info=info)

    async def describe_peer(self, peername: Any) -> GeoResult:
        """Geolocate a raw-socket peer.

        Raw sockets carry no application headers, so the identity comes from
        the peer address alone.

        Raises:
            MalformedAddressError: the peer address has no usable host/port.
        """
        observed_address = strip_port(peername)
        identity = resolve_identity(observed_address)
        logger.debug(
            f"Resolved raw-socket identity observed={identity.observed_address} is_proxy={identity.is_proxy}"
        )
        return await self.describe(identity.real_ip)

    async def aclose(self) -> None:
        await self._geo_lookup.aclose()
