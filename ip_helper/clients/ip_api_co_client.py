from http import HTTPStatus
from typing import Any

import httpx

from ip_helper.clients.base import BaseGeoLookup
from ip_helper.errors import InvalidIpError, IpNotFoundError, ReservedIpError, UpstreamServiceError
from ip_helper.models.common import IPGeolocationData
from ip_helper.net import is_private, is_valid_ip


class IpApiCo(BaseGeoLookup):
    """Remote lookup through the https://ipapi.co/ JSON API.

    Useful when no local database is deployed. One `httpx.AsyncClient` is kept
    for the lifetime of the lookup so connections are pooled across requests;
    it is closed by `aclose`.
    """

    name = "ipapi.co"

    def __init__(
        self,
        base_url: str = "https://ipapi.co",
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def _find(self, ip: str) -> IPGeolocationData:
        # Answer locally what the provider would reject anyway.
        if not is_valid_ip(ip):
            raise InvalidIpError(f"Invalid IP address: {ip!r}")
        if is_private(ip):
            raise ReservedIpError(f"Private IP address: {ip}")

        try:
            response = await self._client.get(f"{self._base_url}/{ip}/json/")
        except httpx.RequestError as exc:
            raise UpstreamServiceError(f"Request to ipapi.co failed: {exc!r}") from exc

        self._handle_http_errors(response)
        data = self._parse_json(response)
        self._handle_provider_error(data)
        return self._normalize_payload(data)

    @staticmethod
    def _handle_http_errors(response: httpx.Response) -> None:
        """Map ipapi.co HTTP status codes to domain errors.

        400/403/405/429 and 5xx all mean the lookup cannot be served right now;
        404 means the address is unknown.
        """
        status_code = response.status_code
        if status_code == HTTPStatus.NOT_FOUND:
            raise IpNotFoundError("No geolocation information found for this IP address.")
        if status_code == HTTPStatus.TOO_MANY_REQUESTS:
            raise UpstreamServiceError("ipapi.co rate limit or quota exceeded (HTTP 429).")
        if status_code >= HTTPStatus.BAD_REQUEST:
            raise UpstreamServiceError(f"ipapi.co returned HTTP {status_code}: {response.text}")

    @staticmethod
    def _handle_provider_error(data: dict[str, Any]) -> None:
        """Translate the JSON error flag ipapi.co sends with HTTP 200.

        Examples:
            { "error": true, "reason": "Invalid IP Address", "ip": "..." }
            { "error": true, "reason": "Reserved IP Address", "ip": "127.0.0.1", "reserved": true }
            { "error": true, "reason": "RateLimited", "message": "..." }
        """
        if not data.get("error"):
            return

        reason = str(data.get("reason") or data.get("message") or "Unknown error from ipapi.co")
        lower_reason = reason.lower()

        if "invalid" in lower_reason:
            raise InvalidIpError(reason)
        if "reserved" in lower_reason or data.get("reserved") is True:
            raise ReservedIpError(reason)
        raise UpstreamServiceError(reason)

    @staticmethod
    def _parse_json(response: httpx.Response) -> dict[str, Any]:
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamServiceError(f"Failed to decode ipapi.co response as JSON: {exc}") from exc

    @staticmethod
    def _normalize_payload(data: dict[str, Any]) -> IPGeolocationData:
        return IPGeolocationData(
            ip=str(data.get("ip") or ""),
            country=str(data.get("country") or ""),
            country_name=str(data.get("country_name") or ""),
            region=data.get("region") or None,
            city=data.get("city") or None,
        )

    async def aclose(self) -> None:
        await self._client.aclose()
