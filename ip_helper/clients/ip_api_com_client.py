from http import HTTPStatus
from typing import Any

import httpx

from ip_helper.clients.base import BaseGeoLookup
from ip_helper.errors import InvalidIpError, IpNotFoundError, ReservedIpError, UpstreamServiceError
from ip_helper.models.common import IPGeolocationData
from ip_helper.net import is_private, is_valid_ip


class IpApiCom(BaseGeoLookup):
    """Remote lookup through the http://ip-api.com JSON API."""

    name = "ip-api.com"

    def __init__(
        self,
        base_url: str = "http://ip-api.com",
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def _find(self, ip: str) -> IPGeolocationData:
        if not is_valid_ip(ip):
            raise InvalidIpError(f"Invalid IP address: {ip!r}")
        if is_private(ip):
            raise ReservedIpError(f"Private IP address: {ip}")

        try:
            response = await self._client.get(f"{self._base_url}/json/{ip}")
        except httpx.RequestError as exc:
            raise UpstreamServiceError(f"Request to ip-api.com failed: {exc!r}") from exc

        self._handle_http_errors(response)
        data = self._parse_json(response)
        self._handle_provider_status(data)
        return self._normalize_payload(data)

    @staticmethod
    def _handle_http_errors(response: httpx.Response) -> None:
        status_code = response.status_code
        if status_code == HTTPStatus.NOT_FOUND:
            raise IpNotFoundError("No geolocation information found for this IP address.")
        if status_code == HTTPStatus.TOO_MANY_REQUESTS:
            raise UpstreamServiceError("ip-api.com rate limit exceeded (HTTP 429).")
        if status_code >= HTTPStatus.BAD_REQUEST:
            raise UpstreamServiceError(f"ip-api.com returned HTTP {status_code}: {response.text}")

    @staticmethod
    def _handle_provider_status(data: dict[str, Any]) -> None:
        """Translate ip-api.com's `status`/`message` pair into domain errors.

        Failures come back as HTTP 200 with ``{"status": "fail", "message": "..."}``
        where the message is one of "invalid query", "private range",
        "reserved range" or a quota notice.
        """
        if str(data.get("status") or "").lower() == "success":
            return

        message = str(data.get("message") or "Unknown error from ip-api.com")
        lower_msg = message.lower()

        if "invalid" in lower_msg:
            raise InvalidIpError(message)
        if "private range" in lower_msg or "reserved range" in lower_msg:
            raise ReservedIpError(message)
        if "not found" in lower_msg:
            raise IpNotFoundError(message)
        raise UpstreamServiceError(message)

    @staticmethod
    def _parse_json(response: httpx.Response) -> dict[str, Any]:
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamServiceError(f"Failed to decode ip-api.com response as JSON: {exc}") from exc

    @staticmethod
    def _normalize_payload(data: dict[str, Any]) -> IPGeolocationData:
        return IPGeolocationData(
            ip=str(data.get("query") or ""),
            country=str(data.get("countryCode") or ""),
            country_name=str(data.get("country") or ""),
            region=data.get("regionName") or data.get("region") or None,
            city=data.get("city") or None,
        )

    async def aclose(self) -> None:
        await self._client.aclose()
