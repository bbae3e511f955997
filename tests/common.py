from collections.abc import Callable
from typing import Any

import httpx

from ip_helper.clients.base import BaseGeoLookup
from ip_helper.errors import IpNotFoundError
from ip_helper.models.common import IPGeolocationData


class MockResponse:
    def __init__(
        self,
        status_code: int,
        payload: dict[str, Any] | None = None,
        text: str = "",
        content: bytes = b"",
    ) -> None:
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text
        self.content = content

    def json(self) -> dict[str, Any]:
        return self._payload


class MockAsyncClient:
    """Minimal mock for httpx.AsyncClient, usable directly or as an async context manager."""

    def __init__(self, response: MockResponse) -> None:
        self._response = response
        self.requested_urls: list[str] = []
        self.closed = False

    async def __aenter__(self) -> "MockAsyncClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def get(self, url: str) -> MockResponse:
        self.requested_urls.append(url)
        return self._response

    async def aclose(self) -> None:
        self.closed = True


class FailingAsyncClient:
    """Async client whose requests raise a RequestError to simulate network failure."""

    def __init__(self, url: str, *args: Any, **kwargs: Any) -> None:
        self._url = url

    async def __aenter__(self) -> "FailingAsyncClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def get(self, url: str) -> MockResponse:
        request = httpx.Request("GET", self._url)
        raise httpx.RequestError("Network failure", request=request)

    async def aclose(self) -> None:
        return None


def make_fake_async_client(response: MockResponse) -> Callable[..., MockAsyncClient]:
    """Factory for a fake httpx.AsyncClient returning a fixed response."""

    def _fake_client(*args: Any, **kwargs: Any) -> MockAsyncClient:
        return MockAsyncClient(response)

    return _fake_client


class FakeGeoLookup(BaseGeoLookup):
    """In-memory lookup keyed by IP; unknown IPs behave like a database miss."""

    name = "fake"

    def __init__(self, records: dict[str, IPGeolocationData] | None = None) -> None:
        self._records = records or {}
        self.looked_up: list[str] = []
        self.closed = False

    async def _find(self, ip: str) -> IPGeolocationData:
        self.looked_up.append(ip)
        if ip not in self._records:
            raise IpNotFoundError(f"No record for {ip}")
        return self._records[ip]

    async def aclose(self) -> None:
        self.closed = True


GOOGLE_DNS = IPGeolocationData(
    ip="8.8.8.8",
    country="US",
    country_name="United States",
    region="California",
    city="Mountain View",
)

SINGAPORE = IPGeolocationData(
    ip="1.2.3.4",
    country="SG",
    country_name="Singapore",
    region="",
    city="Singapore",
)

LOOPBACK = IPGeolocationData(ip="127.0.0.1", country="", country_name="Loopback", region=None, city=None)
