from http import HTTPStatus
from typing import Any

import httpx
import pytest

from ip_helper.clients.base import NOT_FOUND
from ip_helper.clients.ip_api_com_client import IpApiCom
from ip_helper.errors import InvalidIpError, IpNotFoundError, ReservedIpError, UpstreamServiceError
from tests.common import FailingAsyncClient, MockAsyncClient, MockResponse, make_fake_async_client


@pytest.mark.asyncio
async def test_find_success(monkeypatch: pytest.MonkeyPatch) -> None:
    """Happy path: successful lookup with normalized fields."""
    payload = {
        "status": "success",
        "query": "8.8.8.8",
        "countryCode": "US",
        "country": "United States",
        "regionName": "California",
        "city": "Mountain View",
        "zip": "94043",
        "lat": 37.386,
        "lon": -122.0838,
        "timezone": "America/Los_Angeles",
        "isp": "Google LLC",
    }
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(MockResponse(HTTPStatus.OK, payload)))

    result = await IpApiCom()._find("8.8.8.8")

    assert result.ip == "8.8.8.8"
    assert result.country == "US"
    assert result.region == "California"
    assert result.country_name == "United States"
    assert result.city == "Mountain View"


@pytest.mark.asyncio
async def test_lookup_dedupes_locality_fields() -> None:
    payload = {
        "status": "success",
        "query": "8.8.4.4",
        "countryCode": "SG",
        "country": "Singapore",
        "regionName": "Singapore",
        "city": "Singapore",
    }
    fake = MockAsyncClient(MockResponse(HTTPStatus.OK, payload))

    client = IpApiCom(client=fake)

    assert await client.lookup("8.8.4.4") == ["Singapore"]
    assert fake.requested_urls == ["http://ip-api.com/json/8.8.4.4"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("message", "error"),
    [
        ("invalid query", InvalidIpError),
        ("private range", ReservedIpError),
        ("reserved range", ReservedIpError),
        ("not found", IpNotFoundError),
        ("quota exceeded for this key", UpstreamServiceError),
    ],
)
async def test_fail_status_mapping(monkeypatch: pytest.MonkeyPatch, message: str, error: type[Exception]) -> None:
    payload = {"status": "fail", "message": message}
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(MockResponse(HTTPStatus.OK, payload)))

    client = IpApiCom()
    with pytest.raises(error):
        await client._find("8.8.8.8")
    assert await client.lookup("8.8.8.8") == [NOT_FOUND]


@pytest.mark.asyncio
async def test_not_found_http_404(monkeypatch: pytest.MonkeyPatch) -> None:
    response = MockResponse(status_code=HTTPStatus.NOT_FOUND, payload={}, text="Not Found")
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(response))

    with pytest.raises(IpNotFoundError):
        await IpApiCom()._find("203.0.113.10")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code",
    [
        HTTPStatus.BAD_REQUEST,
        HTTPStatus.FORBIDDEN,
        HTTPStatus.TOO_MANY_REQUESTS,
        HTTPStatus.BAD_GATEWAY,
    ],
)
async def test_http_error_statuses_raise_upstream_service_error(
    monkeypatch: pytest.MonkeyPatch,
    status_code: HTTPStatus,
) -> None:
    response = MockResponse(status_code=status_code, payload={}, text="Some error")
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(response))

    with pytest.raises(UpstreamServiceError):
        await IpApiCom()._find("8.8.8.8")


@pytest.mark.asyncio
async def test_network_failure_raises_upstream_service_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        httpx,
        "AsyncClient",
        lambda *args, **kwargs: FailingAsyncClient("http://ip-api.com", *args, **kwargs),
    )

    with pytest.raises(UpstreamServiceError):
        await IpApiCom()._find("8.8.8.8")


@pytest.mark.asyncio
async def test_invalid_json_raises_upstream_service_error(monkeypatch: pytest.MonkeyPatch) -> None:
    """Non-JSON responses are mapped to UpstreamServiceError via JSON decode failure."""

    class BadJsonResponse(MockResponse):
        def json(self) -> dict[str, Any]:
            raise ValueError("not json")

    response = BadJsonResponse(status_code=HTTPStatus.OK, payload={})
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(response))

    with pytest.raises(UpstreamServiceError):
        await IpApiCom()._find("8.8.8.8")


@pytest.mark.asyncio
async def test_private_ip_short_circuits() -> None:
    fake = MockAsyncClient(MockResponse(HTTPStatus.OK, {}))
    client = IpApiCom(client=fake)

    assert await client.lookup("172.16.5.4") == [NOT_FOUND]
    assert fake.requested_urls == []
