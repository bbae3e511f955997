from enum import Enum

from pydantic import BaseModel, Field, field_validator

from ip_helper.net import is_valid_ip


class GeoProvider(str, Enum):
    """Supported geolocation backends."""

    maxmind = "maxmind"
    ipapi_co = "ipapi.co"
    ip_api_com = "ip-api.com"


class IPQueryForm(BaseModel):
    """Form posted by the HTML page's search box.

    Unlike a strict API parameter, a bad value here is not an error: blank or
    non-IP input is normalized to None and the handler falls back to the
    caller's own address.
    """

    ip: str | None = Field(
        default=None,
        description="IPv4 or IPv6 address to look up. Invalid input falls back to the caller's IP.",
        examples=["8.8.8.8", "2001:4860:4860::8888"],
    )

    @field_validator("ip", mode="before")
    @classmethod
    def _normalize_ip(cls, value: str | None) -> str | None:
        if value is None:
            return None

        value_str = str(value).strip()
        if not is_valid_ip(value_str):
            return None
        return value_str
