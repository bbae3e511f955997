import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from ip_helper.errors import ConfigurationError
from ip_helper.models.request_models import GeoProvider

DEFAULT_PORT = 8080
DEFAULT_DOMAIN = "http://localhost:8080"

# Settings field -> environment variable.
ENV_VARS: dict[str, str] = {
    "port": "SERVER_PORT",
    "domain": "SERVER_DOMAIN",
    "token": "TOKEN",
    "debug": "DEBUG",
    "host": "SERVER_HOST",
    "telnet_port": "TELNET_PORT",
    "ftp_port": "FTP_PORT",
    "geo_provider": "GEO_PROVIDER",
    "geo_db_path": "GEO_DB_PATH",
    "geo_locale": "GEO_LOCALE",
    "template_url": "TEMPLATE_URL",
    "connection_timeout": "CONNECTION_TIMEOUT",
}


class Settings(BaseModel):
    """Runtime configuration shared by the HTTP and raw-socket fronts."""

    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    domain: str = DEFAULT_DOMAIN
    token: str = ""
    debug: bool = False
    host: str = "0.0.0.0"
    telnet_port: int = Field(default=23, ge=0, le=65535)
    ftp_port: int = Field(default=21, ge=0, le=65535)
    geo_provider: GeoProvider = GeoProvider.maxmind
    geo_db_path: Path = Path("./data/GeoLite2-City.mmdb")
    geo_locale: str = "en"
    template_url: str | None = None
    connection_timeout: float = Field(default=10.0, gt=0)

    @field_validator("domain", mode="before")
    @classmethod
    def _default_blank_domain(cls, value: Any) -> Any:
        if value is None or not str(value).strip():
            return DEFAULT_DOMAIN
        return value

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> "Settings":
        """Build settings from environment variables, then apply explicit overrides.

        Overrides (typically command-line flags) win over the environment, which
        wins over the field defaults. Empty environment values count as unset,
        and so do overrides that are None.
        """
        environ = os.environ if environ is None else environ

        values: dict[str, Any] = {}
        for field_name, env_name in ENV_VARS.items():
            raw = environ.get(env_name, "").strip()
            if raw:
                values[field_name] = raw
        values.update({key: value for key, value in overrides.items() if value is not None})

        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc
