from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

import typer
import uvicorn
from fastapi import FastAPI

from ip_helper.clients.factory import GeoLookupFactory
from ip_helper.config import Settings
from ip_helper.errors import ConfigurationError, TemplateFetchError
from ip_helper.logger import configure_logging, logger
from ip_helper.main import create_app, load_app_template
from ip_helper.models.request_models import GeoProvider
from ip_helper.raw_socket import FtpBannerFront, RawSocketFront, TelnetFront
from ip_helper.service import IpInfoService

app = typer.Typer(
    help="Serve 'what is my IP' answers over HTTP, telnet and an FTP-style banner.",
    add_completion=False,
)


async def _start_raw_front(front: RawSocketFront, host: str, port: int) -> asyncio.Server | None:
    """Start one raw-socket listener; a bind failure disables only that front."""
    try:
        return await front.start(host, port)
    except OSError as exc:
        logger.error(f"Cannot start {front.name} server host={host} port={port} error={exc}")
        return None


def build_http_server(settings: Settings, http_app: FastAPI, log_config: dict[str, Any]) -> uvicorn.Server:
    """uvicorn server for the HTTP front.

    Proxy-header rewriting is off: `request.client` must stay the TCP peer,
    and X-Forwarded-For / X-Real-IP are interpreted by the identity resolver
    alone.
    """
    config = uvicorn.Config(
        http_app,
        host=settings.host,
        port=settings.port,
        log_config=log_config,
        proxy_headers=False,
    )
    return uvicorn.Server(config)


async def run_servers(settings: Settings) -> None:
    """Run the HTTP, telnet and FTP-banner fronts on one event loop until uvicorn exits.

    Raises:
        TemplateFetchError: the HTML template could not be loaded, either before
            startup or later on first use.
    """
    log_config = configure_logging(settings.debug)
    service = IpInfoService(GeoLookupFactory()(settings))
    http_server: uvicorn.Server | None = None

    def _stop_http_server() -> None:
        if http_server is not None:
            http_server.should_exit = True

    http_app = create_app(settings, service, on_fatal_error=_stop_http_server)

    raw_servers: list[asyncio.Server] = []
    try:
        await load_app_template(http_app)

        for front, port in (
            (TelnetFront(service, settings.connection_timeout), settings.telnet_port),
            (FtpBannerFront(service, settings.connection_timeout), settings.ftp_port),
        ):
            server = await _start_raw_front(front, settings.host, port)
            if server is not None:
                raw_servers.append(server)

        logger.info(f"Starting HTTP server domain={settings.domain} host={settings.host} port={settings.port}")
        http_server = build_http_server(settings, http_app, log_config)
        await http_server.serve()

        if http_app.state.fatal_error is not None:
            raise http_app.state.fatal_error
    finally:
        for server in raw_servers:
            server.close()
            await server.wait_closed()
        await service.aclose()



@app.command()
def serve(
    port: Optional[int] = typer.Option(None, help="HTTP port. [env: SERVER_PORT, default: 8080]"),
    domain: Optional[str] = typer.Option(
        None, help="Public URL of the service. [env: SERVER_DOMAIN, default: http://localhost:8080]"
    ),
    token: Optional[str] = typer.Option(None, help="Token required by every route but /health. [env: TOKEN]"),
    debug: Optional[bool] = typer.Option(
        None,
        "--debug/--no-debug",
        help="Verbose logging, no cache headers, template re-read per request. [env: DEBUG]",
    ),
    host: Optional[str] = typer.Option(None, help="Bind address for all fronts. [env: SERVER_HOST]"),
    telnet_port: Optional[int] = typer.Option(None, help="Telnet front port. [env: TELNET_PORT, default: 23]"),
    ftp_port: Optional[int] = typer.Option(None, help="FTP-banner front port. [env: FTP_PORT, default: 21]"),
    geo_provider: Optional[GeoProvider] = typer.Option(
        None, help="Geolocation backend. [env: GEO_PROVIDER, default: maxmind]"
    ),
    geo_db: Optional[Path] = typer.Option(None, help="MaxMind City database file. [env: GEO_DB_PATH]"),
    geo_locale: Optional[str] = typer.Option(None, help="Locale for place names. [env: GEO_LOCALE, default: en]"),
    template_url: Optional[str] = typer.Option(
        None, help="Fetch the HTML template from this URL instead of the embedded one. [env: TEMPLATE_URL]"
    ),
    connection_timeout: Optional[float] = typer.Option(
        None, help="Write deadline for raw-socket replies, seconds. [env: CONNECTION_TIMEOUT, default: 10]"
    ),
) -> None:
    """Start all fronts. Flags override environment variables, which override defaults."""
    try:
        settings = Settings.from_env(
            port=port,
            domain=domain,
            token=token,
            debug=debug,
            host=host,
            telnet_port=telnet_port,
            ftp_port=ftp_port,
            geo_provider=geo_provider,
            geo_db_path=geo_db,
            geo_locale=geo_locale,
            template_url=template_url,
            connection_timeout=connection_timeout,
        )
    except ConfigurationError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=2) from exc

    if settings.debug:
        logger.info("Debug mode enabled")
    if not settings.token:
        logger.warning("No access token configured; set TOKEN or --token to restrict access")

    try:
        asyncio.run(run_servers(settings))
    except (ConfigurationError, TemplateFetchError) as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc


if __name__ == "__main__":
    app()
