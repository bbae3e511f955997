from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import APIRouter, Depends, FastAPI, Form, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response

from ip_helper.clients.factory import GeoLookupFactory
from ip_helper.config import Settings
from ip_helper.dependencies import (
    get_ip_info_service,
    get_request_context,
    get_settings,
    get_template,
    verify_token,
)
from ip_helper.errors import MissingIdentityContextError, TemplateFetchError
from ip_helper.exception_handlers import (
    missing_identity_exception_handler,
    template_fetch_exception_handler,
    unhandled_exception_handler,
)
from ip_helper.formatter import as_record, is_download_tool, render_document
from ip_helper.logger import logger
from ip_helper.middlewares import build_etag, cache_middleware
from ip_helper.models.identity import Identity, RequestContext
from ip_helper.models.request_models import IPQueryForm
from ip_helper.models.response_models import GeoResult, HealthResponse
from ip_helper.net import is_valid_ip
from ip_helper.service import IpInfoService
from ip_helper.template import LazyValue, template_loader

router = APIRouter(dependencies=[Depends(verify_token), Depends(get_request_context)])


async def _respond(request: Request, settings: Settings, service: IpInfoService, ip: str) -> Response:
    """Geolocate `ip` and answer as JSON for tools, or as the HTML page for browsers."""
    geo = await service.describe(ip)
    if is_download_tool(request.headers.get("user-agent")):
        return JSONResponse(content=as_record(geo))

    template = await get_template(request)
    document = render_document(template, geo, settings.domain, request.url.path)
    return Response(content=document, media_type="text/html; charset=utf-8")


@router.get(
    "/",
    response_model=None,
    tags=["ip"],
    summary="Geolocate the caller (HTML page, or JSON for command-line clients).",
    responses={status.HTTP_200_OK: {"model": GeoResult}},
)
async def index(
    request: Request,
    context: Annotated[RequestContext, Depends(get_request_context)],
    settings: Annotated[Settings, Depends(get_settings)],
    service: Annotated[IpInfoService, Depends(get_ip_info_service)],
) -> Response:
    identity = context.require_identity()
    logger.info(f"Performing caller lookup path={request.url.path} method={request.method} ip={identity.real_ip}")
    return await _respond(request, settings, service, identity.real_ip)


@router.post(
    "/",
    tags=["ip"],
    status_code=status.HTTP_302_FOUND,
    summary="Redirect the search form to the result page for the submitted IP.",
)
async def search(
    form: Annotated[IPQueryForm, Form()],
    context: Annotated[RequestContext, Depends(get_request_context)],
) -> RedirectResponse:
    """Invalid or missing input falls back to the caller's own address."""
    ip = form.ip or context.require_identity().real_ip
    return RedirectResponse(url=f"/ip/{ip}", status_code=status.HTTP_302_FOUND)


@router.get(
    "/ip",
    response_model=Identity,
    tags=["ip"],
    summary="Show how the caller's address was resolved.",
)
async def caller_identity(context: Annotated[RequestContext, Depends(get_request_context)]) -> Identity:
    return context.require_identity()


@router.get(
    "/ip/{ip}",
    response_model=None,
    tags=["ip"],
    summary="Geolocate an explicit IP address.",
    responses={status.HTTP_200_OK: {"model": GeoResult}},
)
async def ip_lookup(
    ip: str,
    request: Request,
    context: Annotated[RequestContext, Depends(get_request_context)],
    settings: Annotated[Settings, Depends(get_settings)],
    service: Annotated[IpInfoService, Depends(get_ip_info_service)],
) -> Response:
    """Look up `ip`; a path segment that is not an IP falls back to the caller's address."""
    if is_valid_ip(ip):
        target = ip
        logger.info(f"Performing explicit IP lookup path={request.url.path} method={request.method} ip={ip}")
    else:
        target = context.require_identity().real_ip
        logger.info(
            "Invalid IP in path, falling back to caller "
            f"path={request.url.path} method={request.method} ip={ip!r} caller={target}"
        )
    return await _respond(request, settings, service, target)


async def load_app_template(app: FastAPI) -> bytes:
    """Load the app's HTML template now instead of on the first browser request."""
    template: LazyValue[bytes] = app.state.template
    return await template.get()


def create_app(
    settings: Settings,
    service: IpInfoService | None = None,
    on_fatal_error: Callable[[], None] | None = None,
) -> FastAPI:
    """Build the HTTP front.

    `service` is normally shared with the raw-socket fronts; without one the
    app builds its own from `settings` on the first request that needs it.
    `on_fatal_error` is called when the app can no longer serve pages (the
    template failed to load) so the hosting server can stop.
    """

    async def _build_service() -> IpInfoService:
        if service is not None:
            return service
        return IpInfoService(GeoLookupFactory()(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await load_app_template(app)
        yield
        # A service passed in is owned by the caller.
        lazy_service: LazyValue[IpInfoService] = app.state.service
        if service is None and lazy_service.is_set:
            built = await lazy_service.get()
            await built.aclose()

    app = FastAPI(
        title="IP Helper",
        version="0.1.0",
        description="Tells callers their IP address and where it is located.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.service = LazyValue(_build_service)
    app.state.template = template_loader(settings.template_url)
    app.state.fatal_error = None
    app.state.on_fatal_error = on_fatal_error

    if not settings.debug:
        app.middleware("http")(cache_middleware(build_etag()))

    app.add_exception_handler(MissingIdentityContextError, missing_identity_exception_handler)
    app.add_exception_handler(TemplateFetchError, template_fetch_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get(
        "/health",
        tags=["health"],
        response_model=HealthResponse,
        status_code=status.HTTP_200_OK,
        summary="Health check",
    )
    async def health() -> HealthResponse:
        """Basic health check endpoint. Not gated by the token."""
        return HealthResponse(status="ok", domain=settings.domain)

    app.include_router(router)
    logger.info(f"Created IP Helper app domain={settings.domain} provider={settings.geo_provider.value}")
    return app


def app_factory() -> FastAPI:
    """Settings from the environment, for `uvicorn ip_helper.main:app_factory --factory`."""
    return create_app(Settings.from_env())
