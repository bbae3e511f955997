import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from ip_helper.config import Settings
from ip_helper.logger import logger
from ip_helper.models.identity import RequestContext
from ip_helper.net import is_valid_ip
from ip_helper.resolver import resolve_identity
from ip_helper.service import IpInfoService
from ip_helper.template import LazyValue, load_template

TOKEN_QUERY_PARAM = "token"
TOKEN_HEADER = "x-token"
FORWARDED_FOR_HEADER = "x-forwarded-for"
REAL_IP_HEADER = "x-real-ip"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_ip_info_service(request: Request) -> IpInfoService:
    """The process-wide lookup pipeline, built on first use."""
    service: LazyValue[IpInfoService] = request.app.state.service
    return await service.get()


async def get_template(request: Request) -> bytes:
    """HTML template bytes, loaded once; in debug mode re-read on every request."""
    settings: Settings = request.app.state.settings
    if settings.debug:
        return await load_template(settings.template_url)
    template: LazyValue[bytes] = request.app.state.template
    return await template.get()


def verify_token(request: Request, settings: Annotated[Settings, Depends(get_settings)]) -> None:
    """Reject the request with 401 unless it carries the configured token.

    The token may come from the `token` query parameter or the `X-Token`
    header. With no token configured every request passes.
    """
    if not settings.token:
        return

    token = request.query_params.get(TOKEN_QUERY_PARAM) or request.headers.get(TOKEN_HEADER) or ""
    if not secrets.compare_digest(token.encode("utf-8"), settings.token.encode("utf-8")):
        logger.info(f"Rejected request with invalid token path={request.url.path} method={request.method}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "code": "invalid_token",
                "message": "Invalid authentication token.",
            },
        )


def get_observed_address(request: Request) -> str | None:
    """Source address of the HTTP connection, if it is an IP literal."""
    host = request.client.host if request.client else None
    if not is_valid_ip(host):
        return None
    return host


def get_request_context(
    request: Request,
    observed_address: Annotated[str | None, Depends(get_observed_address)],
) -> RequestContext:
    """Resolve the caller identity once per request.

    The identity is left unset when there is no usable transport address or
    the proxy headers produce something that is not an IP; handlers that need
    it then fail with a 500 through `RequestContext.require_identity`.
    """
    if observed_address is None:
        return RequestContext()

    identity = resolve_identity(
        observed_address,
        forwarded_for=request.headers.get(FORWARDED_FOR_HEADER),
        real_ip_header=request.headers.get(REAL_IP_HEADER),
    )
    if not is_valid_ip(identity.real_ip):
        logger.warning(
            "Discarding identity with invalid real IP "
            f"path={request.url.path} observed={observed_address} real_ip={identity.real_ip!r} "
            f"x_forwarded_for={identity.forwarded_chain_raw!r}"
        )
        return RequestContext()

    logger.debug(
        "Resolved caller identity "
        f"path={request.url.path} observed={identity.observed_address} real_ip={identity.real_ip} "
        f"proxy_ip={identity.proxy_ip} is_proxy={identity.is_proxy}"
    )
    return RequestContext(identity=identity)
