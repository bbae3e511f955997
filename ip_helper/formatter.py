import html
import re

from ip_helper.models.response_models import GeoResult
from ip_helper.net import get_domain_only, get_domain_with_port

# User-Agent fragments of command-line and scripted HTTP clients.
DOWNLOAD_TOOLS = (
    "curl",
    "wget",
    "aria2",
    "python-requests",
    "axios",
    "got",
    "postman",
)

PLACEHOLDER_PATTERN = re.compile(
    rb"%(IP_ADDR|DOMAIN|DATA_1_INFO|DOCUMENT_PATH|ONLY_DOMAIN|ONLY_DOMAIN_WITH_PORT)%"
)


def is_download_tool(user_agent: str | None) -> bool:
    """True if the User-Agent looks like a non-interactive client (curl, wget, ...)."""
    ua = (user_agent or "").lower()
    return any(tool in ua for tool in DOWNLOAD_TOOLS)


def as_record(geo: GeoResult) -> dict[str, object]:
    """Structured answer for machine clients: ``{"ip": ..., "info": [...]}``."""
    return geo.model_dump()


def render_document(template: bytes, geo: GeoResult, domain: str, request_path: str) -> bytes:
    """Fill the HTML template's placeholders for an interactive client.

    Every occurrence of every token is replaced in a single pass, so a value
    that happens to contain a token (a crafted request path, say) is never
    expanded a second time.

    Values are HTML-escaped rather than pasted verbatim, so a configured domain
    such as ``http://a.example?x=1&y=2`` renders as ``...&amp;y=2``. The
    template itself is left byte-for-byte as loaded.
    """
    values = {
        b"IP_ADDR": geo.ip,
        b"DOMAIN": domain,
        b"DATA_1_INFO": " ".join(geo.info),
        b"DOCUMENT_PATH": request_path,
        b"ONLY_DOMAIN": get_domain_only(domain),
        b"ONLY_DOMAIN_WITH_PORT": get_domain_with_port(domain),
    }
    encoded = {token: html.escape(value).encode("utf-8") for token, value in values.items()}
    return PLACEHOLDER_PATTERN.sub(lambda match: encoded[match.group(1)], template)
