import hashlib
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, status
from fastapi.responses import Response

CACHE_CONTROL = "private, max-age=86400"
UNCACHED_PATHS = ("/health",)
CACHEABLE_METHODS = ("GET", "HEAD")

CallNext = Callable[[Request], Awaitable[Response]]


def build_etag(seed: str | None = None) -> str:
    """Weak validator identifying this process; every restart invalidates client caches."""
    seed = seed if seed is not None else str(time.time_ns())
    return f'W/"{hashlib.md5(seed.encode("utf-8")).hexdigest()}"'


def cache_middleware(etag: str) -> Callable[[Request, CallNext], Awaitable[Response]]:
    """Browser caching for the answer pages.

    Successful GET/HEAD responses are marked `private` for one day and tagged
    with `etag`. A conditional request carrying the same tag gets an empty 304
    before any routing, token check or lookup runs.
    """

    async def _cache_headers(request: Request, call_next: CallNext) -> Response:
        if request.url.path in UNCACHED_PATHS or request.method not in CACHEABLE_METHODS:
            return await call_next(request)

        if etag in request.headers.get("if-none-match", ""):
            return Response(
                status_code=status.HTTP_304_NOT_MODIFIED,
                headers={"Cache-Control": CACHE_CONTROL, "ETag": etag},
            )

        response = await call_next(request)
        if response.status_code < status.HTTP_300_MULTIPLE_CHOICES:
            response.headers["Cache-Control"] = CACHE_CONTROL
            response.headers["ETag"] = etag
        return response

    return _cache_headers
