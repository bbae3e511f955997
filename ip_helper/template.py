import asyncio
from collections.abc import Awaitable, Callable
from functools import partial
from http import HTTPStatus
from pathlib import Path
from typing import Generic, TypeVar

import httpx

from ip_helper.errors import TemplateFetchError
from ip_helper.logger import logger

T = TypeVar("T")

EMBEDDED_TEMPLATE_PATH = Path(__file__).parent / "assets" / "index.template.html"


class LazyValue(Generic[T]):
    """Compute-once, shared-read value for async code.

    The first caller runs `factory` while holding a lock; concurrent callers
    wait and then read the stored value. If the factory raises, nothing is
    stored and the next caller tries again, so a failed load is never served.
    """

    def __init__(self, factory: Callable[[], Awaitable[T]]) -> None:
        self._factory = factory
        self._lock = asyncio.Lock()
        self._value: T | None = None
        self._is_set = False

    @property
    def is_set(self) -> bool:
        return self._is_set

    async def get(self) -> T:
        if self._is_set:
            return self._value  # type: ignore[return-value]

        async with self._lock:
            if not self._is_set:
                self._value = await self._factory()
                self._is_set = True
        return self._value  # type: ignore[return-value]


async def load_embedded_template(path: Path = EMBEDDED_TEMPLATE_PATH) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise TemplateFetchError(f"Cannot read embedded template {path}: {exc}") from exc


async def fetch_template(url: str, timeout_seconds: float = 5.0) -> bytes:
    """Download the HTML template, e.g. from a local development server."""
    try:
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            response = await client.get(url)
    except httpx.RequestError as exc:
        raise TemplateFetchError(f"Request for template {url} failed: {exc!r}") from exc

    if response.status_code != HTTPStatus.OK:
        raise TemplateFetchError(f"Template server returned HTTP {response.status_code} for {url}")
    if not response.content:
        raise TemplateFetchError(f"Template server returned an empty body for {url}")
    return response.content


async def load_template(template_url: str | None) -> bytes:
    """Template bytes from `template_url` if set, else the embedded asset."""
    if template_url:
        logger.info(f"Fetching HTML template url={template_url}")
        return await fetch_template(template_url)
    return await load_embedded_template()


def template_loader(template_url: str | None) -> LazyValue[bytes]:
    """Lazy, load-once template buffer."""
    return LazyValue(partial(load_template, template_url))
