"""HTTP fetch helpers returning a uniform response object."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any


try:
    import httpx
except ImportError:  # pragma: no cover - exercised when dependency is absent
    httpx = None

try:
    import aiohttp
except ImportError:  # pragma: no cover - exercised when dependency is absent
    aiohttp = None

from edge_kv.errors import InvalidInputError, NoFetchAvailableError


if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "utf-8"


@dataclass(frozen=True)
class FetchResponse:
    """A fully read HTTP response.

    Header names are lower-cased; repeated headers are joined with ``", "``
    in the order received.
    """

    url: str
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    content: bytes = b""
    encoding: str | None = None


def _merge_headers(items: Iterable[tuple[str, str]]) -> dict[str, str]:
    merged: dict[str, str] = {}
    for name, value in items:
        key = name.lower()
        merged[key] = f"{merged[key]}, {value}" if key in merged else value
    return merged


async def _fetch_with_httpx(
    url: str,
    method: str,
    headers: Mapping[str, str],
    transport: Any | None,
) -> FetchResponse:
    async with httpx.AsyncClient(transport=transport, follow_redirects=True) as client:
        response = await client.request(method, url, headers=dict(headers))
        return FetchResponse(
            url=str(response.url),
            status=response.status_code,
            headers=_merge_headers(response.headers.multi_items()),
            content=response.content,
            encoding=response.encoding,
        )


async def _fetch_with_aiohttp(url: str, method: str, headers: Mapping[str, str]) -> FetchResponse:
    async with aiohttp.ClientSession() as session, session.request(method, url, headers=dict(headers)) as response:
        content = await response.read()
        return FetchResponse(
            url=str(response.url),
            status=response.status,
            headers=_merge_headers(response.headers.items()),
            content=content,
            encoding=response.charset,
        )


def available_client() -> str:
    """Return the name of the HTTP library ``fetch_url`` will use."""
    if httpx is not None:
        return "httpx"
    if aiohttp is not None:
        return "aiohttp"
    msg = "no HTTP client available; install with `pip install httpx`"
    raise NoFetchAvailableError(msg)


async def fetch_url(
    url: str,
    *,
    method: str = "GET",
    headers: Mapping[str, str] | None = None,
    transport: Any | None = None,
) -> FetchResponse:
    """Fetch ``url`` and return the fully read response.

    ``httpx`` is used when installed, ``aiohttp`` otherwise. ``transport`` is
    handed to ``httpx.AsyncClient`` and ignored by the aiohttp path.

    Raises
    ------
    NoFetchAvailableError
        When neither HTTP library is importable.
    """
    client = available_client()
    request_headers = headers or {}
    try:
        if client == "httpx":
            return await _fetch_with_httpx(url, method, request_headers, transport)
        return await _fetch_with_aiohttp(url, method, request_headers)
    except Exception:
        logger.exception("Fetch error for %s", url)
        raise


def _require_response(response: Any) -> FetchResponse:
    if not isinstance(response, FetchResponse):
        msg = f"expected a FetchResponse, got {type(response).__name__}"
        raise InvalidInputError(msg)
    return response


def status(response: FetchResponse) -> int:
    """Return the HTTP status code."""
    return _require_response(response).status


def headers(response: FetchResponse) -> dict[str, str]:
    """Return a copy of the response headers."""
    return dict(_require_response(response).headers)


def body_bytes(response: FetchResponse) -> bytes:
    """Return the raw response body."""
    return _require_response(response).content


def text(response: FetchResponse) -> str:
    """Return the response body decoded with its declared charset."""
    checked = _require_response(response)
    encoding = checked.encoding or DEFAULT_ENCODING
    try:
        return checked.content.decode(encoding, errors="replace")
    except LookupError:
        return checked.content.decode(DEFAULT_ENCODING, errors="replace")
