"""Shared httpx plumbing for the resolver and the archive fetcher."""

from __future__ import annotations

from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Iterator

import httpx

from loadgit.errors import AuthFailure, NetworkFailure, RemoteError, Timeout
from loadgit.models.config import AuthType

TOKEN_HEADER = "PRIVATE-TOKEN"
TOKEN_PARAM = "private_token"
MAX_REDIRECTS = 10


def build_client(timeout: float) -> httpx.AsyncClient:
    """Create an async client. Redirects are followed by :func:`send`."""
    return httpx.AsyncClient(timeout=timeout, follow_redirects=False)


@asynccontextmanager
async def client_session(
    client: httpx.AsyncClient | None, timeout: float
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield ``client`` if given, else a fresh client closed on exit.

    A fresh client per operation keeps connection pools out of event loops
    that ``asyncio.run`` has already closed.
    """
    if client is not None:
        yield client
        return
    async with build_client(timeout) as fresh:
        yield fresh


def auth_headers(token: str | None, auth_type: AuthType) -> dict[str, str]:
    if token and auth_type == AuthType.HEADER:
        return {TOKEN_HEADER: token}
    return {}


def auth_params(token: str | None, auth_type: AuthType) -> dict[str, str]:
    if token and auth_type == AuthType.QUERY_PARAM:
        return {TOKEN_PARAM: token}
    return {}


def same_origin(a: httpx.URL, b: httpx.URL) -> bool:
    return (a.scheme, a.host, a.port) == (b.scheme, b.host, b.port)


async def send(
    client: httpx.AsyncClient,
    request: httpx.Request,
    *,
    stream: bool = False,
) -> httpx.Response:
    """Send ``request`` and follow redirects.

    The access token only goes to the origin of the first request; httpx
    itself strips nothing but ``Authorization`` on cross-origin redirects.
    """
    origin = request.url
    for _ in range(MAX_REDIRECTS + 1):
        response = await client.send(request, stream=stream, follow_redirects=False)
        next_request = response.next_request
        if not response.has_redirect_location or next_request is None:
            return response
        await response.aclose()

        if not same_origin(next_request.url, origin):
            next_request.headers.pop(TOKEN_HEADER, None)
            next_request.url = next_request.url.copy_remove_param(TOKEN_PARAM)
        request = next_request

    raise RemoteError(str(origin), response.status_code, "too many redirects")


def check_status(response: httpx.Response, url: str) -> None:
    """Raise the matching error for a non-2xx response.

    404 is left to the caller since its meaning depends on the endpoint.
    """
    status = response.status_code
    if 200 <= status < 300:
        return
    if status in (401, 403):
        raise AuthFailure(url, status)
    raise RemoteError(url, status)


@contextmanager
def transport_errors(url: str) -> Iterator[None]:
    """Translate httpx transport exceptions into loadgit errors."""
    try:
        yield
    except httpx.TimeoutException as e:
        raise Timeout(url, str(e) or type(e).__name__) from e
    except httpx.TransportError as e:
        raise NetworkFailure(url, str(e) or type(e).__name__) from e
