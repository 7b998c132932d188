"""Reusable HTTP client utilities."""

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
import ssl

import httpx


def build_ssl_context(
    ca_file: str | None = None,
    cert_file: str | None = None,
    key_file: str | None = None,
    *,
    verify: bool = True,
) -> ssl.SSLContext:
    """Create a client TLS context trusting ``ca_file`` and presenting an optional client cert.

    With ``verify`` off the server certificate is not checked, but the client
    certificate is still loaded.
    """

    context = ssl.create_default_context(cafile=ca_file if verify else None)
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    if cert_file:
        context.load_cert_chain(certfile=cert_file, keyfile=key_file)
    return context


@asynccontextmanager
async def async_http_client(
    base_url: str | None = None,
    timeout: float = 10.0,
    *,
    headers: Mapping[str, str] | None = None,
    verify: ssl.SSLContext | bool = True,
    proxy: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield a configured AsyncClient and close it afterwards.

    The client keeps a connection pool, so hold it open for as long as
    requests are expected rather than opening one per call.
    """

    async with httpx.AsyncClient(
        base_url=base_url or "",
        timeout=timeout,
        headers=dict(headers or {}),
        verify=verify,
        proxy=proxy,
        transport=transport,
    ) as client:
        yield client
