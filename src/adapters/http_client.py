"""httpx wrapper for reachability probes.

Centralizes timeouts and headers so every doctor probe behaves the same way.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings

USER_AGENT = "vpnpanel-provisioner/0.1"


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` with the configured timeout."""

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": USER_AGENT,
        "Accept": "text/html,application/json;q=0.9,*/*;q=0.8",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
    )


def public_base_url(settings: AppSettings) -> str:
    """Base URL the site answers on (plain HTTP; certbot may redirect to HTTPS)."""

    return f"http://{settings.domain or '127.0.0.1'}"


async def probe(url: str, *, settings: AppSettings | None = None) -> tuple[bool, str]:
    """GET `url`; any response below 500 counts as reachable."""

    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
    except httpx.HTTPError as exc:
        return False, f"{type(exc).__name__}: {exc}"
    return response.status_code < 500, f"HTTP {response.status_code}"
