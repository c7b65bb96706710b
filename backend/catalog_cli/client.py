"""HTTP client helpers for the Catalog CLI."""
from __future__ import annotations

import httpx


def create_client(
    base_url: str,
    *,
    headers: dict[str, str] | None = None,
    timeout: float = 10.0,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Instantiate an HTTPX client with a configurable base URL and identity headers."""

    return httpx.Client(base_url=base_url, headers=headers, timeout=timeout, transport=transport)
