"""HTTP client for the external film feed."""
from __future__ import annotations

from typing import Any

import httpx

from ..errors import SyncFailedError


class FeedClient:
    """Fetch the raw feed payload used by reconciliation."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    @property
    def url(self) -> str:
        return self._url

    def fetch(self) -> Any:
        """Return the decoded JSON body of the feed."""

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.get(self._url)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SyncFailedError(
                f"feed responded with HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise SyncFailedError(f"failed to contact feed: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise SyncFailedError("feed returned invalid JSON") from exc
