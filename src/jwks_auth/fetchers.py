"""HTTP transport for downloading the JWKS document."""

from __future__ import annotations

from typing import Final

from requests import Session

DEFAULT_TIMEOUT: Final[float] = 10.0


class HttpFetcher:
    """FetchFunc backed by a ``requests`` session.

    Sends a plain ``GET`` with no custom headers and reports the status as-is;
    deciding what a non-200 means is left to the caller. Transport errors
    (``requests.RequestException``) propagate.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: Session | None = None) -> None:
        self._timeout = timeout
        self._session = session or Session()

    def __call__(self, url: str) -> tuple[int, bytes]:
        response = self._session.get(url, timeout=self._timeout)
        return response.status_code, response.content


http_fetch = HttpFetcher()
"""Shared default fetcher."""
