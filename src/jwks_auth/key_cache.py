"""Locally cached JWKS keys with background refresh.

KeyCache owns one read-only snapshot of ``{(kty, kid): public_key}``. A single
background thread fetches the JWKS document, parses it and publishes a new
snapshot by swapping the reference; readers never see a half-built table and
never take a lock.

Refresh schedule:
- success: next attempt after ``cache_refresh_ms`` (default 24 h)
- failure: next attempt after ``cache_retry_ms`` (default 1 h), previous
  snapshot kept so known keys keep working through an outage
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Self

from .errors import InvalidKeySet, KeyNotFound, KeyStoreError, ServiceUnavailable
from .fetchers import http_fetch
from .jwks import parse_keyset

if TYPE_CHECKING:
    from .config import KeyCacheSettings
    from .protocols import FetchFunc, KeyId

logger = logging.getLogger(__name__)

_EMPTY: Mapping[Any, Any] = MappingProxyType({})


class KeyCache:
    """Concurrently readable JWKS key table.

    Thread Safety:
        ``lookup`` reads the current snapshot reference without locking.
        ``refresh`` builds a new table off to the side and publishes it under
        ``_lock``, so concurrent refreshes (the loop plus a manual call) also
        publish whole tables only.

    Example:
        ```python
        settings = KeyCacheSettings.from_config(EnvConfig())
        with KeyCache(settings) as cache:
            key = cache.lookup("RSA", "2011-04-29")
        ```

    Attributes:
        _settings: URL and refresh intervals.
        _fetch: Callable performing ``GET url -> (status, body)``.
        _keys: Current immutable snapshot.
    """

    def __init__(self, settings: KeyCacheSettings, fetch: FetchFunc = http_fetch) -> None:
        self._settings = settings
        self._fetch = fetch
        self._keys: Mapping[KeyId, Any] = _EMPTY
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def settings(self) -> KeyCacheSettings:
        return self._settings

    def keys(self) -> Mapping[KeyId, Any]:
        """Return the current snapshot (read-only)."""
        return self._keys

    def lookup(self, kty: str, kid: str | None) -> Any:
        """Return the public key for ``(kty, kid)``.

        Never blocks on network I/O. A ``kid`` that is neither a string nor
        None (a JSON array or object from a token header) is never found.

        Raises:
            KeyNotFound: If the key is not in the current snapshot.
        """
        if kid is not None and not isinstance(kid, str):
            raise KeyNotFound(f"Unusable kid {kid!r}")
        try:
            return self._keys[(kty, kid)]
        except KeyError:
            raise KeyNotFound(f"No {kty} key with kid {kid!r}") from None

    def refresh(self) -> None:
        """Fetch, parse and publish the key set once.

        Keys missing from the new document are dropped. On failure the current
        snapshot is left untouched. Every failure is logged here, once.

        Raises:
            ServiceUnavailable: URL unset, transport failure or non-200 status.
            InvalidKeySet: Response body is not a usable JWKS document.
        """
        url = self._settings.keystore_url
        if not url:
            logger.warning("get_keyset failed: jwks keystore_url is not configured")
            raise ServiceUnavailable("JWKS keystore_url is not configured")

        try:
            status, body = self._fetch(url)
        except Exception as e:
            logger.warning("get_keyset failed with reason %s", e)
            raise ServiceUnavailable("JWKS service unavailable") from e

        if status != 200:
            logger.warning("get_keyset failed with code %s", status)
            raise ServiceUnavailable(f"JWKS service unavailable (HTTP {status})")

        try:
            table = MappingProxyType(parse_keyset(body))
        except InvalidKeySet as e:
            logger.warning("get_keyset failed with reason %s", e)
            raise
        with self._lock:
            self._keys = table
        logger.info("JWKS refreshed from %s: %d keys", url, len(table))

    def run_once(self) -> float:
        """Attempt one refresh; return seconds until the next attempt."""
        try:
            self.refresh()
        except KeyStoreError:
            delay_ms = self._settings.cache_retry_ms
            logger.debug("Retrying JWKS refresh in %d ms", delay_ms)
        else:
            delay_ms = self._settings.cache_refresh_ms
            logger.debug("Next JWKS refresh in %d ms", delay_ms)
        return delay_ms / 1000.0

    # ------------------------------------------------------------------ #
    # Background refresh
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        """Start the refresh thread; the first refresh happens immediately.

        If a previous ``stop()`` timed out while the thread was still busy,
        that thread is told to keep going instead of starting a second one.
        """
        self._stop.clear()
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._run, name="jwks-refresh", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Stop the refresh thread, interrupting any pending wait.

        The thread is only forgotten once it has exited; a ``join`` that
        times out (e.g. during a slow fetch) leaves ``running`` true.
        """
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if not self._thread.is_alive():
                self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        delay = 0.0
        while not self._stop.wait(delay):
            try:
                delay = self.run_once()
            except Exception:
                logger.exception("Unexpected error in JWKS refresh loop")
                delay = self._settings.cache_retry_ms / 1000.0

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
