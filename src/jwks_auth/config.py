"""Configuration for the JWKS key cache.

Settings live in section ``jwks``:

- ``keystore_url``      JWKS endpoint; required for a refresh to succeed
- ``cache_refresh_ms``  delay after a successful refresh (default 24 h)
- ``cache_retry_ms``    delay after a failed refresh (default 1 h)

Providers flatten ``(section, key)`` to an upper-case name, so the same
settings can come from the environment (``JWKS_KEYSTORE_URL=...``), a
``.env`` file, or ``flask.Flask.config``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from dotenv import load_dotenv

if TYPE_CHECKING:
    from .protocols import ConfigProvider

logger = logging.getLogger(__name__)

SECTION: Final[str] = "jwks"

DEFAULT_CACHE_REFRESH_MS: Final[int] = 1000 * 60 * 60 * 24
DEFAULT_CACHE_RETRY_MS: Final[int] = 1000 * 60 * 60


class MappingConfig:
    """ConfigProvider over a flat mapping (``os.environ``, ``app.config``)."""

    def __init__(self, values: Mapping[str, Any]) -> None:
        self._values = values

    @staticmethod
    def name(section: str, key: str) -> str:
        return f"{section}_{key}".upper()

    def get_string(self, section: str, key: str) -> str | None:
        value = self._values.get(self.name(section, key))
        if value is None or value == "":
            return None
        return str(value)

    def get_int(self, section: str, key: str, default: int) -> int:
        value = self._values.get(self.name(section, key))
        if value is None or value == "":
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning(
                "Invalid integer for %s: %r, using default %s",
                self.name(section, key),
                value,
                default,
            )
            return default


class EnvConfig(MappingConfig):
    """ConfigProvider over the process environment, after loading ``.env``."""

    def __init__(self, dotenv_path: str | os.PathLike[str] | None = None) -> None:
        load_dotenv(dotenv_path)
        super().__init__(os.environ)


@dataclass(frozen=True, slots=True)
class KeyCacheSettings:
    """Key cache configuration.

    Attributes:
        keystore_url: JWKS endpoint URL. ``None`` makes every refresh fail
            with ServiceUnavailable, leaving the cache empty.
        cache_refresh_ms: Milliseconds to wait after a successful refresh.
        cache_retry_ms: Milliseconds to wait after a failed refresh.
    """

    keystore_url: str | None
    cache_refresh_ms: int = DEFAULT_CACHE_REFRESH_MS
    cache_retry_ms: int = DEFAULT_CACHE_RETRY_MS

    def __post_init__(self) -> None:
        if self.cache_refresh_ms <= 0:
            raise ValueError(f"cache_refresh_ms must be positive, got {self.cache_refresh_ms}")
        if self.cache_retry_ms <= 0:
            raise ValueError(f"cache_retry_ms must be positive, got {self.cache_retry_ms}")

    @classmethod
    def from_config(cls, config: ConfigProvider) -> KeyCacheSettings:
        return cls(
            keystore_url=config.get_string(SECTION, "keystore_url"),
            cache_refresh_ms=config.get_int(SECTION, "cache_refresh_ms", DEFAULT_CACHE_REFRESH_MS),
            cache_retry_ms=config.get_int(SECTION, "cache_retry_ms", DEFAULT_CACHE_RETRY_MS),
        )
