"""
JWKS-backed key resolver.

Resolves verification keys from a refreshing KeyCache.
"""

from __future__ import annotations

from typing import Any, Final

from ..errors import KeyNotFound
from ..key_cache import KeyCache

_KTY_BY_PREFIX: Final[dict[str, str]] = {
    "RS": "RSA",
    "ES": "EC",
}


class JWKSKeyResolver:
    """
    Maps a token's ``alg``/``kid`` onto the cache key ``(kty, kid)``.

    Resolution Strategy
    -------------------
    - ``RS*`` algorithms look up ``("RSA", kid)``
    - ``ES*`` algorithms look up ``("EC", kid)``
    - anything else (notably ``HS*``) is never served from a JWKS, so it
      raises KeyNotFound rather than handing a public key to an HMAC check

    Lookups read the cache's current snapshot and never trigger a fetch; an
    unknown ``kid`` stays unknown until the next scheduled refresh.

    Example
    -------
    resolver = JWKSKeyResolver(cache)
    claims = decode(token, checks, resolver.resolve)
    """

    def __init__(self, cache: KeyCache) -> None:
        self._cache = cache

    def resolve(self, alg: str | None, kid: str | None) -> Any:
        kty = _KTY_BY_PREFIX.get(alg[:2]) if isinstance(alg, str) else None
        if kty is None:
            raise KeyNotFound(f"No JWKS key type serves {alg!r}")
        return self._cache.lookup(kty, kid)
