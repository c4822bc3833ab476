"""Protocol definitions and type aliases shared across the package.

Structural interfaces (PEP 544) for:
- Key resolution during token decoding
- Token verification
- Fetching the JWKS document
- Configuration lookup

Any object with the right methods satisfies a protocol, so tests can pass
literal stubs without inheriting from anything.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol, TypeAlias

# ============================================================================
# Type Aliases
# ============================================================================

Claims: TypeAlias = Mapping[str, Any]
"""Decoded JWT payload."""

KeyId: TypeAlias = tuple[str, str | None]
"""Cache key: (key type such as ``"RSA"``/``"EC"``, key id or None)."""

KeyLookup: TypeAlias = Callable[[str | None, str | None], Any]
"""Called as ``lookup(alg, kid)`` during decode; returns a verification key
or raises (typically KeyNotFound). ``alg`` is None when the header has none
and the alg check is off. Exceptions propagate to the caller as-is."""

FetchFunc: TypeAlias = Callable[[str], tuple[int, bytes]]
"""Performs ``GET url`` and returns ``(status, body)``; raises on transport
failure. Owns its own timeout."""

ViewFunc: TypeAlias = Callable[..., Any]
"""Flask view function."""


# ============================================================================
# Core Protocols
# ============================================================================


class KeyResolver(Protocol):
    """Resolves the verification key for a token.

    Common implementations:
    - JWKSKeyResolver: backed by a refreshing KeyCache
    - StaticKeyResolver: fixed keys (tests, shared HMAC secrets)
    """

    def resolve(self, alg: str | None, kid: str | None) -> Any:
        """Return the key for ``alg``/``kid``.

        Raises:
            KeyNotFound: If no key is known.
        """
        ...


class TokenVerifier(Protocol):
    """Anything that turns a raw token into verified claims."""

    def verify(self, token: str) -> Claims:
        """Verify a JWT and return its decoded claims.

        Raises:
            AuthError: On any failure.
        """
        ...


class ConfigProvider(Protocol):
    """Section/key configuration lookup."""

    def get_string(self, section: str, key: str) -> str | None: ...

    def get_int(self, section: str, key: str, default: int) -> int: ...
