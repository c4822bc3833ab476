"""
Static key resolver.

Serves keys from a fixed table: shared HMAC secrets, pinned public keys, or
canned keys in tests.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..errors import KeyNotFound


class StaticKeyResolver:
    """
    Resolves ``(alg, kid)`` against an in-memory table.

    Lookup order: the exact ``(alg, kid)`` pair, then ``(alg, None)`` as a
    per-algorithm default.

    Example
    -------
    resolver = StaticKeyResolver({("HS256", None): b"secret"})
    """

    def __init__(self, keys: Mapping[tuple[str, str | None], Any]) -> None:
        self._keys = dict(keys)

    @classmethod
    def single(cls, alg: str, key: Any, kid: str | None = None) -> StaticKeyResolver:
        return cls({(alg, kid): key})

    def resolve(self, alg: str | None, kid: str | None) -> Any:
        if not isinstance(alg, str) or (kid is not None and not isinstance(kid, str)):
            raise KeyNotFound(f"No static key for alg={alg!r} kid={kid!r}")
        for candidate in ((alg, kid), (alg, None)):
            if candidate in self._keys:
                return self._keys[candidate]
        raise KeyNotFound(f"No static key for alg={alg!r} kid={kid!r}")
