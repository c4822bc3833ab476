"""Flask integration for bearer token authentication.

Request flow for a route wrapped with ``AuthExtension.require()``:

1. Read ``Authorization: Bearer <token>``
2. ``TokenVerifier.verify(token)`` (decode, claim checks, signature)
3. Store verified claims in ``flask.g.jwt``
4. Call the view

Any AuthError aborts with its ``error_code`` (401) and client-safe
``description``; the specific reason goes to the log only.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any, Final

from flask import Flask, abort, g, request

from .config import KeyCacheSettings, MappingConfig
from .errors import AuthError, MissingToken
from .fetchers import http_fetch
from .key_cache import KeyCache

if TYPE_CHECKING:
    from collections.abc import Callable

    from .protocols import FetchFunc, TokenVerifier, ViewFunc

logger = logging.getLogger(__name__)

_EXT_KEY: Final[str] = "jwks_auth"
"""Flask extensions registry key for AuthExtension."""


def bearer_token() -> str:
    """Return the token from the current request's Authorization header.

    Raises:
        MissingToken: Header absent, not the Bearer scheme, or empty token.
    """
    auth_header = request.headers.get("Authorization", "").strip()
    if not auth_header:
        raise MissingToken("Missing Authorization header")

    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer":
        raise MissingToken("Invalid authorization scheme (expected 'Bearer')")

    token = token.strip()
    if not token:
        raise MissingToken("Bearer token is empty")
    return token


class AuthExtension:
    """
    Flask decorator glue for JWT authentication.

    Pattern:
        auth = AuthExtension()
        auth.init_app(app, verifier=verifier)

    Usage:
        auth = AuthExtension(verifier)

        @app.get("/admin")
        @auth.require()
        def admin(): ...
    """

    def __init__(self, verifier: TokenVerifier | None = None) -> None:
        self._verifier = verifier

    def init_app(self, app: Flask, *, verifier: TokenVerifier | None = None) -> None:
        if verifier is not None:
            self._verifier = verifier
        app.extensions[_EXT_KEY] = self

    def require(self) -> Callable[[ViewFunc], ViewFunc]:
        """Decorator enforcing a verified bearer token.

        Error mapping:
        - ``MissingToken``  -> HTTP 401 ("Missing token")
        - ``ExpiredToken``  -> HTTP 401 ("Expired token")
        - ``InvalidToken``  -> HTTP 401 ("Invalid token")
        - other AuthError   -> HTTP 401 ("Authentication failed")

        Side Effects:
            Writes decoded claims to ``flask.g.jwt`` before calling the view.
        """

        def decorator(view: ViewFunc) -> ViewFunc:
            @wraps(view)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                if self._verifier is None:
                    raise RuntimeError("AuthExtension has no verifier; call init_app first")
                try:
                    g.jwt = self._verifier.verify(bearer_token())
                except AuthError as e:
                    logger.info("Rejected request to %s: %s", request.path, e.reason)
                    abort(e.error_code, description=e.description)
                return view(*args, **kwargs)

            return wrapper

        return decorator


def create_key_cache(app: Flask, fetch: FetchFunc = http_fetch) -> KeyCache:
    """Build a KeyCache from ``app.config`` (``JWKS_KEYSTORE_URL`` etc.).

    The cache is not started; call ``start()`` once the app is ready to serve.
    """
    settings = KeyCacheSettings.from_config(MappingConfig(app.config))
    return KeyCache(settings, fetch=fetch)
