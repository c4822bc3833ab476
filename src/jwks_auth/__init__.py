"""
JWT decoding/issuing and a locally cached JWKS key table.

High-level flow (per token)
---------------------------
1. `decode(token, checks, key_lookup)` splits the token into its three
   base64url segments and decodes header and payload.
2. Requested checks run in order (typ, alg, iss, iat, nbf, exp); the first
   failure is raised.
3. `key_lookup(alg, kid)` supplies the verification key; usually
   `JWKSKeyResolver.resolve`, which reads a `KeyCache`.
4. The signature over the raw segments is verified (RSA, ECDSA or HMAC).
5. The payload is returned.

Key cache
---------
`KeyCache` downloads the JWKS document on a background thread, keeps RS256
and P-256 ES256 keys, and republishes the whole table atomically. After a
failed download it retries sooner and keeps serving the previous keys.

Security notes
--------------
- Claims are not trusted until the signature verifies; the signature is
  always checked, whatever the checks say.
- Only the nine registered algorithms are accepted (no `none`).
- HMAC comparison is constant time.

Example usage
-------------

.. code-block:: python

    from jwks_auth import (
        EnvConfig,
        JWKSKeyResolver,
        JWTVerifier,
        KeyCache,
        KeyCacheSettings,
        ValidationChecks,
    )

    cache = KeyCache(KeyCacheSettings.from_config(EnvConfig()))
    cache.start()

    verifier = JWTVerifier(
        JWKSKeyResolver(cache),
        ValidationChecks.of("typ", "alg", "exp", "kid", iss="https://idp.example.com/"),
    )
    claims = verifier.verify(raw_token)
"""

# Algorithms
from .algorithms import SUPPORTED_ALGORITHMS, AlgorithmDescriptor, Family

# Claims
from .claims import ValidationChecks

# Configuration
from .config import EnvConfig, KeyCacheSettings, MappingConfig

# Errors
from .errors import (
    AuthError,
    BadHmac,
    BadSignature,
    DecodeError,
    ExpiredToken,
    InvalidAlg,
    InvalidBase64,
    InvalidIat,
    InvalidIss,
    InvalidJson,
    InvalidKey,
    InvalidKeySet,
    InvalidToken,
    InvalidTyp,
    KeyNotFound,
    KeyStoreError,
    MalformedToken,
    MissingAlg,
    MissingExp,
    MissingIat,
    MissingIss,
    MissingKid,
    MissingNbf,
    MissingToken,
    MissingTyp,
    NotAnObject,
    NotYetValid,
    ServiceUnavailable,
)

# Fetchers
from .fetchers import HttpFetcher, http_fetch

# Flask extension
from .flask_extension import AuthExtension, create_key_cache

# JWKS
from .jwks import parse_key, parse_keyset

# Key cache
from .key_cache import KeyCache

# Key providers
from .key_providers import JWKSKeyResolver, StaticKeyResolver

# Protocols
from .protocols import (
    Claims,
    ConfigProvider,
    FetchFunc,
    KeyLookup,
    KeyResolver,
    TokenVerifier,
)

# Verifier
from .verifier import JWTVerifier, decode, encode

__all__ = [
    # Errors
    "AuthError",
    "BadHmac",
    "BadSignature",
    "DecodeError",
    "ExpiredToken",
    "InvalidAlg",
    "InvalidBase64",
    "InvalidIat",
    "InvalidIss",
    "InvalidJson",
    "InvalidKey",
    "InvalidKeySet",
    "InvalidToken",
    "InvalidTyp",
    "KeyNotFound",
    "KeyStoreError",
    "MalformedToken",
    "MissingAlg",
    "MissingExp",
    "MissingIat",
    "MissingIss",
    "MissingKid",
    "MissingNbf",
    "MissingToken",
    "MissingTyp",
    "NotAnObject",
    "NotYetValid",
    "ServiceUnavailable",
    # Protocols
    "Claims",
    "ConfigProvider",
    "FetchFunc",
    "KeyLookup",
    "KeyResolver",
    "TokenVerifier",
    # Algorithms
    "AlgorithmDescriptor",
    "Family",
    "SUPPORTED_ALGORITHMS",
    # Claims
    "ValidationChecks",
    # Verifier
    "JWTVerifier",
    "decode",
    "encode",
    # JWKS
    "parse_key",
    "parse_keyset",
    # Key cache
    "KeyCache",
    # Configuration
    "EnvConfig",
    "KeyCacheSettings",
    "MappingConfig",
    # Fetchers
    "HttpFetcher",
    "http_fetch",
    # Key providers
    "JWKSKeyResolver",
    "StaticKeyResolver",
    # Flask extension
    "AuthExtension",
    "create_key_cache",
]
