"""Token, key and key store errors.

This module defines the exception hierarchy for token decoding, claim
validation, signature verification and JWKS refresh failures.

All token-path errors inherit from AuthError, so request handlers can catch a
single type. Each class carries:

- ``reason``: stable machine-readable tag (e.g. ``"missing_typ"``)
- ``error_code``: HTTP status a web integration should answer with
- ``description``: message safe to return to clients

Refresh failures inherit from KeyStoreError instead. They are handled by the
refresh loop and never reach code that only looks keys up.

Security Note:
    ``description`` is intentionally generic. The specific ``reason`` is meant
    for server-side logs, not for responses.
"""

from __future__ import annotations

from typing import ClassVar


class AuthError(Exception):
    """Base exception for all authentication failures.

    Attributes:
        reason: Stable tag identifying the failure.
        error_code: HTTP status code for web integrations.
        description: Client-safe message.
    """

    reason: ClassVar[str] = "auth_error"
    error_code: ClassVar[int] = 401
    description: ClassVar[str] = "Authentication failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.reason)


class MissingToken(AuthError):  # noqa: N818
    """Raised when no bearer token is found in the request."""

    reason = "missing_token"
    description = "Missing token"


class InvalidToken(AuthError):  # noqa: N818
    """Raised when a token is present but cannot be accepted.

    Parent of every structural, claim and signature failure below, so that
    callers who do not care about the exact reason can catch one type.
    """

    reason = "invalid_token"
    description = "Invalid token"


# ============================================================================
# Structural errors
# ============================================================================


class MalformedToken(InvalidToken):  # noqa: N818
    """Token does not consist of exactly three dot-separated segments."""

    reason = "malformed_token"


class DecodeError(InvalidToken):
    """A segment is not valid base64url, or its content is not valid JSON."""

    reason = "decode_error"


class InvalidBase64(DecodeError):
    reason = "invalid_base64"


class InvalidJson(DecodeError):
    reason = "invalid_json"


class NotAnObject(InvalidToken):  # noqa: N818
    """Header or payload decoded to a JSON value that is not an object."""

    reason = "not_object"


# ============================================================================
# Header and claim errors
# ============================================================================


class MissingTyp(InvalidToken):  # noqa: N818
    reason = "missing_typ"


class InvalidTyp(InvalidToken):  # noqa: N818
    reason = "invalid_typ"


class MissingAlg(InvalidToken):  # noqa: N818
    reason = "missing_alg"


class InvalidAlg(InvalidToken):  # noqa: N818
    """Algorithm id is not one of the nine registered identifiers."""

    reason = "invalid_alg"


class MissingIss(InvalidToken):  # noqa: N818
    reason = "missing_iss"


class InvalidIss(InvalidToken):  # noqa: N818
    reason = "invalid_iss"


class MissingIat(InvalidToken):  # noqa: N818
    reason = "missing_iat"


class InvalidIat(InvalidToken):  # noqa: N818
    reason = "invalid_iat"


class MissingNbf(InvalidToken):  # noqa: N818
    reason = "missing_nbf"


class NotYetValid(InvalidToken):  # noqa: N818
    """The ``nbf`` claim is not strictly before the current second."""

    reason = "nbf not in past"


class MissingExp(InvalidToken):  # noqa: N818
    reason = "missing_exp"


class ExpiredToken(InvalidToken):  # noqa: N818
    """The ``exp`` claim is not strictly after the current second.

    Treat identically to InvalidToken from a security perspective. The
    distinction helps with metrics and prompting clients to refresh.
    """

    reason = "exp not in future"
    description = "Expired token"


class MissingKid(InvalidToken):  # noqa: N818
    reason = "missing_kid"


# ============================================================================
# Signature errors
# ============================================================================


class BadSignature(InvalidToken):  # noqa: N818
    """RSA or ECDSA signature does not match the message and public key."""

    reason = "bad_signature"


class BadHmac(InvalidToken):  # noqa: N818
    """HMAC recomputed with the shared secret differs from the token's."""

    reason = "bad_hmac"


class InvalidKey(InvalidToken):  # noqa: N818
    """The resolved key cannot be used with the token's algorithm family.

    This covers wrong key types (an RSA key for ES256) and asymmetric PEM
    material handed to an HMAC algorithm, which would otherwise enable
    algorithm confusion.
    """

    reason = "invalid_key"


# ============================================================================
# Key resolution
# ============================================================================


class KeyNotFound(AuthError):  # noqa: N818
    """No key is known for the requested (key type, key id)."""

    reason = "not_found"


# ============================================================================
# Key store refresh
# ============================================================================


class KeyStoreError(Exception):
    """Base exception for JWKS refresh failures.

    These are recovered by the refresh schedule and only observable in logs.
    """

    reason: ClassVar[str] = "key_store_error"
    error_code: ClassVar[int] = 503
    description: ClassVar[str] = "JWKS service unavailable"


class ServiceUnavailable(KeyStoreError):  # noqa: N818
    """JWKS endpoint unset, unreachable, or answered with a non-200 status."""

    reason = "service_unavailable"


class InvalidKeySet(KeyStoreError):  # noqa: N818
    """JWKS document is not JSON, not an object, or lacks a ``keys`` list."""

    reason = "invalid_keyset"
