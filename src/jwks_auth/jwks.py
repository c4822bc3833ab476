"""JSON Web Key Set parsing.

Turns a JWKS document into ``{(kty, kid): public_key}``. Only two entry
shapes are recognised:

- ``{"kty": "RSA", "alg": "RS256", "n": ..., "e": ...}``
- ``{"kty": "EC", "alg": "ES256", "crv": "P-256", "x": ..., "y": ...}``

Every other entry is dropped without error: a shared JWKS endpoint commonly
publishes keys for consumers with different algorithm needs.
"""

from __future__ import annotations

import binascii
import json
import logging
from collections.abc import Mapping
from typing import Any, Final, TypeAlias

from cryptography.hazmat.primitives.asymmetric import ec, rsa
from jwt.utils import base64url_decode, from_base64url_uint

from .errors import InvalidKeySet

logger = logging.getLogger(__name__)

PublicKey: TypeAlias = rsa.RSAPublicKey | ec.EllipticCurvePublicKey
KeyEntry: TypeAlias = tuple[tuple[str, str | None], PublicKey]

P256_OID: Final = ec.EllipticCurveOID.SECP256R1
"""Named curve 1.2.840.10045.3.1.7."""

_P256_COORDINATE_BYTES: Final[int] = 32

_MATERIAL_ERRORS = (KeyError, binascii.Error, TypeError, ValueError)


def _rsa_key(jwk: Mapping[str, Any]) -> rsa.RSAPublicKey:
    modulus = from_base64url_uint(jwk["n"])
    exponent = from_base64url_uint(jwk["e"])
    return rsa.RSAPublicNumbers(e=exponent, n=modulus).public_key()


def _ec_p256_key(jwk: Mapping[str, Any]) -> ec.EllipticCurvePublicKey:
    x = base64url_decode(jwk["x"])
    y = base64url_decode(jwk["y"])
    if len(x) != _P256_COORDINATE_BYTES or len(y) != _P256_COORDINATE_BYTES:
        raise ValueError("P-256 coordinates must be 32 bytes each")
    # Uncompressed SEC1 point: 0x04 || X || Y
    point = b"\x04" + x + y
    curve = ec.get_curve_for_oid(P256_OID)()
    return ec.EllipticCurvePublicKey.from_encoded_point(curve, point)


def parse_key(jwk: Mapping[str, Any]) -> list[KeyEntry]:
    """Parse a single JWK.

    Returns:
        One ``((kty, kid), key)`` pair for a supported entry, otherwise an
        empty list. Supported entries with unusable key material are
        skipped with a warning.
    """
    alg = jwk.get("alg")
    kty = jwk.get("kty")
    kid = jwk.get("kid")
    if kid is not None and not isinstance(kid, str):
        logger.warning("Skipping JWK kty=%s: kid %r is not a string", kty, kid)
        return []

    try:
        if (alg, kty) == ("RS256", "RSA"):
            return [((kty, kid), _rsa_key(jwk))]
        if (alg, kty) == ("ES256", "EC") and jwk.get("crv") == "P-256":
            return [((kty, kid), _ec_p256_key(jwk))]
    except _MATERIAL_ERRORS as e:
        logger.warning("Skipping JWK kty=%s kid=%s: %s", kty, kid, e)
        return []

    logger.debug("Ignoring unsupported JWK alg=%s kty=%s kid=%s", alg, kty, kid)
    return []


def parse_keyset(body: bytes | str | Mapping[str, Any]) -> dict[tuple[str, str | None], PublicKey]:
    """Parse a JWKS document into a lookup table.

    Args:
        body: Raw response body, or an already decoded document.

    Raises:
        InvalidKeySet: Body is not JSON, not an object, or has no ``keys`` list.
    """
    if isinstance(body, Mapping):
        document: Any = body
    else:
        try:
            document = json.loads(body)
        except (TypeError, ValueError, RecursionError) as e:
            raise InvalidKeySet(f"JWKS body is not valid JSON: {e}") from e

    if not isinstance(document, Mapping):
        raise InvalidKeySet("JWKS document is not a JSON object")
    keys = document.get("keys")
    if not isinstance(keys, list):
        raise InvalidKeySet("JWKS document has no 'keys' list")

    table: dict[tuple[str, str | None], PublicKey] = {}
    for jwk in keys:
        if isinstance(jwk, Mapping):
            table.update(parse_key(jwk))
    return table
