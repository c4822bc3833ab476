"""Signature production and verification for the three algorithm families.

The cryptographic work is done by PyJWT's algorithm objects (backed by
``cryptography``); this module adds key preparation and maps failures to the
package's error types:

- RSA / ECDSA mismatch  -> BadSignature
- HMAC mismatch         -> BadHmac (compared in constant time)
- unusable key          -> InvalidKey
"""

from __future__ import annotations

from typing import Any

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from jwt.exceptions import InvalidKeyError

from .algorithms import AlgorithmDescriptor, Family
from .errors import BadHmac, BadSignature, InvalidKey

_KEY_ERRORS = (InvalidKeyError, UnsupportedAlgorithm, TypeError, ValueError, AttributeError)


def _public(key: Any) -> Any:
    if isinstance(key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
        return key.public_key()
    return key


def sign(descriptor: AlgorithmDescriptor, message: bytes, key: Any) -> bytes:
    """Sign ``message``.

    Args:
        descriptor: Resolved algorithm.
        message: Signing input (``header_b64.payload_b64``).
        key: Private key object or PEM for RSA/ECDSA; shared secret
            (``str`` or ``bytes``) for HMAC.

    Raises:
        InvalidKey: If ``key`` does not suit the family.
    """
    impl = descriptor.implementation()
    try:
        return impl.sign(message, impl.prepare_key(key))
    except _KEY_ERRORS as e:
        raise InvalidKey(f"Key unusable for {descriptor.name}: {e}") from e


def verify(
    descriptor: AlgorithmDescriptor,
    message: bytes,
    signature: bytes,
    key: Any,
) -> None:
    """Verify ``signature`` over ``message``; return quietly on success.

    Raises:
        BadSignature: RSA/ECDSA signature does not verify.
        BadHmac: HMAC does not match.
        InvalidKey: ``key`` does not suit the family.
    """
    impl = descriptor.implementation()
    try:
        prepared = impl.prepare_key(_public(key))
    except _KEY_ERRORS as e:
        raise InvalidKey(f"Key unusable for {descriptor.name}: {e}") from e

    if descriptor.family is Family.HMAC:
        if not impl.verify(message, prepared, signature):
            raise BadHmac()
        return

    if not impl.verify(message, prepared, signature):
        raise BadSignature()
