"""Token decoding, validation and issuing.

Decoding walks a fixed pipeline and stops at the first failure:

    split -> decode header -> decode payload -> validate header
          -> validate payload -> resolve key -> verify signature -> claims

The signature is always verified, over the raw header and payload segments
as received (never a re-encoding of the parsed JSON). Claim checks are
opt-in through ValidationChecks.

Key resolution is delegated to a caller-supplied lookup. The verifier makes
no assumption about where keys come from; whatever the lookup raises reaches
the caller unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from . import algorithms, claims, codec, signatures
from .claims import NO_CHECKS, ValidationChecks
from .errors import AuthError, MissingAlg, MissingKid

if TYPE_CHECKING:
    from .protocols import Claims, KeyLookup, KeyResolver

logger = logging.getLogger(__name__)


def decode(
    token: str | bytes,
    checks: ValidationChecks | None,
    key_lookup: KeyLookup,
) -> dict[str, Any]:
    """Decode and verify a token, returning its payload.

    Args:
        token: Compact JWS string.
        checks: Claim checks to enforce; None enforces none.
        key_lookup: ``lookup(alg, kid)`` returning the verification key.

    Returns:
        The decoded payload.

    Raises:
        InvalidToken: Subclass naming the first failed step (MalformedToken,
            MissingTyp, ExpiredToken, BadSignature, ...).
        Exception: Anything raised by ``key_lookup``, untouched.
    """
    checks = checks or NO_CHECKS

    header_b64, payload_b64, signature_b64 = codec.split(token)
    header = codec.decode_segment(header_b64)
    payload = codec.decode_segment(payload_b64)

    claims.validate_header(header, checks)
    claims.validate_payload(payload, checks)

    alg = header.get("alg")
    kid = header.get("kid")
    if checks.kid and kid is None:
        raise MissingKid()
    key = key_lookup(alg, kid)

    if not alg:
        raise MissingAlg()
    descriptor = algorithms.resolve(alg)

    signatures.verify(
        descriptor,
        codec.signing_input(header_b64, payload_b64),
        codec.decode_signature(signature_b64),
        key,
    )
    return payload


def encode(header: Mapping[str, Any], payload: Mapping[str, Any], key: Any) -> str:
    """Issue a token signed with the algorithm named in ``header["alg"]``.

    Args:
        header: JOSE header; must contain ``alg``.
        payload: Claims.
        key: Private key for RS*/ES*, shared secret for HS*.

    Raises:
        MissingAlg: Header has no ``alg``.
        InvalidAlg: ``alg`` is not registered.
        InvalidKey: ``key`` does not suit the algorithm.
    """
    alg = header.get("alg")
    if alg is None:
        raise MissingAlg()
    descriptor = algorithms.resolve(alg)
    return codec.encode(header, payload, lambda message: signatures.sign(descriptor, message, key))


class JWTVerifier:
    """TokenVerifier bound to a key resolver and a set of checks.

    Thread Safety:
        Stateless apart from its collaborators; safe to share between
        threads if the resolver is (JWKSKeyResolver is).

    Example:
        ```python
        cache = KeyCache(KeyCacheSettings.from_config(EnvConfig()))
        cache.start()

        verifier = JWTVerifier(
            JWKSKeyResolver(cache),
            ValidationChecks.of("alg", "exp", "kid", iss="https://idp.example.com/"),
        )

        claims = verifier.verify(raw_token)
        ```
    """

    def __init__(
        self,
        key_resolver: KeyResolver,
        checks: ValidationChecks | None = None,
    ) -> None:
        self._keys = key_resolver
        self._checks = checks or NO_CHECKS

    @property
    def checks(self) -> ValidationChecks:
        return self._checks

    def verify(self, token: str) -> Claims:
        try:
            return decode(token, self._checks, self._keys.resolve)
        except AuthError as e:
            logger.debug("Token rejected: %s", e.reason)
            raise
