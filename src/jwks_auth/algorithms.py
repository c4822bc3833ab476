"""Static registry of supported JWS algorithm identifiers.

Maps each ``alg`` header value to its verification family and hash function.
The table is fixed for the life of the process: anything outside it is
rejected, which also rules out ``none``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Final

from jwt.algorithms import Algorithm, ECAlgorithm, HMACAlgorithm, RSAAlgorithm

from .errors import InvalidAlg


class Family(enum.Enum):
    """Signature scheme family."""

    RSA = "RSA"
    ECDSA = "ECDSA"
    HMAC = "HMAC"


_HASHES: Final = {
    Family.RSA: {
        "SHA-256": RSAAlgorithm.SHA256,
        "SHA-384": RSAAlgorithm.SHA384,
        "SHA-512": RSAAlgorithm.SHA512,
    },
    Family.ECDSA: {
        "SHA-256": ECAlgorithm.SHA256,
        "SHA-384": ECAlgorithm.SHA384,
        "SHA-512": ECAlgorithm.SHA512,
    },
    Family.HMAC: {
        "SHA-256": HMACAlgorithm.SHA256,
        "SHA-384": HMACAlgorithm.SHA384,
        "SHA-512": HMACAlgorithm.SHA512,
    },
}

_IMPLEMENTATIONS: Final[dict[Family, type[Algorithm]]] = {
    Family.RSA: RSAAlgorithm,
    Family.ECDSA: ECAlgorithm,
    Family.HMAC: HMACAlgorithm,
}


@dataclass(frozen=True, slots=True)
class AlgorithmDescriptor:
    """Resolved algorithm: identifier, family and hash.

    Attributes:
        name: The ``alg`` identifier, e.g. ``"ES384"``.
        family: RSA (PKCS#1 v1.5), ECDSA or HMAC.
        hash_name: ``"SHA-256"``, ``"SHA-384"`` or ``"SHA-512"``.
    """

    name: str
    family: Family
    hash_name: str

    def implementation(self) -> Algorithm:
        """Return the PyJWT algorithm object performing sign/verify."""
        hash_alg = _HASHES[self.family][self.hash_name]
        return _IMPLEMENTATIONS[self.family](hash_alg)


def _descriptor(name: str, family: Family, bits: int) -> AlgorithmDescriptor:
    return AlgorithmDescriptor(name=name, family=family, hash_name=f"SHA-{bits}")


_REGISTRY: Final[dict[str, AlgorithmDescriptor]] = {
    d.name: d
    for d in (
        _descriptor("RS256", Family.RSA, 256),
        _descriptor("RS384", Family.RSA, 384),
        _descriptor("RS512", Family.RSA, 512),
        _descriptor("ES256", Family.ECDSA, 256),
        _descriptor("ES384", Family.ECDSA, 384),
        _descriptor("ES512", Family.ECDSA, 512),
        _descriptor("HS256", Family.HMAC, 256),
        _descriptor("HS384", Family.HMAC, 384),
        _descriptor("HS512", Family.HMAC, 512),
    )
}

SUPPORTED_ALGORITHMS: Final[tuple[str, ...]] = tuple(_REGISTRY)
"""All accepted ``alg`` identifiers, in registry order."""


def is_supported(alg: object) -> bool:
    return isinstance(alg, str) and alg in _REGISTRY


def resolve(alg: object) -> AlgorithmDescriptor:
    """Look up an algorithm identifier.

    Raises:
        InvalidAlg: If ``alg`` is not one of :data:`SUPPORTED_ALGORITHMS`.
    """
    if not is_supported(alg):
        raise InvalidAlg(f"Unsupported algorithm: {alg!r}")
    return _REGISTRY[alg]  # type: ignore[index]
