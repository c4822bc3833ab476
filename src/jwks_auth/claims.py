"""Header and payload claim checks.

Checks are opt-in: a field whose check is off is neither required nor looked
at. Checks run in a fixed order and the first failure is raised:

    typ, alg          (header)
    iss, iat, nbf, exp (payload)

Temporal comparisons use whole seconds and strict inequality, so a token
whose ``exp`` equals the current second is already expired.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from . import algorithms
from .errors import (
    ExpiredToken,
    InvalidIat,
    InvalidIss,
    InvalidTyp,
    MissingAlg,
    MissingExp,
    MissingIat,
    MissingIss,
    MissingNbf,
    MissingTyp,
    NotYetValid,
)


@dataclass(frozen=True, slots=True)
class ValidationChecks:
    """Which claims must be present and valid.

    Attributes:
        typ: Header must carry ``"typ": "JWT"``.
        alg: Header must carry a registered ``alg``.
        iat: Payload must carry an integer ``iat`` (not compared to the clock).
        nbf: Payload ``nbf`` must be strictly in the past.
        exp: Payload ``exp`` must be strictly in the future.
        kid: Header must carry ``kid``; checked when the key is resolved.
        iss: If set, payload ``iss`` must equal this value.

    Example:
        ```python
        checks = ValidationChecks.of("typ", "alg", "exp", "kid", iss="https://idp/")
        ```
    """

    typ: bool = False
    alg: bool = False
    iat: bool = False
    nbf: bool = False
    exp: bool = False
    kid: bool = False
    iss: str | None = None

    @classmethod
    def of(cls, *flags: str, iss: str | None = None) -> ValidationChecks:
        """Build checks from flag names.

        Raises:
            ValueError: On a name that is not a boolean check.
        """
        known = {f.name for f in fields(cls) if f.name != "iss"}
        unknown = set(flags) - known
        if unknown:
            raise ValueError(f"Unknown checks: {', '.join(sorted(unknown))}")
        return cls(iss=iss, **{name: True for name in flags})


NO_CHECKS = ValidationChecks()


def now_seconds() -> int:
    return int(time.time())


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_header(header: Mapping[str, Any], checks: ValidationChecks) -> None:
    """Run the ``typ`` and ``alg`` checks."""
    if checks.typ:
        typ = header.get("typ")
        if typ is None:
            raise MissingTyp()
        if typ != "JWT":
            raise InvalidTyp()

    if checks.alg:
        alg = header.get("alg")
        if not alg:
            raise MissingAlg()
        algorithms.resolve(alg)


def validate_payload(payload: Mapping[str, Any], checks: ValidationChecks) -> None:
    """Run the ``iss``, ``iat``, ``nbf`` and ``exp`` checks."""
    if checks.iss is not None:
        iss = payload.get("iss")
        if iss is None:
            raise MissingIss()
        if iss != checks.iss:
            raise InvalidIss()

    if checks.iat:
        iat = payload.get("iat")
        if iat is None:
            raise MissingIat()
        # bool is an int subclass but never a timestamp
        if not isinstance(iat, int) or isinstance(iat, bool):
            raise InvalidIat()

    if checks.nbf:
        nbf = payload.get("nbf")
        if nbf is None:
            raise MissingNbf()
        if not (_is_number(nbf) and nbf < now_seconds()):
            raise NotYetValid("nbf not in past")

    if checks.exp:
        exp = payload.get("exp")
        if exp is None:
            raise MissingExp()
        if not (_is_number(exp) and exp > now_seconds()):
            raise ExpiredToken("exp not in future")
