import json
from typing import Any

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from flask import Flask
from jwt.utils import base64url_encode, to_base64url_uint

_CURVES = {
    "ES256": ec.SECP256R1,
    "ES384": ec.SECP384R1,
    "ES512": ec.SECP521R1,
}


@pytest.fixture()
def app():
    app = Flask(__name__)
    app.config["TESTING"] = True
    return app


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_private_keys() -> dict[str, ec.EllipticCurvePrivateKey]:
    """One private key per ES* algorithm, on the matching curve."""
    return {alg: ec.generate_private_key(curve()) for alg, curve in _CURVES.items()}


@pytest.fixture
def key_pair(rsa_private_key, ec_private_keys):
    """
    Factory fixture returning (signing_key, verification_key) for an alg.

    Usage in tests:
        signing, verifying = key_pair("ES256")
    """

    def _make(alg: str) -> tuple[Any, Any]:
        if alg.startswith("RS"):
            return rsa_private_key, rsa_private_key.public_key()
        if alg.startswith("ES"):
            private = ec_private_keys[alg]
            return private, private.public_key()
        secret = b"a-super-secret-key-that-is-long-enough-for-hs512-use!!!!!!!!!!!"
        return secret, secret

    return _make


def rsa_jwk(public_key: rsa.RSAPublicKey, kid: str, alg: str = "RS256") -> dict[str, str]:
    numbers = public_key.public_numbers()
    return {
        "kty": "RSA",
        "kid": kid,
        "alg": alg,
        "use": "sig",
        "n": to_base64url_uint(numbers.n).decode("ascii"),
        "e": to_base64url_uint(numbers.e).decode("ascii"),
    }


def ec_jwk(public_key: ec.EllipticCurvePublicKey, kid: str) -> dict[str, str]:
    numbers = public_key.public_numbers()
    return {
        "kty": "EC",
        "kid": kid,
        "alg": "ES256",
        "crv": "P-256",
        "x": base64url_encode(numbers.x.to_bytes(32, "big")).decode("ascii"),
        "y": base64url_encode(numbers.y.to_bytes(32, "big")).decode("ascii"),
    }


def jwks_body(*keys: dict[str, Any]) -> bytes:
    return json.dumps({"keys": list(keys)}).encode("utf-8")


class FakeFetch:
    """
    Stand-in for the HTTP fetch collaborator.
    Replays queued responses; an Exception instance is raised instead.
    """

    def __init__(self, *responses: tuple[int, bytes] | Exception):
        self._responses = list(responses)
        self.urls: list[str] = []

    def queue(self, response: tuple[int, bytes] | Exception) -> None:
        self._responses.append(response)

    def __call__(self, url: str) -> tuple[int, bytes]:
        self.urls.append(url)
        if not self._responses:
            raise ConnectionError("no response queued")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def make_rsa_jwk():
    """
    Factory fixture that returns a function.

    Usage in tests:
        jwk = make_rsa_jwk(public_key, kid="k1")
    """
    return rsa_jwk


@pytest.fixture
def make_ec_jwk():
    return ec_jwk


@pytest.fixture
def make_jwks_body():
    return jwks_body


@pytest.fixture
def make_fetch():
    """Factory for FakeFetch preloaded with responses."""
    return FakeFetch
