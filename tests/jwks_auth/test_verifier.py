"""
Tests for token decoding and issuing.

Includes fixed vectors generated with jwt.io and PyJWT.
"""

import textwrap

import pytest
from cryptography.hazmat.primitives import serialization
from jwt.utils import base64url_decode, base64url_encode

import jwks_auth as m
from jwks_auth import codec

JWT_IO_PUBKEY_B64 = (
    "MIGfMA0GCSqGSIb3DQEBAQUAA4GNADCBiQKBgQDdlatRjRjogo3WojgGH"
    "FHYLugdUWAY9iR3fy4arWNA1KoS8kVw33cJibXr8bvwUAUparCwlvdbH6"
    "dvEOfou0/gCFQsHUfQrSDv+MuSUMAe8jzKE4qW+jK+xQU9a03GUnKHkkl"
    "e+Q0pX/g6jXZ7r1/xAK5Do2kQ+X5xK9cipRgEKwIDAQAB"
)

# jwt.io generated
RS256_TOKEN = (
    "eyJhbGciOiJSUzI1NiIsInR5cCI6IkpXVCJ9.eyJzdWIiOiIxMjM0N"
    "TY3ODkwIiwibmFtZSI6IkpvaG4gRG9lIiwiYWRtaW4iOnRydWV9.Ek"
    "N-DOsnsuRjRO6BxXemmJDm3HbxrbRzXglbN2S4sOkopdU4IsDxTI8j"
    "O19W_A4K8ZPJijNLis4EZsHeY559a4DFOd50_OqgHGuERTqYZyuhtF"
    "39yxJPAjUESwxk2J5k_4zM3O-vtd1Ghyo4IbqKKSy6J9mTniYJPenn"
    "5-HIirE"
)

# jwt.io generated, secret "secret"
HS256_TOKEN = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCIsImtpZCI6IjEyMzQ1Ni"
    "J9.eyJpc3MiOiJodHRwczovL2Zvby5jb20iLCJpYXQiOjAsImV4cCI"
    "6MTAwMDAwMDAwMDAwMDAsImtpZCI6ImJhciJ9.iS8AH11QHHlczkBn"
    "Hl9X119BYLOZyZPllOVhSBZ4RZs"
)

# jwt.encode({'foo': 'bar'}, 'secret', algorithm='HS384')
HS384_TOKEN = (
    "eyJhbGciOiJIUzM4NCIsInR5cCI6IkpXVCJ9.eyJmb28iOiJiYXIif"
    "Q.2quwghs6I56GM3j7ZQbn-ASZ53xdBqzPzTDHm_CtVec32LUy-Ezy"
    "L3JjIe7WjL93"
)

# jwt.encode({'foo': 'bar'}, 'secret', algorithm='HS512')
HS512_TOKEN = (
    "eyJhbGciOiJIUzUxMiIsInR5cCI6IkpXVCJ9.eyJmb28iOiJiYX"
    "IifQ.WePl7achkd0oGNB8XRF_LJwxlyiPZqpdNgdKpDboAjSTsW"
    "q-aOGNynTp8TOv8KjonFym8vwFwppXOLoLXbkIaQ"
)

VALID_HEADER = {"typ": "JWT", "alg": "RS256"}


def jwt_io_pubkey():
    pem = "-----BEGIN PUBLIC KEY-----\n{}\n-----END PUBLIC KEY-----\n".format(
        "\n".join(textwrap.wrap(JWT_IO_PUBKEY_B64, 64))
    )
    return serialization.load_pem_public_key(pem.encode("ascii"))


def unsigned(header: dict, payload: dict) -> str:
    """Token with a bogus signature; enough for checks that fail before verification."""
    return codec.encode(header, payload, lambda _message: b"bad")


def no_lookup(alg, kid):
    raise AssertionError("key lookup must not be reached")


class TestDecodeChecks:
    def test_missing_typ(self):
        with pytest.raises(m.MissingTyp):
            m.decode(unsigned({}, {}), m.ValidationChecks(typ=True), no_lookup)

    def test_invalid_typ(self):
        with pytest.raises(m.InvalidTyp):
            m.decode(unsigned({"typ": "NOPE"}, {}), m.ValidationChecks(typ=True), no_lookup)

    def test_missing_alg(self):
        with pytest.raises(m.MissingAlg):
            m.decode(unsigned({"typ": "NOPE"}, {}), m.ValidationChecks(alg=True), no_lookup)

    def test_invalid_alg(self):
        token = unsigned({"typ": "JWT", "alg": "NOPE"}, {})
        with pytest.raises(m.InvalidAlg):
            m.decode(token, m.ValidationChecks(alg=True), no_lookup)

    def test_missing_iss(self):
        with pytest.raises(m.MissingIss):
            m.decode(unsigned(VALID_HEADER, {}), m.ValidationChecks(iss="right"), no_lookup)

    def test_invalid_iss(self):
        token = unsigned(VALID_HEADER, {"iss": "wrong"})
        with pytest.raises(m.InvalidIss):
            m.decode(token, m.ValidationChecks(iss="right"), no_lookup)

    def test_missing_iat(self):
        with pytest.raises(m.MissingIat):
            m.decode(unsigned(VALID_HEADER, {}), m.ValidationChecks(iat=True), no_lookup)

    def test_invalid_iat(self):
        token = unsigned(VALID_HEADER, {"iat": "hello"})
        with pytest.raises(m.InvalidIat):
            m.decode(token, m.ValidationChecks(iat=True), no_lookup)

    def test_missing_nbf(self):
        with pytest.raises(m.MissingNbf):
            m.decode(unsigned(VALID_HEADER, {}), m.ValidationChecks(nbf=True), no_lookup)

    def test_invalid_nbf(self):
        token = unsigned(VALID_HEADER, {"nbf": 32503680000})
        with pytest.raises(m.NotYetValid, match="nbf not in past"):
            m.decode(token, m.ValidationChecks(nbf=True), no_lookup)

    def test_missing_exp(self):
        with pytest.raises(m.MissingExp):
            m.decode(unsigned(VALID_HEADER, {}), m.ValidationChecks(exp=True), no_lookup)

    def test_invalid_exp(self):
        token = unsigned(VALID_HEADER, {"exp": 0})
        with pytest.raises(m.ExpiredToken, match="exp not in future"):
            m.decode(token, m.ValidationChecks(exp=True), no_lookup)

    def test_missing_kid(self):
        with pytest.raises(m.MissingKid):
            m.decode(unsigned({}, {}), m.ValidationChecks(kid=True), no_lookup)

    def test_header_checked_before_payload(self):
        token = unsigned({}, {"exp": 0})
        with pytest.raises(m.MissingTyp):
            m.decode(token, m.ValidationChecks(typ=True, exp=True), no_lookup)


class TestDecodeStructure:
    @pytest.mark.parametrize("token", ["a.b.c.d", "a.b", "abc", ""])
    def test_malformed_token(self, token: str):
        with pytest.raises(m.MalformedToken):
            m.decode(token, None, no_lookup)

    def test_header_not_object(self):
        token = "WzEsMl0." + codec.encode_segment({}) + ".c2ln"
        with pytest.raises(m.NotAnObject):
            m.decode(token, None, no_lookup)

    def test_payload_not_base64(self):
        token = codec.encode_segment(VALID_HEADER) + ".!!!.c2ln"
        with pytest.raises(m.InvalidBase64):
            m.decode(token, None, no_lookup)

    def test_missing_alg_without_check_still_fails_verification(self):
        calls = []

        def lookup(alg, kid):
            calls.append((alg, kid))
            return b"secret"

        with pytest.raises(m.MissingAlg):
            m.decode(unsigned({"typ": "JWT"}, {}), None, lookup)
        assert calls == [(None, None)]

    def test_unknown_alg_without_check_fails_at_verification(self):
        token = unsigned({"alg": "none"}, {})
        with pytest.raises(m.InvalidAlg):
            m.decode(token, None, lambda alg, kid: b"secret")


class TestKeyResolution:
    def test_lookup_receives_alg_and_kid(self):
        calls = []

        def lookup(alg, kid):
            calls.append((alg, kid))
            return b"secret"

        token = m.encode({"alg": "HS256", "kid": "k1"}, {}, b"secret")
        m.decode(token, None, lookup)
        assert calls == [("HS256", "k1")]

    def test_lookup_receives_none_without_kid(self):
        calls = []

        def lookup(alg, kid):
            calls.append((alg, kid))
            return b"secret"

        m.decode(m.encode({"alg": "HS256"}, {}, b"secret"), None, lookup)
        assert calls == [("HS256", None)]

    def test_public_key_not_found_propagates(self):
        token = unsigned({"alg": "RS256", "kid": "1"}, {})

        def lookup(alg, kid):
            raise m.KeyNotFound()

        with pytest.raises(m.KeyNotFound):
            m.decode(token, None, lookup)

    def test_arbitrary_lookup_error_propagates_unchanged(self):
        class Boom(Exception):
            pass

        def lookup(alg, kid):
            raise Boom("boom")

        with pytest.raises(Boom, match="boom"):
            m.decode(unsigned(VALID_HEADER, {}), None, lookup)


class TestSignatureVerification:
    def test_bad_rs256_signature(self):
        token = unsigned(VALID_HEADER, {})

        def lookup(alg, kid):
            assert (alg, kid) == ("RS256", None)
            return jwt_io_pubkey()

        with pytest.raises(m.BadSignature):
            m.decode(token, None, lookup)

    def test_bad_hs256_hmac(self):
        token = unsigned({"typ": "JWT", "alg": "HS256"}, {})
        with pytest.raises(m.BadHmac):
            m.decode(token, None, lambda alg, kid: b"bad")

    def test_hmac_with_wrong_secret(self):
        token = m.encode({"alg": "HS256"}, {"sub": "u1"}, "secret")
        with pytest.raises(m.BadHmac):
            m.decode(token, None, lambda alg, kid: "not-the-secret")

    @pytest.mark.parametrize("alg", m.SUPPORTED_ALGORITHMS)
    @pytest.mark.parametrize("position", [0, -1])
    def test_tampered_signature_rejected(self, alg: str, position: int, key_pair):
        signing_key, verification_key = key_pair(alg)
        token = m.encode({"alg": alg}, {"sub": "u1"}, signing_key)
        header_b64, payload_b64, sig_b64 = token.split(".")

        sig = bytearray(base64url_decode(sig_b64))
        sig[position] ^= 0x01
        tampered = f"{header_b64}.{payload_b64}.{base64url_encode(bytes(sig)).decode()}"

        with pytest.raises((m.BadSignature, m.BadHmac)):
            m.decode(tampered, None, lambda a, k: verification_key)

    def test_signature_covers_raw_segments(self):
        token = m.encode({"alg": "HS256"}, {"a": 1, "b": 2}, b"secret")
        header_b64, _, sig_b64 = token.split(".")
        # same claims, different serialization
        reordered = codec.encode_segment({"b": 2, "a": 1})

        with pytest.raises(m.BadHmac):
            m.decode(f"{header_b64}.{reordered}.{sig_b64}", None, lambda a, k: b"secret")


class TestKnownTokens:
    def test_hs256(self):
        checks = m.ValidationChecks.of("iat", "exp", "typ", "alg", "kid", iss="https://foo.com")

        def lookup(alg, kid):
            assert (alg, kid) == ("HS256", "123456")
            return b"secret"

        claims = m.decode(HS256_TOKEN, checks, lookup)
        assert claims["iss"] == "https://foo.com"

    def test_hs384(self):
        assert m.decode(HS384_TOKEN, None, lambda alg, kid: b"secret") == {"foo": "bar"}

    def test_hs512(self):
        assert m.decode(HS512_TOKEN, None, lambda alg, kid: b"secret") == {"foo": "bar"}

    def test_rs256(self):
        def lookup(alg, kid):
            assert (alg, kid) == ("RS256", None)
            return jwt_io_pubkey()

        claims = m.decode(RS256_TOKEN, m.ValidationChecks(alg=True), lookup)
        assert claims == {"sub": "1234567890", "name": "John Doe", "admin": True}

    def test_accepts_bytes(self):
        assert m.decode(HS384_TOKEN.encode(), None, lambda alg, kid: b"secret") == {"foo": "bar"}


class TestEncode:
    def test_missing_alg(self):
        with pytest.raises(m.MissingAlg):
            m.encode({}, {}, b"foo")

    def test_invalid_alg(self):
        with pytest.raises(m.InvalidAlg):
            m.encode({"alg": "BOGUS"}, {}, b"foo")

    @pytest.mark.parametrize("alg", m.SUPPORTED_ALGORITHMS)
    def test_round_trip(self, alg: str, key_pair):
        signing_key, verification_key = key_pair(alg)
        header = {"typ": "JWT", "alg": alg, "kid": "20170520-00:00:00"}
        payload = {"iat": 1496205841, "exp": 1496205841 + 3600}

        token = m.encode(header, payload, signing_key)
        assert m.decode(token, m.ValidationChecks(), lambda a, k: verification_key) == payload

    def test_encoded_header_is_preserved(self):
        token = m.encode({"typ": "JWT", "alg": "HS256", "kid": "k"}, {}, b"s")
        assert codec.decode_segment(token.split(".")[0]) == {"typ": "JWT", "alg": "HS256", "kid": "k"}


class TestJWTVerifier:
    def test_verify_uses_resolver_and_checks(self):
        resolver = m.StaticKeyResolver.single("HS256", b"secret", kid="k1")
        verifier = m.JWTVerifier(resolver, m.ValidationChecks(kid=True))

        token = m.encode({"alg": "HS256", "kid": "k1"}, {"sub": "u1"}, b"secret")
        assert verifier.verify(token) == {"sub": "u1"}

    def test_verify_raises_domain_error(self):
        verifier = m.JWTVerifier(m.StaticKeyResolver({}), m.ValidationChecks(kid=True))

        with pytest.raises(m.MissingKid):
            verifier.verify(m.encode({"alg": "HS256"}, {}, b"secret"))

    def test_default_checks(self):
        verifier = m.JWTVerifier(m.StaticKeyResolver({}))
        assert verifier.checks == m.ValidationChecks()


class TestHostileHeaders:
    def test_deeply_nested_header_is_invalid_json(self):
        header_b64 = base64url_encode(b"[" * 100_000 + b"]" * 100_000).decode()
        token = f"{header_b64}.{codec.encode_segment({})}.c2ln"

        with pytest.raises(m.InvalidJson):
            m.decode(token, None, no_lookup)

    @pytest.mark.parametrize("kid", [["x"], {"a": 1}, 7])
    def test_non_string_kid_is_key_not_found(self, kid):
        token = m.encode({"alg": "HS256", "kid": kid}, {}, b"secret")
        resolver = m.StaticKeyResolver.single("HS256", b"secret", kid="x")

        with pytest.raises(m.KeyNotFound):
            m.decode(token, None, resolver.resolve)
