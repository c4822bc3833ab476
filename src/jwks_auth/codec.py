"""Compact JWS serialization.

A token is ``base64url(JSON(header)) "." base64url(JSON(payload)) "."
base64url(signature)`` using the unpadded URL-safe alphabet. Nothing here
touches keys or the clock; signing is delegated to a callable.
"""

from __future__ import annotations

import binascii
import json
import re
from collections.abc import Callable, Mapping
from typing import Any, Final, TypeAlias

from jwt.utils import base64url_decode, base64url_encode

from .errors import InvalidBase64, InvalidJson, MalformedToken, NotAnObject

SignFunc: TypeAlias = Callable[[bytes], bytes]
"""Computes a signature or MAC over the signing input."""

_B64URL: Final = re.compile(r"^[A-Za-z0-9_-]*$")


def _to_text(token: str | bytes) -> str:
    if isinstance(token, bytes):
        try:
            return token.decode("ascii")
        except UnicodeDecodeError as e:
            raise MalformedToken("Token is not ASCII") from e
    return token


def split(token: str | bytes) -> tuple[str, str, str]:
    """Split a token into its header, payload and signature segments.

    Raises:
        MalformedToken: Unless there are exactly three segments.
    """
    parts = _to_text(token).split(".")
    if len(parts) != 3:
        raise MalformedToken(f"Expected 3 segments, got {len(parts)}")
    header, payload, signature = parts
    return header, payload, signature


def b64_decode(segment: str) -> bytes:
    """Strict unpadded base64url decode.

    Raises:
        InvalidBase64: On characters outside the URL-safe alphabet or an
            impossible length.
    """
    if not _B64URL.match(segment):
        raise InvalidBase64("Segment contains non base64url characters")
    try:
        return base64url_decode(segment)
    except (binascii.Error, ValueError) as e:
        raise InvalidBase64(f"Segment is not valid base64url: {e}") from e


def decode_segment(segment: str) -> dict[str, Any]:
    """Decode a header or payload segment into a dict.

    Raises:
        InvalidBase64: Segment is not base64url.
        InvalidJson: Decoded bytes are not JSON.
        NotAnObject: JSON value is not an object.
    """
    raw = b64_decode(segment)
    try:
        value = json.loads(raw)
    except (ValueError, RecursionError) as e:
        raise InvalidJson(f"Segment is not valid JSON: {e}") from e
    if not isinstance(value, dict):
        raise NotAnObject(f"Expected a JSON object, got {type(value).__name__}")
    return value


def decode_signature(segment: str) -> bytes:
    return b64_decode(segment)


def encode_segment(obj: Mapping[str, Any]) -> str:
    data = json.dumps(dict(obj), separators=(",", ":")).encode("utf-8")
    return base64url_encode(data).decode("ascii")


def signing_input(header_b64: str, payload_b64: str) -> bytes:
    """Bytes covered by the signature: the raw segments joined with ``.``."""
    return f"{header_b64}.{payload_b64}".encode("ascii")


def encode(header: Mapping[str, Any], payload: Mapping[str, Any], sign: SignFunc) -> str:
    """Serialize and sign a token.

    Args:
        header: JOSE header; must already carry whatever ``alg`` ``sign`` uses.
        payload: Claims.
        sign: Called once with the signing input; returns signature bytes.

    Returns:
        The compact token string.
    """
    header_b64 = encode_segment(header)
    payload_b64 = encode_segment(payload)
    signature = sign(signing_input(header_b64, payload_b64))
    return f"{header_b64}.{payload_b64}.{base64url_encode(signature).decode('ascii')}"
