"""
Key resolver implementations for token decoding.

This package contains implementations of the KeyResolver protocol, so that
decoding stays independent of where verification keys come from.
"""

from .jwks import JWKSKeyResolver
from .static import StaticKeyResolver

__all__ = ["JWKSKeyResolver", "StaticKeyResolver"]
