"""
JWKS package.

Two directions of the same format:
- client: reads the published JWKS and picks the key id for assertions.
- publisher: derives this service's JWKS from its RSA public key.

Key points:
- One GET per token request, no caching and no retry.
- The first key in the set is used; there is no filtering by use or alg.
"""

from .client import JWKSResolver
from .publisher import JWKSPublisher

__all__ = ["JWKSResolver", "JWKSPublisher"]
