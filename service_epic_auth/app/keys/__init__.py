"""
RSA key material package.

Parses PEM-encoded keys read from the secret store into handles the
assertion builder and JWKS publisher consume. Keys are never generated here.
"""

from .material import PrivateKeyHandle, PublicKeyHandle, load_private_key, load_public_key

__all__ = ["PrivateKeyHandle", "PublicKeyHandle", "load_private_key", "load_public_key"]
