"""
PEM key loading for Epic client credentials.
"""

from dataclasses import dataclass

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from shared.errors import KeyParseError
from shared.logging import get_logger
from shared.result import Result

logger = get_logger("epic_auth.keys")


def int_to_bytes(value: int) -> bytes:
    """Minimal big-endian encoding of a non-negative integer."""
    return value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")


@dataclass(frozen=True)
class PrivateKeyHandle:
    """Parsed RSA private key together with its source PEM."""

    pem: str
    key: rsa.RSAPrivateKey


@dataclass(frozen=True)
class PublicKeyHandle:
    """Parsed RSA public key together with its source PEM."""

    pem: str
    key: rsa.RSAPublicKey

    @property
    def modulus(self) -> bytes:
        return int_to_bytes(self.key.public_numbers().n)

    @property
    def exponent(self) -> bytes:
        return int_to_bytes(self.key.public_numbers().e)


def load_private_key(pem: str) -> Result[PrivateKeyHandle]:
    """Parse a PEM-encoded RSA private key (PKCS#1 or PKCS#8, unencrypted)."""
    if not pem or not pem.strip():
        return Result.failure(KeyParseError("Private key PEM is empty"))

    try:
        key = serialization.load_pem_private_key(pem.encode("utf-8"), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        logger.warning("Private key parse failed", error=str(exc))
        return Result.failure(KeyParseError(
            "Failed to parse private key as an RSA private key",
            details={"cause": str(exc)},
        ))

    if not isinstance(key, rsa.RSAPrivateKey):
        return Result.failure(KeyParseError(
            "Private key is not an RSA key",
            details={"key_type": type(key).__name__},
        ))

    return Result.success(PrivateKeyHandle(pem=pem, key=key))


def load_public_key(pem: str) -> Result[PublicKeyHandle]:
    """Parse a PEM-encoded RSA public key (SubjectPublicKeyInfo or PKCS#1)."""
    if not pem or not pem.strip():
        return Result.failure(KeyParseError("Public key PEM is empty"))

    try:
        key = serialization.load_pem_public_key(pem.encode("utf-8"))
    except (ValueError, UnsupportedAlgorithm) as exc:
        logger.warning("Public key parse failed", error=str(exc))
        return Result.failure(KeyParseError(
            "Failed to parse Epic public key as an RSA public key",
            details={"cause": str(exc)},
        ))

    if not isinstance(key, rsa.RSAPublicKey):
        return Result.failure(KeyParseError(
            "Unable to extract RSA details (n, e) from Epic public key",
            details={"key_type": type(key).__name__},
        ))

    return Result.success(PublicKeyHandle(pem=pem, key=key))
