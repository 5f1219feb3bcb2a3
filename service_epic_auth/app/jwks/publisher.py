"""
Public JWKS document derivation.

Epic verifies our client assertions against the JWKS we host. The document
carries a single RSA key whose ``kid`` is the first 16 hex characters of the
SHA-1 of the PEM text, the same derivation the REDCap provisioning page
used, so keys already registered with Epic keep their ids.

``alg`` is advertised as RS384 even though assertions are signed with RS256.
Epic selects the key by ``kid``; the value is kept as registered.
"""

import base64
import hashlib
import json
from typing import Any, Dict

from shared.errors import EncodingError
from shared.logging import get_logger
from shared.result import Result
from ..keys.material import PublicKeyHandle, load_public_key

PUBLISHED_ALG = "RS384"
KID_LENGTH = 16

logger = get_logger("epic_auth.jwks_publisher")


def base64url_encode(data: bytes) -> str:
    """URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def derive_kid(public_key_pem: str) -> str:
    return hashlib.sha1(public_key_pem.encode("utf-8")).hexdigest()[:KID_LENGTH]


class JWKSPublisher:
    """Builds this service's JWKS from an RSA public key PEM."""

    def build_jwks(self, public_key_pem: str) -> Result[Dict[str, Any]]:
        loaded = load_public_key(public_key_pem)
        if not loaded.ok:
            return Result.failure(loaded.error)

        return Result.success(self._jwks_for(loaded.value))

    def publish(self, public_key_pem: str) -> Result[str]:
        """Return the JWKS document as pretty-printed JSON."""
        document = self.build_jwks(public_key_pem)
        if not document.ok:
            return Result.failure(document.error)

        try:
            # json.dumps never escapes forward slashes
            body = json.dumps(document.value, indent=4)
        except (TypeError, ValueError) as exc:
            logger.error("Failed to encode JWKS", error=str(exc))
            return Result.failure(EncodingError(f"Failed to encode JWKS JSON: {exc}"))

        logger.info("Published JWKS", kid=document.value["keys"][0]["kid"])
        return Result.success(body)

    def _jwks_for(self, handle: PublicKeyHandle) -> Dict[str, Any]:
        return {
            "keys": [
                {
                    "kty": "RSA",
                    "kid": derive_kid(handle.pem),
                    "use": "sig",
                    "alg": PUBLISHED_ALG,
                    "n": base64url_encode(handle.modulus),
                    "e": base64url_encode(handle.exponent),
                }
            ]
        }
