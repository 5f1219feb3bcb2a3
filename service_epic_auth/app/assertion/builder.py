"""
Client assertion JWT construction.
"""

import secrets
import time
from typing import Callable, Union

from jose import jwt
from jose.exceptions import JOSEError
from pydantic import BaseModel

from shared.errors import SigningError
from shared.logging import get_logger
from shared.result import Result
from ..keys.material import PrivateKeyHandle, load_private_key

ASSERTION_ALGORITHM = "RS256"
ASSERTION_LIFETIME_SECONDS = 300


class ClientAssertionClaims(BaseModel):
    """Claim set of a private_key_jwt client assertion (RFC 7523 section 3)."""

    iss: str
    sub: str
    aud: str
    jti: str
    iat: int
    exp: int

    @classmethod
    def issue(cls, client_id: str, audience: str, now: int) -> "ClientAssertionClaims":
        return cls(
            iss=client_id,
            sub=client_id,
            aud=audience,
            jti=secrets.token_hex(16),
            iat=now,
            exp=now + ASSERTION_LIFETIME_SECONDS,
        )


class AssertionBuilder:
    """Builds single-use RS256 client assertions."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self.logger = get_logger("epic_auth.assertion")

    def build(
        self,
        client_id: str,
        audience: str,
        private_key: Union[PrivateKeyHandle, str],
        kid: str,
    ) -> Result[str]:
        """Sign a fresh assertion for ``audience`` with header ``{typ: JWT, kid}``.

        Every call yields a new ``jti``; assertions are valid for five minutes.
        """
        if isinstance(private_key, str):
            loaded = load_private_key(private_key)
            if not loaded.ok:
                return Result.failure(SigningError(
                    f"Failed to build client assertion JWT: {loaded.error.message}",
                    details={"cause": loaded.error.code},
                ))
            private_key = loaded.value

        claims = ClientAssertionClaims.issue(client_id, audience, int(self.clock()))

        try:
            token = jwt.encode(
                claims.model_dump(),
                private_key.key,
                algorithm=ASSERTION_ALGORITHM,
                headers={"kid": kid, "typ": "JWT"},
            )
        except (JOSEError, ValueError, TypeError) as exc:
            self.logger.error("Client assertion signing failed", kid=kid, error=str(exc))
            return Result.failure(SigningError(
                f"Failed to build client assertion JWT: {exc}",
                details={"cause": str(exc)},
            ))

        self.logger.debug(
            "Built client assertion",
            client_id=client_id,
            aud=audience,
            kid=kid,
            jti=claims.jti,
            exp=claims.exp,
        )
        return Result.success(token)
