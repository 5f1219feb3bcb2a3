"""
JWKS key id resolution for Epic client assertions.
"""

from typing import Optional

import httpx

from shared.errors import FetchError, ParseError
from shared.logging import get_logger
from shared.result import Result


class JWKSResolver:
    """Fetches a published JWKS and returns the key id for the assertion header."""

    def __init__(self, http_client: Optional[httpx.Client] = None, timeout: float = 45.0):
        self.timeout = timeout
        self.logger = get_logger("epic_auth.jwks")
        self._http_client = http_client

    def resolve_key_id(self, jwks_url: str) -> Result[str]:
        """Return the kid of the first key in the document at ``jwks_url``.

        A single GET is issued; there is no retry and no caching.
        """
        try:
            response = self._get(jwks_url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self.logger.error("Failed to fetch JWKS", url=jwks_url, error=str(exc))
            return Result.failure(FetchError(
                jwks_url,
                "Unable to fetch JWKS from URL",
                details={"error": str(exc)},
            ))

        if not response.is_success:
            self.logger.error("JWKS endpoint rejected request", url=jwks_url, status_code=response.status_code)
            return Result.failure(FetchError(
                jwks_url,
                f"JWKS endpoint returned HTTP {response.status_code}",
                details={"status_code": response.status_code},
            ))

        try:
            payload = response.json()
        except ValueError as exc:
            self.logger.error("JWKS body is not JSON", url=jwks_url, error=str(exc))
            return Result.failure(ParseError(details={"url": jwks_url, "error": str(exc)}))

        keys = payload.get("keys") if isinstance(payload, dict) else None
        if not isinstance(keys, list) or not keys:
            self.logger.error("JWKS response missing 'keys' array", url=jwks_url)
            return Result.failure(ParseError(details={"url": jwks_url}))

        # First key wins; no filtering on use, alg or key_ops
        first = keys[0]
        kid = first.get("kid") if isinstance(first, dict) else None
        if not isinstance(kid, str) or not kid:
            self.logger.error("JWKS first key has no kid", url=jwks_url)
            return Result.failure(ParseError(details={"url": jwks_url}))

        self.logger.info("Resolved JWKS key id", url=jwks_url, kid=kid, keys_count=len(keys))
        return Result.success(kid)

    def _get(self, url: str) -> httpx.Response:
        if self._http_client is not None:
            return self._http_client.get(url, follow_redirects=True)

        with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
            return client.get(url)
