"""
Epic OAuth2 token exchange using private_key_jwt client authentication.
"""

from typing import Optional

import httpx
from pydantic import ValidationError

from shared.errors import (
    ConfigError,
    NetworkError,
    ResponseFormatError,
    SecretError,
    TokenEndpointError,
)
from shared.logging import get_logger
from shared.result import Result
from shared.secrets_manager import SecretStore
from ..assertion.builder import AssertionBuilder
from ..jwks.client import JWKSResolver
from .models import OAuthClientConfig, TokenRequest, TokenResponse


class TokenExchangeClient:
    """Issues Epic access tokens.

    Each call runs the full sequence: validate config, load the private key,
    resolve the kid, sign a fresh assertion, POST to the token endpoint. The
    first failing step ends the call with its error; nothing is retried or
    cached, since an assertion is single-use and expires after five minutes.
    """

    def __init__(
        self,
        secret_store: SecretStore,
        jwks_resolver: Optional[JWKSResolver] = None,
        assertion_builder: Optional[AssertionBuilder] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 45.0,
    ):
        self.secret_store = secret_store
        self.timeout = timeout
        self.jwks_resolver = jwks_resolver or JWKSResolver(http_client=http_client, timeout=timeout)
        self.assertion_builder = assertion_builder or AssertionBuilder()
        self.logger = get_logger("epic_auth.token_client")
        self._http_client = http_client

    def get_access_token(self, config: OAuthClientConfig) -> Result[str]:
        """Run the client credentials exchange and return the access token."""
        missing = config.missing_fields()
        if missing:
            self.logger.error("Epic OAuth configuration incomplete", missing=missing)
            return Result.failure(ConfigError(
                "Missing required Epic OAuth configuration "
                "(client id, JWKS URL, token URL, or private key secret name).",
                details={"missing": missing},
            ))

        private_key = self._load_private_key(config.private_key_secret_name)
        if not private_key.ok:
            return Result.failure(private_key.error)

        kid = self.jwks_resolver.resolve_key_id(config.jwks_url)
        if not kid.ok:
            return Result.failure(kid.error)

        assertion = self.assertion_builder.build(
            config.client_id,
            config.token_url,
            private_key.value,
            kid.value,
        )
        if not assertion.ok:
            return Result.failure(assertion.error)

        return self._exchange(TokenRequest(
            token_endpoint=config.token_url,
            client_id=config.client_id,
            client_assertion=assertion.value,
        ))

    def _load_private_key(self, secret_name: str) -> Result[str]:
        try:
            private_key = self.secret_store.get_secret(secret_name)
        except Exception as exc:
            self.logger.error("Secret store lookup failed", secret_name=secret_name, error=str(exc))
            return Result.failure(SecretError(
                "Epic private key could not be loaded from the secret store.",
                details={"secret_name": secret_name, "error": str(exc)},
            ))

        if not private_key:
            self.logger.error("Epic private key secret is empty or missing", secret_name=secret_name)
            return Result.failure(SecretError(
                "Epic private key could not be loaded from the secret store.",
                details={"secret_name": secret_name},
            ))

        return Result.success(private_key)

    def _exchange(self, token_request: TokenRequest) -> Result[str]:
        url = token_request.token_endpoint
        self.logger.debug(
            "Requesting Epic access token",
            url=url,
            grant_type=token_request.grant_type,
            client_id=token_request.client_id,
        )

        try:
            response = self._post(url, token_request)
        except httpx.InvalidURL as exc:
            self.logger.error("Epic token endpoint URL is invalid", url=url, error=str(exc))
            return Result.failure(ConfigError(
                f"Invalid Epic token endpoint URL: {url}",
                details={"url": url, "error": str(exc)},
            ))
        except httpx.HTTPError as exc:
            self.logger.error("Epic token endpoint unreachable", url=url, error=str(exc))
            return Result.failure(NetworkError(
                f"Error calling Epic token endpoint: {exc}",
                details={"url": url},
            ))

        if not 200 <= response.status_code < 300:
            self.logger.warning(
                "Epic token endpoint rejected request",
                url=url,
                status_code=response.status_code,
            )
            return Result.failure(TokenEndpointError(
                response.status_code,
                response.text,
                details={"url": url},
            ))

        try:
            token_response = TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            self.logger.error("Epic token response unusable", url=url, error=str(exc))
            return Result.failure(ResponseFormatError(details={"url": url}))

        self.logger.info(
            "Epic access token issued",
            url=url,
            expires_in=(token_response.model_extra or {}).get("expires_in"),
        )
        return Result.success(token_response.access_token)

    def _post(self, url: str, token_request: TokenRequest) -> httpx.Response:
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }
        form_data = token_request.to_form_data()

        if self._http_client is not None:
            return self._http_client.post(url, data=form_data, headers=headers)

        with httpx.Client(timeout=self.timeout) as client:
            return client.post(url, data=form_data, headers=headers)
