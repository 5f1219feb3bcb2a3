"""
Epic Authenticator service.

Exposes the two credential operations over HTTP:

- ``GET /epic/token`` returns a fresh Epic access token as plain text.
- ``GET /epic/jwks`` returns this service's public JWKS; super users only.
"""

import secrets
from typing import Optional

import httpx
from fastapi import Header, Query
from fastapi.responses import PlainTextResponse, Response

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import AccessDeniedError, ConfigError, SecretError
from shared.secrets_manager import SecretStore, SecretStoreProvider, SecretsManager
from .jwks.publisher import JWKSPublisher
from .oauth.models import OAuthClientConfig
from .oauth.token_client import TokenExchangeClient

SERVICE_NAME = "epic_auth"
DEFAULT_PORT = 8020


class EpicAuthService(BaseService):
    """Epic Authenticator service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        secret_store: Optional[SecretStore] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        super().__init__(SERVICE_NAME, DEFAULT_PORT, config=config)
        self.secret_store = secret_store or SecretStoreProvider(
            lambda: SecretsManager(self.config.master_key, self.config.secrets_file)
        )
        self.token_client = TokenExchangeClient(
            self.secret_store,
            http_client=http_client,
            timeout=self.config.http_timeout,
        )
        self.jwks_publisher = JWKSPublisher()

        self._setup_epic_routes()

    def _setup_epic_routes(self):
        """Set up Epic credential routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": SERVICE_NAME,
                "message": "Epic Authenticator - OAuth2 client assertion service",
                "version": "1.0.0"
            }

        @self.app.get("/epic/token", response_class=PlainTextResponse)
        def issue_token():
            """Issue an Epic access token."""
            oauth_config = OAuthClientConfig.from_settings(self.config)

            with self.metrics.time_operation("epic_token_request_duration_seconds"):
                result = self.token_client.get_access_token(oauth_config)

            status = "success" if result.ok else result.error.code.lower()
            self.metrics.increment_counter("epic_token_requests_total", status=status)

            return PlainTextResponse(result.unwrap())

        @self.app.get("/epic/jwks")
        def publish_jwks(
            secret_name: Optional[str] = Query(None, description="Public key secret to publish"),
            x_admin_token: Optional[str] = Header(None),
        ):
            """Publish this service's public key as a JWKS document."""
            self._require_admin(x_admin_token)

            name = secret_name or self.config.public_key_secret_name
            if not name:
                raise ConfigError("Missing required configuration: public key secret name.")

            public_key = self._read_secret(name)
            if not public_key:
                raise SecretError(
                    "Epic public key could not be loaded from the secret store.",
                    details={"secret_name": name},
                )

            result = self.jwks_publisher.publish(public_key)
            status = "success" if result.ok else result.error.code.lower()
            self.metrics.increment_counter("epic_jwks_publish_total", status=status)

            return Response(content=result.unwrap(), media_type="application/json")

    def _require_admin(self, presented: Optional[str]) -> None:
        """Reject callers that do not present the configured admin token."""
        expected = None
        if self.config.admin_token_secret_name:
            expected = self._read_secret(self.config.admin_token_secret_name)

        if not expected or not presented or not secrets.compare_digest(presented.encode(), expected.encode()):
            self.logger.warning("Rejected JWKS publish request")
            raise AccessDeniedError()

    def _read_secret(self, name: str) -> Optional[str]:
        try:
            return self.secret_store.get_secret(name)
        except Exception as exc:
            raise SecretError(
                "Secret could not be loaded from the secret store.",
                details={"secret_name": name, "error": str(exc)},
            ) from exc

    async def _check_dependencies(self):
        return {
            "oauth_config": "ok" if not OAuthClientConfig.from_settings(self.config).missing_fields() else "incomplete"
        }


def create_app(**kwargs):
    """Create the Epic Authenticator application."""
    service = EpicAuthService(**kwargs)
    return service.app


if __name__ == "__main__":
    EpicAuthService().run()
