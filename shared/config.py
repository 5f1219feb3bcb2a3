"""
Shared configuration management for the Epic Authenticator.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="EPIC_AUTH_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Epic OAuth client
    client_id: str = Field(default="")
    base_url: str = Field(default="")
    token_url: str = Field(default="", description="Overrides base_url + /oauth2/token when set")
    jwks_url: str = Field(default="", description="Published JWKS the assertion kid is read from")

    # Secret names resolved through the secret store
    private_key_secret_name: str = Field(default="")
    public_key_secret_name: str = Field(default="")
    admin_token_secret_name: str = Field(default="")

    # Secret store backend
    master_key: Optional[str] = Field(default=None)
    secrets_file: Optional[str] = Field(default=None)

    # Outbound HTTP
    http_timeout: float = Field(default=45.0)

    @property
    def resolved_token_url(self) -> str:
        """Token endpoint, derived from the Epic base URL unless set explicitly."""
        if self.token_url:
            return self.token_url
        if not self.base_url:
            return ""
        return self.base_url.rstrip("/") + "/oauth2/token"


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
