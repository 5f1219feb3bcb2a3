"""
Epic OAuth2 client credentials models.
"""

from dataclasses import dataclass, fields
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

from shared.config import BaseConfig

CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"


@dataclass(frozen=True)
class OAuthClientConfig:
    """Everything needed to request an Epic access token.

    All four fields must be non-empty before a request is attempted.
    """

    client_id: str
    jwks_url: str
    token_url: str
    private_key_secret_name: str

    @classmethod
    def from_settings(cls, config: BaseConfig) -> "OAuthClientConfig":
        return cls(
            client_id=config.client_id,
            jwks_url=config.jwks_url,
            token_url=config.resolved_token_url,
            private_key_secret_name=config.private_key_secret_name,
        )

    def missing_fields(self) -> List[str]:
        return [f.name for f in fields(self) if not (getattr(self, f.name) or "").strip()]


@dataclass(frozen=True)
class TokenRequest:
    """Client credentials grant authenticated with a JWT client assertion (RFC 7523 section 2.2)."""

    token_endpoint: str
    client_id: str
    client_assertion: str
    grant_type: str = "client_credentials"
    client_assertion_type: str = CLIENT_ASSERTION_TYPE

    def to_form_data(self) -> Dict[str, str]:
        """Form fields for the application/x-www-form-urlencoded body."""
        return {
            "grant_type": self.grant_type,
            "client_id": self.client_id,
            "client_assertion_type": self.client_assertion_type,
            "client_assertion": self.client_assertion,
        }


class TokenResponse(BaseModel):
    """Successful token endpoint response; only access_token is required."""

    model_config = ConfigDict(extra="allow")

    access_token: str = Field(min_length=1)
