"""
Shared pytest fixtures for the Epic Authenticator.
"""

import pytest

from shared.test_helpers import (
    ADMIN_TOKEN,
    ADMIN_TOKEN_SECRET,
    PRIVATE_KEY_SECRET,
    PUBLIC_KEY_SECRET,
    EpicTestDataFactory,
    FakeSecretStore,
)
from service_epic_auth.app.oauth.models import OAuthClientConfig


@pytest.fixture
def key_pair():
    """RSA key pair used to sign assertions."""
    return EpicTestDataFactory.create_key_pair()


@pytest.fixture
def other_key_pair():
    """Unrelated RSA key pair."""
    return EpicTestDataFactory.create_key_pair(bits=3072)


@pytest.fixture
def secret_store(key_pair):
    """Secret store holding the client's key material and admin token."""
    return FakeSecretStore({
        PRIVATE_KEY_SECRET: key_pair.private_pem,
        PUBLIC_KEY_SECRET: key_pair.public_pem,
        ADMIN_TOKEN_SECRET: ADMIN_TOKEN,
    })


@pytest.fixture
def oauth_config():
    """Complete Epic OAuth client configuration."""
    return OAuthClientConfig(
        client_id=EpicTestDataFactory.CLIENT_ID,
        jwks_url=EpicTestDataFactory.JWKS_URL,
        token_url=EpicTestDataFactory.TOKEN_URL,
        private_key_secret_name=PRIVATE_KEY_SECRET,
    )
