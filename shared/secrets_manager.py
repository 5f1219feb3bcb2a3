"""
Secrets management for the Epic Authenticator.

The credential core only needs ``get_secret(name)``. ``SecretsManager`` is the
bundled backend (environment variables first, then a Fernet-encrypted JSON
file); any object with the same method can be injected instead.
"""

import os
import re
import json
import base64
import threading
from typing import Callable, Dict, Optional, Protocol
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
import logging

logger = logging.getLogger(__name__)

SECRET_ENV_PREFIX = "EPIC_AUTH_SECRET_"


class SecretStore(Protocol):
    """Resolves a named secret to its string value."""

    def get_secret(self, name: str) -> Optional[str]:
        ...


def secret_env_var(name: str) -> str:
    """Environment variable consulted for a secret name."""
    return SECRET_ENV_PREFIX + re.sub(r"[^A-Z0-9]", "_", name.upper())


class SecretsManager:
    """
    Resolves secrets from the environment or an encrypted secrets file.
    """

    def __init__(self, master_key: Optional[str] = None, secrets_file: Optional[str] = None):
        """
        Initialize the secrets manager.

        Args:
            master_key: Master key for encryption/decryption of the secrets file
            secrets_file: Path to the encrypted JSON secrets file
        """
        self.master_key = master_key or os.getenv("EPIC_AUTH_MASTER_KEY")
        self.secrets_file = secrets_file or os.getenv("EPIC_AUTH_SECRETS_FILE")
        self._fernet = self._create_fernet() if self.master_key else None

    def _create_fernet(self) -> Fernet:
        """
        Create a Fernet cipher instance.

        Returns:
            Fernet cipher instance
        """
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=b'epic_authenticator_salt',
            iterations=100000,
        )
        key = base64.urlsafe_b64encode(kdf.derive(self.master_key.encode()))
        return Fernet(key)

    def _require_fernet(self) -> Fernet:
        if self._fernet is None:
            raise ValueError("Master key is required for the encrypted secrets file")
        return self._fernet

    def encrypt_secret(self, secret: str) -> str:
        """
        Encrypt a secret.

        Args:
            secret: Secret to encrypt

        Returns:
            Encrypted secret
        """
        encrypted = self._require_fernet().encrypt(secret.encode())
        return base64.urlsafe_b64encode(encrypted).decode()

    def decrypt_secret(self, encrypted_secret: str) -> str:
        """
        Decrypt a secret.

        Args:
            encrypted_secret: Encrypted secret

        Returns:
            Decrypted secret
        """
        try:
            decoded = base64.urlsafe_b64decode(encrypted_secret.encode())
            decrypted = self._require_fernet().decrypt(decoded)
            return decrypted.decode()
        except InvalidToken:
            logger.error("Failed to decrypt secret: invalid token or wrong master key")
            raise

    def get_secret(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get a secret by name.

        Args:
            name: Secret name
            default: Default value if secret not found

        Returns:
            Secret value or default
        """
        secret = os.getenv(secret_env_var(name))
        if secret:
            return secret

        if self.secrets_file and os.path.exists(self.secrets_file):
            secrets = self._read_secrets_file()
            if name in secrets:
                return self.decrypt_secret(secrets[name])

        return default

    def set_secret(self, name: str, value: str) -> None:
        """
        Encrypt a secret and store it in the secrets file.

        Args:
            name: Secret name
            value: Secret value
        """
        if not self.secrets_file:
            raise ValueError("No secrets file configured")

        secrets: Dict[str, str] = {}
        if os.path.exists(self.secrets_file):
            secrets = self._read_secrets_file()

        secrets[name] = self.encrypt_secret(value)

        with open(self.secrets_file, 'w') as f:
            json.dump(secrets, f, indent=2)
        logger.info(f"Secret '{name}' saved to {self.secrets_file}")

    def _read_secrets_file(self) -> Dict[str, str]:
        try:
            with open(self.secrets_file, 'r') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read secrets file {self.secrets_file}: {e}")
            raise


class SecretStoreProvider:
    """
    Lazily creates a secret store and hands out the same instance afterwards.

    The factory runs at most once even with concurrent first callers.
    """

    def __init__(self, factory: Callable[[], SecretStore]):
        self._factory = factory
        self._store: Optional[SecretStore] = None
        self._lock = threading.Lock()

    def get(self) -> SecretStore:
        """Return the secret store, creating it on first use."""
        if self._store is None:
            with self._lock:
                if self._store is None:
                    self._store = self._factory()
                    logger.info(f"Secret store initialized: {type(self._store).__name__}")
        return self._store

    def get_secret(self, name: str) -> Optional[str]:
        return self.get().get_secret(name)
