"""
Tests for the secret store backends.
"""

import json
import threading

import pytest
from cryptography.fernet import InvalidToken

from shared.secrets_manager import SecretStoreProvider, SecretsManager, secret_env_var
from shared.test_helpers import FakeSecretStore

MASTER_KEY = "test-master-key"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("EPIC_AUTH_MASTER_KEY", raising=False)
    monkeypatch.delenv("EPIC_AUTH_SECRETS_FILE", raising=False)


class TestSecretsManager:
    """Test cases for SecretsManager."""

    def test_env_var_name(self):
        assert secret_env_var("epic-private-key") == "EPIC_AUTH_SECRET_EPIC_PRIVATE_KEY"
        assert secret_env_var("admin.token") == "EPIC_AUTH_SECRET_ADMIN_TOKEN"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("EPIC_AUTH_SECRET_EPIC_PRIVATE_KEY", "pem-from-env")

        assert SecretsManager().get_secret("epic-private-key") == "pem-from-env"

    def test_missing_secret(self):
        manager = SecretsManager()

        assert manager.get_secret("nope") is None
        assert manager.get_secret("nope", default="fallback") == "fallback"

    def test_encrypt_round_trip(self):
        manager = SecretsManager(master_key=MASTER_KEY)

        encrypted = manager.encrypt_secret("hello")

        assert encrypted != "hello"
        assert manager.decrypt_secret(encrypted) == "hello"

    def test_secrets_file(self, tmp_path, key_pair):
        """Sealed secrets are stored encrypted and read back."""
        path = tmp_path / "secrets.json"
        SecretsManager(master_key=MASTER_KEY, secrets_file=str(path)).set_secret("epic-private-key", key_pair.private_pem)

        stored = json.loads(path.read_text())
        assert "BEGIN" not in stored["epic-private-key"]

        manager = SecretsManager(master_key=MASTER_KEY, secrets_file=str(path))
        assert manager.get_secret("epic-private-key") == key_pair.private_pem

    def test_environment_wins_over_file(self, tmp_path, monkeypatch):
        path = tmp_path / "secrets.json"
        SecretsManager(master_key=MASTER_KEY, secrets_file=str(path)).set_secret("admin", "from-file")
        monkeypatch.setenv("EPIC_AUTH_SECRET_ADMIN", "from-env")

        assert SecretsManager(master_key=MASTER_KEY, secrets_file=str(path)).get_secret("admin") == "from-env"

    def test_settings_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "secrets.json"
        SecretsManager(master_key=MASTER_KEY, secrets_file=str(path)).set_secret("admin", "value")
        monkeypatch.setenv("EPIC_AUTH_MASTER_KEY", MASTER_KEY)
        monkeypatch.setenv("EPIC_AUTH_SECRETS_FILE", str(path))

        assert SecretsManager().get_secret("admin") == "value"

    def test_wrong_master_key(self, tmp_path):
        path = tmp_path / "secrets.json"
        SecretsManager(master_key=MASTER_KEY, secrets_file=str(path)).set_secret("admin", "value")

        with pytest.raises(InvalidToken):
            SecretsManager(master_key="another-key", secrets_file=str(path)).get_secret("admin")

    def test_file_requires_master_key(self, tmp_path):
        path = tmp_path / "secrets.json"
        SecretsManager(master_key=MASTER_KEY, secrets_file=str(path)).set_secret("admin", "value")

        with pytest.raises(ValueError):
            SecretsManager(secrets_file=str(path)).get_secret("admin")

    def test_set_secret_requires_file(self):
        with pytest.raises(ValueError):
            SecretsManager(master_key=MASTER_KEY).set_secret("admin", "value")

    def test_corrupt_secrets_file(self, tmp_path):
        path = tmp_path / "secrets.json"
        path.write_text("{not json")

        with pytest.raises(ValueError):
            SecretsManager(master_key=MASTER_KEY, secrets_file=str(path)).get_secret("admin")


class TestSecretStoreProvider:
    """Test cases for SecretStoreProvider."""

    def test_lazy_creation(self):
        created = []

        def factory():
            created.append(1)
            return FakeSecretStore({"a": "b"})

        provider = SecretStoreProvider(factory)
        assert created == []

        assert provider.get_secret("a") == "b"
        assert provider.get_secret("a") == "b"
        assert created == [1]

    def test_created_once_across_threads(self):
        created = []
        start = threading.Barrier(8)

        def factory():
            created.append(1)
            return FakeSecretStore()

        provider = SecretStoreProvider(factory)
        stores = []

        def worker():
            start.wait()
            stores.append(provider.get())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(created) == 1
        assert len({id(store) for store in stores}) == 1
