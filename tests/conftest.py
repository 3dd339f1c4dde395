"""Shared fixtures for the Credential Vault tests."""
import pytest

from credential_vault.vault import CredentialVault
from credential_vault.keys import CredentialService, MemoryKeyStore

MASTER_SECRET = "0123456789abcdef0123456789abcdef"
OTHER_SECRET = "fedcba9876543210fedcba9876543210-rotated"


class FakeRedis:
    """Minimal asyncio redis stand-in: ping/get/set/delete/scan_iter."""

    def __init__(self, up: bool = True):
        self.data: dict[str, bytes] = {}
        self.up = up

    async def ping(self):
        if not self.up:
            raise ConnectionError("Connection refused")
        return True

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value):
        self.data[key] = value
        return True

    async def delete(self, key):
        return int(self.data.pop(key, None) is not None)

    async def scan_iter(self, match=None):
        prefix = (match or "*").rstrip("*")
        for key in list(self.data):
            if key.startswith(prefix):
                yield key.encode("utf-8")


@pytest.fixture(scope="session")
def vault():
    """Vault built from a fixed 32-character master secret."""
    return CredentialVault.from_secret(MASTER_SECRET)


@pytest.fixture(scope="session")
def other_vault():
    """Vault built from a different master secret."""
    return CredentialVault.from_secret(OTHER_SECRET)


@pytest.fixture
def store():
    return MemoryKeyStore()


@pytest.fixture
def service(vault, store):
    return CredentialService(vault, store)


@pytest.fixture
def fake_redis():
    return FakeRedis()
