"""Credential Vault.

Per-user encrypted storage of third-party API keys.
"""
from .version import (
    __title__,
    __description__,
    __version__,
    __author__,
    __author_email__,
    __license__,
)
from .vault import (
    CredentialVault,
    VaultConfig,
    VaultError,
    ConfigurationError,
    EncryptionError,
    DecryptionError,
)

__all__ = (
    "CredentialVault",
    "VaultConfig",
    "VaultError",
    "ConfigurationError",
    "EncryptionError",
    "DecryptionError",
)
