"""Credential Vault — per-user encryption of stored third-party API keys.

Security Note (Threat Model):
    The MasterSecret lives in process configuration; anyone holding it
    can derive every user's key. Sealed values are bound to one user id,
    so a value copied to another account's document will not open.
    Decrypted keys exist in process memory while a request uses them.
"""

from .exceptions import (
    VaultError,
    ConfigurationError,
    EncryptionError,
    DecryptionError,
)
from .config import VaultConfig, load_master_secret, generate_master_secret
from .credential_vault import CredentialVault
from .key_rotation import rotate_master_secret

__all__ = [
    "CredentialVault",
    "rotate_master_secret",
    "VaultConfig",
    "load_master_secret",
    "generate_master_secret",
    "VaultError",
    "ConfigurationError",
    "EncryptionError",
    "DecryptionError",
]
