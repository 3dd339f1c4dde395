"""API key storage built on top of the Credential Vault."""

from .models import (
    KeyType,
    StoredCredential,
    UserCredentials,
    DecryptedCredential,
    DecryptedKeys,
)
from .stores import KeyStore, MemoryKeyStore, RedisKeyStore, StoreStrategy
from .service import CredentialService, parse_key_type
from .exceptions import CredentialInputError

__all__ = [
    "KeyType",
    "StoredCredential",
    "UserCredentials",
    "DecryptedCredential",
    "DecryptedKeys",
    "KeyStore",
    "MemoryKeyStore",
    "RedisKeyStore",
    "StoreStrategy",
    "CredentialService",
    "parse_key_type",
    "CredentialInputError",
]
