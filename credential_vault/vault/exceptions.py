"""Vault exception taxonomy."""


class VaultError(Exception):
    """Base class for all Credential Vault errors."""


class ConfigurationError(VaultError):
    """MasterSecret is missing or too weak. Fatal, not retryable."""


class EncryptionError(VaultError):
    """The cipher failed while sealing a secret."""


class DecryptionError(VaultError):
    """A SealedSecret could not be opened.

    Raised for malformed blobs, tampering, wrong user identifier or
    wrong MasterSecret alike; the reason is never exposed.
    """

    def __init__(self, message: str = "Unable to unseal secret"):
        super().__init__(message)
