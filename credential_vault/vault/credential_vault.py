"""
CredentialVault — seal and unseal small secrets bound to one user.

Provides the public API for the Credential Vault:
- ``seal(plaintext, user_id)`` — encrypt a secret into a SealedSecret
- ``unseal(sealed, user_id)`` — decrypt a SealedSecret back to plaintext
- ``is_valid(sealed, user_id)`` — check whether a SealedSecret opens

The vault holds no mutable state; the only input it owns is the
MasterSecret, injected through :class:`VaultConfig` at process start.
Persistence of sealed values is the caller's job.

Security Note:
    Never log plaintext or sealed values. Only log user IDs.
"""
import logging

from .config import VaultConfig
from .crypto import derive_user_key, encrypt_secret, decrypt_secret
from .exceptions import DecryptionError

logger = logging.getLogger("credential_vault")


class CredentialVault:
    """Per-user envelope encryption for stored API keys.

    Every call derives the user key again from (MasterSecret, user_id);
    keys are never cached or stored. Sealing the same plaintext twice
    yields two different SealedSecrets, both of which unseal correctly.
    """

    def __init__(self, config: VaultConfig):
        if not isinstance(config, VaultConfig):
            raise TypeError("CredentialVault requires a VaultConfig")
        self._config = config

    @classmethod
    def from_env(cls) -> "CredentialVault":
        """Build a vault from API_ENCRYPTION_MASTER_KEY.

        Raises:
            ConfigurationError: If the MasterSecret is missing or too short.
        """
        return cls(VaultConfig.from_env())

    @classmethod
    def from_secret(cls, master_secret: str, **kwargs) -> "CredentialVault":
        """Build a vault from an explicit MasterSecret.

        Raises:
            ConfigurationError: If the MasterSecret is missing or too short.
        """
        return cls(VaultConfig.build(master_secret, **kwargs))

    @property
    def config(self) -> VaultConfig:
        return self._config

    def _key_for(self, user_id: str) -> bytes:
        if not isinstance(user_id, str) or not user_id:
            raise ValueError("user identifier cannot be empty")
        return derive_user_key(
            self._config.master_secret.get_secret_value(),
            user_id,
            self._config.kdf_iterations,
        )

    def seal(self, plaintext: str, user_id: str) -> str:
        """Encrypt ``plaintext`` for ``user_id``.

        Callers must reject empty plaintexts before calling; the vault
        itself accepts them.

        Returns:
            base64 SealedSecret.

        Raises:
            TypeError: If plaintext is not a string.
            ValueError: If user_id is empty.
            EncryptionError: If the cipher fails.
        """
        if not isinstance(plaintext, str):
            raise TypeError("Only text secrets can be sealed")
        key = self._key_for(user_id)
        sealed = encrypt_secret(plaintext, key)
        logger.debug("Vault seal: user=%s", user_id)
        return sealed

    def unseal(self, sealed: str, user_id: str) -> str:
        """Decrypt a SealedSecret created for ``user_id``.

        Raises:
            DecryptionError: If the frame is malformed, was tampered with,
                or was sealed for another user or MasterSecret.
        """
        try:
            key = self._key_for(user_id)
        except ValueError:
            raise DecryptionError() from None
        return decrypt_secret(sealed, key)

    def is_valid(self, sealed: str, user_id: str) -> bool:
        """Return True if ``sealed`` unseals for ``user_id``."""
        try:
            self.unseal(sealed, user_id)
        except DecryptionError:
            return False
        return True

    def __repr__(self) -> str:
        return f"<CredentialVault iterations={self._config.kdf_iterations}>"
