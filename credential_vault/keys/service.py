"""
CredentialService — save and load a user's third-party API keys.

Sits between the request handlers and the vault/store pair:
- ``save_key`` seals a plaintext key and merges it into the user document
- ``load_keys`` unseals every stored key for its owner
- ``mark_validated`` records the outcome of a provider-side key check
- ``delete_key`` removes one credential

Security Note:
    Never log API keys or sealed values. Only log user IDs and key types.
"""
import logging
from typing import Optional, Union

from ..vault import CredentialVault, DecryptionError
from .models import (
    KeyType,
    StoredCredential,
    UserCredentials,
    DecryptedCredential,
    DecryptedKeys,
    utcnow,
)
from .stores import KeyStore
from .exceptions import CredentialInputError

logger = logging.getLogger("credential_vault")


def parse_key_type(key_type: Union[str, KeyType]) -> KeyType:
    """Return the KeyType for ``key_type``.

    Raises:
        CredentialInputError: If the type is not supported.
    """
    try:
        return KeyType(key_type)
    except ValueError:
        raise CredentialInputError("Unsupported key type") from None


class CredentialService:
    """Credential operations for one request, bound to a selected store."""

    def __init__(self, vault: CredentialVault, store: KeyStore):
        self._vault = vault
        self._store = store

    @property
    def store(self) -> KeyStore:
        return self._store

    @staticmethod
    def _validate_user(user_id: str) -> None:
        if not isinstance(user_id, str):
            raise CredentialInputError("user_id must be a string")
        if not user_id.strip():
            raise CredentialInputError("user_id cannot be empty")

    async def save_key(
        self,
        user_id: str,
        key_type: Union[str, KeyType],
        api_key: str,
        model: Optional[str] = None,
    ) -> StoredCredential:
        """Seal and store an API key.

        A newly saved key is always unvalidated. An existing key of the
        same type is replaced, keeping its original creation time.

        Raises:
            CredentialInputError: If user_id or api_key is empty or not a
                string, model is not a string, or key_type is not supported.
        """
        self._validate_user(user_id)
        kind = parse_key_type(key_type)
        if not isinstance(api_key, str):
            raise CredentialInputError("api_key must be a string")
        if not api_key:
            raise CredentialInputError("api_key cannot be empty")
        if model is not None and not isinstance(model, str):
            raise CredentialInputError("model must be a string")

        encrypted_key = self._vault.seal(api_key, user_id)

        document = await self._store.get(user_id)
        if document is None:
            document = UserCredentials(user_id=user_id)
        now = utcnow()
        previous = document.get(kind)
        credential = StoredCredential(
            encrypted_key=encrypted_key,
            type=kind,
            model=(model or None) if kind.is_ai else None,
            validated=False,
            created_at=previous.created_at if previous else now,
            updated_at=now,
        )
        document.put(credential)
        await self._store.put(document)
        logger.info("API key saved: user=%s type=%s", user_id, kind.value)
        return credential

    def _unseal(
        self, user_id: str, credential: StoredCredential
    ) -> Optional[DecryptedCredential]:
        try:
            api_key = self._vault.unseal(credential.encrypted_key, user_id)
        except DecryptionError:
            logger.warning(
                "Stored API key is unusable: user=%s type=%s",
                user_id, credential.type.value,
            )
            return None
        return DecryptedCredential(
            api_key=api_key,
            model=credential.model,
            validated=credential.validated,
            last_validated=credential.last_validated,
        )

    async def load_keys(self, user_id: str) -> Optional[DecryptedKeys]:
        """Unseal every stored key of ``user_id``.

        Returns:
            None if the user has no document. Otherwise a DecryptedKeys in
            which keys that fail to unseal are reported as None.
        """
        self._validate_user(user_id)
        document = await self._store.get(user_id)
        if document is None:
            return None

        fields: dict = {"selected_ai_provider": document.selected_ai_provider}
        if document.youtube is not None:
            fields["youtube"] = self._unseal(user_id, document.youtube)
        if document.ai:
            fields["ai"] = {
                kind.value: self._unseal(user_id, credential)
                for kind, credential in document.ai.items()
            }
        keys = DecryptedKeys(**fields)
        logger.info(
            "API keys loaded: user=%s youtube=%s ai=%s",
            user_id, document.youtube is not None,
            sorted(k.value for k in document.ai),
        )
        return keys

    async def mark_validated(
        self,
        user_id: str,
        key_type: Union[str, KeyType],
        validated: bool = True,
    ) -> StoredCredential:
        """Record the validation outcome of a stored key.

        Raises:
            KeyError: If no key of that type is stored for the user.
        """
        self._validate_user(user_id)
        kind = parse_key_type(key_type)
        document = await self._store.get(user_id)
        credential = document.get(kind) if document else None
        if credential is None:
            raise KeyError(kind.value)
        now = utcnow()
        credential.validated = bool(validated)
        credential.last_validated = now
        credential.updated_at = now
        document.put(credential)
        await self._store.put(document)
        logger.debug(
            "API key validation recorded: user=%s type=%s validated=%s",
            user_id, kind.value, credential.validated,
        )
        return credential

    async def delete_key(
        self, user_id: str, key_type: Union[str, KeyType]
    ) -> bool:
        """Remove one stored key. Returns False if nothing was stored."""
        self._validate_user(user_id)
        kind = parse_key_type(key_type)
        document = await self._store.get(user_id)
        if document is None or not document.remove(kind):
            return False
        if kind.value == document.selected_ai_provider:
            document.selected_ai_provider = None
        await self._store.put(document)
        logger.info("API key deleted: user=%s type=%s", user_id, kind.value)
        return True

    async def select_provider(
        self, user_id: str, provider: Union[str, KeyType]
    ) -> None:
        """Mark a stored AI provider key as the user's active provider.

        Raises:
            CredentialInputError: If ``provider`` is not an AI provider.
            KeyError: If no key for that provider is stored.
        """
        self._validate_user(user_id)
        kind = parse_key_type(provider)
        if not kind.is_ai:
            raise CredentialInputError("provider must be an AI provider")
        document = await self._store.get(user_id)
        if document is None or document.get(kind) is None:
            raise KeyError(kind.value)
        document.selected_ai_provider = kind.value
        document.updated_at = utcnow()
        await self._store.put(document)
