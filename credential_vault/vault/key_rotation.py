"""
Vault Key Rotation — Batch re-sealing of credentials under a new MasterSecret.

Walks every user document in a key store, unseals each credential with the
old vault and seals it again with the new one. Sealed values are replaced
wholesale; the document is written once per user. The operation is
idempotent: credentials that already open under the new vault are skipped.

Security Note:
    Plaintext exists in memory only during re-sealing of each credential.
    Never log plaintext or sealed values.
"""
import logging
from typing import TYPE_CHECKING

from .credential_vault import CredentialVault
from .exceptions import DecryptionError

if TYPE_CHECKING:
    from ..keys.stores import KeyStore

logger = logging.getLogger("credential_vault")


async def rotate_master_secret(
    store: "KeyStore",
    old_vault: CredentialVault,
    new_vault: CredentialVault,
    batch_size: int = 100,
) -> dict:
    """Re-seal all stored credentials from old_vault to new_vault.

    Args:
        store: Key store holding the user documents.
        old_vault: Vault built from the MasterSecret being retired.
        new_vault: Vault built from the replacement MasterSecret.
        batch_size: Number of user documents processed per batch.

    Returns:
        Stats dict with keys: total, rotated, errors, skipped.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    stats = {"total": 0, "rotated": 0, "errors": 0, "skipped": 0}
    user_ids = [user_id async for user_id in store.iter_user_ids()]

    logger.info(
        "Starting master secret rotation for %d user(s) (batch_size=%d)",
        len(user_ids), batch_size,
    )

    for offset in range(0, len(user_ids), batch_size):
        batch = user_ids[offset:offset + batch_size]
        logger.info(
            "Processing batch %d (%d users)",
            (offset // batch_size) + 1, len(batch),
        )
        for user_id in batch:
            document = await store.get(user_id)
            if document is None:
                continue
            changed = False
            for credential in document.credentials():
                stats["total"] += 1
                if new_vault.is_valid(credential.encrypted_key, user_id):
                    stats["skipped"] += 1
                    continue
                try:
                    plaintext = old_vault.unseal(
                        credential.encrypted_key, user_id,
                    )
                except DecryptionError:
                    logger.error(
                        "Error rotating credential user=%s type=%s",
                        user_id, credential.type.value,
                    )
                    stats["errors"] += 1
                    continue
                credential.encrypted_key = new_vault.seal(plaintext, user_id)
                stats["rotated"] += 1
                changed = True
            if changed:
                await store.put(document)

    logger.info(
        "Master secret rotation complete: %s", stats,
    )
    return stats
