"""
Vault Crypto Core — Key derivation, sealing/unsealing and frame encoding.

Implements the per-user envelope used for stored API keys:
- Key derivation: PBKDF2-HMAC-SHA256(SHA-256(master_secret),
  salt=SHA-256(user_id), 100000 iterations) → 32-byte AES-256 key
- Sealing: AES-GCM with a fresh random 16-byte IV
- Frame: base64([iv 16B][ciphertext][tag 16B])

Security Note:
    Never log plaintext, derived keys or sealed values.
    The salt is derived from the user identifier, so no per-user state
    has to be stored to re-derive the key.
"""
import os
import base64
import binascii
import hashlib

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .config import IV_LENGTH, TAG_LENGTH, KEY_LENGTH, MIN_KDF_ITERATIONS
from .exceptions import DecryptionError, EncryptionError

MIN_FRAME_SIZE = IV_LENGTH + TAG_LENGTH


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def user_salt(user_id: str) -> bytes:
    """Deterministic 32-byte salt for a user identifier."""
    return hashlib.sha256(user_id.encode("utf-8")).digest()


def derive_user_key(
    master_secret: str,
    user_id: str,
    iterations: int = MIN_KDF_ITERATIONS,
) -> bytes:
    """Derive the 32-byte AES key bound to one user.

    Args:
        master_secret: Process-wide MasterSecret.
        user_id: Opaque identifier from the authentication provider.
        iterations: PBKDF2 cost.

    Returns:
        32-byte derived key. Identical inputs always give identical keys.
    """
    master_key = hashlib.sha256(master_secret.encode("utf-8")).digest()
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=user_salt(user_id),
        iterations=iterations,
    )
    return kdf.derive(master_key)


# ---------------------------------------------------------------------------
# Frame encoding
# ---------------------------------------------------------------------------

def pack_frame(iv: bytes, ciphertext: bytes, tag: bytes) -> str:
    """Concatenate iv ‖ ciphertext ‖ tag and base64-encode the result."""
    return base64.b64encode(iv + ciphertext + tag).decode("ascii")


def unpack_frame(sealed: str) -> tuple[bytes, bytes, bytes]:
    """Split a SealedSecret into (iv, ciphertext, tag).

    Only canonical base64 is accepted: any altered character, padding
    or trailing bit makes the frame invalid.

    Raises:
        DecryptionError: If the value is not canonical base64 or is
            shorter than iv + tag.
    """
    if not isinstance(sealed, str) or not sealed:
        raise DecryptionError()
    try:
        raw = base64.b64decode(sealed, validate=True)
    except (binascii.Error, ValueError):
        raise DecryptionError() from None
    if base64.b64encode(raw).decode("ascii") != sealed:
        raise DecryptionError()
    if len(raw) < MIN_FRAME_SIZE:
        raise DecryptionError()
    iv = raw[:IV_LENGTH]
    ciphertext = raw[IV_LENGTH:len(raw) - TAG_LENGTH]
    tag = raw[len(raw) - TAG_LENGTH:]
    return iv, ciphertext, tag


# ---------------------------------------------------------------------------
# Authenticated encryption
# ---------------------------------------------------------------------------

def encrypt_secret(plaintext: str, key: bytes) -> str:
    """Seal a plaintext string under a derived key.

    Args:
        plaintext: Secret to encrypt.
        key: 32-byte key from derive_user_key.

    Returns:
        base64 frame [iv][ciphertext][tag].

    Raises:
        EncryptionError: If the cipher rejects its inputs.
    """
    iv = os.urandom(IV_LENGTH)
    try:
        sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    except (ValueError, TypeError, OverflowError) as err:
        raise EncryptionError("Failed to seal secret") from err
    # AESGCM appends the tag to the ciphertext
    return pack_frame(iv, sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:])


def decrypt_secret(sealed: str, key: bytes) -> str:
    """Open a SealedSecret with a derived key.

    Returns:
        The original plaintext.

    Raises:
        DecryptionError: On a malformed frame or a tag mismatch.
    """
    iv, ciphertext, tag = unpack_frame(sealed)
    try:
        plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, None)
        return plaintext.decode("utf-8")
    except (InvalidTag, ValueError):
        # UnicodeDecodeError is a ValueError
        raise DecryptionError() from None
