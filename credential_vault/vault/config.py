"""
Vault Configuration — MasterSecret loading and validated settings.

Reads the MasterSecret from the environment:
    API_ENCRYPTION_MASTER_KEY = <string, at least 32 characters>
    VAULT_KDF_ITERATIONS = <integer, optional, default 100000>

Security Note:
    Never log the MasterSecret. Only log its presence and the KDF cost.
"""
import os
import base64
import secrets
import logging

from pydantic import (
    BaseModel,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
)

from ..conf import (
    MASTER_SECRET_ENV,
    KDF_ITERATIONS_ENV,
    MIN_SECRET_LENGTH,
    DEFAULT_KDF_ITERATIONS,
)
from .exceptions import ConfigurationError

logger = logging.getLogger("credential_vault")

# Frame layout of a SealedSecret: [iv 16B][ciphertext][tag 16B].
# These are fixed for compatibility with already-sealed data.
IV_LENGTH = 16
TAG_LENGTH = 16
KEY_LENGTH = 32  # AES-256

# Floor for the PBKDF2 cost; raising it is allowed, lowering is not.
MIN_KDF_ITERATIONS = DEFAULT_KDF_ITERATIONS


def load_master_secret() -> str:
    """Read the MasterSecret from the API_ENCRYPTION_MASTER_KEY env var.

    Returns:
        The raw MasterSecret string.

    Raises:
        ConfigurationError: If the variable is unset or shorter than
            32 characters.
    """
    secret = os.environ.get(MASTER_SECRET_ENV)
    if not secret:
        raise ConfigurationError(
            f"{MASTER_SECRET_ENV} environment variable is not set"
        )
    if len(secret) < MIN_SECRET_LENGTH:
        raise ConfigurationError(
            f"{MASTER_SECRET_ENV} must be at least "
            f"{MIN_SECRET_LENGTH} characters"
        )
    logger.debug("Loaded vault master secret from %s", MASTER_SECRET_ENV)
    return secret


def generate_master_secret() -> str:
    """Generate a random MasterSecret suitable for API_ENCRYPTION_MASTER_KEY.

    This is a utility for operators provisioning a new environment.

    Returns:
        URL-safe base64 string encoding 48 random bytes (64 characters).
    """
    return base64.urlsafe_b64encode(secrets.token_bytes(48)).decode("ascii")


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    master_secret: SecretStr
    kdf_iterations: int = Field(default=MIN_KDF_ITERATIONS, ge=MIN_KDF_ITERATIONS)

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("master_secret")
    @classmethod
    def validate_secret_length(cls, v: SecretStr) -> SecretStr:
        """Reject MasterSecrets below the minimum length."""
        if len(v.get_secret_value()) < MIN_SECRET_LENGTH:
            raise ValueError(
                f"master secret must be at least {MIN_SECRET_LENGTH} characters"
            )
        return v

    @classmethod
    def build(cls, master_secret: str, **kwargs) -> "VaultConfig":
        """Create a VaultConfig, reporting failures as ConfigurationError.

        The pydantic error is not chained, so the secret never ends up
        in a traceback.
        """
        if not master_secret:
            raise ConfigurationError("vault master secret is not set")
        try:
            return cls(master_secret=master_secret, **kwargs)
        except ValidationError as err:
            fields = ", ".join(
                str(e["loc"][0]) for e in err.errors() if e.get("loc")
            )
            raise ConfigurationError(
                f"Invalid vault configuration ({fields})"
            ) from None

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.
        """
        master_secret = load_master_secret()
        try:
            iterations = int(os.environ.get(KDF_ITERATIONS_ENV, DEFAULT_KDF_ITERATIONS))
        except ValueError:
            raise ConfigurationError(
                f"{KDF_ITERATIONS_ENV} must be an integer"
            ) from None
        return cls.build(master_secret, kdf_iterations=iterations)
