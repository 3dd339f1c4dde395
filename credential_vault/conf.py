"""Process-wide settings read from the environment."""
import os

MASTER_SECRET_ENV = "API_ENCRYPTION_MASTER_KEY"
KDF_ITERATIONS_ENV = "VAULT_KDF_ITERATIONS"

# minimum MasterSecret length, in characters
MIN_SECRET_LENGTH = 32

DEFAULT_KDF_ITERATIONS = 100_000

# redis namespace for stored credential documents
KEYSTORE_PREFIX = os.environ.get("VAULT_KEYSTORE_PREFIX", "userAPIKeys")
