"""
Key Stores — document storage for sealed user credentials.

A store maps a user id to one :class:`UserCredentials` document. Stores
only ever see sealed values; they never hold plaintext.

Two implementations are provided:
- ``RedisKeyStore`` — any asyncio redis-compatible client (``redis.asyncio``)
- ``MemoryKeyStore`` — process-local dict, used as fallback and in tests

``StoreStrategy`` picks one of a primary and a fallback store. The choice
is made once, at the start of a request, and that store is used for the
whole request.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional
from collections.abc import AsyncIterator

import orjson

from ..conf import KEYSTORE_PREFIX
from .models import UserCredentials

logger = logging.getLogger("credential_vault")


class KeyStore(ABC):
    """Abstract document store keyed by user id."""

    name: str = "abstract"

    async def available(self) -> bool:
        """Return True if the store can serve requests right now."""
        return True

    @abstractmethod
    async def get(self, user_id: str) -> Optional[UserCredentials]:
        ...

    @abstractmethod
    async def put(self, document: UserCredentials) -> None:
        ...

    @abstractmethod
    async def delete(self, user_id: str) -> None:
        ...

    @abstractmethod
    def iter_user_ids(self) -> AsyncIterator[str]:
        ...


def encode_document(document: UserCredentials) -> bytes:
    return orjson.dumps(document.model_dump(mode="json"))


def decode_document(data: bytes) -> UserCredentials:
    return UserCredentials.model_validate(orjson.loads(data))


class MemoryKeyStore(KeyStore):
    """In-process store.

    Documents are kept encoded, so callers never share mutable state
    with the store.
    """

    name = "memory"

    def __init__(self):
        self._documents: dict[str, bytes] = {}

    async def get(self, user_id: str) -> Optional[UserCredentials]:
        data = self._documents.get(user_id)
        if data is None:
            return None
        return decode_document(data)

    async def put(self, document: UserCredentials) -> None:
        self._documents[document.user_id] = encode_document(document)

    async def delete(self, user_id: str) -> None:
        self._documents.pop(user_id, None)

    async def iter_user_ids(self) -> AsyncIterator[str]:
        for user_id in list(self._documents):
            yield user_id

    def __len__(self) -> int:
        return len(self._documents)


class RedisKeyStore(KeyStore):
    """Redis-backed store, one key per user: ``{prefix}:{user_id}``."""

    name = "redis"

    def __init__(self, redis: Any, prefix: str = KEYSTORE_PREFIX):
        self._redis = redis
        self._prefix = prefix

    def _redis_key(self, user_id: str) -> str:
        """Build Redis document key."""
        return f"{self._prefix}:{user_id}"

    async def available(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except Exception as err:
            logger.warning("Redis key store unavailable: %s", err)
            return False

    async def get(self, user_id: str) -> Optional[UserCredentials]:
        data = await self._redis.get(self._redis_key(user_id))
        if data is None:
            return None
        return decode_document(data)

    async def put(self, document: UserCredentials) -> None:
        await self._redis.set(
            self._redis_key(document.user_id), encode_document(document),
        )

    async def delete(self, user_id: str) -> None:
        await self._redis.delete(self._redis_key(user_id))

    async def iter_user_ids(self) -> AsyncIterator[str]:
        start = len(self._prefix) + 1
        async for key in self._redis.scan_iter(match=f"{self._prefix}:*"):
            if isinstance(key, bytes):
                key = key.decode("utf-8")
            yield key[start:]


class StoreStrategy:
    """Two-tier store selection: primary when available, else fallback."""

    def __init__(self, primary: KeyStore, fallback: Optional[KeyStore] = None):
        self.primary = primary
        self.fallback = fallback

    async def select(self) -> KeyStore:
        """Pick the store to use for one request.

        Raises:
            RuntimeError: If the primary is down and there is no fallback.
        """
        if await self.primary.available():
            return self.primary
        if self.fallback is None:
            raise RuntimeError(
                f"Key store '{self.primary.name}' is unavailable "
                "and no fallback is configured"
            )
        logger.warning(
            "Key store '%s' unavailable, using '%s'",
            self.primary.name, self.fallback.name,
        )
        return self.fallback
