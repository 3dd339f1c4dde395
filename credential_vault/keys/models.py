"""Stored and decrypted shapes of a user's API keys.

A user document looks like::

    {
        "user_id": "user123",
        "youtube": {"encrypted_key": "...", "type": "youtube", "validated": true, ...},
        "ai": {
            "gemini": {"encrypted_key": "...", "type": "gemini",
                       "model": "gemini-2.5-flash", "validated": false, ...}
        },
        "selected_ai_provider": "gemini",
        "created_at": "...",
        "updated_at": "..."
    }
"""
from enum import Enum
from typing import Optional
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KeyType(str, Enum):
    """Supported credential kinds."""
    YOUTUBE = "youtube"
    GEMINI = "gemini"
    XAI = "xai"
    OPENROUTER = "openrouter"

    @property
    def is_ai(self) -> bool:
        return self is not KeyType.YOUTUBE

    @classmethod
    def ai_providers(cls) -> list["KeyType"]:
        return [k for k in cls if k.is_ai]


class StoredCredential(BaseModel):
    """One sealed credential plus its non-secret metadata."""
    encrypted_key: str
    type: KeyType
    model: Optional[str] = None
    validated: bool = False
    last_validated: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class UserCredentials(BaseModel):
    """Document holding every credential of one user."""
    user_id: str
    youtube: Optional[StoredCredential] = None
    ai: dict[KeyType, StoredCredential] = Field(default_factory=dict)
    selected_ai_provider: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def get(self, key_type: KeyType) -> Optional[StoredCredential]:
        if key_type is KeyType.YOUTUBE:
            return self.youtube
        return self.ai.get(key_type)

    def put(self, credential: StoredCredential) -> None:
        if credential.type is KeyType.YOUTUBE:
            self.youtube = credential
        else:
            self.ai[credential.type] = credential
        self.updated_at = utcnow()

    def remove(self, key_type: KeyType) -> bool:
        if key_type is KeyType.YOUTUBE:
            found = self.youtube is not None
            self.youtube = None
        else:
            found = self.ai.pop(key_type, None) is not None
        if found:
            self.updated_at = utcnow()
        return found

    def credentials(self) -> list[StoredCredential]:
        """All stored credentials, youtube first."""
        items = [self.youtube] if self.youtube else []
        items.extend(self.ai.values())
        return items


class DecryptedCredential(BaseModel):
    """A credential returned to its owner."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    api_key: str
    model: Optional[str] = None
    validated: bool = False
    last_validated: Optional[datetime] = None


class DecryptedKeys(BaseModel):
    """Result of loading a user's keys.

    A credential that could not be unsealed is reported as ``None``.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    youtube: Optional[DecryptedCredential] = None
    ai: dict[str, Optional[DecryptedCredential]] = Field(default_factory=dict)
    selected_ai_provider: Optional[str] = None
