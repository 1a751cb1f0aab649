"""Vault entry models.

``VaultEntry`` only ever exists decrypted in application memory. What is
persisted is an ``EncryptedVaultEntry``: the opaque envelope plus optional
cleartext ``EntryMetadata`` used by the server for search and sorting.
"""
import uuid
from typing import Optional
from datetime import datetime, timezone

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

PLACEHOLDER_TITLE = "Encrypted Import Entry"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_entry_id() -> str:
    return str(uuid.uuid4())


class EntryMetadata(BaseModel):
    """Non-sensitive fields stored unencrypted next to the envelope."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    url: Optional[str] = None
    category: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    last_modified: datetime = Field(default_factory=utcnow, alias="lastModified")


class VaultEntry(BaseModel):
    """Plaintext password entry."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_entry_id)
    title: str = Field(validation_alias=AliasChoices("title", "name"))
    username: Optional[str] = None
    password: Optional[str] = None
    url: Optional[str] = None
    notes: Optional[str] = None
    category: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    favorite: bool = False
    created_at: datetime = Field(
        default_factory=utcnow,
        validation_alias=AliasChoices("createdAt", "created_at"),
        serialization_alias="createdAt",
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        validation_alias=AliasChoices("updatedAt", "updated_at"),
        serialization_alias="updatedAt",
    )

    def touch(self, **changes) -> "VaultEntry":
        """Return an updated copy with a new ``updated_at``."""
        changes["updated_at"] = utcnow()
        return self.model_copy(update=changes)

    def metadata(self) -> EntryMetadata:
        return EntryMetadata(
            title=self.title,
            url=self.url,
            category=self.category,
            tags=list(self.tags),
            last_modified=self.updated_at,
        )

    @property
    def is_placeholder(self) -> bool:
        return self.title == PLACEHOLDER_TITLE and self.password is None

    @classmethod
    def placeholder(
        cls,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> "VaultEntry":
        """Stand-in for an entry that could not be decrypted."""
        now = utcnow()
        return cls(
            id=id or "unknown",
            title=PLACEHOLDER_TITLE,
            created_at=created_at or now,
            updated_at=updated_at or now,
        )


class EncryptedVaultEntry(BaseModel):
    """Stored form of an entry: id, envelope and cleartext metadata."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    encrypted_data: str = Field(alias="encryptedData")
    metadata: Optional[EntryMetadata] = None
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")
