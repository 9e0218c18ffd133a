"""
Abstract Storage Interfaces

The core never touches storage directly. The host environment supplies:

1. A KeyValueStore (get/set/remove) for locally persisted state
2. A SettingsSyncInterface for remote save/load of categories, rules
   and limits
3. Optionally an AuditStorageInterface for the audit trail

The in-memory implementations here back the tests and any host that
keeps state for a single session only.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, Field

from statement_ledger.models.audit import AuditEvent
from statement_ledger.models.ledger import AutoCategoryRule, Category, CategoryLimit


class KeyValueStore(ABC):
    """
    Minimal key-value capability supplied by the host.

    Values are strings; callers serialize their own payloads.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read a value.

        Returns:
            The stored string, or None if the key is absent
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Write a value, replacing any previous one.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete a key; removing an absent key is not an error."""
        pass


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class SyncPayload(BaseModel):
    """Categories, rules and limits exchanged with the sync collaborator."""

    categories: list[Category] = Field(default_factory=list)
    rules: list[AutoCategoryRule] = Field(default_factory=list)
    limits: list[CategoryLimit] = Field(default_factory=list)


class SettingsSyncInterface(ABC):
    """
    Remote persistence of user settings.

    Implementations upsert categories and limits and replace rules.
    No transactional guarantee is assumed by the core.
    """

    @abstractmethod
    async def save(
        self,
        categories: list[Category],
        rules: list[AutoCategoryRule],
        limits: list[CategoryLimit],
    ) -> bool:
        """
        Save settings remotely.

        Returns:
            True if saved successfully

        Raises:
            Any exception on failure; SyncService makes it opaque
        """
        pass

    @abstractmethod
    async def load(self) -> Optional[SyncPayload]:
        """
        Load settings.

        Returns:
            The payload, or None when no identity/session is available
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class InMemoryAuditStorage(AuditStorageInterface):
    """List-backed audit storage."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]


class StorageError(Exception):
    """Base exception for storage operations."""
    pass
