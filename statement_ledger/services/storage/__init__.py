"""
Storage Services Package

Provides abstract interfaces for data storage plus in-memory
implementations. Hosts supply their own backends through the same
interfaces. Repositories live in ``storage.repositories``.
"""

from statement_ledger.services.storage.interface import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    KeyValueStore,
    SettingsSyncInterface,
    StorageError,
    SyncPayload,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStore",
    "SettingsSyncInterface",
    "SyncPayload",
    # In-memory implementations
    "InMemoryAuditStorage",
    "InMemoryKeyValueStore",
    # Exceptions
    "StorageError",
]
