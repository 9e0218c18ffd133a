"""
Audit Models for Statement Ledger

Every significant ledger action is logged for audit purposes: imports,
reverts, category deletions, limit alerts and sync attempts.

Audit logs are append-only. Events are never deleted or modified.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every step of the import pipeline has its own event type.
    """
    # Import pipeline
    IMPORT_PARSED = "import_parsed"
    IMPORT_REPARSED = "import_reparsed"
    IMPORT_ABORTED = "import_aborted"
    IMPORT_COMMITTED = "import_committed"
    IMPORT_REVERTED = "import_reverted"

    # Categories
    CATEGORY_DELETED = "category_deleted"
    CATEGORY_DELETION_DENIED = "category_deletion_denied"

    # Limits
    LIMIT_WARNING = "limit_warning"
    LIMIT_EXCEEDED = "limit_exceeded"

    # Persistence
    LEDGER_MIGRATED = "ledger_migrated"
    SYNC_SAVED = "sync_saved"
    SYNC_LOADED = "sync_loaded"
    SYNC_FAILED = "sync_failed"
    BACKUP_RESTORED = "backup_restored"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'import_batch', 'category')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., parse and commit of one import)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.import_committed(batch_id, filename, 12, "-150.00")
        event = AuditEventBuilder.sync_failed("save", "timeout")
    """

    @staticmethod
    def import_parsed(
        total_rows: int,
        valid_rows: int,
        invalid_rows: int,
        currency_format: str,
        correlation_id: Optional[UUID] = None,
        reparsed: bool = False,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.IMPORT_REPARSED if reparsed
                else AuditEventType.IMPORT_PARSED
            ),
            entity_type="staging_batch",
            correlation_id=correlation_id,
            description=f"Parsed {total_rows} rows ({invalid_rows} invalid) as {currency_format}",
            details={
                "total_rows": total_rows,
                "valid_rows": valid_rows,
                "invalid_rows": invalid_rows,
                "currency_format": currency_format,
            },
        )

    @staticmethod
    def import_aborted(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_ABORTED,
            severity=AuditSeverity.ERROR,
            entity_type="staging_batch",
            correlation_id=correlation_id,
            description="Import abandoned: row source failed",
            error_message=error_message,
        )

    @staticmethod
    def import_committed(
        batch_id: str,
        filename: str,
        item_count: int,
        total_value: str,
        status: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_COMMITTED,
            severity=AuditSeverity.INFO if status != "error" else AuditSeverity.WARNING,
            entity_type="import_batch",
            entity_id=batch_id,
            correlation_id=correlation_id,
            description=f"Imported {item_count} transactions from {filename or 'unnamed source'}",
            details={
                "filename": filename,
                "item_count": item_count,
                "total_value": total_value,
                "status": status,
            },
            is_user_action=True,
        )

    @staticmethod
    def import_reverted(
        batch_id: str,
        removed_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_REVERTED,
            entity_type="import_batch",
            entity_id=batch_id,
            description=f"Reverted import, {removed_count} transactions removed",
            details={"removed_count": removed_count},
            is_user_action=True,
        )

    @staticmethod
    def category_deleted(category_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETED,
            entity_type="category",
            entity_id=category_id,
            description=f"Category deleted: {name}",
            is_user_action=True,
        )

    @staticmethod
    def category_deletion_denied(category_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETION_DENIED,
            severity=AuditSeverity.WARNING,
            entity_type="category",
            entity_id=category_id,
            description=f"Refused to delete default category: {name}",
            is_user_action=True,
        )

    @staticmethod
    def limit_reached(
        category_id: str,
        status: str,
        percentage: str,
        limit: str,
    ) -> AuditEvent:
        exceeded = status == "exceeded"
        return AuditEvent(
            event_type=(
                AuditEventType.LIMIT_EXCEEDED if exceeded
                else AuditEventType.LIMIT_WARNING
            ),
            severity=AuditSeverity.WARNING,
            entity_type="category",
            entity_id=category_id,
            description=f"Category at {percentage}% of its limit ({limit})",
            details={
                "status": status,
                "percentage": percentage,
                "limit": limit,
            },
        )

    @staticmethod
    def ledger_migrated(migrated_count: int, total_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_MIGRATED,
            entity_type="ledger",
            description=f"Migrated {migrated_count} of {total_count} stored transactions",
            details={
                "migrated_count": migrated_count,
                "total_count": total_count,
            },
        )

    @staticmethod
    def sync_completed(
        operation: str,
        categories: int,
        rules: int,
        limits: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.SYNC_SAVED if operation == "save"
                else AuditEventType.SYNC_LOADED
            ),
            entity_type="settings",
            description=f"Sync {operation} completed",
            details={
                "categories": categories,
                "rules": rules,
                "limits": limits,
            },
        )

    @staticmethod
    def sync_failed(operation: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="settings",
            description=f"Sync {operation} failed",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def backup_restored(categories: int, rules: int, limits: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_RESTORED,
            entity_type="settings",
            description="Backup restored",
            details={
                "categories": categories,
                "rules": rules,
                "limits": limits,
            },
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
