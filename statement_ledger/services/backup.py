"""
Settings Backup

JSON backup of categories, rules and limits (format version 1).

Restoring is lenient about shape: a missing or non-list section is read
as empty and leaves the matching local settings untouched. Input that is
not a JSON object, or entries that fail validation, give a failed
result instead of an exception.
"""

import json
from datetime import datetime
from typing import Any, Optional

import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator

from statement_ledger.audit.logger import AuditLogger
from statement_ledger.categorization import CategoryCatalog, RuleBook
from statement_ledger.limits import LimitEvaluator
from statement_ledger.models.audit import AuditEventBuilder
from statement_ledger.models.ledger import AutoCategoryRule, Category, CategoryLimit

logger = structlog.get_logger(__name__)

BACKUP_VERSION = 1


class BackupData(BaseModel):
    """Serialized backup document."""

    version: int = BACKUP_VERSION
    date: datetime = Field(default_factory=datetime.utcnow)
    categories: list[Category] = Field(default_factory=list)
    rules: list[AutoCategoryRule] = Field(default_factory=list)
    limits: list[CategoryLimit] = Field(default_factory=list)

    @field_validator('categories', 'rules', 'limits', mode='before')
    @classmethod
    def non_list_is_empty(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []


class BackupStats(BaseModel):
    categories: int = 0
    rules: int = 0
    limits: int = 0


class BackupRestoreResult(BaseModel):
    success: bool
    message: str
    stats: Optional[BackupStats] = None


def generate_backup(
    catalog: CategoryCatalog,
    rule_book: RuleBook,
    limits: LimitEvaluator,
) -> str:
    backup = BackupData(
        categories=list(catalog.categories),
        rules=list(rule_book.rules),
        limits=list(limits.limits),
    )
    return backup.model_dump_json(indent=2)


def read_backup(json_string: str) -> BackupData:
    """
    Parse a backup document.

    Raises:
        ValueError: If the text is not a JSON object or does not validate
    """
    data = json.loads(json_string)
    if not isinstance(data, dict):
        raise ValueError("Backup must be a JSON object")
    return BackupData.model_validate(data)


def restore_backup(
    json_string: str,
    catalog: CategoryCatalog,
    rule_book: RuleBook,
    limits: LimitEvaluator,
    audit_logger: Optional[AuditLogger] = None,
) -> BackupRestoreResult:
    """
    Apply a backup to the given services.

    Categories are upserted; rules and limits are replaced when present.
    """
    try:
        backup = read_backup(json_string)
    except ValidationError as e:
        logger.warning("backup_invalid", errors=e.error_count())
        return BackupRestoreResult(success=False, message="Backup file could not be processed.")
    except ValueError as e:
        logger.warning("backup_unreadable", error=str(e))
        return BackupRestoreResult(success=False, message="Invalid backup file.")

    if backup.categories:
        catalog.import_categories(backup.categories)
    if backup.rules:
        rule_book.set_rules(backup.rules)
    if backup.limits:
        limits.set_limits(backup.limits)

    stats = BackupStats(
        categories=len(backup.categories),
        rules=len(backup.rules),
        limits=len(backup.limits),
    )
    if audit_logger:
        audit_logger.log(
            AuditEventBuilder.backup_restored(stats.categories, stats.rules, stats.limits)
        )
    return BackupRestoreResult(success=True, message="Backup restored.", stats=stats)
