"""
Core Data Models for Statement Ledger

These models define the strict schemas for all data owned by the ledger:
transactions, categories, auto-categorization rules, budget limits and
import batches.

Ledger entities are frozen. An edit is a copy made with
``model_copy(update=...)`` so earlier snapshots held by the history
manager are never aliased.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class CurrencyFormat(str, Enum):
    """Number formats understood by the currency normalizer."""
    PT_BR = "pt-BR"  # 1.234,56
    EN_US = "en-US"  # 1,234.56


class LimitPeriod(str, Enum):
    """Budget period of a category limit."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class LimitStatus(str, Enum):
    """Result of comparing a category total against its limit."""
    OK = "ok"
    WARNING = "warning"
    EXCEEDED = "exceeded"


class ImportStatus(str, Enum):
    """Outcome of one import action."""
    SUCCESS = "success"
    PARTIAL = "partial"  # Some rows were invalid and skipped
    ERROR = "error"


class ValueRangeMode(str, Enum):
    """
    How value-range filters compare amounts.

    SIGNED compares the algebraic amount (-150 < 10).
    ABSOLUTE compares the magnitude (|-150| > 10).
    """
    SIGNED = "signed"
    ABSOLUTE = "absolute"


class TextMatchMode(str, Enum):
    """Match modes of the description filter."""
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    EXACT = "exact"


def new_id() -> str:
    return str(uuid4())


def normalize_tags(tags) -> tuple[str, ...]:
    """Trim tags, drop blanks and duplicates, keep first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags or ():
        cleaned = str(tag).strip()
        if cleaned and cleaned not in seen:
            seen[cleaned] = None
    return tuple(seen)


# =============================================================================
# CATEGORIES & RULES
# =============================================================================

class Category(BaseModel):
    """
    A user-defined category.

    Categories flagged ``is_default`` are protected from deletion; the
    catalog reports a refused deletion as ``False``.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Unique category ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    icon: str = Field(
        default="📦",
        max_length=16,
        description="Emoji shown next to the name"
    )
    color: str = Field(
        default="#8B5CF6",
        pattern=r"^#[0-9A-Fa-f]{6}([0-9A-Fa-f]{2})?$",
        description="Hex color"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500
    )
    active: bool = True
    is_default: bool = False
    created_at: datetime = Field(
        default_factory=datetime.utcnow
    )


class AutoCategoryRule(BaseModel):
    """
    A substring rule that assigns a category to matching titles.

    Rules are kept in an ordered list; the first active match wins.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    term: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Case-insensitive substring searched in titles"
    )
    category_id: str = Field(..., min_length=1)
    active: bool = True


class CategoryLimit(BaseModel):
    """Budget threshold for one category."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    category_id: str = Field(..., min_length=1)
    value: Decimal = Field(
        ...,
        gt=0,
        description="Budget value for the period"
    )
    period: LimitPeriod = LimitPeriod.MONTHLY
    notify: bool = True
    alert_percent: int = Field(
        default=80,
        ge=0,
        le=100,
        description="Percentage of the limit that raises a warning"
    )


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A committed ledger entry.

    Created by an accepted import or manual entry. Mutated only by
    producing a new instance (categorization, tagging).
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    date: str = Field(
        ...,
        min_length=1,
        description="ISO date (YYYY-MM-DD) when the source date was parseable"
    )
    title: str = Field(..., min_length=1)
    amount: Decimal = Field(
        ...,
        description="Signed amount; expenses are negative"
    )
    category_id: Optional[str] = None
    tags: tuple[str, ...] = ()
    import_batch_id: Optional[str] = None

    @field_validator('tags', mode='before')
    @classmethod
    def dedupe_tags(cls, v) -> tuple[str, ...]:
        return normalize_tags(v)

    @property
    def is_categorized(self) -> bool:
        return self.category_id is not None


class ImportBatch(BaseModel):
    """
    A reversible group of transactions created by one import action.

    ``transaction_ids`` lets the whole batch be reverted at once.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    filename: str = Field(default="", max_length=255)
    imported_at: datetime = Field(default_factory=datetime.utcnow)
    item_count: int = Field(..., ge=0)
    total_value: Decimal
    status: ImportStatus
    errors: tuple[str, ...] = ()
    transaction_ids: tuple[str, ...] = ()


# =============================================================================
# LIMIT EVALUATION RESULTS
# =============================================================================

class LimitCheck(BaseModel):
    """Status of one category against its configured limit."""
    model_config = ConfigDict(frozen=True)

    category_id: str
    status: LimitStatus
    percentage: Decimal
    limit: Decimal


class LimitAlert(BaseModel):
    """An alert raised when a category reaches its warning or limit."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    category_id: str
    kind: LimitStatus
    message: str = Field(..., max_length=500)
    percentage: Decimal
    raised_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('kind')
    @classmethod
    def alert_kind_not_ok(cls, v: LimitStatus) -> LimitStatus:
        if v == LimitStatus.OK:
            raise ValueError("An alert must be a warning or an exceeded limit")
        return v


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_CATEGORY_SPECS: tuple[dict, ...] = (
    {"id": "transporte", "name": "Transporte", "icon": "🚗", "color": "#3B82F6"},
    {"id": "restaurante", "name": "Restaurante", "icon": "🍔", "color": "#F97316"},
    {"id": "mercado", "name": "Mercado", "icon": "🛒", "color": "#22C55E"},
    {"id": "outros", "name": "Outros", "icon": "📦", "color": "#8B5CF6", "is_default": True},
)

# Category names stored by the first ledger format, mapped to current IDs
LEGACY_CATEGORY_MAP: dict[str, str] = {
    "Transporte": "transporte",
    "Restaurante": "restaurante",
    "Mercado": "mercado",
    "Outros": "outros",
}


def default_categories() -> list[Category]:
    """Fresh copies of the seed categories."""
    return [Category(**spec) for spec in DEFAULT_CATEGORY_SPECS]
