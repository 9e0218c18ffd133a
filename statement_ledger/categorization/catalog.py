"""
Category Catalog

The catalog owns the ordered list of categories. Its order is the
iteration order used by aggregation, so "the last category" of a
percentage breakdown is always the last category of the catalog.

A default category can never be deleted: ``delete_category`` returns
False instead of raising.
"""

from typing import Optional, Sequence

import structlog

from statement_ledger.audit.logger import AuditLogger
from statement_ledger.errors import UnknownCategoryError
from statement_ledger.models.audit import AuditEventBuilder
from statement_ledger.models.ledger import Category, default_categories

logger = structlog.get_logger(__name__)


class CategoryCatalog:
    """
    Ordered, replace-on-write collection of categories.

    Args:
        categories: Initial categories; the seed defaults when None
        audit_logger: Optional audit trail for deletions
    """

    def __init__(
        self,
        categories: Optional[Sequence[Category]] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._categories: tuple[Category, ...] = tuple(
            default_categories() if categories is None else categories
        )
        self._audit_logger = audit_logger

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._categories

    def __len__(self) -> int:
        return len(self._categories)

    def __contains__(self, category_id: object) -> bool:
        return any(c.id == category_id for c in self._categories)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get(self, category_id: str) -> Optional[Category]:
        for category in self._categories:
            if category.id == category_id:
                return category
        return None

    def require(self, category_id: str) -> Category:
        category = self.get(category_id)
        if category is None:
            raise UnknownCategoryError(f"Unknown category: {category_id}")
        return category

    def get_by_name(self, name: str) -> Optional[Category]:
        """Case-insensitive exact name lookup."""
        wanted = name.strip().lower()
        for category in self._categories:
            if category.name.lower() == wanted:
                return category
        return None

    def resolve(self, value: Optional[str]) -> Optional[str]:
        """
        Resolve a category cell to an id.

        Exact id match first, then case-insensitive name, else None.
        """
        if value is None or not value.strip():
            return None
        text = value.strip()
        if self.get(text) is not None:
            return text
        by_name = self.get_by_name(text)
        return by_name.id if by_name else None

    def active_categories(self) -> list[Category]:
        return [c for c in self._categories if c.active]

    def default_category(self) -> Optional[Category]:
        """The protected default, or the last category when none is flagged."""
        for category in self._categories:
            if category.is_default:
                return category
        return self._categories[-1] if self._categories else None

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_category(
        self,
        name: str,
        icon: str = "📦",
        color: str = "#8B5CF6",
        description: Optional[str] = None,
        active: bool = True,
        is_default: bool = False,
    ) -> Category:
        category = Category(
            name=name,
            icon=icon,
            color=color,
            description=description,
            active=active,
            is_default=is_default,
        )
        self._categories = self._categories + (category,)
        return category

    def update_category(self, category_id: str, **updates) -> Category:
        """
        Update fields of a category.

        Raises:
            UnknownCategoryError: If the id is not in the catalog
        """
        current = self.require(category_id)
        updates.pop("id", None)
        updated = Category.model_validate({**current.model_dump(), **updates})
        self._categories = tuple(
            updated if c.id == category_id else c for c in self._categories
        )
        return updated

    def delete_category(self, category_id: str) -> bool:
        """
        Delete a category.

        Returns:
            False when the category is a protected default, True otherwise
            (deleting an unknown id is a no-op that returns True)
        """
        category = self.get(category_id)
        if category is not None and category.is_default:
            logger.info("category_deletion_denied", category_id=category_id)
            if self._audit_logger:
                self._audit_logger.log(
                    AuditEventBuilder.category_deletion_denied(category_id, category.name)
                )
            return False

        self._categories = tuple(c for c in self._categories if c.id != category_id)
        if category is not None and self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.category_deleted(category_id, category.name))
        return True

    def toggle_active(self, category_id: str) -> None:
        self._categories = tuple(
            c.model_copy(update={"active": not c.active}) if c.id == category_id else c
            for c in self._categories
        )

    def reorder(self, categories: Sequence[Category]) -> None:
        self._categories = tuple(categories)

    def reset_to_defaults(self) -> None:
        self._categories = tuple(default_categories())

    def restore_category(self, category: Category) -> None:
        """Re-add a deleted category; existing ids are left untouched."""
        if category.id not in self:
            self._categories = self._categories + (category,)

    def import_categories(self, categories: Sequence[Category]) -> None:
        """Upsert: replace categories with the same id, append new ones."""
        merged = list(self._categories)
        positions = {c.id: i for i, c in enumerate(merged)}
        for category in categories:
            if category.id in positions:
                merged[positions[category.id]] = category
            else:
                positions[category.id] = len(merged)
                merged.append(category)
        self._categories = tuple(merged)
