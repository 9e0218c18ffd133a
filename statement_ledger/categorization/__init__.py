"""Categorization package: rule matching and the category catalog."""

from statement_ledger.categorization.catalog import CategoryCatalog
from statement_ledger.categorization.matcher import RuleBook, match_category, match_rule

__all__ = [
    "CategoryCatalog",
    "RuleBook",
    "match_category",
    "match_rule",
]
