"""
Auto-Categorization

``match_category`` is a pure function over the rule list it is given:
a case-insensitive substring test of each active rule's term against
the title, in list order. The first match wins; there is no scoring.

``RuleBook`` owns the ordered rule list for a workspace. Every change
replaces the tuple of rules, so a caller holding the old tuple keeps a
consistent view.
"""

from typing import Iterable, Optional, Sequence

import structlog

from statement_ledger.models.ledger import AutoCategoryRule

logger = structlog.get_logger(__name__)


def match_rule(title: str, rules: Iterable[AutoCategoryRule]) -> Optional[AutoCategoryRule]:
    """Return the first active rule whose term occurs in ``title``."""
    if not title:
        return None

    title_lower = title.lower()
    for rule in rules:
        if rule.active and rule.term and rule.term.lower() in title_lower:
            return rule
    return None


def match_category(title: str, rules: Iterable[AutoCategoryRule]) -> Optional[str]:
    """
    Category id of the first matching active rule, or None.

    Example:
        >>> rule = AutoCategoryRule(term="market", category_id="C1")
        >>> match_category("Supermarket", [rule])
        'C1'
    """
    rule = match_rule(title, rules)
    return rule.category_id if rule else None


class RuleBook:
    """Ordered list of auto-categorization rules."""

    def __init__(self, rules: Optional[Sequence[AutoCategoryRule]] = None):
        self._rules: tuple[AutoCategoryRule, ...] = tuple(rules or ())

    @property
    def rules(self) -> tuple[AutoCategoryRule, ...]:
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def add_rule(self, term: str, category_id: str) -> AutoCategoryRule:
        """Append an active rule; later rules lose ties to earlier ones."""
        rule = AutoCategoryRule(term=term, category_id=category_id)
        self._rules = self._rules + (rule,)
        logger.debug("rule_added", rule_id=rule.id, term=rule.term, category_id=category_id)
        return rule

    def remove_rule(self, rule_id: str) -> bool:
        remaining = tuple(r for r in self._rules if r.id != rule_id)
        removed = len(remaining) != len(self._rules)
        self._rules = remaining
        return removed

    def toggle_rule(self, rule_id: str) -> None:
        self._rules = tuple(
            r.model_copy(update={"active": not r.active}) if r.id == rule_id else r
            for r in self._rules
        )

    def update_rule(self, rule_id: str, **updates) -> None:
        """Update fields of a rule; the result is re-validated."""
        updated = []
        for rule in self._rules:
            if rule.id == rule_id:
                rule = AutoCategoryRule.model_validate({**rule.model_dump(), **updates})
            updated.append(rule)
        self._rules = tuple(updated)

    def set_rules(self, rules: Sequence[AutoCategoryRule]) -> None:
        self._rules = tuple(rules)

    def clear(self) -> None:
        self._rules = ()

    def match(self, title: str) -> Optional[str]:
        return match_category(title, self._rules)

    def rules_for_category(self, category_id: str) -> list[AutoCategoryRule]:
        return [r for r in self._rules if r.category_id == category_id]
