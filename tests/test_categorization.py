"""Tests for the auto-categorization matcher, the rule book and the category catalog."""

import pytest

from statement_ledger.audit import AuditLogger
from statement_ledger.categorization import CategoryCatalog, RuleBook, match_category, match_rule
from statement_ledger.errors import UnknownCategoryError
from statement_ledger.models import AuditEventType, AutoCategoryRule, Category
from statement_ledger.services.storage import InMemoryAuditStorage


class TestMatchCategory:
    """Tests for the pure matcher."""

    def test_substring_case_insensitive(self):
        """Test that the term is found anywhere in the title, ignoring case."""
        rules = [AutoCategoryRule(term="market", category_id="C1")]
        assert match_category("SUPERMARKET Extra", rules) == "C1"

    def test_no_match(self):
        """Test that no matching rule gives None."""
        rules = [AutoCategoryRule(term="uber", category_id="C1")]
        assert match_category("Salary", rules) is None

    def test_first_rule_wins(self):
        """Test that ties go to the earlier rule."""
        rules = [
            AutoCategoryRule(term="uber", category_id="transporte"),
            AutoCategoryRule(term="uber eats", category_id="restaurante"),
        ]
        assert match_category("Uber Eats order", rules) == "transporte"

    def test_inactive_rules_are_skipped(self):
        """Test that inactive rules never match."""
        rules = [
            AutoCategoryRule(term="uber", category_id="transporte", active=False),
            AutoCategoryRule(term="eats", category_id="restaurante"),
        ]
        assert match_category("Uber Eats order", rules) == "restaurante"

    def test_empty_title(self):
        """Test that an empty title matches nothing."""
        rules = [AutoCategoryRule(term="a", category_id="C1")]
        assert match_category("", rules) is None

    def test_match_rule_returns_the_rule(self):
        """Test that match_rule exposes which rule matched."""
        rule = AutoCategoryRule(term="ifood", category_id="restaurante")
        assert match_rule("IFOOD *Pizza", [rule]) is rule


class TestRuleBook:
    """Tests for the ordered rule list."""

    def test_add_and_match(self):
        """Test that added rules are matched in order."""
        book = RuleBook()
        book.add_rule("posto", "transporte")
        book.add_rule("mercado", "mercado")
        assert len(book) == 2
        assert book.match("Posto Shell") == "transporte"

    def test_remove_rule(self):
        """Test removing a rule by id."""
        book = RuleBook()
        rule = book.add_rule("posto", "transporte")
        assert book.remove_rule(rule.id) is True
        assert book.remove_rule(rule.id) is False
        assert book.match("Posto Shell") is None

    def test_toggle_rule(self):
        """Test that a toggled rule stops matching."""
        book = RuleBook()
        rule = book.add_rule("posto", "transporte")
        book.toggle_rule(rule.id)
        assert book.match("Posto Shell") is None
        book.toggle_rule(rule.id)
        assert book.match("Posto Shell") == "transporte"

    def test_update_rule_is_validated(self):
        """Test that updates go through model validation."""
        book = RuleBook()
        rule = book.add_rule("posto", "transporte")
        book.update_rule(rule.id, term="shell")
        assert book.rules[0].term == "shell"
        with pytest.raises(ValueError):
            book.update_rule(rule.id, term="")

    def test_previous_tuple_is_not_mutated(self):
        """Test that changes replace the tuple of rules."""
        book = RuleBook()
        book.add_rule("posto", "transporte")
        before = book.rules
        book.clear()
        assert len(before) == 1
        assert book.rules == ()

    def test_rules_for_category(self):
        """Test filtering rules by target category."""
        book = RuleBook()
        book.add_rule("posto", "transporte")
        book.add_rule("uber", "transporte")
        book.add_rule("feira", "mercado")
        assert [r.term for r in book.rules_for_category("transporte")] == ["posto", "uber"]


class TestCategoryCatalog:
    """Tests for the category catalog."""

    def test_seeded_with_defaults(self):
        """Test that a new catalog holds the seed categories."""
        catalog = CategoryCatalog()
        assert len(catalog) == 4
        assert catalog.default_category().id == "outros"

    def test_delete_default_is_denied(self):
        """Test that deleting a default category returns False and keeps it."""
        storage = InMemoryAuditStorage()
        catalog = CategoryCatalog(audit_logger=AuditLogger(storage))
        assert catalog.delete_category("outros") is False
        assert "outros" in catalog
        events = storage.get_recent_events()
        assert events[0].event_type == AuditEventType.CATEGORY_DELETION_DENIED

    def test_delete_regular_category(self):
        """Test that a non-default category can be deleted."""
        catalog = CategoryCatalog()
        assert catalog.delete_category("mercado") is True
        assert "mercado" not in catalog

    def test_add_and_update_category(self):
        """Test adding a category and updating its name."""
        catalog = CategoryCatalog()
        pets = catalog.add_category("Pets", icon="🐶", color="#123456")
        updated = catalog.update_category(pets.id, name="Animais")
        assert updated.id == pets.id
        assert catalog.get(pets.id).name == "Animais"
        assert catalog.categories[-1].id == pets.id

    def test_update_unknown_category_raises(self):
        """Test that updating an unknown id raises."""
        with pytest.raises(UnknownCategoryError):
            CategoryCatalog().update_category("missing", name="X")

    def test_resolve_by_id_then_name(self):
        """Test cell resolution order."""
        catalog = CategoryCatalog()
        assert catalog.resolve("mercado") == "mercado"
        assert catalog.resolve("  RESTAURANTE ") == "restaurante"
        assert catalog.resolve("Viagem") is None
        assert catalog.resolve("") is None

    def test_toggle_active(self):
        """Test that inactive categories drop out of active_categories."""
        catalog = CategoryCatalog()
        catalog.toggle_active("mercado")
        assert "mercado" not in [c.id for c in catalog.active_categories()]

    def test_reorder_and_reset(self):
        """Test reordering and resetting to the seed list."""
        catalog = CategoryCatalog()
        catalog.reorder(list(reversed(catalog.categories)))
        assert catalog.categories[0].id == "outros"
        catalog.reset_to_defaults()
        assert catalog.categories[0].id == "transporte"

    def test_import_categories_upserts(self):
        """Test that imports replace by id and append new ones."""
        catalog = CategoryCatalog()
        renamed = catalog.get("mercado").model_copy(update={"name": "Supermercado"})
        catalog.import_categories([renamed, Category(id="pets", name="Pets")])
        assert catalog.get("mercado").name == "Supermercado"
        assert [c.id for c in catalog.categories][-1] == "pets"
        assert len(catalog) == 5

    def test_restore_category(self):
        """Test that a deleted category can be restored once."""
        catalog = CategoryCatalog()
        mercado = catalog.get("mercado")
        catalog.delete_category("mercado")
        catalog.restore_category(mercado)
        catalog.restore_category(mercado)
        assert len(catalog) == 4


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
