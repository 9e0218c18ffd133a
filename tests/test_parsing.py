"""Tests for field detection, row parsing and row validation."""

import pytest
from decimal import Decimal

from statement_ledger.categorization import CategoryCatalog
from statement_ledger.models import AutoCategoryRule, ColumnMap, CurrencyFormat, FieldKind, RowError
from statement_ledger.parsing.rows import FieldDetector, RowParser, parse_rows, split_tags
from statement_ledger.validation import RowValidator


STATEMENT_ROWS = [
    ["2023-01-01", "Supermarket", "-150,00"],
    ["2023-01-05", "Salary", "5000,00"],
]


class TestFieldDetector:
    """Tests for header detection."""

    def test_two_matches_is_a_header(self):
        """Test that two recognized names make row 0 a header."""
        has_header, column_map = FieldDetector().detect([["Data", "Descrição", "Valor"]])
        assert has_header is True
        assert column_map.date == 0
        assert column_map.description == 1
        assert column_map.amount == 2

    def test_one_match_is_data(self):
        """Test that a single recognized name falls back to positions."""
        has_header, column_map = FieldDetector().detect([["date", "foo", "bar"]])
        assert has_header is False
        assert (column_map.date, column_map.description, column_map.amount) == (0, 1, 2)

    def test_zero_matches_is_data(self):
        """Test that a data row is not taken for a header."""
        has_header, _ = FieldDetector().detect(STATEMENT_ROWS)
        assert has_header is False

    def test_reordered_columns_with_category_and_tags(self):
        """Test that all five fields are mapped by name."""
        header = ["Tags", "Amount", "Title", "Categoria", "Date"]
        has_header, column_map = FieldDetector().detect([header])
        assert has_header is True
        assert column_map.tags == 0
        assert column_map.amount == 1
        assert column_map.description == 2
        assert column_map.category == 3
        assert column_map.date == 4

    def test_first_match_per_field_wins(self):
        """Test that a second date-like column does not move the mapping."""
        _, column_map = FieldDetector().detect([["Date", "Created at", "Memo", "Value"]])
        assert column_map.date == 0

    def test_preferences_override_patterns(self):
        """Test that saved preferences map unknown header names."""
        detector = FieldDetector({"lançamento": FieldKind.DESCRIPTION, "quantia": FieldKind.AMOUNT})
        has_header, column_map = detector.detect([["Quando", "Lançamento", "Quantia"]])
        assert has_header is True
        assert column_map.description == 1
        assert column_map.amount == 2
        assert column_map.date is None

    def test_empty_rows(self):
        """Test that no rows means positional defaults."""
        assert FieldDetector().detect([]) == (False, ColumnMap.positional())


class TestRowValidator:
    """Tests for the fixed check order."""

    def test_valid_row(self):
        """Test a complete row."""
        check = RowValidator(CurrencyFormat.PT_BR).validate("2023-01-01", "Uber", "-12,90")
        assert check.is_valid is True
        assert check.error is None
        assert check.amount == Decimal("-12.90")

    def test_missing_date_comes_first(self):
        """Test that a row missing everything reports the date."""
        check = RowValidator().validate("", "", "")
        assert check.error == RowError.MISSING_DATE

    def test_missing_title(self):
        """Test a row without description."""
        check = RowValidator().validate("2023-01-01", " ", "10,00")
        assert check.error == RowError.MISSING_TITLE

    def test_invalid_amount(self):
        """Test a row whose amount cannot be read."""
        check = RowValidator().validate("2023-01-01", "Uber", "n/a")
        assert check.is_valid is False
        assert check.error == RowError.INVALID_AMOUNT

    def test_summary_lists_skipped_lines(self):
        """Test the review summary of a batch with invalid rows."""
        batch = parse_rows(
            [["2023-01-01", "A", "1,00"], ["2023-01-02", "", "2,00"]],
            CurrencyFormat.PT_BR,
        )
        summary = RowValidator.get_user_friendly_summary(batch)
        assert "1 of 2 rows will be skipped" in summary
        assert "Line 2: Description is missing" in summary
        assert "1 valid rows can still be imported." in summary

    def test_summary_all_valid(self):
        """Test the summary when nothing is skipped."""
        batch = parse_rows(STATEMENT_ROWS, CurrencyFormat.PT_BR)
        assert RowValidator.get_user_friendly_summary(batch) == "✅ All 2 rows are ready to import."


class TestRowParser:
    """Tests for turning raw rows into a staging batch."""

    def test_end_to_end_pt_br_without_rules(self):
        """Test the reference two-row import with no rules."""
        batch = parse_rows(STATEMENT_ROWS, CurrencyFormat.PT_BR)
        assert batch.total_rows == 2
        assert batch.valid_count == 2
        assert [r.amount for r in batch.records] == [Decimal("-150"), Decimal("5000")]
        assert all(r.category_id is None for r in batch.records)
        assert batch.total_amount == Decimal("4850")

    def test_end_to_end_rule_assigns_category(self):
        """Test that a matching rule resolves the first record."""
        rules = [AutoCategoryRule(term="market", category_id="C1")]
        batch = parse_rows(STATEMENT_ROWS, CurrencyFormat.PT_BR, rules=rules)
        assert batch.records[0].category_id == "C1"
        assert batch.records[1].category_id is None

    def test_line_numbers_count_header_and_skipped_rows(self):
        """Test 1-based line numbers over the raw row set."""
        rows = [
            ["Date", "Description", "Amount"],
            ["2023-01-01", "A", "1,00"],
            [""],
            ["2023-01-02", "B", "2,00"],
        ]
        batch = parse_rows(rows, CurrencyFormat.PT_BR)
        assert batch.has_header is True
        assert [r.line_number for r in batch.records] == [2, 4]

    def test_blank_single_cell_rows_are_skipped(self):
        """Test that empty and single blank-cell rows vanish."""
        rows = [[], ["   "], ["2023-01-01", "A", "1,00"]]
        batch = parse_rows(rows, CurrencyFormat.PT_BR)
        assert batch.total_rows == 1

    def test_row_with_blank_cells_is_kept_as_invalid(self):
        """Test that a multi-cell blank row is reported, not skipped."""
        batch = parse_rows([["", "", ""]], CurrencyFormat.PT_BR)
        assert batch.total_rows == 1
        assert batch.invalid_count == 1
        assert batch.records[0].error == RowError.MISSING_DATE

    def test_invalid_rows_do_not_abort(self):
        """Test that bad rows are flagged and the rest still parse."""
        rows = [
            ["2023-01-01", "A", "abc"],
            ["2023-01-02", "", "1,00"],
            ["2023-01-03", "C", "3,00"],
        ]
        batch = parse_rows(rows, CurrencyFormat.PT_BR)
        assert batch.valid_count == 1
        assert batch.invalid_count == 2
        assert batch.total_amount == Decimal("3.00")
        assert [r.error for r in batch.invalid_records()] == [
            RowError.INVALID_AMOUNT,
            RowError.MISSING_TITLE,
        ]

    def test_short_row_is_missing_amount(self):
        """Test that missing cells read as blank."""
        batch = parse_rows([["2023-01-01", "Only title"]], CurrencyFormat.PT_BR)
        assert batch.records[0].error == RowError.INVALID_AMOUNT

    def test_category_cell_resolves_by_id_then_name(self):
        """Test id match, case-insensitive name match and unresolved cells."""
        rows = [
            ["Date", "Description", "Amount", "Category"],
            ["2023-01-01", "A", "1,00", "mercado"],
            ["2023-01-02", "B", "1,00", "TRANSPORTE"],
            ["2023-01-03", "C", "1,00", "Viagem"],
        ]
        batch = RowParser(CurrencyFormat.PT_BR, catalog=CategoryCatalog()).parse(rows)
        assert [r.category_id for r in batch.records] == ["mercado", "transporte", None]

    def test_rule_fills_unresolved_category_cell(self):
        """Test that the matcher only runs when the cell did not resolve."""
        rows = [
            ["Date", "Description", "Amount", "Category"],
            ["2023-01-01", "Uber trip", "1,00", "Mercado"],
            ["2023-01-02", "Uber trip", "1,00", ""],
        ]
        rules = [AutoCategoryRule(term="uber", category_id="transporte")]
        batch = RowParser(CurrencyFormat.PT_BR, catalog=CategoryCatalog(), rules=rules).parse(rows)
        assert [r.category_id for r in batch.records] == ["mercado", "transporte"]

    def test_tags_cell_is_split(self):
        """Test comma splitting, trimming and dropping empty tags."""
        rows = [
            ["Date", "Description", "Amount", "Tags"],
            ["2023-01-01", "A", "1,00", " work, trip,, "],
        ]
        batch = parse_rows(rows, CurrencyFormat.PT_BR)
        assert batch.records[0].tags == ("work", "trip")

    def test_en_us_format(self):
        """Test the same parser with en-US amounts."""
        batch = parse_rows([["2023-01-01", "A", "1,234.56"]], CurrencyFormat.EN_US)
        assert batch.records[0].amount == Decimal("1234.56")
        assert batch.currency_format == CurrencyFormat.EN_US

    def test_split_tags(self):
        """Test the tag splitter on its own."""
        assert split_tags("") == ()
        assert split_tags("a") == ("a",)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
