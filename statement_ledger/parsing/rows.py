"""
Field Detection & Row Parsing

Turns raw rows (lists of string cells, already split by the row source)
into a StagingBatch:

1. Detect whether row 0 is a header and build the column map
2. Extract date/title/amount/category/tags cells of every data row
3. Validate each row (errors are attached, never raised)
4. Resolve the category cell, falling back to the auto-matcher
5. Split the tags cell

Line numbers are 1-based positions in the raw row set. The header row is
line 1 when present, and skipped blank rows still consume their number.
"""

import re
from typing import Optional, Sequence

import structlog

from statement_ledger.categorization.catalog import CategoryCatalog
from statement_ledger.categorization.matcher import match_category
from statement_ledger.config import get_settings
from statement_ledger.models.ledger import AutoCategoryRule, CurrencyFormat
from statement_ledger.models.staging import ColumnMap, FieldKind, StagingBatch, StagingRecord
from statement_ledger.parsing.currency import sum_values
from statement_ledger.validation.validator import RowValidator

logger = structlog.get_logger(__name__)

RawRow = Sequence[str]

# Case-insensitive header patterns, checked in field order
FIELD_PATTERNS: dict[FieldKind, tuple[re.Pattern, ...]] = {
    FieldKind.DATE: tuple(
        re.compile(p, re.IGNORECASE)
        for p in (r"^date$", r"^data$", r"^dt$", r"^fecha$", r"^created")
    ),
    FieldKind.DESCRIPTION: tuple(
        re.compile(p, re.IGNORECASE)
        for p in (
            r"^desc", r"^title$", r"^titulo$", r"^name$", r"^nome$",
            r"^texto$", r"^memo$", r"^hist",
        )
    ),
    FieldKind.AMOUNT: tuple(
        re.compile(p, re.IGNORECASE)
        for p in (
            r"^amount$", r"^valor$", r"^value$", r"^price$", r"^preco$",
            r"^total$", r"^v$",
        )
    ),
    FieldKind.CATEGORY: tuple(
        re.compile(p, re.IGNORECASE)
        for p in (r"^categ",)
    ),
    FieldKind.TAGS: tuple(
        re.compile(p, re.IGNORECASE)
        for p in (r"^tags?$", r"^etiquetas?$", r"^labels?$")
    ),
}

# Recognized columns needed before row 0 counts as a header
HEADER_MATCH_THRESHOLD = 2


def _cell(row: RawRow, index: Optional[int]) -> str:
    if index is None or index >= len(row):
        return ""
    value = row[index]
    return "" if value is None else str(value).strip()


def _is_blank_row(row: RawRow) -> bool:
    return len(row) <= 1 and not _cell(row, 0)


def split_tags(value: str) -> tuple[str, ...]:
    """``"a, b,,c"`` -> ``("a", "b", "c")``."""
    return tuple(part.strip() for part in value.split(",") if part.strip())


class FieldDetector:
    """
    Maps header names to logical fields.

    Saved preferences (lowercased header -> field) win over the built-in
    patterns for the headers they name.
    """

    def __init__(self, preferences: Optional[dict[str, FieldKind]] = None):
        self._preferences = {k.lower(): FieldKind(v) for k, v in (preferences or {}).items()}

    def detect_field(self, header: str) -> Optional[FieldKind]:
        name = (header or "").strip().lower()
        if not name:
            return None
        if name in self._preferences:
            return self._preferences[name]
        for kind, patterns in FIELD_PATTERNS.items():
            if any(p.search(name) for p in patterns):
                return kind
        return None

    def detect(self, rows: Sequence[RawRow]) -> tuple[bool, ColumnMap]:
        """
        Inspect the first row.

        Returns:
            (has_header, column_map); positional defaults when fewer than
            two columns are recognized
        """
        if not rows:
            return False, ColumnMap.positional()

        found: dict[FieldKind, int] = {}
        recognized = 0
        for index, header in enumerate(rows[0]):
            kind = self.detect_field(str(header) if header is not None else "")
            if kind is None:
                continue
            recognized += 1
            found.setdefault(kind, index)

        if recognized < HEADER_MATCH_THRESHOLD:
            return False, ColumnMap.positional()

        return True, ColumnMap(**{kind.value: index for kind, index in found.items()})

    def header_mapping(self, header_row: RawRow, column_map: ColumnMap) -> dict[str, FieldKind]:
        """Header name -> field for the mapped columns, for saving as preferences."""
        mapping: dict[str, FieldKind] = {}
        for kind in FieldKind:
            index = column_map.index_of(kind)
            name = _cell(header_row, index)
            if name:
                mapping[name.lower()] = kind
        return mapping


class RowParser:
    """
    Parses raw rows into staging records.

    Args:
        currency_format: Number format of the amount column; settings
            default when None
        catalog: Categories used to resolve the category cell
        rules: Auto-categorization rules applied to unresolved rows
        detector: Field detector (carries saved column preferences)
    """

    def __init__(
        self,
        currency_format: Optional[CurrencyFormat] = None,
        catalog: Optional[CategoryCatalog] = None,
        rules: Sequence[AutoCategoryRule] = (),
        detector: Optional[FieldDetector] = None,
    ):
        self._format = CurrencyFormat(currency_format or get_settings().default_currency_format)
        self._catalog = catalog
        self._rules = tuple(rules)
        self._detector = detector or FieldDetector()
        self._validator = RowValidator(self._format)

    @property
    def currency_format(self) -> CurrencyFormat:
        return self._format

    def parse(self, rows: Sequence[RawRow]) -> StagingBatch:
        has_header, column_map = self._detector.detect(rows)
        start = 1 if has_header else 0

        records: list[StagingRecord] = []
        for index in range(start, len(rows)):
            row = rows[index]
            if _is_blank_row(row):
                continue
            records.append(self._parse_row(row, index + 1, column_map))

        valid = [r for r in records if r.is_valid]
        batch = StagingBatch(
            records=tuple(records),
            valid_count=len(valid),
            invalid_count=len(records) - len(valid),
            total_amount=sum_values(r.amount for r in valid),
            currency_format=self._format,
            has_header=has_header,
            column_map=column_map,
        )

        logger.info(
            "rows_parsed",
            total=batch.total_rows,
            valid=batch.valid_count,
            invalid=batch.invalid_count,
            has_header=has_header,
            currency_format=self._format.value,
        )
        return batch

    def _parse_row(self, row: RawRow, line_number: int, column_map: ColumnMap) -> StagingRecord:
        raw_date = _cell(row, column_map.date)
        raw_title = _cell(row, column_map.description)
        raw_amount = _cell(row, column_map.amount)

        check = self._validator.validate(raw_date, raw_title, raw_amount)

        return StagingRecord(
            line_number=line_number,
            raw_date=raw_date,
            raw_title=raw_title,
            raw_amount=raw_amount,
            amount=check.amount,
            is_valid=check.is_valid,
            error=check.error,
            category_id=self._resolve_category(_cell(row, column_map.category), raw_title),
            tags=split_tags(_cell(row, column_map.tags)),
        )

    def _resolve_category(self, cell: str, title: str) -> Optional[str]:
        category_id = self._catalog.resolve(cell) if self._catalog and cell else None
        if category_id is None and self._rules:
            category_id = match_category(title, self._rules)
        return category_id


def parse_rows(
    rows: Sequence[RawRow],
    currency_format: Optional[CurrencyFormat] = None,
    catalog: Optional[CategoryCatalog] = None,
    rules: Sequence[AutoCategoryRule] = (),
) -> StagingBatch:
    """Convenience wrapper around ``RowParser(...).parse(rows)``."""
    return RowParser(currency_format, catalog, rules).parse(rows)
