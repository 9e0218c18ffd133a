"""
Row Validation

A staged row goes through a fixed sequence of checks, and the first one
that fails names the error:

1. Date present          -> otherwise MissingDate
2. Title present         -> otherwise MissingTitle
3. Amount parseable      -> otherwise InvalidAmount

IMPORTANT: Validation NEVER raises and NEVER fixes a value.
It reports the problem on the record for human review.
"""

from decimal import Decimal
from typing import NamedTuple, Optional

from statement_ledger.models.ledger import CurrencyFormat
from statement_ledger.models.staging import RowError, StagingBatch
from statement_ledger.parsing.currency import parse_currency


class RowCheck(NamedTuple):
    """Outcome of validating one row."""
    is_valid: bool
    error: Optional[RowError]
    amount: Decimal


ERROR_MESSAGES: dict[RowError, str] = {
    RowError.MISSING_DATE: "Date is missing",
    RowError.MISSING_TITLE: "Description is missing",
    RowError.INVALID_AMOUNT: "Amount could not be read",
}


class RowValidator:
    """
    Validates the date/title/amount cells of a statement row.

    The amount is parsed with the currency format of the import.
    """

    def __init__(self, currency_format: CurrencyFormat = CurrencyFormat.PT_BR):
        self._format = currency_format

    @property
    def currency_format(self) -> CurrencyFormat:
        return self._format

    def validate(
        self,
        raw_date: str,
        raw_title: str,
        raw_amount: str,
    ) -> RowCheck:
        """
        Validate one row's cells.

        Returns:
            RowCheck with the parsed amount (zero when unreadable)
        """
        parsed = parse_currency(raw_amount, self._format)

        if not raw_date.strip():
            return RowCheck(False, RowError.MISSING_DATE, parsed.amount)
        if not raw_title.strip():
            return RowCheck(False, RowError.MISSING_TITLE, parsed.amount)
        if not parsed.is_valid:
            return RowCheck(False, RowError.INVALID_AMOUNT, parsed.amount)

        return RowCheck(True, None, parsed.amount)

    @staticmethod
    def get_user_friendly_summary(batch: StagingBatch) -> str:
        """
        Generate a summary of a staged import for display.
        """
        if batch.total_rows == 0:
            return "No rows to import."

        if batch.invalid_count == 0:
            return f"✅ All {batch.valid_count} rows are ready to import."

        lines = [
            f"⚠️ {batch.invalid_count} of {batch.total_rows} rows will be skipped:",
        ]
        for record in batch.invalid_records():
            message = ERROR_MESSAGES.get(record.error, "Invalid row")
            lines.append(f"   • Line {record.line_number}: {message}")

        if batch.valid_count:
            lines.append("")
            lines.append(f"{batch.valid_count} valid rows can still be imported.")

        return "\n".join(lines)
