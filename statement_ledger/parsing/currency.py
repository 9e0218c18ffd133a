"""
Currency Normalizer

Locale-aware parsing, formatting and summing of monetary strings.

Supported formats:
- pt-BR: ``1.234,56`` (dot groups thousands, comma is the decimal mark)
- en-US: ``1,234.56`` (comma groups thousands, dot is the decimal mark)

Parsing never raises. A value that cannot be read comes back with
``is_valid=False`` and a zero amount so a statement row can be flagged
instead of aborting the import.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, NamedTuple, Optional, Union

from statement_ledger.models.ledger import CurrencyFormat

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")

_SYMBOLS_AND_SPACES = re.compile(r"[R$€£¥\s]")
_SYMBOLS_SPACES_AND_SIGN = re.compile(r"[R$€£¥\s-]")
# Leading numeric prefix, the part of "12.5abc" that is still a number
_NUMERIC_PREFIX = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

_SYMBOLS = {
    CurrencyFormat.PT_BR: "R$ ",
    CurrencyFormat.EN_US: "$ ",
}


class ParsedAmount(NamedTuple):
    """Result of parsing one monetary string."""
    amount: Decimal
    is_valid: bool


def to_decimal(value: Number) -> Decimal:
    """
    Convert a number to Decimal without binary float artefacts.

    Floats go through ``repr`` so ``0.1`` becomes ``Decimal("0.1")``.

    Raises:
        ValueError: If a string is not a plain decimal number
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a monetary value: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value))
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Not a monetary value: {value!r}") from exc


def _coerce_format(fmt: Union[CurrencyFormat, str]) -> CurrencyFormat:
    return fmt if isinstance(fmt, CurrencyFormat) else CurrencyFormat(fmt)


def parse_currency(
    value: Optional[str],
    fmt: Union[CurrencyFormat, str] = CurrencyFormat.PT_BR,
) -> ParsedAmount:
    """
    Parse a monetary string.

    Args:
        value: Raw cell text, e.g. ``"R$ 1.234,56"`` or ``"-150,00"``
        fmt: Number format the export uses

    Returns:
        ParsedAmount; ``is_valid`` is False for blank input or input with
        no leading number
    """
    if value is None or not str(value).strip():
        return ParsedAmount(Decimal("0"), False)

    cleaned = _SYMBOLS_AND_SPACES.sub("", str(value).strip())

    if _coerce_format(fmt) == CurrencyFormat.PT_BR:
        cleaned = cleaned.replace(".", "").replace(",", ".", 1)
    else:
        cleaned = cleaned.replace(",", "")

    match = _NUMERIC_PREFIX.match(cleaned)
    if match is None:
        return ParsedAmount(Decimal("0"), False)

    try:
        amount = Decimal(match.group(0))
    except InvalidOperation:
        return ParsedAmount(Decimal("0"), False)

    if not amount.is_finite():
        return ParsedAmount(Decimal("0"), False)

    return ParsedAmount(amount, True)


def format_currency(
    value: Number,
    fmt: Union[CurrencyFormat, str] = CurrencyFormat.PT_BR,
    include_symbol: bool = True,
) -> str:
    """
    Render an amount with two decimals and grouped thousands.

    ``format_currency(Decimal("-1234.5"))`` gives ``"-R$ 1.234,50"``.
    """
    fmt = _coerce_format(fmt)
    amount = to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    is_negative = amount < 0

    formatted = f"{abs(amount):,.2f}"
    if fmt == CurrencyFormat.PT_BR:
        formatted = formatted.translate(str.maketrans({",": ".", ".": ","}))

    prefix = "-" if is_negative else ""
    symbol = _SYMBOLS[fmt] if include_symbol else ""
    return f"{prefix}{symbol}{formatted}"


def sum_values(values: Iterable[Number]) -> Decimal:
    """
    Decimal-safe sum.

    Each value is scaled to integer cents (rounded half-up), the cents are
    accumulated as ``int`` and the result is scaled back. ``0.1 + 0.2`` is
    exactly ``0.3``.
    """
    total_cents = 0
    for value in values:
        cents = (to_decimal(value) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        total_cents += int(cents)
    return Decimal(total_cents) / 100


def detect_currency_format(value: Optional[str]) -> Optional[CurrencyFormat]:
    """
    Guess the format of a monetary string from its separators.

    A single comma within the last three characters means pt-BR; a
    single dot within the last three characters means en-US. Anything
    else is ambiguous and returns None.
    """
    if not value:
        return None

    cleaned = _SYMBOLS_SPACES_AND_SIGN.sub("", value)
    commas = cleaned.count(",")
    dots = cleaned.count(".")

    if commas == 1 and len(cleaned) - cleaned.index(",") <= 3:
        return CurrencyFormat.PT_BR

    if dots == 1 and len(cleaned) - cleaned.index(".") <= 3:
        return CurrencyFormat.EN_US

    return None


def detect_column_format(values: Iterable[str]) -> Optional[CurrencyFormat]:
    """
    Majority vote of ``detect_currency_format`` over a column of cells.

    Ambiguous cells do not vote; a tie returns None.
    """
    votes = {CurrencyFormat.PT_BR: 0, CurrencyFormat.EN_US: 0}
    for value in values:
        detected = detect_currency_format(value)
        if detected is not None:
            votes[detected] += 1

    pt_votes = votes[CurrencyFormat.PT_BR]
    en_votes = votes[CurrencyFormat.EN_US]
    if pt_votes == en_votes:
        return None
    return CurrencyFormat.PT_BR if pt_votes > en_votes else CurrencyFormat.EN_US
