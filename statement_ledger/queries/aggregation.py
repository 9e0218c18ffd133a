"""
Aggregation Engine

Pure functions computed on demand from an immutable ledger snapshot.
Callers recompute after every mutation; nothing here caches.

DESIGN DECISION: Mapping order is part of the contract. ``category_totals``
returns keys in catalog order (creation order, or the order set by
``CategoryCatalog.reorder``), and ``percentages`` gives the rounding
remainder to the last key of whatever mapping it receives. The same
catalog order therefore always yields the same percentages.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field

from statement_ledger.models.ledger import Category, Transaction
from statement_ledger.parsing.currency import CENT, Number, sum_values, to_decimal
from statement_ledger.parsing.dates import month_key

HUNDRED = Decimal("100")
ZERO = Decimal("0")


def _round_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# =============================================================================
# Totals & percentages
# =============================================================================

def calculate_total(transactions: Iterable[Transaction]) -> Decimal:
    return sum_values(t.amount for t in transactions)


def category_totals(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
) -> dict[str, Decimal]:
    """
    Per-category totals in catalog order.

    Every category starts at zero. Transactions whose category is None or
    unknown are ignored.
    """
    grouped: dict[str, list[Decimal]] = {c.id: [] for c in categories}
    for transaction in transactions:
        if transaction.category_id in grouped:
            grouped[transaction.category_id].append(transaction.amount)
    return {category_id: sum_values(amounts) for category_id, amounts in grouped.items()}


def percentages(totals: Mapping[str, Number]) -> dict[str, Decimal]:
    """
    Share of each key in the grand total, summing to exactly 100.00.

    Every key but the last is rounded to two decimals; the last key gets
    ``100 - sum(previous)``. A zero grand total maps every key to 0.
    """
    keys = list(totals)
    grand_total = sum_values(totals.values())

    if grand_total == 0:
        return {key: ZERO for key in keys}

    result: dict[str, Decimal] = {}
    running = ZERO
    for index, key in enumerate(keys):
        if index == len(keys) - 1:
            result[key] = _round_cents(HUNDRED - running)
        else:
            share = _round_cents(to_decimal(totals[key]) / grand_total * HUNDRED)
            result[key] = share
            running += share
    return result


def calculate_average(values: Sequence[Number]) -> Decimal:
    """Mean rounded to cents; zero for an empty sequence."""
    if not values:
        return ZERO
    return _round_cents(sum_values(values) / len(values))


def count_by_category(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
) -> dict[str, int]:
    counts: dict[str, int] = {c.id: 0 for c in categories}
    for transaction in transactions:
        if transaction.category_id in counts:
            counts[transaction.category_id] += 1
    return counts


# =============================================================================
# Period comparison
# =============================================================================

class PeriodMetrics(BaseModel):
    """Magnitude metrics of the categorized transactions of one month."""
    model_config = ConfigDict(frozen=True)

    period: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    total: Decimal = ZERO
    count: int = 0
    average: Decimal = ZERO
    by_category: dict[str, Decimal] = Field(default_factory=dict)


class PeriodComparison(BaseModel):
    """Metrics of two months plus percentage deltas of A against B."""
    model_config = ConfigDict(frozen=True)

    period_a: PeriodMetrics
    period_b: PeriodMetrics
    total_delta: Decimal
    count_delta: Decimal
    average_delta: Decimal
    category_deltas: dict[str, Decimal] = Field(default_factory=dict)


def percentage_delta(current: Number, previous: Number) -> Decimal:
    """
    Relative change in percent.

    A zero baseline gives 100 for growth and 0 otherwise.
    """
    a, b = to_decimal(current), to_decimal(previous)
    if b == 0:
        return HUNDRED if a > 0 else ZERO
    return _round_cents((a - b) / b * HUNDRED)


def period_metrics(
    transactions: Iterable[Transaction],
    categories: Sequence[Category],
    period: str,
) -> PeriodMetrics:
    """Absolute totals of categorized transactions dated in ``period`` (YYYY-MM)."""
    in_period = [
        t for t in transactions
        if t.category_id and month_key(t.date) == period
    ]
    magnitudes = [abs(t.amount) for t in in_period]
    total = sum_values(magnitudes)

    by_category = {
        category.id: sum_values(
            abs(t.amount) for t in in_period if t.category_id == category.id
        )
        for category in categories
    }

    return PeriodMetrics(
        period=period,
        total=total,
        count=len(in_period),
        average=calculate_average(magnitudes),
        by_category=by_category,
    )


def compare_periods(
    transactions: Iterable[Transaction],
    categories: Sequence[Category],
    period_a: str,
    period_b: str,
) -> PeriodComparison:
    transactions = list(transactions)
    a = period_metrics(transactions, categories, period_a)
    b = period_metrics(transactions, categories, period_b)

    return PeriodComparison(
        period_a=a,
        period_b=b,
        total_delta=percentage_delta(a.total, b.total),
        count_delta=percentage_delta(a.count, b.count),
        average_delta=percentage_delta(a.average, b.average),
        category_deltas={
            category_id: percentage_delta(a.by_category[category_id], b.by_category[category_id])
            for category_id in a.by_category
        },
    )


def available_months(transactions: Iterable[Transaction]) -> list[str]:
    """Distinct ``YYYY-MM`` periods, newest first."""
    months = {month_key(t.date) for t in transactions}
    months.discard(None)
    return sorted(months, reverse=True)
