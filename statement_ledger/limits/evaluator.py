"""
Limit Evaluator

Compares category totals against configured budget limits.

Status rules (inclusive, the boundary resolves to the higher severity):
- percentage >= 100            -> exceeded
- percentage >= alert_percent  -> warning
- otherwise                    -> ok

A category with no configured limit has no status: ``check`` returns
None, which is not an error.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional, Sequence

import structlog

from statement_ledger.audit.logger import AuditLogger
from statement_ledger.config import get_settings
from statement_ledger.models.audit import AuditEventBuilder
from statement_ledger.models.ledger import (
    CategoryLimit,
    LimitAlert,
    LimitCheck,
    LimitPeriod,
    LimitStatus,
    new_id,
)
from statement_ledger.parsing.currency import CENT, Number, format_currency, to_decimal

logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")


class LimitEvaluator:
    """
    Owns the limit list (one limit per category) and the raised alerts.

    Args:
        limits: Initial limits
        audit_logger: Optional audit trail for raised alerts
        default_alert_percent: Threshold for new limits; settings default
            when None
    """

    def __init__(
        self,
        limits: Optional[Sequence[CategoryLimit]] = None,
        audit_logger: Optional[AuditLogger] = None,
        default_alert_percent: Optional[int] = None,
    ):
        self._limits: tuple[CategoryLimit, ...] = ()
        self._alerts: tuple[LimitAlert, ...] = ()
        self._audit_logger = audit_logger
        self._default_alert_percent = (
            default_alert_percent
            if default_alert_percent is not None
            else get_settings().default_alert_percent
        )
        self.set_limits(limits or ())

    @property
    def limits(self) -> tuple[CategoryLimit, ...]:
        return self._limits

    @property
    def alerts(self) -> tuple[LimitAlert, ...]:
        return self._alerts

    # =========================================================================
    # Limit management
    # =========================================================================

    def get_limit(self, category_id: str) -> Optional[CategoryLimit]:
        for limit in self._limits:
            if limit.category_id == category_id:
                return limit
        return None

    def set_limit(
        self,
        category_id: str,
        value: Number,
        period: LimitPeriod = LimitPeriod.MONTHLY,
        notify: bool = True,
        alert_percent: Optional[int] = None,
    ) -> CategoryLimit:
        """
        Create or replace the limit of a category.

        An existing limit keeps its id.
        """
        existing = self.get_limit(category_id)
        limit = CategoryLimit(
            id=existing.id if existing else new_id(),
            category_id=category_id,
            value=to_decimal(value),
            period=period,
            notify=notify,
            alert_percent=(
                alert_percent if alert_percent is not None else self._default_alert_percent
            ),
        )
        if existing:
            self._limits = tuple(
                limit if current.category_id == category_id else current
                for current in self._limits
            )
        else:
            self._limits = self._limits + (limit,)
        return limit

    def remove_limit(self, category_id: str) -> bool:
        remaining = tuple(
            current for current in self._limits if current.category_id != category_id
        )
        removed = len(remaining) != len(self._limits)
        self._limits = remaining
        return removed

    def set_limits(self, limits: Sequence[CategoryLimit]) -> None:
        """Replace every limit; later duplicates of a category win."""
        by_category: dict[str, CategoryLimit] = {}
        for limit in limits:
            by_category[limit.category_id] = limit
        self._limits = tuple(by_category.values())

    def clear_limits(self) -> None:
        self._limits = ()

    # =========================================================================
    # Evaluation
    # =========================================================================

    def check(self, category_id: str, current_value: Number) -> Optional[LimitCheck]:
        """
        Status of one category.

        Returns:
            LimitCheck, or None when the category has no limit
        """
        limit = self.get_limit(category_id)
        if limit is None:
            return None

        percentage = to_decimal(current_value) / limit.value * HUNDRED

        if percentage >= HUNDRED:
            status = LimitStatus.EXCEEDED
        elif percentage >= limit.alert_percent:
            status = LimitStatus.WARNING
        else:
            status = LimitStatus.OK

        return LimitCheck(
            category_id=category_id,
            status=status,
            percentage=percentage,
            limit=limit.value,
        )

    def evaluate(self, totals: Mapping[str, Number]) -> list[LimitCheck]:
        """
        Check every limited category against the magnitude of its total.

        Expenses are negative in the ledger, so the absolute value is
        compared. A category missing from ``totals`` counts as zero.
        Checks are returned in limit order.
        """
        checks = []
        for limit in self._limits:
            spent = abs(to_decimal(totals.get(limit.category_id, 0)))
            check = self.check(limit.category_id, spent)
            if check is not None:
                checks.append(check)
        return checks

    # =========================================================================
    # Alerts
    # =========================================================================

    def raise_alerts(
        self,
        totals: Mapping[str, Number],
        category_names: Optional[Mapping[str, str]] = None,
    ) -> list[LimitAlert]:
        """
        Raise an alert for each limit in warning or exceeded state.

        Limits with ``notify`` off are skipped, and a category that already
        has an alert of the same kind is not alerted twice.

        Returns:
            The newly raised alerts
        """
        names = category_names or {}
        existing = {(a.category_id, a.kind) for a in self._alerts}
        raised: list[LimitAlert] = []

        for check in self.evaluate(totals):
            if check.status == LimitStatus.OK:
                continue
            limit = self.get_limit(check.category_id)
            if limit is None or not limit.notify:
                continue
            if (check.category_id, check.status) in existing:
                continue

            alert = LimitAlert(
                category_id=check.category_id,
                kind=check.status,
                message=self._alert_message(check, names.get(check.category_id, check.category_id)),
                percentage=check.percentage,
            )
            raised.append(alert)
            self._audit_alert(check)

        self._alerts = self._alerts + tuple(raised)
        return raised

    def _alert_message(self, check: LimitCheck, name: str) -> str:
        percent = check.percentage.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        limit = format_currency(check.limit)
        if check.status == LimitStatus.EXCEEDED:
            return f"{name}: limit of {limit} exceeded ({percent}%)"
        return f"{name}: {percent}% of the {limit} limit used"

    def _audit_alert(self, check: LimitCheck) -> None:
        logger.info(
            "limit_alert_raised",
            category_id=check.category_id,
            status=check.status.value,
        )
        if self._audit_logger:
            self._audit_logger.log(
                AuditEventBuilder.limit_reached(
                    category_id=check.category_id,
                    status=check.status.value,
                    percentage=str(check.percentage.quantize(CENT, rounding=ROUND_HALF_UP)),
                    limit=str(check.limit),
                )
            )

    def dismiss_alert(self, alert_id: str) -> bool:
        remaining = tuple(a for a in self._alerts if a.id != alert_id)
        dismissed = len(remaining) != len(self._alerts)
        self._alerts = remaining
        return dismissed

    def clear_alerts(self) -> None:
        self._alerts = ()
