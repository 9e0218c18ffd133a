"""Tests for category limits and alerts."""

import pytest
from decimal import Decimal

from statement_ledger.audit import AuditLogger
from statement_ledger.limits import LimitEvaluator
from statement_ledger.models import AuditEventType, CategoryLimit, LimitStatus
from statement_ledger.services.storage import InMemoryAuditStorage


@pytest.fixture
def evaluator() -> LimitEvaluator:
    evaluator = LimitEvaluator()
    evaluator.set_limit("mercado", Decimal("500"), alert_percent=80)
    return evaluator


class TestLimitCheck:
    """Tests for the status thresholds."""

    def test_no_limit_returns_none(self, evaluator):
        """Test that an unlimited category has no status."""
        assert evaluator.check("transporte", Decimal("1000")) is None

    def test_below_alert_is_ok(self, evaluator):
        """Test a value under the alert threshold."""
        check = evaluator.check("mercado", Decimal("399.99"))
        assert check.status == LimitStatus.OK

    def test_alert_boundary_is_warning(self, evaluator):
        """Test that exactly alert_percent is a warning."""
        check = evaluator.check("mercado", Decimal("400"))
        assert check.status == LimitStatus.WARNING
        assert check.percentage == Decimal("80")

    def test_hundred_percent_is_exceeded(self, evaluator):
        """Test that exactly the limit value is exceeded."""
        check = evaluator.check("mercado", Decimal("500"))
        assert check.status == LimitStatus.EXCEEDED
        assert check.limit == Decimal("500")

    def test_evaluate_uses_magnitudes(self, evaluator):
        """Test that negative expense totals are compared by magnitude."""
        checks = evaluator.evaluate({"mercado": Decimal("-450")})
        assert [(c.category_id, c.status) for c in checks] == [("mercado", LimitStatus.WARNING)]

    def test_evaluate_missing_total_is_zero(self, evaluator):
        """Test that a limited category without spending is ok."""
        checks = evaluator.evaluate({})
        assert checks[0].status == LimitStatus.OK
        assert checks[0].percentage == Decimal("0")


class TestLimitManagement:
    """Tests for the one-limit-per-category list."""

    def test_set_limit_upserts_and_keeps_id(self, evaluator):
        """Test that replacing a limit keeps its id and position."""
        original = evaluator.get_limit("mercado")
        evaluator.set_limit("transporte", 200)
        replaced = evaluator.set_limit("mercado", 800)
        assert replaced.id == original.id
        assert [limit.category_id for limit in evaluator.limits] == ["mercado", "transporte"]
        assert evaluator.get_limit("mercado").value == Decimal("800")

    def test_default_alert_percent(self):
        """Test that new limits take the configured threshold."""
        evaluator = LimitEvaluator(default_alert_percent=50)
        assert evaluator.set_limit("mercado", 100).alert_percent == 50

    def test_remove_and_clear(self, evaluator):
        """Test removing one limit and clearing all."""
        assert evaluator.remove_limit("mercado") is True
        assert evaluator.remove_limit("mercado") is False
        evaluator.set_limit("a", 1)
        evaluator.clear_limits()
        assert evaluator.limits == ()

    def test_set_limits_dedupes_by_category(self):
        """Test that later duplicates of a category win."""
        evaluator = LimitEvaluator([
            CategoryLimit(category_id="mercado", value=Decimal("100")),
            CategoryLimit(category_id="mercado", value=Decimal("300")),
        ])
        assert len(evaluator.limits) == 1
        assert evaluator.limits[0].value == Decimal("300")

    def test_invalid_value_is_rejected(self, evaluator):
        """Test that a non-positive limit cannot be set."""
        with pytest.raises(ValueError):
            evaluator.set_limit("mercado", 0)


class TestLimitAlerts:
    """Tests for raised alerts."""

    def test_alerts_are_raised_once_per_kind(self):
        """Test that the same warning is not raised twice."""
        storage = InMemoryAuditStorage()
        evaluator = LimitEvaluator(audit_logger=AuditLogger(storage))
        evaluator.set_limit("mercado", Decimal("500"))

        raised = evaluator.raise_alerts({"mercado": Decimal("-400")}, {"mercado": "Mercado"})
        assert len(raised) == 1
        assert raised[0].kind == LimitStatus.WARNING
        assert raised[0].message == "Mercado: 80% of the R$ 500,00 limit used"
        assert evaluator.raise_alerts({"mercado": Decimal("-420")}) == []

        exceeded = evaluator.raise_alerts({"mercado": Decimal("-600")}, {"mercado": "Mercado"})
        assert exceeded[0].message == "Mercado: limit of R$ 500,00 exceeded (120%)"
        assert len(evaluator.alerts) == 2

        types = [e.event_type for e in storage.get_recent_events()]
        assert types == [AuditEventType.LIMIT_EXCEEDED, AuditEventType.LIMIT_WARNING]

    def test_notify_off_raises_nothing(self):
        """Test that silenced limits never alert."""
        evaluator = LimitEvaluator()
        evaluator.set_limit("mercado", 100, notify=False)
        assert evaluator.raise_alerts({"mercado": -500}) == []

    def test_dismiss_and_clear(self, evaluator):
        """Test dismissing one alert and clearing the rest."""
        alert = evaluator.raise_alerts({"mercado": -500})[0]
        assert evaluator.dismiss_alert(alert.id) is True
        assert evaluator.dismiss_alert(alert.id) is False
        evaluator.raise_alerts({"mercado": -500})
        evaluator.clear_alerts()
        assert evaluator.alerts == ()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
