"""Limits package."""

from statement_ledger.limits.evaluator import LimitEvaluator

__all__ = ["LimitEvaluator"]
