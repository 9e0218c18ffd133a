"""
Statement Ledger - Source Package

Core of a personal statement ledger: imports bank/card statement rows,
normalizes pt-BR and en-US amounts, categorizes records, and keeps an
undoable ledger with budget limits.

DESIGN PRINCIPLES:
1. Malformed rows are reported, never silently fixed
2. State is replaced, never edited in place
3. Every collaborator (storage, sync, row source) is injected
4. Money is Decimal end to end
"""

__version__ = "1.0.0"
__author__ = "Statement Ledger Team"
