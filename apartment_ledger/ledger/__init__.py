"""
Ledger Engine

Turns dated entries into per-owner balances and yearly projections.
"""

from apartment_ledger.ledger.balances import BalanceCalculator
from apartment_ledger.ledger.installments import expand, siblings_of
from apartment_ledger.ledger.projection import (
    entry_applies,
    project_for,
    project_period,
    rental_applies,
    summarize_projection,
)
from apartment_ledger.ledger.store import LedgerStore

__all__ = [
    "BalanceCalculator",
    "LedgerStore",
    "entry_applies",
    "expand",
    "project_for",
    "project_period",
    "rental_applies",
    "siblings_of",
    "summarize_projection",
]
