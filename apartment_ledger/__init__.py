"""
Apartment Ledger - Source Package

A shared-cost ledger for the owners of one apartment: monthly expenses,
installment plans, rental income, per-owner balances and a yearly
projection.

DESIGN PRINCIPLES:
1. The record store is the source of truth; the screen mirrors it
2. Fail visibly: a failed save changes nothing and says so
3. Balances and projections are derived, never stored
4. Every write is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Apartment Ledger Team"
