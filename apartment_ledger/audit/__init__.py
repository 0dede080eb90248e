"""Audit logging package."""

from apartment_ledger.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
