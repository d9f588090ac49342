"""Audit logging package."""

from spendbook.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
