"""Audit logging package."""

from coinue.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
