"""
Audit Logger

DESIGN DECISION: Every account change, partition write and export is
logged. This provides:
1. Traceability of account and data changes
2. Debugging capability when a save or export fails
3. Context (user, partition) for every storage error

The audit logger:
- Is synchronous, like the file store it sits next to
- Never raises into the caller (a failed log line must not fail a save)
- Binds the user and partition to every line
"""

import logging
from typing import Optional

import structlog

from coinue.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


CONSOLE_HANDLER_NAME = "coinue-console"


def configure_logging(level: str = "INFO") -> None:
    """
    Send every coinue logger to stderr at `level`.

    structlog renders the JSON line, so the handler prints the message
    as is. Calling this again only changes the level; the console
    handler is attached once.
    """
    logger = logging.getLogger("coinue")
    logger.setLevel(level)
    if any(handler.get_name() == CONSOLE_HANDLER_NAME for handler in logger.handlers):
        return

    handler = logging.StreamHandler()
    handler.set_name(CONSOLE_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)


class AuditLogger:
    """
    Central audit logging service.

    Writes every AuditEvent as one structured log line at the level
    matching its severity.
    """

    def __init__(self, logger_name: str = "coinue.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the log line could not be written.
        """
        log_dict = event.to_log_dict()
        severity = event.severity.value

        try:
            if severity in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif severity == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif severity == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except (OSError, ValueError, TypeError):
            # Logging must never break the operation being logged
            return False

        return True

    def log_account_registered(self, username: str) -> None:
        self.log(AuditEventBuilder.account_registered(username))

    def log_account_rejected(
        self,
        username: Optional[str],
        operation: str,
        reason: str,
    ) -> None:
        self.log(AuditEventBuilder.account_rejected(username, operation, reason))

    def log_account_updated(self, username: str, email_changed: bool) -> None:
        self.log(AuditEventBuilder.account_updated(username, email_changed))

    def log_account_removed(self, username: str) -> None:
        self.log(AuditEventBuilder.account_removed(username))

    def log_login(self, identifier: str, username: Optional[str]) -> None:
        """Log a login attempt; `username` is None when it failed."""
        if username is None:
            self.log(AuditEventBuilder.login_failed(identifier))
        else:
            self.log(AuditEventBuilder.login_succeeded(username, "@" in identifier))

    def log_password_reset(self, username: str) -> None:
        self.log(AuditEventBuilder.password_reset(username))

    def log_password_reset_rejected(self, email: str, reason: str) -> None:
        self.log(AuditEventBuilder.password_reset_rejected(email, reason))

    def log_partition_saved(self, username: str, partition: str) -> None:
        self.log(AuditEventBuilder.partition_saved(username, partition))

    def log_partition_deleted(self, username: str, partition: str) -> None:
        self.log(AuditEventBuilder.partition_deleted(username, partition))

    def log_user_data_purged(self, username: str) -> None:
        self.log(AuditEventBuilder.user_data_purged(username))

    def log_storage_failure(
        self,
        username: Optional[str],
        partition: Optional[str],
        operation: str,
        error_message: str,
    ) -> None:
        self.log(AuditEventBuilder.storage_failure(
            username=username,
            partition=partition,
            operation=operation,
            error_message=error_message,
        ))

    def log_export_completed(
        self,
        username: str,
        export_kind: str,
        path: str,
        degraded_sections: list[str],
    ) -> None:
        self.log(AuditEventBuilder.export_completed(
            username=username,
            export_kind=export_kind,
            path=path,
            degraded_sections=degraded_sections,
        ))

    def log_export_failed(
        self,
        username: Optional[str],
        export_kind: str,
        error_message: str,
    ) -> None:
        self.log(AuditEventBuilder.export_failed(username, export_kind, error_message))

    def log_export_section_degraded(self, username: str, section: str, reason: str) -> None:
        self.log(AuditEventBuilder.export_section_degraded(username, section, reason))

    def log_exports_cleaned(self, deleted: int, failed: int, retention_days: float) -> None:
        self.log(AuditEventBuilder.exports_cleaned(deleted, failed, retention_days))
