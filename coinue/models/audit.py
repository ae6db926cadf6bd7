"""
Audit Models for Coinue

Every account change, partition write and export is logged for audit
purposes. This provides:
1. Traceability of who changed what
2. Debugging information when a save or export fails
3. The context (user, partition) a UI needs for an error message

DESIGN DECISION: Audit events never carry passwords or security answers.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Account index
    ACCOUNT_REGISTERED = "account_registered"
    ACCOUNT_REJECTED = "account_rejected"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_REMOVED = "account_removed"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    PASSWORD_RESET = "password_reset"
    PASSWORD_RESET_REJECTED = "password_reset_rejected"

    # Partitions
    PARTITION_SAVED = "partition_saved"
    PARTITION_DELETED = "partition_deleted"
    USER_DATA_PURGED = "user_data_purged"

    # Export
    EXPORT_COMPLETED = "export_completed"
    EXPORT_FAILED = "export_failed"
    EXPORT_SECTION_DEGRADED = "export_section_degraded"
    EXPORTS_CLEANED = "exports_cleaned"

    # System events
    STORAGE_FAILURE = "storage_failure"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - who and what is this about?
    username: Optional[str] = Field(
        default=None,
        description="User the event relates to"
    )
    partition: Optional[str] = Field(
        default=None,
        description="Partition or export kind the event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    # Additional data (event-specific)
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "username": self.username,
            "partition": self.partition,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.account_registered("alice")
        event = AuditEventBuilder.export_completed("alice", "complete_data", path)
    """

    @staticmethod
    def account_registered(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_REGISTERED,
            username=username,
            description=f"Account registered: {username}",
            is_user_action=True,
        )

    @staticmethod
    def account_rejected(
        username: Optional[str],
        operation: str,
        reason: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_REJECTED,
            severity=AuditSeverity.WARNING,
            username=username,
            description=f"Account {operation} rejected: {reason}",
            details={"operation": operation},
            is_user_action=True,
        )

    @staticmethod
    def account_updated(username: str, email_changed: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_UPDATED,
            username=username,
            description=f"Account updated: {username}",
            details={"email_changed": email_changed},
            is_user_action=True,
        )

    @staticmethod
    def account_removed(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_REMOVED,
            severity=AuditSeverity.WARNING,
            username=username,
            description=f"Account removed: {username}",
        )

    @staticmethod
    def login_succeeded(username: str, by_email: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            username=username,
            description=f"Login succeeded: {username}",
            details={"by_email": by_email},
            is_user_action=True,
        )

    @staticmethod
    def login_failed(identifier: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            description="Login failed",
            details={"identifier": identifier},
            is_user_action=True,
        )

    @staticmethod
    def password_reset(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PASSWORD_RESET,
            username=username,
            description=f"Password reset for {username}",
            is_user_action=True,
        )

    @staticmethod
    def password_reset_rejected(email: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PASSWORD_RESET_REJECTED,
            severity=AuditSeverity.WARNING,
            description=f"Password reset rejected: {reason}",
            details={"email": email},
            is_user_action=True,
        )

    @staticmethod
    def partition_saved(username: str, partition: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PARTITION_SAVED,
            severity=AuditSeverity.DEBUG,
            username=username,
            partition=partition,
            description=f"Saved {partition} for {username}",
        )

    @staticmethod
    def partition_deleted(username: str, partition: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PARTITION_DELETED,
            username=username,
            partition=partition,
            description=f"Deleted {partition} for {username}",
        )

    @staticmethod
    def user_data_purged(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_DATA_PURGED,
            severity=AuditSeverity.WARNING,
            username=username,
            description=f"All data removed for {username}",
        )

    @staticmethod
    def storage_failure(
        username: Optional[str],
        partition: Optional[str],
        operation: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_FAILURE,
            severity=AuditSeverity.ERROR,
            username=username,
            partition=partition,
            description=f"Storage {operation} failed",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def export_completed(
        username: str,
        export_kind: str,
        path: str,
        degraded_sections: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_COMPLETED,
            username=username,
            partition=export_kind,
            description=f"Export {export_kind} written for {username}",
            details={
                "path": path,
                "degraded_sections": degraded_sections,
            },
            is_user_action=True,
        )

    @staticmethod
    def export_failed(
        username: Optional[str],
        export_kind: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_FAILED,
            severity=AuditSeverity.ERROR,
            username=username,
            partition=export_kind,
            description=f"Export {export_kind} failed",
            error_message=error_message,
        )

    @staticmethod
    def export_section_degraded(
        username: str,
        section: str,
        reason: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_SECTION_DEGRADED,
            severity=AuditSeverity.WARNING,
            username=username,
            partition=section,
            description=f"Export section '{section}' replaced by placeholder",
            details={"reason": reason},
        )

    @staticmethod
    def exports_cleaned(deleted: int, failed: int, retention_days: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORTS_CLEANED,
            severity=AuditSeverity.WARNING if failed else AuditSeverity.INFO,
            description=f"Removed {deleted} old export(s)",
            details={
                "deleted": deleted,
                "failed": failed,
                "retention_days": retention_days,
            },
        )
