"""
Data Models Package

This package contains all Pydantic models used by the Coinue data layer.
Everything persisted or returned across a component boundary conforms to
these schemas.
"""

from coinue.models.account import Account
from coinue.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from coinue.models.partitions import (
    BillRecord,
    Budget,
    BudgetUsage,
    ExpenseData,
    ExpenseRecord,
    PartitionName,
    PaymentReminder,
    UserAnalysisData,
    UserBillData,
    percentage_of,
)
from coinue.models.results import (
    OperationResult,
    ResultStatus,
    ValidationIssue,
)

__all__ = [
    # Account
    "Account",
    # Partition documents
    "BillRecord",
    "Budget",
    "BudgetUsage",
    "ExpenseData",
    "ExpenseRecord",
    "PartitionName",
    "PaymentReminder",
    "UserAnalysisData",
    "UserBillData",
    "percentage_of",
    # Results
    "OperationResult",
    "ResultStatus",
    "ValidationIssue",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
