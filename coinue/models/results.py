"""
Operation Result Models

Every store, index, partition and export operation returns an
OperationResult instead of raising. The caller (usually the UI layer)
switches on `status` and shows the `reason` to the user.

DESIGN DECISION: Exceptions stay inside a component. At the component
boundary they are translated into one of five outcomes:

    OK                 the operation succeeded, `value` holds the payload
    REJECTED           caller-supplied data broke a business rule
    NOT_FOUND          the document or account does not exist
    IO_FAILURE         disk / permission error
    CORRUPT_DOCUMENT   the file exists but cannot be parsed
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ResultStatus(str, Enum):
    """Outcome of an operation."""
    OK = "ok"
    REJECTED = "rejected"
    NOT_FOUND = "not_found"
    IO_FAILURE = "io_failure"
    CORRUPT_DOCUMENT = "corrupt_document"


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'duplicate')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class OperationResult(BaseModel):
    """
    Result of a store, index or export operation.

    Use the constructors (`success`, `rejected`, ...) rather than
    building one by hand.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: ResultStatus
    value: Any = None
    reason: Optional[str] = None
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-fatal problems, e.g. degraded export sections"
    )

    @property
    def ok(self) -> bool:
        return self.status == ResultStatus.OK

    @property
    def is_failure(self) -> bool:
        """True for disk-level problems (IO_FAILURE or CORRUPT_DOCUMENT)."""
        return self.status in (ResultStatus.IO_FAILURE, ResultStatus.CORRUPT_DOCUMENT)

    def value_or(self, default: Any) -> Any:
        """Return the value on success, `default` for every other outcome."""
        return self.value if self.ok else default

    @classmethod
    def success(cls, value: Any = None, warnings: Optional[list[str]] = None) -> "OperationResult":
        return cls(status=ResultStatus.OK, value=value, warnings=warnings or [])

    @classmethod
    def rejected(
        cls,
        reason: str,
        issues: Optional[list[ValidationIssue]] = None,
    ) -> "OperationResult":
        return cls(status=ResultStatus.REJECTED, reason=reason, issues=issues or [])

    @classmethod
    def not_found(cls, reason: str) -> "OperationResult":
        return cls(status=ResultStatus.NOT_FOUND, reason=reason)

    @classmethod
    def io_failure(cls, reason: str) -> "OperationResult":
        return cls(status=ResultStatus.IO_FAILURE, reason=reason)

    @classmethod
    def corrupt(cls, reason: str) -> "OperationResult":
        return cls(status=ResultStatus.CORRUPT_DOCUMENT, reason=reason)
