"""
Account Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - FIELD VALIDATION (no registry access):
- Required field presence
- Username usable as a directory name
- Email format
- Password strength policy
- Security question / answer, birthday

STAGE 2 - UNIQUENESS (needs the registry):
- Username not taken
- Email not taken by another account
  This stage runs inside the AccountIndex under its write lock, so it
  lives there rather than here.

IMPORTANT: Validation NEVER silently fixes issues. A bad value becomes a
ValidationIssue and the whole operation is REJECTED.
"""

import re
from datetime import date
from typing import Optional

from coinue.config import AccountPolicySettings, get_settings
from coinue.models.account import Account
from coinue.models.results import ValidationIssue


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_FORBIDDEN_USERNAME_CHARS = ("/", "\\", "@", "\x00")


class AccountValidator:
    """
    Validates account fields and passwords.

    The password policy (length bounds, at least one letter and one
    digit) is shared by registration, profile update and password reset.
    """

    def __init__(self, settings: Optional[AccountPolicySettings] = None):
        self._settings = settings or get_settings().accounts

    def validate_password(self, password: Optional[str]) -> list[ValidationIssue]:
        """
        Check a raw password against the strength policy.

        Returns: list of issues, empty if the password is acceptable
        """
        min_length = self._settings.password_min_length
        max_length = self._settings.password_max_length

        if not password:
            return [ValidationIssue(
                field="password",
                issue_type="missing",
                message="Password is required",
            )]

        issues = []
        if not min_length <= len(password) <= max_length:
            issues.append(ValidationIssue(
                field="password",
                issue_type="invalid_length",
                message=f"Password must be {min_length} to {max_length} characters long",
            ))
        if not any(c.isalpha() for c in password) or not any(c.isdigit() for c in password):
            issues.append(ValidationIssue(
                field="password",
                issue_type="too_weak",
                message="Password must contain at least one letter and one digit",
                suggested_fix="Mix letters and numbers, e.g. 'Passw0rd'",
            ))
        return issues

    def validate_username(self, username: Optional[str]) -> list[ValidationIssue]:
        if username is None or not username.strip():
            return [ValidationIssue(
                field="username",
                issue_type="missing",
                message="Username is required",
            )]
        if (
            username != username.strip()
            or username in {".", ".."}
            or any(c in username for c in _FORBIDDEN_USERNAME_CHARS)
        ):
            return [ValidationIssue(
                field="username",
                issue_type="invalid_format",
                message="Username cannot contain '@', slashes or surrounding spaces",
            )]
        return []

    def validate_email(self, email: Optional[str]) -> list[ValidationIssue]:
        if email is None or not email.strip():
            return [ValidationIssue(
                field="email",
                issue_type="missing",
                message="Email is required",
            )]
        if not EMAIL_PATTERN.match(email):
            return [ValidationIssue(
                field="email",
                issue_type="invalid_format",
                message=f"'{email}' is not a valid email address",
            )]
        return []

    def validate_fields(
        self,
        account: Account,
        check_password: bool = True,
    ) -> list[ValidationIssue]:
        """
        Stage 1: field validation.

        Args:
            account: The submitted account (raw password)
            check_password: False when a profile update keeps the old password

        Returns: list of issues, empty if every field is acceptable
        """
        issues = []
        issues.extend(self.validate_username(account.username))
        issues.extend(self.validate_email(account.email))

        if check_password:
            issues.extend(self.validate_password(account.password))

        if not (account.security_question or "").strip():
            issues.append(ValidationIssue(
                field="security_question",
                issue_type="missing",
                message="Security question is required",
            ))
        if not (account.security_answer or "").strip():
            issues.append(ValidationIssue(
                field="security_answer",
                issue_type="missing",
                message="Security answer is required",
            ))

        if account.birthday is None:
            issues.append(ValidationIssue(
                field="birthday",
                issue_type="missing",
                message="Birthday is required",
            ))
        elif account.birthday > date.today():
            issues.append(ValidationIssue(
                field="birthday",
                issue_type="future_date",
                message=f"Birthday ({account.birthday}) is in the future",
            ))

        return issues

    @staticmethod
    def summarize(issues: list[ValidationIssue]) -> str:
        """One-line reason for a REJECTED result."""
        return "; ".join(issue.message for issue in issues)

    def get_user_friendly_summary(self, issues: list[ValidationIssue]) -> str:
        """
        Multi-line summary for the registration and profile forms.
        """
        if not issues:
            return "✅ All details look good."

        lines = ["❌ Please fix the following:"]
        for issue in issues:
            lines.append(f"   • {issue.message}")
            if issue.suggested_fix:
                lines.append(f"     💡 {issue.suggested_fix}")
        return "\n".join(lines)
