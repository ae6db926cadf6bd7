"""Validation package."""

from coinue.validation.validator import EMAIL_PATTERN, AccountValidator

__all__ = ["AccountValidator", "EMAIL_PATTERN"]
