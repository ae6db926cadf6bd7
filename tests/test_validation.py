"""
Tests for account field validation and settings.
"""

import pytest
from datetime import date, timedelta

from pydantic import ValidationError

from coinue.config import AccountPolicySettings, StorageSettings, get_settings, validate_all_settings
from coinue.models import Account, ValidationIssue
from coinue.validation import AccountValidator


class TestPasswordPolicy:
    """Tests for the password strength policy."""

    @pytest.mark.parametrize("password", ["Passw0rd", "abc123", "x" * 49 + "1"])
    def test_accepts_strong_passwords(self, validator, password):
        """Test passwords inside the bounds with a letter and a digit pass."""
        assert validator.validate_password(password) == []

    @pytest.mark.parametrize("password,issue_type", [
        (None, "missing"),
        ("", "missing"),
        ("ab1", "invalid_length"),
        ("a1" * 26, "invalid_length"),
        ("abcdefgh", "too_weak"),
        ("12345678", "too_weak"),
    ])
    def test_rejects_weak_passwords(self, validator, password, issue_type):
        """Test each policy rule produces its own issue."""
        issues = validator.validate_password(password)
        assert issue_type in {issue.issue_type for issue in issues}

    def test_policy_follows_settings(self):
        """Test the length bounds come from the settings."""
        validator = AccountValidator(AccountPolicySettings(
            password_min_length=10,
            password_max_length=12,
        ))
        assert validator.validate_password("Passw0rd") != []
        assert validator.validate_password("Passw0rd12") == []


class TestFieldValidation:
    """Tests for the other account fields."""

    def test_valid_account(self, validator, make_account):
        """Test a complete account has no issues."""
        assert validator.validate_fields(make_account()) == []

    def test_skip_password_check(self, validator, make_account):
        """Test the password can be left out of the check."""
        assert validator.validate_fields(make_account(password=None), check_password=False) == []

    @pytest.mark.parametrize("username", [" alice", "alice ", "a/b", "a\\b", "..", "x@y"])
    def test_bad_usernames(self, validator, username):
        """Test usernames unusable as a directory name are rejected."""
        issues = validator.validate_username(username)
        assert issues and issues[0].issue_type == "invalid_format"

    @pytest.mark.parametrize("email", ["plain", "a@b", "a b@x.com", "@x.com"])
    def test_bad_emails(self, validator, email):
        """Test malformed emails are rejected."""
        assert validator.validate_email(email)[0].issue_type == "invalid_format"

    def test_future_birthday(self, validator, make_account):
        """Test a birthday in the future is rejected."""
        account = make_account(birthday=date.today() + timedelta(days=1))
        issues = validator.validate_fields(account)
        assert [issue.issue_type for issue in issues] == ["future_date"]

    def test_collects_every_issue(self, validator):
        """Test an empty account reports every missing field at once."""
        fields = {issue.field for issue in validator.validate_fields(Account())}
        assert fields == {
            "username", "email", "password",
            "security_question", "security_answer", "birthday",
        }


class TestSummaries:
    """Tests for human-readable summaries."""

    def test_summarize(self):
        """Test the one-line summary joins messages."""
        issues = [
            ValidationIssue(field="a", issue_type="missing", message="A is required"),
            ValidationIssue(field="b", issue_type="missing", message="B is required"),
        ]
        assert AccountValidator.summarize(issues) == "A is required; B is required"

    def test_user_friendly_summary(self, validator):
        """Test the form summary includes suggested fixes."""
        summary = validator.get_user_friendly_summary(validator.validate_password("abcdefgh"))
        assert "letter and one digit" in summary
        assert "Passw0rd" in summary

    def test_user_friendly_summary_no_issues(self, validator):
        """Test the all-clear message."""
        assert "good" in validator.get_user_friendly_summary([])


class TestSettings:
    """Tests for settings validation."""

    def test_storage_paths(self, tmp_path):
        """Test derived paths."""
        settings = StorageSettings(data_dir=tmp_path)
        assert settings.registry_path == tmp_path / "users.json"
        assert settings.users_root == tmp_path / "users"
        assert settings.exports_root == tmp_path / "exports"

    def test_storage_names_are_single_components(self, tmp_path):
        """Test a directory name with a separator is refused."""
        with pytest.raises(ValidationError):
            StorageSettings(data_dir=tmp_path, exports_dirname="../elsewhere")

    def test_length_bounds_are_ordered(self):
        """Test max length below min length is refused."""
        with pytest.raises(ValidationError):
            AccountPolicySettings(password_min_length=10, password_max_length=5)

    def test_unknown_hasher_refused(self):
        """Test the hasher name is restricted."""
        with pytest.raises(ValidationError):
            AccountPolicySettings(password_hasher="md5")

    def test_validate_all_settings_reports_bad_section(self, monkeypatch):
        """Test a bad environment value marks only its section invalid."""
        monkeypatch.setenv("COINUE_EXPORT_RETENTION_DAYS", "0")
        get_settings.cache_clear()
        try:
            results = validate_all_settings()
        finally:
            get_settings.cache_clear()
        assert results["storage"] is True
        assert results["export"] is False
        assert "export_error" in results
