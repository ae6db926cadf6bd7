"""
Account Index

The authoritative registry of user accounts, held in memory as two maps
(username -> Account, email -> Account) and mirrored to the registry
file on every change.

GUARANTEES:
- At most one account per username, at most one per non-null email
- The maps and the registry file change together: a mutation builds
  candidate maps, writes them, and only swaps them in once the write
  succeeded. A failed write leaves both the file and the maps as they were.
- Readers never see a half-applied mutation (reader/writer lock)
- Callers get copies; editing a returned Account changes nothing

Passwords are hashed by the injected PasswordHasher before they reach
the maps or the file.
"""

from typing import Optional

import structlog

from coinue.accounts.locking import ReadWriteLock
from coinue.audit.logger import AuditLogger
from coinue.models.account import Account
from coinue.models.results import OperationResult, ValidationIssue
from coinue.services.security import PasswordHasher, WerkzeugPasswordHasher
from coinue.services.storage import AccountRegistryStorageInterface, StorageError
from coinue.validation import AccountValidator


logger = structlog.get_logger(__name__)


def _is_email(identifier: str) -> bool:
    return "@" in identifier


class AccountIndex:
    """
    Dual-keyed account registry.

    Built once from the registry storage at construction.

    Raises (constructor only):
        RegistryLoadError: If the registry file exists but is unreadable.
                           Starting empty would overwrite it on the next
                           registration.
        StorageError: On disk errors reading the registry
    """

    def __init__(
        self,
        storage: AccountRegistryStorageInterface,
        validator: Optional[AccountValidator] = None,
        hasher: Optional[PasswordHasher] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or AccountValidator()
        self._hasher = hasher or WerkzeugPasswordHasher()
        self._audit_logger = audit_logger
        self._lock = ReadWriteLock()
        self._by_username: dict[str, Account] = {}
        self._by_email: dict[str, Account] = {}
        self._load()

    def _load(self) -> None:
        accounts = self._storage.read_all()
        for account in accounts:
            if not account.username:
                logger.warning("registry_entry_without_username", registry=str(self._storage.location))
                continue
            if account.username in self._by_username:
                logger.warning("registry_duplicate_username", username=account.username)
                continue
            self._by_username[account.username] = account
            if account.email is not None:
                self._by_email.setdefault(account.email, account)

        logger.info(
            "account_registry_loaded",
            registry=str(self._storage.location),
            accounts=len(self._by_username),
        )

    # =========================================================================
    # READS
    # =========================================================================

    def _resolve(self, identifier: str) -> Optional[Account]:
        """Caller must hold the lock."""
        if _is_email(identifier):
            return self._by_email.get(identifier)
        return self._by_username.get(identifier)

    def find_by_identifier(self, identifier: Optional[str]) -> Optional[Account]:
        """
        Look up an account by email (identifier contains '@') or username.
        """
        if not identifier:
            return None
        with self._lock.read_locked():
            account = self._resolve(identifier)
            return account.model_copy(deep=True) if account else None

    def get_by_username(self, username: str) -> Optional[Account]:
        with self._lock.read_locked():
            account = self._by_username.get(username)
            return account.model_copy(deep=True) if account else None

    def get_by_email(self, email: str) -> Optional[Account]:
        with self._lock.read_locked():
            account = self._by_email.get(email)
            return account.model_copy(deep=True) if account else None

    def usernames(self) -> list[str]:
        with self._lock.read_locked():
            return list(self._by_username)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._by_username)

    def __contains__(self, username: object) -> bool:
        with self._lock.read_locked():
            return username in self._by_username

    def validate_login(
        self,
        identifier: Optional[str],
        password: Optional[str],
    ) -> Optional[Account]:
        """
        Check credentials.

        Returns:
            A copy of the account if the password matches, None otherwise
        """
        account = None
        if identifier and password is not None:
            with self._lock.read_locked():
                candidate = self._resolve(identifier)
                if candidate is not None and self._hasher.verify(candidate.password, password):
                    account = candidate.model_copy(deep=True)

        if self._audit_logger:
            self._audit_logger.log_login(identifier or "", account.username if account else None)
        return account

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def _commit(
        self,
        by_username: dict[str, Account],
        by_email: dict[str, Account],
        username: Optional[str],
    ) -> OperationResult:
        """
        Persist candidate maps and swap them in. Caller holds the write lock.
        """
        try:
            self._storage.write_all(list(by_username.values()))
        except StorageError as e:
            logger.error(
                "account_registry_write_failed",
                username=username,
                registry=str(self._storage.location),
                error=str(e),
            )
            if self._audit_logger:
                self._audit_logger.log_storage_failure(username, None, "write registry", str(e))
            return OperationResult.io_failure(f"Could not save the account registry: {e}")

        self._by_username = by_username
        self._by_email = by_email
        return OperationResult.success()

    def _reject(
        self,
        username: Optional[str],
        operation: str,
        issues: list[ValidationIssue],
    ) -> OperationResult:
        reason = AccountValidator.summarize(issues)
        if self._audit_logger:
            self._audit_logger.log_account_rejected(username, operation, reason)
        return OperationResult.rejected(reason, issues)

    def register(self, account: Optional[Account]) -> OperationResult:
        """
        Register a new account.

        `account.password` is the raw password; it is hashed before storage.

        Returns:
            OK with a copy of the stored account, REJECTED, or IO_FAILURE
        """
        if account is None:
            return OperationResult.rejected("No account supplied")

        issues = self._validator.validate_fields(account)
        if issues:
            return self._reject(account.username, "register", issues)

        with self._lock.write_locked():
            if account.username in self._by_username:
                return self._reject(account.username, "register", [ValidationIssue(
                    field="username",
                    issue_type="duplicate",
                    message=f"Username '{account.username}' is already taken",
                )])
            if account.email in self._by_email:
                return self._reject(account.username, "register", [ValidationIssue(
                    field="email",
                    issue_type="duplicate",
                    message=f"Email '{account.email}' is already registered",
                )])

            stored = account.model_copy(update={"password": self._hasher.hash(account.password)})
            by_username = {**self._by_username, stored.username: stored}
            by_email = {**self._by_email, stored.email: stored}

            result = self._commit(by_username, by_email, stored.username)
            if not result.ok:
                return result

        if self._audit_logger:
            self._audit_logger.log_account_registered(stored.username)
        return OperationResult.success(stored.model_copy(deep=True))

    def update(self, account: Optional[Account]) -> OperationResult:
        """
        Update profile fields of an existing account.

        A None password keeps the stored hash; any other value is
        strength-checked and hashed.

        Returns:
            OK with a copy of the stored account, NOT_FOUND, REJECTED,
            or IO_FAILURE
        """
        if account is None:
            return OperationResult.rejected("No account supplied")

        change_password = account.password is not None
        issues = self._validator.validate_fields(account, check_password=change_password)
        if issues:
            return self._reject(account.username, "update", issues)

        with self._lock.write_locked():
            old = self._by_username.get(account.username)
            if old is None:
                return OperationResult.not_found(f"No account named '{account.username}'")

            holder = self._by_email.get(account.email)
            if holder is not None and holder.username != account.username:
                return self._reject(account.username, "update", [ValidationIssue(
                    field="email",
                    issue_type="duplicate",
                    message=f"Email '{account.email}' is already registered",
                )])

            password = self._hasher.hash(account.password) if change_password else old.password
            stored = account.model_copy(update={"password": password})

            # Drop the old email key before adding the new one
            by_email = dict(self._by_email)
            if old.email is not None:
                by_email.pop(old.email, None)
            by_email[stored.email] = stored
            by_username = {**self._by_username, stored.username: stored}

            result = self._commit(by_username, by_email, stored.username)
            if not result.ok:
                return result

        if self._audit_logger:
            self._audit_logger.log_account_updated(stored.username, old.email != stored.email)
        return OperationResult.success(stored.model_copy(deep=True))

    def reset_password(
        self,
        email: Optional[str],
        security_answer: Optional[str],
        new_password: Optional[str],
    ) -> OperationResult:
        """
        Reset a password after checking the security answer.

        The account is resolved by email only.

        Returns:
            OK, NOT_FOUND, REJECTED (wrong answer or weak password),
            or IO_FAILURE
        """
        with self._lock.write_locked():
            account = self._by_email.get(email) if email else None
            if account is None:
                if self._audit_logger:
                    self._audit_logger.log_password_reset_rejected(email or "", "unknown email")
                return OperationResult.not_found(f"No account with email '{email}'")

            if security_answer is None or account.security_answer != security_answer:
                if self._audit_logger:
                    self._audit_logger.log_password_reset_rejected(email, "wrong security answer")
                return OperationResult.rejected("Security answer does not match", [ValidationIssue(
                    field="security_answer",
                    issue_type="mismatch",
                    message="Security answer does not match",
                )])

            issues = self._validator.validate_password(new_password)
            if issues:
                if self._audit_logger:
                    self._audit_logger.log_password_reset_rejected(email, "weak password")
                return OperationResult.rejected(AccountValidator.summarize(issues), issues)

            stored = account.model_copy(update={"password": self._hasher.hash(new_password)})
            by_username = {**self._by_username, stored.username: stored}
            by_email = {**self._by_email, email: stored}

            result = self._commit(by_username, by_email, stored.username)
            if not result.ok:
                return result

        if self._audit_logger:
            self._audit_logger.log_password_reset(stored.username)
        return OperationResult.success()

    def remove(self, username: str) -> OperationResult:
        """
        Remove an account from the registry.

        Only the bulk purge flow calls this; it also removes the user's
        partitions.
        """
        with self._lock.write_locked():
            old = self._by_username.get(username)
            if old is None:
                return OperationResult.not_found(f"No account named '{username}'")

            by_username = {k: v for k, v in self._by_username.items() if k != username}
            by_email = {k: v for k, v in self._by_email.items() if v.username != username}

            result = self._commit(by_username, by_email, username)
            if not result.ok:
                return result

        if self._audit_logger:
            self._audit_logger.log_account_removed(username)
        return OperationResult.success(old.model_copy(deep=True))
