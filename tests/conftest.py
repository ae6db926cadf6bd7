"""
Shared fixtures.

Every component is built over pytest's tmp_path, so tests never touch
the real data directory or each other's files.
"""

from datetime import date, datetime

import pytest

from coinue.accounts import AccountIndex
from coinue.audit import AuditLogger
from coinue.config import AccountPolicySettings, ExportSettings, StorageSettings
from coinue.export import ExportCompiler
from coinue.models import Account
from coinue.partitions import PartitionManager
from coinue.services.security import WerkzeugPasswordHasher
from coinue.services.storage import JsonAccountRegistry, JsonDocumentStore
from coinue.validation import AccountValidator


FIXED_NOW = datetime(2024, 3, 15, 10, 30, 0)


@pytest.fixture
def storage_settings(tmp_path):
    return StorageSettings(data_dir=tmp_path / "data")


@pytest.fixture
def account_settings():
    return AccountPolicySettings(password_min_length=6, password_max_length=50)


@pytest.fixture
def export_settings():
    return ExportSettings(placeholder="no data")


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def registry(storage_settings):
    return JsonAccountRegistry(storage_settings)


@pytest.fixture
def validator(account_settings):
    return AccountValidator(account_settings)


@pytest.fixture
def account_index(registry, validator, audit_logger):
    return AccountIndex(
        registry,
        validator=validator,
        # Low iteration count keeps the many logins in the index tests fast
        hasher=WerkzeugPasswordHasher(method="pbkdf2:sha256:1000"),
        audit_logger=audit_logger,
    )


@pytest.fixture
def store(storage_settings, audit_logger):
    return JsonDocumentStore(storage_settings, audit_logger=audit_logger)


@pytest.fixture
def partitions(store):
    return PartitionManager(store)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def clock(fixed_now):
    return lambda: fixed_now


@pytest.fixture
def exporter(partitions, store, export_settings, storage_settings, audit_logger, clock):
    return ExportCompiler(
        partitions,
        store,
        export_settings,
        storage_settings,
        audit_logger=audit_logger,
        clock=clock,
    )


@pytest.fixture
def make_account():
    """Factory for a valid account; override any field by keyword."""
    def _make(**overrides) -> Account:
        fields = {
            "username": "alice",
            "email": "a@x.com",
            "password": "Passw0rd",
            "security_question": "Q",
            "security_answer": "A",
            "birthday": date(1990, 1, 1),
        }
        fields.update(overrides)
        return Account(**fields)
    return _make
