"""
Component Wiring for Coinue

This module builds the persistence and export components and wires
them together:

    JsonAccountRegistry -> AccountIndex
    JsonDocumentStore   -> PartitionManager -> ExportCompiler

DESIGN DECISION: Components are constructed explicitly and handed to
the UI layer as one AppComponents bundle. Nothing in the package is a
module-level singleton, so tests can build as many independent
instances over temporary directories as they like.

It also defines the one flow that spans several components: purging a
user (partitions and registry entry).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import structlog

from coinue.accounts import AccountIndex
from coinue.audit import AuditLogger, configure_logging
from coinue.config import get_settings
from coinue.config.settings import (
    AccountPolicySettings,
    AppSettings,
    ExportSettings,
    StorageSettings,
)
from coinue.export import ExportCompiler
from coinue.models.results import OperationResult
from coinue.partitions import PartitionManager
from coinue.services.security import get_password_hasher
from coinue.services.storage import (
    AtomicFileWriter,
    JsonAccountRegistry,
    JsonDocumentStore,
)
from coinue.validation import AccountValidator


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AppComponents:
    """Everything the UI layer talks to."""

    accounts: AccountIndex
    store: JsonDocumentStore
    partitions: PartitionManager
    exporter: ExportCompiler
    audit_logger: AuditLogger


def create_app_components(
    storage_settings: Optional[StorageSettings] = None,
    account_settings: Optional[AccountPolicySettings] = None,
    export_settings: Optional[ExportSettings] = None,
    app_settings: Optional[AppSettings] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Any settings section not passed in is read from the environment
    (see coinue.config).

    Raises:
        RegistryLoadError: If the account registry exists but is unreadable
        StorageError: If the account registry cannot be read at all
    """
    settings = get_settings()
    storage_settings = storage_settings or settings.storage
    account_settings = account_settings or settings.accounts
    export_settings = export_settings or settings.export
    app_settings = app_settings or settings.app

    configure_logging(app_settings.log_level)

    audit_logger = AuditLogger()
    writer = AtomicFileWriter()

    store = JsonDocumentStore(storage_settings, writer=writer, audit_logger=audit_logger)
    accounts = AccountIndex(
        JsonAccountRegistry(storage_settings, writer=writer),
        validator=AccountValidator(account_settings),
        hasher=get_password_hasher(account_settings.password_hasher),
        audit_logger=audit_logger,
    )
    partitions = PartitionManager(store)
    exporter = ExportCompiler(
        partitions,
        store,
        export_settings,
        storage_settings,
        audit_logger=audit_logger,
        clock=clock,
        writer=writer,
    )

    logger.info(
        "app_components_created",
        data_dir=str(storage_settings.data_dir),
        environment=app_settings.app_environment,
        accounts=len(accounts),
    )

    return AppComponents(
        accounts=accounts,
        store=store,
        partitions=partitions,
        exporter=exporter,
        audit_logger=audit_logger,
    )


def purge_user(components: AppComponents, username: str) -> OperationResult:
    """
    Delete a user's partitions, then their registry entry.

    Partitions go first: if removing the account then fails, the user
    can still log in and nothing is orphaned on disk.

    Returns:
        OK with the removed Account (None if only data was present),
        NOT_FOUND if there was neither account nor data, REJECTED for an
        invalid username, or IO_FAILURE
    """
    purged = components.store.purge_user(username)
    if not purged.ok:
        return purged

    if username not in components.accounts:
        if purged.value:
            logger.warning("orphaned_user_data_purged", username=username)
            return OperationResult.success(None)
        return OperationResult.not_found(f"No account named '{username}'")

    return components.accounts.remove(username)
