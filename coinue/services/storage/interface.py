"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the JSON file backend for SQLite later
2. Use a failing or in-memory store in tests
3. Keep the account index and export compiler decoupled from paths

Two interfaces:
- DocumentStoreInterface: one JSON document per (user, partition file)
- AccountRegistryStorageInterface: the whole account registry as one unit

Document operations return OperationResult and never raise.
The registry storage raises StorageError subclasses; the AccountIndex
translates them into results.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from coinue.models.account import Account
from coinue.models.results import OperationResult


class DocumentStoreInterface(ABC):
    """
    Abstract interface for per-user document storage.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def save(self, username: str, partition_file: str, value: Any) -> OperationResult:
        """
        Save a document, replacing any existing one.

        Args:
            username: Owner of the document
            partition_file: File name of the partition, e.g. "bill_data.json"
            value: A pydantic model, a list/dict of models, or plain JSON data

        Returns:
            OK, REJECTED (bad username / partition name) or IO_FAILURE
        """
        pass

    @abstractmethod
    def load(self, username: str, partition_file: str, type_: Any = Any) -> OperationResult:
        """
        Load a document.

        Args:
            username: Owner of the document
            partition_file: File name of the partition
            type_: Type to validate the JSON against (anything TypeAdapter accepts)

        Returns:
            OK with the value, NOT_FOUND if the document does not exist,
            CORRUPT_DOCUMENT if it cannot be parsed, IO_FAILURE on disk errors
        """
        pass

    @abstractmethod
    def exists(self, username: str, partition_file: str) -> bool:
        """Check whether a document is stored."""
        pass

    @abstractmethod
    def delete(self, username: str, partition_file: str) -> OperationResult:
        """
        Delete a document.

        Deleting an absent document is OK, every time.
        """
        pass

    @abstractmethod
    def directory_for(self, username: str) -> OperationResult:
        """
        Get the user's data directory, creating it if needed.

        Returns:
            OK with a Path, REJECTED or IO_FAILURE
        """
        pass

    @abstractmethod
    def list_documents(self, username: str) -> list[str]:
        """File names of the documents stored for a user."""
        pass

    @abstractmethod
    def purge_user(self, username: str) -> OperationResult:
        """Remove every document of a user. Idempotent."""
        pass


class AccountRegistryStorageInterface(ABC):
    """
    Abstract interface for the account registry file.

    The registry is read once at startup and rewritten as a whole on
    every mutation.
    """

    @property
    @abstractmethod
    def location(self) -> Path:
        """Where the registry lives (for log messages)."""
        pass

    @abstractmethod
    def read_all(self) -> list[Account]:
        """
        Read every account.

        Returns:
            The accounts in stored order; an empty list if no registry exists

        Raises:
            RegistryLoadError: If the registry exists but cannot be parsed
            StorageError: On disk errors
        """
        pass

    @abstractmethod
    def write_all(self, accounts: list[Account]) -> None:
        """
        Replace the registry with `accounts`.

        Raises:
            StorageError: If the write fails (the old registry is kept)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class InvalidKeyError(StorageError):
    """A username or partition name that cannot be used as a path component."""
    pass


class CorruptDocumentError(StorageError):
    """A stored document exists but cannot be parsed."""
    pass


class RegistryLoadError(CorruptDocumentError):
    """The account registry exists but cannot be parsed."""
    pass


class AtomicWriteError(StorageError):
    """Writing or replacing a file failed; the previous file is untouched."""
    pass
