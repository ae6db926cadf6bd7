"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements local JSON files as the backend, but designed to be
swappable.
"""

from coinue.services.storage.interface import (
    AccountRegistryStorageInterface,
    AtomicWriteError,
    CorruptDocumentError,
    DocumentStoreInterface,
    InvalidKeyError,
    NotFoundError,
    RegistryLoadError,
    StorageError,
)
from coinue.services.storage.json_files import (
    AtomicFileWriter,
    JsonAccountRegistry,
    JsonDocumentStore,
    check_path_component,
    to_pretty_json,
)

__all__ = [
    # Interfaces
    "AccountRegistryStorageInterface",
    "DocumentStoreInterface",
    # Exceptions
    "AtomicWriteError",
    "CorruptDocumentError",
    "InvalidKeyError",
    "NotFoundError",
    "RegistryLoadError",
    "StorageError",
    # JSON file implementation
    "AtomicFileWriter",
    "JsonAccountRegistry",
    "JsonDocumentStore",
    "check_path_component",
    "to_pretty_json",
]
