"""Services package."""

from coinue.services.security import (
    PasswordHasher,
    PlaintextHasher,
    WerkzeugPasswordHasher,
    get_password_hasher,
)
from coinue.services.storage import (
    AccountRegistryStorageInterface,
    AtomicFileWriter,
    AtomicWriteError,
    CorruptDocumentError,
    DocumentStoreInterface,
    InvalidKeyError,
    JsonAccountRegistry,
    JsonDocumentStore,
    NotFoundError,
    RegistryLoadError,
    StorageError,
)

__all__ = [
    # Security services
    "PasswordHasher",
    "PlaintextHasher",
    "WerkzeugPasswordHasher",
    "get_password_hasher",
    # Storage services
    "AccountRegistryStorageInterface",
    "AtomicFileWriter",
    "AtomicWriteError",
    "CorruptDocumentError",
    "DocumentStoreInterface",
    "InvalidKeyError",
    "JsonAccountRegistry",
    "JsonDocumentStore",
    "NotFoundError",
    "RegistryLoadError",
    "StorageError",
]
