"""
JSON File Storage Implementation

DESIGN DECISION: Plain JSON files on the local disk are the storage
backend because:
1. The desktop client already wrote this layout (data/users.json,
   data/users/<username>/*.json)
2. No database setup required on a personal machine
3. Users can open and back up their own data

TRADEOFFS:
- The registry is rewritten as a whole on every change (fine for the
  handful of accounts on one machine)
- No transactions across documents (each file is replaced atomically
  on its own)

Every file is written to a temporary sibling, fsynced, then moved over
the target with os.replace. A crash mid-write leaves the previous
version in place, never a truncated file.
"""

import os
import shutil
import tempfile
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from coinue.audit.logger import AuditLogger
from coinue.config.settings import StorageSettings
from coinue.models.account import Account
from coinue.models.results import OperationResult
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


logger = structlog.get_logger(__name__)

TEMP_SUFFIX = ".tmp"

_ACCOUNT_LIST = TypeAdapter(list[Account])


@lru_cache(maxsize=64)
def _adapter(type_: Any) -> TypeAdapter:
    return TypeAdapter(type_)


def _decimals_to_numbers(value: Any) -> Any:
    """
    Replace Decimal inside plain dicts and lists with int or float.

    pydantic writes a bare Decimal as a JSON string, which an untyped
    load would hand back as str. Models are left alone: their fields
    are typed, so the string loads back as Decimal.
    """
    if isinstance(value, Decimal):
        if value.is_finite() and value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, dict):
        return {key: _decimals_to_numbers(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_decimals_to_numbers(item) for item in value]
    return value


def to_pretty_json(value: Any) -> bytes:
    """
    Serialize a model, a container of models or plain data.

    Output is indented by two spaces and uses the camelCase aliases.
    Decimal values in plain data become JSON numbers.
    """
    if isinstance(value, BaseModel):
        return value.model_dump_json(indent=2, by_alias=True).encode("utf-8")
    return _adapter(Any).dump_json(_decimals_to_numbers(value), indent=2, by_alias=True)


def check_path_component(name: Optional[str], what: str) -> str:
    """
    Validate a name that becomes a single path component.

    Raises:
        InvalidKeyError: For empty names, '.', '..' or names containing
                         a path separator or NUL
    """
    if name is None or not name.strip():
        raise InvalidKeyError(f"{what} must not be empty")
    if name in {".", ".."} or any(sep in name for sep in ("/", "\\", "\x00")):
        raise InvalidKeyError(f"{what} {name!r} is not a valid file name")
    return name


class AtomicFileWriter:
    """
    Low-level write-then-replace helper.

    Handles the temp file and provides retry logic for the final
    rename, which can fail transiently on Windows while a virus scanner
    or indexer holds the target open.
    """

    def write_text(self, path: Path, text: str, encoding: str = "utf-8") -> Path:
        return self.write_bytes(path, text.encode(encoding))

    def write_bytes(self, path: Path, data: bytes) -> Path:
        """
        Atomically replace `path` with `data`.

        Raises:
            AtomicWriteError: If any step fails; the target is untouched
                              and the temp file removed
        """
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=TEMP_SUFFIX,
            )
        except OSError as e:
            raise AtomicWriteError(f"Cannot create temporary file for {path}: {e}") from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            self._replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise AtomicWriteError(f"Failed to write {path}: {e}") from e

        return path

    @retry(
        retry=retry_if_exception_type(PermissionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
        reraise=True,
    )
    def _replace(self, source: Path, target: Path) -> None:
        os.replace(source, target)


class JsonDocumentStore(DocumentStoreInterface):
    """
    File-backed document store.

    Documents live at <users_root>/<username>/<partition_file>.
    User directories are created on first use.
    """

    def __init__(
        self,
        settings: StorageSettings,
        writer: Optional[AtomicFileWriter] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = settings
        self._writer = writer or AtomicFileWriter()
        self._audit_logger = audit_logger

    @property
    def root(self) -> Path:
        return self._settings.users_root

    def _user_dir(self, username: str) -> Path:
        return self.root / check_path_component(username, "Username")

    def _document_path(self, username: str, partition_file: str) -> Path:
        return self._user_dir(username) / check_path_component(partition_file, "Partition name")

    def _failure(
        self,
        username: Optional[str],
        partition: Optional[str],
        operation: str,
        error: Exception,
    ) -> OperationResult:
        logger.error(
            "storage_operation_failed",
            username=username,
            partition=partition,
            operation=operation,
            error=str(error),
        )
        if self._audit_logger:
            self._audit_logger.log_storage_failure(username, partition, operation, str(error))
        return OperationResult.io_failure(
            f"Could not {operation} {partition or 'data'} for {username}: {error}"
        )

    def directory_for(self, username: str) -> OperationResult:
        try:
            user_dir = self._user_dir(username)
        except InvalidKeyError as e:
            return OperationResult.rejected(str(e))

        try:
            user_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return self._failure(username, None, "create directory", e)
        return OperationResult.success(user_dir)

    def save(self, username: str, partition_file: str, value: Any) -> OperationResult:
        try:
            path = self._document_path(username, partition_file)
        except InvalidKeyError as e:
            return OperationResult.rejected(str(e))

        directory = self.directory_for(username)
        if not directory.ok:
            return directory

        try:
            payload = to_pretty_json(value)
        except PydanticSerializationError as e:
            return OperationResult.rejected(f"{partition_file} cannot be serialized: {e}")

        try:
            self._writer.write_bytes(path, payload)
        except AtomicWriteError as e:
            return self._failure(username, partition_file, "save", e)

        logger.debug("document_saved", username=username, partition=partition_file)
        if self._audit_logger:
            self._audit_logger.log_partition_saved(username, partition_file)
        return OperationResult.success(path)

    def load(self, username: str, partition_file: str, type_: Any = Any) -> OperationResult:
        try:
            path = self._document_path(username, partition_file)
            raw = self._read(path)
            value = self._parse(raw, type_, path)
        except InvalidKeyError as e:
            return OperationResult.rejected(str(e))
        except NotFoundError as e:
            logger.debug("document_absent", username=username, partition=partition_file)
            return OperationResult.not_found(str(e))
        except CorruptDocumentError as e:
            logger.warning(
                "document_corrupt",
                username=username,
                partition=partition_file,
                error=str(e),
            )
            return OperationResult.corrupt(str(e))
        except StorageError as e:
            return self._failure(username, partition_file, "load", e)

        return OperationResult.success(value)

    def _read(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise NotFoundError(f"{path.name} does not exist") from e
        except OSError as e:
            raise StorageError(f"Cannot read {path}: {e}") from e

    def _parse(self, raw: bytes, type_: Any, path: Path) -> Any:
        try:
            return _adapter(type_).validate_json(raw)
        except ValidationError as e:
            raise CorruptDocumentError(
                f"{path.name} is not a valid document: {e.error_count()} error(s), "
                f"first: {e.errors()[0]['msg']}"
            ) from e

    def exists(self, username: str, partition_file: str) -> bool:
        try:
            return self._document_path(username, partition_file).is_file()
        except InvalidKeyError:
            return False

    def delete(self, username: str, partition_file: str) -> OperationResult:
        try:
            path = self._document_path(username, partition_file)
        except InvalidKeyError as e:
            return OperationResult.rejected(str(e))

        existed = path.exists()
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            return self._failure(username, partition_file, "delete", e)

        if existed and self._audit_logger:
            self._audit_logger.log_partition_deleted(username, partition_file)
        return OperationResult.success(existed)

    def list_documents(self, username: str) -> list[str]:
        try:
            user_dir = self._user_dir(username)
        except InvalidKeyError:
            return []
        if not user_dir.is_dir():
            return []
        return sorted(
            entry.name
            for entry in user_dir.iterdir()
            if entry.is_file() and entry.suffix == ".json" and not entry.name.startswith(".")
        )

    def purge_user(self, username: str) -> OperationResult:
        try:
            user_dir = self._user_dir(username)
        except InvalidKeyError as e:
            return OperationResult.rejected(str(e))

        if not user_dir.exists():
            return OperationResult.success(False)

        try:
            shutil.rmtree(user_dir)
        except OSError as e:
            return self._failure(username, None, "purge", e)

        if self._audit_logger:
            self._audit_logger.log_user_data_purged(username)
        return OperationResult.success(True)


class JsonAccountRegistry(AccountRegistryStorageInterface):
    """
    The account registry as one pretty-printed JSON array.

    Reads and writes the full list; the AccountIndex keeps the in-memory
    maps and serializes access.
    """

    def __init__(
        self,
        settings: StorageSettings,
        writer: Optional[AtomicFileWriter] = None,
    ):
        self._path = settings.registry_path
        self._writer = writer or AtomicFileWriter()

    @property
    def location(self) -> Path:
        return self._path

    def read_all(self) -> list[Account]:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(f"Cannot read account registry {self._path}: {e}") from e

        try:
            return _ACCOUNT_LIST.validate_json(raw)
        except ValidationError as e:
            raise RegistryLoadError(
                f"Account registry {self._path} is not a valid account list: {e}"
            ) from e

    def write_all(self, accounts: list[Account]) -> None:
        payload = _ACCOUNT_LIST.dump_json(accounts, indent=2, by_alias=True)
        try:
            self._writer.write_bytes(self._path, payload)
        except AtomicWriteError as e:
            raise StorageError(f"Cannot write account registry: {e}") from e
