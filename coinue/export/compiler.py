"""
Export Compiler

Flattens one user's partitions into a sectioned CSV document and writes
it to the export directory.

A complete export always contains seven sections in this order:

    Account Information    from the account itself
    Bill Payment Data      bill_data.json
    Financial Analysis     analysis_data.json
    Expense Records        expense_data.json
    Budget Data            budget_data.json (opaque, one JSON cell)
    User Settings          settings.json
    Export Summary         computed

DESIGN DECISION: A complete export degrades, a single-purpose export
fails. When a partition is absent or cannot be parsed, the complete
export writes a placeholder row for that section, records a warning and
carries on. A bill-only or analysis-only export has nothing meaningful
to write without its one partition, so it returns NOT_FOUND or
CORRUPT_DOCUMENT and creates no file.

A disk-level failure (IO_FAILURE) aborts any export.

Files are written with the same write-then-replace discipline as the
JSON documents, so a file matching the export name pattern is always
complete.
"""

import re
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Optional

import structlog

from coinue.audit.logger import AuditLogger
from coinue.config.settings import ExportSettings, StorageSettings
from coinue.export.csv_format import (
    SectionWriter,
    format_amount,
    format_date,
    format_percentage,
    format_setting,
    to_compact_json,
)
from coinue.models.account import Account
from coinue.models.partitions import (
    ExpenseData,
    UserAnalysisData,
    UserBillData,
    percentage_of,
)
from coinue.models.results import OperationResult, ResultStatus
from coinue.partitions import PartitionManager
from coinue.services.storage import (
    AtomicFileWriter,
    AtomicWriteError,
    DocumentStoreInterface,
    InvalidKeyError,
    check_path_component,
)


logger = structlog.get_logger(__name__)


# =============================================================================
# LAYOUT
# =============================================================================

ACCOUNT_SECTION = "Account Information"
BILL_SECTION = "Bill Payment Data"
ANALYSIS_SECTION = "Financial Analysis"
EXPENSE_SECTION = "Expense Records"
BUDGET_SECTION = "Budget Data"
SETTINGS_SECTION = "User Settings"
SUMMARY_SECTION = "Export Summary"

SECTION_ORDER = (
    ACCOUNT_SECTION,
    BILL_SECTION,
    ANALYSIS_SECTION,
    EXPENSE_SECTION,
    BUDGET_SECTION,
    SETTINGS_SECTION,
    SUMMARY_SECTION,
)

PLACEHOLDER_LABELS = {
    BILL_SECTION: "Bill data",
    ANALYSIS_SECTION: "Analysis data",
    EXPENSE_SECTION: "Expense records",
    BUDGET_SECTION: "Budget data",
    SETTINGS_SECTION: "User settings",
}

KIND_COMPLETE = "complete_data"
KIND_BILL = "bill_data"
KIND_ANALYSIS = "analysis_data"

# Matches finished exports only; temp files start with '.' and end in .tmp
EXPORT_FILE_PATTERN = re.compile(
    r"^[^.].*_(?:complete_data|bill_data|analysis_data)_\d[\d_]*\.csv$"
)

SUMMARY_NOTE = "This file contains a complete export of the user's financial data"


class ExportCompiler:
    """
    Builds and writes CSV exports for one data directory.

    `clock` returns the current datetime; it drives file names, the
    export date cells and the retention cutoff.
    """

    def __init__(
        self,
        partitions: PartitionManager,
        store: DocumentStoreInterface,
        settings: ExportSettings,
        storage_settings: StorageSettings,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
        writer: Optional[AtomicFileWriter] = None,
    ):
        self._partitions = partitions
        self._store = store
        self._settings = settings
        self._export_dir = storage_settings.exports_root
        self._audit_logger = audit_logger
        self._clock = clock or datetime.now
        self._writer = writer or AtomicFileWriter()
        self._name_lock = threading.Lock()

    @property
    def export_directory(self) -> Path:
        return self._export_dir

    # =========================================================================
    # PUBLIC OPERATIONS
    # =========================================================================

    def export_complete(self, account: Optional[Account]) -> OperationResult:
        """
        Export everything stored for `account`.

        Returns:
            OK with the file Path (warnings name degraded sections),
            REJECTED for a missing/invalid account, or IO_FAILURE
        """
        username, rejection = self._check_account(account, KIND_COMPLETE)
        if rejection:
            return rejection

        loaded: dict[str, OperationResult] = {
            BILL_SECTION: self._partitions.load_bills(username),
            ANALYSIS_SECTION: self._partitions.load_analysis(username),
            EXPENSE_SECTION: self._partitions.load_expenses(username),
            BUDGET_SECTION: self._partitions.load_budget(username),
            SETTINGS_SECTION: self._partitions.load_settings(username),
        }

        for section, result in loaded.items():
            if result.status == ResultStatus.IO_FAILURE:
                return self._fail(username, KIND_COMPLETE, f"{section}: {result.reason}")

        warnings: list[str] = []
        for section, result in loaded.items():
            if result.status in (ResultStatus.NOT_FOUND, ResultStatus.CORRUPT_DOCUMENT):
                self._degrade(username, section, result, warnings)

        today = self._clock().date()
        out = SectionWriter(self._settings.placeholder)

        self._write_account_section(out, account, today)
        self._write_bill_section(out, loaded[BILL_SECTION].value_or(None))
        self._write_analysis_section(out, loaded[ANALYSIS_SECTION].value_or(None))
        self._write_expense_section(out, loaded[EXPENSE_SECTION].value_or(None))
        self._write_budget_section(out, loaded[BUDGET_SECTION].value_or(None))
        self._write_settings_section(out, loaded[SETTINGS_SECTION].value_or(None))
        self._write_summary_section(out, username, today)

        return self._write(username, KIND_COMPLETE, out.getvalue(), warnings)

    def export_bill_only(self, account: Optional[Account]) -> OperationResult:
        """
        Export the Bill Payment Data section alone.

        Returns:
            OK with the file Path, REJECTED, NOT_FOUND (no bill data),
            CORRUPT_DOCUMENT, or IO_FAILURE
        """
        username, rejection = self._check_account(account, KIND_BILL)
        if rejection:
            return rejection

        result = self._partitions.load_bills(username)
        if not result.ok:
            return self._single_failure(username, KIND_BILL, result)

        out = SectionWriter(self._settings.placeholder)
        self._write_bill_section(out, result.value)
        return self._write(username, KIND_BILL, out.getvalue(), [])

    def export_analysis_only(self, account: Optional[Account]) -> OperationResult:
        """
        Export the Financial Analysis section alone.

        Returns:
            OK with the file Path, REJECTED, NOT_FOUND (no analysis data),
            CORRUPT_DOCUMENT, or IO_FAILURE
        """
        username, rejection = self._check_account(account, KIND_ANALYSIS)
        if rejection:
            return rejection

        result = self._partitions.load_analysis(username)
        if not result.ok:
            return self._single_failure(username, KIND_ANALYSIS, result)

        out = SectionWriter(self._settings.placeholder)
        self._write_analysis_section(out, result.value)
        return self._write(username, KIND_ANALYSIS, out.getvalue(), [])

    def cleanup_old_exports(self, retention: Optional[timedelta] = None) -> OperationResult:
        """
        Delete exports whose modification time is older than `retention`.

        Only completed export files are considered. A file that cannot be
        deleted is logged and skipped.

        Returns:
            OK with the list of deleted paths, or IO_FAILURE if the
            export directory cannot be listed
        """
        if retention is None:
            retention = timedelta(days=self._settings.retention_days)
        cutoff = (self._clock() - retention).timestamp()

        if not self._export_dir.is_dir():
            return OperationResult.success([])

        try:
            candidates = [
                entry for entry in self._export_dir.iterdir()
                if EXPORT_FILE_PATTERN.match(entry.name) and entry.is_file()
            ]
        except OSError as e:
            logger.error("export_cleanup_failed", directory=str(self._export_dir), error=str(e))
            return OperationResult.io_failure(f"Cannot list {self._export_dir}: {e}")

        deleted: list[Path] = []
        failed = 0
        for path in sorted(candidates):
            try:
                if path.stat().st_mtime >= cutoff:
                    continue
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                failed += 1
                logger.warning("export_cleanup_skipped", path=str(path), error=str(e))
                continue
            deleted.append(path)
            logger.debug("export_deleted", path=str(path))

        logger.info(
            "exports_cleaned",
            deleted=len(deleted),
            failed=failed,
            retention_days=retention.total_seconds() / 86400,
        )
        if self._audit_logger:
            self._audit_logger.log_exports_cleaned(
                len(deleted), failed, retention.total_seconds() / 86400
            )
        return OperationResult.success(deleted)

    # =========================================================================
    # SECTIONS
    # =========================================================================

    def _write_account_section(self, out: SectionWriter, account: Account, today) -> None:
        date_format = self._settings.date_format
        out.header(ACCOUNT_SECTION)
        out.row("Data type", "Field", "Value")
        out.rows([
            ("Account", "Username", account.username),
            ("Account", "Email", account.email),
            ("Account", "Birthday", format_date(account.birthday, date_format)),
            ("Account", "Security question", account.security_question),
            ("Account", "Export date", format_date(today, date_format)),
        ])
        out.blank()

    def _write_bill_section(self, out: SectionWriter, data: Optional[UserBillData]) -> None:
        date_format = self._settings.date_format
        out.header(BILL_SECTION)
        if data is None:
            out.placeholder(PLACEHOLDER_LABELS[BILL_SECTION])
            out.blank()
            return

        out.row(
            "Data type", "Credit limit", "Record count",
            "Total repayment", "Credit usage", "Last updated",
        )
        out.row(
            "Bill summary",
            format_amount(data.credit_limit),
            len(data.bill_records),
            format_amount(data.total_repayment_amount),
            format_percentage(data.credit_usage_percentage),
            format_date(data.updated_date, date_format),
        )
        out.blank()
        out.title("Bill records:")
        out.row("Date", "Description", "Amount", "Status")
        for record in data.bill_records:
            out.row(
                format_date(record.date, date_format),
                record.description,
                format_amount(record.amount),
                record.status,
            )
        out.blank()

    def _write_analysis_section(self, out: SectionWriter, data: Optional[UserAnalysisData]) -> None:
        out.header(ANALYSIS_SECTION)
        if data is None:
            out.placeholder(PLACEHOLDER_LABELS[ANALYSIS_SECTION])
            out.blank()
            return

        out.row(
            "Data type", "Total expenses", "Total income",
            "Savings rate", "Top expense category", "Last analysis",
        )
        out.row(
            "Analysis summary",
            format_amount(data.total_expenses),
            format_amount(data.total_income),
            format_percentage(data.savings_rate),
            data.top_expense_category or "",
            format_date(data.last_analysis_date, self._settings.date_format),
        )

        out.blank()
        out.title("Category expenses:")
        out.row("Category", "Amount", "Share")
        for category, amount in data.category_expenses.items():
            out.row(
                category,
                format_amount(amount),
                format_percentage(percentage_of(amount, data.total_expenses)),
            )

        out.blank()
        out.title("Budget usage:")
        out.row("Category", "Budget limit", "Actual spent", "Remaining", "Usage")
        for category, usage in data.budget_usage.items():
            out.row(
                category,
                format_amount(usage.budget_limit),
                format_amount(usage.actual_spent),
                format_amount(usage.remaining_budget),
                format_percentage(percentage_of(usage.actual_spent, usage.budget_limit)),
            )
        out.blank()

    def _write_expense_section(self, out: SectionWriter, data: Optional[ExpenseData]) -> None:
        out.header(EXPENSE_SECTION)
        if data is None or not data.records:
            out.placeholder(PLACEHOLDER_LABELS[EXPENSE_SECTION])
            out.blank()
            return

        date_format = self._settings.date_format
        out.title("Expense records:")
        out.row("Date", "Name", "Category", "Amount", "Type", "Currency", "Note")
        for record in data.records:
            out.row(
                format_date(record.date, date_format),
                record.name,
                record.category,
                format_amount(record.amount),
                record.record_type,
                record.currency,
                record.description or "",
            )

        total = data.total_amount
        out.blank()
        out.title("Expense statistics:")
        out.row("Item", "Value")
        out.row("Record count", len(data.records))
        out.row("Total amount", format_amount(total))

        out.blank()
        out.title("Category totals:")
        out.row("Category", "Amount", "Share")
        for category, amount in data.totals_by_category().items():
            out.row(
                category,
                format_amount(amount),
                format_percentage(percentage_of(amount, total)),
            )
        out.blank()

    def _write_budget_section(self, out: SectionWriter, data: Any) -> None:
        out.header(BUDGET_SECTION)
        if data is None:
            out.placeholder(PLACEHOLDER_LABELS[BUDGET_SECTION])
        else:
            out.title("Budget details:")
            out.row("Content", to_compact_json(data))
        out.blank()

    def _write_settings_section(self, out: SectionWriter, data: Optional[dict[str, Any]]) -> None:
        out.header(SETTINGS_SECTION)
        if not data:
            out.placeholder(PLACEHOLDER_LABELS[SETTINGS_SECTION])
        else:
            out.row("Setting", "Value")
            out.rows((key, format_setting(value)) for key, value in data.items())
        out.blank()

    def _write_summary_section(self, out: SectionWriter, username: str, today) -> None:
        out.header(SUMMARY_SECTION)
        out.row("Item", "Value")
        out.rows([
            ("Username", username),
            ("Export date", format_date(today, self._settings.date_format)),
            ("Exporter", self._settings.exporter_name),
            ("Data version", self._settings.data_version),
            ("Data file count", len(self._store.list_documents(username))),
            ("Note", SUMMARY_NOTE),
        ])

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _check_account(
        self,
        account: Optional[Account],
        kind: str,
    ) -> tuple[Optional[str], Optional[OperationResult]]:
        """Return (username, None) or (None, REJECTED result)."""
        if account is None or not account.username:
            reason = "Cannot export without an account and username"
        else:
            try:
                return check_path_component(account.username, "Username"), None
            except InvalidKeyError as e:
                reason = str(e)

        logger.warning("export_rejected", export_kind=kind, reason=reason)
        if self._audit_logger:
            self._audit_logger.log_export_failed(
                account.username if account else None, kind, reason
            )
        return None, OperationResult.rejected(reason)

    def _degrade(
        self,
        username: str,
        section: str,
        result: OperationResult,
        warnings: list[str],
    ) -> None:
        kind = "unreadable" if result.status == ResultStatus.CORRUPT_DOCUMENT else "absent"
        warnings.append(f"{section}: {kind}")
        if result.status == ResultStatus.CORRUPT_DOCUMENT:
            logger.warning(
                "export_section_degraded",
                username=username,
                section=section,
                reason=result.reason,
            )
            if self._audit_logger:
                self._audit_logger.log_export_section_degraded(username, section, result.reason or kind)
        else:
            logger.debug("export_section_empty", username=username, section=section)

    def _single_failure(self, username: str, kind: str, result: OperationResult) -> OperationResult:
        logger.info(
            "export_skipped",
            username=username,
            export_kind=kind,
            status=result.status.value,
            reason=result.reason,
        )
        if self._audit_logger:
            self._audit_logger.log_export_failed(username, kind, result.reason or result.status.value)
        return result

    def _fail(self, username: str, kind: str, reason: str) -> OperationResult:
        logger.error("export_failed", username=username, export_kind=kind, error=reason)
        if self._audit_logger:
            self._audit_logger.log_export_failed(username, kind, reason)
        return OperationResult.io_failure(f"Export failed: {reason}")

    def _target_path(self, username: str, kind: str) -> Path:
        """Caller holds the name lock."""
        stamp = self._clock().strftime(self._settings.timestamp_format)
        stem = f"{username}_{kind}_{stamp}"
        path = self._export_dir / f"{stem}.csv"
        counter = 1
        while path.exists():
            path = self._export_dir / f"{stem}_{counter}.csv"
            counter += 1
        return path

    def _write(
        self,
        username: str,
        kind: str,
        text: str,
        warnings: list[str],
    ) -> OperationResult:
        with self._name_lock:
            path = self._target_path(username, kind)
            try:
                self._writer.write_text(path, text)
            except AtomicWriteError as e:
                return self._fail(username, kind, str(e))

        logger.info(
            "export_completed",
            username=username,
            export_kind=kind,
            path=str(path),
            degraded_sections=warnings,
        )
        if self._audit_logger:
            self._audit_logger.log_export_completed(username, kind, str(path), warnings)
        return OperationResult.success(path, warnings)
