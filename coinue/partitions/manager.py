"""
Per-User Partition Manager

A typed facade over the document store. Each feature gets a stable,
named slot instead of passing file-name strings around:

    analysis  -> analysis_data.json  (UserAnalysisData)
    budget    -> budget_data.json    (opaque JSON)
    expense   -> expense_data.json   (ExpenseData)
    settings  -> settings.json       (dict[str, Any])
    bill      -> bill_data.json      (UserBillData)
    reminder  -> reminder_data.json  (list[PaymentReminder])

The budget partition stays opaque so the export can pass it through
verbatim; save_budgets / load_budgets read and write it as a list of
Budget for callers that use the typed form.

Anything else goes through save_custom / load_custom.

No invariants beyond the store's: each save replaces one file on its
own. Saving two partitions is two independent operations.
"""

from datetime import date
from typing import Any, Optional, Union

from coinue.models.partitions import (
    Budget,
    ExpenseData,
    ExpenseRecord,
    PartitionName,
    PaymentReminder,
    UserAnalysisData,
    UserBillData,
)
from coinue.models.results import OperationResult
from coinue.services.storage import DocumentStoreInterface, InvalidKeyError, check_path_component


SettingsMap = dict[str, Any]

PARTITION_TYPES: dict[PartitionName, Any] = {
    PartitionName.ANALYSIS: UserAnalysisData,
    PartitionName.BUDGET: Any,
    PartitionName.EXPENSE: ExpenseData,
    PartitionName.SETTINGS: SettingsMap,
    PartitionName.BILL: UserBillData,
    PartitionName.REMINDER: list[PaymentReminder],
}

_RESERVED_NAMES = {partition.value for partition in PartitionName}


class PartitionManager:
    """
    Named, typed partitions for one document store.
    """

    def __init__(self, store: DocumentStoreInterface):
        self._store = store

    @property
    def store(self) -> DocumentStoreInterface:
        return self._store

    def save(self, username: str, partition: PartitionName, value: Any) -> OperationResult:
        return self._store.save(username, partition.filename, value)

    def load(self, username: str, partition: PartitionName) -> OperationResult:
        """Load a well-known partition as its registered type."""
        return self._store.load(username, partition.filename, PARTITION_TYPES[partition])

    def has(self, username: str, partition: PartitionName) -> bool:
        return self._store.exists(username, partition.filename)

    def delete(self, username: str, partition: PartitionName) -> OperationResult:
        return self._store.delete(username, partition.filename)

    # Analysis

    def save_analysis(self, username: str, data: UserAnalysisData) -> OperationResult:
        return self.save(username, PartitionName.ANALYSIS, data)

    def load_analysis(self, username: str) -> OperationResult:
        return self.load(username, PartitionName.ANALYSIS)

    # Budget

    def save_budget(self, username: str, data: Any) -> OperationResult:
        return self.save(username, PartitionName.BUDGET, data)

    def load_budget(self, username: str) -> OperationResult:
        return self.load(username, PartitionName.BUDGET)

    def save_budgets(self, username: str, budgets: list[Budget]) -> OperationResult:
        """Store the budget partition as a JSON array of Budget objects."""
        return self.save(username, PartitionName.BUDGET, list(budgets))

    def load_budgets(self, username: str) -> OperationResult:
        """
        Load the budget partition as list[Budget].

        A partition holding some other JSON shape is CORRUPT_DOCUMENT
        here, while load_budget still returns it as is.
        """
        return self._store.load(username, PartitionName.BUDGET.filename, list[Budget])

    # Expense

    def save_expenses(
        self,
        username: str,
        data: Union[ExpenseData, list[ExpenseRecord]],
    ) -> OperationResult:
        if not isinstance(data, ExpenseData):
            data = ExpenseData(records=list(data))
        return self.save(username, PartitionName.EXPENSE, data)

    def load_expenses(self, username: str) -> OperationResult:
        return self.load(username, PartitionName.EXPENSE)

    # Settings

    def save_settings(self, username: str, settings: SettingsMap) -> OperationResult:
        return self.save(username, PartitionName.SETTINGS, settings)

    def load_settings(self, username: str) -> OperationResult:
        return self.load(username, PartitionName.SETTINGS)

    def load_settings_or_default(self, username: str) -> SettingsMap:
        """The saved settings, or an empty dict if absent or unreadable."""
        return self.load_settings(username).value_or({})

    # Bill

    def save_bills(self, username: str, data: UserBillData) -> OperationResult:
        return self.save(username, PartitionName.BILL, data)

    def load_bills(self, username: str) -> OperationResult:
        return self.load(username, PartitionName.BILL)

    # Reminder

    def save_reminders(self, username: str, reminders: list[PaymentReminder]) -> OperationResult:
        return self.save(username, PartitionName.REMINDER, list(reminders))

    def load_reminders(self, username: str) -> OperationResult:
        return self.load(username, PartitionName.REMINDER)

    def due_reminders(self, username: str, today: Optional[date] = None) -> list[PaymentReminder]:
        """
        Reminders due within the reminder window, soonest first.

        An absent or unreadable partition has no due reminders.
        """
        reminders = self.load_reminders(username).value_or([])
        due = [reminder for reminder in reminders if reminder.needs_reminder(today)]
        return sorted(due, key=lambda reminder: reminder.due_date)

    # Custom

    def _custom_filename(self, name: str) -> str:
        check_path_component(name, "Partition name")
        if name in _RESERVED_NAMES or name.removesuffix(".json") in _RESERVED_NAMES:
            raise InvalidKeyError(f"'{name}' is a reserved partition name")
        return name if name.endswith(".json") else f"{name}.json"

    def save_custom(self, username: str, name: str, value: Any) -> OperationResult:
        """Save arbitrary feature data under `name` (".json" is appended)."""
        try:
            filename = self._custom_filename(name)
        except InvalidKeyError as e:
            return OperationResult.rejected(str(e))
        return self._store.save(username, filename, value)

    def load_custom(self, username: str, name: str, type_: Any = Any) -> OperationResult:
        try:
            filename = self._custom_filename(name)
        except InvalidKeyError as e:
            return OperationResult.rejected(str(e))
        return self._store.load(username, filename, type_)
