"""
Tests for the PartitionManager.
"""

import pytest
from datetime import date
from decimal import Decimal

from coinue.models import (
    BillRecord,
    Budget,
    ExpenseData,
    ExpenseRecord,
    PartitionName,
    PaymentReminder,
    ResultStatus,
    UserAnalysisData,
    UserBillData,
)
from coinue.partitions import PartitionManager
from coinue.services.storage import JsonDocumentStore


class TestWellKnownPartitions:
    """Typed save/load per partition."""

    def test_analysis_round_trip(self, partitions):
        """Test analysis data loads as UserAnalysisData."""
        analysis = UserAnalysisData(total_income=Decimal("5000"), total_expenses=Decimal("3000"))
        analysis.add_category_expense("Food", Decimal("800"))
        analysis.update_budget_usage("Food", Decimal("1000"), Decimal("800"))
        assert partitions.save_analysis("alice", analysis).ok

        loaded = partitions.load_analysis("alice").value
        assert isinstance(loaded, UserAnalysisData)
        assert loaded.category_expenses == {"Food": Decimal("800")}
        assert loaded.budget_usage["Food"].usage_percentage == Decimal("80")
        assert loaded.savings_rate == Decimal("40")

    def test_bill_round_trip_after_reload(self, partitions, storage_settings):
        """Test bill data survives a new store instance."""
        bills = UserBillData(credit_limit=Decimal("2000.00"))
        bills.add_bill_record(BillRecord(
            date=date(2023, 9, 10),
            description="Rent, Sept",
            amount=Decimal("1200.00"),
            status="Paid",
        ))
        partitions.save_bills("alice", bills)

        fresh = PartitionManager(JsonDocumentStore(storage_settings))
        loaded = fresh.load_bills("alice").value
        assert loaded == bills
        assert loaded.credit_usage_percentage == Decimal("60")

    def test_expenses_from_list(self, partitions):
        """Test a plain list of records is wrapped before saving."""
        records = [
            ExpenseRecord(date=date(2024, 2, 1), name="Lunch", category="Food", amount=Decimal("12.50")),
        ]
        assert partitions.save_expenses("alice", records).ok
        loaded = partitions.load_expenses("alice").value
        assert isinstance(loaded, ExpenseData)
        assert loaded.records == records

    def test_legacy_bare_expense_array(self, partitions, store):
        """Test an expense file holding a bare array loads."""
        user_dir = store.directory_for("alice").value
        (user_dir / PartitionName.EXPENSE.filename).write_text(
            '[{"date": "2024-02-01", "name": "Bus", "category": "Transport", "amount": 2}]',
            encoding="utf-8",
        )
        loaded = partitions.load_expenses("alice").value
        assert loaded.total_amount == Decimal("2")

    def test_budget_is_opaque(self, partitions):
        """Test the budget partition round trips arbitrary JSON."""
        budget = {"monthly": {"Food": 1000, "Rent": 3000}, "currency": "CNY"}
        partitions.save_budget("alice", budget)
        assert partitions.load_budget("alice").value == budget

    def test_settings(self, partitions):
        """Test settings save and load, with an empty default."""
        assert partitions.load_settings("alice").status == ResultStatus.NOT_FOUND
        assert partitions.load_settings_or_default("alice") == {}

        partitions.save_settings("alice", {"theme": "dark", "notifications": True})
        assert partitions.load_settings_or_default("alice") == {"theme": "dark", "notifications": True}

    def test_partitions_are_independent(self, partitions):
        """Test saving one partition does not create others."""
        partitions.save_settings("alice", {"theme": "dark"})
        assert partitions.has("alice", PartitionName.SETTINGS)
        assert not partitions.has("alice", PartitionName.BILL)
        assert partitions.load_bills("alice").status == ResultStatus.NOT_FOUND

    def test_delete(self, partitions):
        """Test delete removes one partition and is idempotent."""
        partitions.save_settings("alice", {"theme": "dark"})
        partitions.save_budget("alice", {"a": 1})
        assert partitions.delete("alice", PartitionName.SETTINGS).value is True
        assert partitions.delete("alice", PartitionName.SETTINGS).value is False
        assert partitions.has("alice", PartitionName.BUDGET)

    def test_corrupt_partition(self, partitions, store):
        """Test a corrupt partition is reported as such."""
        user_dir = store.directory_for("alice").value
        (user_dir / PartitionName.ANALYSIS.filename).write_text("[]", encoding="utf-8")
        assert partitions.load_analysis("alice").status == ResultStatus.CORRUPT_DOCUMENT


class TestCustomPartitions:
    """Free-form partitions."""

    def test_custom_round_trip(self, partitions, store):
        """Test a custom partition gets a .json file."""
        assert partitions.save_custom("alice", "reminders", [{"day": 5}]).ok
        assert "reminders.json" in store.list_documents("alice")
        assert partitions.load_custom("alice", "reminders").value == [{"day": 5}]

    def test_custom_typed_load(self, partitions):
        """Test a custom partition can be loaded as a model."""
        partitions.save_custom("alice", "archive.json", UserBillData(credit_limit=Decimal("1")))
        loaded = partitions.load_custom("alice", "archive.json", UserBillData)
        assert loaded.value.credit_limit == Decimal("1")

    @pytest.mark.parametrize("name", ["settings", "bill_data.json", "", "../x"])
    def test_reserved_and_invalid_names(self, partitions, name):
        """Test well-known and unsafe names are rejected."""
        assert partitions.save_custom("alice", name, {}).status == ResultStatus.REJECTED
        assert partitions.load_custom("alice", name).status == ResultStatus.REJECTED


class TestBudgets:
    """The budget partition in its typed form."""

    def test_budgets_round_trip(self, partitions):
        """Test a list of budgets loads back with its spending."""
        food = Budget(category="Food", amount=Decimal("1000"))
        food.add_expense(Decimal("250.50"))
        assert partitions.save_budgets("alice", [food, Budget(category="Rent", amount=Decimal("3000"))]).ok

        loaded = partitions.load_budgets("alice").value
        assert [budget.category for budget in loaded] == ["Food", "Rent"]
        assert loaded[0].spent_amount == Decimal("250.50")
        assert loaded[0].usage_percentage == Decimal("25.05")

    def test_raw_view_of_typed_budgets(self, partitions):
        """Test load_budget still returns the stored JSON as is."""
        partitions.save_budgets("alice", [Budget(category="Food", amount=Decimal("1000"))])
        raw = partitions.load_budget("alice").value
        assert isinstance(raw, list)
        assert raw[0]["category"] == "Food"
        assert "spentAmount" in raw[0]

    def test_client_written_budgets(self, partitions, store):
        """Test budgets saved by the desktop client (numbers, camelCase) load."""
        user_dir = store.directory_for("alice").value
        (user_dir / PartitionName.BUDGET.filename).write_text(
            '[{"category": "Food", "amount": 800.0, "currency": "CNY", "spentAmount": 200.0}]',
            encoding="utf-8",
        )
        budget = partitions.load_budgets("alice").value[0]
        assert budget.usage_percentage == Decimal("25")

    def test_opaque_budget_is_corrupt_for_typed_load(self, partitions):
        """Test a budget partition of another shape is not silently misread."""
        partitions.save_budget("alice", {"monthly": {"Food": 1000}})
        assert partitions.load_budgets("alice").status == ResultStatus.CORRUPT_DOCUMENT
        assert partitions.load_budget("alice").ok


class TestReminders:
    """The payment reminder partition."""

    def _reminder(self, platform, due_date, amount="500"):
        return PaymentReminder(platform=platform, amount=Decimal(amount), due_date=due_date)

    def test_reminders_round_trip(self, partitions):
        """Test reminders load back as PaymentReminder objects."""
        reminders = [self._reminder("Huabei", date(2024, 3, 10))]
        assert partitions.save_reminders("alice", reminders).ok
        assert partitions.has("alice", PartitionName.REMINDER)
        assert partitions.load_reminders("alice").value == reminders

    def test_file_uses_client_keys(self, partitions, store):
        """Test the type is stored under "type" with camelCase dates."""
        partitions.save_reminders("alice", [self._reminder("Huabei", date(2024, 3, 10))])
        text = (store.root / "alice" / PartitionName.REMINDER.filename).read_text(encoding="utf-8")
        assert '"type"' in text
        assert '"dueDate": "2024-03-10"' in text

    def test_due_reminders(self, partitions):
        """Test only reminders inside the window are returned, soonest first."""
        today = date(2024, 3, 1)
        partitions.save_reminders("alice", [
            self._reminder("Late", date(2024, 2, 28)),
            self._reminder("Far", date(2024, 3, 20)),
            self._reminder("Week", date(2024, 3, 8)),
            self._reminder("Today", date(2024, 3, 1)),
        ])
        due = partitions.due_reminders("alice", today)
        assert [reminder.platform for reminder in due] == ["Today", "Week"]

    def test_due_reminders_without_partition(self, partitions):
        """Test a user without reminders has none due."""
        assert partitions.due_reminders("alice", date(2024, 3, 1)) == []

    def test_reminder_name_is_reserved(self, partitions):
        """Test the reminder file cannot be written as a custom partition."""
        assert partitions.save_custom("alice", "reminder_data", []).status == ResultStatus.REJECTED
