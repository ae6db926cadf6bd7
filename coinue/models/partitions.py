"""
Partition Document Models

Schemas of the per-user JSON documents stored under
data/users/<username>/. Each document is loaded and saved as a whole.

DESIGN DECISION: Unknown fields are ignored on load. Adding a field to
one of these models must never break loading a document written by an
older version (or by the Java desktop client, which also wrote derived
getters such as savingsRate into the file).

Amounts are Decimal. Derived aggregates are plain properties, so they
are recomputed on read and never persisted.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


HUNDRED = Decimal("100")

DEFAULT_CREDIT_LIMIT = Decimal("7500.00")

DEFAULT_REMINDER_TYPE = "信用卡"

DEFAULT_REMINDER_ICON = "/images/icons/credit_card.png"

REMINDER_WINDOW_DAYS = 7


def percentage_of(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole * 100, or 0 when whole is not positive."""
    if whole <= 0:
        return Decimal("0")
    return part / whole * HUNDRED


class DocumentModel(BaseModel):
    """Base for every partition document: camelCase JSON, extras ignored."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# ENUMS
# =============================================================================

class PartitionName(str, Enum):
    """
    Well-known partitions and their file stems.

    The value is the file name without ".json".
    """
    ANALYSIS = "analysis_data"
    BUDGET = "budget_data"
    EXPENSE = "expense_data"
    SETTINGS = "settings"
    BILL = "bill_data"
    REMINDER = "reminder_data"

    @property
    def filename(self) -> str:
        return f"{self.value}.json"


# =============================================================================
# BILL PARTITION
# =============================================================================

class BillRecord(DocumentModel):
    """One repayment line of the bill partition."""

    date: date
    description: str = ""
    amount: Decimal = Field(
        ...,
        description="Signed amount; refunds are negative"
    )
    status: str = ""


class UserBillData(DocumentModel):
    """
    Bill payment data for one user.

    Holds the credit limit and the imported repayment records.
    """

    credit_limit: Decimal = Field(default=DEFAULT_CREDIT_LIMIT)
    bill_records: list[BillRecord] = Field(default_factory=list)
    created_date: Optional[date] = Field(default_factory=date.today)
    updated_date: Optional[date] = Field(default_factory=date.today)
    last_imported_file: Optional[str] = None

    @property
    def total_repayment_amount(self) -> Decimal:
        return sum((record.amount for record in self.bill_records), Decimal("0"))

    @property
    def credit_usage_percentage(self) -> Decimal:
        """Total repayment as a percentage of the credit limit."""
        return percentage_of(self.total_repayment_amount, self.credit_limit)

    @property
    def remaining_credit(self) -> Decimal:
        return max(Decimal("0"), self.credit_limit - self.total_repayment_amount)

    def add_bill_record(self, record: BillRecord) -> None:
        self.bill_records.append(record)
        self._touch()

    def clear_bill_records(self) -> None:
        self.bill_records.clear()
        self._touch()

    def set_credit_limit(self, credit_limit: Decimal) -> None:
        self.credit_limit = credit_limit
        self._touch()

    def _touch(self) -> None:
        self.updated_date = date.today()


# =============================================================================
# ANALYSIS PARTITION
# =============================================================================

class BudgetUsage(DocumentModel):
    """Budget consumption for one category."""

    budget_limit: Decimal = Decimal("0")
    actual_spent: Decimal = Decimal("0")
    remaining_budget: Decimal = Decimal("0")
    usage_percentage: Decimal = Decimal("0")

    @classmethod
    def from_amounts(cls, budget_limit: Decimal, actual_spent: Decimal) -> "BudgetUsage":
        return cls(
            budget_limit=budget_limit,
            actual_spent=actual_spent,
            remaining_budget=budget_limit - actual_spent,
            usage_percentage=percentage_of(actual_spent, budget_limit),
        )


class UserAnalysisData(DocumentModel):
    """
    Financial analysis snapshot for one user.

    Produced by the analysis page and consumed by the export.
    """

    last_analysis_date: Optional[date] = None
    total_expenses: Decimal = Decimal("0")
    total_income: Decimal = Decimal("0")
    category_expenses: dict[str, Decimal] = Field(default_factory=dict)
    monthly_trends: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Keyed by month, YYYY-MM"
    )
    expense_tags: list[str] = Field(default_factory=list)
    budget_usage: dict[str, BudgetUsage] = Field(default_factory=dict)
    created_date: Optional[date] = Field(default_factory=date.today)
    updated_date: Optional[date] = Field(default_factory=date.today)

    @property
    def savings_rate(self) -> Decimal:
        """(income - expenses) / income * 100, or 0 without income."""
        return percentage_of(self.total_income - self.total_expenses, self.total_income)

    @property
    def top_expense_category(self) -> Optional[str]:
        if not self.category_expenses:
            return None
        return max(self.category_expenses, key=self.category_expenses.__getitem__)

    def add_category_expense(self, category: str, amount: Decimal) -> None:
        self.category_expenses[category] = (
            self.category_expenses.get(category, Decimal("0")) + amount
        )
        self._touch()

    def add_monthly_trend(self, month: str, amount: Decimal) -> None:
        self.monthly_trends[month] = amount
        self._touch()

    def add_expense_tag(self, tag: str) -> None:
        if tag not in self.expense_tags:
            self.expense_tags.append(tag)
            self._touch()

    def update_budget_usage(
        self,
        category: str,
        budget_limit: Decimal,
        actual_spent: Decimal,
    ) -> None:
        self.budget_usage[category] = BudgetUsage.from_amounts(budget_limit, actual_spent)
        self._touch()

    def _touch(self) -> None:
        self.last_analysis_date = date.today()
        self.updated_date = date.today()


# =============================================================================
# EXPENSE PARTITION
# =============================================================================

class ExpenseRecord(DocumentModel):
    """A manually entered or imported expense."""

    date: date
    name: str = ""
    category: str = ""
    amount: Decimal
    record_type: str = "expense"
    currency: str = "CNY"
    description: Optional[str] = None


class ExpenseData(DocumentModel):
    """
    The expense partition.

    Older files hold a bare JSON array of records; newer ones wrap it in
    {"records": [...]}. Both load into this model.
    """

    records: list[ExpenseRecord] = Field(default_factory=list)

    @model_validator(mode='before')
    @classmethod
    def accept_bare_list(cls, data: Any) -> Any:
        if isinstance(data, list):
            return {"records": data}
        return data

    @property
    def total_amount(self) -> Decimal:
        return sum((record.amount for record in self.records), Decimal("0"))

    def totals_by_category(self) -> dict[str, Decimal]:
        """Sum per category, in order of first appearance."""
        totals: dict[str, Decimal] = {}
        for record in self.records:
            totals[record.category] = totals.get(record.category, Decimal("0")) + record.amount
        return totals


# =============================================================================
# BUDGET PARTITION
# =============================================================================

class Budget(DocumentModel):
    """
    A spending limit for one category.

    The budget partition is a JSON array of these when written by the
    budget page. Other writers may store any JSON there, so the export
    still treats the partition as opaque.
    """

    category: str
    amount: Decimal = Field(..., description="The limit")
    currency: str = "CNY"
    spent_amount: Decimal = Decimal("0")

    @property
    def usage_percentage(self) -> Decimal:
        """Spent as a percentage of the limit, 0 for a zero limit."""
        return percentage_of(self.spent_amount, self.amount)

    @property
    def remaining_amount(self) -> Decimal:
        return self.amount - self.spent_amount

    @property
    def is_exceeded(self) -> bool:
        return self.spent_amount > self.amount

    def add_expense(self, expense: Decimal) -> None:
        self.spent_amount += expense


# =============================================================================
# REMINDER PARTITION
# =============================================================================

class PaymentReminder(DocumentModel):
    """A repayment due on a credit platform."""

    id: Optional[str] = None
    platform: str
    amount: Decimal
    due_date: date
    icon_path: Optional[str] = DEFAULT_REMINDER_ICON
    reminder_type: str = Field(default=DEFAULT_REMINDER_TYPE, alias="type")

    def days_until_due(self, today: Optional[date] = None) -> int:
        """Whole days from `today` to the due date; negative once overdue."""
        return (self.due_date - (today or date.today())).days

    def needs_reminder(self, today: Optional[date] = None) -> bool:
        """True from REMINDER_WINDOW_DAYS before the due date up to the due date."""
        return 0 <= self.days_until_due(today) <= REMINDER_WINDOW_DAYS
