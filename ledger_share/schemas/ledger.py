"""
Pydantic schemas for ledger records and snapshots.

The record shapes double as the snapshot wire contract: field names
on the wire are camelCase (categoryId, lastCardDigits) and peers must
agree on them exactly. Records are immutable values.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Immutable model with camelCase aliases, accepting either form."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# --- Records ---

class CategoryRecord(WireModel):
    id: int | None = None
    name: str


class ExpenseRecord(WireModel):
    id: int | None = None
    amount: Decimal
    date: str
    time: str
    merchant: str
    category_id: int | None = None
    installments: int | None = None
    last_card_digits: str | None = Field(default=None, pattern=r"^\d{4}$")
    description: str | None = None


class BudgetRecord(WireModel):
    id: int | None = None
    category_id: int
    amount: Decimal
    month: int = Field(ge=1, le=12)
    year: int


class LedgerSnapshot(WireModel):
    """
    One user's full ledger at a point in time.

    Exactly three arrays, all required. There is no partial or
    incremental form.
    """
    expenses: tuple[ExpenseRecord, ...]
    categories: tuple[CategoryRecord, ...]
    budgets: tuple[BudgetRecord, ...]

    def record_count(self) -> int:
        return len(self.expenses) + len(self.categories) + len(self.budgets)


# --- Request Schemas ---

class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class ExpenseCreate(BaseModel):
    amount: Decimal = Field(ge=0, decimal_places=4)
    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    time: str = Field(pattern=r"^\d{2}:\d{2}(:\d{2})?$")
    merchant: str = Field(min_length=1, max_length=255)
    category_id: int | None = None
    installments: int | None = Field(default=None, ge=1)
    last_card_digits: str | None = Field(default=None, pattern=r"^\d{4}$")
    description: str | None = Field(default=None, max_length=500)


class BudgetSet(BaseModel):
    """Set the budget for a category and month, replacing any existing one."""
    category_id: int
    amount: Decimal = Field(ge=0, decimal_places=4)
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=1900, le=9999)
