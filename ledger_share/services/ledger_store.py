"""
Ledger store: the local expenses, categories and budgets.

Ordinary user writes and snapshot merges both go through this
service and the caller's session, so they share one transaction
discipline. The caller controls the commit.
"""

from typing import Iterator

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_share.errors import storage_errors
from ledger_share.models.ledger import Category, Expense, Budget
from ledger_share.schemas.ledger import (
    CategoryRecord,
    ExpenseRecord,
    BudgetRecord,
    LedgerSnapshot,
    CategoryCreate,
    ExpenseCreate,
    BudgetSet,
)


class LiveQuery:
    """
    Restartable, lazy view over a select statement.

    Every iteration runs the query again, so a second pass sees
    rows written since the first.
    """

    def __init__(self, db: Session, statement):
        self.db = db
        self.statement = statement

    def __iter__(self) -> Iterator:
        with storage_errors("read ledger"):
            yield from self.db.execute(self.statement).scalars()


# --- ORM <-> record mapping ---

def category_record(category: Category) -> CategoryRecord:
    return CategoryRecord(id=category.id, name=category.name)


def expense_record(expense: Expense) -> ExpenseRecord:
    return ExpenseRecord(
        id=expense.id,
        amount=expense.amount,
        date=expense.date,
        time=expense.time,
        merchant=expense.merchant,
        category_id=expense.category_id,
        installments=expense.installments,
        last_card_digits=expense.last_card_digits,
        description=expense.description,
    )


def budget_record(budget: Budget) -> BudgetRecord:
    return BudgetRecord(
        id=budget.id,
        category_id=budget.category_id,
        amount=budget.amount,
        month=budget.month,
        year=budget.year,
    )


def _category_row(record: CategoryRecord) -> Category:
    return Category(id=record.id, name=record.name)


def _expense_row(record: ExpenseRecord) -> Expense:
    return Expense(
        id=record.id,
        amount=record.amount,
        date=record.date,
        time=record.time,
        merchant=record.merchant,
        category_id=record.category_id,
        installments=record.installments,
        last_card_digits=record.last_card_digits,
        description=record.description,
    )


def _budget_row(record: BudgetRecord) -> Budget:
    return Budget(
        id=record.id,
        category_id=record.category_id,
        amount=record.amount,
        month=record.month,
        year=record.year,
    )


ROW_BUILDERS = {
    CategoryRecord: _category_row,
    ExpenseRecord: _expense_row,
    BudgetRecord: _budget_row,
}


class LedgerStore:

    def __init__(self, db: Session):
        self.db = db

    # --- Queries ---

    def get_all_categories(self) -> LiveQuery:
        return LiveQuery(self.db, select(Category).order_by(Category.id))

    def get_all_expenses(self) -> LiveQuery:
        """All expenses, newest first."""
        return LiveQuery(
            self.db,
            select(Expense).order_by(
                Expense.date.desc(), Expense.time.desc(), Expense.id.desc()
            ),
        )

    def get_all_budgets(self) -> LiveQuery:
        return LiveQuery(
            self.db,
            select(Budget).order_by(Budget.year, Budget.month, Budget.id),
        )

    def get_category(self, category_id: int) -> Category | None:
        with storage_errors("read category"):
            return self.db.get(Category, category_id)

    def get_expense(self, expense_id: int) -> Expense | None:
        with storage_errors("read expense"):
            return self.db.get(Expense, expense_id)

    def get_budget(self, budget_id: int) -> Budget | None:
        with storage_errors("read budget"):
            return self.db.get(Budget, budget_id)

    def snapshot(self) -> LedgerSnapshot:
        """Export the whole ledger as one immutable snapshot."""
        return LedgerSnapshot(
            expenses=tuple(expense_record(e) for e in self.get_all_expenses()),
            categories=tuple(category_record(c) for c in self.get_all_categories()),
            budgets=tuple(budget_record(b) for b in self.get_all_budgets()),
        )

    # --- Writes ---

    def add_category(self, request: CategoryCreate) -> Category:
        category = Category(name=request.name)
        self.db.add(category)
        with storage_errors("add category"):
            self.db.flush()
        return category

    def add_expense(self, request: ExpenseCreate) -> Expense:
        expense = Expense(**request.model_dump())
        self.db.add(expense)
        with storage_errors("add expense"):
            self.db.flush()
        return expense

    def set_budget(self, request: BudgetSet) -> Budget:
        """
        Insert or update the budget for (category, month, year).

        This is the only place the one-budget-per-month rule is
        enforced.
        """
        with storage_errors("set budget"):
            budget = self.db.execute(
                select(Budget).where(
                    Budget.category_id == request.category_id,
                    Budget.month == request.month,
                    Budget.year == request.year,
                ).limit(1)
            ).scalar_one_or_none()

            if budget:
                budget.amount = request.amount
            else:
                budget = Budget(**request.model_dump())
                self.db.add(budget)
            self.db.flush()
        return budget

    def flush(self) -> None:
        with storage_errors("write ledger"):
            self.db.flush()

    def insert_or_replace(
        self, record: CategoryRecord | ExpenseRecord | BudgetRecord
    ) -> int:
        """
        Write a record keyed by its own id and return the id.

        A record without an id is inserted and gets a fresh one. A
        record whose id already exists replaces every field of the
        stored row, whatever that row was.
        """
        build = ROW_BUILDERS.get(type(record))
        if build is None:
            raise TypeError(f"Unsupported record type: {type(record).__name__}")

        with storage_errors(f"write {type(record).__name__}"):
            row = self.db.merge(build(record))
            if record.id is None:
                self.db.flush()
        return row.id
