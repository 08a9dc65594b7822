"""
Local ledger API endpoints.

Ordinary user writes to categories, expenses and budgets. These go
through the same LedgerStore a peer merge uses.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ledger_share.api.deps import http_error
from ledger_share.errors import SharingError
from ledger_share.models.base import get_db
from ledger_share.schemas.ledger import (
    CategoryCreate,
    CategoryRecord,
    ExpenseCreate,
    ExpenseRecord,
    BudgetSet,
    BudgetRecord,
)
from ledger_share.services.ledger_store import (
    LedgerStore,
    category_record,
    expense_record,
    budget_record,
)

router = APIRouter(prefix="/ledger", tags=["Ledger"])


@router.post("/categories", response_model=CategoryRecord, status_code=201)
def create_category(
    request: CategoryCreate,
    db: Session = Depends(get_db),
):
    store = LedgerStore(db)
    try:
        category = store.add_category(request)
        db.commit()
        return category_record(category)
    except SharingError as e:
        db.rollback()
        raise http_error(e)


@router.get("/categories", response_model=list[CategoryRecord])
def list_categories(db: Session = Depends(get_db)):
    try:
        return [category_record(c) for c in LedgerStore(db).get_all_categories()]
    except SharingError as e:
        raise http_error(e)


@router.post("/expenses", response_model=ExpenseRecord, status_code=201)
def create_expense(
    request: ExpenseCreate,
    db: Session = Depends(get_db),
):
    """
    Record an expense.

    The category is not checked; an expense may point at a category
    that only exists in a peer's ledger.
    """
    store = LedgerStore(db)
    try:
        expense = store.add_expense(request)
        db.commit()
        return expense_record(expense)
    except SharingError as e:
        db.rollback()
        raise http_error(e)


@router.get("/expenses", response_model=list[ExpenseRecord])
def list_expenses(db: Session = Depends(get_db)):
    """All expenses, newest first."""
    try:
        return [expense_record(e) for e in LedgerStore(db).get_all_expenses()]
    except SharingError as e:
        raise http_error(e)


@router.put("/budgets", response_model=BudgetRecord)
def set_budget(
    request: BudgetSet,
    db: Session = Depends(get_db),
):
    """Set the budget for a category and month, replacing any existing one."""
    store = LedgerStore(db)
    try:
        budget = store.set_budget(request)
        db.commit()
        return budget_record(budget)
    except SharingError as e:
        db.rollback()
        raise http_error(e)


@router.get("/budgets", response_model=list[BudgetRecord])
def list_budgets(db: Session = Depends(get_db)):
    try:
        return [budget_record(b) for b in LedgerStore(db).get_all_budgets()]
    except SharingError as e:
        raise http_error(e)
