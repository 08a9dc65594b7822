"""
Local ledger models: categories, expenses and budgets.

Ids are assigned by this database and are only meaningful here.
category_id is indexed but not a foreign key: records merged from
a peer may point at categories this ledger does not have.
Text columns are unbounded; length limits apply to local input only.
"""

from decimal import Decimal

from sqlalchemy import String, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledger_share.models.base import Base


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<Category {self.id} {self.name}>"


class Expense(Base):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(primary_key=True)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    date: Mapped[str] = mapped_column(Text, nullable=False)
    time: Mapped[str] = mapped_column(Text, nullable=False)
    merchant: Mapped[str] = mapped_column(Text, nullable=False)
    category_id: Mapped[int | None] = mapped_column(
        Integer, nullable=True, index=True
    )
    installments: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )
    last_card_digits: Mapped[str | None] = mapped_column(
        String(4), nullable=True
    )
    description: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )

    def __repr__(self) -> str:
        return f"<Expense {self.id} {self.amount} at {self.merchant}>"


class Budget(Base):
    """
    Budget for one category in one month.

    At most one budget per (category_id, month, year) is intended;
    LedgerStore.set_budget upserts on that key. There is no unique
    constraint, so a merge can still introduce a second row.
    """

    __tablename__ = "budgets"

    id: Mapped[int] = mapped_column(primary_key=True)
    category_id: Mapped[int] = mapped_column(
        Integer, nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Budget {self.id} category={self.category_id} "
            f"{self.year}-{self.month:02d} {self.amount}>"
        )
