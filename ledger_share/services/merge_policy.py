"""
Merge policies: how a peer's snapshot is folded into the local ledger.

InsertOrReplaceById writes every record under its own id. Ids are
assigned independently on each side, so two unrelated records can
share one: the snapshot's record then silently replaces the local
one, and the same logical record can arrive twice under different
ids. That behavior is kept on purpose for compatibility; a policy
that namespaces or content-addresses ids can be registered in
MERGE_POLICIES without touching the sync engine.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ledger_share.schemas.ledger import LedgerSnapshot
from ledger_share.services.ledger_store import LedgerStore


@dataclass
class MergeCounts:
    """How many records of each kind a merge wrote."""
    categories: int = 0
    budgets: int = 0
    expenses: int = 0

    @property
    def total(self) -> int:
        return self.categories + self.budgets + self.expenses


class MergePolicy(ABC):
    """Folds a decoded snapshot into the local ledger store."""

    name: str = ""

    @abstractmethod
    def apply(self, store: LedgerStore, snapshot: LedgerSnapshot) -> MergeCounts:
        """Write the snapshot's records and flush. The caller commits."""


class InsertOrReplaceById(MergePolicy):

    name = "insert_or_replace"

    def apply(self, store: LedgerStore, snapshot: LedgerSnapshot) -> MergeCounts:
        counts = MergeCounts()
        # Categories first so budgets and expenses land after their parents
        for category in snapshot.categories:
            store.insert_or_replace(category)
            counts.categories += 1
        for budget in snapshot.budgets:
            store.insert_or_replace(budget)
            counts.budgets += 1
        for expense in snapshot.expenses:
            store.insert_or_replace(expense)
            counts.expenses += 1
        store.flush()
        return counts


MERGE_POLICIES: dict[str, type[MergePolicy]] = {
    InsertOrReplaceById.name: InsertOrReplaceById,
}


def get_merge_policy(name: str) -> MergePolicy:
    try:
        return MERGE_POLICIES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown merge policy '{name}'; "
            f"available: {', '.join(sorted(MERGE_POLICIES))}"
        ) from None
