"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database, and a filesystem remote store under
tmp_path so nothing leaves the test's temp directory.
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ledger_share.main import app
from ledger_share.api.deps import current_identity, remote_store
from ledger_share.identity import Identity
from ledger_share.models.base import Base, get_db
from ledger_share.remote.filesystem import FilesystemObjectStore
from ledger_share.schemas.ledger import (
    BudgetRecord,
    CategoryRecord,
    ExpenseRecord,
    LedgerSnapshot,
)


# SQLite for tests, no external database needed
TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def identity():
    return Identity(email="alice@example.com")


@pytest.fixture
def remote(tmp_path):
    """A remote store rooted in this test's temp directory."""
    return FilesystemObjectStore(tmp_path / "remote")


@pytest.fixture
def work_dir(tmp_path):
    """Directory for the services' temporary files."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def client(db_session, identity, remote):
    """
    Provide a test client with the test database.

    The session, the identity and the remote store are all
    overridden so requests use the test fixtures.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[current_identity] = lambda: identity
    app.dependency_overrides[remote_store] = lambda: remote
    yield TestClient(app)
    app.dependency_overrides.clear()


def _snapshot(
    categories=(),
    expenses=(),
    budgets=(),
) -> LedgerSnapshot:
    """Helper: build a snapshot from keyword tuples of field dicts."""
    return LedgerSnapshot(
        categories=tuple(CategoryRecord(**c) for c in categories),
        expenses=tuple(ExpenseRecord(**e) for e in expenses),
        budgets=tuple(BudgetRecord(**b) for b in budgets),
    )


@pytest.fixture
def peer_snapshot():
    """A small ledger as a peer would publish it."""
    return _snapshot(
        categories=[{"id": 1, "name": "Food"}, {"id": 2, "name": "Travel"}],
        expenses=[
            {
                "id": 7,
                "amount": Decimal("12.50"),
                "date": "2024-03-01",
                "time": "12:30",
                "merchant": "Cafe",
                "category_id": 1,
                "last_card_digits": "4242",
            },
            {
                "id": 8,
                "amount": Decimal("300.00"),
                "date": "2024-03-02",
                "time": "08:00",
                "merchant": "Airline",
                "category_id": 2,
                "installments": 3,
            },
        ],
        budgets=[
            {"id": 1, "category_id": 1, "amount": Decimal("400"), "month": 3, "year": 2024},
        ],
    )
