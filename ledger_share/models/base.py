"""
Database engine, session management, and base model.

Every model inherits from Base. Every request gets a session
from get_db(). The ledger tables and the sharing tables live
in the same database, so a merge goes through the same session
and transaction discipline as any user-initiated write.
"""

from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from ledger_share.config import get_settings

settings = get_settings()

# --- Engine ---
# SQLite connections are handed between the request thread pool
# and the event loop, so the same-thread check is disabled there.
connect_args = (
    {"check_same_thread": False}
    if settings.DATABASE_URL.startswith("sqlite")
    else {}
)
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=connect_args,
)

# --- Session Factory ---
# autocommit=False: the caller decides when a sharing operation
# or a merge becomes durable.
# autoflush=False: SQL is only sent on explicit flush or commit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The try/finally pattern ensures the session is always
    closed, even if the request fails.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
