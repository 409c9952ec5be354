"""Database connection management for BoxCycle.

Provides synchronous database access using SQLAlchemy. Supports SQLite
for development with a PostgreSQL migration path for production.

Usage:
    from src.db.connection import get_db, init_db

    init_db()  # Create tables
    db = next(get_db())
    # ... use db session
"""

import logging
import os
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker

from src.db.models import Base

logger = logging.getLogger(__name__)


# Configuration
def get_database_url() -> str:
    """Get database URL from environment or use default SQLite.

    Precedence:
    1. DATABASE_URL (canonical)
    2. BOXCYCLE_DB_PATH (compat fallback, converted to sqlite URL)
    3. sqlite:///<platform data dir>/boxcycle.db
    """
    database_url = os.environ.get("DATABASE_URL", "").strip()
    if database_url:
        return database_url

    db_path = os.environ.get("BOXCYCLE_DB_PATH", "").strip()
    if db_path:
        if db_path.startswith("sqlite:"):
            return db_path
        return f"sqlite:///{db_path}"

    from src.utils.paths import get_default_db_path
    return f"sqlite:///{get_default_db_path()}"


# Engine creation
DATABASE_URL = get_database_url()

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False}
    if DATABASE_URL.startswith("sqlite")
    else {},
    echo=os.environ.get("SQL_ECHO", "").lower() == "true",
)


# Enable foreign keys for SQLite
@event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
    """Configure SQLite pragmas for correctness and concurrency.

    Enables:
    - foreign_keys=ON: Referential integrity (disabled by default in SQLite).
    - journal_mode=WAL: Concurrent readers + a single writer, so the admin
      trigger and the scheduled trigger can overlap without blocking reads.
    - synchronous=NORMAL: Commits are durable after WAL fsync.
    """
    if DATABASE_URL.startswith("sqlite"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.execute("PRAGMA synchronous=NORMAL;")
        cursor.close()


# Session factories
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# Dependency functions for FastAPI


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for synchronous operations.

    Intended for use with FastAPI's Depends() for request-scoped sessions.

    Yields:
        Session: SQLAlchemy session that will be closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Context manager for database sessions outside of FastAPI.

    Usage:
        with get_db_context() as db:
            cycle = db.query(DeliveryCycle).first()
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# Initialization functions

# Columns added after the first schema release, per table.
_COLUMN_MIGRATIONS: dict[str, list[tuple[str, str]]] = {
    "delivery_cycles": [
        ("is_revealed", "BOOLEAN NOT NULL DEFAULT 0"),
        ("revealed_at", "TEXT"),
    ],
    "subscriptions": [
        ("promo_code", "TEXT"),
        ("first_cycle_id", "TEXT REFERENCES delivery_cycles(id)"),
        ("last_delivered_cycle_id", "TEXT REFERENCES delivery_cycles(id)"),
    ],
    "orders": [
        ("order_type", "TEXT NOT NULL DEFAULT 'subscription'"),
        ("customer_phone", "TEXT"),
    ],
}


def _ensure_columns_exist(conn: Any, log: Any) -> None:
    """Add columns missing from tables created by an older release.

    Idempotent. SQLite only; other backends are expected to be migrated
    out of band.

    Args:
        conn: SQLAlchemy Connection.
        log: Logger instance.
    """
    from sqlalchemy.exc import OperationalError

    for table, columns in _COLUMN_MIGRATIONS.items():
        result = conn.execute(text(f"PRAGMA table_info({table})"))
        existing_cols = {row[1] for row in result.fetchall()}
        if not existing_cols:
            continue
        for col_name, col_type in columns:
            if col_name in existing_cols:
                continue
            try:
                conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_name} {col_type}"))
                log.info("Added column %s.%s", table, col_name)
            except OperationalError as e:
                log.warning("Column migration %s.%s failed: %s", table, col_name, e)


def _ensure_order_uniqueness(conn: Any, log: Any) -> bool:
    """Enforce one order per (subscription, cycle) on legacy databases.

    Tables created by create_all already carry the constraint. Older
    tables get a unique index with the same name. Existing duplicate
    orders are never deleted: the index is left out and a warning names
    the conflict so an operator can resolve it.

    Returns:
        True if the uniqueness guard is in place after the call.
    """
    row = conn.execute(
        text("SELECT sql FROM sqlite_master WHERE type='table' AND name='orders'")
    ).fetchone()
    if row is None or "uq_orders_subscription_cycle" in (row[0] or ""):
        return row is not None
    index = conn.execute(
        text(
            "SELECT 1 FROM sqlite_master WHERE type='index' "
            "AND name='uq_orders_subscription_cycle'"
        )
    ).fetchone()
    if index is not None:
        return True

    duplicates = conn.execute(
        text(
            "SELECT subscription_id, delivery_cycle_id, COUNT(*) FROM orders "
            "WHERE subscription_id IS NOT NULL AND delivery_cycle_id IS NOT NULL "
            "GROUP BY subscription_id, delivery_cycle_id HAVING COUNT(*) > 1"
        )
    ).fetchall()
    if duplicates:
        sub_id, cycle_id, count = duplicates[0]
        log.warning(
            "Order uniqueness index not created: %d duplicate group(s), e.g. "
            "subscription %s has %d orders for cycle %s",
            len(duplicates), sub_id, count, cycle_id,
        )
        return False

    conn.execute(
        text(
            "CREATE UNIQUE INDEX uq_orders_subscription_cycle "
            "ON orders (subscription_id, delivery_cycle_id)"
        )
    )
    log.info("Created order uniqueness index")
    return True


def init_db() -> None:
    """Create all database tables.

    Safe to call multiple times - will not recreate existing tables.
    Runs column and index migrations for tables from older releases.
    """
    Base.metadata.create_all(bind=engine)
    if engine.dialect.name != "sqlite":
        return
    with engine.begin() as conn:
        _ensure_columns_exist(conn, logger)
        _ensure_order_uniqueness(conn, logger)


def close_db() -> None:
    """Close the engine and dispose of the connection pool."""
    engine.dispose()
