"""Tests for database URL configuration precedence and schema migrations."""

import logging

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from src.db.connection import (
    _ensure_columns_exist,
    _ensure_order_uniqueness,
    get_database_url,
)
from src.db.models import Base


def test_get_database_url_prefers_database_url(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///./preferred.db")
    monkeypatch.setenv("BOXCYCLE_DB_PATH", "/tmp/fallback.db")

    assert get_database_url() == "sqlite:///./preferred.db"


def test_get_database_url_uses_db_path_fallback(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("BOXCYCLE_DB_PATH", "/tmp/boxcycle.db")

    assert get_database_url() == "sqlite:////tmp/boxcycle.db"


def test_get_database_url_accepts_sqlite_url_in_db_path(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("BOXCYCLE_DB_PATH", "sqlite:///x.db")

    assert get_database_url() == "sqlite:///x.db"


def test_get_database_url_defaults_to_platformdirs_path(monkeypatch, tmp_path):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("BOXCYCLE_DB_PATH", raising=False)
    monkeypatch.setenv("BOXCYCLE_DATA_DIR", str(tmp_path))

    assert get_database_url() == f"sqlite:///{tmp_path / 'boxcycle.db'}"


class TestLegacyMigrations:
    """Column and uniqueness migrations for databases from older releases."""

    @pytest.fixture
    def legacy_engine(self):
        engine = create_engine(
            "sqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        with engine.begin() as conn:
            conn.execute(
                text(
                    "CREATE TABLE orders ("
                    "id TEXT PRIMARY KEY, subscription_id TEXT, delivery_cycle_id TEXT)"
                )
            )
        yield engine
        engine.dispose()

    def test_adds_missing_columns(self, legacy_engine):
        log = logging.getLogger("test")
        with legacy_engine.begin() as conn:
            _ensure_columns_exist(conn, log)
            cols = {row[1] for row in conn.execute(text("PRAGMA table_info(orders)"))}

        assert {"order_type", "customer_phone"} <= cols

    def test_creates_uniqueness_index(self, legacy_engine):
        log = logging.getLogger("test")
        with legacy_engine.begin() as conn:
            assert _ensure_order_uniqueness(conn, log) is True
            conn.execute(text("INSERT INTO orders VALUES ('o1', 's1', 'c1')"))
            with pytest.raises(IntegrityError):
                conn.execute(text("INSERT INTO orders VALUES ('o2', 's1', 'c1')"))

    def test_duplicates_block_index_without_deleting(self, legacy_engine, caplog):
        with legacy_engine.begin() as conn:
            conn.execute(text("INSERT INTO orders VALUES ('o1', 's1', 'c1')"))
            conn.execute(text("INSERT INTO orders VALUES ('o2', 's1', 'c1')"))

            with caplog.at_level(logging.WARNING):
                assert _ensure_order_uniqueness(conn, logging.getLogger("test")) is False

            assert conn.execute(text("SELECT COUNT(*) FROM orders")).scalar() == 2
        assert "duplicate" in caplog.text

    def test_current_schema_already_guarded(self):
        engine = create_engine("sqlite:///:memory:", poolclass=StaticPool)
        Base.metadata.create_all(bind=engine)
        with engine.begin() as conn:
            assert _ensure_order_uniqueness(conn, logging.getLogger("test")) is True
            index = conn.execute(
                text("SELECT 1 FROM sqlite_master WHERE name='uq_orders_subscription_cycle'")
            ).fetchone()
        assert index is None
        engine.dispose()
