from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("SCHEMA_STRICT", "0")

from squirrel.database import Base, enable_sqlite_foreign_keys  # noqa: E402
from squirrel.apps.inventory import models as inventory_models  # noqa: E402

LEDGER_TABLES = [
    inventory_models.Item.__table__,
    inventory_models.Addition.__table__,
    inventory_models.Issue.__table__,
    inventory_models.Removal.__table__,
]


def _make_sessionmaker(engine):
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )


@pytest.fixture()
def db_session():
    engine = enable_sqlite_foreign_keys(create_engine("sqlite+pysqlite:///:memory:"))
    Base.metadata.create_all(bind=engine, tables=LEDGER_TABLES)
    TestingSession = _make_sessionmaker(engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def session_factory(tmp_path):
    """
    Sessions over a file-backed database, one connection each.

    Needed wherever two sessions must see each other's commits
    (races, threads); the in-memory engine shares one connection per thread.
    """
    url = f"sqlite+pysqlite:///{tmp_path / 'ledger.db'}"
    engine = enable_sqlite_foreign_keys(
        create_engine(url, connect_args={"check_same_thread": False, "timeout": 30})
    )
    Base.metadata.create_all(bind=engine, tables=LEDGER_TABLES)
    try:
        yield _make_sessionmaker(engine)
    finally:
        engine.dispose()
