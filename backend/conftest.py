from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
# Keep argon2 cheap under test.
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "1024"
os.environ["ARGON2_PARALLELISM"] = "1"

from wmsdb.database import Base, get_db, get_read_db  # noqa: E402
from wmsdb.apps.accounts import models as account_models  # noqa: E402
from wmsdb.apps.audit import models as audit_models  # noqa: E402
from wmsdb.apps.catalog import models as catalog_models  # noqa: E402
from wmsdb.apps.inventory import models as inventory_models  # noqa: E402

TABLES = [
    account_models.User.__table__,
    catalog_models.Product.__table__,
    inventory_models.Warehouse.__table__,
    inventory_models.InventoryLevel.__table__,
    inventory_models.InventoryMovement.__table__,
    inventory_models.InventorySerial.__table__,
    audit_models.AuditEvent.__table__,
]


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine, tables=TABLES)
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def api_app():
    """
    The FastAPI app bound to a private in-memory database.

    Yields `(app, SessionFactory)`; the factory opens sessions on the same
    connection the app uses, for seeding and assertions.
    """
    from wmsdb.main import app

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=TABLES)
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )

    def _get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_read_db] = _get_db
    try:
        yield app, TestingSession
    finally:
        app.dependency_overrides.clear()
        engine.dispose()
