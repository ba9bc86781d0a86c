from __future__ import annotations

import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("BOOTSTRAP_TOKEN", "test-bootstrap-token")
os.environ.setdefault("CORPORATE_EMAIL_DOMAIN", "technetworkinc.com")
os.environ.setdefault("REQUIRE_COVERAGE_PARTNER", "true")

import leavedesk.db as app_db  # noqa: E402
import leavedesk.models  # noqa: E402,F401
from leavedesk.settings import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def reset_database(tmp_path, monkeypatch):
    db_file = tmp_path / "leavedesk_suite.db"
    db_url = f"sqlite:///{db_file}"
    monkeypatch.setenv("DATABASE_URL", db_url)
    get_settings.cache_clear()

    # Rebuild DB bindings per test so every test gets its own writable SQLite file.
    app_db.engine.dispose()
    app_db.DATABASE_URL = app_db.get_database_url()
    app_db.engine = create_engine(
        app_db.DATABASE_URL,
        connect_args={"check_same_thread": False},
        pool_pre_ping=True,
    )
    app_db.SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=app_db.engine,
        expire_on_commit=False,
    )

    app_db.Base.metadata.drop_all(bind=app_db.engine)
    app_db.Base.metadata.create_all(bind=app_db.engine)
    yield
    app_db.Base.metadata.drop_all(bind=app_db.engine)
    app_db.engine.dispose()
    get_settings.cache_clear()


@pytest.fixture
def db_session():
    db = app_db.SessionLocal()
    try:
        yield db
    finally:
        db.close()
