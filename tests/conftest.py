import os
import tempfile
from contextlib import redirect_stderr, redirect_stdout
from io import StringIO
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import delete

# Ensure tests run against a throwaway SQLite file with cheap hashing
_TEST_DB = Path(tempfile.gettempdir()) / "terramail_test.db"
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_DB}")
os.environ.setdefault("STORE_BACKEND", "sql")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SEED_DEFAULTS", "0")

from fastapi.testclient import TestClient

from terramail import db as db_module
from terramail.config import Settings
from terramail.db import init_db
from terramail.main import app
from terramail.models import (
    LoginAttempt,
    ProcessingSession,
    SubscriptionPlan,
    User,
    UserPurchase,
)
from terramail.store import JsonFileStore, SqlStore


@pytest.fixture(scope="session", autouse=True)
def apply_migrations():
    """Apply Alembic migrations before running tests."""
    # leftovers from an interrupted run would carry a stale alembic_version
    if os.environ["DATABASE_URL"] == f"sqlite:///{_TEST_DB}" and _TEST_DB.exists():
        _TEST_DB.unlink()
    cfg_path = Path(__file__).resolve().parent.parent / "alembic.ini"
    config = Config(str(cfg_path))
    stdout_buf, stderr_buf = StringIO(), StringIO()
    try:
        with redirect_stdout(stdout_buf), redirect_stderr(stderr_buf):
            command.upgrade(config, "head")
    except Exception as exc:
        print("Alembic upgrade failed:", exc)
        print("stdout:\n", stdout_buf.getvalue())
        print("stderr:\n", stderr_buf.getvalue())
        raise
    init_db(Settings())


@pytest.fixture(scope="session", autouse=True)
def remove_test_db():
    """Remove temporary SQLite database after tests finish."""
    yield
    db_url = os.environ.get("DATABASE_URL")
    if db_url and db_url.startswith("sqlite:///"):
        db_path = Path(db_url.replace("sqlite:///", ""))
        if db_path.exists():
            db_path.unlink()


@pytest.fixture(autouse=True)
def clean_tables(apply_migrations):
    """Every test starts from empty tables."""
    with db_module.SessionLocal() as session:
        for model in (UserPurchase, ProcessingSession, LoginAttempt, SubscriptionPlan, User):
            session.execute(delete(model))
        session.commit()
    yield


@pytest.fixture(scope="module")
def client(apply_migrations):
    """Yields a TestClient with lifespan events."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def sql_store(apply_migrations):
    return SqlStore()


@pytest.fixture
def json_store(tmp_path):
    return JsonFileStore(tmp_path / "terramail.json")


@pytest.fixture(params=["sql", "json"])
def store(request, sql_store, json_store):
    """Run a test once per storage backend."""
    return sql_store if request.param == "sql" else json_store


@pytest.fixture
def api_store(client):
    """The store instance the running app uses."""
    return client.app.state.store
