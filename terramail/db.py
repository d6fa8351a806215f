from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from terramail.config import Settings
from terramail.models import Base

logger = logging.getLogger(__name__)


engine: Engine | None = None
_session_factory: sessionmaker | None = None


class _SessionWrapper:
    """Callable proxy returning sessions from the current factory."""

    def __call__(self, *args: Any, **kwargs: Any):
        if _session_factory is None:
            raise RuntimeError("Database not initialized")
        return _session_factory(*args, **kwargs)


SessionLocal = _SessionWrapper()


def init_db(cfg: Settings) -> None:
    """Create engine and session factory using SQLAlchemy's ``create_engine``."""
    global engine, _session_factory

    if engine is not None:
        engine.dispose()

    if cfg.database_url.startswith("sqlite"):
        engine = create_engine(
            cfg.database_url,
            future=True,
            connect_args={"check_same_thread": False, "timeout": 15},
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        url = cfg.database_url
        # hosted providers hand out postgres:// URLs
        if url.startswith("postgres://"):
            url = "postgresql://" + url[len("postgres://"):]
        engine = create_engine(
            url,
            future=True,
            pool_size=10,
            max_overflow=5,
            pool_recycle=300,
            pool_pre_ping=True,
        )
    _session_factory = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )

    if cfg.db_create_all:
        Base.metadata.create_all(engine)


def _enable_sqlite_foreign_keys(dbapi_conn, _record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def ping() -> bool:
    """Return ``True`` when a trivial query succeeds."""
    if engine is None:
        return False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("Database health check failed: %s", exc)
        return False
    return True
