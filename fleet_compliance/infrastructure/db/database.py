"""
Database connection management.

Supports:
  - SQLite (local dev, no setup)
  - PostgreSQL (production)

Connection string comes from DATABASE_URL (see Settings).
"""

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session

from fleet_compliance.config.settings import get_settings
from fleet_compliance.infrastructure.db.models import Base

logger = logging.getLogger(__name__)


def get_database_url() -> str:
    """Get database URL from settings."""
    return get_settings().database_url


def _sqlite_pragmas(dbapi_connection, connection_record):
    # ledger claims arrive from several sweep threads at once
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str = None):
    """Create SQLAlchemy engine."""
    db_url = url or get_database_url()

    if db_url.startswith("sqlite"):
        engine = create_engine(
            db_url,
            connect_args={"check_same_thread": False, "timeout": 30},
            echo=False,
        )
        event.listen(engine, "connect", _sqlite_pragmas)
    else:
        # PostgreSQL
        engine = create_engine(
            db_url,
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,
            echo=False,
        )

    return engine


# ── Global engine & session factory ──
_engine = None
_SessionFactory = None


def get_engine():
    """Get or create the global engine."""
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def get_session_factory():
    """Get or create the session factory."""
    global _SessionFactory
    if _SessionFactory is None:
        _SessionFactory = sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _SessionFactory


def build_session_factory(url: str):
    """Standalone engine + factory (tests, one-off scripts)."""
    engine = create_db_engine(url)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db():
    """Create all tables. Safe to call multiple times."""
    engine = get_engine()
    db_url = get_database_url()
    Base.metadata.create_all(engine)
    logger.info(f"Database initialized: {db_url.split('@')[-1] if '@' in db_url else db_url}")


@contextmanager
def get_db(factory=None) -> Session:
    """Context manager for database sessions."""
    factory = factory or get_session_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
