"""
Database connection and session management.

Provides SQLAlchemy engine, session factory, and dependency injection
for database sessions in FastAPI endpoints.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Generator, Optional

from sqlalchemy import JSON, create_engine, event, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.pool import QueuePool, StaticPool

from .config import settings


logger = logging.getLogger(__name__)


# =============================================================================
# SQLAlchemy Base
# =============================================================================

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


# =============================================================================
# Engine Configuration
# =============================================================================

def get_engine_kwargs(url: str) -> Dict[str, Any]:
    """
    Build engine keyword arguments for the configured backend.

    PostgreSQL gets a bounded QueuePool; SQLite (local runs and tests) gets a
    single shared connection so in-memory databases survive across sessions.
    """
    if url.startswith("sqlite"):
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
            "echo": settings.debug,
        }
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "poolclass": QueuePool,
        "pool_pre_ping": True,
        "pool_recycle": settings.db_pool_recycle,
        "pool_timeout": settings.db_pool_timeout,
        "echo": settings.debug,
    }


engine = create_engine(settings.database_url, **get_engine_kwargs(settings.database_url))


# =============================================================================
# Session Factory
# =============================================================================

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


# =============================================================================
# Event Listeners for Connection Management
# =============================================================================

@event.listens_for(engine, "connect")
def set_connection_settings(dbapi_connection, connection_record):
    """
    Configure connection settings when a new connection is created.

    PostgreSQL: UTC timezone and a statement timeout.
    SQLite: enforce foreign keys.
    """
    cursor = dbapi_connection.cursor()
    if engine.dialect.name == "postgresql":
        cursor.execute("SET timezone='UTC'")
        cursor.execute("SET statement_timeout = '30s'")
    elif engine.dialect.name == "sqlite":
        cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# =============================================================================
# Dependency Injection
# =============================================================================

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database session injection.

    Creates a new session for each request and ensures proper cleanup.

    Example:
        @router.get("/leads")
        def list_leads(db: Session = Depends(get_db)):
            return db.query(Lead).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Database Utilities
# =============================================================================

def utcnow() -> datetime:
    """Timezone-aware current UTC time, used for column defaults."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a stored datetime to aware UTC (SQLite returns naive values)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def init_db() -> None:
    """
    Initialize database tables.

    Creates all tables defined in models. Used for development and tests;
    production schemas are managed by migrations.
    """
    from .. import models  # noqa: F401  (registers mappers)

    Base.metadata.create_all(bind=engine)


def check_db_connection() -> bool:
    """
    Check if database connection is healthy.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
