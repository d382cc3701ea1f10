"""
Database transaction management utilities.

Provides context managers for safe database transactions
with automatic rollback on error.

Usage:
    with transaction(db):
        db.delete(reward)
        db.delete(referral)
        # Automatically commits on success, rolls back on error
"""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError


logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session) -> Generator[Session, None, None]:
    """
    Context manager for database transactions with automatic rollback.

    All database operations within the context succeed together
    or all fail together.

    Args:
        db: SQLAlchemy database session

    Yields:
        The same database session

    Raises:
        Any exception raised within the context
    """
    try:
        yield db
        db.commit()
        logger.debug("Transaction committed")
    except Exception as e:
        db.rollback()
        logger.error(f"Transaction rolled back due to error: {e}")
        raise


def safe_commit(db: Session) -> bool:
    """
    Commit a session, returning False (after rollback) instead of raising.

    Used for best-effort writes such as tracking events, where a failure
    must not break the enclosing request.
    """
    try:
        db.commit()
        return True
    except SQLAlchemyError as e:
        logger.error(f"Commit failed: {e}")
        db.rollback()
        return False
