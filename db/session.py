"""
Database session management and connection configuration.

Provides session management using SQLAlchemy's modern patterns.
Designed for single-user operation: SQLite by default, MySQL via URL.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base
from config import config


logger = logging.getLogger(__name__)


# Enable foreign keys for SQLite (disabled by default)
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite connections."""
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """
    Manages database connections and sessions.

    Usage:
        db = DatabaseManager()
        with db.session() as session:
            stocks = session.query(Stock).all()
    """

    def __init__(self, db_url: Path | str | None = None):
        """
        Initialize database manager.

        Args:
            db_url: Optional custom database URL.
        """
        self.db_url = str(db_url) if db_url else config.database.url
        connect_args = {}
        if self.db_url.startswith("sqlite"):
            connect_args = {"check_same_thread": False}
            self._ensure_sqlite_dir()

        self.engine = create_engine(
            self.db_url,
            echo=False,  # Set True for SQL debugging
            future=True,
            connect_args=connect_args,
        )
        self._session_factory = sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
        )

    def _ensure_sqlite_dir(self) -> None:
        """Create the parent directory of a file-backed SQLite database."""
        path = self.db_url.split("///", 1)[-1]
        if path and path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all tables defined in models."""
        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope for database operations.

        Automatically commits on success, rolls back on exception.

        Yields:
            SQLAlchemy Session object.

        Example:
            with db.session() as session:
                session.add(new_stock)
        """
        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


# Global database manager instance (singleton pattern)
_db_manager: DatabaseManager | None = None


def get_db(db_url: Path | str | None = None) -> DatabaseManager:
    """
    Get or create the global database manager.

    Args:
        db_url: Optional custom URL (only used on first call).

    Returns:
        Global DatabaseManager instance.
    """
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager(db_url)
    return _db_manager


def init_db(db_url: Path | str | None = None, if_drop: bool = False) -> DatabaseManager:
    """
    Initialize the database with all tables and the single portfolio user.

    Args:
        db_url: Optional custom database URL.
        if_drop: If True, drop existing tables before creating.

    Returns:
        Initialized DatabaseManager instance.
    """
    from db.repositories import UserRepository

    db = get_db(db_url)
    if if_drop:
        db.drop_tables()
    db.create_tables()

    with db.session() as session:
        _, created = UserRepository(session).get_or_create_default()
    if created:
        logger.info(f"Created default user id={config.user.user_id}")
    return db
