"""
Metrics Gate - Database Connection Management
Provides SQLAlchemy engine creation and ORM session management.

The engine URL comes from DATABASE_URL when set; otherwise a MySQL URL is
built from DB_* settings when DB_HOST is set, and a local SQLite file is used
as the fallback for development.
"""

from contextlib import contextmanager
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, URL
from sqlalchemy.orm import Session
from typing import Generator, Optional, Union

from utils.config import (
    DATABASE_URL, DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD, SQLITE_PATH,
    DB_POOL_SIZE, DB_POOL_MAX_OVERFLOW, DB_POOL_RECYCLE, DB_POOL_PRE_PING,
    config
)
from utils.logger import logger, log_database_error


def build_database_url() -> Union[str, URL]:
    """
    Resolve the engine URL from configuration.

    Returns:
        DATABASE_URL verbatim, a MySQL URL, or a SQLite file URL
    """
    if DATABASE_URL:
        return DATABASE_URL
    if DB_HOST:
        # URL.create() keeps the password out of repr() and logs
        return URL.create(
            drivername="mysql+pymysql",
            username=DB_USER,
            password=DB_PASSWORD,
            host=DB_HOST,
            port=DB_PORT,
            database=DB_NAME,
            query={
                "charset": "utf8mb4",
                "init_command": "SET time_zone='+00:00'",  # Force UTC for all connections
            },
        )
    return f"sqlite:///{SQLITE_PATH}"


class DatabaseConnection:
    """
    Manages the shared SQLAlchemy engine.

    Features:
    - Lazy engine creation on first use
    - Connection pooling and recycling for MySQL
    - Health checks before connection use (pool_pre_ping)
    """

    def __init__(self, url: Optional[Union[str, URL]] = None):
        self._url = url
        self._engine: Optional[Engine] = None

    def get_engine(self) -> Engine:
        """
        Get or create the SQLAlchemy engine.

        Returns:
            SQLAlchemy Engine instance

        Raises:
            DatabaseConnectionError: If the engine cannot be created
        """
        if self._engine is None:
            url = self._url if self._url is not None else build_database_url()
            try:
                if str(url).startswith("sqlite"):
                    # Sessions may be handed to worker threads (asyncio.to_thread)
                    self._engine = create_engine(
                        url,
                        echo=False,
                        connect_args={"check_same_thread": False},
                    )
                else:
                    self._engine = create_engine(
                        url,
                        pool_size=DB_POOL_SIZE,
                        max_overflow=DB_POOL_MAX_OVERFLOW,
                        pool_recycle=DB_POOL_RECYCLE,
                        pool_pre_ping=DB_POOL_PRE_PING,
                        echo=False,
                        hide_parameters=True,  # Prevent password from appearing in logs
                    )

                logger.info("Database engine initialized", extra={
                    "dialect": self._engine.dialect.name,
                    "environment": config.environment
                })

            except Exception as e:
                log_database_error(e, "Failed to create database engine")
                raise DatabaseConnectionError(f"Failed to create database engine: {e}")

        return self._engine

    def create_schema(self) -> None:
        """Create all ORM tables that do not exist yet."""
        from models import Base
        Base.metadata.create_all(self.get_engine())

    def test_connection(self) -> bool:
        """
        Test database connectivity.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            with self.get_engine().connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection test successful")
            return True
        except Exception as e:
            logger.error("Database connection test failed", extra={
                "error": str(e)
            })
            return False

    def close(self):
        """Close all connections in the pool."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Database connection pool closed")


class DatabaseConnectionError(Exception):
    """Raised when database connection fails."""
    pass


# Global database connection instance
db = DatabaseConnection()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Context manager for ORM database sessions.

    Sessions are automatically committed on success or rolled back on error.

    Yields:
        SQLAlchemy Session object

    Example:
        >>> from database.repositories.audit_repository import SqlAlchemyAuditStore
        >>> with get_db_session() as session:
        ...     store = SqlAlchemyAuditStore(session)
        ...     audit = store.last_for("Order", "42")
    """
    from models.base import create_session

    session = create_session()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        log_database_error(e, "ORM transaction failed, rolled back")
        raise
    finally:
        session.close()
