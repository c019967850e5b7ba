"""
SQLAlchemy ORM Base Configuration
Provides declarative base and session management for ORM models.

IMPORTANT: Engine is imported from database.connection to ensure single source of truth.
"""

from sqlalchemy.orm import DeclarativeBase, sessionmaker


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


def _get_engine():
    """
    Get the SQLAlchemy engine from database.connection.

    Lazy import to avoid circular dependencies during module initialization.
    """
    from database.connection import db
    return db.get_engine()


# Session factory for manual session creation (workers, scripts).
# Unbound here; create_session() binds it to the shared engine on first use.
SessionLocal = sessionmaker(
    expire_on_commit=False,  # Allow access to objects after commit
    autoflush=True,
)


def create_session(bind=None):
    """
    Factory for creating sessions outside a managed context (workers, scripts).

    Usage:
        session = create_session()
        try:
            # Do work
            session.commit()
        except Exception as e:
            session.rollback()
            raise
        finally:
            session.close()

    Args:
        bind: Optional engine/connection; defaults to the shared engine

    Returns:
        SQLAlchemy Session instance
    """
    return SessionLocal(bind=bind if bind is not None else _get_engine())
