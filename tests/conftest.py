"""
Metrics Gate - pytest Configuration and Fixtures

Provides shared test fixtures for:
- In-memory SQLite engine/session with the full schema
- A tracked ORM entity (Reading) for repository and unit-of-work tests
- Audit stores (in-memory and SQLAlchemy)
"""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path.absolute()))

from sqlalchemy import create_engine, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from models import Base, SaveAudit, SummaryRecord  # noqa: F401  (registers tables)
from database.repositories.entity_repository import TrackedEntityMixin
from database.repositories.audit_repository import InMemoryAuditStore, SqlAlchemyAuditStore


class Reading(TrackedEntityMixin, Base):
    """Tracked entity used only by the test suite."""
    __tablename__ = "test_readings"

    sensor_id: Mapped[str] = mapped_column(String(50), nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(28, 10), nullable=False)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def sqlite_engine():
    """
    In-memory SQLite engine shared across threads.

    StaticPool keeps a single connection so the schema survives between
    sessions; check_same_thread=False allows asyncio.to_thread callers.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(sqlite_engine):
    """ORM session bound to the in-memory engine."""
    factory = sessionmaker(bind=sqlite_engine, expire_on_commit=False, autoflush=True)
    session = factory()
    yield session
    session.rollback()
    session.close()


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def reading_model():
    """The Reading ORM class."""
    return Reading


@pytest.fixture
def memory_audit_store():
    return InMemoryAuditStore()


@pytest.fixture
def sql_audit_store(db_session):
    return SqlAlchemyAuditStore(db_session)
