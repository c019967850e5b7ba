# Metrics Gate - Models Package

# Import all ORM models to register them with SQLAlchemy's declarative base
# IMPORTANT: Use relative imports to avoid duplicate module loading issues
from .base import Base, SessionLocal, create_session
from .orm_audit import SaveAudit, utc_now
from .orm_summary import SummaryRecord

__all__ = [
    'Base',
    'SessionLocal',
    'create_session',
    'SaveAudit',
    'SummaryRecord',
    'utc_now',
]
