"""
Repository: Save Audits
Append-only decision ledger. Rows are added, never updated or deleted.

Two implementations share the AuditStore contract:
- InMemoryAuditStore: process-local list, safe for concurrent threads
- SqlAlchemyAuditStore: save_audits table through an ORM session
"""

import threading
from typing import List, Optional, Protocol

from sqlalchemy import select, and_
from sqlalchemy.orm import Session

from models.orm_audit import SaveAudit


class AuditStore(Protocol):
    """Contract consumed by validators, consumers and the runner."""

    def add(self, audit: SaveAudit) -> SaveAudit:
        ...

    def last_for(
        self,
        entity_type: Optional[str],
        entity_id: str,
        application_name: Optional[str] = None
    ) -> Optional[SaveAudit]:
        ...

    def last_batch_for(self, entity_type: str) -> Optional[SaveAudit]:
        ...


class InMemoryAuditStore:
    """
    Append-only in-memory ledger.

    Every audit is kept (history is never overwritten). A lock guards the
    list so concurrent appends and reads are safe; a reader racing a writer
    sees either the state before or after the append.
    """

    def __init__(self):
        self._audits: List[SaveAudit] = []
        self._lock = threading.Lock()

    def add(self, audit: SaveAudit) -> SaveAudit:
        """Append an audit row."""
        with self._lock:
            if audit.id is None:
                audit.id = len(self._audits) + 1
            self._audits.append(audit)
        return audit

    def last_for(
        self,
        entity_type: Optional[str],
        entity_id: str,
        application_name: Optional[str] = None
    ) -> Optional[SaveAudit]:
        """
        Most recent audit for an entity.

        Args:
            entity_type: Entity type (None matches any type)
            entity_id: Entity id
            application_name: Restrict to audits from this application

        Returns:
            Max-timestamp row (latest append wins ties) or None
        """
        with self._lock:
            candidates = [
                a for a in self._audits
                if a.entity_id == entity_id
                and (entity_type is None or a.entity_type == entity_type)
                and (application_name is None or a.application_name == application_name)
            ]
        return self._latest(candidates)

    def last_batch_for(self, entity_type: str) -> Optional[SaveAudit]:
        """Most recent batch audit for an entity type."""
        with self._lock:
            candidates = [a for a in self._audits if a.entity_type == entity_type and a.is_batch]
        return self._latest(candidates)

    def all(self) -> List[SaveAudit]:
        """Snapshot of every audit in append order."""
        with self._lock:
            return list(self._audits)

    def __len__(self) -> int:
        with self._lock:
            return len(self._audits)

    @staticmethod
    def _latest(candidates: List[SaveAudit]) -> Optional[SaveAudit]:
        if not candidates:
            return None
        # max() keeps the first maximum, so scan newest-first
        return max(reversed(candidates), key=lambda a: a.timestamp)


class SqlAlchemyAuditStore:
    """Repository for SaveAudit rows."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, audit: SaveAudit) -> SaveAudit:
        """
        Append an audit row and flush so the caller reads its own write.

        Args:
            audit: Unsaved SaveAudit instance

        Returns:
            The same instance with its id populated
        """
        self.session.add(audit)
        self.session.flush()
        return audit

    def last_for(
        self,
        entity_type: Optional[str],
        entity_id: str,
        application_name: Optional[str] = None
    ) -> Optional[SaveAudit]:
        """Most recent audit for an entity (timestamp desc, id desc)."""
        conditions = [SaveAudit.entity_id == entity_id]
        if entity_type is not None:
            conditions.append(SaveAudit.entity_type == entity_type)
        if application_name is not None:
            conditions.append(SaveAudit.application_name == application_name)

        stmt = select(SaveAudit).where(
            and_(*conditions)
        ).order_by(SaveAudit.timestamp.desc(), SaveAudit.id.desc()).limit(1)
        return self.session.execute(stmt).scalars().first()

    def last_batch_for(self, entity_type: str) -> Optional[SaveAudit]:
        """Most recent batch audit for an entity type."""
        stmt = select(SaveAudit).where(
            and_(
                SaveAudit.entity_type == entity_type,
                SaveAudit.batch_audit.is_(True)
            )
        ).order_by(SaveAudit.timestamp.desc(), SaveAudit.id.desc()).limit(1)
        return self.session.execute(stmt).scalars().first()

    def history_for(self, entity_type: str, entity_id: str, limit: int = 100) -> List[SaveAudit]:
        """Audit history for an entity, newest first."""
        stmt = select(SaveAudit).where(
            and_(
                SaveAudit.entity_type == entity_type,
                SaveAudit.entity_id == entity_id
            )
        ).order_by(SaveAudit.timestamp.desc(), SaveAudit.id.desc()).limit(limit)
        return self.session.execute(stmt).scalars().all()
