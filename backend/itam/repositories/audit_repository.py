"""
Audit log persistence
"""
from typing import Any, Iterator, List, Optional, Tuple

from sqlalchemy.orm import Session

from itam.models.audit import AuditLog
from itam.schemas.audit import AuditQuery


class AuditRepository:
    """Append and read a tenant's audit chain. There is no update or delete."""

    def __init__(self, db: Session):
        self.db = db

    def tip(self, tenant_id: str) -> Optional[AuditLog]:
        return (
            self.db.query(AuditLog)
            .filter(AuditLog.tenant_id == tenant_id)
            .order_by(AuditLog.sequence.desc())
            .first()
        )

    def append(self, **fields: Any) -> AuditLog:
        entry = AuditLog(**fields)
        self.db.add(entry)
        self.db.flush()
        return entry

    def page(self, tenant_id: str, filters: AuditQuery, page: int, page_size: int) -> Tuple[List[AuditLog], int]:
        query = self.db.query(AuditLog).filter(AuditLog.tenant_id == tenant_id)
        if filters.action:
            query = query.filter(AuditLog.action == filters.action)
        if filters.resource_type:
            query = query.filter(AuditLog.resource_type == filters.resource_type)
        if filters.resource_id:
            query = query.filter(AuditLog.resource_id == filters.resource_id)
        if filters.user_id:
            query = query.filter(AuditLog.user_id == filters.user_id)
        if filters.created_from:
            query = query.filter(AuditLog.created_at >= filters.created_from)
        if filters.created_to:
            query = query.filter(AuditLog.created_at <= filters.created_to)

        total = query.count()
        items = (
            query.order_by(AuditLog.sequence.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return items, total

    def recent(self, tenant_id: str, limit: int) -> List[AuditLog]:
        return (
            self.db.query(AuditLog)
            .filter(AuditLog.tenant_id == tenant_id)
            .order_by(AuditLog.sequence.desc())
            .limit(limit)
            .all()
        )

    def chain(self, tenant_id: str) -> Iterator[AuditLog]:
        return (
            self.db.query(AuditLog)
            .filter(AuditLog.tenant_id == tenant_id)
            .order_by(AuditLog.sequence)
            .yield_per(500)
        )
