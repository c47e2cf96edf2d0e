"""
Recent activity feed drawn from the audit trail
"""
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from itam.repositories.audit_repository import AuditRepository


def relative_time(now: datetime, then: datetime) -> str:
    seconds = int((now - then).total_seconds())
    if seconds < 60:
        return "just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


class ActivityAnalytics:
    def get_recent_activity(self, db: Session, tenant_id: str, now: datetime, limit: int) -> List[Dict[str, Any]]:
        return [
            {
                "id": entry.id,
                "action": entry.action,
                "resource_type": entry.resource_type,
                "resource_id": entry.resource_id,
                "user_email": entry.user_email,
                "description": entry.description,
                "created_at": entry.created_at.isoformat(),
                "relative_time": relative_time(now, entry.created_at),
            }
            for entry in AuditRepository(db).recent(tenant_id, limit)
        ]
