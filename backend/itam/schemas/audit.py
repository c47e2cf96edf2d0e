"""
Audit log query schemas
"""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class AuditQuery(BaseModel):
    """Filters for browsing a tenant's audit trail"""
    action: Optional[str] = None
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    user_id: Optional[str] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None


class AuditEntry(BaseModel):
    id: str
    sequence: int
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    user_id: str
    user_email: str
    user_role: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    before_state: Optional[Any] = None
    after_state: Optional[Any] = None
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AuditPage(BaseModel):
    items: List[AuditEntry] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 50


class ChainVerification(BaseModel):
    tenant_id: str
    ok: bool
    entries: int
    broken_at: Optional[int] = Field(None, description="Sequence of the first entry that fails verification")
    reason: Optional[str] = None
