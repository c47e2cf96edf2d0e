"""
Audit trail endpoints
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from itam.api.v1.deps import get_audit_logger, require_role
from itam.core.context import ActorContext
from itam.schemas.audit import AuditPage, AuditQuery, ChainVerification
from itam.services.audit_log import AuditLogger
from itam.services.roles import Role

router = APIRouter()


@router.get("/", response_model=AuditPage)
def list_audit_logs(
    action: Optional[str] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    user_id: Optional[str] = None,
    created_from: Optional[datetime] = None,
    created_to: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    actor: ActorContext = Depends(require_role(Role.ADMIN)),
    audit: AuditLogger = Depends(get_audit_logger),
):
    filters = AuditQuery(
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        user_id=user_id,
        created_from=created_from,
        created_to=created_to,
    )
    return audit.query(actor.tenant_id, filters, page, page_size)


@router.get("/verify", response_model=ChainVerification)
def verify_audit_chain(
    actor: ActorContext = Depends(require_role(Role.ADMIN)),
    audit: AuditLogger = Depends(get_audit_logger),
):
    """Recompute the tenant's hash chain and report the first tampered entry"""
    return audit.verify_chain(actor.tenant_id)
