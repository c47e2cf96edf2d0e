"""
Shared FastAPI dependencies: caller identity, role checks and service wiring.

Authentication happens upstream. The gateway forwards the verified identity
in X-Tenant-ID / X-User-ID / X-User-Email / X-User-Role headers; the role is
normalized here so legacy names never reach the services.
"""
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session, sessionmaker

from itam.core.context import ActorContext
from itam.core.database import SessionLocal, get_db
from itam.core.exceptions import PermissionDenied, ValidationFailed
from itam.core.logging import set_tenant_id
from itam.core.security import hash_password, verify_password
from itam.services.asset_service import AssetService, LicenseService
from itam.services.audit_log import AuditLogger
from itam.services.onboarding import OnboardingService
from itam.services.roles import Role, check_permission, normalize_role
from itam.services.settings_service import SettingsService
from itam.services.ticket_service import TicketService
from itam.services.user_service import UserService


def get_session_factory() -> sessionmaker:
    return SessionLocal


def get_password_hasher() -> Callable[[str], str]:
    return hash_password


def get_password_verifier() -> Callable[[str, str], bool]:
    return verify_password


def get_audit_logger(session_factory: sessionmaker = Depends(get_session_factory)) -> AuditLogger:
    return AuditLogger(session_factory)


def get_current_actor(
    request: Request,
    x_tenant_id: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
) -> ActorContext:
    if not (x_tenant_id and x_user_id and x_user_email and x_user_role):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        role = normalize_role(x_user_role)
    except ValidationFailed:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    set_tenant_id(x_tenant_id)
    return ActorContext(
        tenant_id=x_tenant_id,
        user_id=x_user_id,
        email=x_user_email.strip().lower(),
        role=role.value,
        name=x_user_name,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def require_role(minimum: Role):
    """Dependency factory rejecting callers below the given role"""

    def dependency(actor: ActorContext = Depends(get_current_actor)) -> ActorContext:
        if not check_permission(actor.role, minimum.value):
            raise PermissionDenied(f"Requires {minimum.value} or higher")
        return actor

    return dependency


def get_asset_service(db: Session = Depends(get_db), audit: AuditLogger = Depends(get_audit_logger)) -> AssetService:
    return AssetService(db, audit)


def get_license_service(db: Session = Depends(get_db), audit: AuditLogger = Depends(get_audit_logger)) -> LicenseService:
    return LicenseService(db, audit)


def get_ticket_service(db: Session = Depends(get_db), audit: AuditLogger = Depends(get_audit_logger)) -> TicketService:
    return TicketService(db, audit)


def get_user_service(db: Session = Depends(get_db), audit: AuditLogger = Depends(get_audit_logger)) -> UserService:
    return UserService(db, audit)


def get_onboarding_service(db: Session = Depends(get_db), audit: AuditLogger = Depends(get_audit_logger)) -> OnboardingService:
    return OnboardingService(db, audit)


def get_settings_service(db: Session = Depends(get_db), audit: AuditLogger = Depends(get_audit_logger)) -> SettingsService:
    return SettingsService(db, audit)
