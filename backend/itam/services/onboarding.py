"""
Organization signup: find-or-create the tenant, then claim its first admin
"""
import re
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from itam.core.clock import Clock, utcnow
from itam.core.context import ActorContext
from itam.core.exceptions import ValidationFailed
from itam.core.logging import get_logger
from itam.models.tenant import Tenant
from itam.models.user import User
from itam.repositories.user_repository import TenantRepository
from itam.schemas.user import normalize_email
from itam.services.audit_log import AuditActions, AuditLogger, ResourceTypes
from itam.services.first_admin_lock import FirstAdminLock

logger = get_logger(__name__)

ALREADY_EXISTS_MESSAGE = (
    "This organization already has an administrator. "
    "Please contact your administrator for an invitation."
)


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.strip().lower()).strip("-")
    return slug[:255]


@dataclass
class SignupResult:
    success: bool
    already_exists: bool = False
    tenant: Optional[Tenant] = None
    user: Optional[User] = None
    message: Optional[str] = None


class OnboardingService:
    """Registers organizations and their first super-admin"""

    def __init__(self, db: Session, audit: AuditLogger, clock: Clock = utcnow):
        self.db = db
        self.audit = audit
        self.tenants = TenantRepository(db)
        self.first_admin = FirstAdminLock(db, clock=clock)

    def register(
        self,
        organization_name: str,
        email: str,
        password_hash: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SignupResult:
        slug = slugify(organization_name)
        if not slug:
            raise ValidationFailed.single(
                "organization_name", "invalid_value", "Organization name must contain letters or digits"
            )

        tenant, created = self.tenants.get_or_create_by_slug(organization_name.strip(), slug)
        if created:
            self.audit.record(
                ActorContext.system(tenant.id), AuditActions.TENANT_CREATE, ResourceTypes.TENANT, tenant.id,
                after=tenant, description=f"Created organization {tenant.name}",
            )

        result = self.first_admin.create_first_admin(
            tenant.id,
            normalize_email(email),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
        )
        if not result.success:
            return SignupResult(success=False, already_exists=True, tenant=tenant, message=ALREADY_EXISTS_MESSAGE)

        user = result.user
        self.audit.record(
            ActorContext.for_user(user, ip_address=ip_address, user_agent=user_agent),
            AuditActions.SIGNUP, ResourceTypes.USER, user.id,
            after=user, description=f"{user.email} registered {tenant.name}",
        )
        return SignupResult(success=True, tenant=tenant, user=user)
