"""
Tenant, user and invitation repositories
"""
from datetime import datetime
from typing import Any, List, Optional, Tuple

from sqlalchemy import and_, func, update
from sqlalchemy.orm import Session

from itam.core.config import settings
from itam.core.database import transaction
from itam.core.exceptions import UniqueConstraintConflict
from itam.core.logging import get_logger
from itam.models.tenant import Tenant
from itam.models.user import User, UserInvitation
from itam.repositories.base_repository import BaseRepository

logger = get_logger(__name__)


class TenantRepository:
    """Tenants are the scope itself, so lookups key on the tenant id or slug"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, tenant_id: str) -> Optional[Tenant]:
        return self.db.query(Tenant).filter(Tenant.id == tenant_id).first()

    def get_by_slug(self, slug: str) -> Optional[Tenant]:
        return self.db.query(Tenant).filter(Tenant.slug == slug).first()

    def get_or_create_by_slug(self, name: str, slug: str) -> Tuple[Tenant, bool]:
        """Insert the tenant, or return the row a concurrent signup created first"""
        existing = self.get_by_slug(slug)
        if existing is not None:
            return existing, False
        try:
            with transaction(self.db):
                tenant = Tenant(name=name, slug=slug)
                self.db.add(tenant)
                self.db.flush()
            return tenant, True
        except UniqueConstraintConflict as exc:
            if not exc.involves("uq_tenants_slug", "tenants.slug"):
                raise
            logger.info(f"Tenant slug {slug} claimed concurrently; using existing row")
            winner = self.get_by_slug(slug)
            if winner is None:
                raise
            return winner, False

    def update_settings(self, tenant_id: str, **fields: Any) -> Optional[Tenant]:
        with transaction(self.db):
            tenant = self.get(tenant_id)
            if tenant is None:
                return None
            for key, value in fields.items():
                if key in ("id", "slug"):
                    continue
                setattr(tenant, key, value)
        return tenant

    def ids_with_users(self) -> List[str]:
        return [row[0] for row in self.db.query(User.tenant_id).distinct().all()]


class UserRepository(BaseRepository[User]):
    """Repository for user operations"""

    resource_name = "User"

    def __init__(self, db: Session):
        super().__init__(User, db)

    def get_by_email(self, tenant_id: str, email: str) -> Optional[User]:
        return self.db.query(User).filter(
            and_(User.tenant_id == tenant_id, User.email == email.strip().lower())
        ).first()

    def next_employee_id(self, tenant_id: str) -> int:
        current = self.db.query(func.max(User.employee_id)).filter(User.tenant_id == tenant_id).scalar()
        return settings.FIRST_EMPLOYEE_ID if current is None else int(current) + 1

    def add_user(self, tenant_id: str, /, **fields: Any) -> User:
        """Stage a user in the current unit of work with the next employee id"""
        fields["email"] = fields["email"].strip().lower()
        fields.setdefault("employee_id", self.next_employee_id(tenant_id))
        return self.add(tenant_id, **fields)

    def create_user(self, tenant_id: str, /, **fields: Any) -> User:
        """Create a user, retrying when a concurrent insert took the same employee id"""
        attempts = settings.EMPLOYEE_ID_MAX_ATTEMPTS
        attempt = 1
        while True:
            try:
                with transaction(self.db):
                    user = self.add_user(tenant_id, **dict(fields))
                return user
            except UniqueConstraintConflict as exc:
                if attempt >= attempts or not is_employee_id_conflict(exc):
                    raise
                logger.warning(f"Employee id collision for tenant {tenant_id} (attempt {attempt}/{attempts})")
                attempt += 1

    def list_users(self, tenant_id: str, role: Optional[str] = None, is_active: Optional[bool] = None) -> List[User]:
        query = self._scoped(tenant_id)
        if role:
            query = query.filter(User.role == role)
        if is_active is not None:
            query = query.filter(User.is_active == is_active)
        return query.order_by(User.employee_id).all()


class InvitationRepository(BaseRepository[UserInvitation]):
    """Repository for user invitations"""

    resource_name = "Invitation"

    def __init__(self, db: Session):
        super().__init__(UserInvitation, db)

    def get_pending(self, tenant_id: str, email: str, now: datetime) -> Optional[UserInvitation]:
        return self.db.query(UserInvitation).filter(
            UserInvitation.tenant_id == tenant_id,
            UserInvitation.email == email,
            UserInvitation.status == "pending",
            UserInvitation.expires_at > now,
        ).first()

    def claim(self, token: str, now: datetime) -> Optional[UserInvitation]:
        """Flip a pending, unexpired invitation to accepted; None if another caller got there first"""
        result = self.db.execute(
            update(UserInvitation)
            .where(
                UserInvitation.token == token,
                UserInvitation.status == "pending",
                UserInvitation.expires_at > now,
            )
            .values(status="accepted", accepted_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None
        invitation = self.db.query(UserInvitation).filter(UserInvitation.token == token).first()
        self.db.refresh(invitation)
        return invitation

    def expire_stale(self, token: str, now: datetime) -> int:
        with transaction(self.db):
            result = self.db.execute(
                update(UserInvitation)
                .where(
                    UserInvitation.token == token,
                    UserInvitation.status == "pending",
                    UserInvitation.expires_at <= now,
                )
                .values(status="expired")
                .execution_options(synchronize_session=False)
            )
        return result.rowcount


def is_employee_id_conflict(exc: UniqueConstraintConflict) -> bool:
    return exc.involves("uq_users_tenant_employee_id", "users.employee_id")
