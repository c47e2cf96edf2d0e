"""
Exactly one initial super-admin per tenant.

The claim inserts a row keyed by tenant id into ``tenant_admin_lock`` as the
first statement of the transaction that creates the user. A concurrent
claimer fails on the primary key and gets ``already_exists`` back; no
existence check is ever read first.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from itam.core.clock import Clock, utcnow
from itam.core.database import transaction
from itam.core.exceptions import UniqueConstraintConflict
from itam.core.logging import get_logger
from itam.core.metrics import record_backfill, record_first_admin_claim
from itam.models.admin_lock import TenantAdminLock
from itam.models.user import User
from itam.repositories.user_repository import TenantRepository, UserRepository
from itam.services.roles import Role

logger = get_logger(__name__)

LOCK_CONSTRAINT = "pk_tenant_admin_lock"
LOCK_COLUMN = "tenant_admin_lock.tenant_id"


def is_lock_conflict(exc: UniqueConstraintConflict) -> bool:
    return exc.involves(LOCK_CONSTRAINT, LOCK_COLUMN)


@dataclass
class FirstAdminResult:
    success: bool
    already_exists: bool = False
    user: Optional[User] = None


@dataclass
class BackfillReport:
    created: int = 0
    already_locked: int = 0
    failed: int = 0
    failed_tenants: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "created": self.created,
            "already_locked": self.already_locked,
            "failed": self.failed,
            "failed_tenants": list(self.failed_tenants),
        }


class FirstAdminLock:
    """Claims the first-admin slot of a tenant and backfills locks for older tenants"""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    def create_first_admin(self, tenant_id: str, email: str, **profile: Any) -> FirstAdminResult:
        """Create the tenant's super-admin unless another caller already has"""
        profile.pop("role", None)
        users = UserRepository(self.db)
        try:
            with transaction(self.db):
                self.db.add(TenantAdminLock(tenant_id=tenant_id, created_at=self.clock()))
                self.db.flush()
                user = users.add_user(tenant_id, email=email, role=Role.SUPER_ADMIN.value, **profile)
        except UniqueConstraintConflict as exc:
            if not is_lock_conflict(exc):
                raise
            record_first_admin_claim("already_exists")
            logger.info(f"First admin for tenant {tenant_id} already exists")
            return FirstAdminResult(success=False, already_exists=True)

        record_first_admin_claim("created")
        logger.info(f"Created first admin {user.id} for tenant {tenant_id}")
        return FirstAdminResult(success=True, user=user)

    def backfill(self) -> BackfillReport:
        """Lock every tenant that already has users. Safe to run repeatedly."""
        report = BackfillReport()
        for tenant_id in TenantRepository(self.db).ids_with_users():
            try:
                with transaction(self.db):
                    self.db.add(TenantAdminLock(tenant_id=tenant_id, created_at=self.clock()))
                    self.db.flush()
                report.created += 1
            except UniqueConstraintConflict as exc:
                if is_lock_conflict(exc):
                    report.already_locked += 1
                    continue
                report.failed += 1
                report.failed_tenants.append(tenant_id)
                logger.error(f"Admin lock backfill failed for tenant {tenant_id}: {exc}")
            except Exception as e:
                # One broken tenant must not stop the rest of the batch
                report.failed += 1
                report.failed_tenants.append(tenant_id)
                logger.error(f"Admin lock backfill failed for tenant {tenant_id}: {e}", exc_info=True)

        record_backfill("created", report.created)
        record_backfill("already_locked", report.already_locked)
        record_backfill("failed", report.failed)
        return report
