"""
Per-tenant lock row claimed by the first administrator
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, PrimaryKeyConstraint

from itam.core.clock import utcnow
from itam.core.database import Base


class TenantAdminLock(Base):
    __tablename__ = "tenant_admin_lock"

    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        PrimaryKeyConstraint("tenant_id", name="pk_tenant_admin_lock"),
    )

    def __repr__(self):
        return f"<TenantAdminLock(tenant_id={self.tenant_id})>"
