"""
Append-only audit log with a per-tenant hash chain
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, Index, JSON, UniqueConstraint

from itam.core.clock import new_id, utcnow
from itam.core.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    # No FK: failed logins are recorded against the "unknown" tenant
    tenant_id = Column(String(64), nullable=False)
    sequence = Column(Integer, nullable=False)  # position in the tenant's chain, from 1
    action = Column(String(64), nullable=False)
    resource_type = Column(String(32), nullable=False)
    resource_id = Column(String(64), nullable=True)
    user_id = Column(String(64), nullable=False)
    user_email = Column(String(255), nullable=False)
    user_role = Column(String(32), nullable=False)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    before_state = Column(JSON, nullable=True)
    after_state = Column(JSON, nullable=True)
    description = Column(Text, nullable=True)
    prev_hash = Column(String(64), nullable=False, default="")
    hash = Column(String(64), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("tenant_id", "sequence", name="uq_audit_logs_tenant_sequence"),
        Index("idx_audit_logs_tenant_created", "tenant_id", "created_at"),
        Index("idx_audit_logs_tenant_resource", "tenant_id", "resource_type", "resource_id"),
    )

    def __repr__(self):
        return f"<AuditLog(tenant_id={self.tenant_id}, sequence={self.sequence}, action='{self.action}')>"
