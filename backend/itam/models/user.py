"""
User and invitation models
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Index, UniqueConstraint

from itam.core.clock import new_id, utcnow
from itam.core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    employee_id = Column(Integer, nullable=False)  # sequential per tenant, starts at 1001
    email = Column(String(255), nullable=False)  # trimmed + lower-cased
    password_hash = Column(String(255), nullable=True)
    first_name = Column(String(128), nullable=True)
    last_name = Column(String(128), nullable=True)
    role = Column(String(32), nullable=False, default="technician")
    department = Column(String(128), nullable=True)
    job_title = Column(String(128), nullable=True)
    phone = Column(String(32), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    invited_by = Column(String(36), nullable=True)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("tenant_id", "email", name="uq_users_tenant_email"),
        UniqueConstraint("tenant_id", "employee_id", name="uq_users_tenant_employee_id"),
        Index("idx_users_tenant_role", "tenant_id", "role"),
    )

    @property
    def full_name(self) -> str:
        parts = [self.first_name or "", self.last_name or ""]
        return " ".join(p for p in parts if p).strip() or self.email

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


class UserInvitation(Base):
    __tablename__ = "user_invitations"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    email = Column(String(255), nullable=False)
    first_name = Column(String(128), nullable=True)
    last_name = Column(String(128), nullable=True)
    role = Column(String(32), nullable=False, default="technician")
    token = Column(String(128), nullable=False)
    status = Column(String(16), nullable=False, default="pending")  # pending, accepted, expired
    invited_by = Column(String(36), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    accepted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("token", name="uq_user_invitations_token"),
        Index("idx_user_invitations_tenant_email", "tenant_id", "email"),
    )

    def __repr__(self):
        return f"<UserInvitation(id={self.id}, email='{self.email}', status='{self.status}')>"
