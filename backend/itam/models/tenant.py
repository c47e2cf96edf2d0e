"""
Tenant model for multi-tenant support
"""
from sqlalchemy import Column, String, DateTime, Boolean, Integer, UniqueConstraint

from itam.core.clock import new_id, utcnow
from itam.core.database import Base


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False)

    # Organization settings
    timezone = Column(String(64), nullable=False, default="UTC")
    currency = Column(String(8), nullable=False, default="USD")
    date_format = Column(String(32), nullable=False, default="MM/DD/YYYY")
    auto_recommendations = Column(Boolean, nullable=False, default=True)
    data_retention_days = Column(Integer, nullable=False, default=365)
    website = Column(String(255), nullable=True)
    industry = Column(String(128), nullable=True)
    support_email = Column(String(255), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("slug", name="uq_tenants_slug"),
    )

    def __repr__(self):
        return f"<Tenant(id={self.id}, slug='{self.slug}')>"
