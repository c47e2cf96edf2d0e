"""
Per-tenant vocabulary and per-user preference models
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, Index, JSON, UniqueConstraint

from itam.core.clock import new_id, utcnow
from itam.core.database import Base

MASTER_DATA_TYPES = ("manufacturer", "model", "category", "location", "vendor", "company")


class MasterData(Base):
    __tablename__ = "master_data"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(32), nullable=False)
    value = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    meta_data = Column("metadata", JSON, nullable=True)
    created_by = Column(String(36), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_master_data_tenant_type", "tenant_id", "type"),
    )


class UserPreferences(Base):
    __tablename__ = "user_preferences"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    email_notifications = Column(Boolean, nullable=False, default=True)
    push_notifications = Column(Boolean, nullable=False, default=True)
    ai_recommendation_alerts = Column(Boolean, nullable=False, default=True)
    weekly_reports = Column(Boolean, nullable=False, default=False)
    asset_expiry_alerts = Column(Boolean, nullable=False, default=True)
    theme = Column(String(16), nullable=False, default="light")  # light, dark, auto
    language = Column(String(16), nullable=False, default="en")
    timezone = Column(String(64), nullable=False, default="UTC")
    date_format = Column(String(32), nullable=False, default="MM/DD/YYYY")
    items_per_page = Column(Integer, nullable=False, default=25)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("tenant_id", "user_id", name="uq_user_preferences_tenant_user"),
    )
