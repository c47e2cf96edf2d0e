"""
Asset and software license models
"""
from sqlalchemy import Column, Integer, String, DateTime, Date, Text, ForeignKey, Index, Numeric, JSON

from itam.core.clock import new_id, utcnow
from itam.core.database import Base

ASSET_TYPES = ("Hardware", "Software", "Peripherals", "Others")
ASSET_STATUSES = ("in-stock", "deployed", "in-repair", "disposed")


class Asset(Base):
    __tablename__ = "assets"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    type = Column(String(32), nullable=False)  # Hardware, Software, Peripherals, Others
    status = Column(String(32), nullable=False, default="in-stock")
    category = Column(String(128), nullable=True)
    manufacturer = Column(String(128), nullable=True)
    model = Column(String(128), nullable=True)
    serial_number = Column(String(128), nullable=True)
    location = Column(String(255), nullable=True)
    country = Column(String(64), nullable=True)
    state = Column(String(64), nullable=True)
    city = Column(String(64), nullable=True)

    # Assignment
    assigned_user_id = Column(String(36), nullable=True)
    assigned_user_name = Column(String(255), nullable=True)
    assigned_user_email = Column(String(255), nullable=True)
    assigned_user_employee_id = Column(Integer, nullable=True)

    # Lifecycle
    purchase_date = Column(Date, nullable=True)
    purchase_cost = Column(Numeric(12, 2, asdecimal=False), nullable=True)
    warranty_expiry = Column(Date, nullable=True)
    amc_expiry = Column(Date, nullable=True)
    specifications = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)

    # Software
    software_name = Column(String(255), nullable=True)
    version = Column(String(64), nullable=True)
    license_type = Column(String(64), nullable=True)
    license_key = Column(String(255), nullable=True)
    used_licenses = Column(Integer, nullable=True)
    renewal_date = Column(Date, nullable=True)

    # Vendor
    vendor_name = Column(String(255), nullable=True)
    vendor_email = Column(String(255), nullable=True)
    vendor_phone = Column(String(64), nullable=True)
    company_name = Column(String(255), nullable=True)
    company_gst_number = Column(String(64), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=utcnow)

    __table_args__ = (
        Index("idx_assets_tenant_type", "tenant_id", "type"),
        Index("idx_assets_tenant_status", "tenant_id", "status"),
    )

    def __repr__(self):
        return f"<Asset(id={self.id}, name='{self.name}', type='{self.type}')>"


class SoftwareLicense(Base):
    __tablename__ = "software_licenses"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    vendor = Column(String(255), nullable=True)
    version = Column(String(64), nullable=True)
    license_key = Column(String(255), nullable=True)
    license_type = Column(String(64), nullable=True)  # perpetual, subscription, volume
    total_licenses = Column(Integer, nullable=False, default=0)
    used_licenses = Column(Integer, nullable=False, default=0)  # may exceed total; flagged, not blocked
    cost_per_license = Column(Numeric(12, 2, asdecimal=False), nullable=True)
    renewal_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=utcnow)

    __table_args__ = (
        Index("idx_software_licenses_tenant", "tenant_id"),
    )

    def __repr__(self):
        return f"<SoftwareLicense(id={self.id}, name='{self.name}')>"
