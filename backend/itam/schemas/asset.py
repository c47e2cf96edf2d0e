"""
Asset and software license schemas
"""
from datetime import date, datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

# Numeric(12, 2) holds at most ten integer digits
MAX_MONEY = 10 ** 10
MAX_INT = 2 ** 31 - 1

AssetType = Literal["Hardware", "Software", "Peripherals", "Others"]
AssetStatus = Literal["in-stock", "deployed", "in-repair", "disposed"]


class AssetBase(BaseModel):
    category: Optional[str] = Field(None, max_length=128)
    manufacturer: Optional[str] = Field(None, max_length=128)
    model: Optional[str] = Field(None, max_length=128)
    serial_number: Optional[str] = Field(None, max_length=128)
    location: Optional[str] = Field(None, max_length=255)
    country: Optional[str] = Field(None, max_length=64)
    state: Optional[str] = Field(None, max_length=64)
    city: Optional[str] = Field(None, max_length=64)
    assigned_user_id: Optional[str] = Field(None, max_length=36)
    assigned_user_name: Optional[str] = Field(None, max_length=255)
    assigned_user_email: Optional[str] = Field(None, max_length=255)
    assigned_user_employee_id: Optional[int] = Field(None, ge=0, le=MAX_INT)
    purchase_date: Optional[date] = None
    purchase_cost: Optional[float] = Field(None, ge=0, lt=MAX_MONEY, allow_inf_nan=False)
    warranty_expiry: Optional[date] = None
    amc_expiry: Optional[date] = None
    specifications: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    software_name: Optional[str] = Field(None, max_length=255)
    version: Optional[str] = Field(None, max_length=64)
    license_type: Optional[str] = Field(None, max_length=64)
    license_key: Optional[str] = Field(None, max_length=255)
    used_licenses: Optional[int] = Field(None, ge=0, le=MAX_INT)
    renewal_date: Optional[date] = None
    vendor_name: Optional[str] = Field(None, max_length=255)
    vendor_email: Optional[str] = Field(None, max_length=255)
    vendor_phone: Optional[str] = Field(None, max_length=64)
    company_name: Optional[str] = Field(None, max_length=255)
    company_gst_number: Optional[str] = Field(None, max_length=64)


class AssetCreate(AssetBase):
    """Payload for creating an asset"""
    name: str = Field(..., min_length=1, max_length=255)
    type: AssetType
    status: AssetStatus = "in-stock"


class AssetUpdate(AssetBase):
    """Partial update; only fields that were sent are applied"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[AssetType] = None
    status: Optional[AssetStatus] = None


class AssetResponse(AssetCreate):
    id: str
    tenant_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LicenseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    vendor: Optional[str] = Field(None, max_length=255)
    version: Optional[str] = Field(None, max_length=64)
    license_key: Optional[str] = Field(None, max_length=255)
    license_type: Optional[str] = Field(None, max_length=64)
    total_licenses: int = Field(0, ge=0, le=MAX_INT)
    used_licenses: int = Field(0, ge=0, le=MAX_INT)
    cost_per_license: Optional[float] = Field(None, ge=0, lt=MAX_MONEY, allow_inf_nan=False)
    renewal_date: Optional[date] = None
    notes: Optional[str] = None


class LicenseUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    vendor: Optional[str] = Field(None, max_length=255)
    version: Optional[str] = Field(None, max_length=64)
    license_key: Optional[str] = Field(None, max_length=255)
    license_type: Optional[str] = Field(None, max_length=64)
    total_licenses: Optional[int] = Field(None, ge=0, le=MAX_INT)
    used_licenses: Optional[int] = Field(None, ge=0, le=MAX_INT)
    cost_per_license: Optional[float] = Field(None, ge=0, lt=MAX_MONEY, allow_inf_nan=False)
    renewal_date: Optional[date] = None
    notes: Optional[str] = None


class LicenseResponse(LicenseCreate):
    id: str
    tenant_id: str
    created_at: datetime

    class Config:
        from_attributes = True
