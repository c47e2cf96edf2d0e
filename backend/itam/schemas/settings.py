"""
Organization settings, user preferences and master data schemas
"""
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class OrgSettingsUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    timezone: Optional[str] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=8)
    date_format: Optional[str] = None
    auto_recommendations: Optional[bool] = None
    data_retention_days: Optional[int] = Field(None, ge=30, le=2555)
    website: Optional[str] = None
    industry: Optional[str] = None
    support_email: Optional[str] = None


class OrgSettingsResponse(BaseModel):
    id: str
    name: str
    slug: str
    timezone: str
    currency: str
    date_format: str
    auto_recommendations: bool
    data_retention_days: int
    website: Optional[str] = None
    industry: Optional[str] = None
    support_email: Optional[str] = None

    class Config:
        from_attributes = True


class PreferencesUpdate(BaseModel):
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
    ai_recommendation_alerts: Optional[bool] = None
    weekly_reports: Optional[bool] = None
    asset_expiry_alerts: Optional[bool] = None
    theme: Optional[Literal["light", "dark", "auto"]] = None
    language: Optional[str] = None
    timezone: Optional[str] = None
    date_format: Optional[str] = None
    items_per_page: Optional[int] = Field(None, ge=10, le=100)


class PreferencesResponse(BaseModel):
    email_notifications: bool = True
    push_notifications: bool = True
    ai_recommendation_alerts: bool = True
    weekly_reports: bool = False
    asset_expiry_alerts: bool = True
    theme: str = "light"
    language: str = "en"
    timezone: str = "UTC"
    date_format: str = "MM/DD/YYYY"
    items_per_page: int = 25

    class Config:
        from_attributes = True


class MasterDataCreate(BaseModel):
    type: Literal["manufacturer", "model", "category", "location", "vendor", "company"]
    value: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class MasterDataResponse(BaseModel):
    id: str
    type: str
    value: str
    description: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True
