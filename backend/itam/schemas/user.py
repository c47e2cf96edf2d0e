"""
User, invitation and signup schemas
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def normalize_email(value: str) -> str:
    return (value or "").strip().lower()


class _EmailModel(BaseModel):
    email: str = Field(..., pattern=_EMAIL_PATTERN)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, value):
        return normalize_email(value) if isinstance(value, str) else value


class UserCreate(_EmailModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str = "technician"
    department: Optional[str] = None
    job_title: Optional[str] = None
    phone: Optional[str] = None


class RoleUpdate(BaseModel):
    role: str


class InvitationCreate(_EmailModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str = "technician"


class InvitationAccept(BaseModel):
    token: str = Field(..., min_length=8)
    password: str = Field(..., min_length=8)


class LoginRequest(_EmailModel):
    organization: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class SignupRequest(_EmailModel):
    organization_name: str = Field(..., min_length=1, max_length=255)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    password: str = Field(..., min_length=8)


class UserResponse(BaseModel):
    id: str
    tenant_id: str
    employee_id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    department: Optional[str] = None
    job_title: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class InvitationResponse(BaseModel):
    id: str
    tenant_id: str
    email: str
    role: str
    status: str
    token: str
    expires_at: datetime

    class Config:
        from_attributes = True
