"""
Ticket, comment and activity schemas
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

TicketPriority = Literal["low", "medium", "high", "urgent"]
TicketStatus = Literal["open", "in-progress", "resolved", "closed"]


class TicketCreate(BaseModel):
    """Request to open a ticket"""
    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, max_length=64)
    priority: TicketPriority = "medium"
    due_date: Optional[datetime] = None
    asset_id: Optional[str] = None
    tags: Optional[List[str]] = None


class TicketUpdate(BaseModel):
    """Editable ticket fields outside the status and assignment workflows"""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1, max_length=64)
    priority: Optional[TicketPriority] = None
    due_date: Optional[datetime] = None
    asset_id: Optional[str] = None
    tags: Optional[List[str]] = None


class TicketAssign(BaseModel):
    assignee_id: str


class TicketStatusUpdate(BaseModel):
    status: TicketStatus
    resolution: Optional[str] = None
    resolution_notes: Optional[str] = None


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)
    is_internal: bool = False
    attachments: Optional[List[Dict[str, Any]]] = None
    # Accepted for client compatibility; the ticket's own tenant is always used
    tenant_id: Optional[str] = None


class TicketResponse(BaseModel):
    id: str
    tenant_id: str
    ticket_number: str
    title: str
    description: str
    category: str
    priority: str
    status: str
    requestor_id: str
    requestor_name: str
    requestor_email: str
    assigned_to_id: Optional[str] = None
    assigned_to_name: Optional[str] = None
    assigned_by_id: Optional[str] = None
    assigned_by_name: Optional[str] = None
    assigned_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    resolution: Optional[str] = None
    resolution_notes: Optional[str] = None
    asset_id: Optional[str] = None
    asset_name: Optional[str] = None
    tags: Optional[List[str]] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CommentResponse(BaseModel):
    id: str
    ticket_id: str
    tenant_id: str
    author_id: str
    author_name: str
    author_role: str
    content: str
    is_internal: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ActivityResponse(BaseModel):
    id: str
    ticket_id: str
    activity_type: str
    description: str
    actor_id: str
    actor_name: str
    actor_role: str
    meta_data: Optional[Dict[str, Any]] = Field(None, serialization_alias="metadata")
    created_at: datetime

    class Config:
        from_attributes = True
