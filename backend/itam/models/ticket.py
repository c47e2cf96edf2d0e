"""
Support ticket models: tickets plus their append-only comments and activity trail
"""
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Index, Boolean, JSON, UniqueConstraint

from itam.core.clock import new_id, utcnow
from itam.core.database import Base

TICKET_PRIORITIES = ("low", "medium", "high", "urgent")
TICKET_STATUSES = ("open", "in-progress", "resolved", "closed")


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    ticket_number = Column(String(32), nullable=False)  # TKT-<time>-<rand>
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(64), nullable=False)
    priority = Column(String(16), nullable=False, default="medium")
    status = Column(String(16), nullable=False, default="open")

    requestor_id = Column(String(36), nullable=False)
    requestor_name = Column(String(255), nullable=False)
    requestor_email = Column(String(255), nullable=False)

    assigned_to_id = Column(String(36), nullable=True)
    assigned_to_name = Column(String(255), nullable=True)
    assigned_by_id = Column(String(36), nullable=True)
    assigned_by_name = Column(String(255), nullable=True)
    assigned_at = Column(DateTime, nullable=True)

    resolved_at = Column(DateTime, nullable=True)
    closed_at = Column(DateTime, nullable=True)
    due_date = Column(DateTime, nullable=True)
    resolution = Column(Text, nullable=True)
    resolution_notes = Column(Text, nullable=True)

    asset_id = Column(String(36), nullable=True)
    asset_name = Column(String(255), nullable=True)
    tags = Column(JSON, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("ticket_number", name="uq_tickets_ticket_number"),
        Index("idx_tickets_tenant_status", "tenant_id", "status"),
        Index("idx_tickets_tenant_assignee", "tenant_id", "assigned_to_id"),
        Index("idx_tickets_tenant_requestor", "tenant_id", "requestor_id"),
    )

    def __repr__(self):
        return f"<Ticket(id={self.id}, number='{self.ticket_number}', status='{self.status}')>"


class TicketComment(Base):
    __tablename__ = "ticket_comments"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    ticket_id = Column(String(36), ForeignKey("tickets.id"), nullable=False)
    author_id = Column(String(36), nullable=False)
    author_name = Column(String(255), nullable=False)
    author_role = Column(String(32), nullable=False)
    content = Column(Text, nullable=False)
    is_internal = Column(Boolean, nullable=False, default=False)
    attachments = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_ticket_comments_ticket", "tenant_id", "ticket_id"),
    )


class TicketActivity(Base):
    __tablename__ = "ticket_activities"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    ticket_id = Column(String(36), ForeignKey("tickets.id"), nullable=False)
    activity_type = Column(String(32), nullable=False)  # created, assigned, status_changed, commented, updated
    description = Column(Text, nullable=False)
    actor_id = Column(String(36), nullable=False)
    actor_name = Column(String(255), nullable=False)
    actor_role = Column(String(32), nullable=False)
    meta_data = Column("metadata", JSON, nullable=True)  # "metadata" is reserved on declarative models
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_ticket_activities_ticket", "tenant_id", "ticket_id"),
    )
