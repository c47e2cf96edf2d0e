"""
Ticket workflow service
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from itam.core.context import ActorContext
from itam.core.exceptions import NotFoundOrForbidden, PermissionDenied
from itam.core.logging import get_logger
from itam.models.ticket import Ticket, TicketActivity, TicketComment
from itam.repositories.ticket_repository import TicketRepository
from itam.schemas.ticket import CommentCreate, TicketCreate, TicketStatusUpdate, TicketUpdate
from itam.services.audit_log import AuditActions, AuditLogger, ResourceTypes, snapshot
from itam.services.roles import Role, check_permission
from itam.services.ticket_sequencer import TicketSequencer

logger = get_logger(__name__)


class TicketService:
    """Opens, routes and closes tickets; every change lands in the audit trail"""

    def __init__(self, db: Session, audit: AuditLogger, sequencer: Optional[TicketSequencer] = None):
        self.db = db
        self.audit = audit
        self.tickets = TicketRepository(db, sequencer=sequencer)

    def list_tickets(
        self,
        actor: ActorContext,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Ticket]:
        return self.tickets.list(
            actor.tenant_id, skip=skip, limit=limit, status=status, priority=priority, category=category
        )

    def get_ticket(self, actor: ActorContext, ticket_id: str) -> Ticket:
        return self.tickets.get_or_raise(actor.tenant_id, ticket_id)

    def create_ticket(self, actor: ActorContext, data: TicketCreate) -> Ticket:
        ticket = self.tickets.create(actor.tenant_id, actor, **data.model_dump())
        self.audit.record(
            actor, AuditActions.TICKET_CREATE, ResourceTypes.TICKET, ticket.id,
            after=ticket, description=f"Created ticket {ticket.ticket_number}",
        )
        return ticket

    def update_ticket(self, actor: ActorContext, ticket_id: str, data: TicketUpdate) -> Ticket:
        before = snapshot(self.tickets.get_or_raise(actor.tenant_id, ticket_id))
        ticket = self.tickets.update_ticket(actor.tenant_id, ticket_id, actor, **data.model_dump(exclude_unset=True))
        self.audit.record(
            actor, AuditActions.TICKET_UPDATE, ResourceTypes.TICKET, ticket.id,
            before=before, after=ticket, description=f"Updated ticket {ticket.ticket_number}",
        )
        return ticket

    def assign_ticket(self, actor: ActorContext, ticket_id: str, assignee_id: str) -> Ticket:
        before = snapshot(self.tickets.get_or_raise(actor.tenant_id, ticket_id))
        ticket = self.tickets.assign(actor.tenant_id, ticket_id, assignee_id, actor)
        self.audit.record(
            actor, AuditActions.TICKET_ASSIGN, ResourceTypes.TICKET, ticket.id,
            before=before, after=ticket,
            description=f"Assigned ticket {ticket.ticket_number} to {ticket.assigned_to_name}",
        )
        return ticket

    def update_status(self, actor: ActorContext, ticket_id: str, data: TicketStatusUpdate) -> Ticket:
        before = snapshot(self.tickets.get_or_raise(actor.tenant_id, ticket_id))
        ticket = self.tickets.update_status(
            actor.tenant_id, ticket_id, data.status, actor,
            resolution=data.resolution, resolution_notes=data.resolution_notes,
        )
        self.audit.record(
            actor, AuditActions.TICKET_STATUS_CHANGE, ResourceTypes.TICKET, ticket.id,
            before=before, after=ticket,
            description=f"Ticket {ticket.ticket_number} moved from {before['status']} to {ticket.status}",
        )
        return ticket

    def add_comment(self, actor: ActorContext, ticket_id: str, data: CommentCreate) -> TicketComment:
        comment = self.tickets.add_comment(
            actor.tenant_id, ticket_id, actor, data.content,
            is_internal=data.is_internal, attachments=data.attachments, payload_tenant_id=data.tenant_id,
        )
        self.audit.record(
            actor, AuditActions.TICKET_COMMENT_ADD, ResourceTypes.COMMENT, comment.id,
            after=comment, description=f"Commented on ticket {ticket_id}",
        )
        return comment

    def list_comments(self, actor: ActorContext, ticket_id: str) -> List[TicketComment]:
        # Internal notes are for IT staff above technician level and the ticket's assignee
        ticket = self.tickets.get_or_raise(actor.tenant_id, ticket_id)
        include_internal = check_permission(actor.role, Role.IT_MANAGER.value) or ticket.assigned_to_id == actor.user_id
        return self.tickets.list_comments(actor.tenant_id, ticket_id, include_internal=include_internal)

    def list_activities(self, actor: ActorContext, ticket_id: str) -> List[TicketActivity]:
        return self.tickets.list_activities(actor.tenant_id, ticket_id)

    def list_assigned_to(self, actor: ActorContext, user_id: str) -> List[Ticket]:
        return self.tickets.list_by_assignee(actor.tenant_id, user_id)

    def list_requested_by(self, actor: ActorContext, user_id: str) -> List[Ticket]:
        return self.tickets.list_by_requestor(actor.tenant_id, user_id)

    def delete_ticket(self, actor: ActorContext, ticket_id: str) -> None:
        if not check_permission(actor.role, Role.ADMIN.value):
            raise PermissionDenied("Only administrators can delete tickets")
        before = snapshot(self.tickets.get_or_raise(actor.tenant_id, ticket_id))
        if not self.tickets.delete(actor.tenant_id, ticket_id):
            raise NotFoundOrForbidden("Ticket")
        self.audit.record(
            actor, AuditActions.TICKET_DELETE, ResourceTypes.TICKET, ticket_id,
            before=before, description=f"Deleted ticket {before['ticket_number']}",
        )
