"""
Ticket repository: tickets, comments and activities written as single units of work
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from itam.core.clock import Clock, utcnow
from itam.core.context import ActorContext
from itam.core.database import transaction
from itam.core.exceptions import NotFoundOrForbidden, TenantIsolationViolation, ValidationFailed
from itam.core.logging import get_logger
from itam.models.asset import Asset
from itam.models.ticket import Ticket, TicketActivity, TicketComment
from itam.models.user import User
from itam.repositories.base_repository import BaseRepository
from itam.services.ticket_sequencer import TicketSequencer

logger = get_logger(__name__)


class TicketRepository(BaseRepository[Ticket]):
    """Repository for ticket operations"""

    resource_name = "Ticket"

    def __init__(self, db: Session, sequencer: Optional[TicketSequencer] = None, clock: Clock = utcnow):
        super().__init__(Ticket, db)
        self.sequencer = sequencer or TicketSequencer()
        self.clock = clock

    def create(self, tenant_id: str, requestor: ActorContext, /, **fields: Any) -> Ticket:
        """Open a ticket and its "created" activity under a freshly allocated number"""
        asset_id = fields.get("asset_id")

        def write(number: str) -> Ticket:
            if asset_id:
                fields["asset_name"] = self._resolve_asset(tenant_id, asset_id).name
            ticket = self.add(
                tenant_id,
                ticket_number=number,
                requestor_id=requestor.user_id,
                requestor_name=requestor.display_name,
                requestor_email=requestor.email,
                created_at=self.clock(),
                **fields,
            )
            self._add_activity(ticket, "created", f"Ticket {number} created", requestor)
            return ticket

        ticket = self.sequencer.create(self.db, write)
        logger.info(f"Created ticket {ticket.ticket_number} for tenant {tenant_id}")
        return ticket

    def assign(self, tenant_id: str, ticket_id: str, assignee_id: str, actor: ActorContext) -> Ticket:
        with transaction(self.db):
            ticket = self.get_or_raise(tenant_id, ticket_id)
            assignee = self.db.query(User).filter(
                User.id == assignee_id, User.tenant_id == ticket.tenant_id
            ).first()
            if assignee is None:
                raise TenantIsolationViolation("User")
            if not assignee.is_active:
                raise ValidationFailed.single("assignee_id", "inactive_user", "Assignee is not active")

            previous_id = ticket.assigned_to_id
            ticket.assigned_to_id = assignee.id
            ticket.assigned_to_name = assignee.full_name
            ticket.assigned_by_id = actor.user_id
            ticket.assigned_by_name = actor.display_name
            ticket.assigned_at = self.clock()
            if ticket.status == "open":
                ticket.status = "in-progress"
            self._add_activity(
                ticket,
                "assigned",
                f"Assigned to {assignee.full_name}",
                actor,
                {"from": previous_id, "to": assignee.id},
            )
        return ticket

    def update_status(
        self,
        tenant_id: str,
        ticket_id: str,
        status: str,
        actor: ActorContext,
        resolution: Optional[str] = None,
        resolution_notes: Optional[str] = None,
    ) -> Ticket:
        with transaction(self.db):
            ticket = self.get_or_raise(tenant_id, ticket_id)
            previous = ticket.status
            now = self.clock()
            ticket.status = status
            if status == "resolved":
                ticket.resolved_at = now
            elif status == "closed":
                ticket.closed_at = now
                if ticket.resolved_at is None:
                    ticket.resolved_at = now
            else:
                ticket.resolved_at = None
                ticket.closed_at = None
            if resolution is not None:
                ticket.resolution = resolution
            if resolution_notes is not None:
                ticket.resolution_notes = resolution_notes
            self._add_activity(
                ticket,
                "status_changed",
                f"Status changed from {previous} to {status}",
                actor,
                {"from": previous, "to": status},
            )
        return ticket

    def update_ticket(self, tenant_id: str, ticket_id: str, actor: ActorContext, **fields: Any) -> Ticket:
        """Edit descriptive fields; status and assignment have their own workflows"""
        for reserved in ("status", "assigned_to_id", "ticket_number", "tenant_id", "id"):
            fields.pop(reserved, None)
        with transaction(self.db):
            ticket = self.get_or_raise(tenant_id, ticket_id)
            if fields.get("asset_id"):
                fields["asset_name"] = self._resolve_asset(ticket.tenant_id, fields["asset_id"]).name
            elif "asset_id" in fields:
                fields["asset_name"] = None
            changed = sorted(key for key, value in fields.items() if getattr(ticket, key) != value)
            for key in changed:
                setattr(ticket, key, fields[key])
            if changed:
                self._add_activity(ticket, "updated", f"Updated {', '.join(changed)}", actor, {"fields": changed})
        return ticket

    def add_comment(
        self,
        tenant_id: str,
        ticket_id: str,
        author: ActorContext,
        content: str,
        is_internal: bool = False,
        attachments: Optional[List[Dict[str, Any]]] = None,
        payload_tenant_id: Optional[str] = None,
    ) -> TicketComment:
        """Append a comment and its activity; both carry the ticket's own tenant"""
        with transaction(self.db):
            ticket = self.get_or_raise(tenant_id, ticket_id)
            owner = ticket.tenant_id
            if payload_tenant_id and payload_tenant_id != owner:
                logger.warning(
                    f"Ignoring tenant {payload_tenant_id} supplied with comment on ticket {ticket.id}"
                )
            comment = TicketComment(
                tenant_id=owner,
                ticket_id=ticket.id,
                author_id=author.user_id,
                author_name=author.display_name,
                author_role=author.role,
                content=content,
                is_internal=is_internal,
                attachments=attachments,
            )
            self.db.add(comment)
            self._add_activity(
                ticket,
                "commented",
                "Internal note added" if is_internal else "Comment added",
                author,
            )
            self.db.flush()
        return comment

    def delete(self, tenant_id: str, ticket_id: str) -> bool:
        """Remove the ticket with its comments and activities; False when not visible"""
        with transaction(self.db):
            ticket = self.get(tenant_id, ticket_id)
            if ticket is None:
                return False
            self.db.query(TicketActivity).filter(
                TicketActivity.ticket_id == ticket.id, TicketActivity.tenant_id == ticket.tenant_id
            ).delete(synchronize_session=False)
            self.db.query(TicketComment).filter(
                TicketComment.ticket_id == ticket.id, TicketComment.tenant_id == ticket.tenant_id
            ).delete(synchronize_session=False)
            self.db.delete(ticket)
        logger.info(f"Deleted ticket {ticket.ticket_number} for tenant {tenant_id}")
        return True

    def list_by_assignee(self, tenant_id: str, user_id: str) -> List[Ticket]:
        return self.list(tenant_id, limit=1000, assigned_to_id=user_id)

    def list_by_requestor(self, tenant_id: str, user_id: str) -> List[Ticket]:
        return self.list(tenant_id, limit=1000, requestor_id=user_id)

    def list_comments(self, tenant_id: str, ticket_id: str, include_internal: bool = True) -> List[TicketComment]:
        ticket = self.get_or_raise(tenant_id, ticket_id)
        query = self.db.query(TicketComment).filter(
            TicketComment.tenant_id == ticket.tenant_id, TicketComment.ticket_id == ticket.id
        )
        if not include_internal:
            query = query.filter(TicketComment.is_internal.is_(False))
        return query.order_by(TicketComment.created_at).all()

    def list_activities(self, tenant_id: str, ticket_id: str) -> List[TicketActivity]:
        ticket = self.get_or_raise(tenant_id, ticket_id)
        return self.db.query(TicketActivity).filter(
            TicketActivity.tenant_id == ticket.tenant_id, TicketActivity.ticket_id == ticket.id
        ).order_by(TicketActivity.created_at).all()

    def _resolve_asset(self, tenant_id: str, asset_id: str) -> Asset:
        asset = self.db.query(Asset).filter(Asset.id == asset_id, Asset.tenant_id == tenant_id).first()
        if asset is None:
            raise TenantIsolationViolation("Asset")
        return asset

    def _add_activity(
        self,
        ticket: Ticket,
        activity_type: str,
        description: str,
        actor: ActorContext,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> TicketActivity:
        activity = TicketActivity(
            tenant_id=ticket.tenant_id,
            ticket_id=ticket.id,
            activity_type=activity_type,
            description=description,
            actor_id=actor.user_id,
            actor_name=actor.display_name,
            actor_role=actor.role,
            meta_data=metadata,
            created_at=self.clock(),
        )
        self.db.add(activity)
        return activity
