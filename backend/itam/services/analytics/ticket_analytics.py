"""
Ticket analytics - status funnel
"""
from typing import Any, Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from itam.models.ticket import TICKET_PRIORITIES, TICKET_STATUSES, Ticket


class TicketAnalytics:
    def get_ticket_funnel(self, db: Session, tenant_id: str) -> Dict[str, Any]:
        by_status = {status: 0 for status in TICKET_STATUSES}
        for status, count in db.query(Ticket.status, func.count(Ticket.id)).filter(
            Ticket.tenant_id == tenant_id
        ).group_by(Ticket.status).all():
            by_status[status] = count

        by_priority = {priority: 0 for priority in TICKET_PRIORITIES}
        for priority, count in db.query(Ticket.priority, func.count(Ticket.id)).filter(
            Ticket.tenant_id == tenant_id,
            Ticket.status.in_(("open", "in-progress")),
        ).group_by(Ticket.priority).all():
            by_priority[priority] = count

        open_unassigned = db.query(func.count(Ticket.id)).filter(
            Ticket.tenant_id == tenant_id,
            Ticket.status == "open",
            Ticket.assigned_to_id.is_(None),
        ).scalar()

        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "open_by_priority": by_priority,
            "open_unassigned": open_unassigned or 0,
        }
