"""
Ticket endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from itam.api.v1.deps import get_current_actor, get_ticket_service, require_role
from itam.core.context import ActorContext
from itam.core.logging import get_logger
from itam.schemas.ticket import (
    ActivityResponse,
    CommentCreate,
    CommentResponse,
    TicketAssign,
    TicketCreate,
    TicketResponse,
    TicketStatusUpdate,
    TicketUpdate,
)
from itam.services.roles import Role
from itam.services.ticket_service import TicketService

router = APIRouter()
logger = get_logger(__name__)


@router.get("/", response_model=List[TicketResponse])
def list_tickets(
    status: Optional[str] = None,
    priority: Optional[str] = None,
    category: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    actor: ActorContext = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return service.list_tickets(actor, status, priority, category, skip, limit)


@router.get("/assigned-to/{user_id}", response_model=List[TicketResponse])
def list_assigned_to(
    user_id: str,
    actor: ActorContext = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return service.list_assigned_to(actor, user_id)


@router.get("/requested-by/{user_id}", response_model=List[TicketResponse])
def list_requested_by(
    user_id: str,
    actor: ActorContext = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return service.list_requested_by(actor, user_id)


@router.post("/", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
def create_ticket(
    payload: TicketCreate,
    actor: ActorContext = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return service.create_ticket(actor, payload)


@router.get("/{ticket_id}", response_model=TicketResponse)
def get_ticket(
    ticket_id: str,
    actor: ActorContext = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return service.get_ticket(actor, ticket_id)


@router.patch("/{ticket_id}", response_model=TicketResponse)
def update_ticket(
    ticket_id: str,
    payload: TicketUpdate,
    actor: ActorContext = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return service.update_ticket(actor, ticket_id, payload)


@router.post("/{ticket_id}/assign", response_model=TicketResponse)
def assign_ticket(
    ticket_id: str,
    payload: TicketAssign,
    actor: ActorContext = Depends(require_role(Role.IT_MANAGER)),
    service: TicketService = Depends(get_ticket_service),
):
    return service.assign_ticket(actor, ticket_id, payload.assignee_id)


@router.post("/{ticket_id}/status", response_model=TicketResponse)
def update_ticket_status(
    ticket_id: str,
    payload: TicketStatusUpdate,
    actor: ActorContext = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return service.update_status(actor, ticket_id, payload)


@router.get("/{ticket_id}/comments", response_model=List[CommentResponse])
def list_comments(
    ticket_id: str,
    actor: ActorContext = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return service.list_comments(actor, ticket_id)


@router.post("/{ticket_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def add_comment(
    ticket_id: str,
    payload: CommentCreate,
    actor: ActorContext = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return service.add_comment(actor, ticket_id, payload)


@router.get("/{ticket_id}/activities", response_model=List[ActivityResponse])
def list_activities(
    ticket_id: str,
    actor: ActorContext = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return service.list_activities(actor, ticket_id)


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ticket(
    ticket_id: str,
    actor: ActorContext = Depends(require_role(Role.ADMIN)),
    service: TicketService = Depends(get_ticket_service),
):
    service.delete_ticket(actor, ticket_id)
