"""
User administration and invitation endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from itam.api.v1.deps import get_current_actor, get_user_service, require_role
from itam.core.context import ActorContext
from itam.schemas.user import InvitationCreate, InvitationResponse, RoleUpdate, UserCreate, UserResponse
from itam.services.roles import Role
from itam.services.user_service import UserService

router = APIRouter()


@router.get("/", response_model=List[UserResponse])
def list_users(
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
    actor: ActorContext = Depends(get_current_actor),
    service: UserService = Depends(get_user_service),
):
    return service.list_users(actor, role, is_active)


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    actor: ActorContext = Depends(require_role(Role.ADMIN)),
    service: UserService = Depends(get_user_service),
):
    return service.create_user(actor, payload)


@router.post("/invitations", response_model=InvitationResponse, status_code=status.HTTP_201_CREATED)
def invite_user(
    payload: InvitationCreate,
    actor: ActorContext = Depends(require_role(Role.ADMIN)),
    service: UserService = Depends(get_user_service),
):
    return service.create_invitation(actor, payload)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    actor: ActorContext = Depends(get_current_actor),
    service: UserService = Depends(get_user_service),
):
    return service.get_user(actor, user_id)


@router.patch("/{user_id}/role", response_model=UserResponse)
def update_role(
    user_id: str,
    payload: RoleUpdate,
    actor: ActorContext = Depends(require_role(Role.ADMIN)),
    service: UserService = Depends(get_user_service),
):
    return service.update_role(actor, user_id, payload.role)


@router.post("/{user_id}/deactivate", response_model=UserResponse)
def deactivate_user(
    user_id: str,
    actor: ActorContext = Depends(require_role(Role.ADMIN)),
    service: UserService = Depends(get_user_service),
):
    return service.deactivate_user(actor, user_id)


@router.post("/{user_id}/activate", response_model=UserResponse)
def activate_user(
    user_id: str,
    actor: ActorContext = Depends(require_role(Role.ADMIN)),
    service: UserService = Depends(get_user_service),
):
    return service.activate_user(actor, user_id)
