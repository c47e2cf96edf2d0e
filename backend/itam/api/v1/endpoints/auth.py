"""
Signup, login and invitation acceptance. All run before the caller has an identity.
"""
from typing import Callable

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from itam.api.v1.deps import get_onboarding_service, get_password_hasher, get_password_verifier, get_user_service
from itam.core.logging import get_logger
from itam.schemas.user import InvitationAccept, LoginRequest, SignupRequest, UserResponse
from itam.services.onboarding import OnboardingService
from itam.services.user_service import UserService

router = APIRouter()
logger = get_logger(__name__)


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(
    payload: SignupRequest,
    request: Request,
    service: OnboardingService = Depends(get_onboarding_service),
    hasher: Callable[[str], str] = Depends(get_password_hasher),
):
    """Register an organization and its first administrator"""
    result = service.register(
        payload.organization_name,
        payload.email,
        hasher(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    if result.already_exists:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": result.message, "code": "already_exists", "alreadyExists": True},
        )
    return {
        "tenant_id": result.tenant.id,
        "tenant_slug": result.tenant.slug,
        "user": UserResponse.model_validate(result.user).model_dump(mode="json"),
    }


@router.post("/login")
def login(
    payload: LoginRequest,
    request: Request,
    service: UserService = Depends(get_user_service),
    verifier: Callable[[str, str], bool] = Depends(get_password_verifier),
):
    """Check credentials; every failure answers 401 with the same body"""
    user = service.authenticate(
        payload.organization,
        payload.email,
        payload.password,
        verifier,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return {
        "tenant_id": user.tenant_id,
        "user": UserResponse.model_validate(user).model_dump(mode="json"),
    }


@router.post("/invitations/accept", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def accept_invitation(
    payload: InvitationAccept,
    service: UserService = Depends(get_user_service),
    hasher: Callable[[str], str] = Depends(get_password_hasher),
):
    accepted = service.accept_invitation(payload.token, payload.password, hasher)
    return accepted.user
