"""
Software license endpoints
"""
from typing import List

from fastapi import APIRouter, Depends, Query, status

from itam.api.v1.deps import get_current_actor, get_license_service, require_role
from itam.core.context import ActorContext
from itam.schemas.asset import LicenseCreate, LicenseResponse, LicenseUpdate
from itam.services.asset_service import LicenseService
from itam.services.roles import Role

router = APIRouter()


@router.get("/", response_model=List[LicenseResponse])
def list_licenses(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    actor: ActorContext = Depends(get_current_actor),
    service: LicenseService = Depends(get_license_service),
):
    return service.list_licenses(actor, skip, limit)


@router.get("/{license_id}", response_model=LicenseResponse)
def get_license(
    license_id: str,
    actor: ActorContext = Depends(get_current_actor),
    service: LicenseService = Depends(get_license_service),
):
    return service.get_license(actor, license_id)


@router.post("/", response_model=LicenseResponse, status_code=status.HTTP_201_CREATED)
def create_license(
    payload: LicenseCreate,
    actor: ActorContext = Depends(require_role(Role.IT_MANAGER)),
    service: LicenseService = Depends(get_license_service),
):
    return service.create_license(actor, payload)


@router.patch("/{license_id}", response_model=LicenseResponse)
def update_license(
    license_id: str,
    payload: LicenseUpdate,
    actor: ActorContext = Depends(require_role(Role.IT_MANAGER)),
    service: LicenseService = Depends(get_license_service),
):
    return service.update_license(actor, license_id, payload)


@router.delete("/{license_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_license(
    license_id: str,
    actor: ActorContext = Depends(require_role(Role.ADMIN)),
    service: LicenseService = Depends(get_license_service),
):
    service.delete_license(actor, license_id)
