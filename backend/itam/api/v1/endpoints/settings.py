"""
Organization settings, preferences, master data and maintenance endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from itam.api.v1.deps import get_audit_logger, get_current_actor, get_settings_service, require_role
from itam.core.context import ActorContext
from itam.core.database import get_db
from itam.schemas.settings import (
    MasterDataCreate,
    MasterDataResponse,
    OrgSettingsResponse,
    OrgSettingsUpdate,
    PreferencesResponse,
    PreferencesUpdate,
)
from itam.services.audit_log import AuditActions, AuditLogger, ResourceTypes
from itam.services.first_admin_lock import FirstAdminLock
from itam.services.roles import Role
from itam.services.settings_service import SettingsService

router = APIRouter()


@router.get("/organization", response_model=OrgSettingsResponse)
def get_org_settings(
    actor: ActorContext = Depends(get_current_actor),
    service: SettingsService = Depends(get_settings_service),
):
    return service.get_org_settings(actor)


@router.patch("/organization", response_model=OrgSettingsResponse)
def update_org_settings(
    payload: OrgSettingsUpdate,
    actor: ActorContext = Depends(require_role(Role.ADMIN)),
    service: SettingsService = Depends(get_settings_service),
):
    return service.update_org_settings(actor, payload)


@router.get("/preferences", response_model=PreferencesResponse)
def get_preferences(
    actor: ActorContext = Depends(get_current_actor),
    service: SettingsService = Depends(get_settings_service),
):
    return service.get_preferences(actor)


@router.patch("/preferences", response_model=PreferencesResponse)
def update_preferences(
    payload: PreferencesUpdate,
    actor: ActorContext = Depends(get_current_actor),
    service: SettingsService = Depends(get_settings_service),
):
    return service.update_preferences(actor, payload)


@router.get("/master-data", response_model=List[MasterDataResponse])
def list_master_data(
    type: Optional[str] = None,
    actor: ActorContext = Depends(get_current_actor),
    service: SettingsService = Depends(get_settings_service),
):
    return service.list_master_data(actor, type)


@router.post("/master-data", response_model=MasterDataResponse, status_code=status.HTTP_201_CREATED)
def add_master_data(
    payload: MasterDataCreate,
    actor: ActorContext = Depends(require_role(Role.IT_MANAGER)),
    service: SettingsService = Depends(get_settings_service),
):
    return service.add_master_data(actor, payload)


@router.post("/admin-locks/backfill")
def backfill_admin_locks(
    actor: ActorContext = Depends(require_role(Role.SUPER_ADMIN)),
    db: Session = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
):
    """Lock every tenant that predates the first-admin lock"""
    report = FirstAdminLock(db).backfill()
    audit.record(
        actor, AuditActions.ADMIN_LOCK_BACKFILL, ResourceTypes.SYSTEM,
        after=report.to_dict(), description="Ran admin lock backfill",
    )
    return report.to_dict()
