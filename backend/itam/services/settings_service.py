"""
Organization settings, user preferences and master data
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from itam.core.context import ActorContext
from itam.core.exceptions import NotFoundOrForbidden, PermissionDenied
from itam.core.logging import get_logger
from itam.models.settings import MasterData
from itam.models.tenant import Tenant
from itam.repositories.settings_repository import MasterDataRepository, PreferencesRepository
from itam.repositories.user_repository import TenantRepository
from itam.schemas.settings import MasterDataCreate, OrgSettingsUpdate, PreferencesResponse, PreferencesUpdate
from itam.services.audit_log import AuditActions, AuditLogger, ResourceTypes, snapshot
from itam.services.roles import Role, check_permission

logger = get_logger(__name__)


class SettingsService:
    def __init__(self, db: Session, audit: AuditLogger):
        self.db = db
        self.audit = audit
        self.tenants = TenantRepository(db)
        self.preferences = PreferencesRepository(db)
        self.master_data = MasterDataRepository(db)

    def get_org_settings(self, actor: ActorContext) -> Tenant:
        tenant = self.tenants.get(actor.tenant_id)
        if tenant is None:
            raise NotFoundOrForbidden("Organization")
        return tenant

    def update_org_settings(self, actor: ActorContext, data: OrgSettingsUpdate) -> Tenant:
        if not check_permission(actor.role, Role.ADMIN.value):
            raise PermissionDenied("Only administrators can change organization settings")
        before = snapshot(self.get_org_settings(actor))
        tenant = self.tenants.update_settings(actor.tenant_id, **data.model_dump(exclude_unset=True))
        if tenant is None:
            raise NotFoundOrForbidden("Organization")
        self.audit.record(
            actor, AuditActions.ORG_SETTINGS_UPDATE, ResourceTypes.SETTINGS, tenant.id,
            before=before, after=tenant, description="Updated organization settings",
        )
        return tenant

    def get_preferences(self, actor: ActorContext) -> PreferencesResponse:
        """Stored preferences, or the defaults when the user never saved any"""
        preferences = self.preferences.get_for_user(actor.tenant_id, actor.user_id)
        if preferences is None:
            return PreferencesResponse()
        return PreferencesResponse.model_validate(preferences)

    def update_preferences(self, actor: ActorContext, data: PreferencesUpdate) -> PreferencesResponse:
        before = self.get_preferences(actor).model_dump()
        preferences = self.preferences.upsert(actor.tenant_id, actor.user_id, **data.model_dump(exclude_unset=True))
        self.audit.record(
            actor, AuditActions.USER_PREFERENCES_UPDATE, ResourceTypes.PREFERENCES, preferences.id,
            before=before, after=preferences, description="Updated preferences",
        )
        return PreferencesResponse.model_validate(preferences)

    def list_master_data(self, actor: ActorContext, type: Optional[str] = None) -> List[MasterData]:
        return self.master_data.list_values(actor.tenant_id, type=type)

    def add_master_data(self, actor: ActorContext, data: MasterDataCreate) -> MasterData:
        if not check_permission(actor.role, Role.IT_MANAGER.value):
            raise PermissionDenied("Only IT managers and above can manage master data")
        entry = self.master_data.create(
            actor.tenant_id,
            type=data.type,
            value=data.value.strip(),
            description=data.description,
            meta_data=data.metadata,
            created_by=actor.user_id,
        )
        self.audit.record(
            actor, AuditActions.MASTER_DATA_CREATE, ResourceTypes.MASTER_DATA, entry.id,
            after=entry, description=f"Added {entry.type} {entry.value}",
        )
        return entry
