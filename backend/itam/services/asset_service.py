"""
Asset and license services: repository writes followed by audit records
"""
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from itam.core.context import ActorContext
from itam.core.exceptions import NotFoundOrForbidden, TenantIsolationViolation
from itam.core.logging import get_logger
from itam.models.asset import Asset, SoftwareLicense
from itam.models.user import User
from itam.repositories.asset_repository import AssetRepository, LicenseRepository
from itam.schemas.asset import AssetCreate, AssetUpdate, LicenseCreate, LicenseUpdate
from itam.services.audit_log import AuditActions, AuditLogger, ResourceTypes, snapshot
from itam.services.bulk_import import BulkImportEngine, ImportMode, ImportResult

logger = get_logger(__name__)


class AssetService:
    """Tenant-scoped asset operations"""

    def __init__(self, db: Session, audit: AuditLogger):
        self.db = db
        self.audit = audit
        self.assets = AssetRepository(db)

    def list_assets(
        self,
        actor: ActorContext,
        type: Optional[str] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Asset]:
        return self.assets.search(actor.tenant_id, type, status, category, search, skip, limit)

    def get_asset(self, actor: ActorContext, asset_id: str) -> Asset:
        return self.assets.get_or_raise(actor.tenant_id, asset_id)

    def create_asset(self, actor: ActorContext, data: AssetCreate) -> Asset:
        fields = data.model_dump()
        self._link_assignee(actor.tenant_id, fields)
        asset = self.assets.create(actor.tenant_id, **fields)
        self.audit.record(
            actor, AuditActions.ASSET_CREATE, ResourceTypes.ASSET, asset.id,
            after=asset, description=f"Created asset {asset.name}",
        )
        return asset

    def update_asset(self, actor: ActorContext, asset_id: str, data: AssetUpdate) -> Asset:
        fields = data.model_dump(exclude_unset=True)
        self._link_assignee(actor.tenant_id, fields)
        before = snapshot(self.assets.get_or_raise(actor.tenant_id, asset_id))
        asset = self.assets.update(actor.tenant_id, asset_id, **fields)
        if asset is None:
            raise NotFoundOrForbidden("Asset")
        self.audit.record(
            actor, AuditActions.ASSET_UPDATE, ResourceTypes.ASSET, asset.id,
            before=before, after=asset, description=f"Updated asset {asset.name}",
        )
        return asset

    def delete_asset(self, actor: ActorContext, asset_id: str) -> None:
        before = snapshot(self.assets.get_or_raise(actor.tenant_id, asset_id))
        if not self.assets.delete(actor.tenant_id, asset_id):
            raise NotFoundOrForbidden("Asset")
        self.audit.record(
            actor, AuditActions.ASSET_DELETE, ResourceTypes.ASSET, asset_id,
            before=before, description=f"Deleted asset {before.get('name')}",
        )

    def distinct_values(self, actor: ActorContext, field: str) -> List[str]:
        return self.assets.distinct_values(actor.tenant_id, field)

    def bulk_import(
        self,
        actor: ActorContext,
        rows: Sequence[Dict[str, Any]],
        mode: str = ImportMode.PARTIAL.value,
        engine: Optional[BulkImportEngine] = None,
    ) -> ImportResult:
        engine = engine or BulkImportEngine(self.db)
        result = engine.import_rows(actor.tenant_id, rows, mode)
        if result.summary.inserted:
            self.audit.record(
                actor, AuditActions.ASSET_BULK_IMPORT, ResourceTypes.ASSET,
                after={"mode": result.mode, **result.to_dict()["summary"]},
                description=f"Imported {result.summary.inserted} assets",
            )
        return result

    def _link_assignee(self, tenant_id: str, fields: Dict[str, Any]) -> None:
        """Resolve assigned_user_id within the tenant and copy the user's details"""
        user_id = fields.get("assigned_user_id")
        if not user_id:
            return
        user = self.db.query(User).filter(User.id == user_id, User.tenant_id == tenant_id).first()
        if user is None:
            raise TenantIsolationViolation("User")
        fields["assigned_user_name"] = fields.get("assigned_user_name") or user.full_name
        fields["assigned_user_email"] = user.email
        fields["assigned_user_employee_id"] = user.employee_id


class LicenseService:
    """Tenant-scoped software license operations.

    used_licenses may exceed total_licenses; the dashboard flags it instead of rejecting the write.
    """

    def __init__(self, db: Session, audit: AuditLogger):
        self.db = db
        self.audit = audit
        self.licenses = LicenseRepository(db)

    def list_licenses(self, actor: ActorContext, skip: int = 0, limit: int = 100) -> List[SoftwareLicense]:
        return self.licenses.list(actor.tenant_id, skip=skip, limit=limit)

    def get_license(self, actor: ActorContext, license_id: str) -> SoftwareLicense:
        return self.licenses.get_or_raise(actor.tenant_id, license_id)

    def create_license(self, actor: ActorContext, data: LicenseCreate) -> SoftwareLicense:
        license = self.licenses.create(actor.tenant_id, **data.model_dump())
        if license.used_licenses > license.total_licenses:
            logger.warning(f"License {license.id} is over-allocated ({license.used_licenses}/{license.total_licenses})")
        self.audit.record(
            actor, AuditActions.LICENSE_CREATE, ResourceTypes.LICENSE, license.id,
            after=license, description=f"Created license {license.name}",
        )
        return license

    def update_license(self, actor: ActorContext, license_id: str, data: LicenseUpdate) -> SoftwareLicense:
        before = snapshot(self.licenses.get_or_raise(actor.tenant_id, license_id))
        license = self.licenses.update(actor.tenant_id, license_id, **data.model_dump(exclude_unset=True))
        if license is None:
            raise NotFoundOrForbidden("License")
        self.audit.record(
            actor, AuditActions.LICENSE_UPDATE, ResourceTypes.LICENSE, license.id,
            before=before, after=license, description=f"Updated license {license.name}",
        )
        return license

    def delete_license(self, actor: ActorContext, license_id: str) -> None:
        before = snapshot(self.licenses.get_or_raise(actor.tenant_id, license_id))
        if not self.licenses.delete(actor.tenant_id, license_id):
            raise NotFoundOrForbidden("License")
        self.audit.record(
            actor, AuditActions.LICENSE_DELETE, ResourceTypes.LICENSE, license_id,
            before=before, description=f"Deleted license {before.get('name')}",
        )
