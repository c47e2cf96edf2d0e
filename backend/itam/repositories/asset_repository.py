"""
Asset and software license repositories
"""
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from itam.core.database import transaction
from itam.core.exceptions import ValidationFailed
from itam.core.logging import get_logger
from itam.models.asset import Asset, SoftwareLicense
from itam.repositories.base_repository import BaseRepository

logger = get_logger(__name__)

# Columns exposed for autocomplete lookups
DISTINCT_VALUE_FIELDS = ("manufacturer", "model", "category", "location", "status", "vendor_name", "company_name")


class AssetRepository(BaseRepository[Asset]):
    """Repository for asset operations"""

    resource_name = "Asset"

    def __init__(self, db: Session):
        super().__init__(Asset, db)

    def search(
        self,
        tenant_id: str,
        type: Optional[str] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Asset]:
        """List assets with optional exact filters and a free-text match"""
        query = self._scoped(tenant_id)
        if type:
            query = query.filter(Asset.type == type)
        if status:
            query = query.filter(Asset.status == status)
        if category:
            query = query.filter(Asset.category == category)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Asset.name.ilike(pattern),
                Asset.serial_number.ilike(pattern),
                Asset.manufacturer.ilike(pattern),
                Asset.model.ilike(pattern),
                Asset.assigned_user_name.ilike(pattern),
            ))
        return query.order_by(Asset.created_at.desc()).offset(skip).limit(limit).all()

    def create_bulk(self, tenant_id: str, records: Iterable[Dict[str, Any]]) -> int:
        """Insert every record in one transaction; returns the number inserted"""
        inserted = 0
        with transaction(self.db):
            for record in records:
                record = dict(record)
                record.pop("tenant_id", None)
                self.db.add(Asset(tenant_id=tenant_id, **record))
                inserted += 1
            self.db.flush()
        logger.info(f"Bulk inserted {inserted} assets for tenant {tenant_id}")
        return inserted

    def distinct_values(self, tenant_id: str, field: str) -> List[str]:
        """Distinct non-empty values of an allow-listed column"""
        if field not in DISTINCT_VALUE_FIELDS:
            raise ValidationFailed.single("field", "invalid_choice", f"Unsupported field: {field}")
        column = getattr(Asset, field)
        rows = (
            self.db.query(column)
            .filter(Asset.tenant_id == tenant_id, column.isnot(None), column != "")
            .distinct()
            .order_by(column)
            .all()
        )
        return [row[0] for row in rows]


class LicenseRepository(BaseRepository[SoftwareLicense]):
    """Repository for software license operations"""

    resource_name = "License"

    def __init__(self, db: Session):
        super().__init__(SoftwareLicense, db)
