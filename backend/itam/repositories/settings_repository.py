"""
Master data and user preference repositories
"""
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from itam.core.database import transaction
from itam.models.settings import MasterData, UserPreferences
from itam.repositories.base_repository import BaseRepository


class MasterDataRepository(BaseRepository[MasterData]):
    """Append-only autocomplete vocabulary; de-duplication is left to callers"""

    resource_name = "Master data"

    def __init__(self, db: Session):
        super().__init__(MasterData, db)

    def list_values(self, tenant_id: str, type: Optional[str] = None, include_inactive: bool = False) -> List[MasterData]:
        query = self._scoped(tenant_id)
        if type:
            query = query.filter(MasterData.type == type)
        if not include_inactive:
            query = query.filter(MasterData.is_active.is_(True))
        return query.order_by(MasterData.type, MasterData.value).all()


class PreferencesRepository(BaseRepository[UserPreferences]):
    """Repository for per-user preferences"""

    resource_name = "Preferences"

    def __init__(self, db: Session):
        super().__init__(UserPreferences, db)

    def get_for_user(self, tenant_id: str, user_id: str) -> Optional[UserPreferences]:
        return self._scoped(tenant_id).filter(UserPreferences.user_id == user_id).first()

    def upsert(self, tenant_id: str, user_id: str, /, **fields: Any) -> UserPreferences:
        with transaction(self.db):
            preferences = self.get_for_user(tenant_id, user_id)
            if preferences is None:
                preferences = self.add(tenant_id, user_id=user_id, **fields)
            else:
                for key, value in fields.items():
                    setattr(preferences, key, value)
        return preferences
