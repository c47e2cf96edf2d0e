"""
Base repository with tenant-scoped CRUD operations
"""
from typing import Generic, TypeVar, Type, Optional, List, Any

from sqlalchemy import and_
from sqlalchemy.orm import Session

from itam.core.database import transaction
from itam.core.exceptions import NotFoundOrForbidden
from itam.core.logging import get_logger

ModelType = TypeVar("ModelType")

logger = get_logger(__name__)


class BaseRepository(Generic[ModelType]):
    """Every read and write ANDs the tenant into its predicate.

    A row owned by another tenant is indistinguishable from a missing one.
    """

    resource_name = "Resource"

    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    def _scoped(self, tenant_id: str):
        return self.db.query(self.model).filter(self.model.tenant_id == tenant_id)

    def get(self, tenant_id: str, id: str) -> Optional[ModelType]:
        """Get a single record by ID within the tenant"""
        return self.db.query(self.model).filter(
            and_(self.model.id == id, self.model.tenant_id == tenant_id)
        ).first()

    def get_or_raise(self, tenant_id: str, id: str) -> ModelType:
        instance = self.get(tenant_id, id)
        if instance is None:
            raise NotFoundOrForbidden(self.resource_name)
        return instance

    def list(self, tenant_id: str, skip: int = 0, limit: int = 100, **filters: Any) -> List[ModelType]:
        """List records for a tenant, optionally filtered by exact column values"""
        query = self._scoped(tenant_id)
        for column, value in filters.items():
            if value is not None:
                query = query.filter(getattr(self.model, column) == value)
        return query.order_by(self.model.created_at.desc()).offset(skip).limit(limit).all()

    def count(self, tenant_id: str) -> int:
        return self._scoped(tenant_id).count()

    def add(self, tenant_id: str, /, **kwargs: Any) -> ModelType:
        """Stage a new record in the current unit of work"""
        kwargs.pop("tenant_id", None)
        instance = self.model(tenant_id=tenant_id, **kwargs)
        self.db.add(instance)
        self.db.flush()
        return instance

    def create(self, tenant_id: str, /, **kwargs: Any) -> ModelType:
        """Create a new record"""
        with transaction(self.db):
            instance = self.add(tenant_id, **kwargs)
        return instance

    def update(self, tenant_id: str, id: str, /, **kwargs: Any) -> Optional[ModelType]:
        """Update a record; None when it is absent or belongs to another tenant"""
        with transaction(self.db):
            instance = self.get(tenant_id, id)
            if instance is None:
                return None
            for key, value in kwargs.items():
                if key in ("id", "tenant_id"):
                    continue
                setattr(instance, key, value)
        return instance

    def delete(self, tenant_id: str, id: str) -> bool:
        """Delete a record; False when it is absent or belongs to another tenant"""
        with transaction(self.db):
            instance = self.get(tenant_id, id)
            if instance is None:
                return False
            self.db.delete(instance)
        return True
