"""
Asset endpoints, including CSV bulk import
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from itam.api.v1.deps import get_asset_service, get_current_actor, require_role
from itam.core.config import settings
from itam.core.context import ActorContext
from itam.core.database import get_db
from itam.core.logging import get_logger
from itam.schemas.asset import AssetCreate, AssetResponse, AssetUpdate
from itam.services.asset_service import AssetService
from itam.services.bulk_import import BulkImportEngine, ImportMode, template_csv
from itam.services.roles import Role

router = APIRouter()
logger = get_logger(__name__)


@router.get("/", response_model=List[AssetResponse])
def list_assets(
    type: Optional[str] = None,
    status: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    actor: ActorContext = Depends(get_current_actor),
    service: AssetService = Depends(get_asset_service),
):
    return service.list_assets(actor, type, status, category, search, skip, limit)


@router.get("/import/template", response_class=PlainTextResponse)
def download_import_template(actor: ActorContext = Depends(get_current_actor)):
    """CSV template listing every accepted column"""
    return PlainTextResponse(
        template_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="asset-import-template.csv"'},
    )


@router.post("/import")
def import_assets(
    file: UploadFile = File(...),
    mode: ImportMode = Query(ImportMode.PARTIAL),
    actor: ActorContext = Depends(require_role(Role.IT_MANAGER)),
    db: Session = Depends(get_db),
    service: AssetService = Depends(get_asset_service),
):
    """
    Import assets from a CSV upload.

    mode=validateOnly reports without writing, partial inserts the valid rows,
    atomic inserts all rows or none.
    """
    engine = BulkImportEngine(db)
    # One byte past the limit is enough to reject the upload
    content = file.file.read(settings.IMPORT_MAX_FILE_BYTES + 1)
    rows = engine.parse_csv(content)
    result = service.bulk_import(actor, rows, mode.value, engine=engine)
    return result.to_dict()


@router.get("/distinct/{field}", response_model=List[str])
def distinct_values(
    field: str,
    actor: ActorContext = Depends(get_current_actor),
    service: AssetService = Depends(get_asset_service),
):
    return service.distinct_values(actor, field)


@router.get("/{asset_id}", response_model=AssetResponse)
def get_asset(
    asset_id: str,
    actor: ActorContext = Depends(get_current_actor),
    service: AssetService = Depends(get_asset_service),
):
    return service.get_asset(actor, asset_id)


@router.post("/", response_model=AssetResponse, status_code=status.HTTP_201_CREATED)
def create_asset(
    payload: AssetCreate,
    actor: ActorContext = Depends(require_role(Role.IT_MANAGER)),
    service: AssetService = Depends(get_asset_service),
):
    return service.create_asset(actor, payload)


@router.patch("/{asset_id}", response_model=AssetResponse)
def update_asset(
    asset_id: str,
    payload: AssetUpdate,
    actor: ActorContext = Depends(require_role(Role.IT_MANAGER)),
    service: AssetService = Depends(get_asset_service),
):
    return service.update_asset(actor, asset_id, payload)


@router.delete("/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_asset(
    asset_id: str,
    actor: ActorContext = Depends(require_role(Role.ADMIN)),
    service: AssetService = Depends(get_asset_service),
):
    service.delete_asset(actor, asset_id)
