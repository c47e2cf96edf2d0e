"""
Dashboard metrics endpoint
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import sessionmaker

from itam.api.v1.deps import get_current_actor, get_session_factory
from itam.core.context import ActorContext
from itam.services.analytics import MetricsAggregator

router = APIRouter()


@router.get("/")
async def get_dashboard(
    actor: ActorContext = Depends(get_current_actor),
    session_factory: sessionmaker = Depends(get_session_factory),
) -> Dict[str, Any]:
    """Inventory, warranty, license, ticket, idle-stock, age and activity sections for the caller's tenant"""
    return await MetricsAggregator(session_factory).snapshot(actor.tenant_id)
