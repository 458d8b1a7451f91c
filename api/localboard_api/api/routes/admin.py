from datetime import datetime, timezone
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from localboard_api.core.security import require_admin_key
from localboard_api.schemas.admin import AdminMaintenanceOut
from localboard_api.schemas.listings import ADMIN_MODELS, EventAdminOut, ListingKind, ServiceAdminOut
from localboard_api.services.moderation import MODERATION_ORDER
from localboard_api.services.repository import RepositoryUnavailableError, get_repository

router = APIRouter(dependencies=[Depends(require_admin_key)])
logger = logging.getLogger(__name__)


@router.get("/listings/{kind}/pending", response_model=list[EventAdminOut] | list[ServiceAdminOut])
async def list_pending_listings(
    kind: ListingKind,
    limit: int = Query(default=100, ge=1, le=1000),
    repository=Depends(get_repository),
) -> Any:
    try:
        rows = await repository.list_pending_listings(kind, limit=limit)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    model = ADMIN_MODELS[kind]
    return [model(**row) for row in rows]


@router.post("/listings/expire", response_model=AdminMaintenanceOut)
async def expire_listings(repository=Depends(get_repository)) -> AdminMaintenanceOut:
    today = datetime.now(timezone.utc).date()
    count = 0
    try:
        for kind in MODERATION_ORDER:
            removed = await repository.delete_expired_listings(kind, today=today)
            logger.info("expired listings removed kind=%s count=%s", kind, removed)
            count += removed
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return AdminMaintenanceOut(count=count)
