from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from localboard_api.core.security import require_admin_key
from localboard_api.schemas.listings import (
    CATEGORIES_BY_KIND,
    PUBLIC_MODELS,
    EventOut,
    ListingKind,
    ServiceOut,
)
from localboard_api.schemas.neighborhoods import CityOut, NeighborhoodCreate, NeighborhoodOut
from localboard_api.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    get_repository,
)

router = APIRouter()


@router.get("/cities", response_model=list[CityOut])
async def list_cities(repository=Depends(get_repository)) -> list[CityOut]:
    try:
        rows = await repository.list_cities()
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return [CityOut(**row) for row in rows]


@router.get("/neighborhoods", response_model=list[NeighborhoodOut])
async def list_neighborhoods(
    city: str | None = Query(default=None, min_length=1),
    repository=Depends(get_repository),
) -> list[NeighborhoodOut]:
    try:
        rows = await repository.list_neighborhoods(city=city)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return [NeighborhoodOut(**row) for row in rows]


@router.post(
    "/neighborhoods",
    status_code=status.HTTP_201_CREATED,
    response_model=NeighborhoodOut,
    dependencies=[Depends(require_admin_key)],
)
async def create_neighborhood(payload: NeighborhoodCreate, repository=Depends(get_repository)) -> NeighborhoodOut:
    try:
        row = await repository.create_neighborhood(
            neighborhood=payload.neighborhood.strip(),
            city=payload.city.strip(),
            state=payload.state.strip(),
            macro_neighborhood=payload.macro_neighborhood,
        )
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return NeighborhoodOut(**row)


@router.get("/neighborhoods/{neighborhood_id}", response_model=NeighborhoodOut)
async def get_neighborhood(neighborhood_id: int, repository=Depends(get_repository)) -> NeighborhoodOut:
    try:
        row = await repository.get_neighborhood(neighborhood_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return NeighborhoodOut(**row)


@router.get(
    "/neighborhoods/{neighborhood_id}/{kind}",
    response_model=list[EventOut] | list[ServiceOut],
)
async def list_neighborhood_listings(
    neighborhood_id: int,
    kind: ListingKind,
    category: str | None = Query(default=None, min_length=1),
    repository=Depends(get_repository),
) -> Any:
    if category is not None and category not in CATEGORIES_BY_KIND[kind]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid category: {category}. Must be one of: {', '.join(CATEGORIES_BY_KIND[kind])}",
        )
    try:
        rows = await repository.list_neighborhood_listings(kind, neighborhood_id, category)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    model = PUBLIC_MODELS[kind]
    return [model(**row) for row in rows]
