from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from localboard_api.schemas.listings import PUBLIC_MODELS, EventOut, ListingKind, ServiceOut
from localboard_api.services.filters import (
    DEFAULT_LIMIT,
    FilterValidationError,
    ListingFilterOptions,
    parse_csv_param,
)
from localboard_api.services.repository import (
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    get_repository,
)

router = APIRouter()


@router.get("/{kind}", response_model=list[EventOut] | list[ServiceOut])
async def list_public_listings(
    kind: ListingKind,
    response: Response,
    city: str | None = Query(default=None),
    macro_neighborhood: str | None = Query(default=None),
    neighborhoods: str | None = Query(default=None, description="comma-separated neighborhood names"),
    categories: str | None = Query(default=None, description="comma-separated categories"),
    date_from: str | None = Query(default=None, description="YYYY-MM-DD, events only"),
    date_to: str | None = Query(default=None, description="YYYY-MM-DD, events only"),
    limit: int = Query(default=DEFAULT_LIMIT),
    offset: int = Query(default=0),
    repository=Depends(get_repository),
) -> Any:
    options = ListingFilterOptions(
        city=city,
        macro_neighborhood=macro_neighborhood,
        neighborhoods=parse_csv_param(neighborhoods),
        categories=parse_csv_param(categories),
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    try:
        rows = await repository.list_public_listings(kind, options)
    except FilterValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    response.headers["X-Total-Count"] = str(len(rows))
    response.headers["X-Limit"] = str(limit)
    response.headers["X-Offset"] = str(offset)
    model = PUBLIC_MODELS[kind]
    return [model(**row) for row in rows]


@router.get("/{kind}/{listing_id}", response_model=EventOut | ServiceOut)
async def get_public_listing(kind: ListingKind, listing_id: int, repository=Depends(get_repository)) -> Any:
    try:
        row = await repository.get_public_listing(kind, listing_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return PUBLIC_MODELS[kind](**row)
