import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from localboard_api.core.security import get_delete_credential, require_admin_key
from localboard_api.schemas.listings import (
    ADMIN_MODELS,
    CREATE_MODELS,
    UPDATE_MODELS,
    EventAdminOut,
    ListingDeletedOut,
    ListingKind,
    ServiceAdminOut,
)
from localboard_api.services.mailer import Mailer, get_mailer
from localboard_api.services.notifications import kind_label, render_submission_received
from localboard_api.services.repository import (
    RepositoryForbiddenError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
    get_repository,
)
from localboard_api.services.storage import BlobStorage, StorageError, get_storage
from localboard_api.services.submissions import SubmissionError, read_submission, store_image

router = APIRouter()
logger = logging.getLogger(__name__)


def get_blob_storage() -> BlobStorage:
    try:
        return get_storage()
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc


async def read_validated_submission(
    request: Request,
    *,
    kind: str,
    storage: BlobStorage,
    models: dict[str, type[BaseModel]],
) -> BaseModel:
    try:
        submission = await read_submission(request)
    except SubmissionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        payload = models[kind].model_validate(submission.fields)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc

    if submission.image is None:
        return payload
    try:
        image_url = await store_image(submission.image, kind=kind, storage=storage)
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return payload.model_copy(update={"image_url": image_url})


@router.post(
    "/{kind}",
    status_code=status.HTTP_201_CREATED,
    response_model=EventAdminOut | ServiceAdminOut,
)
async def create_listing(
    kind: ListingKind,
    request: Request,
    background_tasks: BackgroundTasks,
    repository=Depends(get_repository),
    storage: BlobStorage = Depends(get_blob_storage),
    mailer: Mailer = Depends(get_mailer),
) -> Any:
    payload = await read_validated_submission(request, kind=kind, storage=storage, models=CREATE_MODELS)
    try:
        row = await repository.create_listing(kind, payload.model_dump())
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    logger.info("listing submitted kind=%s listing_id=%s", kind, row["id"])
    contact = row.get("internal_creator_contact")
    if contact:
        mail = render_submission_received(kind, row)
        background_tasks.add_task(mailer.send, contact, mail.subject, mail.html)
    return ADMIN_MODELS[kind](**row)


@router.get(
    "/{kind}/{listing_id}",
    response_model=EventAdminOut | ServiceAdminOut,
    dependencies=[Depends(require_admin_key)],
)
async def get_listing(kind: ListingKind, listing_id: int, repository=Depends(get_repository)) -> Any:
    try:
        row = await repository.get_listing(kind, listing_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return ADMIN_MODELS[kind](**row)


@router.put(
    "/{kind}/{listing_id}",
    response_model=EventAdminOut | ServiceAdminOut,
    dependencies=[Depends(require_admin_key)],
)
async def update_listing(
    kind: ListingKind,
    listing_id: int,
    request: Request,
    repository=Depends(get_repository),
    storage: BlobStorage = Depends(get_blob_storage),
) -> Any:
    payload = await read_validated_submission(request, kind=kind, storage=storage, models=UPDATE_MODELS)
    try:
        row = await repository.update_listing(kind, listing_id, payload.model_dump(exclude_unset=True))
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    logger.info(
        "listing updated kind=%s listing_id=%s verified=%s",
        kind,
        listing_id,
        row.get("verified"),
    )
    return ADMIN_MODELS[kind](**row)


@router.delete("/{kind}/{listing_id}", response_model=ListingDeletedOut)
async def delete_listing(
    kind: ListingKind,
    listing_id: int,
    credential: str = Depends(get_delete_credential),
    repository=Depends(get_repository),
) -> ListingDeletedOut:
    try:
        row = await repository.delete_listing(kind, listing_id, credential)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RepositoryForbiddenError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    logger.info(
        "listing deleted kind=%s listing_id=%s credential=%s",
        kind,
        listing_id,
        row.get("credential_kind"),
    )
    return ListingDeletedOut(
        id=row["id"],
        title=row["title"],
        message=f"{kind_label(kind).capitalize()} deleted successfully",
    )
