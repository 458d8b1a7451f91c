from fastapi import APIRouter, Depends, HTTPException, status

from localboard_api.core.config import Settings, get_settings
from localboard_api.core.security import require_moderation_trigger
from localboard_api.schemas.moderation import ModerationOutcomeOut, ModerationRunOut
from localboard_api.services.classifier import ClassifierUnavailableError, get_classifier
from localboard_api.services.mailer import get_mailer
from localboard_api.services.moderation import ModerationWorkflow
from localboard_api.services.repository import RepositoryUnavailableError, get_repository

router = APIRouter()


def get_moderation_workflow(
    repository=Depends(get_repository),
    mailer=Depends(get_mailer),
) -> ModerationWorkflow:
    try:
        classifier = get_classifier()
    except ClassifierUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return ModerationWorkflow(repository, classifier, mailer)


@router.post(
    "/run",
    response_model=ModerationRunOut,
    dependencies=[Depends(require_moderation_trigger)],
)
async def run_moderation(
    workflow: ModerationWorkflow = Depends(get_moderation_workflow),
    settings: Settings = Depends(get_settings),
) -> ModerationRunOut:
    try:
        summary = await workflow.run()
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    results = None
    if not settings.is_production:
        results = [ModerationOutcomeOut(**outcome.as_dict()) for outcome in summary.outcomes]
    return ModerationRunOut(
        message=summary.message,
        processed=summary.processed,
        approved=summary.approved,
        rejected=summary.rejected,
        results=results,
    )
