import logging

from fastapi import APIRouter, BackgroundTasks, Depends

from localboard_api.core.config import Settings, get_settings
from localboard_api.schemas.support import SupportRequest, SupportRequestOut
from localboard_api.services.mailer import Mailer, get_mailer
from localboard_api.services.notifications import render_support_acknowledgement, render_support_request

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=SupportRequestOut)
async def submit_support_request(
    payload: SupportRequest,
    background_tasks: BackgroundTasks,
    mailer: Mailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
) -> SupportRequestOut:
    inbox_mail = render_support_request(
        name=payload.name,
        email=payload.email,
        subject=payload.subject,
        message=payload.message,
        listing_url=payload.listing_url,
    )
    acknowledgement = render_support_acknowledgement(
        name=payload.name,
        subject=payload.subject,
        message=payload.message,
        listing_url=payload.listing_url,
    )
    background_tasks.add_task(mailer.send, settings.support_email, inbox_mail.subject, inbox_mail.html)
    background_tasks.add_task(mailer.send, payload.email, acknowledgement.subject, acknowledgement.html)

    logger.info("support request received has_listing=%s", payload.listing_url is not None)
    return SupportRequestOut(message="Support request sent successfully")
