from __future__ import annotations

from functools import lru_cache
import logging
from typing import Any

import httpx

from localboard_api.core.config import get_settings

logger = logging.getLogger(__name__)


class Mailer:
    """Sends HTML mail through the Resend HTTP API.

    ``send`` reports delivery as a boolean and never raises, so a failed
    notification cannot undo the state change that triggered it.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        api_url: str,
        sender: str,
        reply_to: str | None,
        dev_recipient: str | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url
        self.sender = sender
        self.reply_to = reply_to
        self.dev_recipient = dev_recipient
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def send(self, to: str, subject: str, html: str, *, text: str | None = None) -> bool:
        if not self.api_key:
            logger.warning("mail api key not configured; skipping send subject=%s", subject)
            return False

        recipient = self.dev_recipient or to
        payload: dict[str, Any] = {
            "from": self.sender,
            "to": [recipient],
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text
        if self.reply_to:
            payload["reply_to"] = self.reply_to

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(
                    self.api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
        except httpx.HTTPError as exc:
            logger.error("mail request failed subject=%s error=%s", subject, exc)
            return False

        if response.status_code not in (200, 201, 202):
            logger.error(
                "mail api error status=%s subject=%s body=%s",
                response.status_code,
                subject,
                response.text[:300],
            )
            return False

        logger.info("mail sent subject=%s redirected=%s", subject, recipient != to)
        return True


@lru_cache
def get_mailer() -> Mailer:
    settings = get_settings()
    return Mailer(
        api_key=settings.resend_api_key,
        api_url=settings.mail_api_url,
        sender=settings.mail_from,
        reply_to=settings.mail_reply_to,
        dev_recipient=None if settings.is_production else settings.mail_dev_recipient,
        timeout_seconds=settings.mail_timeout_seconds,
    )
