"""Content-appropriateness checks backed by the Anthropic Messages API.

Both checks answer with a :class:`Verdict`. Transport failures, timeouts, and
answers that are not the expected JSON object raise :class:`ClassifierError`;
callers decide how to contain them.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from functools import lru_cache
import json
import logging
import re
from typing import Any
from urllib.parse import urljoin

import anthropic

from localboard_api.core.config import get_settings

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")

CONTENT_GUIDELINES = {
    "events": (
        "- Must be a legitimate community event or activity\n"
        "- No commercial spam or pure advertising\n"
        "- No misleading or false information\n"
        "- No events promoting illegal activities\n"
    ),
    "services": (
        "- Must be a legitimate local service offered to residents\n"
        "- No spam, scams, or bait-and-switch offers\n"
        "- No misleading claims about credentials or pricing\n"
        "- No services that are illegal to offer\n"
    ),
}

_ANSWER_FORMAT = (
    'Respond with only a JSON object: {"appropriate": boolean, "reason": string or null}. '
    "Give a brief, respectful reason when the submission is not appropriate and null otherwise."
)

IMAGE_PROMPT = (
    "Decide whether this image is appropriate for a community bulletin board. "
    "It must be suitable for all ages, free of offensive or harmful content, and not misleading. "
    + _ANSWER_FORMAT
)


class ClassifierError(Exception):
    """Raised when the analyzer cannot produce a verdict."""


class ClassifierUnavailableError(ClassifierError):
    """Raised when no analyzer credentials are configured."""


@dataclass(frozen=True, slots=True)
class Verdict:
    appropriate: bool
    reason: str | None = None


def content_system_prompt(kind: str) -> str:
    label = "event" if kind == "events" else "service"
    return (
        f"You moderate {label} submissions for a neighborhood community board.\n"
        f"Guidelines for an appropriate {label}:\n"
        f"{CONTENT_GUIDELINES[kind]}"
        "- No inappropriate, offensive, harmful, or discriminatory content\n"
        f"{_ANSWER_FORMAT}"
    )


def describe_listing(kind: str, listing: dict[str, Any]) -> str:
    if kind == "events":
        fields = (
            ("Title", listing.get("title")),
            ("Description", listing.get("description")),
            ("Location", listing.get("location")),
            ("Website", listing.get("website")),
        )
    else:
        fields = (
            ("Title", listing.get("title")),
            ("Owner", listing.get("owner")),
            ("Description", listing.get("description")),
            ("Website", listing.get("website")),
        )
    lines = [f"- {label}: {value or 'Not provided'}" for label, value in fields]
    return "Submission details:\n" + "\n".join(lines)


def parse_verdict(text: str) -> Verdict:
    cleaned = _FENCE_RE.sub("", text.strip())
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ClassifierError(f"analyzer answer is not valid JSON: {text[:200]!r}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("appropriate"), bool):
        raise ClassifierError("analyzer answer is missing a boolean 'appropriate' field")

    reason = data.get("reason")
    if reason is not None and not isinstance(reason, str):
        reason = str(reason)
    return Verdict(appropriate=data["appropriate"], reason=reason or None)


class ListingClassifier:
    def __init__(
        self,
        client: anthropic.AsyncAnthropic,
        *,
        model: str,
        max_tokens: int,
        timeout_seconds: float,
        public_base_url: str,
    ) -> None:
        self._client = client
        self.model = model
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        self.public_base_url = public_base_url

    async def classify_content(self, kind: str, listing: dict[str, Any]) -> Verdict:
        return await self._ask(
            system=content_system_prompt(kind),
            content=describe_listing(kind, listing),
        )

    async def classify_image(self, image_url: str) -> Verdict:
        return await self._ask(
            system="You review images for a community bulletin board. Respond only with valid JSON.",
            content=[
                {"type": "image", "source": {"type": "url", "url": self.absolute_url(image_url)}},
                {"type": "text", "text": IMAGE_PROMPT},
            ],
        )

    def absolute_url(self, url: str) -> str:
        if url.startswith(("http://", "https://")):
            return url
        return urljoin(self.public_base_url.rstrip("/") + "/", url.lstrip("/"))

    async def _ask(self, *, system: str, content: str | list[dict[str, Any]]) -> Verdict:
        try:
            response = await asyncio.wait_for(
                self._client.messages.create(
                    model=self.model,
                    max_tokens=self.max_tokens,
                    temperature=0.1,
                    system=system,
                    messages=[{"role": "user", "content": content}],
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise ClassifierError(f"analyzer timed out after {self.timeout_seconds}s") from exc
        except anthropic.APIError as exc:
            raise ClassifierError(f"analyzer request failed: {exc}") from exc

        text = "".join(block.text for block in response.content if getattr(block, "type", None) == "text")
        if not text:
            raise ClassifierError("analyzer returned an empty answer")
        logger.debug("analyzer answer model=%s text=%s", self.model, text[:200])
        return parse_verdict(text)


@lru_cache
def get_classifier() -> ListingClassifier:
    settings = get_settings()
    if not settings.anthropic_api_key:
        raise ClassifierUnavailableError("LB_ANTHROPIC_API_KEY is required")
    return ListingClassifier(
        anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key),
        model=settings.classifier_model,
        max_tokens=settings.classifier_max_tokens,
        timeout_seconds=settings.classifier_timeout_seconds,
        public_base_url=settings.public_base_url,
    )
