"""Automated review of pending listings.

Each pending listing goes through classify, persist, notify in that order.
A failure while classifying or persisting one listing is logged and recorded
against that listing only; the rest of the queue is still reviewed.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import logging
from typing import Any, Protocol

from localboard_api.services.classifier import Verdict
from localboard_api.services.notifications import render_approved, render_rejected

logger = logging.getLogger(__name__)

MODERATION_ORDER = ("events", "services")
PROCESSING_ERROR_REASON = "Processing error occurred"


class ModerationStore(Protocol):
    async def list_pending_listings(self, kind: str, limit: int | None = None) -> list[dict[str, Any]]: ...

    async def record_moderation_outcome(
        self,
        kind: str,
        listing_id: int,
        *,
        verified: bool,
        status: str,
        reason: str | None,
    ) -> None: ...


class Analyzer(Protocol):
    async def classify_content(self, kind: str, listing: dict[str, Any]) -> Verdict: ...

    async def classify_image(self, image_url: str) -> Verdict: ...


class Notifier(Protocol):
    async def send(self, to: str, subject: str, html: str, *, text: str | None = None) -> bool: ...


@dataclass(slots=True)
class ModerationOutcome:
    kind: str
    listing_id: int
    content_appropriate: bool
    content_reason: str | None
    image_appropriate: bool
    image_reason: str | None
    approved: bool
    error: bool = False

    @property
    def status(self) -> str:
        if self.error:
            return "pending"
        return "approved" if self.approved else "rejected"

    def rejection_reasons(self) -> list[str]:
        reasons: list[str] = []
        if not self.content_appropriate:
            reasons.append(f"Content: {self.content_reason or 'did not meet our guidelines'}")
        if not self.image_appropriate:
            reasons.append(f"Image: {self.image_reason or 'did not meet our guidelines'}")
        return reasons

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ModerationSummary:
    outcomes: list[ModerationOutcome] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.outcomes)

    @property
    def approved(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.approved)

    @property
    def rejected(self) -> int:
        return self.processed - self.approved

    @property
    def message(self) -> str:
        if not self.outcomes:
            return "No pending listings to process"
        return f"Processed {self.processed} listings"


def evaluate(content: Verdict, image: Verdict | None) -> tuple[bool, Verdict]:
    """Both dimensions must pass. A listing without an image passes that dimension."""
    image_verdict = image if image is not None else Verdict(appropriate=True)
    return content.appropriate and image_verdict.appropriate, image_verdict


def failed_outcome(kind: str, listing_id: int) -> ModerationOutcome:
    return ModerationOutcome(
        kind=kind,
        listing_id=listing_id,
        content_appropriate=False,
        content_reason=PROCESSING_ERROR_REASON,
        image_appropriate=False,
        image_reason=PROCESSING_ERROR_REASON,
        approved=False,
        error=True,
    )


class ModerationWorkflow:
    def __init__(
        self,
        store: ModerationStore,
        analyzer: Analyzer,
        notifier: Notifier,
        *,
        kinds: tuple[str, ...] = MODERATION_ORDER,
    ) -> None:
        self.store = store
        self.analyzer = analyzer
        self.notifier = notifier
        self.kinds = kinds

    async def run(self) -> ModerationSummary:
        summary = ModerationSummary()
        for kind in self.kinds:
            pending = await self.store.list_pending_listings(kind)
            logger.info("moderation queue kind=%s pending=%s", kind, len(pending))
            for listing in pending:
                summary.outcomes.append(await self.moderate(kind, listing))

        logger.info(
            "moderation pass complete processed=%s approved=%s rejected=%s",
            summary.processed,
            summary.approved,
            summary.rejected,
        )
        return summary

    async def moderate(self, kind: str, listing: dict[str, Any]) -> ModerationOutcome:
        listing_id = listing["id"]
        try:
            outcome = await self._classify(kind, listing)
            await self.store.record_moderation_outcome(
                kind,
                listing_id,
                verified=outcome.approved,
                status=outcome.status,
                reason=None if outcome.approved else "; ".join(outcome.rejection_reasons()),
            )
        except Exception:
            logger.exception("moderation failed kind=%s listing_id=%s", kind, listing_id)
            outcome = failed_outcome(kind, listing_id)
            await self._record_failure(kind, listing_id)
            return outcome

        logger.info("moderated kind=%s listing_id=%s status=%s", kind, listing_id, outcome.status)
        await self._notify(kind, listing, outcome)
        return outcome

    async def _classify(self, kind: str, listing: dict[str, Any]) -> ModerationOutcome:
        content = await self.analyzer.classify_content(kind, listing)
        image_url = listing.get("image_url")
        image = await self.analyzer.classify_image(image_url) if image_url else None
        approved, image_verdict = evaluate(content, image)
        return ModerationOutcome(
            kind=kind,
            listing_id=listing["id"],
            content_appropriate=content.appropriate,
            content_reason=content.reason,
            image_appropriate=image_verdict.appropriate,
            image_reason=image_verdict.reason,
            approved=approved,
        )

    async def _record_failure(self, kind: str, listing_id: int) -> None:
        # Stays pending so the next pass retries it.
        try:
            await self.store.record_moderation_outcome(
                kind,
                listing_id,
                verified=False,
                status="pending",
                reason=PROCESSING_ERROR_REASON,
            )
        except Exception:
            logger.exception("failed to record moderation error kind=%s listing_id=%s", kind, listing_id)

    async def _notify(self, kind: str, listing: dict[str, Any], outcome: ModerationOutcome) -> None:
        contact = listing.get("internal_creator_contact")
        if not contact:
            logger.info("no contact for kind=%s listing_id=%s; skipping mail", kind, outcome.listing_id)
            return

        if outcome.approved:
            mail = render_approved(kind, listing)
        else:
            mail = render_rejected(kind, listing, outcome.rejection_reasons())
        try:
            sent = await self.notifier.send(contact, mail.subject, mail.html)
        except Exception:
            logger.exception("outcome mail failed kind=%s listing_id=%s", kind, outcome.listing_id)
            return
        if not sent:
            logger.warning("outcome mail not delivered kind=%s listing_id=%s", kind, outcome.listing_id)
