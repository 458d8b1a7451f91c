from __future__ import annotations

import asyncio
import logging
import time

from opentelemetry import trace

from localboard_worker.core.config import get_settings
from localboard_worker.core.telemetry import (
    configure_worker_logging,
    setup_worker_telemetry,
    shutdown_worker_telemetry,
)
from localboard_worker.jobs.schedule import is_due, next_backoff
from localboard_worker.services.board_client import BoardClient

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


async def run_worker() -> None:
    settings = get_settings()
    configure_worker_logging()
    telemetry_runtime = setup_worker_telemetry(settings)
    client = BoardClient(
        settings.api_base_url,
        admin_api_key=settings.admin_api_key,
        api_key_header=settings.api_key_header,
        moderation_secret=settings.moderation_secret,
        timeout_seconds=settings.request_timeout_seconds,
    )
    if not settings.admin_api_key:
        logger.warning("LB_WORKER_ADMIN_API_KEY not set; expiry sweep disabled")

    last_moderation_at: float | None = None
    last_expiry_at: float | None = None
    backoff = 0.0

    try:
        while True:
            try:
                with tracer.start_as_current_span("worker.cycle"):
                    now = time.monotonic()
                    if is_due(last_moderation_at, settings.moderation_interval_seconds, now):
                        with tracer.start_as_current_span("worker.moderation_run") as span:
                            summary = await client.run_moderation()
                            span.set_attribute("moderation.processed", summary.get("processed", 0))
                        logger.info(
                            "moderation pass processed=%s approved=%s rejected=%s",
                            summary.get("processed"),
                            summary.get("approved"),
                            summary.get("rejected"),
                        )
                        last_moderation_at = now

                    if settings.admin_api_key and is_due(last_expiry_at, settings.expiry_interval_seconds, now):
                        with tracer.start_as_current_span("worker.expiry_sweep") as span:
                            removed = await client.expire_listings()
                            span.set_attribute("expiry.removed", removed)
                        if removed:
                            logger.info("expired listings removed: %s", removed)
                        last_expiry_at = now

                backoff = 0.0
                await asyncio.sleep(settings.tick_seconds)
            except Exception as exc:  # pragma: no cover - loop robustness
                backoff = next_backoff(backoff, base=settings.tick_seconds, maximum=settings.max_backoff_seconds)
                logger.exception("worker cycle failed: %s; retry in %.1fs", exc, backoff)
                await asyncio.sleep(backoff)
    finally:
        shutdown_worker_telemetry(telemetry_runtime)


if __name__ == "__main__":
    asyncio.run(run_worker())
