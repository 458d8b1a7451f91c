from __future__ import annotations

import secrets
from datetime import date, timedelta
from typing import Any

INTERNAL_ID_BYTES = 18
SERVICE_DEFAULT_TTL_DAYS = 21


def generate_internal_id() -> str:
    """Opaque per-listing secret used to authorize removal by the submitter."""
    return secrets.token_urlsafe(INTERNAL_ID_BYTES)


def default_delete_after(
    kind: str,
    fields: dict[str, Any],
    *,
    today: date,
    service_ttl_days: int = SERVICE_DEFAULT_TTL_DAYS,
) -> date:
    supplied = fields.get("delete_after")
    if supplied is not None:
        return supplied
    if kind == "events":
        event_date = fields.get("date")
        if event_date is None:
            raise ValueError("events require a date to derive delete_after")
        return event_date
    return today + timedelta(days=service_ttl_days)


def reconcile_moderation_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Keep ``verified`` and ``moderation_status`` in step on admin updates.

    When only one of the two is supplied the other is derived from it. A pair
    where ``verified`` disagrees with an ``approved`` status raises
    ``ValueError``. Approval clears any stored rejection reason.
    """
    reconciled = dict(fields)
    verified = reconciled.get("verified")
    status = reconciled.get("moderation_status")
    if verified is not None and status is None:
        reconciled["moderation_status"] = "approved" if verified else "rejected"
    elif status is not None and verified is None:
        reconciled["verified"] = status == "approved"
    elif verified is not None and verified != (status == "approved"):
        raise ValueError(f"verified={str(verified).lower()} conflicts with moderation_status={status}")

    if reconciled.get("moderation_status") == "approved":
        reconciled["moderation_reason"] = None
    return reconciled
