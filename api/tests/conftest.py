from __future__ import annotations

import os
from datetime import date, datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from localboard_api.api.routes.listings import get_blob_storage
from localboard_api.core.auth import match_delete_credential
from localboard_api.core.config import get_settings
from localboard_api.main import app
from localboard_api.services.filters import ListingFilterOptions, build_listing_filters
from localboard_api.services.lifecycle import (
    default_delete_after,
    generate_internal_id,
    reconcile_moderation_fields,
)
from localboard_api.services.mailer import get_mailer
from localboard_api.services.repository import (
    RepositoryConflictError,
    RepositoryForbiddenError,
    RepositoryNotFoundError,
    RepositoryValidationError,
    get_repository,
)

ADMIN_KEY = "admin-test-key"

NEIGHBORHOODS: dict[int, dict[str, Any]] = {
    1: {"neighborhood": "Downtown", "macro_neighborhood": "Central", "city_id": 1, "city": "Austin", "state": "TX"},
    2: {"neighborhood": "Hyde Park", "macro_neighborhood": "Central", "city_id": 1, "city": "Austin", "state": "TX"},
    3: {"neighborhood": "Ballard", "macro_neighborhood": "North", "city_id": 2, "city": "Seattle", "state": "WA"},
}
PUBLIC_EXCLUDED = ("delete_after", "internal_id", "internal_creator_contact", "moderation_status", "moderation_reason")


class FakeListingRepository:
    """In-memory stand-in for PostgresRepository."""

    def __init__(self, *, today: date | None = None) -> None:
        self.today = today or datetime.now(timezone.utc).date()
        self.rows: dict[str, dict[int, dict[str, Any]]] = {"events": {}, "services": {}}
        self.neighborhoods = {key: dict(value) for key, value in NEIGHBORHOODS.items()}
        self.outcomes: list[tuple[str, int, bool, str, str | None]] = []
        self._next_id = {"events": 1, "services": 1}

    def seed(self, kind: str, **fields: Any) -> dict[str, Any]:
        fields.setdefault("neighborhood_id", 1)
        verified = fields.pop("verified", False)
        status = fields.pop("moderation_status", "approved" if verified else "pending")
        created_at = fields.pop("created_at", None)
        row = self._insert(kind, fields)
        row["verified"] = verified
        row["moderation_status"] = status
        if created_at is not None:
            row["created_at"] = created_at
        return row

    async def create_listing(self, kind: str, fields: dict[str, Any]) -> dict[str, Any]:
        if fields["neighborhood_id"] not in self.neighborhoods:
            raise RepositoryNotFoundError("neighborhood not found")
        return dict(self._insert(kind, dict(fields)))

    async def get_listing(self, kind: str, listing_id: int) -> dict[str, Any]:
        row = self.rows[kind].get(listing_id)
        if row is None:
            raise RepositoryNotFoundError("listing not found")
        return dict(row)

    async def get_public_listing(self, kind: str, listing_id: int) -> dict[str, Any]:
        row = self.rows[kind].get(listing_id)
        if row is None or not row["verified"]:
            raise RepositoryNotFoundError("listing not found")
        return self._public(row)

    async def update_listing(self, kind: str, listing_id: int, fields: dict[str, Any]) -> dict[str, Any]:
        try:
            supplied = reconcile_moderation_fields({key: value for key, value in fields.items() if value is not None})
        except ValueError as exc:
            raise RepositoryValidationError(str(exc)) from exc
        if not supplied:
            raise RepositoryValidationError("no fields to update")
        row = self.rows[kind].get(listing_id)
        if row is None:
            raise RepositoryNotFoundError("listing not found")
        row.update(supplied)
        row["updated_at"] = datetime.now(timezone.utc)
        return dict(row)

    async def delete_listing(self, kind: str, listing_id: int, credential: str) -> dict[str, Any]:
        row = self.rows[kind].get(listing_id)
        if row is None:
            raise RepositoryNotFoundError("listing not found")
        credential_kind = match_delete_credential(
            credential,
            internal_id=row["internal_id"],
            creator_contact=row["internal_creator_contact"],
        )
        if credential_kind is None:
            raise RepositoryForbiddenError("Unauthorized. Internal identifier does not match.")
        del self.rows[kind][listing_id]
        return {"id": row["id"], "title": row["title"], "credential_kind": credential_kind.value}

    async def list_public_listings(self, kind: str, options: ListingFilterOptions) -> list[dict[str, Any]]:
        build_listing_filters(kind, options)
        rows = [self._public(row) for row in self.rows[kind].values() if row["verified"]]
        if options.city:
            rows = [row for row in rows if row["city"].lower() == options.city.lower()]
        if options.macro_neighborhood:
            rows = [
                row
                for row in rows
                if (row["macro_neighborhood"] or "").lower() == options.macro_neighborhood.lower()
            ]
        if options.neighborhoods:
            wanted = {name.lower() for name in options.neighborhoods}
            rows = [row for row in rows if row["neighborhood"].lower() in wanted]
        if options.categories:
            rows = [row for row in rows if set(row["categories"]) & set(options.categories)]
        if options.date_from:
            rows = [row for row in rows if row["date"] >= date.fromisoformat(options.date_from)]
        if options.date_to:
            rows = [row for row in rows if row["date"] <= date.fromisoformat(options.date_to)]
        if kind == "events":
            rows.sort(key=lambda row: (row["date"], row["id"]))
        else:
            rows.sort(key=lambda row: (row["title"], row["id"]))
        return rows[options.offset : options.offset + options.limit]

    async def list_neighborhood_listings(
        self,
        kind: str,
        neighborhood_id: int,
        category: str | None = None,
    ) -> list[dict[str, Any]]:
        if neighborhood_id not in self.neighborhoods:
            raise RepositoryNotFoundError("neighborhood not found")
        return [
            self._public(row)
            for row in self.rows[kind].values()
            if row["verified"]
            and row["neighborhood_id"] == neighborhood_id
            and (category is None or category in row["categories"])
        ]

    async def list_pending_listings(self, kind: str, limit: int | None = None) -> list[dict[str, Any]]:
        pending = [
            dict(row)
            for row in self.rows[kind].values()
            if row["moderation_status"] == "pending" and not row["verified"]
        ]
        pending.sort(key=lambda row: (row["created_at"], row["id"]))
        return pending if limit is None else pending[:limit]

    async def record_moderation_outcome(
        self,
        kind: str,
        listing_id: int,
        *,
        verified: bool,
        status: str,
        reason: str | None,
    ) -> None:
        row = self.rows[kind].get(listing_id)
        if row is None:
            raise RepositoryNotFoundError("listing not found")
        row.update(verified=verified, moderation_status=status, moderation_reason=reason)
        self.outcomes.append((kind, listing_id, verified, status, reason))

    async def delete_expired_listings(self, kind: str, *, today: date) -> int:
        expired = [key for key, row in self.rows[kind].items() if row["delete_after"] < today]
        for key in expired:
            del self.rows[kind][key]
        return len(expired)

    async def list_cities(self) -> list[dict[str, Any]]:
        cities = {
            (place["city_id"], place["city"], place["state"]) for place in self.neighborhoods.values()
        }
        return [
            {"id": city_id, "city": city, "state": state}
            for city_id, city, state in sorted(cities, key=lambda item: (item[2], item[1]))
        ]

    async def list_neighborhoods(self, *, city: str | None = None) -> list[dict[str, Any]]:
        return [
            self._neighborhood(neighborhood_id)
            for neighborhood_id, place in self.neighborhoods.items()
            if city is None or place["city"].lower() == city.lower()
        ]

    async def get_neighborhood(self, neighborhood_id: int) -> dict[str, Any]:
        if neighborhood_id not in self.neighborhoods:
            raise RepositoryNotFoundError("neighborhood not found")
        return self._neighborhood(neighborhood_id)

    async def create_neighborhood(
        self,
        *,
        neighborhood: str,
        city: str,
        state: str,
        macro_neighborhood: str | None,
    ) -> dict[str, Any]:
        city_id = None
        for place in self.neighborhoods.values():
            if place["city"] == city and place["state"] == state:
                city_id = place["city_id"]
                if place["neighborhood"] == neighborhood:
                    raise RepositoryConflictError("Neighborhood already exists in this city and state")
        if city_id is None:
            city_id = max(place["city_id"] for place in self.neighborhoods.values()) + 1
        neighborhood_id = max(self.neighborhoods) + 1
        self.neighborhoods[neighborhood_id] = {
            "neighborhood": neighborhood,
            "macro_neighborhood": macro_neighborhood,
            "city_id": city_id,
            "city": city,
            "state": state,
        }
        return self._neighborhood(neighborhood_id)

    async def close(self) -> None:
        return None

    def _insert(self, kind: str, fields: dict[str, Any]) -> dict[str, Any]:
        listing_id = self._next_id[kind]
        self._next_id[kind] += 1
        now = datetime.now(timezone.utc)
        place = self.neighborhoods[fields["neighborhood_id"]]
        row: dict[str, Any] = {
            "description": None,
            "website": None,
            "categories": [],
            "image_url": None,
            "internal_creator_contact": None,
        }
        if kind == "events":
            row.update(time=None, recurring=False, date_list=[], location=None)
        else:
            row.update(contact_number=None, contact_email=None)
        row.update(fields)
        row.update(
            id=listing_id,
            delete_after=default_delete_after(kind, fields, today=self.today),
            internal_id=generate_internal_id(),
            verified=False,
            moderation_status="pending",
            moderation_reason=None,
            created_at=now,
            updated_at=now,
            neighborhood=place["neighborhood"],
            macro_neighborhood=place["macro_neighborhood"],
            city=place["city"],
            state=place["state"],
        )
        self.rows[kind][listing_id] = row
        return row

    def _neighborhood(self, neighborhood_id: int) -> dict[str, Any]:
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        return {"id": neighborhood_id, **self.neighborhoods[neighborhood_id], "created_at": now, "updated_at": now}

    @staticmethod
    def _public(row: dict[str, Any]) -> dict[str, Any]:
        return {key: value for key, value in row.items() if key not in PUBLIC_EXCLUDED}


class RecordingMailer:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[dict[str, str]] = []

    async def send(self, to: str, subject: str, html: str, *, text: str | None = None) -> bool:
        if self.fail:
            raise RuntimeError("mail transport down")
        self.sent.append({"to": to, "subject": subject, "html": html})
        return True


class MemoryStorage:
    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}

    async def put(self, *, path: str, content: bytes, content_type: str | None) -> str:
        self.blobs[path] = content
        return f"/uploads/{path}"


@pytest.fixture
def fake_repo() -> FakeListingRepository:
    return FakeListingRepository()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def client(fake_repo: FakeListingRepository, mailer: RecordingMailer, storage: MemoryStorage) -> TestClient:
    os.environ["LB_ADMIN_API_KEYS"] = ADMIN_KEY
    os.environ["LB_ENVIRONMENT"] = "dev"
    os.environ.pop("LB_MODERATION_SECRET", None)
    get_settings.cache_clear()

    app.dependency_overrides[get_repository] = lambda: fake_repo
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_blob_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        os.environ.pop("LB_ADMIN_API_KEYS", None)
        os.environ.pop("LB_ENVIRONMENT", None)
        get_settings.cache_clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-API-Key": ADMIN_KEY}


@pytest.fixture
def failing_mailer() -> RecordingMailer:
    return RecordingMailer(fail=True)
