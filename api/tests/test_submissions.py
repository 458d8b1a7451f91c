from __future__ import annotations

from datetime import date

import pytest
from fastapi.testclient import TestClient

from localboard_api.api.routes.listings import get_blob_storage
from localboard_api.main import app
from localboard_api.services.storage import StorageError


def test_multipart_submission_uploads_image(client: TestClient, storage) -> None:
    response = client.post(
        "/listings/events",
        data={
            "title": "Craft fair",
            "date": "2026-05-01",
            "neighborhood_id": "2",
            "recurring": "true",
            "date_list": '["2026-05-01", "2026-05-08"]',
            "categories": "sale,family",
            "description": "",
        },
        files={"image": ("craft fair.png", b"\x89PNG-data", "image/png")},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["categories"] == ["sale", "family"]
    assert body["date_list"] == ["2026-05-01", "2026-05-08"]
    assert body["recurring"] is True
    assert body["description"] is None
    assert body["image_url"].startswith("/uploads/events/")
    assert body["image_url"].endswith("-craft-fair.png")
    assert list(storage.blobs.values()) == [b"\x89PNG-data"]


def test_repeated_category_parts_are_collected(client: TestClient) -> None:
    response = client.post(
        "/listings/services",
        data={"title": "Piano lessons", "owner": "Mo", "neighborhood_id": "1", "categories": ["kids", "specialized"]},
    )
    assert response.status_code == 201
    assert response.json()["categories"] == ["kids", "specialized"]


def test_single_events_drop_date_list(client: TestClient) -> None:
    response = client.post(
        "/listings/events",
        json={"title": "One off", "date": "2026-05-01", "neighborhood_id": 1, "date_list": ["2026-05-02"]},
    )
    assert response.status_code == 201
    assert response.json()["date_list"] == []


def test_malformed_json_list_field_is_rejected(client: TestClient) -> None:
    response = client.post(
        "/listings/events",
        data={"title": "Bad", "date": "2026-05-01", "neighborhood_id": "1", "categories": "[music"},
    )
    assert response.status_code == 400


def test_upload_failure_surfaces_as_bad_gateway(client: TestClient, fake_repo) -> None:
    class BrokenStorage:
        async def put(self, *, path: str, content: bytes, content_type: str | None) -> str:
            raise StorageError("blob upload failed: 500")

    app.dependency_overrides[get_blob_storage] = lambda: BrokenStorage()
    response = client.post(
        "/listings/events",
        data={"title": "Lost", "date": "2026-05-01", "neighborhood_id": "1"},
        files={"image": ("lost.png", b"bytes", "image/png")},
    )

    assert response.status_code == 502
    assert fake_repo.rows["events"] == {}


@pytest.mark.parametrize("verified", ["true", "false"])
def test_admin_multipart_update(client: TestClient, fake_repo, admin_headers, verified: str) -> None:
    row = fake_repo.seed("events", title="Old title", date=date(2026, 5, 1))
    response = client.put(
        f"/listings/events/{row['id']}",
        data={"title": "New title", "verified": verified},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["title"] == "New title"
    assert response.json()["verified"] is (verified == "true")


def test_invalid_multipart_submission_uploads_nothing(client: TestClient, storage, fake_repo) -> None:
    response = client.post(
        "/listings/events",
        data={"date": "2026-05-01", "neighborhood_id": "1"},
        files={"image": ("flyer.png", b"\x89PNG-data", "image/png")},
    )

    assert response.status_code == 400
    assert storage.blobs == {}
    assert fake_repo.rows["events"] == {}


def test_empty_image_part_is_rejected(client: TestClient, storage) -> None:
    response = client.post(
        "/listings/events",
        data={"title": "Empty", "date": "2026-05-01", "neighborhood_id": "1"},
        files={"image": ("empty.png", b"", "image/png")},
    )

    assert response.status_code == 400
    assert storage.blobs == {}
