from datetime import date

import pytest
from fastapi.testclient import TestClient

from localboard_api.core.auth import CredentialKind, match_delete_credential


def test_internal_id_matches() -> None:
    kind = match_delete_credential("abc123", internal_id="abc123", creator_contact="me@example.com")
    assert kind is CredentialKind.INTERNAL_ID


def test_creator_contact_matches() -> None:
    kind = match_delete_credential("me@example.com", internal_id="abc123", creator_contact="me@example.com")
    assert kind is CredentialKind.CREATOR_CONTACT


@pytest.mark.parametrize("supplied", ["ABC123", " abc123", "Me@example.com", "", None, "other"])
def test_comparison_is_exact(supplied: str | None) -> None:
    assert match_delete_credential(supplied, internal_id="abc123", creator_contact="me@example.com") is None


def test_missing_contact_never_matches() -> None:
    assert match_delete_credential("anything", internal_id="abc123", creator_contact=None) is None


def test_delete_requires_header(client: TestClient, fake_repo) -> None:
    row = fake_repo.seed("events", title="Fair", date=date(2026, 7, 4))
    response = client.delete(f"/listings/events/{row['id']}")
    assert response.status_code == 401
    assert row["id"] in fake_repo.rows["events"]


def test_delete_with_wrong_credential_is_forbidden(client: TestClient, fake_repo) -> None:
    row = fake_repo.seed("events", title="Fair", date=date(2026, 7, 4))
    response = client.delete(f"/listings/events/{row['id']}", headers={"x-delete-auth": "wrong-value"})
    assert response.status_code == 403
    assert row["id"] in fake_repo.rows["events"]


def test_delete_with_internal_id_removes_listing_everywhere(client: TestClient, fake_repo, admin_headers) -> None:
    row = fake_repo.seed("events", title="Fair", date=date(2026, 7, 4), verified=True)
    listing_id = row["id"]

    response = client.delete(f"/listings/events/{listing_id}", headers={"x-delete-auth": row["internal_id"]})

    assert response.status_code == 200
    assert response.json() == {"id": listing_id, "title": "Fair", "message": "Event deleted successfully"}
    assert client.get(f"/public/listings/events/{listing_id}").status_code == 404
    assert client.get(f"/listings/events/{listing_id}", headers=admin_headers).status_code == 404
    assert client.get("/public/listings/events").json() == []


def test_delete_with_creator_contact(client: TestClient, fake_repo) -> None:
    row = fake_repo.seed("services", title="Dog walking", owner="Ana", internal_creator_contact="ana@example.com")
    response = client.delete(f"/listings/services/{row['id']}", headers={"x-delete-auth": "ana@example.com"})
    assert response.status_code == 200
    assert response.json()["message"] == "Service deleted successfully"


def test_delete_unknown_listing_is_not_found_for_any_credential(client: TestClient) -> None:
    response = client.delete("/listings/services/77", headers={"x-delete-auth": "whatever"})
    assert response.status_code == 404
