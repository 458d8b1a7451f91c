from datetime import date

from fastapi.testclient import TestClient


def test_list_cities(client: TestClient) -> None:
    response = client.get("/cities")
    assert response.status_code == 200
    assert response.json() == [
        {"id": 1, "city": "Austin", "state": "TX"},
        {"id": 2, "city": "Seattle", "state": "WA"},
    ]


def test_list_neighborhoods_by_city(client: TestClient) -> None:
    response = client.get("/neighborhoods", params={"city": "austin"})
    assert response.status_code == 200
    assert [row["neighborhood"] for row in response.json()] == ["Downtown", "Hyde Park"]


def test_get_neighborhood(client: TestClient) -> None:
    response = client.get("/neighborhoods/3")
    assert response.status_code == 200
    assert response.json()["macro_neighborhood"] == "North"
    assert client.get("/neighborhoods/99").status_code == 404


def test_create_neighborhood_requires_admin_and_detects_duplicates(client: TestClient, admin_headers) -> None:
    payload = {"neighborhood": "Fremont", "city": "Seattle", "state": "WA", "macro_neighborhood": "North"}

    assert client.post("/neighborhoods", json=payload).status_code == 401
    created = client.post("/neighborhoods", json=payload, headers=admin_headers)
    assert created.status_code == 201
    assert created.json()["city_id"] == 2
    assert client.post("/neighborhoods", json=payload, headers=admin_headers).status_code == 409


def test_neighborhood_listings_are_public_and_filterable(client: TestClient, fake_repo) -> None:
    fake_repo.seed("events", title="Swap meet", date=date(2026, 4, 1), neighborhood_id=2, categories=["sale"], verified=True)
    fake_repo.seed("events", title="Run club", date=date(2026, 4, 2), neighborhood_id=2, categories=["active"], verified=True)
    fake_repo.seed("events", title="Unreviewed", date=date(2026, 4, 3), neighborhood_id=2, categories=["sale"])

    response = client.get("/neighborhoods/2/events")
    assert [row["title"] for row in response.json()] == ["Swap meet", "Run club"]

    response = client.get("/neighborhoods/2/events", params={"category": "sale"})
    assert [row["title"] for row in response.json()] == ["Swap meet"]

    assert client.get("/neighborhoods/2/events", params={"category": "labor"}).status_code == 400
    assert client.get("/neighborhoods/99/events").status_code == 404
