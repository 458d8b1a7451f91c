from __future__ import annotations

import os
from datetime import date

import pytest
from fastapi.testclient import TestClient

from localboard_api.api.routes.moderation import get_moderation_workflow
from localboard_api.core.config import get_settings
from localboard_api.main import app
from localboard_api.services.classifier import ClassifierError, Verdict, get_classifier
from localboard_api.services.moderation import ModerationWorkflow


class FlakyAnalyzer:
    async def classify_content(self, kind, listing) -> Verdict:
        return Verdict(appropriate=True)

    async def classify_image(self, image_url: str) -> Verdict:
        raise ClassifierError("vision model unavailable")


@pytest.fixture
def moderation_client(client: TestClient, fake_repo, mailer):
    app.dependency_overrides[get_moderation_workflow] = lambda: ModerationWorkflow(fake_repo, FlakyAnalyzer(), mailer)
    yield client


def _seed_batch(repo) -> None:
    repo.seed("events", title="With image", date=date(2026, 5, 5), image_url="/uploads/events/a.png")
    repo.seed("events", title="Text only", date=date(2026, 5, 6))


def test_run_returns_summary_with_details_outside_production(moderation_client: TestClient, fake_repo) -> None:
    _seed_batch(fake_repo)

    response = moderation_client.post("/moderation/run")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert (body["processed"], body["approved"], body["rejected"]) == (2, 1, 1)
    assert body["message"] == "Processed 2 listings"
    assert [result["error"] for result in body["results"]] == [True, False]


def test_run_hides_details_in_production(moderation_client: TestClient, fake_repo) -> None:
    os.environ["LB_ENVIRONMENT"] = "production"
    get_settings.cache_clear()
    _seed_batch(fake_repo)

    body = moderation_client.post("/moderation/run").json()

    assert body["processed"] == 2
    assert body["results"] is None


def test_run_requires_bearer_when_secret_configured(moderation_client: TestClient) -> None:
    os.environ["LB_MODERATION_SECRET"] = "cron-secret"
    get_settings.cache_clear()
    try:
        assert moderation_client.post("/moderation/run").status_code == 401
        response = moderation_client.post("/moderation/run", headers={"Authorization": "Bearer wrong"})
        assert response.status_code == 401
        response = moderation_client.post("/moderation/run", headers={"Authorization": "Bearer cron-secret"})
        assert response.status_code == 200
    finally:
        os.environ.pop("LB_MODERATION_SECRET", None)


def test_run_without_classifier_credentials_is_unavailable(client: TestClient) -> None:
    os.environ.pop("LB_ANTHROPIC_API_KEY", None)
    get_settings.cache_clear()
    get_classifier.cache_clear()

    response = client.post("/moderation/run")

    assert response.status_code == 503
