"""Tests for the HTTP layer."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from bonome.api import create_app
from bonome.core.config import Settings


@pytest.fixture
def client(memory_store: Any) -> Generator[TestClient, None, None]:
    """Test client over the in-memory sample store."""
    app = create_app(Settings(), store=memory_store)
    with TestClient(app) as test_client:
        yield test_client


class TestCreationEndpoints:
    """Tests for the creation endpoints."""

    def test_preview(self, client: TestClient, base_character: dict[str, Any]) -> None:
        """Test a preview is built from the request body."""
        response = client.post(
            "/api/creation/preview",
            json={"selection": {"race": "mock_race"}, "baseCharacter": base_character},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["previewCharacter"]["final_stats"]["dexterity"] == 12
        assert body["appliedFeatures"] == ["mock_race"]
        assert "error" not in body

    def test_preview_pending_choice(self, client: TestClient) -> None:
        """Test pending choices are sent with their wire names."""
        response = client.post("/api/creation/preview", json={"selection": {"class": "guerrier"}})

        choice = response.json()["pendingChoices"][0]
        assert choice["ui_id"] == "guerrier_skills"
        assert choice["from"] == ["athletics", "intimidation"]

    def test_resolve_choice(self, client: TestClient) -> None:
        """Test an answered choice is applied and no longer pending."""
        response = client.post(
            "/api/creation/resolve-choice",
            json={"ui_id": "guerrier_skills", "value": "intimidation", "selection": {"class": "guerrier"}},
        )

        body = response.json()
        assert body["ok"] is True
        assert body["pendingChoices"] == []
        assert "intimidation" in body["previewCharacter"]["proficiencies"]

    def test_resolve_choice_requires_ui_id(self, client: TestClient) -> None:
        """Test a missing ui_id is reported as a failed result."""
        response = client.post(
            "/api/creation/resolve-choice",
            json={"value": "athletics", "selection": {"class": "guerrier"}},
        )

        assert response.status_code == 200
        assert response.json() == {"ok": False, "error": "ui_id required"}


class TestCatalogEndpoint:
    """Tests for the catalog endpoint."""

    def test_catalog(self, client: TestClient) -> None:
        """Test catalog entries are listed and enriched."""
        response = client.get("/api/catalog/classes")

        assert response.status_code == 200
        entries = response.json()
        assert [entry["id"] for entry in entries] == ["guerrier"]
        assert entries[0]["name"] == "Guerrier"

    def test_unknown_kind(self, client: TestClient) -> None:
        """Test unknown collections are rejected."""
        assert client.get("/api/catalog/monsters").status_code == 404


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client: TestClient) -> None:
        """Test the health payload."""
        assert client.get("/api/health").json() == {
            "ok": True,
            "app": "Bonome Character Builder",
            "version": "0.1.0",
        }
