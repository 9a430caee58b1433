"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the Bonome character builder test suite.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from bonome.core.exceptions import DocumentNotFoundError
from bonome.storage.base import BaseDocumentStore


if TYPE_CHECKING:
    from collections.abc import Generator


# =============================================================================
# In-memory stores
# =============================================================================


class MemoryDocumentStore(BaseDocumentStore):
    """Document store over a ``{path: document}`` mapping.

    Records every fetched path so tests can assert on store traffic.
    """

    def __init__(self, documents: dict[str, Any], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.documents = dict(documents)
        self.fetched: list[str] = []
        self.listed: list[str] = []

    async def list_files_in_path(self, path: str) -> list[dict[str, Any]]:
        self.listed.append(path)
        prefix = path.strip("/") + "/"
        entries: dict[str, dict[str, Any]] = {}
        for key in self.documents:
            if not key.startswith(prefix):
                continue
            rest = key[len(prefix):]
            name = rest.split("/", 1)[0]
            kind = "dir" if "/" in rest else "file"
            entries.setdefault(name, {"type": kind, "name": name, "path": prefix + name})
        if not entries:
            raise DocumentNotFoundError("Directory not found", path=path)
        return sorted(entries.values(), key=lambda entry: entry["name"])

    async def fetch_json_from_repo_path(self, path: str) -> Any:
        self.fetched.append(path)
        if path not in self.documents:
            raise DocumentNotFoundError("Document not found", path=path)
        return json.loads(json.dumps(self.documents[path]))


class BareDocumentStore:
    """Store offering only the two required primitives."""

    def __init__(self, documents: dict[str, Any]) -> None:
        self._inner = MemoryDocumentStore(documents)

    async def list_files_in_path(self, path: str) -> list[dict[str, Any]]:
        return await self._inner.list_files_in_path(path)

    async def fetch_json_from_repo_path(self, path: str) -> Any:
        return await self._inner.fetch_json_from_repo_path(path)


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from bonome.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Drop ``BONOME_*`` variables and any ``.env`` file from the test run."""
    for key in list(os.environ):
        if key.startswith("BONOME_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "BONOME_DEBUG": "true",
        "BONOME_LOG_LEVEL": "DEBUG",
        "BONOME_RESOLVER_MAX_STEPS": "12",
        "BONOME_STORE_BRANCH": "dev",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


# =============================================================================
# Data Fixtures
# =============================================================================


@pytest.fixture
def sample_base_stats() -> dict[str, int]:
    """Provide sample base ability scores.

    Returns:
        Dictionary of ability scores.
    """
    return {
        "strength": 15,
        "dexterity": 10,
        "constitution": 14,
        "intelligence": 16,
        "wisdom": 12,
        "charisma": 8,
    }


@pytest.fixture
def base_character(sample_base_stats: dict[str, int]) -> dict[str, Any]:
    """Base character document as the creation UI sends it."""
    return {"base_stats_before_race": dict(sample_base_stats)}


@pytest.fixture
def sample_documents() -> dict[str, Any]:
    """A small data repository: a class, a race and their sub-features."""
    return {
        "classes/guerrier.json": {
            "id": "guerrier",
            "name": "Guerrier",
            "effects": [
                {"type": "proficiency_grant", "payload": {"proficiency": "armor_heavy"}},
                {
                    "id": "guerrier_skills",
                    "type": "choice",
                    "payload": {
                        "ui_id": "guerrier_skills",
                        "choose": 1,
                        "category": "skill",
                        "from": ["athletics", "intimidation"],
                    },
                },
            ],
            "links": {"grants": ["second_souffle"]},
        },
        "features/second_souffle.json": {
            "id": "second_souffle",
            "effects": [
                {"type": "resource_pool", "payload": {"id": "second_wind", "max": 1, "recharge": "short_rest"}},
            ],
        },
        "races/mock_race.json": {
            "id": "mock_race",
            "name": "Mock Race",
            "effects": [
                {"type": "stat_modifier", "payload": {"stat": "dexterity", "delta": 2}},
                {"type": "sense_grant", "payload": {"sense_type": "darkvision", "range": 60}},
            ],
        },
    }


@pytest.fixture
def memory_store(sample_documents: dict[str, Any]) -> MemoryDocumentStore:
    """In-memory store over ``sample_documents``."""
    return MemoryDocumentStore(sample_documents)


@pytest.fixture
def data_dir(tmp_path: Path, sample_documents: dict[str, Any]) -> Path:
    """Local data directory holding ``sample_documents`` as JSON files.

    Returns:
        Path to the data directory.
    """
    root = tmp_path / "data"
    for relative, document in sample_documents.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(document), encoding="utf-8")
    return root


@pytest.fixture
def store_factory() -> type[MemoryDocumentStore]:
    """Build in-memory stores over ad hoc documents."""
    return MemoryDocumentStore


@pytest.fixture
def bare_store_factory() -> type[BareDocumentStore]:
    """Build stores that only offer listing and fetching."""
    return BareDocumentStore
