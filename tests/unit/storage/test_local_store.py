"""Tests for the local document store and shared store helpers."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest

from bonome.core.config import StoreSettings
from bonome.core.exceptions import DocumentFetchError, DocumentNotFoundError
from bonome.storage import GitHubDocumentStore, LocalDocumentStore, create_document_store
from bonome.storage.base import DocumentStore, load_feature, query_collection


class TestLocalDocumentStore:
    """Tests for LocalDocumentStore primitives."""

    def test_satisfies_protocol(self, data_dir: Path) -> None:
        """Test the store implements the DocumentStore protocol."""
        assert isinstance(LocalDocumentStore(data_dir), DocumentStore)

    def test_list_files(self, data_dir: Path) -> None:
        """Test directory listings."""
        store = LocalDocumentStore(data_dir)

        entries = asyncio.run(store.list_files_in_path("classes"))

        assert entries == [{"type": "file", "name": "guerrier.json", "path": "classes/guerrier.json"}]

    def test_fetch_json(self, data_dir: Path) -> None:
        """Test fetching a document."""
        store = LocalDocumentStore(data_dir)

        document = asyncio.run(store.fetch_json_from_repo_path("races/mock_race.json"))

        assert document["id"] == "mock_race"

    def test_missing_document(self, data_dir: Path) -> None:
        """Test missing documents raise DocumentNotFoundError."""
        store = LocalDocumentStore(data_dir)

        with pytest.raises(DocumentNotFoundError):
            asyncio.run(store.fetch_json_from_repo_path("races/nope.json"))
        with pytest.raises(DocumentNotFoundError):
            asyncio.run(store.list_files_in_path("nope"))

    def test_invalid_json(self, data_dir: Path) -> None:
        """Test unparsable documents raise DocumentFetchError."""
        (data_dir / "races" / "broken.json").write_text("{not json", encoding="utf-8")
        store = LocalDocumentStore(data_dir)

        with pytest.raises(DocumentFetchError):
            asyncio.run(store.fetch_json_from_repo_path("races/broken.json"))

    def test_path_traversal(self, data_dir: Path) -> None:
        """Test paths escaping the root are treated as missing."""
        store = LocalDocumentStore(data_dir)

        with pytest.raises(DocumentNotFoundError):
            asyncio.run(store.fetch_json_from_repo_path("../secrets.json"))


class TestBaseDocumentStore:
    """Tests for the index, feature loading and collection queries."""

    def test_init_index(self, data_dir: Path) -> None:
        """Test the id index covers every scan folder that exists."""
        store = LocalDocumentStore(data_dir)

        assert asyncio.run(store.init_index()) == 3

    def test_find_path_probes_fallback_folders(self, data_dir: Path) -> None:
        """Test ids outside the scan folders are found by probing."""
        (data_dir / "content").mkdir()
        (data_dir / "content" / "relic.json").write_text('{"id": "relic"}', encoding="utf-8")
        store = LocalDocumentStore(data_dir)

        assert asyncio.run(store.find_path_for_id("relic")) == "content/relic.json"
        assert asyncio.run(store.find_path_for_id("ghost")) is None

    def test_load_feature_by_id(self, data_dir: Path) -> None:
        """Test loading a feature and its grants."""
        store = LocalDocumentStore(data_dir)

        feature = asyncio.run(store.load_feature_by_id("guerrier"))

        assert feature is not None
        assert feature.grant_ids == ["second_souffle"]
        assert asyncio.run(store.load_feature_by_id("ghost")) is None

    def test_query_collection_defaults_id(self, store_factory: Any) -> None:
        """Test collection documents get their file name as id."""
        store = store_factory({"spells/soin.json": {"level": 1}, "spells/feu.json": {"id": "feu", "level": 3}})

        documents = asyncio.run(store.query_collection("spells", lambda doc: doc["level"] == 1))

        assert documents == [{"level": 1, "id": "soin"}]

    def test_query_collection_cached(self, store_factory: Any) -> None:
        """Test a collection is fetched once per store."""
        store = store_factory({"spells/soin.json": {"level": 1}})

        asyncio.run(store.query_collection("spells", lambda doc: True))
        asyncio.run(store.query_collection("spells", lambda doc: False))

        assert store.fetched == ["spells/soin.json"]

    def test_raising_predicate_skips_document(self, store_factory: Any) -> None:
        """Test a predicate error skips only that document."""
        store = store_factory({"spells/a.json": {"level": 1}, "spells/b.json": {}})

        documents = asyncio.run(store.query_collection("spells", lambda doc: doc["level"] == 1))

        assert [doc["id"] for doc in documents] == ["a"]

    def test_broken_entries_skipped(self, data_dir: Path) -> None:
        """Test unreadable collection entries are skipped."""
        (data_dir / "races" / "broken.json").write_text("{", encoding="utf-8")
        store = LocalDocumentStore(data_dir)

        documents = asyncio.run(store.query_collection("races", lambda doc: True))

        assert [doc["id"] for doc in documents] == ["mock_race"]


class TestStoreHelpers:
    """Tests for helpers working on any DocumentStore."""

    def test_query_collection_emulated(self, bare_store_factory: Any) -> None:
        """Test collection queries on a store without query_collection."""
        store = bare_store_factory({"spells/a.json": {"level": 1}, "spells/b.json": {"level": 2}})

        async def is_level_two(document: dict[str, Any]) -> bool:
            return document["level"] == 2

        documents = asyncio.run(query_collection(store, "spells", is_level_two))

        assert documents == [{"level": 2, "id": "b"}]

    def test_load_feature_probes(self, bare_store_factory: Any) -> None:
        """Test feature loading on a bare store."""
        store = bare_store_factory({"data/legacy.json": {"effects": []}})

        feature = asyncio.run(load_feature(store, "legacy"))

        assert feature is not None
        assert feature.id == "legacy"
        assert asyncio.run(load_feature(store, "ghost")) is None


class TestCreateDocumentStore:
    """Tests for create_document_store."""

    def test_local_backend(self, tmp_path: Path) -> None:
        """Test the default backend is the local store."""
        store = create_document_store(StoreSettings(local_root=tmp_path))

        assert isinstance(store, LocalDocumentStore)
        assert store.root == tmp_path.resolve()

    def test_github_backend(self) -> None:
        """Test the github backend builds a GitHub store."""
        store = create_document_store(
            StoreSettings(backend="github", github_owner="bonome", github_repo="donnees", branch="dev")
        )

        assert isinstance(store, GitHubDocumentStore)
        assert store.branch == "dev"
        asyncio.run(store.aclose())
