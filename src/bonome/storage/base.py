"""Document store contract and shared implementation.

A document store serves the JSON data repository: parsed documents by path
and directory listings. Everything else the engine needs (the id -> path
index, feature loading, collection queries) is built on those two
primitives by ``BaseDocumentStore``.

Example:
    >>> store = LocalDocumentStore(Path("data"))
    >>> await store.init_index()
    >>> feature = await store.load_feature_by_id("magicien")
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from bonome.core.constants import DEFAULT_SCAN_FOLDERS, FALLBACK_FOLDERS
from bonome.core.exceptions import BonomeError, DocumentStoreError
from bonome.core.logging import get_logger
from bonome.models.feature import Feature


logger = get_logger(__name__)

Predicate = Callable[[dict[str, Any]], "bool | Awaitable[bool]"]


@runtime_checkable
class DocumentStore(Protocol):
    """Minimal capability the engine consumes.

    Optional members the engine also uses when present: ``init_index``,
    ``query_collection``, ``load_feature_by_id`` and ``resolve_feature_tree``.
    """

    async def list_files_in_path(self, path: str) -> list[dict[str, Any]]:
        """List directory entries (``{type, name, path}``) under ``path``."""
        ...

    async def fetch_json_from_repo_path(self, path: str) -> Any:
        """Fetch and parse one JSON document.

        Raises:
            DocumentNotFoundError: If the document does not exist.
            DocumentFetchError: If it cannot be fetched or parsed.
        """
        ...


# =============================================================================
# Helpers shared by stores and by the engine
# =============================================================================


def json_entry_path(entry: Any, folder: str) -> str | None:
    """Repository path of a listing entry if it is a JSON file."""
    if not isinstance(entry, dict) or entry.get("type", "file") != "file":
        return None
    name = entry.get("name")
    path = entry.get("path") or (f"{folder}/{name}" if name else None)
    if not path or not str(path).lower().endswith(".json"):
        return None
    return str(path)


def stem_of(path: str) -> str:
    """File name of ``path`` without directories and without ``.json``."""
    name = path.rsplit("/", 1)[-1]
    return name[:-5] if name.lower().endswith(".json") else name


async def _call_predicate(predicate: Predicate, document: dict[str, Any]) -> bool:
    outcome = predicate(document)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    return bool(outcome)


async def load_collection(store: DocumentStore, name: str) -> list[dict[str, Any]]:
    """Fetch every JSON document of a collection folder.

    Documents without an ``id`` get the file name as id. Entries that fail to
    load are logged and skipped; a failed listing yields an empty list.
    """
    try:
        entries = await store.list_files_in_path(name)
    except BonomeError as exc:
        logger.warning("collection_listing_failed", collection=name, error=str(exc))
        return []

    documents: list[dict[str, Any]] = []
    for entry in entries or []:
        path = json_entry_path(entry, name)
        if path is None:
            continue
        try:
            document = await store.fetch_json_from_repo_path(path)
        except BonomeError as exc:
            logger.warning("collection_entry_failed", collection=name, path=path, error=str(exc))
            continue
        if not isinstance(document, dict):
            continue
        if document.get("id") in (None, ""):
            document = {**document, "id": stem_of(path)}
        documents.append(document)
    return documents


async def filter_documents(
    documents: list[dict[str, Any]],
    predicate: Predicate,
    *,
    collection: str,
) -> list[dict[str, Any]]:
    """Apply ``predicate`` to each document; a raising predicate skips the document."""
    results: list[dict[str, Any]] = []
    for document in documents:
        try:
            matched = await _call_predicate(predicate, document)
        except Exception as exc:
            logger.warning(
                "collection_predicate_failed",
                collection=collection,
                document_id=document.get("id"),
                error=str(exc),
            )
            continue
        if matched:
            results.append(document)
    return results


async def query_collection(
    store: DocumentStore,
    name: str,
    predicate: Predicate,
) -> list[dict[str, Any]]:
    """Query a collection, using the store's own implementation when it has one."""
    own_query = getattr(store, "query_collection", None)
    if callable(own_query):
        return await own_query(name, predicate)
    documents = await load_collection(store, name)
    return await filter_documents(documents, predicate, collection=name)


async def load_feature(
    store: DocumentStore,
    feature_id: str,
    *,
    folders: tuple[str, ...] | list[str] = DEFAULT_SCAN_FOLDERS,
) -> Feature | None:
    """Load a feature through whatever the store offers.

    Stores with ``load_feature_by_id`` are asked directly; bare stores are
    probed at ``<folder>/<id>.json``.
    """
    loader = getattr(store, "load_feature_by_id", None)
    if callable(loader):
        return await loader(feature_id)

    for folder in (*folders, *FALLBACK_FOLDERS):
        path = f"{folder}/{feature_id}.json"
        try:
            document = await store.fetch_json_from_repo_path(path)
        except DocumentStoreError:
            continue
        return Feature.from_document(document, fallback_id=feature_id)
    return None


# =============================================================================
# Base implementation
# =============================================================================


class BaseDocumentStore(ABC):
    """Index, feature loading and collection queries over the two primitives.

    Caches (id index, collection documents) belong to the instance; create
    one store per data repository and pass it explicitly.

    Attributes:
        scan_folders: Folders listed to build the id index.
    """

    def __init__(self, *, scan_folders: list[str] | tuple[str, ...] | None = None) -> None:
        self.scan_folders: list[str] = list(scan_folders or DEFAULT_SCAN_FOLDERS)
        self._index: dict[str, str] = {}
        self._index_ready = False
        self._collections: dict[str, list[dict[str, Any]]] = {}

    @abstractmethod
    async def list_files_in_path(self, path: str) -> list[dict[str, Any]]:
        """List directory entries under ``path``."""

    @abstractmethod
    async def fetch_json_from_repo_path(self, path: str) -> Any:
        """Fetch and parse the JSON document at ``path``."""

    async def init_index(self) -> int:
        """Build the id -> path index from the scan folders.

        Missing folders are skipped.

        Returns:
            Number of indexed documents.
        """
        for folder in self.scan_folders:
            try:
                entries = await self.list_files_in_path(folder)
            except DocumentStoreError as exc:
                logger.debug("index_folder_skipped", folder=folder, error=str(exc))
                continue
            for entry in entries or []:
                path = json_entry_path(entry, folder)
                if path is not None:
                    self._index.setdefault(stem_of(path), path)
        self._index_ready = True
        logger.info("document_index_built", documents=len(self._index), folders=self.scan_folders)
        return len(self._index)

    async def find_path_for_id(self, document_id: str) -> str | None:
        """Repository path of a document id, or None if it cannot be found."""
        if not self._index_ready:
            await self.init_index()
        if document_id in self._index:
            return self._index[document_id]

        for folder in (*self.scan_folders, *FALLBACK_FOLDERS):
            path = f"{folder}/{document_id}.json"
            try:
                await self.fetch_json_from_repo_path(path)
            except DocumentStoreError:
                continue
            self._index[document_id] = path
            return path
        return None

    async def load_raw(self, document_id: str) -> Any:
        path = await self.find_path_for_id(document_id)
        if path is None:
            return None
        return await self.fetch_json_from_repo_path(path)

    async def load_feature_by_id(self, feature_id: str) -> Feature | None:
        """Load and parse a feature document, or None if it does not exist."""
        document = await self.load_raw(feature_id)
        if document is None:
            return None
        return Feature.from_document(document, fallback_id=feature_id)

    async def query_collection(self, name: str, predicate: Predicate) -> list[dict[str, Any]]:
        """Documents of collection ``name`` matching ``predicate``.

        The collection is listed and fetched once per store instance.
        """
        if name not in self._collections:
            self._collections[name] = await load_collection(self, name)
        return await filter_documents(self._collections[name], predicate, collection=name)

    def clear_caches(self) -> None:
        """Forget the id index and the collection cache."""
        self._index.clear()
        self._index_ready = False
        self._collections.clear()


__all__ = [
    "DocumentStore",
    "BaseDocumentStore",
    "Predicate",
    "json_entry_path",
    "stem_of",
    "load_collection",
    "filter_documents",
    "query_collection",
    "load_feature",
]
