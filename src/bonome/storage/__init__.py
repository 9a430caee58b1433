"""Document stores serving the JSON data repository.

Exports:
    DocumentStore: Protocol the engine consumes.
    BaseDocumentStore: Index, feature loading and collection queries.
    LocalDocumentStore: Store over a local directory tree.
    GitHubDocumentStore: Store over the GitHub contents API.
    create_document_store: Build the store selected by settings.
"""

from __future__ import annotations

from bonome.core.config import Settings, StoreSettings, get_settings
from bonome.core.logging import get_logger
from bonome.storage.base import (
    BaseDocumentStore,
    DocumentStore,
    load_feature,
    query_collection,
)
from bonome.storage.github import GitHubDocumentStore
from bonome.storage.local import LocalDocumentStore


logger = get_logger(__name__)


def create_document_store(settings: Settings | StoreSettings | None = None) -> BaseDocumentStore:
    """Build the document store for the configured backend.

    Args:
        settings: Application or store settings; defaults to ``get_settings()``.

    Returns:
        A LocalDocumentStore or a GitHubDocumentStore.
    """
    if settings is None:
        settings = get_settings()
    store_settings = settings.store if isinstance(settings, Settings) else settings

    if store_settings.backend == "github":
        logger.info(
            "document_store_created",
            backend="github",
            repository=f"{store_settings.github_owner}/{store_settings.github_repo}",
            branch=store_settings.branch,
        )
        return GitHubDocumentStore.from_settings(store_settings)

    logger.info("document_store_created", backend="local", root=str(store_settings.local_root))
    return LocalDocumentStore(store_settings.local_root, scan_folders=store_settings.scan_folders)


__all__ = [
    "DocumentStore",
    "BaseDocumentStore",
    "LocalDocumentStore",
    "GitHubDocumentStore",
    "create_document_store",
    "load_feature",
    "query_collection",
]
