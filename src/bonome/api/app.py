"""FastAPI application exposing the character creation endpoints.

The HTTP layer only marshals requests: every endpoint delegates to the
CreationOrchestrator or the catalog helpers.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from bonome.catalog import get_catalog_entries
from bonome.core.config import Settings, get_settings
from bonome.core.constants import CATALOG_KINDS
from bonome.core.logging import configure_logging, get_logger
from bonome.engine.orchestrator import CreationOrchestrator
from bonome.storage import create_document_store
from bonome.storage.base import DocumentStore


logger = get_logger(__name__)


class PreviewRequest(BaseModel):
    """Body of ``POST /api/creation/preview``."""

    model_config = ConfigDict(populate_by_name=True)

    selection: Any = None
    base_character: dict[str, Any] | None = Field(default=None, alias="baseCharacter")


class ResolveChoiceRequest(PreviewRequest):
    """Body of ``POST /api/creation/resolve-choice``."""

    ui_id: str | None = None
    value: Any = None


def create_app(
    settings: Settings | None = None,
    store: DocumentStore | None = None,
) -> FastAPI:
    """Create the FastAPI app.

    Args:
        settings: Application settings; defaults to ``get_settings()``.
        store: Document store; defaults to the store the settings select.

    Returns:
        The configured application.
    """
    resolved_settings = settings or get_settings()
    configure_logging(resolved_settings)
    owns_store = store is None
    document_store = store if store is not None else create_document_store(resolved_settings)
    orchestrator = CreationOrchestrator(document_store, settings=resolved_settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await orchestrator.init()
        yield
        close = getattr(document_store, "aclose", None)
        if owns_store and callable(close):
            await close()

    app = FastAPI(
        title=resolved_settings.app_name,
        version=resolved_settings.app_version,
        debug=resolved_settings.debug,
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator
    app.state.store = document_store

    @app.post("/api/creation/preview", tags=["Creation"])
    async def preview(request: PreviewRequest) -> dict[str, Any]:
        result = await orchestrator.build_preview(request.selection, request.base_character)
        return result.to_response()

    @app.post("/api/creation/resolve-choice", tags=["Creation"])
    async def resolve_choice(request: ResolveChoiceRequest) -> dict[str, Any]:
        result = await orchestrator.resolve_choice(
            request.ui_id,
            request.value,
            request.selection,
            request.base_character,
        )
        return result.to_response()

    @app.get("/api/catalog/{kind}", tags=["Catalog"])
    async def catalog(kind: str) -> list[dict[str, Any]]:
        if kind not in CATALOG_KINDS:
            raise HTTPException(status_code=404, detail=f"Unknown catalog: {kind}")
        entries = await get_catalog_entries(document_store, kind)
        return [entry.to_response() for entry in entries]

    @app.get("/api/health", tags=["Health"])
    async def health() -> dict[str, Any]:
        return {
            "ok": True,
            "app": resolved_settings.app_name,
            "version": resolved_settings.app_version,
        }

    logger.info("app_created", app=resolved_settings.app_name, store=type(document_store).__name__)
    return app


__all__ = ["PreviewRequest", "ResolveChoiceRequest", "create_app"]
