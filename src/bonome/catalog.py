"""Catalog listings for the creation UI.

Lists the classes, races, backgrounds or spells of the data repository.
A collection's ``index.json`` is preferred; without one the folder listing
is used. Entries missing display fields are enriched from their own
document.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bonome.core.documents import dig
from bonome.core.exceptions import BonomeError
from bonome.core.logging import get_logger
from bonome.storage.base import DocumentStore


logger = get_logger(__name__)

TEXT_FIELDS: tuple[str, ...] = ("description", "desc", "summary", "flavor", "flavor_text", "text")
IMAGE_FIELDS: tuple[str, ...] = (
    "image",
    "img",
    "icon",
    "art",
    "avatar",
    "illustration",
    "picture",
    "thumbnail",
)
NAME_FIELDS: tuple[str, ...] = ("name", "label", "title")
INDEX_NAME_FIELDS: tuple[str, ...] = ("label", "name", "title", "text")
INDEX_ID_FIELDS: tuple[str, ...] = ("id", "slug", "uid", "key", "value", "name")
EFFECT_LABEL_FIELDS: tuple[str, ...] = (
    "effect_label",
    "effectLabel",
    "effect",
    "summary",
    "tagline",
    "mecanique.effect_label",
    "mecanique.effectLabel",
)

_JSON_SUFFIX = re.compile(r"\.json$", re.IGNORECASE)


class CatalogEntry(BaseModel):
    """One selectable catalog item."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: str | None = None
    image: str | None = None
    effect_label: str | None = Field(default=None, alias="effectLabel")

    def to_response(self) -> dict[str, Any]:
        """Wire form; the effect label is sent under both spellings."""
        data = self.model_dump(by_alias=True)
        data["effect_label"] = self.effect_label
        return data


# =============================================================================
# Helpers
# =============================================================================


def to_slug(value: Any) -> str | None:
    """Last path segment of ``value`` without a ``.json`` suffix."""
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    if not text:
        return None
    slug = _JSON_SUFFIX.sub("", text).split("/")[-1].strip()
    return slug or None


def humanize(value: str) -> str:
    """``"demi_elfe"`` -> ``"Demi Elfe"``."""
    normalized = re.sub(r"\s+", " ", re.sub(r"[_-]+", " ", value)).strip()
    if not normalized:
        return value
    return re.sub(
        r"\b([^\W\d_])([^\W\d_]*)",
        lambda match: match.group(1).upper() + match.group(2).lower(),
        normalized,
    )


def pick_first_string(record: dict[str, Any], fields: tuple[str, ...]) -> str | None:
    """First non-blank string among the (dotted) ``fields`` of ``record``."""
    for name in fields:
        value = dig(record, tuple(name.split(".")))
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def entry_from_index(item: Any, position: int) -> CatalogEntry | None:
    if isinstance(item, (str, int, float, bool)):
        entry_id = to_slug(item)
        return CatalogEntry(id=entry_id, name=humanize(entry_id)) if entry_id else None
    if not isinstance(item, dict):
        return None

    entry_id = next(
        (slug for slug in (to_slug(item.get(key)) for key in INDEX_ID_FIELDS) if slug),
        f"entry_{position}",
    )
    return CatalogEntry(
        id=entry_id,
        name=pick_first_string(item, INDEX_NAME_FIELDS) or humanize(entry_id),
        description=pick_first_string(item, TEXT_FIELDS),
        image=pick_first_string(item, IMAGE_FIELDS),
        effect_label=pick_first_string(item, EFFECT_LABEL_FIELDS),
    )


def entry_from_listing(item: Any) -> CatalogEntry | None:
    if not isinstance(item, dict) or item.get("type") != "file":
        return None
    source = item.get("name")
    if not isinstance(source, str):
        path = item.get("path")
        source = path.rsplit("/", 1)[-1] if isinstance(path, str) else item.get("id")
    if not isinstance(source, str) or not _JSON_SUFFIX.search(source):
        return None
    if source.lower() == "index.json":
        return None
    entry_id = to_slug(source)
    return CatalogEntry(id=entry_id, name=humanize(entry_id)) if entry_id else None


def _dedupe(entries: list[CatalogEntry | None]) -> list[CatalogEntry]:
    by_id: dict[str, CatalogEntry] = {}
    for entry in entries:
        if entry is not None:
            by_id[entry.id] = entry
    return list(by_id.values())


def _needs_details(entry: CatalogEntry) -> bool:
    return (
        not entry.description
        or not entry.effect_label
        or not entry.image
        or not entry.name
        or entry.name == humanize(entry.id)
    )


async def _enrich(store: DocumentStore, kind: str, entry: CatalogEntry) -> CatalogEntry:
    if not _needs_details(entry):
        return entry
    path = f"{kind}/{entry.id}.json"
    try:
        document = await store.fetch_json_from_repo_path(path)
    except BonomeError as exc:
        logger.warning("catalog_details_failed", kind=kind, path=path, error=str(exc))
        return entry
    if not isinstance(document, dict):
        return entry

    update = {
        "name": pick_first_string(document, NAME_FIELDS),
        "description": pick_first_string(document, TEXT_FIELDS),
        "image": pick_first_string(document, IMAGE_FIELDS),
        "effect_label": pick_first_string(document, EFFECT_LABEL_FIELDS),
    }
    return entry.model_copy(update={key: value for key, value in update.items() if value})


# =============================================================================
# Public API
# =============================================================================


async def get_catalog_entries(store: DocumentStore, kind: str) -> list[CatalogEntry]:
    """List the catalog of one collection.

    Args:
        store: Document store to read from.
        kind: Collection folder (``classes``, ``races``, ...).

    Returns:
        Catalog entries, or an empty list when nothing can be read.
    """
    entries: list[CatalogEntry] = []
    index_error: Exception | None = None

    try:
        index = await store.fetch_json_from_repo_path(f"{kind}/index.json")
        if isinstance(index, list):
            entries = _dedupe([entry_from_index(item, position) for position, item in enumerate(index)])
    except BonomeError as exc:
        index_error = exc

    if not entries:
        try:
            listing = await store.list_files_in_path(kind)
        except BonomeError as exc:
            logger.error(
                "catalog_unavailable",
                kind=kind,
                index_error=str(index_error) if index_error else None,
                list_error=str(exc),
            )
            return []
        entries = _dedupe([entry_from_listing(item) for item in listing or []])

    if not entries:
        if index_error is not None:
            logger.error("catalog_index_missing", kind=kind, error=str(index_error))
        return []

    return list(await asyncio.gather(*(_enrich(store, kind, entry) for entry in entries)))


__all__ = [
    "CatalogEntry",
    "to_slug",
    "humanize",
    "pick_first_string",
    "entry_from_index",
    "entry_from_listing",
    "get_catalog_entries",
]
