"""Feature documents.

A feature is a grantable game element (class, race, background or a
sub-feature). Documents in the data repository use several shapes for the
same information; ``Feature.from_document`` reads all of them.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bonome.core.documents import dig
from bonome.core.exceptions import FeatureResolutionError


EFFECT_KEYS: tuple[tuple[str, ...], ...] = (
    ("effects",),
    ("features",),
    ("mecanique", "effects"),
    ("payload", "effects"),
    ("payload", "features"),
)
"""Locations an effect list is read from, in priority order."""

LINK_KEYS: tuple[tuple[str, ...], ...] = (
    ("links",),
    ("mecanique", "links"),
    ("grants",),
)
"""Locations the links block is read from, in priority order."""

GRANT_KEYS: tuple[str, ...] = ("grants", "grant_feature_ids", "features")
"""Aliases of the granted feature id list inside the links block."""


class Feature(BaseModel):
    """An immutable feature loaded from the data repository.

    Attributes:
        id: Feature identifier.
        effects: Raw (not yet normalized) effect entries.
        links: Links block, ``{"grants": [...]}`` or one of its aliases.
        raw: The source document.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    effects: list[Any] = Field(default_factory=list)
    links: dict[str, Any] | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_document(cls, document: Any, fallback_id: str | None = None) -> "Feature":
        """Build a Feature from a loosely shaped JSON document.

        Args:
            document: Parsed JSON document.
            fallback_id: Id used when the document carries none.

        Returns:
            The parsed Feature.

        Raises:
            FeatureResolutionError: If the document is not an object or has no id.
        """
        if not isinstance(document, dict):
            raise FeatureResolutionError(
                "Feature document is not a JSON object",
                feature_id=fallback_id,
                details={"document_type": type(document).__name__},
            )

        feature_id = document.get("id")
        if feature_id in (None, ""):
            feature_id = fallback_id
        if feature_id in (None, ""):
            raise FeatureResolutionError("Feature document has no id")

        effects: Any = None
        for path in EFFECT_KEYS:
            effects = dig(document, path)
            if effects:
                break
        if effects is None:
            effects = []
        elif not isinstance(effects, list):
            effects = [effects]

        links: Any = None
        for path in LINK_KEYS:
            links = dig(document, path)
            if links:
                break
        if isinstance(links, list):
            links = {"grants": links}
        elif not isinstance(links, dict):
            links = None

        return cls(id=str(feature_id), effects=effects, links=links, raw=document)

    @property
    def grant_ids(self) -> list[str]:
        """Ids of the features this feature grants, deduplicated in order."""
        if not self.links:
            return []
        entries: Any = None
        for key in GRANT_KEYS:
            entries = self.links.get(key)
            if entries:
                break
        if not entries:
            return []
        if not isinstance(entries, list):
            entries = [entries]

        ids: list[str] = []
        for entry in entries:
            if isinstance(entry, dict):
                value = entry.get("id") or entry.get("feature_id")
            else:
                value = entry
            if value in (None, "") or isinstance(value, (dict, list)):
                continue
            text = str(value)
            if text not in ids:
                ids.append(text)
        return ids


__all__ = ["Feature", "EFFECT_KEYS", "LINK_KEYS", "GRANT_KEYS"]
