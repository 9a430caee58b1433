"""Choice resolution.

Matches choice effects against the caller's ``chosenOptions``, turns
answered choices into concrete effects, and computes dynamic option sets
(``auto_from``) by querying a document collection.

Example:
    >>> resolver = ChoiceResolver(store)
    >>> resolution = await resolver.resolve(effect, {"skill_pick": "athletics"})
    >>> resolution.resolved
    True
"""

from __future__ import annotations

import json
import unicodedata
from dataclasses import dataclass, field
from typing import Any

from bonome.core.constants import OPTION_ID_FIELDS, OPTION_LABEL_FIELDS
from bonome.core.documents import as_list, dig
from bonome.core.exceptions import ChoiceResolutionError
from bonome.core.logging import get_logger
from bonome.engine.normalizer import (
    extract_choice_descriptor,
    extract_id_label,
    normalize_effect,
    stringify,
)
from bonome.models.effects import AutoFromQuery, ChoiceDescriptor, ChoiceOption, Effect
from bonome.storage.base import DocumentStore, Predicate, query_collection


logger = get_logger(__name__)


# =============================================================================
# Tables
# =============================================================================

PROFICIENCY_CATEGORIES = frozenset(
    {
        "skill",
        "skills",
        "tool",
        "tools",
        "language",
        "languages",
        "weapon",
        "weapons",
        "armor",
        "armors",
    }
)
SPELL_CATEGORIES = frozenset({"spell", "spells"})
EQUIPMENT_CATEGORIES = frozenset({"equipment", "item", "items"})

SELECTION_KEY_SOURCES: tuple[tuple[str, ...], ...] = (
    ("ui_id",),
    ("feature_id",),
    ("raw", "ui_id"),
    ("raw", "featureId"),
    ("raw", "payload", "ui_id"),
    ("raw", "payload", "featureId"),
)
"""Descriptor fields tried, in order, as keys into ``chosenOptions``."""


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str, ensure_ascii=False)


def collation_key(label: str) -> str:
    """Accent-insensitive, case-folded sort key (``"Élan"`` sorts with ``"elan"``)."""
    decomposed = unicodedata.normalize("NFKD", label)
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return stripped.casefold()


def _selected_ids(value: Any) -> list[str]:
    items = value if isinstance(value, (list, tuple)) else [value]
    ids: list[str] = []
    for item in items:
        if isinstance(item, dict):
            item = item.get("id") if item.get("id") not in (None, "") else item.get("value")
        else:
            item, _ = extract_id_label(item)
        if item in (None, ""):
            continue
        text = stringify(item)
        if text not in ids:
            ids.append(text)
    return ids


# =============================================================================
# Filters
# =============================================================================


def _matches(actual: Any, expected: Any) -> bool:
    if isinstance(expected, list):
        have = {stringify(item).casefold() for item in as_list(actual) if item is not None}
        return all(stringify(item).casefold() in have for item in expected)
    if isinstance(expected, dict):
        if "$in" in expected:
            allowed = {stringify(item) for item in as_list(expected["$in"])}
            return any(stringify(item) in allowed for item in as_list(actual))
        if "$eq" in expected:
            return _matches(actual, expected["$eq"])
        return _canonical(actual) == _canonical(expected)
    if expected is None:
        return actual is None
    if actual is None:
        return False
    return stringify(actual) == stringify(expected)


def build_filter_predicate(filters: dict[str, Any] | None) -> Predicate:
    """Build a document predicate from ``auto_from`` filters.

    Keys are dotted paths into the document. Values are matched as:

    - literal: equal after string coercion
    - list: every element present, case-insensitively, in the document value
    - ``{"$in": [...]}``: document value is one of the listed values
    - ``{"$eq": value}``: same as a literal
    - any other object: equal canonical JSON
    """
    conditions = [(tuple(key.split(".")), expected) for key, expected in (filters or {}).items()]

    def predicate(document: dict[str, Any]) -> bool:
        return all(_matches(dig(document, path), expected) for path, expected in conditions)

    return predicate


def _first_field(document: dict[str, Any], fields: list[str] | tuple[str, ...]) -> Any:
    for name in fields:
        value = dig(document, tuple(name.split(".")))
        if value not in (None, "") and not isinstance(value, (dict, list)):
            return value
    return None


# =============================================================================
# Resolver
# =============================================================================


@dataclass
class ChoiceResolution:
    """Outcome of matching one choice against the selection.

    Attributes:
        descriptor: The choice, with ``auto_from`` options resolved when pending.
        selected: Chosen option ids, or None when the choice is unanswered.
        effects: Effects synthesized from the answer.
    """

    descriptor: ChoiceDescriptor
    selected: list[str] | None = None
    effects: list[Effect] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return self.selected is not None


class ChoiceResolver:
    """Resolve choice effects against caller selections.

    ``auto_from`` results are cached per canonical query for the lifetime of
    the resolver.
    """

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self._auto_from_cache: dict[str, list[ChoiceOption]] = {}

    def find_selected_value(
        self,
        descriptor: ChoiceDescriptor,
        chosen_options: dict[str, Any] | None,
    ) -> list[str] | None:
        """Find the caller's answer to a choice.

        Returns:
            The chosen ids, or None if no key holds a non-empty answer.
        """
        if not chosen_options:
            return None
        document = descriptor.model_dump(mode="python")
        for path in SELECTION_KEY_SOURCES:
            key = dig(document, path)
            if key in (None, ""):
                continue
            key = stringify(key)
            if key not in chosen_options:
                continue
            ids = _selected_ids(chosen_options[key])
            if ids:
                return ids
        return None

    def synthesize_effects(self, descriptor: ChoiceDescriptor, ids: list[str]) -> list[Effect]:
        """Effects applying an answered choice, by choice category.

        Categories without a mapping produce nothing; the chosen ids are
        graph seeds already, so chosen features resolve through the walk.
        """
        if not ids:
            return []
        category = (descriptor.category or "").lower()
        source = descriptor.source or descriptor.feature_id
        base = {"source": source, "id": descriptor.ui_id}

        if category in PROFICIENCY_CATEGORIES:
            documents = [
                {
                    **base,
                    "type": "proficiency_grant",
                    "payload": {
                        "proficiency": ids[0] if len(ids) == 1 else list(ids),
                        "category": category,
                    },
                }
            ]
        elif category in SPELL_CATEGORIES:
            documents = [
                {**base, "id": f"{descriptor.ui_id}:{spell_id}", "type": "spell_grant", "payload": {"spell_id": spell_id}}
                for spell_id in ids
            ]
        elif category in EQUIPMENT_CATEGORIES:
            documents = [{**base, "type": "equipment_grant", "payload": {"items": list(ids)}}]
        else:
            return []
        return [normalize_effect(document) for document in documents]

    async def resolve_auto_from(self, descriptor: ChoiceDescriptor) -> ChoiceDescriptor:
        """Replace a descriptor's options with its ``auto_from`` query results.

        Failures are logged and leave the descriptor unchanged.
        """
        if not descriptor.auto_from:
            return descriptor
        try:
            query = AutoFromQuery.model_validate(descriptor.auto_from)
            cache_key = _canonical(query.model_dump())
            options = self._auto_from_cache.get(cache_key)
            if options is None:
                documents = await query_collection(
                    self.store,
                    query.collection,
                    build_filter_predicate(query.filters),
                )
                options = self._map_options(documents, query)
                self._auto_from_cache[cache_key] = options
        except Exception as exc:
            logger.warning(
                "auto_from_failed",
                ui_id=descriptor.ui_id,
                auto_from=descriptor.auto_from,
                error=str(exc),
            )
            return descriptor

        logger.debug("auto_from_resolved", ui_id=descriptor.ui_id, options=len(options))
        return descriptor.model_copy(
            update={
                "from_": [option.id for option in options],
                "from_labels": [option.model_copy() for option in options],
            }
        )

    @staticmethod
    def _map_options(documents: list[dict[str, Any]], query: AutoFromQuery) -> list[ChoiceOption]:
        id_fields = [*query.id_fields, *OPTION_ID_FIELDS]
        label_fields = [*query.label_fields, *OPTION_LABEL_FIELDS]
        seen: set[str] = set()
        options: list[ChoiceOption] = []
        for document in documents:
            option_id = _first_field(document, id_fields)
            if option_id is None:
                continue
            option_id = stringify(option_id)
            if option_id in seen:
                continue
            seen.add(option_id)
            label = _first_field(document, label_fields)
            options.append(ChoiceOption(id=option_id, label=stringify(label) if label is not None else option_id))

        options.sort(key=lambda option: collation_key(option.label))
        if query.limit is not None:
            options = options[: query.limit]
        return options

    async def resolve(
        self,
        effect: Effect | dict[str, Any],
        chosen_options: dict[str, Any] | None,
    ) -> ChoiceResolution:
        """Resolve one choice effect.

        An answered choice yields its synthesized effects; an unanswered one
        gets its ``auto_from`` options computed.

        Raises:
            ChoiceResolutionError: If ``effect`` is not a choice.
        """
        descriptor = extract_choice_descriptor(effect)
        if descriptor is None:
            effect_id = effect.id if isinstance(effect, Effect) else (effect or {}).get("id")
            raise ChoiceResolutionError("Effect is not a choice", ui_id=effect_id)

        selected = self.find_selected_value(descriptor, chosen_options)
        if selected is not None:
            return ChoiceResolution(
                descriptor=descriptor,
                selected=selected,
                effects=self.synthesize_effects(descriptor, selected),
            )
        return ChoiceResolution(descriptor=await self.resolve_auto_from(descriptor))

    def clear_cache(self) -> None:
        self._auto_from_cache.clear()


__all__ = [
    "PROFICIENCY_CATEGORIES",
    "SPELL_CATEGORIES",
    "EQUIPMENT_CATEGORIES",
    "collation_key",
    "build_filter_predicate",
    "ChoiceResolution",
    "ChoiceResolver",
]
