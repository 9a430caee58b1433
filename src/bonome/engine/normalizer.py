"""Effect normalization.

Feature documents were written over several years and spell the same
effect in many ways (``spellId`` vs ``spell``, options under ``from``,
``options`` or ``mecanique``, ...). This module turns any of those shapes
into one canonical ``Effect`` and extracts ``ChoiceDescriptor`` objects for
effects that need player input.

All alias handling is table driven: ``LIFT_ALIASES`` for top-level fields,
``FAMILY_ALIASES`` for per-type payload fields, and ``CHOICE_OPTION_SOURCES``
for the places choice options are gathered from.

Example:
    >>> effect = normalize_effect({"type": "skill_choice", "payload": {"from": ["survie"]}})
    >>> effect.type, effect.payload["from"], effect.payload["choose"]
    ('choice', ['survie'], 1)
"""

from __future__ import annotations

import copy
import hashlib
import json
from typing import Any

from bonome.core.documents import dig
from bonome.core.logging import get_logger
from bonome.models.effects import ChoiceDescriptor, ChoiceOption, Effect


logger = get_logger(__name__)

ScopePath = tuple[str, ...]
"""A lookup path whose first element names a scope: self, payload or raw."""


# =============================================================================
# Alias Tables
# =============================================================================

LIFT_ALIASES: dict[str, tuple[ScopePath, ...]] = {
    "id": (
        ("self", "id"),
        ("payload", "id"),
        ("payload", "feature_id"),
        ("payload", "featureId"),
        ("raw", "id"),
    ),
    "type": (("self", "type"), ("payload", "type"), ("raw", "type")),
    "source": (("self", "source"), ("payload", "source"), ("raw", "source")),
    "priority": (("self", "priority"), ("payload", "priority"), ("raw", "priority")),
}
"""Top-level fields and where they are lifted from, in priority order."""

FAMILY_ALIASES: dict[str, dict[str, tuple[str, ...]]] = {
    "grant_feature": {"feature_id": ("feature_id", "featureId", "id", "feature")},
    "spell_grant": {"spell_id": ("spell_id", "spellId", "spell", "id")},
}
"""Per effect type, canonical payload field -> accepted aliases."""

JSON_OBJECT_FIELDS: dict[str, tuple[str, ...]] = {
    "spellcasting_feature": ("slots_table",),
}
"""Payload fields that must hold an object and may arrive as JSON text."""

CHOICE_MARKERS: tuple[str, ...] = ("choose", "from", "auto_from")
"""Keys whose presence marks an effect as a choice."""

CHOOSE_SOURCES: tuple[ScopePath, ...] = (
    ("payload", "choose"),
    ("payload", "count"),
    ("self", "choose"),
    ("raw", "choose"),
    ("raw", "payload", "choose"),
)

CHOICE_OPTION_SOURCES: tuple[ScopePath, ...] = (
    ("payload", "from"),
    ("raw", "payload", "from"),
    ("raw", "from"),
    ("self", "from"),
    ("payload", "options"),
    ("payload", "choices"),
    ("payload", "mecanique"),
    ("raw", "mecanique"),
    ("self", "mecanique"),
    ("raw", "choices"),
    ("raw", "options"),
    ("raw", "payload", "options"),
    ("self", "choices"),
    ("self", "options"),
)
"""Every place choice options are gathered from, merged in this order."""

UI_ID_SOURCES: tuple[ScopePath, ...] = (
    ("payload", "ui_id"),
    ("self", "ui_id"),
    ("raw", "ui_id"),
    ("self", "id"),
    ("raw", "id"),
)

FEATURE_ID_SOURCES: tuple[ScopePath, ...] = (
    ("self", "id"),
    ("raw", "id"),
    ("payload", "feature_id"),
    ("payload", "featureId"),
)

CATEGORY_SOURCES: tuple[ScopePath, ...] = (
    ("payload", "category"),
    ("self", "category"),
    ("raw", "category"),
    ("raw", "payload", "category"),
)

AUTO_FROM_SOURCES: tuple[ScopePath, ...] = (
    ("payload", "auto_from"),
    ("self", "auto_from"),
    ("raw", "auto_from"),
    ("raw", "payload", "auto_from"),
)

TITLE_SOURCES: tuple[ScopePath, ...] = (
    ("self", "title"),
    ("self", "label"),
    ("self", "name"),
    ("payload", "title"),
    ("payload", "label"),
    ("payload", "name"),
    ("raw", "title"),
    ("raw", "label"),
    ("raw", "name"),
)

OPTION_ID_KEYS: tuple[str, ...] = ("id", "value", "key", "name", "code")
OPTION_LABEL_KEYS: tuple[str, ...] = ("label", "name", "title", "text")

_CANONICAL_FIELDS = frozenset(
    {"id", "type", "source", "priority", "payload", "conditions", "raw"}
)


# =============================================================================
# Helpers
# =============================================================================


def stringify(value: Any) -> str:
    """Render a scalar the way ids are compared across the engine.

    Booleans become ``"true"``/``"false"`` and integral floats lose their
    fractional part, so ``1`` and ``1.0`` compare equal.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _lookup(scopes: dict[str, Any], path: ScopePath) -> Any:
    return dig(scopes.get(path[0]), path[1:])


def _first_present(scopes: dict[str, Any], paths: tuple[ScopePath, ...]) -> Any:
    for path in paths:
        value = _lookup(scopes, path)
        if value is not None:
            return value
    return None


def _as_dict(effect: Any) -> dict[str, Any] | None:
    if isinstance(effect, Effect):
        return effect.to_dict()
    if isinstance(effect, dict):
        return copy.deepcopy(effect)
    return None


def _scopes_for(document: dict[str, Any]) -> dict[str, Any]:
    nested_raw = document.get("raw")
    if not isinstance(nested_raw, dict):
        nested_raw = {}
    payload = document.get("payload")
    if not isinstance(payload, dict):
        payload = nested_raw.get("payload") if isinstance(nested_raw.get("payload"), dict) else {}
    return {"self": document, "payload": payload, "raw": nested_raw}


def coerce_choose(value: Any) -> int:
    """Coerce a ``choose`` count to an int >= 1; unreadable values become 1."""
    if value is None or isinstance(value, bool):
        return 1
    try:
        count = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 1
    return count if count >= 1 else 1


def extract_id_label(item: Any) -> tuple[str | None, str | None]:
    """Read an ``(id, label)`` pair from one option entry."""
    if item is None:
        return None, None
    if isinstance(item, dict):
        option_id = next((item[k] for k in OPTION_ID_KEYS if item.get(k) is not None), None)
        label = next((item[k] for k in OPTION_LABEL_KEYS if item.get(k) is not None), option_id)
        return (
            stringify(option_id) if option_id is not None else None,
            stringify(label) if label is not None else None,
        )
    text = stringify(item)
    return text, text


def flatten_candidates(candidate: Any) -> list[Any]:
    """Turn one option source into a flat list of option entries."""
    if candidate is None:
        return []
    if isinstance(candidate, (list, tuple)):
        return list(candidate)
    if isinstance(candidate, dict):
        items = candidate.get("items")
        if isinstance(items, list):
            return items
        if isinstance(items, dict):
            return list(items.values())
        return list(candidate.values())
    return [candidate]


def gather_options(scopes: dict[str, Any]) -> list[tuple[str, str]]:
    """Collect ``(id, label)`` pairs from every option source, deduplicated by id."""
    seen: set[str] = set()
    options: list[tuple[str, str]] = []
    for path in CHOICE_OPTION_SOURCES:
        candidate = _lookup(scopes, path)
        if not candidate:
            continue
        if path[-1] == "mecanique" and isinstance(candidate, dict) and "from" in candidate:
            candidate = candidate["from"]
        for item in flatten_candidates(candidate):
            option_id, label = extract_id_label(item)
            if not option_id or option_id in seen:
                continue
            seen.add(option_id)
            options.append((option_id, label or option_id))
    return options


def _normalize_labels(labels: Any) -> list[tuple[str, str]]:
    if not isinstance(labels, list):
        return []
    pairs: list[tuple[str, str]] = []
    for entry in labels:
        option_id, label = extract_id_label(entry)
        if option_id:
            pairs.append((option_id, label or option_id))
    return pairs


def _is_choice(effect_type: Any, scopes: dict[str, Any]) -> bool:
    if effect_type is not None and "choice" in str(effect_type).lower():
        return True
    for scope_name in ("payload", "self", "raw"):
        scope = scopes.get(scope_name)
        if isinstance(scope, dict) and any(scope.get(key) is not None for key in CHOICE_MARKERS):
            return True
    return False


def looks_like_choice(effect: Any) -> bool:
    """Return True when an effect (normalized or not) needs player input."""
    document = _as_dict(effect)
    if document is None:
        return False
    scopes = _scopes_for(document)
    return _is_choice(_first_present(scopes, LIFT_ALIASES["type"]), scopes)


def _build_payload(document: dict[str, Any], nested_raw: dict[str, Any]) -> dict[str, Any]:
    payload = document.get("payload")
    if isinstance(payload, dict):
        return payload
    if isinstance(nested_raw.get("payload"), dict):
        return copy.deepcopy(nested_raw["payload"])
    mecanique = nested_raw.get("mecanique", document.get("mecanique"))
    if mecanique:
        return {"mecanique": copy.deepcopy(mecanique)}
    return {}


def _apply_family_aliases(effect_type: str | None, payload: dict[str, Any]) -> None:
    family = (effect_type or "").lower()
    for canonical, aliases in FAMILY_ALIASES.get(family, {}).items():
        value = next((payload[a] for a in aliases if payload.get(a) not in (None, "")), None)
        if value is not None:
            payload[canonical] = value

    for field_name in JSON_OBJECT_FIELDS.get(family, ()):
        value = payload.get(field_name)
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError:
                logger.debug("payload_field_not_json", field=field_name, effect_type=family)
                value = None
        payload[field_name] = value if isinstance(value, dict) else {}


# =============================================================================
# Public API
# =============================================================================


def normalize_effect(raw: Any) -> Effect | Any:
    """Normalize one effect document into the canonical Effect.

    Non-dict input is returned unchanged. Normalizing an already
    normalized effect leaves ``type``, ``payload.from`` and
    ``payload.choose`` as they were.

    Args:
        raw: Effect document, Effect instance or any other value.

    Returns:
        The canonical Effect, or ``raw`` itself for non-dict input.
    """
    if isinstance(raw, Effect):
        raw = raw.to_dict()
    if not isinstance(raw, dict):
        return raw

    document = copy.deepcopy(raw)
    nested_raw = document.get("raw") if isinstance(document.get("raw"), dict) else {}
    payload = _build_payload(document, nested_raw)
    scopes = {"self": document, "payload": payload, "raw": nested_raw}

    lifted = {name: _first_present(scopes, paths) for name, paths in LIFT_ALIASES.items()}
    effect_type = lifted["type"]
    if effect_type is not None and not isinstance(effect_type, str):
        effect_type = stringify(effect_type)

    _apply_family_aliases(effect_type, payload)

    if _is_choice(effect_type, scopes):
        effect_type = "choice"
        payload["choose"] = coerce_choose(_first_present(scopes, CHOOSE_SOURCES))
        options = gather_options(scopes)
        known_labels = dict(_normalize_labels(payload.get("from_labels")))
        payload["from"] = [option_id for option_id, _ in options]
        if options:
            payload["from_labels"] = [
                {
                    "id": option_id,
                    "label": known_labels.get(option_id, label) if label == option_id else label,
                }
                for option_id, label in options
            ]
        elif known_labels:
            payload["from_labels"] = [
                {"id": option_id, "label": label} for option_id, label in known_labels.items()
            ]
    elif "choose" in payload or "from" in payload:
        payload["choose"] = coerce_choose(payload.get("choose"))
        options_value = payload.get("from")
        if isinstance(options_value, str):
            payload["from"] = [options_value]
        elif not isinstance(options_value, list):
            payload["from"] = []

    conditions = document.get("conditions")
    if conditions is None:
        conditions = payload.get("conditions")

    extras = {key: value for key, value in document.items() if key not in _CANONICAL_FIELDS}
    return Effect.model_validate(
        {
            **extras,
            "id": lifted["id"],
            "type": effect_type,
            "source": lifted["source"],
            "priority": lifted["priority"] if lifted["priority"] is not None else 0,
            "payload": payload,
            "conditions": conditions,
            "raw": document["raw"] if "raw" in document and document["raw"] is not None else copy.deepcopy(raw),
        }
    )


def normalize_effects(effects: Any) -> list[Effect]:
    """Normalize a list of effect documents, dropping entries that are not effects."""
    if not effects:
        return []
    if not isinstance(effects, list):
        effects = [effects]
    normalized = (normalize_effect(effect) for effect in effects)
    return [effect for effect in normalized if isinstance(effect, Effect)]


def extract_choice_descriptor(effect: Any) -> ChoiceDescriptor | None:
    """Build a ChoiceDescriptor from a choice effect.

    Works on normalized and raw effects alike: options and labels are
    re-derived when the payload does not already carry them.

    Args:
        effect: Effect instance or effect document.

    Returns:
        The descriptor, or None when the effect is not a choice.
    """
    document = _as_dict(effect)
    if document is None:
        return None
    scopes = _scopes_for(document)
    effect_type = _first_present(scopes, LIFT_ALIASES["type"])
    if not _is_choice(effect_type, scopes):
        return None

    payload = scopes["payload"]
    ui_id = _first_present(scopes, UI_ID_SOURCES)
    if ui_id in (None, ""):
        fingerprint = json.dumps(
            {"source": document.get("source"), "payload": payload},
            sort_keys=True,
            default=str,
        )
        ui_id = f"choice_{hashlib.sha1(fingerprint.encode()).hexdigest()[:8]}"
        logger.debug("choice_ui_id_generated", ui_id=ui_id)

    options: list[tuple[str, str]] = []
    if isinstance(payload.get("from"), list):
        seen: set[str] = set()
        for item in payload["from"]:
            option_id, label = extract_id_label(item)
            if option_id and option_id not in seen:
                seen.add(option_id)
                options.append((option_id, label or option_id))
    if not options:
        options = gather_options(scopes)

    known_labels = dict(_normalize_labels(payload.get("from_labels")))
    from_labels = [
        ChoiceOption(
            id=option_id,
            label=known_labels.get(option_id, label) if label == option_id else label,
        )
        for option_id, label in options
    ]

    auto_from = _first_present(scopes, AUTO_FROM_SOURCES)
    feature_id = _first_present(scopes, FEATURE_ID_SOURCES)
    return ChoiceDescriptor(
        ui_id=stringify(ui_id),
        feature_id=stringify(feature_id) if feature_id is not None else None,
        choose=coerce_choose(_first_present(scopes, CHOOSE_SOURCES)),
        from_=[option_id for option_id, _ in options],
        from_labels=from_labels,
        type=stringify(effect_type) if effect_type is not None else None,
        category=_first_present(scopes, CATEGORY_SOURCES),
        auto_from=auto_from if isinstance(auto_from, dict) else None,
        title=_first_present(scopes, TITLE_SOURCES),
        source=document.get("source"),
        raw=document,
    )


__all__ = [
    "LIFT_ALIASES",
    "FAMILY_ALIASES",
    "CHOICE_OPTION_SOURCES",
    "stringify",
    "dig",
    "coerce_choose",
    "extract_id_label",
    "flatten_candidates",
    "gather_options",
    "looks_like_choice",
    "normalize_effect",
    "normalize_effects",
    "extract_choice_descriptor",
]
