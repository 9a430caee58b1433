"""Pydantic models for features, effects, selections and character drafts."""

from __future__ import annotations

from bonome.models.character import (
    CharacterDraft,
    ResourcePool,
    Spellcasting,
    SpellcastingMeta,
)
from bonome.models.effects import (
    AutoFromQuery,
    ChoiceDescriptor,
    ChoiceOption,
    Effect,
    EffectType,
)
from bonome.models.feature import Feature
from bonome.models.results import PreviewResult, ResolvedChoice
from bonome.models.selection import Selection


__all__ = [
    # Effects
    "EffectType",
    "Effect",
    "ChoiceOption",
    "AutoFromQuery",
    "ChoiceDescriptor",
    # Features
    "Feature",
    # Selection
    "Selection",
    # Character
    "CharacterDraft",
    "Spellcasting",
    "SpellcastingMeta",
    "ResourcePool",
    # Results
    "PreviewResult",
    "ResolvedChoice",
]
