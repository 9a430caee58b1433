"""Character draft (preview) model.

The draft is the mutable record the application engine writes into. A new
draft is created for every preview build and thrown away once the
response is sent.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bonome.core.constants import ABILITIES, DEFAULT_RECHARGE, MIN_CHARACTER_LEVEL


class SpellcastingMeta(BaseModel):
    """Derived spellcasting numbers."""

    spell_save_dc: int | float | None = None
    spell_attack_mod: int | float | None = None


class Spellcasting(BaseModel):
    """Spellcasting block of a draft.

    Attributes:
        ability: Casting ability name.
        slots: Slot count per spell level (level keys are strings).
        known: Known spell ids.
        prepared: Prepared spell ids.
        meta: Save DC and attack modifier.
        features: ``{id, payload}`` of each spellcasting feature applied.
        modifiers: ``{id, payload}`` of each casting modifier applied.
    """

    ability: str | None = None
    slots: dict[str, int] = Field(default_factory=dict)
    known: list[str] = Field(default_factory=list)
    prepared: list[str] = Field(default_factory=list)
    meta: SpellcastingMeta = Field(default_factory=SpellcastingMeta)
    features: list[dict[str, Any]] = Field(default_factory=list)
    modifiers: list[dict[str, Any]] = Field(default_factory=list)


class ResourcePool(BaseModel):
    """A limited-use resource such as rage or ki points."""

    max: int | float = 0
    current: int | float = 0
    recharge: str = DEFAULT_RECHARGE


class CharacterDraft(BaseModel):
    """Mutable character preview.

    Attributes:
        base_stats_before_race: Player-entered base ability scores.
        niveau: Character level.
        final_stats: Ability scores after effects.
        features: Granted feature ids.
        proficiencies: Proficiency ids, unique.
        equipment: Item ids, unique.
        spellcasting: Spellcasting block.
        senses: Granted senses.
        resources: Resource pools by id.
        abilities: Created abilities by id.
        conditions: Applied conditions.
        resistances: Damage resistances.
        temp_hp: Temporary hit points (max of all grants).
        messages: UI-facing messages.
        unhandled_effects: Unknown effects and ``{error, effect}`` failures.
        applied_effects: ``{id, source, type, payload}`` per applied effect.
    """

    model_config = ConfigDict(extra="allow")

    base_stats_before_race: dict[str, Any] = Field(default_factory=dict)
    niveau: int = MIN_CHARACTER_LEVEL
    final_stats: dict[str, Any] = Field(default_factory=dict)
    features: list[str] = Field(default_factory=list)
    proficiencies: list[str] = Field(default_factory=list)
    equipment: list[str] = Field(default_factory=list)
    spellcasting: Spellcasting = Field(default_factory=Spellcasting)
    senses: list[dict[str, Any]] = Field(default_factory=list)
    resources: dict[str, ResourcePool] = Field(default_factory=dict)
    abilities: dict[str, dict[str, Any]] = Field(default_factory=dict)
    conditions: list[dict[str, Any]] = Field(default_factory=list)
    resistances: list[dict[str, Any]] = Field(default_factory=list)
    temp_hp: int | float = 0
    messages: list[dict[str, Any]] = Field(default_factory=list)
    unhandled_effects: list[Any] = Field(default_factory=list)
    applied_effects: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_base(
        cls,
        base_character: dict[str, Any] | None,
        *,
        niveau: int = MIN_CHARACTER_LEVEL,
    ) -> "CharacterDraft":
        """Create a fresh draft seeded from the caller's base character.

        Base scores are read from ``base_stats_before_race``; a base character
        that only lists ability scores at the top level is accepted too.
        ``final_stats`` starts as a copy of the base scores.
        """
        base = base_character or {}
        stats = base.get("base_stats_before_race")
        if not isinstance(stats, dict):
            stats = {key: base[key] for key in ABILITIES if key in base}
        return cls(
            base_stats_before_race=dict(stats),
            niveau=niveau,
            final_stats=dict(stats),
        )

    def ensure_compound_fields(self) -> None:
        """Recreate compound fields a caller may have nulled out.

        Safe to call any number of times.
        """
        for name in (
            "base_stats_before_race",
            "final_stats",
            "resources",
            "abilities",
        ):
            if getattr(self, name) is None:
                setattr(self, name, {})
        for name in (
            "features",
            "proficiencies",
            "equipment",
            "senses",
            "conditions",
            "resistances",
            "messages",
            "unhandled_effects",
            "applied_effects",
        ):
            if getattr(self, name) is None:
                setattr(self, name, [])
        if self.spellcasting is None:
            self.spellcasting = Spellcasting()
        if self.spellcasting.meta is None:
            self.spellcasting.meta = SpellcastingMeta()
        if self.temp_hp is None:
            self.temp_hp = 0

    def base_score(self, ability: str) -> Any:
        """Base score of an ability, or None if the player entered none."""
        return self.base_stats_before_race.get(ability)


__all__ = [
    "SpellcastingMeta",
    "Spellcasting",
    "ResourcePool",
    "CharacterDraft",
]
