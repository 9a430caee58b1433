"""Effect and choice models.

An Effect is one atomic mutation attached to a feature document. Effects
arrive in many historical JSON shapes; ``bonome.engine.normalizer`` turns
them into the canonical model defined here.

Example:
    >>> effect = Effect(type="stat_modifier", payload={"stat": "dexterity", "delta": 2})
    >>> effect.kind
    <EffectType.STAT_MODIFIER: 'stat_modifier'>
"""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EffectType(StrEnum):
    """Effect kinds understood by the application engine."""

    STAT_MODIFIER = "stat_modifier"
    ABILITY_SCORE_SET = "ability_score_set"
    PROFICIENCY_GRANT = "proficiency_grant"
    EQUIPMENT_GRANT = "equipment_grant"
    SPELL_GRANT = "spell_grant"
    SPELLCASTING_FEATURE = "spellcasting_feature"
    CASTING_MODIFIER = "casting_modifier"
    SENSE_GRANT = "sense_grant"
    GRANT_FEATURE = "grant_feature"
    RESOURCE_POOL = "resource_pool"
    ABILITY_CREATE = "ability_create"
    CONDITION_APPLY = "condition_apply"
    RESISTANCE_GRANT = "resistance_grant"
    TEMP_HP_GRANT = "temp_hp_grant"
    UI_MESSAGE = "ui_message"
    CHOICE = "choice"


def _coerce_identifier(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class Effect(BaseModel):
    """Canonical effect.

    ``payload`` is always a dict. ``type`` is kept as supplied when it is
    not a known EffectType so unknown effects can still be reported.
    Unrecognised top-level keys are preserved as extras.

    Attributes:
        id: Effect identifier, if any.
        type: Effect kind.
        source: Id of the feature that granted the effect.
        priority: Application order key (ascending).
        payload: Type-specific fields.
        conditions: Optional gating conditions.
        raw: The document the effect was normalized from.
    """

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    type: str | None = None
    source: str | None = None
    priority: int | float = 0
    payload: dict[str, Any] = Field(default_factory=dict)
    conditions: Any = None
    raw: Any = None

    @field_validator("id", "type", "source", mode="before")
    @classmethod
    def coerce_identifiers(cls, value: Any) -> Any:
        """Stringify scalar identifiers coming from loose JSON."""
        return _coerce_identifier(value)

    @field_validator("priority", mode="before")
    @classmethod
    def coerce_priority(cls, value: Any) -> int | float:
        """Coerce priority to a number, falling back to 0."""
        if value is None or isinstance(value, bool):
            return 0
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0
        if math.isnan(number):
            return 0
        return int(number) if number.is_integer() else number

    @field_validator("payload", mode="before")
    @classmethod
    def ensure_payload(cls, value: Any) -> dict[str, Any]:
        """Replace a missing or non-dict payload with an empty dict."""
        return value if isinstance(value, dict) else {}

    @property
    def kind(self) -> EffectType | None:
        """The recognised effect kind, or None for unknown types."""
        if not self.type:
            return None
        try:
            return EffectType(self.type.lower())
        except ValueError:
            return None

    def to_dict(self) -> dict[str, Any]:
        """Plain dict form including extra keys."""
        return self.model_dump(mode="python")


class ChoiceOption(BaseModel):
    """One selectable option of a choice."""

    id: str
    label: str


class AutoFromQuery(BaseModel):
    """Dynamic option set computed from a document collection.

    Attributes:
        collection: Collection (folder) to query.
        filters: Dotted-path filters applied to every document.
        limit: Maximum number of options kept after sorting.
        id_fields: Fields tried first for the option id.
        label_fields: Fields tried first for the option label.
    """

    model_config = ConfigDict(extra="ignore")

    collection: str
    filters: dict[str, Any] = Field(default_factory=dict)
    limit: int | None = Field(default=None, ge=0)
    id_fields: list[str] = Field(default_factory=list)
    label_fields: list[str] = Field(default_factory=list)

    @field_validator("id_fields", "label_fields", mode="before")
    @classmethod
    def ensure_field_list(cls, value: Any) -> list[str]:
        """Accept a single field name as well as a list."""
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(item) for item in value]


class ChoiceDescriptor(BaseModel):
    """A decision the player must make before an effect can apply.

    Serialised with the wire names used by the creation UI (``featureId``,
    ``from``).

    Attributes:
        ui_id: Identifier the caller keys its answer with.
        feature_id: Feature the choice belongs to.
        choose: How many options must be picked (>= 1).
        from_: Flat, deduplicated option ids.
        from_labels: Display labels for the options.
        type: Effect type of the choice.
        category: Choice category (skill, spell, ...).
        auto_from: Raw dynamic option query, if any.
        title: Display title.
        source: Feature id that granted the choice effect.
        raw: The normalized effect the choice was extracted from.
    """

    model_config = ConfigDict(populate_by_name=True)

    ui_id: str
    feature_id: str | None = Field(default=None, alias="featureId")
    choose: int = Field(default=1, ge=1)
    from_: list[str] = Field(default_factory=list, alias="from")
    from_labels: list[ChoiceOption] = Field(default_factory=list)
    type: str | None = None
    category: str | None = None
    auto_from: dict[str, Any] | None = None
    title: str | None = None
    source: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @field_validator("feature_id", "category", "title", "source", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        """Stringify scalar values coming from loose JSON."""
        return _coerce_identifier(value)

    @property
    def is_empty(self) -> bool:
        """True when no option can be selected."""
        return not self.from_

    def label_for(self, option_id: str) -> str:
        """Return the display label of an option, defaulting to its id."""
        for option in self.from_labels:
            if option.id == option_id:
                return option.label
        return option_id


__all__ = [
    "EffectType",
    "Effect",
    "ChoiceOption",
    "AutoFromQuery",
    "ChoiceDescriptor",
]
