"""Player selection model.

The selection is the caller-owned state of a character build: the picked
class, race and background, the level, and the answers to choices already
surfaced. The engine keeps no state between calls, so every request carries
the full selection.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from bonome.core.constants import MIN_CHARACTER_LEVEL
from bonome.core.exceptions import ValidationError


def _coerce_level(value: Any, default: int = MIN_CHARACTER_LEVEL) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


class Selection(BaseModel):
    """Caller-supplied build selection.

    Attributes:
        character_class: Primary class id (``class`` on the wire).
        race: Race id.
        background: Background id.
        niveau: Character level (``level`` is accepted as an alias).
        manual_features: Extra feature ids or ``{id}`` objects.
        chosen_options: Answers keyed by choice ``ui_id``.
        class_levels: Level per class id.
        seed_ids: Extra seed ids for the feature graph.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    character_class: str | None = Field(default=None, alias="class")
    race: str | None = None
    background: str | None = None
    niveau: int = MIN_CHARACTER_LEVEL
    manual_features: list[Any] = Field(default_factory=list)
    chosen_options: dict[str, Any] = Field(default_factory=dict, alias="chosenOptions")
    class_levels: dict[str, int] = Field(default_factory=dict, alias="classLevels")
    seed_ids: list[str] = Field(default_factory=list, alias="seedIds")

    @model_validator(mode="before")
    @classmethod
    def apply_aliases(cls, data: Any) -> Any:
        """Accept ``level`` and ``seed_ids`` spellings and drop null containers."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("niveau") is None and "level" in data:
            data["niveau"] = data.pop("level")
        if "seedIds" not in data and "seed_ids" in data:
            data["seedIds"] = data.pop("seed_ids")
        for key in ("manual_features", "chosenOptions", "classLevels", "seedIds"):
            if key in data and data[key] is None:
                del data[key]
        return data

    @field_validator("character_class", "race", "background", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> str | None:
        """Stringify ids and treat empty values as unset."""
        if value in (None, ""):
            return None
        return str(value)

    @field_validator("niveau", mode="before")
    @classmethod
    def coerce_niveau(cls, value: Any) -> int:
        """Coerce the level to an int, defaulting to 1."""
        return _coerce_level(value)

    @field_validator("manual_features", "seed_ids", mode="before")
    @classmethod
    def ensure_list(cls, value: Any) -> list[Any]:
        """Wrap a scalar into a one-item list."""
        if isinstance(value, (list, tuple)):
            return list(value)
        return [value]

    @field_validator("class_levels", mode="before")
    @classmethod
    def coerce_class_levels(cls, value: Any) -> dict[str, int]:
        """Coerce class levels to ints, dropping unreadable entries."""
        if not isinstance(value, dict):
            return {}
        return {
            str(name): _coerce_level(level, default=0)
            for name, level in value.items()
            if level is not None
        }

    @classmethod
    def coerce(cls, value: Any) -> "Selection":
        """Build a Selection from the shapes callers send.

        A bare string is shorthand for ``{"class": value}``.

        Raises:
            ValidationError: If the value is neither a string nor an object.
        """
        if isinstance(value, cls):
            return value
        if value is None:
            return cls()
        if isinstance(value, str):
            return cls.model_validate({"class": value})
        if isinstance(value, dict):
            return cls.model_validate(value)
        raise ValidationError(
            "Selection must be a class id or an object",
            field_name="selection",
            invalid_value=repr(value),
        )

    def effective_class_levels(self) -> dict[str, int]:
        """Class levels with the primary class seeded at the selection level."""
        levels = dict(self.class_levels)
        if self.character_class:
            levels.setdefault(self.character_class, self.niveau)
        return levels

    def with_choice(self, ui_id: str, value: Any) -> "Selection":
        """Return a copy with ``value`` recorded as the answer to ``ui_id``."""
        chosen = {**self.chosen_options, ui_id: value}
        return self.model_copy(update={"chosen_options": chosen})

    def to_payload(self) -> dict[str, Any]:
        """Wire form of the selection (camelCase keys)."""
        return self.model_dump(by_alias=True, mode="json")


__all__ = ["Selection"]
