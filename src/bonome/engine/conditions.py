"""Conditional gating of effects.

Conditions are small JSON trees attached to an effect::

    {"kind": "level_gte", "value": 3}
    {"all": [{"kind": "level_gte", "value": 3}, {"kind": "has_feature", "feature_id": "rage"}]}
    {"any": [...]}

A bare list is read as ``all``. Unknown kinds never block an effect.
Evaluators live in a registry keyed by kind.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from bonome.core.logging import get_logger
from bonome.engine.rules import to_number
from bonome.models.character import CharacterDraft
from bonome.models.selection import Selection


logger = get_logger(__name__)


@dataclass
class EffectContext:
    """What effects and conditions may read besides the draft itself.

    Attributes:
        selection: The caller's selection, if any.
        base_character: The caller's base character document.
        class_levels: Effective level per class id.
    """

    selection: Selection | None = None
    base_character: dict[str, Any] = field(default_factory=dict)
    class_levels: dict[str, int] = field(default_factory=dict)

    @property
    def primary_class(self) -> str | None:
        return self.selection.character_class if self.selection else None

    def level_for(self, class_name: str | None = None) -> int:
        """Current level for a class.

        Looks at ``class_levels`` first, then the selection level, then the
        base character's ``niveau``; 0 when none is known.
        """
        class_name = class_name or self.primary_class
        if class_name and class_name in self.class_levels:
            return int(to_number(self.class_levels[class_name]))
        if self.selection is not None:
            return self.selection.niveau
        if self.base_character.get("niveau") is not None:
            return int(to_number(self.base_character["niveau"]))
        return 0

    @property
    def total_level(self) -> int:
        """Character level across all classes (at least 1)."""
        total = sum(int(to_number(level)) for level in self.class_levels.values())
        if total <= 0:
            total = self.level_for()
        return max(total, 1)


ConditionEvaluator = Callable[[dict[str, Any], EffectContext, CharacterDraft | None], bool]


def _level_gte(condition: dict[str, Any], context: EffectContext, character: CharacterDraft | None) -> bool:
    required = to_number(condition.get("value", condition.get("level")), 0)
    class_name = condition.get("class") or condition.get("class_id")
    return context.level_for(class_name) >= required


def _always(condition: dict[str, Any], context: EffectContext, character: CharacterDraft | None) -> bool:
    return True


def _has_feature(condition: dict[str, Any], context: EffectContext, character: CharacterDraft | None) -> bool:
    feature_id = next(
        (
            condition[key]
            for key in ("feature_id", "feature", "value", "id")
            if condition.get(key) not in (None, "")
        ),
        None,
    )
    if feature_id is None or character is None:
        return False
    return str(feature_id) in character.features


CONDITION_EVALUATORS: dict[str, ConditionEvaluator] = {
    "level_gte": _level_gte,
    "always": _always,
    "true": _always,
    "has_feature": _has_feature,
}
"""Condition kind -> evaluator."""


def evaluate_condition(
    condition: Any,
    context: EffectContext,
    character: CharacterDraft | None = None,
) -> bool:
    """Evaluate one condition node (which may itself be a group)."""
    if condition is None:
        return True
    if isinstance(condition, bool):
        return condition
    if isinstance(condition, str):
        condition = {"kind": condition}
    if isinstance(condition, list):
        return all(evaluate_condition(item, context, character) for item in condition)
    if not isinstance(condition, dict):
        return True

    if "all" in condition:
        members = condition["all"] if isinstance(condition["all"], list) else [condition["all"]]
        return all(evaluate_condition(item, context, character) for item in members)
    if "any" in condition:
        members = condition["any"] if isinstance(condition["any"], list) else [condition["any"]]
        return any(evaluate_condition(item, context, character) for item in members)

    kind = str(condition.get("kind") or condition.get("type") or "").lower()
    evaluator = CONDITION_EVALUATORS.get(kind)
    if evaluator is None:
        if kind:
            logger.debug("condition_kind_unknown", kind=kind)
        return True
    return evaluator(condition, context, character)


def evaluate_conditions(
    conditions: Any,
    context: EffectContext | None = None,
    character: CharacterDraft | None = None,
) -> bool:
    """Return True when an effect's conditions allow it to apply.

    Args:
        conditions: Condition tree, list, or None.
        context: Selection and level information.
        character: Draft being built, for ``has_feature``.

    Returns:
        True if the effect may apply.
    """
    if conditions in (None, {}, []):
        return True
    return evaluate_condition(conditions, context or EffectContext(), character)


__all__ = [
    "EffectContext",
    "ConditionEvaluator",
    "CONDITION_EVALUATORS",
    "evaluate_condition",
    "evaluate_conditions",
]
