"""Effect application engine.

Applies normalized effects to a ``CharacterDraft``. Handlers are looked up
in a registry keyed by lower-cased effect type; unknown types land in
``unhandled_effects`` instead of failing.

Example:
    >>> engine = EffectApplicationEngine()
    >>> draft = CharacterDraft.from_base({"base_stats_before_race": {"dexterity": 10}})
    >>> engine.apply_effects(draft, [{"type": "stat_modifier", "payload": {"stat": "dexterity", "delta": 2}}])
    1
    >>> draft.final_stats["dexterity"]
    12
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from bonome.core.constants import (
    ABILITIES,
    DEFAULT_ABILITY_SCORE,
    DEFAULT_RECHARGE,
    SPELL_SAVE_DC_BASE,
)
from bonome.core.documents import as_list
from bonome.core.exceptions import EffectPayloadError
from bonome.core.logging import get_logger
from bonome.engine.conditions import EffectContext, evaluate_conditions
from bonome.engine.normalizer import normalize_effect, stringify
from bonome.engine.rules import ability_modifier, proficiency_bonus, to_number
from bonome.models.character import CharacterDraft, ResourcePool
from bonome.models.effects import Effect, EffectType


logger = get_logger(__name__)

EffectHandler = Callable[[CharacterDraft, Effect, EffectContext], None]


def _collect(payload: dict[str, Any], keys: Iterable[str]) -> list[str]:
    values: list[str] = []
    for key in keys:
        for item in as_list(payload.get(key)):
            if item in (None, ""):
                continue
            if isinstance(item, dict):
                item = item.get("id") or item.get("value")
                if item in (None, ""):
                    continue
            values.append(stringify(item))
    return values


def _append_unique(target: list[str], values: Iterable[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


def _require(effect: Effect, field_name: str, value: Any) -> Any:
    if value in (None, ""):
        raise EffectPayloadError(
            f"{effect.type} effect is missing {field_name}",
            field_name=field_name,
            effect_type=effect.type,
            effect_id=effect.id,
        )
    return value


# =============================================================================
# Handlers
# =============================================================================


def handle_stat_modifier(character: CharacterDraft, effect: Effect, context: EffectContext) -> None:
    payload = effect.payload
    stat = str(_require(effect, "stat", payload.get("stat")))
    delta = to_number(payload.get("delta"), 0)
    targets = ABILITIES if stat.lower() == "all" else (stat,)
    for ability in targets:
        if ability not in character.final_stats:
            character.final_stats[ability] = to_number(character.base_score(ability), 0)
        current = to_number(character.final_stats[ability], 0)
        character.final_stats[ability] = current + delta


def handle_ability_score_set(character: CharacterDraft, effect: Effect, context: EffectContext) -> None:
    payload = effect.payload
    stat = str(_require(effect, "stat", payload.get("stat")))
    value = _require(effect, "value", payload.get("value"))
    character.final_stats[stat] = to_number(value, value)


def handle_sense_grant(character: CharacterDraft, effect: Effect, context: EffectContext) -> None:
    payload = effect.payload
    character.senses.append(
        {
            "sense_type": payload.get("sense_type") or payload.get("sense") or payload.get("type"),
            "range": payload.get("range"),
            "units": payload.get("units"),
            "source": effect.source,
        }
    )


def handle_proficiency_grant(character: CharacterDraft, effect: Effect, context: EffectContext) -> None:
    payload = effect.payload
    values = _collect(payload, ("proficiency", "proficiencies", "skill", "skills"))
    subtype = payload.get("subtype")
    if isinstance(subtype, str):
        values.extend(part.strip() for part in subtype.split(",") if part.strip())
    _append_unique(character.proficiencies, values)


def handle_equipment_grant(character: CharacterDraft, effect: Effect, context: EffectContext) -> None:
    values = _collect(effect.payload, ("equipment", "item", "items", "item_id"))
    _append_unique(character.equipment, values)


def handle_grant_feature(character: CharacterDraft, effect: Effect, context: EffectContext) -> None:
    feature_id = _require(effect, "feature_id", effect.payload.get("feature_id"))
    if not effect.payload.get("apply_immediately"):
        logger.debug("grant_feature_deferred", feature_id=feature_id, source=effect.source)
    _append_unique(character.features, [stringify(feature_id)])


def handle_spell_grant(character: CharacterDraft, effect: Effect, context: EffectContext) -> None:
    payload = effect.payload
    spell_id = next(
        (payload[key] for key in ("spell_id", "spell", "id", "spellId") if payload.get(key) not in (None, "")),
        None,
    )
    spell_id = stringify(_require(effect, "spell_id", spell_id))
    spellcasting = character.spellcasting
    target = spellcasting.prepared if payload.get("prepared") and not payload.get("known") else spellcasting.known
    _append_unique(target, [spell_id])


def handle_spellcasting_feature(character: CharacterDraft, effect: Effect, context: EffectContext) -> None:
    payload = effect.payload
    spellcasting = character.spellcasting

    if payload.get("ability"):
        spellcasting.ability = str(payload["ability"])

    slots = payload.get("slots_table") or payload.get("slots")
    if isinstance(slots, dict):
        for level, count in slots.items():
            spellcasting.slots[stringify(level)] = int(to_number(count, 0))

    _append_unique(spellcasting.known, _collect(payload, ("known",)))

    ability = spellcasting.ability
    score = None
    if ability:
        score = character.final_stats.get(ability)
        if score is None:
            score = character.base_score(ability)
    modifier = ability_modifier(DEFAULT_ABILITY_SCORE if score is None else score)
    meta = spellcasting.meta
    if meta.spell_save_dc is None:
        meta.spell_save_dc = SPELL_SAVE_DC_BASE + modifier + to_number(payload.get("spell_save_dc_mod"), 0)
    if meta.spell_attack_mod is None:
        meta.spell_attack_mod = (
            modifier
            + proficiency_bonus(context.total_level)
            + to_number(payload.get("spell_attack_mod"), 0)
        )

    spellcasting.features.append({"id": effect.id, "payload": payload})


def handle_casting_modifier(character: CharacterDraft, effect: Effect, context: EffectContext) -> None:
    payload = effect.payload
    spellcasting = character.spellcasting
    spellcasting.modifiers.append({"id": effect.id, "payload": payload})
    meta = spellcasting.meta
    if "spell_save_dc_delta" in payload:
        meta.spell_save_dc = (meta.spell_save_dc or 0) + to_number(payload["spell_save_dc_delta"], 0)
    if "spell_attack_bonus_delta" in payload:
        meta.spell_attack_mod = (meta.spell_attack_mod or 0) + to_number(payload["spell_attack_bonus_delta"], 0)


def _make_resource_pool_handler(default_recharge: str) -> EffectHandler:
    def handle_resource_pool(character: CharacterDraft, effect: Effect, context: EffectContext) -> None:
        payload = effect.payload
        pool_id = stringify(_require(effect, "id", payload.get("id")))
        maximum = to_number(payload.get("max"), 0)
        character.resources[pool_id] = ResourcePool(
            max=maximum,
            current=maximum,
            recharge=str(payload.get("recharge") or default_recharge),
        )

    return handle_resource_pool


def handle_ability_create(character: CharacterDraft, effect: Effect, context: EffectContext) -> None:
    payload = effect.payload
    ability_id = stringify(_require(effect, "id", payload.get("id")))
    if ability_id in character.abilities:
        return
    character.abilities[ability_id] = {**payload, "uses_from": payload.get("uses_from")}


def handle_temp_hp_grant(character: CharacterDraft, effect: Effect, context: EffectContext) -> None:
    amount = to_number(effect.payload.get("amount"), 0)
    character.temp_hp = max(to_number(character.temp_hp, 0), amount)


def handle_condition_apply(character: CharacterDraft, effect: Effect, context: EffectContext) -> None:
    payload = effect.payload
    character.conditions.append(
        {
            "condition_id": payload.get("condition_id") or payload.get("condition"),
            "duration": payload.get("duration"),
            "source": effect.source,
        }
    )


def handle_resistance_grant(character: CharacterDraft, effect: Effect, context: EffectContext) -> None:
    payload = effect.payload
    character.resistances.append(
        {
            "damage_type": payload.get("damage_type"),
            "type": payload.get("type") or "resistance",
            "source": effect.source,
        }
    )


def handle_ui_message(character: CharacterDraft, effect: Effect, context: EffectContext) -> None:
    payload = effect.payload
    character.messages.append(
        {
            "title": payload.get("title") or "",
            "body": payload.get("body") or payload.get("text") or "",
            "source": effect.source,
        }
    )


# =============================================================================
# Engine
# =============================================================================


class EffectApplicationEngine:
    """Apply effects to character drafts.

    The engine holds no per-character state; one instance can serve any
    number of preview builds.

    Attributes:
        default_recharge: Recharge given to resource pools that name none.
    """

    def __init__(self, *, default_recharge: str = DEFAULT_RECHARGE) -> None:
        self.default_recharge = default_recharge
        self._handlers: dict[str, EffectHandler] = {
            EffectType.STAT_MODIFIER: handle_stat_modifier,
            EffectType.ABILITY_SCORE_SET: handle_ability_score_set,
            EffectType.SENSE_GRANT: handle_sense_grant,
            EffectType.PROFICIENCY_GRANT: handle_proficiency_grant,
            EffectType.EQUIPMENT_GRANT: handle_equipment_grant,
            EffectType.GRANT_FEATURE: handle_grant_feature,
            EffectType.SPELL_GRANT: handle_spell_grant,
            EffectType.SPELLCASTING_FEATURE: handle_spellcasting_feature,
            EffectType.CASTING_MODIFIER: handle_casting_modifier,
            EffectType.RESOURCE_POOL: _make_resource_pool_handler(default_recharge),
            EffectType.ABILITY_CREATE: handle_ability_create,
            EffectType.TEMP_HP_GRANT: handle_temp_hp_grant,
            EffectType.CONDITION_APPLY: handle_condition_apply,
            EffectType.RESISTANCE_GRANT: handle_resistance_grant,
            EffectType.UI_MESSAGE: handle_ui_message,
        }

    def register_handler(self, effect_type: str, handler: EffectHandler) -> None:
        """Register or replace the handler of an effect type."""
        self._handlers[effect_type.lower()] = handler

    def handler_for(self, effect_type: str | None) -> EffectHandler | None:
        if not effect_type:
            return None
        return self._handlers.get(effect_type.lower())

    def apply(
        self,
        character: CharacterDraft,
        effect: Effect | dict[str, Any],
        context: EffectContext | None = None,
    ) -> bool:
        """Apply one effect.

        Args:
            character: Draft to mutate.
            effect: Effect or effect document.
            context: Selection and level information.

        Returns:
            True if a handler applied the effect, False if its conditions
            failed or its type is unknown.

        Raises:
            EffectPayloadError: If the payload lacks a required field.
        """
        context = context or EffectContext()
        character.ensure_compound_fields()
        if not isinstance(effect, Effect):
            effect = normalize_effect(effect)
            if not isinstance(effect, Effect):
                character.unhandled_effects.append(effect)
                return False

        if not evaluate_conditions(effect.conditions, context, character):
            logger.debug("effect_skipped_by_conditions", effect_id=effect.id, effect_type=effect.type)
            return False

        handler = self.handler_for(effect.type)
        if handler is None:
            character.unhandled_effects.append(effect.to_dict())
            logger.debug("effect_unhandled", effect_id=effect.id, effect_type=effect.type)
            return False

        handler(character, effect, context)
        character.applied_effects.append(
            {
                "id": effect.id,
                "source": effect.source,
                "type": effect.type,
                "payload": effect.payload,
            }
        )
        return True

    def apply_effects(
        self,
        character: CharacterDraft,
        effects: Iterable[Effect | dict[str, Any]],
        context: EffectContext | None = None,
    ) -> int:
        """Apply effects in the order given.

        A failing entry is recorded in ``unhandled_effects`` as
        ``{error, effect}`` and the remaining entries still apply.

        Returns:
            Number of effects applied.
        """
        context = context or EffectContext()
        applied = 0
        for effect in effects:
            try:
                if self.apply(character, effect, context):
                    applied += 1
            except Exception as exc:
                effect_data = effect.to_dict() if isinstance(effect, Effect) else effect
                character.unhandled_effects.append({"error": str(exc), "effect": effect_data})
                logger.warning(
                    "effect_application_failed",
                    effect_type=effect_data.get("type") if isinstance(effect_data, dict) else None,
                    error=str(exc),
                )
        return applied


__all__ = [
    "EffectHandler",
    "EffectApplicationEngine",
    "handle_stat_modifier",
    "handle_ability_score_set",
    "handle_sense_grant",
    "handle_proficiency_grant",
    "handle_equipment_grant",
    "handle_grant_feature",
    "handle_spell_grant",
    "handle_spellcasting_feature",
    "handle_casting_modifier",
    "handle_ability_create",
    "handle_temp_hp_grant",
    "handle_condition_apply",
    "handle_resistance_grant",
    "handle_ui_message",
]
