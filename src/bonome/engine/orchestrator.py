"""Character creation orchestrator.

Runs the preview pipeline: resolve the feature graph for a selection,
normalize the effects of every feature, split them into immediate effects
and choices, resolve the choices the caller already answered, and apply
the immediate effects to a fresh character draft.

The orchestrator holds no per-character state. Each call rebuilds the
preview from the full selection the caller sends.

Example:
    >>> orchestrator = CreationOrchestrator(store)
    >>> await orchestrator.init()
    >>> result = await orchestrator.build_preview({"class": "guerrier", "race": "elfe"})
    >>> result.to_response()["ok"]
    True
"""

from __future__ import annotations

import inspect
from typing import Any

from bonome.core.config import Settings, get_settings
from bonome.core.exceptions import BonomeError
from bonome.core.logging import get_logger, log_context
from bonome.engine.application import EffectApplicationEngine
from bonome.engine.choices import ChoiceResolver
from bonome.engine.conditions import EffectContext
from bonome.engine.graph import FeatureGraph, FeatureGraphResolver
from bonome.engine.normalizer import looks_like_choice, normalize_effects
from bonome.engine.rules import to_number
from bonome.models.character import CharacterDraft
from bonome.models.effects import ChoiceDescriptor, Effect
from bonome.models.feature import Feature
from bonome.models.results import PreviewResult, ResolvedChoice
from bonome.models.selection import Selection
from bonome.storage.base import DocumentStore


logger = get_logger(__name__)

NODE_EFFECT_KEYS: tuple[str, ...] = ("effects", "features")
"""Keys an effect list is read from on feature nodes supplied as dicts."""


def _node_id(node: Any) -> str | None:
    if isinstance(node, Feature):
        return node.id
    if not isinstance(node, dict):
        return None
    payload = node.get("payload") if isinstance(node.get("payload"), dict) else {}
    value = node.get("originId") or node.get("id") or payload.get("id")
    return str(value) if value not in (None, "") else None


def _node_effects(node: Any) -> list[Any]:
    if isinstance(node, Feature):
        return list(node.effects)
    if not isinstance(node, dict):
        return []
    payload = node.get("payload") if isinstance(node.get("payload"), dict) else {}
    for scope in (node, payload):
        for key in NODE_EFFECT_KEYS:
            value = scope.get(key)
            if value:
                return value if isinstance(value, list) else [value]
    return []


class CreationOrchestrator:
    """Build character previews from selections.

    Attributes:
        store: Document store features and collections come from.
        resolver: Feature graph resolver.
        choice_resolver: Choice resolver (owns the ``auto_from`` cache).
        engine: Effect application engine.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        resolver: FeatureGraphResolver | None = None,
        choice_resolver: ChoiceResolver | None = None,
        engine: EffectApplicationEngine | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.store = store
        self.resolver = resolver or FeatureGraphResolver(store, max_steps=settings.resolver.max_steps)
        self.choice_resolver = choice_resolver or ChoiceResolver(store)
        self.engine = engine or EffectApplicationEngine(default_recharge=settings.resolver.default_recharge)

    async def init(self) -> None:
        """Warm the store index when the store supports it.

        Failures are logged; previews still work through path probing.
        """
        init_index = getattr(self.store, "init_index", None)
        if not callable(init_index):
            return
        try:
            await init_index()
        except Exception as exc:
            logger.warning("store_index_failed", error=str(exc))

    # =========================================================================
    # Pipeline
    # =========================================================================

    async def _resolve_nodes(self, selection: Selection) -> tuple[list[Any], FeatureGraph | None]:
        """Feature nodes for ``selection``, and the grants graph when walked locally."""
        override = getattr(self.store, "resolve_feature_tree", None)
        if callable(override):
            nodes = override(selection.to_payload())
            if inspect.isawaitable(nodes):
                nodes = await nodes
            if isinstance(nodes, list):
                return nodes, None
            if isinstance(nodes, dict):
                return [nodes], None
            logger.warning(
                "feature_tree_override_ignored",
                result_type=type(nodes).__name__,
            )
        graph = await self.resolver.resolve_graph(selection)
        return list(graph.features), graph

    async def _build(self, selection: Selection, base_character: dict[str, Any]) -> PreviewResult:
        context = EffectContext(
            selection=selection,
            base_character=base_character,
            class_levels=selection.effective_class_levels(),
        )
        nodes, graph = await self._resolve_nodes(selection)

        applied_features: list[str] = []
        immediate: list[Effect] = []
        pending: list[ChoiceDescriptor] = []
        resolved: list[ResolvedChoice] = []
        errors: list[dict[str, Any]] = []

        for node in nodes:
            node_id = _node_id(node)
            if node_id is not None and node_id not in applied_features:
                applied_features.append(node_id)

            for effect in normalize_effects(_node_effects(node)):
                if effect.source is None and node_id is not None:
                    effect = effect.model_copy(update={"source": node_id})

                if not looks_like_choice(effect) or effect.payload.get("apply_immediately"):
                    immediate.append(effect)
                    continue

                resolution = await self.choice_resolver.resolve(effect, selection.chosen_options)
                descriptor = resolution.descriptor
                if resolution.resolved:
                    immediate.extend(resolution.effects)
                    resolved.append(
                        ResolvedChoice(
                            ui_id=descriptor.ui_id,
                            feature_id=descriptor.feature_id,
                            category=descriptor.category,
                            selected=resolution.selected or [],
                        )
                    )
                    continue

                if descriptor.is_empty:
                    errors.append(
                        {
                            "type": "empty_choice",
                            "ui_id": descriptor.ui_id,
                            "message": "Choice has no selectable options",
                        }
                    )
                pending.append(descriptor)

        draft = CharacterDraft.from_base(base_character, niveau=selection.niveau)
        ordered = sorted(immediate, key=lambda item: to_number(item.priority, 0))
        applied = self.engine.apply_effects(draft, ordered, context)

        logger.info(
            "preview_built",
            features=len(applied_features),
            effects_applied=applied,
            pending_choices=len(pending),
            resolved_choices=len(resolved),
            grant_edges=graph.graph.number_of_edges() if graph is not None else None,
            missing_features=graph.missing if graph is not None else None,
        )
        return PreviewResult.success(
            draft,
            applied_features=applied_features,
            pending_choices=pending,
            resolved_choices=resolved,
            errors=errors,
        )

    # =========================================================================
    # Public API
    # =========================================================================

    async def build_preview(
        self,
        selection: Any,
        base_character: dict[str, Any] | None = None,
    ) -> PreviewResult:
        """Build a character preview.

        Never raises: unexpected failures come back as ``ok=False`` with the
        error message and stack.

        Args:
            selection: Selection, selection dict, or a bare class id.
            base_character: Caller's base character (base ability scores).

        Returns:
            The preview result.
        """
        try:
            selection = Selection.coerce(selection)
            with log_context(character_class=selection.character_class, race=selection.race):
                return await self._build(selection, base_character or {})
        except BonomeError as exc:
            logger.warning("preview_failed", error=exc.message, error_type=type(exc).__name__)
            return PreviewResult.failure(exc.message, exc=exc)
        except Exception as exc:
            logger.exception("preview_failed", error=str(exc))
            return PreviewResult.failure(str(exc), exc=exc)

    async def resolve_choice(
        self,
        ui_id: str | None,
        value: Any,
        selection: Any,
        base_character: dict[str, Any] | None = None,
    ) -> PreviewResult:
        """Record an answer and rebuild the preview from scratch.

        Args:
            ui_id: Choice the answer belongs to.
            value: Chosen option id(s).
            selection: Current selection.
            base_character: Caller's base character.

        Returns:
            The rebuilt preview, or a failure when ``ui_id`` is missing.
        """
        if not ui_id:
            return PreviewResult.failure("ui_id required")
        try:
            selection = Selection.coerce(selection)
        except BonomeError as exc:
            return PreviewResult.failure(exc.message, exc=exc)
        return await self.build_preview(selection.with_choice(str(ui_id), value), base_character)


__all__ = ["CreationOrchestrator", "NODE_EFFECT_KEYS"]
