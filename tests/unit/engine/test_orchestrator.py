"""Tests for the creation orchestrator."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from bonome.core.config import Settings
from bonome.engine.graph import FeatureGraph, FeatureGraphResolver
from bonome.engine.orchestrator import CreationOrchestrator


def _run(coro: Any) -> Any:
    return asyncio.run(coro)


class TestBuildPreview:
    """Tests for CreationOrchestrator.build_preview."""

    def test_race_modifier(self, memory_store: Any, base_character: dict[str, Any]) -> None:
        """Test mock_race with dexterity +2 gives 12."""
        orchestrator = CreationOrchestrator(memory_store)

        result = _run(orchestrator.build_preview({"race": "mock_race"}, base_character))

        assert result.ok
        assert result.preview_character.final_stats["dexterity"] == 12
        assert result.applied_features == ["mock_race"]
        assert result.pending_choices == []

    def test_pending_choice(self, memory_store: Any, base_character: dict[str, Any]) -> None:
        """Test an unanswered choice is reported as pending."""
        orchestrator = CreationOrchestrator(memory_store)

        result = _run(orchestrator.build_preview("guerrier", base_character))

        assert result.ok
        assert [choice.ui_id for choice in result.pending_choices] == ["guerrier_skills"]
        assert result.pending_choices[0].source == "guerrier"
        assert result.preview_character.proficiencies == ["armor_heavy"]
        assert result.applied_features == ["guerrier", "second_souffle"]
        assert result.preview_character.resources["second_wind"].recharge == "short_rest"

    def test_answered_choice(self, memory_store: Any, base_character: dict[str, Any]) -> None:
        """Test an answered skill choice lands in proficiencies and is not pending."""
        orchestrator = CreationOrchestrator(memory_store)
        selection = {"class": "guerrier", "chosenOptions": {"guerrier_skills": "athletics"}}

        result = _run(orchestrator.build_preview(selection, base_character))

        assert result.pending_choices == []
        assert "athletics" in result.preview_character.proficiencies
        assert result.resolved_choices[0].ui_id == "guerrier_skills"
        assert result.resolved_choices[0].selected == ["athletics"]

    def test_priority_order(self, store_factory: Any, base_character: dict[str, Any]) -> None:
        """Test immediate effects apply in ascending priority, stable for ties."""
        store = store_factory(
            {
                "features/ordre.json": {
                    "id": "ordre",
                    "effects": [
                        {"type": "ability_score_set", "priority": 5, "payload": {"stat": "strength", "value": 20}},
                        {"type": "stat_modifier", "payload": {"stat": "strength", "delta": 1}},
                        {"type": "equipment_grant", "priority": 5, "payload": {"item": "a"}},
                        {"type": "equipment_grant", "priority": 5, "payload": {"item": "b"}},
                    ],
                }
            }
        )
        orchestrator = CreationOrchestrator(store)

        result = _run(orchestrator.build_preview({"seedIds": ["ordre"]}, base_character))

        assert result.preview_character.final_stats["strength"] == 20
        assert result.preview_character.equipment == ["a", "b"]

    def test_empty_choice_reported(self, store_factory: Any) -> None:
        """Test a choice without options is pending and flagged in errors."""
        store = store_factory(
            {"features/vide.json": {"id": "vide", "effects": [{"id": "c", "type": "choice", "payload": {"from": []}}]}}
        )
        orchestrator = CreationOrchestrator(store)

        result = _run(orchestrator.build_preview({"seedIds": "vide"}))

        assert [choice.ui_id for choice in result.pending_choices] == ["c"]
        assert result.errors == [
            {"type": "empty_choice", "ui_id": "c", "message": "Choice has no selectable options"}
        ]

    def test_apply_immediately_choice_is_not_pending(self, store_factory: Any) -> None:
        """Test choices marked apply_immediately skip the choice resolver."""
        store = store_factory(
            {
                "features/f.json": {
                    "id": "f",
                    "effects": [{"id": "c", "type": "choice", "payload": {"from": ["a"], "apply_immediately": True}}],
                }
            }
        )
        orchestrator = CreationOrchestrator(store)

        result = _run(orchestrator.build_preview({"seedIds": "f"}))

        assert result.pending_choices == []
        assert result.preview_character.unhandled_effects[0]["type"] == "choice"

    def test_step_budget_from_settings(self, store_factory: Any) -> None:
        """Test the resolver step budget comes from settings."""
        documents = {f"features/f{i}.json": {"id": f"f{i}", "grants": [f"f{i + 1}"]} for i in range(10)}
        settings = Settings(resolver={"max_steps": 3})
        orchestrator = CreationOrchestrator(store_factory(documents), settings=settings)

        result = _run(orchestrator.build_preview({"seedIds": "f0"}))

        assert result.applied_features == ["f0", "f1", "f2"]

    def test_unexpected_error_becomes_failure(self, memory_store: Any) -> None:
        """Test that unexpected exceptions never escape."""
        orchestrator = CreationOrchestrator(memory_store)

        async def explode(seeds: Any) -> Any:
            raise RuntimeError("store exploded")

        orchestrator.resolver.resolve_graph = explode  # type: ignore[method-assign]

        result = _run(orchestrator.build_preview("guerrier"))

        assert result.ok is False
        assert result.error == "store exploded"
        assert "RuntimeError" in result.stack
        assert set(result.to_response()) == {"ok", "error", "stack"}

    def test_local_walk_uses_grants_graph(self, memory_store: Any, base_character: dict[str, Any]) -> None:
        """Test the local walk goes through resolve_graph and keeps its node order."""

        class RecordingResolver(FeatureGraphResolver):
            def __init__(self, store: Any) -> None:
                super().__init__(store)
                self.graphs: list[FeatureGraph] = []

            async def resolve_graph(self, seeds: Any) -> FeatureGraph:
                graph = await super().resolve_graph(seeds)
                self.graphs.append(graph)
                return graph

        resolver = RecordingResolver(memory_store)
        orchestrator = CreationOrchestrator(memory_store, resolver=resolver)

        result = _run(orchestrator.build_preview({"class": "guerrier", "race": "nope"}, base_character))

        assert len(resolver.graphs) == 1
        graph = resolver.graphs[0]
        assert graph.graph.has_edge("guerrier", "second_souffle")
        assert graph.missing == ["nope"]
        assert result.applied_features == graph.feature_ids

    def test_invalid_selection(self, memory_store: Any) -> None:
        """Test that an unusable selection is reported as a failure."""
        orchestrator = CreationOrchestrator(memory_store)

        result = _run(orchestrator.build_preview(42))

        assert result.ok is False
        assert "Selection" in result.error


class TestStoreOverride:
    """Tests for stores that resolve the feature tree themselves."""

    class OverrideStore:
        def __init__(self, result: Any) -> None:
            self.result = result
            self.calls: list[Any] = []

        async def list_files_in_path(self, path: str) -> list[dict[str, Any]]:
            return []

        async def fetch_json_from_repo_path(self, path: str) -> Any:
            raise AssertionError("fetch should not be called")

        async def resolve_feature_tree(self, seeds: Any) -> Any:
            self.calls.append(seeds)
            return self.result

    def test_list_passthrough(self) -> None:
        """Test an override list is used as the node list."""
        store = self.OverrideStore(
            [
                {"originId": "elfe", "payload": {"effects": [{"type": "stat_modifier", "payload": {"stat": "dexterity", "delta": 2}}]}},
                {"id": "vision", "features": {"type": "sense_grant", "payload": {"sense_type": "darkvision"}}},
            ]
        )
        orchestrator = CreationOrchestrator(store)

        result = _run(orchestrator.build_preview({"race": "elfe"}, {"base_stats_before_race": {"dexterity": 10}}))

        assert result.applied_features == ["elfe", "vision"]
        assert result.preview_character.final_stats["dexterity"] == 12
        assert result.preview_character.senses[0]["source"] == "vision"
        assert store.calls[0]["race"] == "elfe"

    def test_dict_wrapped(self) -> None:
        """Test a single override node is wrapped into a list."""
        store = self.OverrideStore({"id": "solo", "effects": []})
        orchestrator = CreationOrchestrator(store)

        result = _run(orchestrator.build_preview("x"))

        assert result.applied_features == ["solo"]

    @pytest.mark.parametrize("bad", [None, "nodes", 3])
    def test_other_results_fall_back(self, bad: Any, store_factory: Any) -> None:
        """Test unusable override output falls back to the local resolver."""
        store = self.OverrideStore(bad)
        orchestrator = CreationOrchestrator(store)
        fallback = store_factory({"classes/x.json": {"id": "x", "effects": []}})
        orchestrator.resolver.store = fallback

        result = _run(orchestrator.build_preview("x"))

        assert result.ok
        assert result.applied_features == ["x"]


class TestResolveChoice:
    """Tests for CreationOrchestrator.resolve_choice."""

    def test_merges_answer_and_rebuilds(self, memory_store: Any, base_character: dict[str, Any]) -> None:
        """Test the answer is merged into chosenOptions before rebuilding."""
        orchestrator = CreationOrchestrator(memory_store)

        result = _run(orchestrator.resolve_choice("guerrier_skills", "intimidation", "guerrier", base_character))

        assert result.ok
        assert "intimidation" in result.preview_character.proficiencies
        assert result.pending_choices == []

    @pytest.mark.parametrize("ui_id", [None, ""])
    def test_ui_id_required(self, memory_store: Any, ui_id: Any) -> None:
        """Test a missing ui_id is rejected without building."""
        orchestrator = CreationOrchestrator(memory_store)

        result = _run(orchestrator.resolve_choice(ui_id, "x", "guerrier"))

        assert result.ok is False
        assert result.error == "ui_id required"


class TestInit:
    """Tests for CreationOrchestrator.init."""

    def test_builds_index(self, memory_store: Any) -> None:
        """Test init warms the store index."""
        orchestrator = CreationOrchestrator(memory_store)

        _run(orchestrator.init())

        assert "classes" in memory_store.listed

    def test_index_failure_not_fatal(self, memory_store: Any) -> None:
        """Test a failing index build is logged, not raised."""
        async def broken() -> int:
            raise RuntimeError("offline")

        memory_store.init_index = broken
        orchestrator = CreationOrchestrator(memory_store)

        _run(orchestrator.init())
