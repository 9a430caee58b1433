"""Character build engine.

This module resolves feature graphs, normalizes effects, resolves choices
and applies effects to character drafts.

Submodules:
    normalizer: Canonical effect shape and choice descriptor extraction
    graph: Breadth-first feature graph walk with a global step budget
    choices: Choice matching and ``auto_from`` option queries
    conditions: Conditional gating of effects
    application: Effect handlers and the application engine
    rules: Ability modifier and proficiency bonus arithmetic
    orchestrator: The preview pipeline

Example:
    >>> from bonome.engine import CreationOrchestrator
    >>>
    >>> orchestrator = CreationOrchestrator(store)
    >>> result = await orchestrator.build_preview({"class": "magicien"})
    >>> for choice in result.pending_choices:
    ...     print(choice.ui_id, choice.from_)
"""

from __future__ import annotations

# =============================================================================
# Normalization
# =============================================================================
from bonome.engine.normalizer import (
    extract_choice_descriptor,
    looks_like_choice,
    normalize_effect,
    normalize_effects,
)

# =============================================================================
# Rules
# =============================================================================
from bonome.engine.rules import ability_modifier, proficiency_bonus

# =============================================================================
# Graph, choices and application
# =============================================================================
from bonome.engine.graph import FeatureGraph, FeatureGraphResolver, extract_seed_ids
from bonome.engine.choices import ChoiceResolution, ChoiceResolver, build_filter_predicate
from bonome.engine.conditions import EffectContext, evaluate_conditions
from bonome.engine.application import EffectApplicationEngine

# =============================================================================
# Orchestration
# =============================================================================
from bonome.engine.orchestrator import CreationOrchestrator


__all__ = [
    # Normalization
    "normalize_effect",
    "normalize_effects",
    "looks_like_choice",
    "extract_choice_descriptor",
    # Rules
    "ability_modifier",
    "proficiency_bonus",
    # Graph
    "extract_seed_ids",
    "FeatureGraph",
    "FeatureGraphResolver",
    # Choices
    "build_filter_predicate",
    "ChoiceResolution",
    "ChoiceResolver",
    # Application
    "EffectContext",
    "evaluate_conditions",
    "EffectApplicationEngine",
    # Orchestration
    "CreationOrchestrator",
]
