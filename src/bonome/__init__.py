"""Bonome - character build resolver for tabletop RPG character creation.

Turns a player's selections (class, race, background, chosen options) into
a character preview, or into the list of choices the player must still
make.

PIPELINE:
- Feature documents are resolved as a graph over ``grants`` links
- Their effects are normalized into one canonical shape
- Choices are matched against the player's answers
- Immediate effects are applied in priority order to a fresh draft

Example:
    >>> from bonome import CreationOrchestrator, create_document_store
    >>>
    >>> store = create_document_store()
    >>> orchestrator = CreationOrchestrator(store)
    >>> result = await orchestrator.build_preview(
    ...     {"class": "guerrier", "race": "elfe", "niveau": 3},
    ...     {"base_stats_before_race": {"strength": 15, "dexterity": 12}},
    ... )
    >>> result.to_response()["previewCharacter"]["final_stats"]

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic models for effects, features, selections and drafts.
    storage: Document stores (local directory, GitHub contents API).
    engine: Normalizer, graph walk, choices, application and orchestrator.
    catalog: Catalog listings for the creation UI.
    api: FastAPI application.
"""

from __future__ import annotations

# Core
from bonome.core.config import Settings, get_settings
from bonome.core.exceptions import BonomeError
from bonome.core.logging import configure_logging, get_logger

# Models
from bonome.models import (
    CharacterDraft,
    ChoiceDescriptor,
    Effect,
    Feature,
    PreviewResult,
    Selection,
)

# Storage
from bonome.storage import (
    DocumentStore,
    GitHubDocumentStore,
    LocalDocumentStore,
    create_document_store,
)

# Engine
from bonome.engine import (
    CreationOrchestrator,
    EffectApplicationEngine,
    FeatureGraphResolver,
    normalize_effect,
)


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "BonomeError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "CharacterDraft",
    "ChoiceDescriptor",
    "Effect",
    "Feature",
    "PreviewResult",
    "Selection",
    # Storage
    "DocumentStore",
    "LocalDocumentStore",
    "GitHubDocumentStore",
    "create_document_store",
    # Engine
    "CreationOrchestrator",
    "EffectApplicationEngine",
    "FeatureGraphResolver",
    "normalize_effect",
]
