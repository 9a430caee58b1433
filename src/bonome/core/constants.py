"""Application-wide constants for the Bonome character builder.

Rules constants, resolver defaults and the field-name tables used when
reading loosely shaped data documents.
"""

from __future__ import annotations

# =============================================================================
# Ability Scores
# =============================================================================

ABILITIES: tuple[str, ...] = (
    "strength",
    "dexterity",
    "constitution",
    "intelligence",
    "wisdom",
    "charisma",
)
"""The six standard abilities, in sheet order."""

DEFAULT_ABILITY_SCORE = 10
"""Score assumed when neither final nor base stats know an ability."""

SPELL_SAVE_DC_BASE = 10
"""Base added to the casting ability modifier for the spell save DC."""

# =============================================================================
# Level Constants
# =============================================================================

MAX_CHARACTER_LEVEL = 20
"""Maximum character level."""

MIN_CHARACTER_LEVEL = 1
"""Minimum character level."""

DEFAULT_PROFICIENCY_BONUS = 2
"""Proficiency bonus for levels 1-4 and for unknown levels."""

# =============================================================================
# Resolver Defaults
# =============================================================================

DEFAULT_MAX_STEPS = 8
"""Global step budget shared by the whole feature graph walk."""

DEFAULT_RECHARGE = "long_rest"
"""Recharge of a resource pool that does not name one."""

DEFAULT_SCAN_FOLDERS: tuple[str, ...] = (
    "classes",
    "features",
    "spells",
    "races",
    "items",
    "backgrounds",
)
"""Folders listed when building the id -> path index."""

FALLBACK_FOLDERS: tuple[str, ...] = ("data", "content")
"""Extra folders probed by id when the index has no entry."""

# =============================================================================
# Option Field Tables
# =============================================================================

OPTION_ID_FIELDS: tuple[str, ...] = ("id", "slug", "code", "key", "name")
"""Fallback fields read for the id of an auto_from option."""

OPTION_LABEL_FIELDS: tuple[str, ...] = ("label", "name", "title", "display_name")
"""Fallback fields read for the label of an auto_from option."""

# =============================================================================
# Catalog
# =============================================================================

CATALOG_KINDS: tuple[str, ...] = ("classes", "races", "backgrounds", "spells")
"""Catalog collections exposed over HTTP."""


__all__ = [
    # Abilities
    "ABILITIES",
    "DEFAULT_ABILITY_SCORE",
    "SPELL_SAVE_DC_BASE",
    # Levels
    "MAX_CHARACTER_LEVEL",
    "MIN_CHARACTER_LEVEL",
    "DEFAULT_PROFICIENCY_BONUS",
    # Resolver
    "DEFAULT_MAX_STEPS",
    "DEFAULT_RECHARGE",
    "DEFAULT_SCAN_FOLDERS",
    "FALLBACK_FOLDERS",
    # Options
    "OPTION_ID_FIELDS",
    "OPTION_LABEL_FIELDS",
    # Catalog
    "CATALOG_KINDS",
]
