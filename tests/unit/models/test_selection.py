"""Tests for the selection model."""

from __future__ import annotations

import pytest

from bonome.core.exceptions import ValidationError
from bonome.models import Selection


class TestSelectionCoerce:
    """Tests for Selection.coerce."""

    def test_bare_class_id(self) -> None:
        """Test a string is shorthand for the class."""
        selection = Selection.coerce("guerrier")

        assert selection.character_class == "guerrier"
        assert selection.niveau == 1

    def test_none(self) -> None:
        """Test None gives an empty selection."""
        assert Selection.coerce(None) == Selection()

    def test_wire_names(self) -> None:
        """Test camelCase and alias spellings are accepted."""
        selection = Selection.coerce(
            {
                "class": "magicien",
                "level": "3",
                "chosenOptions": {"sorts": ["projectile"]},
                "seed_ids": "bonus",
                "classLevels": {"magicien": 3, "guerrier": None},
            }
        )

        assert selection.niveau == 3
        assert selection.chosen_options == {"sorts": ["projectile"]}
        assert selection.seed_ids == ["bonus"]
        assert selection.class_levels == {"magicien": 3}

    @pytest.mark.parametrize("value", [12, ["guerrier"], 1.5])
    def test_rejects_other_shapes(self, value: object) -> None:
        """Test non-string, non-object selections are rejected."""
        with pytest.raises(ValidationError):
            Selection.coerce(value)

    def test_null_containers_dropped(self) -> None:
        """Test null lists and maps fall back to empty ones."""
        selection = Selection.coerce({"race": "", "chosenOptions": None, "manual_features": None})

        assert selection.race is None
        assert selection.chosen_options == {}
        assert selection.manual_features == []


class TestSelectionHelpers:
    """Tests for derived values and copies."""

    def test_effective_class_levels(self) -> None:
        """Test the primary class is seeded at the selection level."""
        selection = Selection.coerce({"class": "guerrier", "niveau": 4, "classLevels": {"clerc": 1}})

        assert selection.effective_class_levels() == {"clerc": 1, "guerrier": 4}

    def test_with_choice_copies(self) -> None:
        """Test recording an answer leaves the original untouched."""
        selection = Selection.coerce({"class": "guerrier", "chosenOptions": {"a": "x"}})

        updated = selection.with_choice("b", "y")

        assert updated.chosen_options == {"a": "x", "b": "y"}
        assert selection.chosen_options == {"a": "x"}

    def test_to_payload_uses_wire_names(self) -> None:
        """Test the payload form uses the caller's key names."""
        payload = Selection.coerce({"class": "guerrier"}).to_payload()

        assert payload["class"] == "guerrier"
        assert payload["chosenOptions"] == {}
