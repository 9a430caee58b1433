"""Tests for loose document helpers."""

from __future__ import annotations

from typing import Any

import pytest

from bonome.core.documents import as_list, dig


class TestDig:
    """Tests for dig."""

    def test_nested_value(self) -> None:
        """Test that a nested value is found."""
        document = {"mecanique": {"effects": [{"type": "choice"}]}}

        assert dig(document, ("mecanique", "effects")) == [{"type": "choice"}]

    def test_empty_path_returns_document(self) -> None:
        """Test that an empty path returns the document itself."""
        document = {"id": "elfe"}

        assert dig(document, ()) is document

    @pytest.mark.parametrize(
        "document",
        [None, "elfe", ["mecanique"], {"mecanique": None}, {"mecanique": "text"}, {}],
    )
    def test_miss_returns_none(self, document: Any) -> None:
        """Test that any break in the path gives None."""
        assert dig(document, ("mecanique", "effects")) is None


class TestAsList:
    """Tests for as_list."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, []),
            ("athletics", ["athletics"]),
            (3, [3]),
            ({"id": "a"}, [{"id": "a"}]),
            (("a", "b"), ["a", "b"]),
            ([], []),
        ],
    )
    def test_wrapping(self, value: Any, expected: list[Any]) -> None:
        """Test scalars are wrapped and sequences converted."""
        assert as_list(value) == expected

    def test_list_is_copied(self) -> None:
        """Test that the result never aliases the input list."""
        original = ["a"]

        result = as_list(original)
        result.append("b")

        assert original == ["a"]

    def test_set_members_kept(self) -> None:
        """Test that set members all come through."""
        assert sorted(as_list({"b", "a"})) == ["a", "b"]
