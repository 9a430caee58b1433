"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from bonome.core.exceptions import (
    BonomeError,
    ChoiceResolutionError,
    ConfigurationError,
    DocumentFetchError,
    DocumentNotFoundError,
    DocumentStoreError,
    EffectApplicationError,
    EffectPayloadError,
    EngineError,
    FeatureResolutionError,
    ValidationError,
)


class TestBonomeError:
    """Tests for the base BonomeError exception."""

    def test_basic_message(self) -> None:
        """Test exception with basic message."""
        exc = BonomeError("Test error message")
        assert exc.message == "Test error message"
        assert exc.details == {}
        assert str(exc) == "Test error message"

    def test_with_details(self) -> None:
        """Test exception with additional details."""
        exc = BonomeError(
            "Test error",
            details={"key": "value", "count": 42},
        )
        assert exc.details == {"key": "value", "count": 42}
        assert "key='value'" in str(exc)
        assert "count=42" in str(exc)

    def test_repr(self) -> None:
        """Test exception repr output."""
        exc = BonomeError("Test", details={"x": 1})
        repr_str = repr(exc)
        assert "BonomeError" in repr_str
        assert "Test" in repr_str
        assert "x" in repr_str


class TestConfigurationExceptions:
    """Tests for configuration and validation exceptions."""

    def test_configuration_error_with_key(self) -> None:
        """Test ConfigurationError with config key."""
        exc = ConfigurationError("Missing owner", config_key="github_owner")
        assert exc.details["config_key"] == "github_owner"

    def test_validation_error_with_field(self) -> None:
        """Test ValidationError with field and value."""
        exc = ValidationError("Bad selection", field_name="selection", invalid_value="42")
        assert exc.details["field_name"] == "selection"
        assert exc.details["invalid_value"] == "42"


class TestDocumentStoreExceptions:
    """Tests for document store exceptions."""

    def test_not_found_with_path(self) -> None:
        """Test DocumentNotFoundError carries the path."""
        exc = DocumentNotFoundError("Missing", path="features/rage.json")
        assert exc.details["path"] == "features/rage.json"
        assert isinstance(exc, DocumentStoreError)

    def test_fetch_error_with_status(self) -> None:
        """Test DocumentFetchError carries the HTTP status."""
        exc = DocumentFetchError("Forbidden", path="classes", status_code=403)
        assert exc.details["status_code"] == 403
        assert "status_code=403" in str(exc)


class TestEngineExceptions:
    """Tests for engine exceptions."""

    def test_feature_resolution_error(self) -> None:
        """Test FeatureResolutionError carries the feature id."""
        exc = FeatureResolutionError("No id", feature_id="rage")
        assert exc.details["feature_id"] == "rage"

    def test_choice_resolution_error(self) -> None:
        """Test ChoiceResolutionError carries the ui id."""
        exc = ChoiceResolutionError("Not a choice", ui_id="skills")
        assert exc.details["ui_id"] == "skills"

    def test_effect_payload_error(self) -> None:
        """Test EffectPayloadError carries field and effect context."""
        exc = EffectPayloadError(
            "Missing stat",
            field_name="stat",
            effect_type="stat_modifier",
            effect_id="e1",
        )
        assert exc.details["field_name"] == "stat"
        assert exc.details["effect_type"] == "stat_modifier"
        assert exc.details["effect_id"] == "e1"
        assert isinstance(exc, EffectApplicationError)


class TestExceptionHierarchy:
    """Tests for exception inheritance."""

    @pytest.mark.parametrize(
        ("exc_class", "parent"),
        [
            (ConfigurationError, BonomeError),
            (ValidationError, BonomeError),
            (DocumentStoreError, BonomeError),
            (DocumentNotFoundError, DocumentStoreError),
            (DocumentFetchError, DocumentStoreError),
            (EngineError, BonomeError),
            (FeatureResolutionError, EngineError),
            (ChoiceResolutionError, EngineError),
            (EffectApplicationError, EngineError),
            (EffectPayloadError, EffectApplicationError),
        ],
    )
    def test_inheritance(self, exc_class: type, parent: type) -> None:
        """Test every exception derives from its documented parent."""
        assert issubclass(exc_class, parent)

    def test_catch_all_bonome_errors(self) -> None:
        """Test that all custom exceptions can be caught as BonomeError."""
        with pytest.raises(BonomeError):
            raise EffectPayloadError("boom")
