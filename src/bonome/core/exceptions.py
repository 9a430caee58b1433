"""Custom exception hierarchy for the Bonome character builder.

All exceptions inherit from BonomeError so the HTTP layer and the
orchestrator can catch application errors at one boundary while still
keeping domain-specific context (document paths, effect types, ...).

Example:
    >>> from bonome.core.exceptions import DocumentNotFoundError
    >>> raise DocumentNotFoundError("Feature document missing", path="features/rage.json")
"""

from __future__ import annotations

from typing import Any


class BonomeError(Exception):
    """Base exception for all Bonome errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception."""
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration & Validation Exceptions
# =============================================================================


class ConfigurationError(BonomeError):
    """Raised when application configuration is invalid.

    This includes missing required settings (e.g. a GitHub backend without
    an owner) or values that cannot be combined.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(BonomeError):
    """Raised when caller-supplied data cannot be interpreted."""

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


# =============================================================================
# Document Store Exceptions
# =============================================================================


class DocumentStoreError(BonomeError):
    """Base exception for document store failures.

    Raised by DocumentStore implementations when a document or a directory
    listing cannot be produced.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize store error with path context.

        Args:
            message: Human-readable error description.
            path: Repository path that was requested.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if path:
            combined_details["path"] = path
        super().__init__(message, details=combined_details)


class DocumentNotFoundError(DocumentStoreError):
    """Raised when a document does not exist in the store."""


class DocumentFetchError(DocumentStoreError):
    """Raised when a document exists but cannot be fetched or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize fetch error with transport context.

        Args:
            message: Human-readable error description.
            path: Repository path that was requested.
            status_code: HTTP status code if the failure came from HTTP.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if status_code is not None:
            combined_details["status_code"] = status_code
        super().__init__(message, path=path, details=combined_details)


# =============================================================================
# Engine Exceptions
# =============================================================================


class EngineError(BonomeError):
    """Base exception for feature resolution and effect application errors."""


class FeatureResolutionError(EngineError):
    """Raised when a feature document cannot be turned into a Feature."""

    def __init__(
        self,
        message: str,
        *,
        feature_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize resolution error with feature context.

        Args:
            message: Human-readable error description.
            feature_id: Identifier of the feature being resolved.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if feature_id:
            combined_details["feature_id"] = feature_id
        super().__init__(message, details=combined_details)


class ChoiceResolutionError(EngineError):
    """Raised when a choice option set cannot be computed."""

    def __init__(
        self,
        message: str,
        *,
        ui_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize choice error with the choice identifier.

        Args:
            message: Human-readable error description.
            ui_id: The UI identifier of the choice.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if ui_id:
            combined_details["ui_id"] = ui_id
        super().__init__(message, details=combined_details)


class EffectApplicationError(EngineError):
    """Raised when an effect cannot be applied to a character draft."""

    def __init__(
        self,
        message: str,
        *,
        effect_type: str | None = None,
        effect_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application error with effect context.

        Args:
            message: Human-readable error description.
            effect_type: Type of the failing effect.
            effect_id: Identifier of the failing effect.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if effect_type:
            combined_details["effect_type"] = effect_type
        if effect_id:
            combined_details["effect_id"] = effect_id
        super().__init__(message, details=combined_details)


class EffectPayloadError(EffectApplicationError):
    """Raised when an effect payload is missing a required field."""

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        effect_type: str | None = None,
        effect_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize payload error with the missing field.

        Args:
            message: Human-readable error description.
            field_name: Payload field that is missing or malformed.
            effect_type: Type of the failing effect.
            effect_id: Identifier of the failing effect.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        super().__init__(
            message,
            effect_type=effect_type,
            effect_id=effect_id,
            details=combined_details,
        )


__all__ = [
    # Base exception
    "BonomeError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    # Store exceptions
    "DocumentStoreError",
    "DocumentNotFoundError",
    "DocumentFetchError",
    # Engine exceptions
    "EngineError",
    "FeatureResolutionError",
    "ChoiceResolutionError",
    "EffectApplicationError",
    "EffectPayloadError",
]
