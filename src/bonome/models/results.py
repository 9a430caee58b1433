"""Preview build results."""

from __future__ import annotations

import traceback
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bonome.models.character import CharacterDraft
from bonome.models.effects import ChoiceDescriptor


class ResolvedChoice(BaseModel):
    """A choice answered by the caller's selection."""

    model_config = ConfigDict(populate_by_name=True)

    ui_id: str
    feature_id: str | None = Field(default=None, alias="featureId")
    category: str | None = None
    selected: list[str] = Field(default_factory=list)


class PreviewResult(BaseModel):
    """Outcome of a preview build.

    Successful builds carry the preview and the choice bookkeeping; failed
    builds carry only ``error`` and, for unexpected exceptions, ``stack``.
    """

    model_config = ConfigDict(populate_by_name=True)

    ok: bool
    preview_character: CharacterDraft | None = Field(default=None, alias="previewCharacter")
    applied_features: list[str] | None = Field(default=None, alias="appliedFeatures")
    pending_choices: list[ChoiceDescriptor] | None = Field(default=None, alias="pendingChoices")
    resolved_choices: list[ResolvedChoice] | None = Field(default=None, alias="resolvedChoices")
    errors: list[dict[str, Any]] | None = None
    error: str | None = None
    stack: str | None = None

    @classmethod
    def success(
        cls,
        preview_character: CharacterDraft,
        *,
        applied_features: list[str],
        pending_choices: list[ChoiceDescriptor],
        resolved_choices: list[ResolvedChoice] | None = None,
        errors: list[dict[str, Any]] | None = None,
    ) -> "PreviewResult":
        return cls(
            ok=True,
            preview_character=preview_character,
            applied_features=applied_features,
            pending_choices=pending_choices,
            resolved_choices=resolved_choices or [],
            errors=errors or [],
        )

    @classmethod
    def failure(cls, message: str, *, exc: BaseException | None = None) -> "PreviewResult":
        """Build a failed result, with the formatted traceback of ``exc`` if given."""
        stack = None
        if exc is not None:
            stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return cls(ok=False, error=message, stack=stack)

    def to_response(self) -> dict[str, Any]:
        """JSON-ready dict with wire names, without the unused branch's keys."""
        data = self.model_dump(by_alias=True, mode="json")
        return {key: value for key, value in data.items() if value is not None}


__all__ = ["ResolvedChoice", "PreviewResult"]
