"""HTTP surface of the character builder."""

from __future__ import annotations

from bonome.api.app import PreviewRequest, ResolveChoiceRequest, create_app


__all__ = ["create_app", "PreviewRequest", "ResolveChoiceRequest"]
