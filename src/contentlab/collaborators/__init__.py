"""Render / verify collaborators."""

from __future__ import annotations

from contentlab.collaborators.http_client import ContentLabClient
from contentlab.collaborators.protocol import (
    DEFAULT_VERIFICATION_RULES,
    CollaboratorError,
    ContentLabError,
    Renderer,
    RenderResult,
    Verifier,
    VerifyResult,
    effective_rules,
)

__all__ = [
    "DEFAULT_VERIFICATION_RULES",
    "CollaboratorError",
    "ContentLabClient",
    "ContentLabError",
    "Renderer",
    "RenderResult",
    "Verifier",
    "VerifyResult",
    "effective_rules",
]
