"""Interfaces of the render / verify collaborators.

The pipeline never draws or inspects anything itself. It talks to two narrow
capabilities, typically both served by the browser page hosting the
ContentLab API:

- a renderer turning a directive body into an SVG artifact;
- a verifier checking that artifact against per-kind acceptance rules.

Ordinary failures are *returned* (``success=False``). Raising
:class:`CollaboratorError` means the collaborator could not answer at all,
which aborts the whole run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

from contentlab.models.blocks import BlockKind
from contentlab.models.results import RenderOptions


class ContentLabError(RuntimeError):
    pass


class CollaboratorError(ContentLabError):
    """The render/verify backend is unreachable or answered garbage."""


@dataclass(frozen=True)
class RenderResult:
    """Result of a generate call."""

    success: bool
    artifact: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class VerifyResult:
    """Result of a verify call.

    ``success`` reports whether the verification mechanism ran; ``passed``
    and ``errors`` are only meaningful when it did.
    """

    success: bool
    passed: bool = False
    errors: list[str] = field(default_factory=list)
    checks: dict[str, bool] = field(default_factory=dict)
    error: str | None = None


class Renderer(Protocol):
    """Render interface."""

    def render(self, kind: BlockKind, body_text: str, options: RenderOptions) -> RenderResult:
        """Generate an artifact for a directive body."""


class Verifier(Protocol):
    """Verify interface."""

    def verify(
        self,
        kind: BlockKind,
        artifact: str,
        rules: Mapping[str, Any] | None = None,
    ) -> VerifyResult:
        """Check a generated artifact."""


# Checks the page API runs when the caller does not override them.
DEFAULT_VERIFICATION_RULES: dict[BlockKind, dict[str, Any]] = {
    BlockKind.NUMBER_LINE: {
        "checkIntervalPosition": True,
        "checkCircleTypes": True,
        "checkSpacing": True,
        "checkBounds": True,
        "checkColors": True,
        "checkReadability": True,
        "tolerancePixels": 5,
    },
    BlockKind.GRAPH: {
        "checkFunctionAccuracy": True,
        "checkLineSlope": True,
        "checkAxisLabels": True,
        "checkGridVisibility": True,
        "checkOriginLabel": True,
        "checkBounds": True,
        "checkColors": True,
        "checkReadability": True,
        "tolerancePixels": 5,
    },
}


def effective_rules(kind: BlockKind, overrides: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Merge caller overrides over the defaults for ``kind``."""

    rules = dict(DEFAULT_VERIFICATION_RULES.get(kind, {}))
    if overrides:
        rules.update(overrides)
    return rules
