"""Models used across the project."""

from __future__ import annotations

from contentlab.models.blocks import BlockKind, VisualBlock
from contentlab.models.results import (
    AttemptResult,
    OptionValue,
    PipelineItemResult,
    PipelineReport,
    RenderOptions,
)

__all__ = [
    "AttemptResult",
    "BlockKind",
    "OptionValue",
    "PipelineItemResult",
    "PipelineReport",
    "RenderOptions",
    "VisualBlock",
]
