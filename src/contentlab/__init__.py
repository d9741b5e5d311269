"""ContentLab visual block pipeline."""

from __future__ import annotations

from contentlab.models import BlockKind, PipelineItemResult, PipelineReport, VisualBlock
from contentlab.pipeline import (
    RetryPolicy,
    aggregate,
    extract_blocks,
    parse_options,
    process_block,
)

__all__ = [
    "BlockKind",
    "PipelineItemResult",
    "PipelineReport",
    "RetryPolicy",
    "VisualBlock",
    "aggregate",
    "extract_blocks",
    "parse_options",
    "process_block",
]
