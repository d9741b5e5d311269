"""Result aggregation."""

from __future__ import annotations

from typing import Sequence

from contentlab.models.blocks import VisualBlock
from contentlab.models.results import PipelineItemResult, PipelineReport


def aggregate(
    blocks: Sequence[VisualBlock],
    results: Sequence[PipelineItemResult],
    *,
    cancelled: bool = False,
) -> PipelineReport:
    """Build the run report, keeping the (position-sorted) block order.

    ``total_found`` always counts every extracted block. A cancelled run may
    carry fewer results than blocks; they belong to the leading blocks.
    """

    if len(results) > len(blocks) or (not cancelled and len(results) != len(blocks)):
        raise ValueError(f"got {len(results)} results for {len(blocks)} blocks")
    return PipelineReport(
        items=list(results),
        total_found=len(blocks),
        total_succeeded=sum(1 for r in results if r.succeeded),
        cancelled=cancelled,
    )
