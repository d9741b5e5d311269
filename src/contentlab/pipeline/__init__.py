"""The visual block pipeline: extract, render/verify with retries, aggregate."""

from __future__ import annotations

from contentlab.pipeline.aggregate import aggregate
from contentlab.pipeline.extraction import extract_blocks
from contentlab.pipeline.options import adjust_options_for_retry, coerce_value, parse_options
from contentlab.pipeline.retry import RenderFn, RetryPolicy, VerifyFn, process_block

__all__ = [
    "RenderFn",
    "RetryPolicy",
    "VerifyFn",
    "adjust_options_for_retry",
    "aggregate",
    "coerce_value",
    "extract_blocks",
    "parse_options",
    "process_block",
]
