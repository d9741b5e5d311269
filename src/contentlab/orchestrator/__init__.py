"""Pipeline orchestration."""

from __future__ import annotations

from contentlab.orchestrator.runner import replay_run, run_pipeline, run_pipeline_stream

__all__ = ["replay_run", "run_pipeline", "run_pipeline_stream"]
