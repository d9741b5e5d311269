"""Recording utilities for pipeline runs."""

from __future__ import annotations

from contentlab.recording.run_store import RunStore, iter_events, run_dir

__all__ = ["RunStore", "iter_events", "run_dir"]
