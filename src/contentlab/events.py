"""Event model used for progress streaming and replay.

A pipeline run produces a sequence of events. Events are recorded to JSONL so the run can be
replayed later (e.g., to inspect why a directive needed three attempts).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """High-level event categories."""

    SYSTEM = "system"
    COLLABORATOR = "collaborator"
    ERROR = "error"


class ContentType(str, Enum):
    """Semantic types within event streams."""

    MESSAGE = "message"
    BLOCKS_EXTRACTED = "blocks_extracted"
    ATTEMPT = "attempt"
    ITEM_DONE = "item_done"
    RUN_CANCELLED = "run_cancelled"
    REPORT_DONE = "report_done"


class RunEvent(BaseModel):
    """A single event in a run."""

    run_id: str
    seq: int = Field(ge=1)
    ts: datetime = Field(default_factory=datetime.utcnow)

    event_type: EventType
    content_type: ContentType

    data: str | dict | list | None = None
    metadata: dict[str, str | int | float | bool | None] = Field(default_factory=dict)
