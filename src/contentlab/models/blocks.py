"""Visual directive models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class BlockKind(str, Enum):
    """Directive kinds understood by the ContentLab page API.

    The value doubles as the tag name, e.g. ``[number-line ...]``.
    """

    NUMBER_LINE = "number-line"
    GRAPH = "graph"


class VisualBlock(BaseModel):
    """A directive found in a source document."""

    model_config = ConfigDict(frozen=True)

    kind: BlockKind
    raw_directive: str
    options_text: str = ""
    body_text: str = ""
    source_position: int = Field(ge=0)
