"""Per-attempt, per-item and per-run result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

from contentlab.models.blocks import BlockKind

# Closed set of option value types. bool must be matched before int/float.
OptionValue = Union[bool, int, float, str]
RenderOptions = dict[str, OptionValue]


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of one generate (and optionally verify) attempt."""

    attempt: int
    artifact: str | None = None
    generation_succeeded: bool = False
    # None: verification not requested, or the verifier itself failed
    verification_passed: bool | None = None
    verification_errors: tuple[str, ...] = ()
    options: RenderOptions = field(default_factory=dict)
    verification_checks: dict[str, bool] = field(default_factory=dict)
    error: str | None = None

    def accepted(self, *, verify: bool) -> bool:
        if not self.generation_succeeded:
            return False
        if not verify:
            return True
        return self.verification_passed is True


class PipelineItemResult(BaseModel):
    """Final result for one directive."""

    model_config = ConfigDict(frozen=True)

    kind: BlockKind
    raw_directive: str
    source_position: int

    artifact: str | None = None
    succeeded: bool = False
    attempts_made: int = Field(ge=1)
    verified: bool | None = None
    verification_errors: list[str] = Field(default_factory=list)
    # Individual check outcomes reported by the verifier, e.g. {"bounds": False}
    verification_checks: dict[str, bool] = Field(default_factory=dict)
    error: str | None = None
    options: dict[str, OptionValue] = Field(default_factory=dict)


class PipelineReport(BaseModel):
    """Aggregated outcome of a pipeline run, items ordered by source position."""

    model_config = ConfigDict(frozen=True)

    items: list[PipelineItemResult] = Field(default_factory=list)
    total_found: int = 0
    total_succeeded: int = 0
    # Set when the run stopped early; blocks past the last item were never attempted
    cancelled: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_failed(self) -> int:
        return sum(1 for i in self.items if not i.succeeded)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_skipped(self) -> int:
        return self.total_found - len(self.items)
