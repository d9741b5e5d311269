"""On-disk store for a pipeline run.

Layout of one run directory::

    run_<run_id>/
        events.jsonl          append-only event log, used for replay
        report.json           the final PipelineReport
        successful/
            <kind>-<index>.svg  accepted artifacts, index = position in report
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from contentlab.events import RunEvent
from contentlab.models.results import PipelineReport


@dataclass(frozen=True)
class RunStore:
    """Files belonging to one run."""

    run_id: str
    root: Path

    @classmethod
    def create(cls, base: Path) -> RunStore:
        """Allocate a fresh run directory below ``base``."""

        base.mkdir(parents=True, exist_ok=True)
        # Time-based for readability, random suffix against collisions
        ts = datetime.utcnow().strftime("%Y%m%dT%H%M%SZ")
        run_id = f"{ts}_{uuid.uuid4().hex[:8]}"
        root = run_dir(base, run_id)
        root.mkdir(parents=True, exist_ok=True)
        return cls(run_id=run_id, root=root)

    @property
    def events_path(self) -> Path:
        return self.root / "events.jsonl"

    @property
    def report_path(self) -> Path:
        return self.root / "report.json"

    @property
    def successful_dir(self) -> Path:
        return self.root / "successful"

    def append_event(self, event: RunEvent) -> None:
        """Append an event."""

        line = json.dumps(event.model_dump(mode="json"), ensure_ascii=False)
        with self.events_path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def write_report(self, report: PipelineReport) -> list[Path]:
        """Persist the report and every accepted artifact.

        Returns:
            Paths of the artifact files written (the report itself excluded).
        """

        self.report_path.write_text(report.model_dump_json(indent=2), encoding="utf-8")

        written: list[Path] = []
        for index, item in enumerate(report.items):
            if not item.succeeded or item.artifact is None:
                continue
            self.successful_dir.mkdir(parents=True, exist_ok=True)
            path = self.successful_dir / f"{item.kind.value}-{index}.svg"
            path.write_text(item.artifact, encoding="utf-8")
            written.append(path)
        return written


def run_dir(base: Path, run_id: str) -> Path:
    return base / f"run_{run_id}"


def iter_events(path: Path) -> list[RunEvent]:
    """Load all events from a JSONL file."""

    events: list[RunEvent] = []
    if not path.exists():
        return events
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line:
            continue
        events.append(RunEvent.model_validate_json(line))
    return events
