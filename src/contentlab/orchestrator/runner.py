"""End-to-end pipeline runner.

Wires extraction, the per-block retry loop and aggregation together, records
every step as a :class:`RunEvent` and persists the report and accepted
artifacts under the run directory.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, Iterator

from contentlab.collaborators.protocol import CollaboratorError
from contentlab.config import Settings
from contentlab.events import ContentType, EventType, RunEvent
from contentlab.logging import get_logger, log_exception, run_context, set_step
from contentlab.models.blocks import VisualBlock
from contentlab.models.results import AttemptResult, PipelineItemResult, PipelineReport
from contentlab.pipeline.aggregate import aggregate
from contentlab.pipeline.extraction import extract_blocks
from contentlab.pipeline.retry import RenderFn, RetryPolicy, VerifyFn, process_block
from contentlab.recording.run_store import RunStore, iter_events, run_dir

logger = get_logger(__name__)


def run_pipeline(
    *,
    document: str,
    settings: Settings,
    render: RenderFn,
    verify_fn: VerifyFn | None = None,
    policy: RetryPolicy | None = None,
    should_cancel: Callable[[], bool] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> PipelineReport:
    """Run the pipeline and return its report.

    This is a convenience wrapper around :func:`run_pipeline_stream`.

    Raises:
        CollaboratorError: When a collaborator could not complete a call.
    """

    report: PipelineReport | None = None
    for ev in run_pipeline_stream(
        document=document,
        settings=settings,
        render=render,
        verify_fn=verify_fn,
        policy=policy,
        should_cancel=should_cancel,
        sleep=sleep,
    ):
        if ev.content_type == ContentType.REPORT_DONE and isinstance(ev.data, dict):
            report = PipelineReport.model_validate(ev.data["report"])
    if report is None:
        raise RuntimeError("run completed without producing a report")
    return report


def run_pipeline_stream(
    *,
    document: str,
    settings: Settings,
    render: RenderFn,
    verify_fn: VerifyFn | None = None,
    policy: RetryPolicy | None = None,
    should_cancel: Callable[[], bool] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[RunEvent]:
    """Run the pipeline and yield events as it progresses.

    Blocks are processed one at a time in source order; the render/verify
    backend is a single page and cannot take overlapping calls. ``should_cancel``
    is polled between blocks; a cancelled run still counts every extracted
    block in ``total_found`` but only carries items for the processed ones,
    and is flagged ``cancelled``.
    """

    policy = policy or RetryPolicy.from_settings(settings)
    store = RunStore.create(settings.artifacts_dir)
    seq = 0

    def emit(
        event_type: EventType,
        content_type: ContentType,
        data: str | dict | list | None = None,
        *,
        metadata: dict[str, str | int | float | bool | None] | None = None,
    ) -> RunEvent:
        nonlocal seq
        seq += 1
        ev = RunEvent(
            run_id=store.run_id,
            seq=seq,
            event_type=event_type,
            content_type=content_type,
            data=data,
            metadata=dict(metadata or {}),
        )
        store.append_event(ev)
        return ev

    with run_context(run_id=store.run_id, step="extract"):
        logger.info("Run started", extra={"document_len": len(document), "artifacts": str(store.root)})
        yield emit(
            EventType.SYSTEM,
            ContentType.MESSAGE,
            "run_started",
            metadata={"verify": policy.verify, "max_attempts": policy.attempts},
        )

        blocks = extract_blocks(document)
        logger.info("Blocks extracted", extra={"count": len(blocks)})
        yield emit(
            EventType.SYSTEM,
            ContentType.BLOCKS_EXTRACTED,
            data=[{"kind": b.kind.value, "position": b.source_position} for b in blocks],
        )

        pending: list[RunEvent] = []

        def on_attempt(block: VisualBlock, result: AttemptResult) -> None:
            pending.append(
                emit(
                    EventType.COLLABORATOR,
                    ContentType.ATTEMPT,
                    data={
                        "position": block.source_position,
                        "attempt": result.attempt,
                        "generation_succeeded": result.generation_succeeded,
                        "verification_passed": result.verification_passed,
                        "verification_errors": list(result.verification_errors),
                        "verification_checks": dict(result.verification_checks),
                        "error": result.error,
                    },
                    metadata={"kind": block.kind.value},
                )
            )

        results: list[PipelineItemResult] = []
        cancelled = False
        for index, block in enumerate(blocks):
            if should_cancel is not None and should_cancel():
                logger.warning("Run cancelled", extra={"processed": index, "total": len(blocks)})
                yield emit(
                    EventType.SYSTEM,
                    ContentType.RUN_CANCELLED,
                    data={"processed": index, "total": len(blocks)},
                )
                cancelled = True
                break

            set_step(f"block:{index + 1}")
            try:
                item = process_block(block, policy, render, verify_fn, sleep=sleep, on_attempt=on_attempt)
            except CollaboratorError as e:
                log_exception(logger, "Collaborator failed, aborting run", position=block.source_position)
                yield from pending
                yield emit(EventType.ERROR, ContentType.MESSAGE, str(e), metadata={"position": block.source_position})
                raise

            yield from pending
            pending.clear()
            results.append(item)
            yield emit(
                EventType.SYSTEM,
                ContentType.ITEM_DONE,
                data={
                    "index": index,
                    "position": item.source_position,
                    "succeeded": item.succeeded,
                    "attempts_made": item.attempts_made,
                    "verified": item.verified,
                },
                metadata={"kind": item.kind.value},
            )

        set_step("aggregate")
        report = aggregate(blocks, results, cancelled=cancelled)

        artifact_paths: list[Path] = []
        if settings.save_results:
            artifact_paths = store.write_report(report)
            logger.info("Results saved", extra={"report_path": str(store.report_path)})

        logger.info(
            "Run complete",
            extra={"succeeded": report.total_succeeded, "failed": report.total_failed, "total": report.total_found},
        )
        yield emit(
            EventType.SYSTEM,
            ContentType.REPORT_DONE,
            data={
                "report": report.model_dump(mode="json"),
                "report_path": str(store.report_path) if settings.save_results else None,
                "artifact_paths": [str(p) for p in artifact_paths],
                "events_path": str(store.events_path),
                "run_root": str(store.root),
            },
        )


def replay_run(*, run_id: str, artifacts_dir: Path) -> Iterator[RunEvent]:
    """Replay a run from recorded events."""

    yield from iter_events(run_dir(artifacts_dir, run_id) / "events.jsonl")
