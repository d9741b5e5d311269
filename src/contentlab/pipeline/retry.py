"""Generate-and-verify retry loop for a single directive.

Per block the loop moves ``Pending -> Attempting -> Accepted | Exhausted``.
An attempt is accepted when generation succeeds and, if verification was
requested, the verifier passes the artifact. Rejected attempts are retried
until the budget runs out; the most recent artifact is always kept, even when
it was never accepted.

Only ``render`` and ``verify_fn`` have side effects. A :class:`CollaboratorError`
raised by either is not caught here and ends the run.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from contentlab.collaborators.protocol import RenderResult, VerifyResult
from contentlab.config import Settings
from contentlab.logging import get_logger
from contentlab.models.blocks import BlockKind, VisualBlock
from contentlab.models.results import AttemptResult, PipelineItemResult, RenderOptions
from contentlab.pipeline.options import adjust_options_for_retry, parse_options

logger = get_logger(__name__)

RenderFn = Callable[[BlockKind, str, RenderOptions], RenderResult]
VerifyFn = Callable[[BlockKind, str, Mapping[str, Any] | None], VerifyResult]
AttemptCallback = Callable[[VisualBlock, AttemptResult], None]


@dataclass(frozen=True)
class RetryPolicy:
    """How hard to try for each block."""

    verify: bool = False
    max_retries: int = 3
    retry_delay_s: float = 0.0
    adjust_options: bool = True
    verification_rules: Mapping[str, Any] | None = None

    @property
    def attempts(self) -> int:
        # 0 or negative still means one attempt
        return max(1, self.max_retries)

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> RetryPolicy:
        values: dict[str, Any] = {
            "verify": settings.verify,
            "max_retries": settings.max_retries,
            "retry_delay_s": settings.retry_delay_s,
            "adjust_options": settings.adjust_options_on_retry,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _run_attempt(
    attempt: int,
    block: VisualBlock,
    options: RenderOptions,
    policy: RetryPolicy,
    render: RenderFn,
    verify_fn: VerifyFn | None,
) -> AttemptResult:
    rendered = render(block.kind, block.body_text, options)
    if not rendered.success or rendered.artifact is None:
        return AttemptResult(
            attempt=attempt,
            options=options,
            error=f"Generation failed: {rendered.error or 'no artifact returned'}",
        )

    artifact = rendered.artifact
    if not policy.verify or verify_fn is None:
        return AttemptResult(attempt=attempt, artifact=artifact, generation_succeeded=True, options=options)

    checked = verify_fn(block.kind, artifact, policy.verification_rules)
    if not checked.success:
        # The verifier could not run: not verified, which is not the same as failed
        return AttemptResult(
            attempt=attempt,
            artifact=artifact,
            generation_succeeded=True,
            options=options,
            error=f"Verification unavailable: {checked.error or 'unknown error'}",
        )
    if checked.passed:
        return AttemptResult(
            attempt=attempt,
            artifact=artifact,
            generation_succeeded=True,
            verification_passed=True,
            verification_checks=dict(checked.checks),
            options=options,
        )
    errors = tuple(checked.errors)
    return AttemptResult(
        attempt=attempt,
        artifact=artifact,
        generation_succeeded=True,
        verification_passed=False,
        verification_errors=errors,
        verification_checks=dict(checked.checks),
        options=options,
        error="Verification failed: " + (", ".join(errors) or "no details"),
    )


def _options_for_attempt(
    block: VisualBlock, policy: RetryPolicy, error_history: list[tuple[str, ...]]
) -> RenderOptions:
    options = parse_options(block.options_text)
    if policy.adjust_options:
        for errors in error_history:
            options = adjust_options_for_retry(options, errors)
    return options


def process_block(
    block: VisualBlock,
    policy: RetryPolicy,
    render: RenderFn,
    verify_fn: VerifyFn | None = None,
    *,
    sleep: Callable[[float], None] = time.sleep,
    on_attempt: AttemptCallback | None = None,
) -> PipelineItemResult:
    """Render (and optionally verify) one block, retrying up to the policy bound.

    Args:
        block: The directive to render.
        policy: Retry/verification policy.
        render: Generation collaborator.
        verify_fn: Verification collaborator, required when ``policy.verify``.
        sleep: Called with ``policy.retry_delay_s`` between attempts.
        on_attempt: Progress callback invoked after every attempt.

    Returns:
        The final, immutable result for the block.
    """

    if policy.verify and verify_fn is None:
        raise ValueError("verification requested but no verify_fn given")

    error_history: list[tuple[str, ...]] = []
    last: AttemptResult | None = None
    last_generated: AttemptResult | None = None

    for attempt in range(1, policy.attempts + 1):
        if attempt > 1 and policy.retry_delay_s > 0:
            sleep(policy.retry_delay_s)

        options = _options_for_attempt(block, policy, error_history)
        result = _run_attempt(attempt, block, options, policy, render, verify_fn)
        last = result
        if result.generation_succeeded:
            last_generated = result
        if on_attempt is not None:
            on_attempt(block, result)

        if result.accepted(verify=policy.verify):
            logger.info(
                "Block accepted",
                extra={"kind": block.kind.value, "position": block.source_position, "attempt": attempt},
            )
            return _to_item(block, policy, result, result)

        if result.verification_errors:
            error_history.append(result.verification_errors)
        logger.info(
            "Attempt rejected",
            extra={
                "kind": block.kind.value,
                "position": block.source_position,
                "attempt": attempt,
                "max_attempts": policy.attempts,
                "reason": result.error,
            },
        )

    assert last is not None
    logger.warning(
        "Block exhausted retries",
        extra={"kind": block.kind.value, "position": block.source_position, "attempts": last.attempt},
    )
    # Best effort: report the most recent artifact together with its own verdict
    return _to_item(block, policy, last_generated or last, last)


def _to_item(
    block: VisualBlock,
    policy: RetryPolicy,
    deciding: AttemptResult,
    final: AttemptResult,
) -> PipelineItemResult:
    succeeded = final.accepted(verify=policy.verify)
    verified = deciding.verification_passed if policy.verify else None
    return PipelineItemResult(
        kind=block.kind,
        raw_directive=block.raw_directive,
        source_position=block.source_position,
        artifact=deciding.artifact,
        succeeded=succeeded,
        attempts_made=final.attempt,
        verified=verified,
        verification_errors=list(deciding.verification_errors) if verified is False else [],
        verification_checks=dict(deciding.verification_checks) if policy.verify else {},
        error=None if succeeded else final.error,
        options=dict(deciding.options),
    )
