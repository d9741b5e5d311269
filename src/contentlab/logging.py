"""Logging setup.

Records are tagged with the active run id and pipeline step (``block:3``,
``aggregate`` ...), and any ``extra={...}`` fields passed at the call site are
appended as ``key=value`` pairs, so CLI and API output from one run can be
grepped together.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
from typing import Any, Iterator

from rich.logging import RichHandler

_FORMAT = "run=%(run_id)s step=%(step)s %(name)s: %(message)s%(fields)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_run_id: contextvars.ContextVar[str] = contextvars.ContextVar("contentlab_run_id", default="-")
_step: contextvars.ContextVar[str] = contextvars.ContextVar("contentlab_step", default="-")

# Attributes every LogRecord has; anything else arrived through ``extra``
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "run_id",
    "step",
    "fields",
}


class _ContextFilter(logging.Filter):
    """Stamp run context and ``extra`` fields onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.run_id = _run_id.get()  # type: ignore[attr-defined]
        record.step = _step.get()  # type: ignore[attr-defined]
        extras = [f"{k}={v}" for k, v in record.__dict__.items() if k not in _RECORD_ATTRS]
        record.fields = (" | " + " ".join(extras)) if extras else ""  # type: ignore[attr-defined]
        return True


@contextlib.contextmanager
def run_context(*, run_id: str, step: str | None = None) -> Iterator[None]:
    """Bind ``run_id`` (and optionally ``step``) for the duration of the block."""

    run_token = _run_id.set(run_id)
    step_token = _step.set(step if step is not None else _step.get())
    try:
        yield
    finally:
        _step.reset(step_token)
        _run_id.reset(run_token)


def set_step(step: str) -> None:
    _step.set(step)


def _install(handler: logging.Handler) -> None:
    if not any(isinstance(f, _ContextFilter) for f in handler.filters):
        handler.addFilter(_ContextFilter())
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))


def configure_logging(level: str = "INFO") -> None:
    """Route the root logger through a single rich handler.

    Safe to call more than once (the CLI and the API factory both do); an
    existing rich handler is reused rather than stacked.

    Args:
        level: Logging level name.
    """

    root = logging.getLogger()
    root.setLevel(level)

    handlers = [h for h in root.handlers if isinstance(h, RichHandler)]
    if not handlers:
        handler = RichHandler(rich_tracebacks=True, show_time=True, show_level=True)
        root.addHandler(handler)
        handlers = [handler]
    for h in handlers:
        _install(h)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_exception(logger: logging.Logger, msg: str, **context: Any) -> None:
    """Log the active exception with ``context`` as structured fields."""

    logger.exception(msg, extra=context)
