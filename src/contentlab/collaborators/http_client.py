"""HTTP client for the ContentLab browser automation server.

The stock automation server only exposes page plumbing (``/health``,
``/api/init``, ``/api/load``, ``/api/screenshot`` ...). Rendering and verifying
directives needs two more routes, which the server must provide on top of
those; each one calls the page's own generator or verifier and returns its
result as JSON:

``POST /api/generate``
    Request ``{"type": "number-line" | "graph", "commands": str,
    "options": {str: bool | int | float | str}}``. Response
    ``{"success": bool, "svg": str, "error": str | null}``; ``svg`` is
    required when ``success`` is true.

``POST /api/verify``
    Request ``{"type": ..., "artifact": "<svg ...>", "rules": {...}}``.
    Response ``{"success": bool, "results": {"passed": bool,
    "errors": [str], "checks": {str: bool}}, "error": str | null}``.
    ``success`` false means the checks could not run at all.

A non-2xx status, a timeout or a body that is not a JSON object raises
:class:`CollaboratorError`. One server drives one page, so callers must not
issue overlapping render/verify calls against it.
"""

from __future__ import annotations

import contextlib
import time
from typing import Any, Iterator, Mapping

import httpx

from contentlab.collaborators.protocol import (
    CollaboratorError,
    RenderResult,
    VerifyResult,
    effective_rules,
)
from contentlab.config import Settings
from contentlab.logging import get_logger
from contentlab.models.blocks import BlockKind
from contentlab.models.results import RenderOptions

logger = get_logger(__name__)


class ContentLabClient:
    """Renderer and verifier backed by the automation server.

    Every call is bounded by ``timeout_s``; a timeout, a transport error or a
    non-2xx status raises :class:`CollaboratorError`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout_s),
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> ContentLabClient:
        return cls(settings.server_url, timeout_s=settings.attempt_timeout_s)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ContentLabClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # Browser lifecycle

    def health(self) -> dict[str, Any]:
        """Return the server health payload (``status``, ``browser``, ``page``)."""

        return self._request("GET", "/health")

    def init_browser(self) -> None:
        """Launch (or relaunch) the remote browser and wait for the page API."""

        self._request("POST", "/api/init")

    def cleanup(self) -> None:
        """Close the remote browser."""

        self._request("POST", "/api/cleanup")

    @contextlib.contextmanager
    def session(self) -> Iterator[ContentLabClient]:
        """Keep a remote browser open for the duration of the block."""

        self.init_browser()
        try:
            yield self
        finally:
            try:
                self.cleanup()
            except CollaboratorError:
                logger.warning("Remote browser cleanup failed", exc_info=True)

    # Collaborator interface

    def render(self, kind: BlockKind, body_text: str, options: RenderOptions) -> RenderResult:
        """Generate an SVG for a directive body."""

        data = self._request(
            "POST",
            "/api/generate",
            json={"type": kind.value, "commands": body_text, "options": dict(options)},
        )
        if not data.get("success"):
            return RenderResult(success=False, error=data.get("error") or "generation failed")
        svg = data.get("svg")
        if not isinstance(svg, str):
            raise CollaboratorError("generate response missing svg payload")
        return RenderResult(success=True, artifact=svg)

    def verify(
        self,
        kind: BlockKind,
        artifact: str,
        rules: Mapping[str, Any] | None = None,
    ) -> VerifyResult:
        """Load the artifact into the page, screenshot it and run the visual checks."""

        data = self._request(
            "POST",
            "/api/verify",
            json={"type": kind.value, "artifact": artifact, "rules": effective_rules(kind, rules)},
        )
        if not data.get("success"):
            return VerifyResult(success=False, error=data.get("error") or "verification unavailable")

        results = data.get("results")
        if not isinstance(results, dict):
            raise CollaboratorError("verify response missing results object")
        errors = [str(e) for e in results.get("errors") or []]
        checks = {str(k): bool(v) for k, v in (results.get("checks") or {}).items()}
        return VerifyResult(
            success=True,
            passed=bool(results.get("passed")) and not errors,
            errors=errors,
            checks=checks,
        )

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        started = time.monotonic()
        try:
            resp = self._client.request(method, path, **kwargs)
            resp.raise_for_status()
            data = resp.json()
        except httpx.TimeoutException as e:
            raise CollaboratorError(f"{method} {path} timed out") from e
        except httpx.HTTPStatusError as e:
            raise CollaboratorError(
                f"{method} {path} failed with status {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise CollaboratorError(f"{method} {path} failed: {e}") from e
        except ValueError as e:
            raise CollaboratorError(f"{method} {path} returned invalid JSON") from e

        if not isinstance(data, dict):
            raise CollaboratorError(f"{method} {path} response not a JSON object")

        logger.debug(
            "Automation server call ok",
            extra={
                "method": method,
                "path": path,
                "status_code": resp.status_code,
                "latency_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return data
