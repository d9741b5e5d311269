"""FastAPI app exposing the pipeline over HTTP."""

from __future__ import annotations

import threading
from typing import Callable

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from contentlab.collaborators.http_client import ContentLabClient
from contentlab.collaborators.protocol import CollaboratorError
from contentlab.config import Settings, load_settings
from contentlab.events import RunEvent
from contentlab.logging import configure_logging, get_logger
from contentlab.models.results import PipelineReport
from contentlab.orchestrator.runner import replay_run, run_pipeline
from contentlab.pipeline.retry import RetryPolicy


class PipelineRequest(BaseModel):
    """Pipeline run request. Unset fields fall back to settings."""

    document: str
    verify: bool | None = None
    max_retries: int | None = Field(default=None, ge=1, le=20)


def create_app(
    settings: Settings | None = None,
    client_factory: Callable[[Settings], ContentLabClient] = ContentLabClient.from_settings,
) -> FastAPI:
    """Create FastAPI app."""

    settings = settings or load_settings()
    configure_logging(settings.log_level)
    logger = get_logger(__name__)

    app = FastAPI(title="ContentLab Pipeline", version="0.1.0")
    # One automation server drives one browser page
    page_lock = threading.Lock()

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/pipeline/run")
    def pipeline_run(req: PipelineRequest) -> PipelineReport:
        logger.info("API run requested", extra={"document_len": len(req.document)})
        policy = RetryPolicy.from_settings(settings, verify=req.verify, max_retries=req.max_retries)
        with page_lock:
            client = client_factory(settings)
            try:
                return run_pipeline(
                    document=req.document,
                    settings=settings,
                    render=client.render,
                    verify_fn=client.verify,
                    policy=policy,
                )
            except CollaboratorError as e:
                raise HTTPException(status_code=502, detail=str(e)) from e
            finally:
                client.close()

    @app.get("/runs/{run_id}/events")
    def runs_events(run_id: str) -> list[RunEvent]:
        logger.info("API events requested", extra={"requested_run": run_id})
        events = list(replay_run(run_id=run_id, artifacts_dir=settings.artifacts_dir))
        if not events:
            raise HTTPException(status_code=404, detail="run not found")
        return events

    return app
