"""CLI entrypoints for the ContentLab pipeline."""

from __future__ import annotations

import contextlib
from pathlib import Path

import typer

from contentlab.collaborators.http_client import ContentLabClient
from contentlab.collaborators.protocol import CollaboratorError
from contentlab.config import load_settings
from contentlab.logging import configure_logging, get_logger
from contentlab.orchestrator.runner import run_pipeline
from contentlab.pipeline.retry import RetryPolicy

app = typer.Typer(add_completion=False, help="Render and verify the visual directives of a document")
logger = get_logger(__name__)


@app.command()
def run(
    document: Path = typer.Argument(..., exists=True, dir_okay=False, help="UTF-8 text document"),
    output: Path = typer.Option(Path("report.json"), "--output", "-o", help="Output report JSON file"),
    verify: bool | None = typer.Option(
        None, "--verify/--no-verify", help="Visually verify each artifact (default: CONTENTLAB_VERIFY)"
    ),
    max_retries: int | None = typer.Option(
        None, "--max-retries", min=1, help="Attempts per directive (overrides CONTENTLAB_MAX_RETRIES)"
    ),
    server_url: str | None = typer.Option(
        None, "--server-url", help="Automation server URL (overrides CONTENTLAB_SERVER_URL)"
    ),
    artifacts_dir: Path | None = typer.Option(
        None, "--artifacts-dir", help="Artifacts directory (overrides CONTENTLAB_ARTIFACTS_DIR)"
    ),
    session: bool = typer.Option(
        False, "--session/--no-session", help="Launch the remote browser before the run and close it after"
    ),
) -> None:
    """Run the pipeline over a document and write the report."""

    settings = load_settings()
    if server_url is not None:
        settings.server_url = server_url
    if artifacts_dir is not None:
        settings.artifacts_dir = artifacts_dir

    configure_logging(settings.log_level)
    logger.info("CLI run requested", extra={"document": str(document)})

    # Unset flags keep the settings value
    policy = RetryPolicy.from_settings(settings, verify=verify, max_retries=max_retries)
    text = document.read_text(encoding="utf-8")

    with ContentLabClient.from_settings(settings) as client:
        try:
            with client.session() if session else contextlib.nullcontext(client):
                report = run_pipeline(
                    document=text,
                    settings=settings,
                    render=client.render,
                    verify_fn=client.verify,
                    policy=policy,
                )
        except CollaboratorError as e:
            typer.echo(f"error: {e}", err=True)
            raise typer.Exit(code=1) from e

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    typer.echo(f"{report.total_succeeded}/{report.total_found} directives rendered -> {output}")


@app.command()
def health(
    server_url: str | None = typer.Option(None, "--server-url", help="Automation server URL"),
) -> None:
    """Check that the automation server is up."""

    settings = load_settings()
    if server_url is not None:
        settings.server_url = server_url

    with ContentLabClient.from_settings(settings) as client:
        try:
            data = client.health()
        except CollaboratorError as e:
            typer.echo(f"error: {e}", err=True)
            raise typer.Exit(code=1) from e
    typer.echo(" ".join(f"{k}={v}" for k, v in data.items()))


if __name__ == "__main__":
    app()
