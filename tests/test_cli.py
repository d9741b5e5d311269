"""Tests for the CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import contentlab.cli as cli
from contentlab.collaborators.protocol import CollaboratorError, RenderResult, VerifyResult


class FakeClient:
    """Replaces ContentLabClient inside the CLI module."""

    instances: list["FakeClient"] = []
    broken = False

    def __init__(self) -> None:
        self.events: list[str] = []
        FakeClient.instances.append(self)

    @classmethod
    def from_settings(cls, settings) -> "FakeClient":
        inst = cls()
        inst.server_url = settings.server_url
        return inst

    def __enter__(self) -> "FakeClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.events.append("close")

    def session(self):
        import contextlib

        @contextlib.contextmanager
        def _session():
            self.events.append("init")
            yield self
            self.events.append("cleanup")

        return _session()

    def health(self) -> dict:
        if self.broken:
            raise CollaboratorError("GET /health failed: connection refused")
        return {"status": "ok", "browser": False}

    def render(self, kind, body_text, options) -> RenderResult:
        if self.broken:
            raise CollaboratorError("POST /api/generate failed: connection refused")
        return RenderResult(success=True, artifact=f"<svg>{body_text}</svg>")

    def verify(self, kind, artifact, rules=None) -> VerifyResult:
        return VerifyResult(success=True, passed=True)


@pytest.fixture(autouse=True)
def fake_client(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    FakeClient.instances = []
    FakeClient.broken = False
    monkeypatch.setattr(cli, "ContentLabClient", FakeClient)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CONTENTLAB_ARTIFACTS_DIR", str(tmp_path / "artifacts"))
    monkeypatch.setenv("CONTENTLAB_RETRY_DELAY_S", "0")
    return FakeClient


def test_run_writes_report(tmp_path: Path) -> None:
    doc = tmp_path / "lesson.txt"
    doc.write_text("[graph] f(x) = x [/graph] and [number-line] 0,1 [/number-line]", encoding="utf-8")
    out = tmp_path / "out" / "report.json"

    result = CliRunner().invoke(cli.app, ["run", str(doc), "-o", str(out), "--verify", "--session"])

    assert result.exit_code == 0, result.output
    assert "2/2 directives rendered" in result.output
    report = json.loads(out.read_text(encoding="utf-8"))
    assert [i["kind"] for i in report["items"]] == ["graph", "number-line"]
    assert report["items"][0]["verified"] is True
    assert FakeClient.instances[0].events == ["init", "cleanup", "close"]


@pytest.mark.parametrize(
    ("env", "flags", "expected"),
    [
        ("true", [], True),
        ("true", ["--no-verify"], None),
        ("false", ["--verify"], True),
        ("false", [], None),
    ],
)
def test_run_verify_flag_overrides_settings(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, env: str, flags: list[str], expected: bool | None
) -> None:
    """It should let --verify/--no-verify override CONTENTLAB_VERIFY either way."""

    monkeypatch.setenv("CONTENTLAB_VERIFY", env)
    doc = tmp_path / "lesson.txt"
    doc.write_text("[graph] f(x) = x [/graph]", encoding="utf-8")
    out = tmp_path / "report.json"

    result = CliRunner().invoke(cli.app, ["run", str(doc), "-o", str(out), *flags])

    assert result.exit_code == 0, result.output
    report = json.loads(out.read_text(encoding="utf-8"))
    assert report["items"][0]["verified"] is expected


def test_run_server_url_override(tmp_path: Path) -> None:
    doc = tmp_path / "lesson.txt"
    doc.write_text("nothing to draw", encoding="utf-8")

    result = CliRunner().invoke(cli.app, ["run", str(doc), "--server-url", "http://page:3999"])

    assert result.exit_code == 0, result.output
    assert FakeClient.instances[0].server_url == "http://page:3999"


def test_run_collaborator_fault_exits_nonzero(tmp_path: Path) -> None:
    FakeClient.broken = True
    doc = tmp_path / "lesson.txt"
    doc.write_text("[graph] x [/graph]", encoding="utf-8")

    result = CliRunner().invoke(cli.app, ["run", str(doc)])

    assert result.exit_code == 1
    assert not (tmp_path / "report.json").exists()


def test_health() -> None:
    result = CliRunner().invoke(cli.app, ["health"])

    assert result.exit_code == 0
    assert "status=ok" in result.output
