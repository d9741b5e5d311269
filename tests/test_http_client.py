"""Tests for the automation server client."""

from __future__ import annotations

import json

import httpx
import pytest

from contentlab.collaborators.http_client import ContentLabClient
from contentlab.collaborators.protocol import DEFAULT_VERIFICATION_RULES, CollaboratorError
from contentlab.models.blocks import BlockKind


def make_client(handler) -> ContentLabClient:
    return ContentLabClient("http://automation.test", transport=httpx.MockTransport(handler))


def test_render_success_sends_directive() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "svg": "<svg/>"})

    result = make_client(handler).render(BlockKind.GRAPH, "f(x) = x", {"xMin": -3, "grid": True})

    assert result.success is True
    assert result.artifact == "<svg/>"
    assert seen["path"] == "/api/generate"
    assert seen["body"] == {"type": "graph", "commands": "f(x) = x", "options": {"xMin": -3, "grid": True}}


def test_render_failure_is_returned_not_raised() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "error": "Unknown command: plot"})

    result = make_client(handler).render(BlockKind.NUMBER_LINE, "plot(1)", {})

    assert result.success is False
    assert result.artifact is None
    assert result.error == "Unknown command: plot"


def test_verify_merges_default_rules_and_reports_errors() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "success": True,
                "results": {
                    "passed": False,
                    "errors": ["Content cutoff at edges detected"],
                    "checks": {"bounds": False, "colors": True},
                },
            },
        )

    result = make_client(handler).verify(BlockKind.NUMBER_LINE, "<svg/>", {"checkColors": False})

    assert result.success is True
    assert result.passed is False
    assert result.errors == ["Content cutoff at edges detected"]
    assert result.checks == {"bounds": False, "colors": True}

    assert seen["path"] == "/api/verify"
    assert seen["body"]["type"] == "number-line"
    assert seen["body"]["artifact"] == "<svg/>"
    rules = seen["body"]["rules"]
    assert rules["checkColors"] is False
    assert rules["checkBounds"] is True
    assert set(rules) == set(DEFAULT_VERIFICATION_RULES[BlockKind.NUMBER_LINE])


def test_verify_mechanism_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "error": "Unknown content type"})

    result = make_client(handler).verify(BlockKind.GRAPH, "<svg/>")

    assert result.success is False
    assert result.error == "Unknown content type"


def test_server_error_raises_collaborator_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "Cannot read properties of null"})

    with pytest.raises(CollaboratorError, match="status 500"):
        make_client(handler).render(BlockKind.GRAPH, "x", {})


def test_timeout_raises_collaborator_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow page", request=request)

    with pytest.raises(CollaboratorError, match="timed out"):
        make_client(handler).verify(BlockKind.GRAPH, "<svg/>")


def test_missing_svg_payload_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True})

    with pytest.raises(CollaboratorError):
        make_client(handler).render(BlockKind.GRAPH, "x", {})


def test_session_opens_and_closes_browser() -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        if request.url.path == "/health":
            return httpx.Response(200, json={"status": "ok", "browser": True, "page": True})
        return httpx.Response(200, json={"success": True})

    with make_client(handler) as client:
        with client.session():
            assert client.health()["browser"] is True

    assert paths == ["/api/init", "/health", "/api/cleanup"]
