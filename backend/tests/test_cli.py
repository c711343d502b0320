"""CLI tests against a stubbed HTTP layer."""

from __future__ import annotations

from typing import Any

import pytest
import requests
from typer.testing import CliRunner

from cv_screener.cli.main import app

from helpers import FakeResponse

runner = CliRunner()


@pytest.fixture
def calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    recorded: list[dict[str, Any]] = []
    replies = {
        ("POST", "/api/chat"): FakeResponse(
            payload={
                "success": True,
                "response": "Ana García knows Python.",
                "sources": [{"display_name": "Ana García", "document_id": 1, "relevance": 0.93}],
            }
        ),
        ("GET", "/api/index"): FakeResponse(payload={"name": "Simple Vector Store", "document_count": 12}),
        ("GET", "/api/chat/status"): FakeResponse(payload={"status": "OK", "llm": True}),
        ("DELETE", "/api/index"): FakeResponse(payload={"status": "ok"}),
        ("POST", "/api/index/rebuild"): FakeResponse(status_code=502, payload={"detail": "Index rebuild failed"}),
    }

    def fake_request(method: str, url: str, **kwargs: Any) -> FakeResponse:
        recorded.append({"method": method, "url": url, **kwargs})
        path = url.split("3001", 1)[-1] if "3001" in url else url.split(".test", 1)[-1]
        return replies[(method, path)]

    monkeypatch.setattr(requests, "request", fake_request)
    monkeypatch.delenv("CVS_HOST", raising=False)
    return recorded


def test_ask_prints_answer_and_sources(calls) -> None:
    result = runner.invoke(app, ["ask", "Who knows python?"])
    assert result.exit_code == 0
    assert "Ana García knows Python." in result.output
    assert "Ana García (#1, relevance 0.93)" in result.output
    assert calls[0]["url"] == "http://127.0.0.1:3001/api/chat"
    assert calls[0]["json"] == {"message": "Who knows python?"}


def test_status_honours_host_env(calls, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CVS_HOST", "http://screener.test/")
    result = runner.invoke(app, ["status"])
    assert result.exit_code == 0
    assert '"document_count": 12' in result.output
    assert '"llm": true' in result.output
    assert [call["url"] for call in calls] == [
        "http://screener.test/api/index",
        "http://screener.test/api/chat/status",
    ]


def test_clear_requires_confirmation(calls) -> None:
    aborted = runner.invoke(app, ["clear"], input="n\n")
    assert aborted.exit_code != 0
    assert calls == []

    confirmed = runner.invoke(app, ["clear", "--yes"])
    assert confirmed.exit_code == 0
    assert calls[0]["method"] == "DELETE"


def test_failed_request_exits_nonzero(calls) -> None:
    result = runner.invoke(app, ["rebuild"])
    assert result.exit_code == 1
    assert "502" in result.output
