"""
tests/test_assistant.py — Generative-text pass-through
=======================================================
"""

from __future__ import annotations

import httpx
import pytest

from conftest import run_async
from skypanel.errors import UpstreamFailure
from skypanel.services.assistant import AssistantClient


def _client(handler) -> AssistantClient:
    return AssistantClient("gem-key", "gemini-2.5-pro", transport=httpx.MockTransport(handler))


def _answer(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class TestAssistantClient:
    def test_returns_answer_text(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_answer("ERLC is a Roblox game."))

        assert run_async(_client(handler).ask("What is ERLC?")) == "ERLC is a Roblox game."
        req = seen[0]
        assert req.url.path.endswith("/models/gemini-2.5-pro:generateContent")
        assert req.headers["x-goog-api-key"] == "gem-key"
        assert b"User question: What is ERLC?" in req.content

    def test_rate_limited(self):
        client = _client(lambda r: httpx.Response(429, json={}))
        with pytest.raises(UpstreamFailure, match="Too many requests"):
            run_async(client.ask("hi"))

    def test_rejected_key(self):
        client = _client(lambda r: httpx.Response(403, json={}))
        with pytest.raises(UpstreamFailure, match="API key"):
            run_async(client.ask("hi"))

    def test_unexpected_payload(self):
        client = _client(lambda r: httpx.Response(200, json={"candidates": []}))
        with pytest.raises(UpstreamFailure):
            run_async(client.ask("hi"))


class TestAssistantEndpoint:
    def test_answers_when_configured(self, client):
        from skypanel.api.deps import get_assistant

        client.app.dependency_overrides[get_assistant] = lambda: _client(
            lambda r: httpx.Response(200, json=_answer("Hello!"))
        )
        resp = client.post("/api/ai-chat", json={"question": "hi"})
        assert resp.status_code == 200
        assert resp.json() == {"answer": "Hello!"}

    def test_question_required(self, client):
        from skypanel.api.deps import get_assistant

        client.app.dependency_overrides[get_assistant] = lambda: _client(
            lambda r: httpx.Response(200, json=_answer("unused"))
        )
        resp = client.post("/api/ai-chat", json={})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Question is required."

    def test_upstream_failure_is_502(self, client):
        from skypanel.api.deps import get_assistant

        client.app.dependency_overrides[get_assistant] = lambda: _client(
            lambda r: httpx.Response(429, json={})
        )
        resp = client.post("/api/ai-chat", json={"question": "hi"})
        assert resp.status_code == 502
