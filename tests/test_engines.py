"""Tests for the Anthropic extraction engine (mocked SDK client)."""

from dataclasses import fields
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from memplus.engines.anthropic_api import AnthropicAPIEngine
from memplus.engines.base import AgentResponse, Engine


def _message(text: str, model: str = "claude-haiku-4-5"):
    return SimpleNamespace(
        content=[SimpleNamespace(type="text", text=text)],
        model=model,
    )


class TestAnthropicAPIEngine:
    @pytest.fixture
    def engine(self) -> AnthropicAPIEngine:
        engine = AnthropicAPIEngine(api_key="sk-test")
        engine._client = MagicMock()
        return engine

    def test_name(self, engine: AnthropicAPIEngine):
        assert engine.name == "anthropic_api"

    def test_satisfies_protocol(self, engine: AnthropicAPIEngine):
        assert isinstance(engine, Engine)

    @pytest.mark.asyncio
    async def test_send_success(self, engine: AnthropicAPIEngine):
        engine._client.messages.create.return_value = _message('{"summary": []}')

        response = await engine.send("Conversation: ...", system_prompt="Extract facts")

        assert response.text == '{"summary": []}'
        assert response.model == "claude-haiku-4-5"
        assert response.error is False
        kwargs = engine._client.messages.create.call_args.kwargs
        assert kwargs["system"] == "Extract facts"
        assert kwargs["messages"] == [{"role": "user", "content": "Conversation: ..."}]
        assert kwargs["temperature"] == 0.2

    @pytest.mark.asyncio
    async def test_send_without_system_prompt(self, engine: AnthropicAPIEngine):
        engine._client.messages.create.return_value = _message("ok")
        await engine.send("hi")
        assert "system" not in engine._client.messages.create.call_args.kwargs

    @pytest.mark.asyncio
    async def test_send_error(self, engine: AnthropicAPIEngine):
        engine._client.messages.create.side_effect = RuntimeError("timeout")

        response = await engine.send("hi")

        assert response.error is True
        assert "timeout" in response.text

    @pytest.mark.asyncio
    async def test_health_check(self, engine: AnthropicAPIEngine):
        engine._client.messages.create.return_value = _message("pong")
        assert await engine.health_check() is True

        engine._client.messages.create.side_effect = RuntimeError("down")
        assert await engine.health_check() is False


class TestAgentResponse:
    def test_fields(self):
        assert [f.name for f in fields(AgentResponse)] == ["text", "model", "error"]
        assert AgentResponse(text="x") == AgentResponse(text="x", model=None, error=False)
