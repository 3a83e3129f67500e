"""Anthropic API engine for fact extraction."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from memplus.engines.base import AgentResponse

logger = logging.getLogger(__name__)


@dataclass
class AnthropicAPIEngine:
    """Direct Anthropic API via the `anthropic` SDK. Single-shot, no tools."""

    model: str = "claude-haiku-4-5"
    max_tokens: int = 1024
    timeout: float = 20.0
    api_key: str | None = None
    temperature: float = 0.2

    def __post_init__(self) -> None:
        try:
            import anthropic

            self._client = anthropic.Anthropic(api_key=self.api_key, timeout=self.timeout)
        except ImportError:
            raise ImportError(
                "anthropic package required. Install with: uv pip install 'memplus[api]'"
            )

    @property
    def name(self) -> str:
        return "anthropic_api"

    async def send(self, message: str, *, system_prompt: str | None = None) -> AgentResponse:
        kwargs: dict = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": message}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        try:
            response = await asyncio.to_thread(self._client.messages.create, **kwargs)
        except Exception as e:
            logger.error("Anthropic API error: %s", e)
            return AgentResponse(text=f"[Anthropic API error: {e}]", error=True)

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        return AgentResponse(text=text, model=response.model)

    async def health_check(self) -> bool:
        try:
            response = await asyncio.to_thread(
                self._client.messages.create,
                model=self.model,
                max_tokens=10,
                messages=[{"role": "user", "content": "ping"}],
            )
            return bool(response.content)
        except Exception:
            return False
