"""Engine protocol and shared types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass
class AgentResponse:
    """Response from an extraction engine."""

    text: str
    model: str | None = None
    error: bool = False


@runtime_checkable
class Engine(Protocol):
    """Protocol that all extraction backends must implement."""

    @property
    def name(self) -> str: ...

    async def send(self, message: str, *, system_prompt: str | None = None) -> AgentResponse:
        """Send a message and return the reply. Failures set ``error``."""
        ...

    async def health_check(self) -> bool:
        """Check if the engine is available. Returns True if healthy."""
        ...
