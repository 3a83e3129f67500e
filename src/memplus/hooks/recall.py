"""Recall hook: build a context block to prepend before the agent runs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from memplus.memory.text import collapse_whitespace, truncate

if TYPE_CHECKING:
    from memplus.config import MemplusConfig
    from memplus.memory.store import ProfileStore, SearchHit

logger = logging.getLogger(__name__)

CONTEXT_TAG = "<memplus-context>"
CONTEXT_END_TAG = "</memplus-context>"
MIN_PROMPT_CHARS = 5
SNIPPET_MAX_CHARS = 180


@dataclass
class TurnCounter:
    """Per-session turn count, owned by the caller."""

    turn: int = 0

    def advance(self) -> int:
        self.turn += 1
        return self.turn


def format_snippets(hits: list[SearchHit], limit: int) -> list[str]:
    snippets = []
    for hit in hits[:limit]:
        if not hit.text:
            continue
        loc = f"{hit.path}:{hit.start_line}-{hit.end_line}" if hit.start_line else hit.path
        text = truncate(collapse_whitespace(hit.text), SNIPPET_MAX_CHARS)
        snippets.append(f"- {loc} ({hit.score:.2f}) - {text}")
    return snippets


class RecallHandler:
    def __init__(self, store: ProfileStore, config: MemplusConfig) -> None:
        self.store = store
        self.config = config

    def wants_profile(self, counter: TurnCounter) -> bool:
        frequency = self.config.profile_frequency
        return frequency > 0 and counter.turn % frequency == 0

    async def handle(self, prompt: str, counter: TurnCounter) -> str | None:
        """Return the context block for *prompt*, or None when there is nothing to add."""
        if not prompt or len(prompt) < MIN_PROMPT_CHARS or CONTEXT_TAG in prompt:
            return None

        counter.advance()
        include_profile = self.wants_profile(counter)

        hits = self.store.search_daily(
            prompt,
            limit=self.config.max_recall_results,
            min_score=self.config.min_recall_score,
        )
        snippets = format_snippets(hits, self.config.max_recall_results)
        profile_block = self.store.profile_excerpt() if include_profile else ""

        if not snippets and not profile_block:
            return None

        parts = [CONTEXT_TAG, "Recalled context (use only when relevant):"]
        if profile_block:
            parts.append("## Profile")
            parts.append(profile_block)
        if snippets:
            parts.append("## Relevant Memories")
            parts.extend(snippets)
        parts.append(CONTEXT_END_TAG)

        if self.config.debug:
            logger.debug(
                "Recall: %d snippets, profile=%s (turn %d)",
                len(snippets),
                bool(profile_block),
                counter.turn,
            )
        return "\n".join(parts)
