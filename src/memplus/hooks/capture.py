"""Capture hook: turn a finished exchange into daily summaries and profile facts.

Flow per turn:
1. Skip turns that carry our own recall context or are too short.
2. Ask the LLM extractor; fall back to the rule-based summary when it
   fails or yields no summary.
3. Append the summary to today's log.
4. Merge profile facts into profile.md, one merge per profile at a time.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from memplus.hooks.recall import CONTEXT_TAG
from memplus.memory.extraction import ConversationTurn, ExtractionResult
from memplus.memory.summary import rule_based_extraction

if TYPE_CHECKING:
    from pathlib import Path

    from memplus.config import MemplusConfig
    from memplus.memory.extraction import LLMExtractor
    from memplus.memory.profile import ProfileDocument
    from memplus.memory.store import ProfileStore

logger = logging.getLogger(__name__)


@dataclass
class CaptureOutcome:
    """What a capture wrote."""

    summary: list[str]
    provenance: str
    daily_path: Path
    profile: ProfileDocument | None = None


def extract_text_blocks(content: object) -> list[str]:
    """Text parts of a message body (plain string or a list of typed blocks)."""
    if isinstance(content, str):
        return [content]
    if not isinstance(content, list):
        return []
    texts = []
    for block in content:
        if isinstance(block, dict) and block.get("type") == "text":
            text = block.get("text")
            if isinstance(text, str):
                texts.append(text)
    return texts


def flatten_messages(messages: list) -> list[tuple[str, str]]:
    """Reduce host messages to ``(role, text)`` pairs for user/assistant only."""
    out = []
    for msg in messages:
        if not isinstance(msg, dict):
            continue
        role = msg.get("role")
        if role not in ("user", "assistant"):
            continue
        joined = "\n".join(extract_text_blocks(msg.get("content"))).strip()
        if joined:
            out.append((role, joined))
    return out


def pick_last_turn(messages: list[tuple[str, str]]) -> ConversationTurn | None:
    """The last assistant reply paired with the user message before it."""
    for i in range(len(messages) - 1, -1, -1):
        role, text = messages[i]
        if role != "assistant":
            continue
        for prior_role, prior_text in reversed(messages[:i]):
            if prior_role == "user":
                return ConversationTurn(user=prior_text, assistant=text)
        break
    return None


class CaptureHandler:
    """Extract, log and merge one conversation turn at a time."""

    def __init__(
        self,
        store: ProfileStore,
        config: MemplusConfig,
        extractor: LLMExtractor | None = None,
    ) -> None:
        self.store = store
        self.config = config
        self.extractor = extractor
        self._profile_locks: dict[str, asyncio.Lock] = {}

    def _get_profile_lock(self) -> asyncio.Lock:
        key = str(self.store.profile_path)
        if key not in self._profile_locks:
            self._profile_locks[key] = asyncio.Lock()
        return self._profile_locks[key]

    def should_capture(self, turn: ConversationTurn) -> bool:
        if CONTEXT_TAG in turn.user or CONTEXT_TAG in turn.assistant:
            return False
        return len(turn.user.strip()) >= self.config.min_capture_chars

    async def extract(self, turn: ConversationTurn) -> ExtractionResult:
        result: ExtractionResult | None = None
        if self.extractor is not None:
            try:
                result = await self.extractor.extract(turn)
            except Exception as e:
                logger.warning("LLM extraction raised, using rules: %s", e)
                result = None

        if result is None or not result.summary:
            fallback = rule_based_extraction(turn.user, self.config.summary_max_bullets)
            if result is not None and result.has_profile_facts:
                # Keep LLM profile facts even when its summary came back empty.
                fallback.profile = result.profile
            result = fallback
        return result

    async def handle(self, turn: ConversationTurn) -> CaptureOutcome | None:
        if not self.should_capture(turn):
            if self.config.debug:
                logger.debug("Skipping capture (context tag or short message)")
            return None

        result = await self.extract(turn)
        if not result.summary:
            logger.debug("Nothing worth capturing")
            return None

        daily_path = self.store.append_daily_summary(result.summary)
        if self.config.debug:
            logger.debug("Captured %d bullets (%s): %s", len(result.summary),
                         result.provenance, result.summary)

        profile = None
        if result.has_profile_facts:
            async with self._get_profile_lock():
                profile = await asyncio.to_thread(self.store.update_profile, result.profile)

        return CaptureOutcome(
            summary=result.summary,
            provenance=result.provenance,
            daily_path=daily_path,
            profile=profile,
        )

    async def handle_messages(self, messages: list) -> CaptureOutcome | None:
        """Entry point for hosts that hand over their raw message list."""
        turn = pick_last_turn(flatten_messages(messages))
        if turn is None:
            return None
        return await self.handle(turn)
