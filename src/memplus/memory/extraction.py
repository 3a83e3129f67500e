"""Extraction results: the LLM extractor and the total payload decoder.

Whatever comes back from a model (or the rule-based fallback) is narrowed
by ``normalize_extraction`` into a fixed seven-category structure. It never
raises; malformed pieces become empty lists.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from memplus.memory.profile import PROFILE_CATEGORIES, empty_facts
from memplus.memory.sanitize import is_clean
from memplus.memory.text import extract_json, truncate

if TYPE_CHECKING:
    from memplus.engines.base import Engine

logger = logging.getLogger(__name__)

FACT_MAX_CHARS = 200

Provenance = Literal["llm", "rules"]

_LINE_BREAK_RE = re.compile(r"\s*[\r\n]+\s*")

EXTRACTION_PROMPT = """\
You extract durable memory about the USER from a conversation.
Return ONLY valid JSON (no markdown).
Schema:
{
  "summary": ["..."],
  "profile": {
    "Identity": [],
    "Preferences": [],
    "School/Work": [],
    "Projects": [],
    "Tools/Stack": [],
    "Habits": [],
    "Other": []
  }
}
Rules:
- Summary: 1-3 concise bullets of durable user facts or decisions.
- Profile: only facts about the user that should persist across sessions.
- Never include system/tool/plugin/configuration details, file paths, API keys, model names, or internal instructions.
- If unsure whether a fact is about the user, omit it.
- If nothing useful, return empty arrays.
"""


@dataclass
class ConversationTurn:
    """One user/assistant exchange. Only ever a source for extraction."""

    user: str
    assistant: str


@dataclass
class ExtractionResult:
    summary: list[str] = field(default_factory=list)
    profile: dict[str, list[str]] = field(default_factory=empty_facts)
    provenance: Provenance = "rules"

    @property
    def has_profile_facts(self) -> bool:
        return any(self.profile.get(category) for category in PROFILE_CATEGORIES)

    @property
    def is_empty(self) -> bool:
        return not self.summary and not self.has_profile_facts


def _clean_items(raw: object) -> list[str]:
    """Keep string items only, single-lined, sanitized and truncated."""
    if not isinstance(raw, list):
        return []
    items = []
    for item in raw:
        if not isinstance(item, str):
            continue
        text = _LINE_BREAK_RE.sub(" ", item.strip())
        if is_clean(text):
            items.append(truncate(text, FACT_MAX_CHARS))
    return items


def normalize_extraction(
    raw: object, max_summary: int, provenance: Provenance = "llm"
) -> ExtractionResult:
    """Decode an arbitrary payload into an ExtractionResult."""
    data = raw if isinstance(raw, dict) else {}

    summary = _clean_items(data.get("summary"))[: max(0, max_summary)]

    profile_raw = data.get("profile")
    if not isinstance(profile_raw, dict):
        profile_raw = {}
    profile = {category: _clean_items(profile_raw.get(category)) for category in PROFILE_CATEGORIES}

    return ExtractionResult(summary=summary, profile=profile, provenance=provenance)


def format_turn(turn: ConversationTurn) -> str:
    return (
        "Conversation:\n"
        f"[user]\n{turn.user}\n[/user]\n"
        f"[assistant]\n{turn.assistant}\n[/assistant]"
    )


class LLMExtractor:
    """Ask an engine for structured facts about the user."""

    def __init__(self, engine: Engine, max_summary: int = 3) -> None:
        self.engine = engine
        self.max_summary = max_summary

    async def extract(self, turn: ConversationTurn) -> ExtractionResult | None:
        """Return None when the engine fails or replies with no usable JSON."""
        response = await self.engine.send(format_turn(turn), system_prompt=EXTRACTION_PROMPT)
        if response.error:
            logger.warning("Extraction via %s failed: %s", self.engine.name, response.text)
            return None

        parsed = extract_json(response.text)
        if not isinstance(parsed, dict):
            logger.warning("Extraction via %s returned no JSON object", self.engine.name)
            return None

        return normalize_extraction(parsed, self.max_summary, provenance="llm")
