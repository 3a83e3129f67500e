"""Rule-based summary, used when no LLM extraction is available.

Each rule looks at the raw user text and contributes at most one bullet.
Rules are plain data (``SummaryRule``) so callers can pass their own table.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from memplus.memory.extraction import ExtractionResult, normalize_extraction
from memplus.memory.text import normalize_fact, truncate

PREFERENCE_MAX_CHARS = 120
SENTENCE_MAX_CHARS = 180
MAX_TOOLS = 6

TECH_KEYWORDS: tuple[str, ...] = (
    "python",
    "typescript",
    "javascript",
    "node",
    "react",
    "next",
    "tailwind",
    "postgres",
    "sqlite",
    "docker",
    "kubernetes",
    "aws",
    "gcp",
    "azure",
    "openai",
    "openrouter",
    "llm",
    "api",
)

SCHOOL_WORK_KEYWORDS = (
    "school",
    "class",
    "classes",
    "course",
    "deadline",
    "exam",
    "ubc",
    "assignment",
    "prof",
    "professor",
    "work",
    "job",
    "intern",
    "internship",
)
PROJECT_KEYWORDS = ("project", "building", "working on", "developing")
HABIT_KEYWORDS = ("every day", "daily", "weekly", "morning", "night", "routine", "schedule")

_PREFERENCE_RE = re.compile(
    r"\bI\s+(?:really\s+)?(?:prefer|like|love|hate|don't like|dont like|want|need)\s+([^.!?\n]+)",
    re.IGNORECASE,
)
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_FIRST_SENTENCE_RE = re.compile(r"^[^.!?\n]{20,200}[.!?]?")


@dataclass(frozen=True)
class SummaryRule:
    label: str
    find: Callable[[str], str | None]

    def apply(self, text: str) -> str | None:
        found = self.find(text)
        return f"{self.label}: {found}" if found else None


def split_sentences(text: str) -> list[str]:
    return _SENTENCE_SPLIT_RE.split(text)


def match_preference(text: str) -> str | None:
    match = _PREFERENCE_RE.search(text)
    if not match:
        return None
    return truncate(match.group(1).strip(), PREFERENCE_MAX_CHARS)


def sentence_with(keywords: Sequence[str]) -> Callable[[str], str | None]:
    """Build a finder returning the first sentence mentioning any keyword."""
    pattern = re.compile(
        r"\b(?:" + "|".join(re.escape(k) for k in keywords) + r")\b", re.IGNORECASE
    )

    def find(text: str) -> str | None:
        for sentence in split_sentences(text):
            if pattern.search(sentence):
                return truncate(sentence.strip(), SENTENCE_MAX_CHARS)
        return None

    return find


def match_tools(text: str, vocabulary: Sequence[str] = TECH_KEYWORDS) -> str | None:
    lower = text.lower()
    found = [kw for kw in vocabulary if kw in lower]
    if not found:
        return None
    return ", ".join(found[:MAX_TOOLS])


def first_sentence(text: str) -> str | None:
    trimmed = text.strip()
    if not trimmed:
        return None
    match = _FIRST_SENTENCE_RE.match(trimmed)
    if match:
        return match.group(0).strip()
    return truncate(trimmed, SENTENCE_MAX_CHARS)


DEFAULT_RULES: tuple[SummaryRule, ...] = (
    SummaryRule("Preference", match_preference),
    SummaryRule("School/Work", sentence_with(SCHOOL_WORK_KEYWORDS)),
    SummaryRule("Project", sentence_with(PROJECT_KEYWORDS)),
    SummaryRule("Tools/Stack", match_tools),
    SummaryRule("Habit", sentence_with(HABIT_KEYWORDS)),
)


def _unique_by_norm(bullets: list[str]) -> list[str]:
    seen: set[str] = set()
    out = []
    for bullet in bullets:
        norm = normalize_fact(bullet)
        if not norm or norm in seen:
            continue
        seen.add(norm)
        out.append(bullet)
    return out


def build_rule_based_summary(
    text: str, max_bullets: int, rules: Sequence[SummaryRule] = DEFAULT_RULES
) -> list[str]:
    """Summarize *text* into at most *max_bullets* labelled bullets."""
    bullets: list[str] = []
    for rule in rules:
        bullet = rule.apply(text)
        if bullet:
            bullets.append(bullet)

    if not bullets:
        first = first_sentence(text)
        if first:
            bullets.append(f"Summary: {truncate(first, SENTENCE_MAX_CHARS)}")

    return _unique_by_norm(bullets)[: max(0, max_bullets)]


def rule_based_extraction(
    text: str, max_bullets: int, rules: Sequence[SummaryRule] = DEFAULT_RULES
) -> ExtractionResult:
    """Wrap the rule-based summary as a sanitized ExtractionResult."""
    bullets = build_rule_based_summary(text, max_bullets, rules)
    return normalize_extraction({"summary": bullets}, max_bullets, provenance="rules")
