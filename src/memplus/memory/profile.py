"""Profile document: parse, merge and render ``profile.md``.

Format::

    # Profile
    ## Identity
    - <fact>

    ## Preferences
    ...

Sections under headings we do not recognize are kept verbatim as opaque
blocks and written back after the known categories.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from memplus.memory.dedupe import merge_facts
from memplus.memory.text import collapse_whitespace

PROFILE_CATEGORIES: tuple[str, ...] = (
    "Identity",
    "Preferences",
    "School/Work",
    "Projects",
    "Tools/Stack",
    "Habits",
    "Other",
)

PROFILE_TITLE = "# Profile"

_LINE_SPLIT_RE = re.compile(r"\r?\n")
_HEADING_RE = re.compile(r"^##\s+(.*)$")
_ITEM_PREFIX = "- "


def empty_facts() -> dict[str, list[str]]:
    return {category: [] for category in PROFILE_CATEGORIES}


@dataclass
class ProfileDocument:
    """All seven categories (always present) plus preserved unknown blocks."""

    facts: dict[str, list[str]] = field(default_factory=empty_facts)
    unknown_blocks: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        facts = empty_facts()
        for category in PROFILE_CATEGORIES:
            facts[category] = list(self.facts.get(category, []))
        self.facts = facts

    def fact_count(self) -> int:
        return sum(len(items) for items in self.facts.values())


def parse_profile(content: str | None) -> ProfileDocument:
    """Parse profile markdown. Never raises; foreign structure is preserved."""
    doc = ProfileDocument()
    current: str | None = None
    unknown: list[str] | None = None

    def flush() -> None:
        nonlocal unknown
        if unknown:
            # Trailing blank lines are the separator render() adds back.
            while unknown and not unknown[-1].strip():
                unknown.pop()
            doc.unknown_blocks.append("\n".join(unknown))
        unknown = None

    for line in _LINE_SPLIT_RE.split(content or ""):
        heading = _HEADING_RE.match(line)
        if heading:
            flush()
            name = heading.group(1).strip()
            if name in PROFILE_CATEGORIES:
                current = name
            else:
                current = None
                unknown = [line]
            continue

        if unknown is not None:
            unknown.append(line)
            continue

        stripped = line.strip()
        if current and stripped.startswith(_ITEM_PREFIX):
            text = stripped[len(_ITEM_PREFIX) :].strip()
            if text:
                doc.facts[current].append(text)

    flush()
    return doc


def render_profile(doc: ProfileDocument) -> str:
    """Render deterministically; ``render(parse(render(d))) == render(d)``."""
    lines = [PROFILE_TITLE]
    for category in PROFILE_CATEGORIES:
        lines.append(f"## {category}")
        lines.extend(f"{_ITEM_PREFIX}{item}" for item in doc.facts.get(category, []))
        lines.append("")

    for block in doc.unknown_blocks:
        lines.append(block)
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def merge_profile(doc: ProfileDocument, new_facts: Mapping[str, list[str]]) -> ProfileDocument:
    """Merge *new_facts* into every category of *doc*, returning a new document.

    Incoming facts are flattened to one trimmed line each; blank ones are dropped.
    """
    merged = {}
    for category in PROFILE_CATEGORIES:
        incoming = [collapse_whitespace(fact) for fact in new_facts.get(category, [])]
        merged[category] = merge_facts(
            doc.facts.get(category, []), [fact for fact in incoming if fact]
        )
    return ProfileDocument(facts=merged, unknown_blocks=list(doc.unknown_blocks))
