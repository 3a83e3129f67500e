"""Profile and daily-summary files under ``<workspace>/memory``.

Layout:
    memory/
    ├── profile.md            # Categorized, deduplicated user facts
    ├── 2026-02-18.md         # Daily summaries (append-only)
    └── .versions/            # Timestamped profile backups (10 kept)

The store does no locking. Callers must serialize read-merge-write per
profile path; see ``memplus.hooks.capture``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from memplus.memory.profile import ProfileDocument, merge_profile, parse_profile, render_profile

logger = logging.getLogger(__name__)

PROFILE_FILENAME = "profile.md"
MAX_PROFILE_VERSIONS = 10
PROFILE_EXCERPT_LIMIT = 15

_DAILY_NAME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_HEADING_RE = re.compile(r"^##\s+(.*)$")


@dataclass
class SearchHit:
    """A daily-log line matching a recall query."""

    path: str
    start_line: int
    end_line: int
    text: str
    score: float


class ProfileStore:
    """Read/write access to the profile and daily summaries."""

    def __init__(self, root: Path) -> None:
        self.root = root

    @classmethod
    def for_workspace(cls, workspace: Path) -> ProfileStore:
        return cls(workspace / "memory")

    @property
    def profile_path(self) -> Path:
        return self.root / PROFILE_FILENAME

    # ── Profile ──────────────────────────────────────────────

    def read_profile(self) -> ProfileDocument:
        """Load the profile, or an empty document if there is none yet."""
        if not self.profile_path.exists():
            return ProfileDocument()
        return parse_profile(self.profile_path.read_text(encoding="utf-8"))

    def update_profile(self, new_facts: Mapping[str, list[str]]) -> ProfileDocument:
        """Merge *new_facts* into profile.md and write it back (with backup)."""
        self.root.mkdir(parents=True, exist_ok=True)
        before = self.read_profile()
        merged = merge_profile(before, new_facts)
        content = render_profile(merged)

        if self.profile_path.exists():
            if self.profile_path.read_text(encoding="utf-8") == content:
                logger.debug("Profile unchanged, skipping write")
                return merged
            self._backup(self.profile_path)

        self.profile_path.write_text(content, encoding="utf-8")
        logger.info(
            "Updated %s (%d facts, was %d)",
            self.profile_path.name,
            merged.fact_count(),
            before.fact_count(),
        )
        return merged

    def profile_excerpt(self, limit: int = PROFILE_EXCERPT_LIMIT) -> str:
        """First *limit* fact lines found under ``##`` headings."""
        if not self.profile_path.exists():
            return ""
        try:
            content = self.profile_path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to read profile: %s", e)
            return ""

        output: list[str] = []
        in_section = False
        for line in content.splitlines():
            if _HEADING_RE.match(line):
                in_section = True
                continue
            stripped = line.strip()
            if in_section and stripped.startswith("- "):
                output.append(stripped)
                if len(output) >= limit:
                    break
        return "\n".join(output)

    def _backup(self, path: Path) -> None:
        """Backup to .versions/, keep at most MAX_PROFILE_VERSIONS copies."""
        versions_dir = self.root / ".versions"
        versions_dir.mkdir(exist_ok=True)
        ts = datetime.now().strftime("%Y%m%dT%H%M%S%f")
        (versions_dir / f"{path.stem}-{ts}.md").write_text(
            path.read_text(encoding="utf-8"), encoding="utf-8"
        )
        old = sorted(versions_dir.glob(f"{path.stem}-*.md"))
        for f in old[:-MAX_PROFILE_VERSIONS]:
            f.unlink()

    # ── Daily summaries ──────────────────────────────────────

    def daily_path(self, day: str | None = None) -> Path:
        d = day or datetime.now().strftime("%Y-%m-%d")
        return self.root / f"{d}.md"

    def append_daily_summary(self, bullets: list[str], now: datetime | None = None) -> Path:
        """Append one batch of summary bullets to the day's log.

        A new file starts with ``# YYYY-MM-DD``; each bullet becomes
        ``- HH:MM <bullet>`` and the batch ends with a blank line.
        """
        now = now or datetime.now()
        day = now.strftime("%Y-%m-%d")
        path = self.daily_path(day)
        self.root.mkdir(parents=True, exist_ok=True)

        lines: list[str] = []
        if not path.exists():
            lines.append(f"# {day}")
        stamp = now.strftime("%H:%M")
        lines.extend(f"- {stamp} {bullet}" for bullet in bullets)
        lines.append("")

        with path.open("a", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")
        return path

    def read_daily(self, day: str | None = None) -> str:
        path = self.daily_path(day)
        if path.exists():
            return path.read_text(encoding="utf-8")
        return ""

    def daily_files(self) -> list[Path]:
        """Daily logs, newest first."""
        if not self.root.is_dir():
            return []
        files = [p for p in self.root.glob("*.md") if _DAILY_NAME_RE.match(p.stem)]
        return sorted(files, reverse=True)

    def search_daily(self, query: str, limit: int = 5, min_score: float = 0.0) -> list[SearchHit]:
        """Case-insensitive token search over daily summary lines.

        Score is the share of query tokens (longer than two characters)
        present in the line.
        """
        tokens = {t for t in re.findall(r"\w+", query.lower()) if len(t) > 2}
        if not tokens or limit <= 0:
            return []

        hits: list[SearchHit] = []
        for path in self.daily_files():
            try:
                lines = path.read_text(encoding="utf-8").splitlines()
            except OSError as e:
                logger.warning("Failed to read %s: %s", path, e)
                continue
            for lineno, line in enumerate(lines, start=1):
                if not line.startswith("- "):
                    continue
                words = set(re.findall(r"\w+", line.lower()))
                score = len(tokens & words) / len(tokens)
                if score > 0 and score >= min_score:
                    rel = path.relative_to(self.root.parent)
                    hits.append(SearchHit(str(rel), lineno, lineno, line[2:].strip(), score))

        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[:limit]
