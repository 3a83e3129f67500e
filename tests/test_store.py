"""Tests for profile and daily-summary files."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from memplus.memory.profile import ProfileDocument, render_profile
from memplus.memory.store import MAX_PROFILE_VERSIONS, ProfileStore


@pytest.fixture
def store(tmp_path: Path) -> ProfileStore:
    return ProfileStore.for_workspace(tmp_path)


class TestReadProfile:
    def test_missing_file_gives_empty_document(self, store: ProfileStore):
        doc = store.read_profile()
        assert doc.fact_count() == 0
        assert not store.root.exists()

    def test_reads_existing(self, store: ProfileStore):
        store.root.mkdir(parents=True)
        store.profile_path.write_text("## Identity\n- Ada\n", encoding="utf-8")
        assert store.read_profile().facts["Identity"] == ["Ada"]


class TestUpdateProfile:
    def test_creates_file(self, store: ProfileStore):
        store.update_profile({"Tools/Stack": ["uses React"]})
        content = store.profile_path.read_text(encoding="utf-8")
        assert content.startswith("# Profile\n")
        assert "## Tools/Stack\n- uses React\n" in content

    def test_superset_replaces_subset(self, store: ProfileStore):
        store.update_profile({"Tools/Stack": ["uses React"]})
        merged = store.update_profile({"Tools/Stack": ["uses react and tailwind"]})
        assert merged.facts["Tools/Stack"] == ["uses react and tailwind"]
        assert store.read_profile().facts["Tools/Stack"] == ["uses react and tailwind"]

    def test_preserves_unknown_sections(self, store: ProfileStore):
        store.root.mkdir(parents=True)
        store.profile_path.write_text(
            "# Profile\n## Identity\n- Ada\n\n## Hand-written\nkeep me\n", encoding="utf-8"
        )
        store.update_profile({"Habits": ["swims weekly"]})
        content = store.profile_path.read_text(encoding="utf-8")
        assert content.endswith("## Hand-written\nkeep me\n")
        assert "- swims weekly" in content
        assert "- Ada" in content

    def test_heading_inside_fact_cannot_add_section(self, store: ProfileStore):
        store.update_profile({"Other": ["likes tea\n## Secrets\n- leaked"]})
        reread = store.read_profile()
        assert reread.facts["Other"] == ["likes tea ## Secrets - leaked"]
        assert reread.unknown_blocks == []

    def test_backup_before_overwrite(self, store: ProfileStore):
        store.update_profile({"Identity": ["Ada"]})
        store.update_profile({"Habits": ["swims weekly"]})
        versions = list((store.root / ".versions").glob("profile-*.md"))
        assert len(versions) == 1
        assert "- Ada" in versions[0].read_text(encoding="utf-8")

    def test_unchanged_profile_not_rewritten(self, store: ProfileStore):
        store.update_profile({"Identity": ["Ada"]})
        store.update_profile({"Identity": ["ada"]})
        assert not (store.root / ".versions").exists()

    def test_backup_cleanup(self, store: ProfileStore):
        store.update_profile({"Identity": ["Ada"]})
        versions_dir = store.root / ".versions"
        versions_dir.mkdir()
        for i in range(15):
            (versions_dir / f"profile-2026{i:04d}T000000.md").write_text(f"v{i}", encoding="utf-8")
        store.update_profile({"Habits": ["swims weekly"]})
        assert len(list(versions_dir.glob("profile-*.md"))) == MAX_PROFILE_VERSIONS


class TestProfileExcerpt:
    def test_no_profile(self, store: ProfileStore):
        assert store.profile_excerpt() == ""

    def test_limit(self, store: ProfileStore):
        facts = {"Other": [f"fact {i}" for i in range(20)]}
        store.root.mkdir(parents=True)
        store.profile_path.write_text(render_profile(ProfileDocument(facts=facts)), encoding="utf-8")
        excerpt = store.profile_excerpt()
        assert excerpt.splitlines()[0] == "- fact 0"
        assert len(excerpt.splitlines()) == 15


class TestDailySummary:
    def test_new_file_gets_header(self, store: ProfileStore):
        now = datetime(2026, 2, 18, 9, 5)
        path = store.append_daily_summary(["Preference: tea", "Project: Foo"], now=now)
        assert path.name == "2026-02-18.md"
        assert path.read_text(encoding="utf-8") == (
            "# 2026-02-18\n- 09:05 Preference: tea\n- 09:05 Project: Foo\n\n"
        )

    def test_append_batch_without_second_header(self, store: ProfileStore):
        store.append_daily_summary(["one"], now=datetime(2026, 2, 18, 9, 0))
        store.append_daily_summary(["two"], now=datetime(2026, 2, 18, 14, 30))
        assert store.read_daily("2026-02-18") == (
            "# 2026-02-18\n- 09:00 one\n\n- 14:30 two\n\n"
        )

    def test_read_missing_day(self, store: ProfileStore):
        assert store.read_daily("2020-01-01") == ""


class TestSearchDaily:
    def test_finds_matching_lines_newest_first(self, store: ProfileStore):
        store.append_daily_summary(["Project: building Foo in Rust"], now=datetime(2026, 2, 17, 10, 0))
        store.append_daily_summary(["Project: Foo release planned"], now=datetime(2026, 2, 18, 10, 0))
        hits = store.search_daily("Foo", limit=5)
        assert [h.path for h in hits] == ["memory/2026-02-18.md", "memory/2026-02-17.md"]
        assert hits[0].start_line == 2
        assert hits[0].text == "10:00 Project: Foo release planned"
        assert hits[0].score == 1.0

    def test_min_score_and_limit(self, store: ProfileStore):
        store.append_daily_summary(
            ["likes green tea", "likes coffee", "tea ceremony"], now=datetime(2026, 2, 18, 8, 0)
        )
        hits = store.search_daily("green tea", limit=5, min_score=0.6)
        assert [h.text for h in hits] == ["08:00 likes green tea"]
        assert len(store.search_daily("tea", limit=1)) == 1

    def test_ignores_non_daily_files(self, store: ProfileStore):
        store.update_profile({"Identity": ["Foo fan"]})
        assert store.search_daily("Foo") == []

    def test_short_query(self, store: ProfileStore):
        assert store.search_daily("a") == []
