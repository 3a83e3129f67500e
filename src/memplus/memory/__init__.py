"""Fact consolidation: normalize, sanitize, dedupe, parse/render profile.md.

Layout:
    <workspace>/memory/
    ├── profile.md          # # Profile + seven ## categories of facts
    ├── 2026-02-18.md       # Daily summaries (append-only)
    └── .versions/          # profile.md backups

Everything except ``store`` is pure and does no I/O.
"""
