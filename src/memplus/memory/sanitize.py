"""Keep operational/system metadata out of the profile.

Extraction output (LLM or rules) sometimes describes the assistant's own
plumbing instead of the user. Anything that looks like that is dropped
silently before it reaches the merge step.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

_PLACEHOLDER_RE = re.compile(r"^\(?(?:empty|none)\)?$", re.IGNORECASE)
_SECRET_TOKEN_RE = re.compile(r"(?<![A-Za-z0-9_-])[A-Za-z0-9_-]{16,}(?![A-Za-z0-9_-])")
_ROLE_TAG_RE = re.compile(r"^[-\s]*(?:tool|system|assistant)[:\s]", re.IGNORECASE)
_URL_MARKERS = ("http://", "https://")

BLOCKLIST: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        # internal component names
        r"\bmemplus\b",
        r"\bclawdbot\b",
        r"\bauto-?capture\b",
        r"\bauto-?recall\b",
        r"\bmemory_search\b",
        r"\bmemories auto-captured\b",
        r"\bprofile facts\b",
        # credentials
        r"\bapi\s*key\b",
        r"\bapikey\b",
        r"\bapi-key\b",
        r"\bkey not set\b",
        # models and providers
        r"\bopenrouter\b",
        r"\bmodel\b",
        r"\bllm\b",
        # file paths
        r"\bmemory\b.*\bfile\b",
        r"memory/\S+",
        r"\bmemory\.md\b",
        r"\bprofile\.md\b",
        r"/root/",
        r"\.clawdbot",
        # configuration
        r"\bconfig(?:uration)?\b",
        r"\bplugin\b",
        r"\bworkspace\b",
        r"\bextension\b",
    )
)


def looks_like_system_metadata(
    text: str, blocklist: Iterable[re.Pattern[str]] = BLOCKLIST
) -> bool:
    if any(rx.search(text) for rx in blocklist):
        return True
    if any(marker in text for marker in _URL_MARKERS):
        return True
    if _SECRET_TOKEN_RE.search(text):
        return True
    return bool(_ROLE_TAG_RE.match(text))


def is_clean(text: str, blocklist: Iterable[re.Pattern[str]] = BLOCKLIST) -> bool:
    """Return True when *text* may be stored as a fact."""
    trimmed = text.strip()
    if not trimmed:
        return False
    if _PLACEHOLDER_RE.match(trimmed):
        return False
    return not looks_like_system_metadata(trimmed, blocklist)


def sanitize_items(
    items: Iterable[str], blocklist: Iterable[re.Pattern[str]] = BLOCKLIST
) -> list[str]:
    """Filter *items*, keeping order. Rejections are not reported."""
    patterns = tuple(blocklist)
    return [item for item in items if is_clean(item, patterns)]
