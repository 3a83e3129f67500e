"""Text helpers shared by extraction, dedup and the hooks.

Normalized forms are comparison keys only. Nothing here is ever written
back into a profile or daily log.
"""

from __future__ import annotations

import json
import re
import unicodedata

_WS_RE = re.compile(r"\s+")
_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)

ELLIPSIS = "…"


def normalize_fact(value: str) -> str:
    """Lowercase, collapse whitespace and strip Unicode punctuation/symbols."""
    kept = "".join(ch for ch in value.lower() if unicodedata.category(ch)[0] not in "PS")
    return _WS_RE.sub(" ", kept).strip()


def similarity(a: str, b: str) -> float:
    """Token overlap of two normalized strings, relative to the smaller set.

    Tokens of two characters or fewer are ignored. Returns 0 when either
    side has no tokens left.
    """
    words_a = {w for w in a.split() if len(w) > 2}
    words_b = {w for w in b.split() if len(w) > 2}
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / min(len(words_a), len(words_b))


def truncate(text: str, limit: int) -> str:
    """Cut *text* to at most *limit* characters, ending in an ellipsis."""
    if len(text) <= limit:
        return text
    return f"{text[: max(0, limit - 1)].strip()}{ELLIPSIS}"


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def extract_json(text: str) -> object | None:
    """Recover a JSON value from model output.

    Tries the whole text, then a fenced ```json block, then the outermost
    ``{...}`` slice. Returns None when nothing parses.
    """
    trimmed = text.strip()
    if not trimmed:
        return None
    fenced = _FENCE_RE.search(trimmed)
    candidate = fenced.group(1) if fenced else trimmed
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        pass

    first = candidate.find("{")
    last = candidate.rfind("}")
    if first == -1 or last <= first:
        return None
    try:
        return json.loads(candidate[first : last + 1])
    except json.JSONDecodeError:
        return None
