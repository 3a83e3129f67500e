"""Subsumption-based fact merging.

An incoming fact is dropped when an existing fact already covers it, and
replaces an existing fact in place when it covers that one. Containment of
normalized forms decides the direction directly. Token similarity above
``SIMILARITY_THRESHOLD`` is symmetric, so there the fact carrying more
tokens wins; on a tie the existing fact stays. The first matching entry
wins.
"""

from __future__ import annotations

from collections.abc import Iterable

from memplus.memory.text import normalize_fact, similarity

SIMILARITY_THRESHOLD = 0.8


def _weight(norm: str) -> tuple[int, int]:
    return len({w for w in norm.split() if len(w) > 2}), len(norm)


def _relation(norm: str, current: str) -> str | None:
    """How incoming *norm* relates to *current*: "dominated", "dominates" or None."""
    if norm in current:
        return "dominated"
    if current in norm:
        return "dominates"
    if similarity(norm, current) > SIMILARITY_THRESHOLD:
        return "dominates" if _weight(norm) > _weight(current) else "dominated"
    return None


def merge_facts(existing: Iterable[str], incoming: Iterable[str]) -> list[str]:
    """Merge *incoming* into *existing* without mutating either.

    Incoming facts are also checked against facts appended earlier in the
    same call, so duplicates inside one batch collapse too.
    """
    merged: list[str] = []
    norms: list[str] = []
    for fact in existing:
        merged.append(fact)
        norms.append(normalize_fact(fact))

    for fact in incoming:
        norm = normalize_fact(fact)
        if not norm:
            continue

        relation = None
        index = -1
        for i, current in enumerate(norms):
            # An empty key is a substring of everything.
            if not current:
                continue
            relation = _relation(norm, current)
            if relation:
                index = i
                break

        if relation == "dominated":
            continue
        if relation == "dominates":
            merged[index] = fact
            norms[index] = norm
        else:
            merged.append(fact)
            norms.append(norm)
    return merged


def dedupe_preserve_order(items: Iterable[str]) -> list[str]:
    """Collapse near-duplicates in a single list, keeping first positions."""
    return merge_facts([], items)
