"""Pattern helpers: compiled-pattern cache and word-list alternations."""

from __future__ import annotations

from collections.abc import Iterable
from functools import lru_cache

import regex

# Horizontal whitespace variants handled by spacing rules.
WS_CHARS = " \t\u00a0\u2000-\u200a\u202f\u205f\u3000"
WS = f"[{WS_CHARS}]"

NBSP = "\u00a0"
THIN_NBSP = "\u202f"
EN_DASH = "\u2013"
EM_DASH = "\u2014"
ELLIPSIS = "\u2026"
APOSTROPHE = "\u2019"

Pattern = regex.Pattern


@lru_cache(maxsize=512)
def _compile(pattern: str, flags: int) -> Pattern:
    return regex.compile(pattern, flags | regex.VERSION0)


def compile_pattern(pattern: str | Pattern, flags: int = 0) -> Pattern:
    """Compile a search pattern once; compiled patterns pass through unchanged."""

    if isinstance(pattern, str):
        return _compile(pattern, flags)
    return pattern


def alternation(fragments: Iterable[str]) -> str:
    """Join regex fragments with ``|``; empty input yields an empty string."""

    return "|".join(fragment for fragment in fragments if fragment)


def bounded_alternation(fragments: Iterable[str]) -> str:
    """Join fragments wrapped in word boundaries, as used for exclusion lists."""

    return "|".join(rf"\b{fragment}\b" for fragment in fragments if fragment)


def abbreviation_alternation(fragments: Iterable[str]) -> str:
    """Wrap abbreviation fragments in word boundaries where they end on a word.

    Entries that already contain an escaped dot keep their own edges, and
    entries containing a degree sign get no trailing boundary.
    """

    parts: list[str] = []
    for fragment in fragments:
        if not fragment:
            continue
        if r"\." in fragment:
            parts.append(fragment)
        elif "°" in fragment:
            parts.append(rf"\b{fragment}")
        else:
            parts.append(rf"\b{fragment}\b")
    return "|".join(parts)


def unit_alternation(fragments: Iterable[str]) -> str:
    """Join unit fragments; a leading boundary only applies to word-initial units."""

    parts: list[str] = []
    for fragment in fragments:
        if not fragment:
            continue
        first = fragment.lstrip("\\")[:1]
        parts.append(rf"\b{fragment}" if first.isalnum() else fragment)
    return "|".join(parts)


def negative_lookahead(alternatives: str, *, prefix: str = "") -> str:
    """Build ``(?!prefix(?i:alternatives))`` or nothing for an empty list."""

    if not alternatives:
        return ""
    return f"(?!{prefix}(?i:{alternatives}))"
