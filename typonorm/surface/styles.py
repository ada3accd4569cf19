"""Style-group tree and flat style enumeration."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

SMALL_CAPS_STYLE_NAMES = (
    "Small caps",
    "Small cap",
    "Small capitals",
    "Small capital",
    "Petites capitales",
    "Petites caps",
)
CAPITALS_STYLE_NAMES = ("Large Capitals", "Capital", "Capitals")
SUPERSCRIPT_STYLE_NAMES = ("Superscript", "Exposant", "Superior")
ITALIC_STYLE_NAMES = ("Italic", "Italique", "Emphasis")
NOTE_STYLE_NAMES = ("Footnote Reference", "Appel de note", "Note reference", "Endnote Reference")


@dataclass
class StyleGroup:
    """Named group holding style names and nested groups."""

    name: str
    styles: list[str] = field(default_factory=list)
    groups: list[StyleGroup] = field(default_factory=list)


def flatten_styles(root: StyleGroup) -> list[str]:
    """Return every style name of the tree in pre-order, first occurrence kept.

    The walk is iterative: a group's own styles come before its subgroups,
    and subgroups are visited in declaration order.
    """

    ordered: list[str] = []
    seen: set[str] = set()
    stack: list[StyleGroup] = [root]
    while stack:
        group = stack.pop()
        for name in group.styles:
            if name not in seen:
                seen.add(name)
                ordered.append(name)
        stack.extend(reversed(group.groups))
    return ordered


def find_style(preferred: Iterable[str], available: Iterable[str]) -> str | None:
    """Pick the first preferred name present in available names (case-insensitive)."""

    by_lower = {name.lower(): name for name in available}
    for candidate in preferred:
        match = by_lower.get(candidate.lower())
        if match is not None:
            return match
    return None
