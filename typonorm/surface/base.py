"""Text editing surface: paragraph search, substitution and character styling.

Passes never touch a concrete document model. They search paragraph text
through a surface and edit it through live ``Match`` handles:

- ``find`` returns matches in document order; a match keeps pointing at the
  same characters while other matches of its paragraph are rewritten.
- ``change_all`` substitutes a template or a callback result and counts the
  substitutions that changed text.
- character styling goes through ``Match.apply_character_style`` or the
  per-character handles of ``Match.characters``.

Note references appear in paragraph text as ``NOTE_MARK`` and opaque inline
objects as ``OBJECT_MARK``; both survive replacement in order.
"""

from __future__ import annotations

import weakref
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import dataclass

import regex

from typonorm.surface.styles import StyleGroup, flatten_styles
from typonorm.utils.patterns import Pattern, compile_pattern

NOTE_MARK = "\ufff9"
OBJECT_MARK = "\ufffc"
ATOM_MARKS = frozenset({NOTE_MARK, OBJECT_MARK})

_EMPTY_PARAGRAPH = regex.compile(r"[\r\n\s\u200b\ufeff]*")

Replacement = str | Callable[["Match"], str]


@dataclass(frozen=True)
class CharFormat:
    """Formatting read from one character."""

    char_style: str | None = None
    italic: bool = False
    bold: bool = False
    superscript: bool = False


class SurfaceParagraph(ABC):
    """One paragraph of a text flow."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._tracked: weakref.WeakSet[Match] = weakref.WeakSet()

    @property
    @abstractmethod
    def text(self) -> str:
        """Current paragraph text without the paragraph terminator."""

    @property
    @abstractmethod
    def style(self) -> str | None:
        """Applied paragraph style name."""

    @style.setter
    @abstractmethod
    def style(self, name: str) -> None: ...

    @abstractmethod
    def char_format(self, index: int) -> CharFormat: ...

    @abstractmethod
    def _replace_span(self, start: int, end: int, new_text: str) -> None: ...

    @abstractmethod
    def _style_span(
        self, start: int, end: int, style: str, *, italic: bool, bold: bool
    ) -> None: ...

    @abstractmethod
    def remove(self) -> None:
        """Delete this paragraph from its flow."""

    @property
    def can_remove(self) -> bool:
        return True

    def is_empty(self) -> bool:
        """True when only whitespace or zero-width characters remain."""

        return _EMPTY_PARAGRAPH.fullmatch(self.text) is not None

    def replace(self, start: int, end: int, new_text: str) -> None:
        """Replace ``text[start:end]`` and keep live matches aligned.

        The common prefix and suffix of old and new text are left untouched
        so unchanged characters keep their formatting.
        """

        old_text = self.text[start:end]
        if old_text == new_text:
            return

        prefix = 0
        limit = min(len(old_text), len(new_text))
        while prefix < limit and old_text[prefix] == new_text[prefix]:
            prefix += 1
        suffix = 0
        while (
            suffix < limit - prefix
            and old_text[len(old_text) - 1 - suffix] == new_text[len(new_text) - 1 - suffix]
        ):
            suffix += 1

        edit_start = start + prefix
        edit_end = end - suffix
        inserted = new_text[prefix : len(new_text) - suffix]
        self._replace_span(edit_start, edit_end, inserted)
        self._shift_tracked(edit_start, edit_end, len(inserted) - (edit_end - edit_start))

    def style_span(
        self, start: int, end: int, style: str, *, italic: bool = False, bold: bool = False
    ) -> None:
        """Apply a character style to ``[start, end)``, re-asserting italic/bold."""

        if start >= end:
            return
        self._style_span(start, end, style, italic=italic, bold=bold)

    def format_spans(self) -> list[tuple[int, int, CharFormat]]:
        """Return maximal ranges of identical character formatting."""

        spans: list[tuple[int, int, CharFormat]] = []
        text = self.text
        start = 0
        current: CharFormat | None = None
        for index in range(len(text)):
            char_format = self.char_format(index)
            if current is None:
                current = char_format
                continue
            if char_format != current:
                spans.append((start, index, current))
                start = index
                current = char_format
        if current is not None:
            spans.append((start, len(text), current))
        return spans

    def _track(self, match: Match) -> None:
        self._tracked.add(match)

    def _shift_tracked(self, start: int, end: int, delta: int) -> None:
        if delta == 0:
            return
        for match in list(self._tracked):
            if match.start >= end:
                match.start += delta
                match.end += delta
            elif match.end > end or (match.end == end and end > start):
                match.end += delta
            elif match.end > start:
                match.end = min(match.end, end + delta)


class TextFlow(ABC):
    """Ordered paragraphs of one story (body, table cell group, notes)."""

    def __init__(self, name: str, *, is_note: bool = False) -> None:
        self.name = name
        self.is_note = is_note

    @property
    @abstractmethod
    def paragraphs(self) -> list[SurfaceParagraph]: ...


class Character:
    """Per-character handle inside a match."""

    def __init__(self, match: Match, offset: int) -> None:
        self._match = match
        self._offset = offset

    @property
    def index(self) -> int:
        return self._match.start + self._offset

    @property
    def contents(self) -> str:
        return self._match.paragraph.text[self.index]

    @property
    def italic(self) -> bool:
        return self._match.paragraph.char_format(self.index).italic

    @property
    def bold(self) -> bool:
        return self._match.paragraph.char_format(self.index).bold

    @property
    def applied_character_style(self) -> str | None:
        return self._match.paragraph.char_format(self.index).char_style

    @applied_character_style.setter
    def applied_character_style(self, style: str) -> None:
        self._match.paragraph.style_span(self.index, self.index + 1, style)


class Match:
    """Live handle on a located pattern occurrence.

    Group texts and group spans describe the text at find time; spans are
    relative to the match start.
    """

    def __init__(self, paragraph: SurfaceParagraph, found: regex.Match) -> None:
        self.paragraph = paragraph
        self.start = found.start()
        self.end = found.end()
        self._groups = (found.group(0), *found.groups())
        self._spans = tuple(
            None
            if found.start(index) < 0
            else (found.start(index) - self.start, found.end(index) - self.start)
            for index in range(len(self._groups))
        )
        paragraph._track(self)

    def __repr__(self) -> str:
        return (
            f"Match(path={self.paragraph.path!r}, span=({self.start}, {self.end}), "
            f"contents={self.contents!r})"
        )

    @property
    def contents(self) -> str:
        return self.paragraph.text[self.start : self.end]

    @contents.setter
    def contents(self, value: str) -> None:
        start = self.start
        self.paragraph.replace(self.start, self.end, value)
        self.start = start
        self.end = start + len(value)

    @property
    def paragraph_text(self) -> str:
        return self.paragraph.text

    @property
    def characters(self) -> list[Character]:
        return [Character(self, offset) for offset in range(self.end - self.start)]

    def group(self, index: int = 0) -> str | None:
        return self._groups[index]

    def group_span(self, index: int = 0) -> tuple[int, int] | None:
        return self._spans[index]

    def is_italic(self) -> bool:
        formats = [self.paragraph.char_format(i) for i in range(self.start, self.end)]
        return bool(formats) and all(item.italic for item in formats)

    def is_bold(self) -> bool:
        formats = [self.paragraph.char_format(i) for i in range(self.start, self.end)]
        return bool(formats) and all(item.bold for item in formats)

    def apply_character_style(
        self,
        style: str,
        start: int = 0,
        end: int | None = None,
        *,
        italic: bool = False,
        bold: bool = False,
    ) -> None:
        """Style match-relative ``[start, end)``; the whole match by default."""

        stop = self.end - self.start if end is None else end
        self.paragraph.style_span(self.start + start, self.start + stop, style, italic=italic, bold=bold)


Scope = TextFlow | SurfaceParagraph | None


class TextSurface(ABC):
    """Editable document seen as flows of paragraphs."""

    @abstractmethod
    def flows(self) -> list[TextFlow]: ...

    @abstractmethod
    def character_style_tree(self) -> StyleGroup: ...

    @abstractmethod
    def paragraph_style_tree(self) -> StyleGroup: ...

    def character_styles(self) -> list[str]:
        return flatten_styles(self.character_style_tree())

    def paragraph_styles(self) -> list[str]:
        return flatten_styles(self.paragraph_style_tree())

    def has_character_style(self, name: str) -> bool:
        return name in self.character_styles()

    def has_paragraph_style(self, name: str) -> bool:
        return name in self.paragraph_styles()

    def iter_paragraphs(
        self, scope: Scope = None, *, include_notes: bool = True
    ) -> Iterator[SurfaceParagraph]:
        """Yield paragraphs of the scope in document order."""

        if isinstance(scope, SurfaceParagraph):
            yield scope
            return
        flows = [scope] if isinstance(scope, TextFlow) else self.flows()
        for flow in flows:
            if flow.is_note and not include_notes:
                continue
            yield from list(flow.paragraphs)

    def find(
        self,
        pattern: str | Pattern,
        scope: Scope = None,
        *,
        include_notes: bool = True,
    ) -> list[Match]:
        """Return live matches of ``pattern`` in document order."""

        compiled = compile_pattern(pattern)
        matches: list[Match] = []
        for paragraph in self.iter_paragraphs(scope, include_notes=include_notes):
            matches.extend(Match(paragraph, found) for found in compiled.finditer(paragraph.text))
        return matches

    def change_all(
        self,
        pattern: str | Pattern,
        replacement: Replacement,
        scope: Scope = None,
        *,
        include_notes: bool = True,
    ) -> int:
        """Substitute every match; return how many substitutions changed text.

        ``replacement`` is an expansion template (``\\g<1>`` back-references)
        or a callback receiving the live match and returning its new text.
        """

        compiled = compile_pattern(pattern)
        changed = 0
        for paragraph in self.iter_paragraphs(scope, include_notes=include_notes):
            found_items = list(compiled.finditer(paragraph.text))
            for found in reversed(found_items):
                if callable(replacement):
                    new_text = replacement(Match(paragraph, found))
                else:
                    new_text = found.expand(replacement)
                if new_text == found.group(0):
                    continue
                paragraph.replace(found.start(), found.end(), new_text)
                changed += 1
        return changed
