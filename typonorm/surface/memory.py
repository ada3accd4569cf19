"""In-memory text surface with per-character formatting."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from typonorm.surface.base import CharFormat, SurfaceParagraph, TextFlow, TextSurface
from typonorm.surface.styles import StyleGroup

DEFAULT_PARAGRAPH_STYLE = "Normal"


class TextParagraph(SurfaceParagraph):
    """Paragraph holding its text and one ``CharFormat`` per character."""

    def __init__(
        self,
        text: str = "",
        *,
        style: str = DEFAULT_PARAGRAPH_STYLE,
        formats: list[CharFormat] | None = None,
        path: str = "p0",
    ) -> None:
        super().__init__(path)
        if formats is not None and len(formats) != len(text):
            raise ValueError("formats must hold exactly one entry per character")
        self._text = text
        self._formats = list(formats) if formats is not None else [CharFormat()] * len(text)
        self._style = style
        self.flow: MemoryFlow | None = None

    @property
    def text(self) -> str:
        return self._text

    @property
    def style(self) -> str | None:
        return self._style

    @style.setter
    def style(self, name: str) -> None:
        document = self.flow.document if self.flow is not None else None
        if document is not None:
            document.require_paragraph_style(name)
        self._style = name

    @property
    def formats(self) -> list[CharFormat]:
        return list(self._formats)

    def char_format(self, index: int) -> CharFormat:
        return self._formats[index]

    def _replace_span(self, start: int, end: int, new_text: str) -> None:
        if start < end:
            inherited = self._formats[start]
        elif start > 0:
            inherited = self._formats[start - 1]
        elif self._formats:
            inherited = self._formats[0]
        else:
            inherited = CharFormat()
        self._text = self._text[:start] + new_text + self._text[end:]
        self._formats[start:end] = [inherited] * len(new_text)

    def _style_span(self, start: int, end: int, style: str, *, italic: bool, bold: bool) -> None:
        document = self.flow.document if self.flow is not None else None
        if document is not None:
            document.require_character_style(style)
        for index in range(start, end):
            current = self._formats[index]
            self._formats[index] = replace(
                current,
                char_style=style,
                italic=current.italic or italic,
                bold=current.bold or bold,
            )

    def remove(self) -> None:
        if self.flow is None:
            raise ValueError("paragraph is not attached to a flow")
        self.flow.remove_paragraph(self)


class MemoryFlow(TextFlow):
    def __init__(self, name: str, paragraphs: Iterable[TextParagraph] = (), *, is_note: bool = False):
        super().__init__(name, is_note=is_note)
        self.document: TextDocument | None = None
        self._paragraphs: list[TextParagraph] = []
        for paragraph in paragraphs:
            self.append(paragraph)

    @property
    def paragraphs(self) -> list[TextParagraph]:
        return list(self._paragraphs)

    def append(self, paragraph: TextParagraph) -> TextParagraph:
        paragraph.flow = self
        self._paragraphs.append(paragraph)
        self._renumber()
        return paragraph

    def remove_paragraph(self, paragraph: TextParagraph) -> None:
        self._paragraphs.remove(paragraph)
        paragraph.flow = None
        self._renumber()

    def _renumber(self) -> None:
        for index, paragraph in enumerate(self._paragraphs):
            paragraph.path = f"{self.name}.p{index}"


class TextDocument(TextSurface):
    """Plain in-memory document made of named flows.

    ``character_styles`` / ``paragraph_styles`` of ``None`` accept any style
    name, which suits plain-text input where styles cannot be stored.
    """

    def __init__(
        self,
        flows: Iterable[MemoryFlow] = (),
        *,
        character_styles: Iterable[str] | None = None,
        paragraph_styles: Iterable[str] | None = None,
    ) -> None:
        self._flows: list[MemoryFlow] = []
        self._character_styles = list(character_styles) if character_styles is not None else None
        self._paragraph_styles = list(paragraph_styles) if paragraph_styles is not None else None
        for flow in flows:
            self.add_flow(flow)

    @classmethod
    def from_text(cls, text: str, *, name: str = "body") -> TextDocument:
        """Build a one-flow document, one paragraph per line."""

        lines = text.split("\n")
        if lines and lines[-1] == "" and len(lines) > 1:
            lines.pop()
        flow = MemoryFlow(name, (TextParagraph(line.rstrip("\r")) for line in lines))
        return cls([flow])

    @classmethod
    def from_paragraphs(
        cls,
        paragraphs: Iterable[str | tuple[str, str]],
        *,
        character_styles: Iterable[str] | None = None,
        paragraph_styles: Iterable[str] | None = None,
    ) -> TextDocument:
        """Build a one-flow document from texts or ``(text, style)`` pairs."""

        items: list[TextParagraph] = []
        for item in paragraphs:
            if isinstance(item, tuple):
                text, style = item
                items.append(TextParagraph(text, style=style))
            else:
                items.append(TextParagraph(item))
        return cls(
            [MemoryFlow("body", items)],
            character_styles=character_styles,
            paragraph_styles=paragraph_styles,
        )

    def add_flow(self, flow: MemoryFlow) -> MemoryFlow:
        flow.document = self
        self._flows.append(flow)
        return flow

    def flows(self) -> list[MemoryFlow]:
        return list(self._flows)

    def to_text(self, *, include_notes: bool = False) -> str:
        lines = [
            paragraph.text
            for flow in self._flows
            if include_notes or not flow.is_note
            for paragraph in flow.paragraphs
        ]
        return "\n".join(lines)

    def character_style_tree(self) -> StyleGroup:
        names = self._character_styles if self._character_styles is not None else self._used_character_styles()
        return StyleGroup("character", styles=list(names))

    def paragraph_style_tree(self) -> StyleGroup:
        if self._paragraph_styles is not None:
            return StyleGroup("paragraph", styles=list(self._paragraph_styles))
        used: list[str] = []
        for flow in self._flows:
            for paragraph in flow.paragraphs:
                if paragraph.style and paragraph.style not in used:
                    used.append(paragraph.style)
        return StyleGroup("paragraph", styles=used)

    def has_character_style(self, name: str) -> bool:
        if self._character_styles is None:
            return True
        return super().has_character_style(name)

    def has_paragraph_style(self, name: str) -> bool:
        if self._paragraph_styles is None:
            return True
        return super().has_paragraph_style(name)

    def require_character_style(self, name: str) -> None:
        if not self.has_character_style(name):
            raise KeyError(f"no character style with name '{name}'")

    def require_paragraph_style(self, name: str) -> None:
        if not self.has_paragraph_style(name):
            raise KeyError(f"no paragraph style with name '{name}'")

    def _used_character_styles(self) -> list[str]:
        used: list[str] = []
        for flow in self._flows:
            for paragraph in flow.paragraphs:
                for char_format in paragraph.formats:
                    if char_format.char_style and char_format.char_style not in used:
                        used.append(char_format.char_style)
        return used
