"""python-docx backed text surface."""

from __future__ import annotations

import logging
from bisect import bisect_right
from pathlib import Path

from docx import Document
from docx.document import Document as DocxDocument
from docx.enum.style import WD_STYLE_TYPE
from docx.text.paragraph import Paragraph

from typonorm.surface.base import CharFormat, SurfaceParagraph, TextFlow, TextSurface
from typonorm.surface.docx_paths import iter_paragraph_contexts, iter_table_cells
from typonorm.surface.styles import StyleGroup
from typonorm.utils.docx_xml import (
    Segment,
    apply_character_style_span,
    paragraph_can_remove,
    paragraph_segments,
    paragraph_text,
    remove_paragraph,
    replace_text_span,
    segment_char_format,
)
from typonorm.utils.errors import SurfaceUnavailableError
from typonorm.utils.events import log_event

logger = logging.getLogger("typonorm.surface")


class DocxParagraph(SurfaceParagraph):
    def __init__(self, paragraph: Paragraph, path: str) -> None:
        super().__init__(path)
        self.paragraph = paragraph
        self._segment_cache: tuple[int, list[Segment], list[int]] | None = None

    @property
    def text(self) -> str:
        return paragraph_text(self.paragraph._p)

    @property
    def style(self) -> str | None:
        style = self.paragraph.style
        return style.name if style is not None else None

    @style.setter
    def style(self, name: str) -> None:
        self.paragraph.style = name

    def _segments(self) -> tuple[list[Segment], list[int]]:
        # keyed on the child count; surface edits also drop it explicitly
        p = self.paragraph._p
        if self._segment_cache is None or self._segment_cache[0] != len(p):
            segments = paragraph_segments(p)
            self._segment_cache = (len(p), segments, [segment.start for segment in segments])
        return self._segment_cache[1], self._segment_cache[2]

    def char_format(self, index: int) -> CharFormat:
        segments, starts = self._segments()
        position = bisect_right(starts, index) - 1
        if position >= 0 and index < segments[position].end:
            return segment_char_format(self.paragraph, segments[position])
        raise IndexError(f"character index out of range: {index}")

    def format_spans(self) -> list[tuple[int, int, CharFormat]]:
        spans: list[tuple[int, int, CharFormat]] = []
        for segment in paragraph_segments(self.paragraph._p):
            char_format = segment_char_format(self.paragraph, segment)
            if spans and spans[-1][1] == segment.start and spans[-1][2] == char_format:
                spans[-1] = (spans[-1][0], segment.end, char_format)
            else:
                spans.append((segment.start, segment.end, char_format))
        return spans

    def _replace_span(self, start: int, end: int, new_text: str) -> None:
        self._segment_cache = None
        replace_text_span(self.paragraph._p, start, end, new_text)

    def _style_span(self, start: int, end: int, style: str, *, italic: bool, bold: bool) -> None:
        self._segment_cache = None
        apply_character_style_span(self.paragraph, start, end, style, italic=italic, bold=bold)

    @property
    def can_remove(self) -> bool:
        return paragraph_can_remove(self.paragraph._p)

    def remove(self) -> None:
        if not self.can_remove:
            raise ValueError(f"paragraph cannot be removed: {self.path}")
        remove_paragraph(self.paragraph._p)


class DocxFlow(TextFlow):
    """Body or table-cell flow; paragraphs are listed live from the container."""

    def __init__(self, surface: DocxSurface, name: str, container, prefix: str = "") -> None:
        super().__init__(name)
        self._surface = surface
        self._container = container
        self._prefix = prefix

    @property
    def paragraphs(self) -> list[DocxParagraph]:
        return [
            self._surface._wrap(context.paragraph, context.paragraph_path)
            for context in iter_paragraph_contexts(self._container.paragraphs, self._prefix)
        ]


class DocxSurface(TextSurface):
    """Editable view of a python-docx document: the body flow, then one flow per table cell."""

    def __init__(self, document: DocxDocument, *, source: str | None = None) -> None:
        self.document = document
        self.source = source
        self._wrappers: dict[object, DocxParagraph] = {}

    @classmethod
    def open(cls, path: Path) -> DocxSurface:
        try:
            document = Document(str(path))
        except Exception as exc:  # noqa: BLE001
            raise SurfaceUnavailableError(f"Cannot open docx: {exc}", source=str(path)) from exc
        log_event(logger, logging.INFO, "surface_opened", source=str(path), kind="docx")
        return cls(document, source=str(path))

    def save(self, path: Path) -> None:
        self.document.save(str(path))

    def flows(self) -> list[DocxFlow]:
        flows = [DocxFlow(self, "body", self.document)]
        flows.extend(
            DocxFlow(self, context.cell_path, context.cell, prefix=f"{context.cell_path}.")
            for context in iter_table_cells(self.document)
        )
        return flows

    def _wrap(self, paragraph: Paragraph, path: str) -> DocxParagraph:
        wrapper = self._wrappers.get(paragraph._p)
        if wrapper is None:
            wrapper = DocxParagraph(paragraph, path)
            self._wrappers[paragraph._p] = wrapper
        else:
            wrapper.path = path
        return wrapper

    def character_style_tree(self) -> StyleGroup:
        return self._style_tree(WD_STYLE_TYPE.CHARACTER, "character")

    def paragraph_style_tree(self) -> StyleGroup:
        return self._style_tree(WD_STYLE_TYPE.PARAGRAPH, "paragraph")

    def _style_tree(self, style_type: WD_STYLE_TYPE, root_name: str) -> StyleGroup:
        """Group styles by their ``based_on`` chain.

        A style with derived styles becomes a group listing them; styles
        based on nothing (or on a style of another type) sit at the root.
        """

        styles = [style for style in self.document.styles if style.type == style_type]
        names = {style.name for style in styles}
        children: dict[str | None, list[str]] = {}
        for style in styles:
            base = style.base_style
            parent = base.name if base is not None and base.name in names else None
            children.setdefault(parent, []).append(style.name)

        def build(name: str, visited: set[str]) -> StyleGroup:
            group = StyleGroup(name, styles=list(children.get(name, [])))
            for child in group.styles:
                if child in children and child not in visited:
                    group.groups.append(build(child, visited | {child}))
            return group

        root = StyleGroup(root_name, styles=list(children.get(None, [])))
        for name in root.styles:
            if name in children:
                root.groups.append(build(name, {name}))
        return root
