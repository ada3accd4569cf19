"""Stable paths for docx paragraphs and table cells."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from docx.document import Document as DocxDocument
from docx.table import _Cell
from docx.text.paragraph import Paragraph


@dataclass(frozen=True)
class ParagraphContext:
    """Paragraph with its stable path."""

    paragraph: Paragraph
    paragraph_path: str


@dataclass(frozen=True)
class CellContext:
    cell: _Cell
    cell_path: str


def iter_paragraph_contexts(paragraphs: list[Paragraph], prefix: str = "") -> Iterator[ParagraphContext]:
    """Yield paragraphs as ``{prefix}p{p_idx}``."""

    for paragraph_index, paragraph in enumerate(paragraphs):
        yield ParagraphContext(paragraph=paragraph, paragraph_path=f"{prefix}p{paragraph_index}")


def iter_table_cells(document: DocxDocument) -> Iterator[CellContext]:
    """Yield top-level table cells as ``t{t_idx}.r{row_idx}.c{cell_idx}``.

    A merged cell is reported by python-docx once per grid position; only its
    first position is yielded.
    """

    for table_index, table in enumerate(document.tables):
        seen: set = set()
        for row_index, row in enumerate(table.rows):
            for cell_index, cell in enumerate(row.cells):
                tc = cell._tc
                if tc in seen:
                    continue
                seen.add(tc)
                yield CellContext(cell=cell, cell_path=f"t{table_index}.r{row_index}.c{cell_index}")
