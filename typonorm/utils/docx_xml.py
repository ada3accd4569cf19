"""Utilities for docx XML operations.

All XML-level operations on docx content must be implemented here.
Do not spread XML manipulation logic across other modules.

Paragraph text is read from the direct children of ``w:p``. Plain text runs
contribute their characters; runs holding anything else (drawings, fields,
note references) and inline containers (hyperlinks, content controls,
insertions) each contribute a single mark character and are never edited.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass

from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.text.paragraph import Paragraph
from docx.text.run import Run

from typonorm.surface.base import ATOM_MARKS, NOTE_MARK, OBJECT_MARK, CharFormat

W_R = qn("w:r")
W_T = qn("w:t")
W_RPR = qn("w:rPr")
W_TAB = qn("w:tab")
W_BR = qn("w:br")
W_CR = qn("w:cr")
W_NO_BREAK_HYPHEN = qn("w:noBreakHyphen")
W_SOFT_HYPHEN = qn("w:softHyphen")
W_LAST_RENDERED_PAGE_BREAK = qn("w:lastRenderedPageBreak")

NOTE_REFERENCE_TAGS = frozenset({qn("w:footnoteReference"), qn("w:endnoteReference")})

# Paragraph children that carry no visible text.
IGNORED_PARAGRAPH_TAGS = frozenset(
    qn(tag)
    for tag in (
        "w:pPr",
        "w:bookmarkStart",
        "w:bookmarkEnd",
        "w:proofErr",
        "w:permStart",
        "w:permEnd",
        "w:commentRangeStart",
        "w:commentRangeEnd",
        "w:del",
        "w:moveFrom",
        "w:moveFromRangeStart",
        "w:moveFromRangeEnd",
        "w:moveToRangeStart",
        "w:moveToRangeEnd",
    )
)

_CHAR_TO_TAG = {
    "\t": "w:tab",
    "\n": "w:br",
    "\u2011": "w:noBreakHyphen",
    "\u00ad": "w:softHyphen",
}


@dataclass(frozen=True)
class Segment:
    """One text-bearing child of a paragraph."""

    element: object
    text: str
    start: int
    atom: bool

    @property
    def end(self) -> int:
        return self.start + len(self.text)


def run_text(r) -> str | None:
    """Return the text of a plain run, or None when the run is atomic."""

    pieces: list[str] = []
    for child in r.iterchildren():
        tag = child.tag
        if not isinstance(tag, str) or tag in (W_RPR, W_LAST_RENDERED_PAGE_BREAK):
            continue
        if tag == W_T:
            pieces.append(child.text or "")
        elif tag == W_TAB:
            pieces.append("\t")
        elif tag == W_BR:
            if child.get(qn("w:type")) not in (None, "textWrapping"):
                return None
            pieces.append("\n")
        elif tag == W_CR:
            pieces.append("\n")
        elif tag == W_NO_BREAK_HYPHEN:
            pieces.append("\u2011")
        elif tag == W_SOFT_HYPHEN:
            pieces.append("\u00ad")
        else:
            return None
    return "".join(pieces)


def set_run_text(r, text: str) -> None:
    """Replace run content with ``text``, keeping run properties."""

    for child in list(r.iterchildren()):
        if child.tag != W_RPR:
            r.remove(child)

    buffer: list[str] = []

    def flush() -> None:
        if not buffer:
            return
        t = OxmlElement("w:t")
        t.text = "".join(buffer)
        if t.text != t.text.strip():
            t.set(qn("xml:space"), "preserve")
        r.append(t)
        buffer.clear()

    for char in text:
        tag = _CHAR_TO_TAG.get(char)
        if tag is None:
            buffer.append(char)
            continue
        flush()
        r.append(OxmlElement(tag))
    flush()


def _is_note_reference_run(r) -> bool:
    return any(child.tag in NOTE_REFERENCE_TAGS for child in r.iterchildren())


def paragraph_segments(p) -> list[Segment]:
    """Return text-bearing children of ``w:p`` with their text offsets."""

    segments: list[Segment] = []
    offset = 0
    for child in p.iterchildren():
        tag = child.tag
        if not isinstance(tag, str) or tag in IGNORED_PARAGRAPH_TAGS:
            continue
        if tag == W_R:
            text = run_text(child)
            if text is None:
                mark = NOTE_MARK if _is_note_reference_run(child) else OBJECT_MARK
                segments.append(Segment(child, mark, offset, True))
                offset += 1
            elif text:
                segments.append(Segment(child, text, offset, False))
                offset += len(text)
            continue
        segments.append(Segment(child, OBJECT_MARK, offset, True))
        offset += 1
    return segments


def paragraph_text(p) -> str:
    return "".join(segment.text for segment in paragraph_segments(p))


def _ensure_boundary(p, offset: int) -> None:
    for segment in paragraph_segments(p):
        if segment.atom or not segment.start < offset < segment.end:
            continue
        at = offset - segment.start
        tail = deepcopy(segment.element)
        set_run_text(segment.element, segment.text[:at])
        set_run_text(tail, segment.text[at:])
        segment.element.addnext(tail)
        return


def _new_run(text: str, template_rpr):
    r = OxmlElement("w:r")
    if template_rpr is not None:
        r.append(deepcopy(template_rpr))
    set_run_text(r, text)
    return r


def _template_rpr(segments: list[Segment], start: int, end: int):
    text_segments = [segment for segment in segments if not segment.atom]
    for segment in text_segments:
        if start <= segment.start < end:
            return segment.element.rPr
    for segment in reversed(text_segments):
        if segment.end <= start:
            return segment.element.rPr
    for segment in text_segments:
        if segment.start >= end:
            return segment.element.rPr
    return None


def replace_text_span(p, start: int, end: int, new_text: str) -> None:
    """Replace paragraph text ``[start, end)`` with ``new_text``.

    Atoms inside the span are carried over in order, matched to the mark
    characters of ``new_text``; atoms left unmatched are appended after the
    new text.
    """

    _ensure_boundary(p, start)
    _ensure_boundary(p, end)
    segments = paragraph_segments(p)
    inside = [segment for segment in segments if start <= segment.start and segment.end <= end]
    template = _template_rpr(segments, start, end)

    if inside:
        index = p.index(inside[0].element)
    else:
        following = next((segment for segment in segments if segment.start >= start), None)
        if following is not None:
            index = p.index(following.element)
        elif segments:
            index = p.index(segments[-1].element) + 1
        else:
            index = len(p)

    atoms = [segment for segment in inside if segment.atom]
    nodes = []
    buffer: list[str] = []
    for char in new_text:
        if char not in ATOM_MARKS:
            buffer.append(char)
            continue
        if buffer:
            nodes.append(_new_run("".join(buffer), template))
            buffer.clear()
        position = next((i for i, atom in enumerate(atoms) if atom.text == char), None)
        if position is None:
            raise ValueError(f"replacement text holds a mark with no matching object: {char!r}")
        nodes.append(atoms.pop(position).element)
    if buffer:
        nodes.append(_new_run("".join(buffer), template))
    nodes.extend(atom.element for atom in atoms)

    for segment in inside:
        p.remove(segment.element)
    for offset, node in enumerate(nodes):
        p.insert(index + offset, node)
    merge_adjacent_runs(p)


def _rpr_key(r) -> str:
    r_pr = r.rPr
    return "" if r_pr is None else r_pr.xml


def merge_adjacent_runs(p) -> None:
    """Merge directly adjacent plain runs sharing identical run properties."""

    previous = None
    previous_text: str | None = None
    for child in list(p.iterchildren()):
        if child.tag != W_R:
            previous = None
            continue
        text = run_text(child)
        if text is None:
            previous = None
            continue
        if previous is not None and previous_text is not None and _rpr_key(previous) == _rpr_key(child):
            previous_text += text
            set_run_text(previous, previous_text)
            p.remove(child)
            continue
        previous = child
        previous_text = text


def run_char_format(paragraph: Paragraph, r) -> CharFormat:
    """Read the direct character formatting of one run."""

    run = Run(r, paragraph)
    char_style = run.style.name if r.style is not None else None
    return CharFormat(
        char_style=char_style,
        italic=bool(run.italic),
        bold=bool(run.bold),
        superscript=bool(run.font.superscript),
    )


def segment_char_format(paragraph: Paragraph, segment: Segment) -> CharFormat:
    if segment.element.tag != W_R:
        return CharFormat()
    return run_char_format(paragraph, segment.element)


def apply_character_style_span(
    paragraph: Paragraph,
    start: int,
    end: int,
    style: str,
    *,
    italic: bool = False,
    bold: bool = False,
) -> None:
    """Apply a character style to ``[start, end)``.

    Raises KeyError when the document has no character style ``style``.
    """

    p = paragraph._p
    _ensure_boundary(p, start)
    _ensure_boundary(p, end)
    try:
        for segment in paragraph_segments(p):
            if segment.end <= start or segment.start >= end or segment.element.tag != W_R:
                continue
            run = Run(segment.element, paragraph)
            run.style = style
            if italic:
                run.italic = True
            if bold:
                run.bold = True
    finally:
        merge_adjacent_runs(p)


def paragraph_can_remove(p) -> bool:
    """Return False for paragraphs Word requires (section breaks, last cell paragraph)."""

    p_pr = p.pPr
    if p_pr is not None and p_pr.find(qn("w:sectPr")) is not None:
        return False
    parent = p.getparent()
    if parent is None:
        return False
    if parent.tag == qn("w:tc") and len(parent.findall(qn("w:p"))) <= 1:
        return False
    return True


def remove_paragraph(p) -> None:
    parent = p.getparent()
    if parent is None:
        raise ValueError("paragraph is already detached")
    parent.remove(p)
