"""Correction pipeline: ordered spacing, dash, note and punctuation rules.

Rules run strictly in ``CORRECTION_RULES`` order; later rules rely on the
normalized text left by earlier ones (double spaces are collapsed before
trimming, em dashes become en dashes before incise spacing).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from typonorm.engine.models import PassReport
from typonorm.engine.options import RunOptions
from typonorm.engine.rules import each_match, resolve_character_style, run_rule
from typonorm.profiles.models import LanguageProfile, space_char
from typonorm.surface.base import NOTE_MARK, Match, TextSurface
from typonorm.surface.styles import ITALIC_STYLE_NAMES, NOTE_STYLE_NAMES, SUPERSCRIPT_STYLE_NAMES
from typonorm.utils.events import log_event
from typonorm.utils.patterns import APOSTROPHE, ELLIPSIS, EM_DASH, EN_DASH, WS, compile_pattern

logger = logging.getLogger("typonorm.engine")

PASS_NAME = "corrections"

# Punctuation marks taking a space before them, keyed to their profile setting.
PUNCTUATION_SPACES = (
    (";", "punctuation.spaceBeforeSemicolon"),
    (":", "punctuation.spaceBeforeColon"),
    ("!", "punctuation.spaceBeforeExclamation"),
    ("?", "punctuation.spaceBeforeQuestion"),
)

_EMPTY_LINE_RE = compile_pattern("[ \t\u00a0\u200b\u202f\u2060]*")
_INCISE_PAIR = f"{EN_DASH}{WS}([^{EN_DASH}\r\n]*?){WS}{EN_DASH}"


@dataclass
class RuleContext:
    surface: TextSurface
    profile: LanguageProfile
    options: RunOptions
    report: PassReport


def remove_spaces_before_punctuation(ctx: RuleContext) -> int:
    surface = ctx.surface
    changed = surface.change_all(f"{WS}+(?={NOTE_MARK})", "")
    changed += surface.change_all(rf"{WS}+(?=\.)", "")
    changed += surface.change_all(f"{WS}+(?=,)", "")
    return changed


def fix_double_spaces(ctx: RuleContext) -> int:
    return ctx.surface.change_all(f"{WS}{{2,}}", " ")


def fix_typo_spaces(ctx: RuleContext) -> int:
    """Put the profile's space before ``; : ! ?`` and inside French quotes."""

    profile = ctx.profile
    surface = ctx.surface
    open_quote = space_char(profile.get("punctuation.spaceInsideOpenQuote"))
    close_quote = space_char(profile.get("punctuation.spaceInsideCloseQuote"))

    groups: dict[str, list[str]] = {}
    for mark, setting in PUNCTUATION_SPACES:
        space = space_char(profile.get(setting))
        if space is not None:
            groups.setdefault(space, []).append(mark)

    if open_quote is None and close_quote is None and not groups:
        return 0

    changed = 0
    if open_quote is not None:
        changed += surface.change_all(f"(?<=«){WS}+", open_quote)
        changed += surface.change_all(r"«(?=[^\s»])", f"«{open_quote}")
    if close_quote is not None:
        changed += surface.change_all(f"{WS}+(?=»)", close_quote)
        changed += surface.change_all(r"([^\s«])(?=»)", rf"\g<1>{close_quote}")

    all_marks = "".join(mark for mark, _ in PUNCTUATION_SPACES)
    for space, marks in groups.items():
        chars = "".join(marks)
        # times (10:30) and scheme separators (http://) keep their colon
        guard = "(?!:(?://|\\d))"
        changed += surface.change_all(f"{WS}+(?=[{chars}]){guard}", space)
        changed += surface.change_all(rf"([^\s{all_marks}])(?=[{chars}]){guard}", rf"\g<1>{space}")
    return changed


def replace_dashes(ctx: RuleContext) -> int:
    if not ctx.profile.dashes.replace_cadratin_with_demi_cadratin:
        return 0
    return ctx.surface.change_all(EM_DASH, EN_DASH)


def fix_isolated_hyphens(ctx: RuleContext) -> int:
    surface = ctx.surface
    changed = surface.change_all(" - ", f" {EN_DASH} ")
    changed += surface.change_all("^- ", f"{EN_DASH} ")
    changed += surface.change_all("\t- ", f"\t{EN_DASH} ")
    return changed


# Named range shapes only; anything else keeps its hyphen.
VALUE_RANGE_RULES = (
    (r"\b(\d{4})-(\d{4})\b", rf"\g<1>{EN_DASH}\g<2>"),
    (rf"\b(p\.)({WS})(\d+)-(\d+)\b", rf"\g<1>\g<2>\g<3>{EN_DASH}\g<4>"),
    (rf"\b(pages)({WS})(\d+)-(\d+)\b", rf"\g<1>\g<2>\g<3>{EN_DASH}\g<4>"),
    (r"\b(\d+h)-(\d+h)(?!\w)", rf"\g<1>{EN_DASH}\g<2>"),
    (r"\b(\d+h\d+)-(\d+h\d+)\b", rf"\g<1>{EN_DASH}\g<2>"),
    (rf"\b(tableau)({WS})(\d+)-(\d+)\b", rf"\g<1>\g<2>\g<3>{EN_DASH}\g<4>"),
    (rf"\b(fig\.)({WS})(\d+)-(\d+)\b", rf"\g<1>\g<2>\g<3>{EN_DASH}\g<4>"),
    (r"\b([A-Z])-([A-Z])\b", rf"\g<1>{EN_DASH}\g<2>"),
)


def fix_value_ranges(ctx: RuleContext) -> int:
    return sum(ctx.surface.change_all(pattern, template) for pattern, template in VALUE_RANGE_RULES)


def _in_incise_pair(text: str, dash_index: int) -> bool:
    for found in compile_pattern(_INCISE_PAIR).finditer(text):
        if dash_index in (found.start(), found.end() - 1):
            return True
    return False


def fix_dash_incises(ctx: RuleContext) -> int:
    """Space en-dash incises with the profile's incise space.

    Paired dashes get the space on their inner side only. A dash with no
    partner gets its trailing space normalized when no dash follows it in
    the paragraph, and its leading space when no dash precedes it.
    """

    space = space_char(ctx.profile.dashes.incise_space)
    if space is None:
        return 0
    surface = ctx.surface

    changed = surface.change_all(_INCISE_PAIR, rf"{EN_DASH}{space}\g<1>{space}{EN_DASH}")
    changed += surface.change_all(f"^{EN_DASH}{WS}", f"{EN_DASH}{space}")

    def opening(match: Match) -> str:
        text = match.paragraph_text
        if EN_DASH in text[match.end :] or _in_incise_pair(text, match.start):
            return match.contents
        return f"{EN_DASH}{space}"

    def closing(match: Match) -> str:
        text = match.paragraph_text
        if EN_DASH in text[: match.start] or _in_incise_pair(text, match.end - 1):
            return match.contents
        return f"{space}{EN_DASH}"

    changed += surface.change_all(f"{EN_DASH}{WS}", opening)
    changed += surface.change_all(f"{WS}{EN_DASH}", closing)
    return changed


def remove_double_returns(ctx: RuleContext) -> int:
    """Delete whitespace-only paragraphs that follow another paragraph."""

    removed = 0
    for flow in ctx.surface.flows():
        for paragraph in flow.paragraphs[1:]:
            if not _EMPTY_LINE_RE.fullmatch(paragraph.text) or not paragraph.can_remove:
                continue
            paragraph.remove()
            removed += 1
    return removed


def remove_spaces_start_paragraph(ctx: RuleContext) -> int:
    return ctx.surface.change_all(r"^\s+", "")


def remove_spaces_end_paragraph(ctx: RuleContext) -> int:
    return ctx.surface.change_all(r"\s+\Z", "")


def remove_tabs(ctx: RuleContext) -> int:
    """Remove tabs; in notes the tab after the note number survives."""

    surface = ctx.surface
    changed = surface.change_all(f"(?<!{NOTE_MARK})\t", "")
    changed += surface.change_all(f"{NOTE_MARK}\t", NOTE_MARK, include_notes=False)
    return changed


def move_notes(ctx: RuleContext) -> int:
    """Move a note reference in front of the punctuation preceding it."""

    matches = ctx.surface.find(f"[,;.?!{ELLIPSIS}»\\s]+{NOTE_MARK}", include_notes=False)

    def move(match: Match) -> None:
        match.contents = NOTE_MARK + match.contents[:-1]

    return each_match(ctx.report, "move_notes", reversed(matches), move)


def _style_matches(ctx: RuleContext, rule: str, pattern: str, style: str) -> int:
    def apply(match: Match) -> bool:
        if all(char.applied_character_style == style for char in match.characters):
            return False
        match.apply_character_style(style)
        return True

    return each_match(ctx.report, rule, ctx.surface.find(pattern, include_notes=False), apply)


def apply_note_style(ctx: RuleContext) -> int:
    style = resolve_character_style(ctx.surface, ctx.options.corrections.note_style, NOTE_STYLE_NAMES)
    if style is None:
        log_event(logger, logging.INFO, "style_not_detected", rule="apply_note_style")
        return 0
    return _style_matches(ctx, "apply_note_style", NOTE_MARK, style)


def _style_formatted_spans(
    ctx: RuleContext, rule: str, style: str, selected: Callable[..., bool]
) -> int:
    changed = 0
    for paragraph in ctx.surface.iter_paragraphs():
        try:
            spans = [
                (start, end)
                for start, end, char_format in paragraph.format_spans()
                if selected(char_format) and char_format.char_style != style
            ]
            for start, end in spans:
                paragraph.style_span(start, end, style)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.WARNING, "paragraph_failed", rule=rule, paragraph_path=paragraph.path, error=str(exc))
            ctx.report.add_issue(
                "PARAGRAPH_FAILED",
                f"{rule}: {exc}",
                rule=rule,
                paragraph_path=paragraph.path,
                severity="warn",
            )
            continue
        changed += len(spans)
    return changed


def apply_italic_style(ctx: RuleContext) -> int:
    style = resolve_character_style(ctx.surface, ctx.options.corrections.italic_style, ITALIC_STYLE_NAMES)
    if style is None:
        log_event(logger, logging.INFO, "style_not_detected", rule="apply_italic_style")
        return 0
    return _style_formatted_spans(ctx, "apply_italic_style", style, lambda fmt: fmt.italic)


def apply_superscript_style(ctx: RuleContext) -> int:
    style = resolve_character_style(
        ctx.surface, ctx.options.corrections.superscript_style, SUPERSCRIPT_STYLE_NAMES
    )
    if style is None:
        log_event(logger, logging.INFO, "style_not_detected", rule="apply_superscript_style")
        return 0
    return _style_formatted_spans(ctx, "apply_superscript_style", style, lambda fmt: fmt.superscript)


def convert_ellipsis(ctx: RuleContext) -> int:
    return ctx.surface.change_all(r"\.{3}", ELLIPSIS)


def replace_apostrophes(ctx: RuleContext) -> int:
    return ctx.surface.change_all("'", APOSTROPHE)


CORRECTION_RULES: tuple[tuple[str, Callable[[RuleContext], int]], ...] = (
    ("remove_spaces_before_punctuation", remove_spaces_before_punctuation),
    ("fix_double_spaces", fix_double_spaces),
    ("fix_typo_spaces", fix_typo_spaces),
    ("replace_dashes", replace_dashes),
    ("fix_isolated_hyphens", fix_isolated_hyphens),
    ("fix_value_ranges", fix_value_ranges),
    ("fix_dash_incises", fix_dash_incises),
    ("remove_double_returns", remove_double_returns),
    ("remove_spaces_start_paragraph", remove_spaces_start_paragraph),
    ("remove_spaces_end_paragraph", remove_spaces_end_paragraph),
    ("remove_tabs", remove_tabs),
    ("move_notes", move_notes),
    ("apply_note_style", apply_note_style),
    ("apply_italic_style", apply_italic_style),
    ("apply_superscript_style", apply_superscript_style),
    ("convert_ellipsis", convert_ellipsis),
    ("replace_apostrophes", replace_apostrophes),
)


class CorrectionPipeline:
    """Apply the enabled correction rules to a surface, in declared order."""

    def __init__(self, profile: LanguageProfile, options: RunOptions | None = None) -> None:
        self.profile = profile
        self.options = options or RunOptions()

    def run(self, surface: TextSurface) -> PassReport:
        report = PassReport(name=PASS_NAME)
        ctx = RuleContext(surface=surface, profile=self.profile, options=self.options, report=report)
        for name, rule in CORRECTION_RULES:
            if not self.options.corrections.enabled(name):
                continue
            run_rule(report, name, lambda rule=rule: rule(ctx))
        log_event(
            logger,
            logging.INFO,
            "pass_done",
            pass_name=PASS_NAME,
            changes=report.change_count,
            issues=len(report.issues),
        )
        return report
