"""Roman-numeral ordinals and centuries.

Rewrites ``XIXe siècle``, ``IIIe République``, ``Louis XIV`` and friends into
their canonical orthography, then splits each form into a numeral span and a
suffix span styled separately. Families run in a fixed order; the exclusion
lookarounds keep a broader later rule off spans an earlier rule handled.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from typonorm.engine.models import PassReport
from typonorm.engine.options import RunOptions
from typonorm.engine.rules import each_match, report_missing_style, resolve_character_style, run_rule
from typonorm.profiles.models import LanguageProfile
from typonorm.surface.base import Match, TextSurface
from typonorm.surface.styles import CAPITALS_STYLE_NAMES, SMALL_CAPS_STYLE_NAMES, SUPERSCRIPT_STYLE_NAMES
from typonorm.utils.errors import MissingStyleError
from typonorm.utils.events import log_event
from typonorm.utils.patterns import (
    EM_DASH,
    EN_DASH,
    NBSP,
    abbreviation_alternation,
    alternation,
    bounded_alternation,
    unit_alternation,
)

logger = logging.getLogger("typonorm.engine")

PASS_NAME = "ordinals"

# What may follow a numeral form: punctuation, whitespace or a closing bracket.
FOLLOW = r"(?=[.,;:\s!?)\]}>])"
FOLLOW_PUNCT = r"(?=[.,;:!?)\]}>])"
FIRST_PREFIX = r"(?<=\s|^|:)"

NUMERAL = "numeral"
CAPS = "caps"
SUPERSCRIPT = "superscript"

# (options attribute, default names, label) per style role.
STYLE_ROLES = {
    NUMERAL: ("numeral_style", SMALL_CAPS_STYLE_NAMES, "small caps"),
    CAPS: ("numeral_caps_style", CAPITALS_STYLE_NAMES, "capitals"),
    SUPERSCRIPT: ("superscript_style", SUPERSCRIPT_STYLE_NAMES, "superscript"),
}

FamilyRunner = Callable[[TextSurface, dict[str, str], PassReport], None]

ORTHOGRAPHY_RULES = (
    (r"\b([Ii])ère\b", r"\g<1>re"),
    (r"\b([Ii])ere\b", r"\g<1>re"),
    (r"\b([Ii])eR\b", r"\g<1>er"),
)


@dataclass(frozen=True)
class OrdinalWords:
    """Profile word lists joined into pattern fragments."""

    keyword: str
    triggers: str
    ambiguous: str
    before: str
    works_and_titles: str
    first_names: str
    abbreviations: str
    references: str
    temporal: str
    appellations: str
    units: str

    @classmethod
    def from_profile(cls, profile: LanguageProfile) -> OrdinalWords:
        data = profile.data
        return cls(
            keyword=profile.centuries.keyword,
            triggers=alternation(data.mots_ordinaux),
            ambiguous=bounded_alternation(data.mots_ambigus),
            before=alternation(data.mots_avant_ordinaux),
            works_and_titles=alternation([*data.mots_oeuvres, *data.titres_personnes]),
            first_names=alternation(data.noms_premier),
            abbreviations=abbreviation_alternation(
                [
                    *data.abreviations_refs,
                    *data.abreviations_volumes,
                    *data.abreviations_numeros,
                    *data.abreviations_direction,
                    *data.abreviations_temporelles,
                ]
            ),
            references=abbreviation_alternation(data.abreviations_refs),
            temporal=abbreviation_alternation(data.abreviations_temporelles),
            appellations=abbreviation_alternation(data.titres_appellations),
            units=unit_alternation(data.unites_mesure),
        )

    # lookaround fragments; an empty word list yields no constraint

    @property
    def not_ambiguous(self) -> str:
        return f"(?!(?i:{self.ambiguous}))" if self.ambiguous else ""

    @property
    def not_trigger(self) -> str:
        return rf"(?!\s+(?i:{self.triggers}))" if self.triggers else ""

    @property
    def not_after_first_name(self) -> str:
        return rf"(?<!(?i:\b(?:{self.first_names}))\s)" if self.first_names else ""

    @property
    def keyword_ahead(self) -> str:
        return rf"(?=\s+(?i:{self.keyword}))"

    @property
    def not_keyword(self) -> str:
        return rf"(?!\s+(?i:{self.keyword}))"


@dataclass(frozen=True)
class SplitRule:
    """Numeral + suffix form: group 1 is the numeral, the rest of the match the suffix.

    ``case`` rewrites the numeral, ``suffix`` replaces the matched suffix and
    ``numeral_role`` is None when only the suffix is styled.
    """

    name: str
    patterns: tuple[str, ...]
    numeral_role: str | None
    case: str | None = None
    suffix: str | None = None


def century_rules(words: OrdinalWords) -> list[SplitRule]:
    w = words
    return [
        SplitRule(
            "century_first_defective",
            (
                rf"{FIRST_PREFIX}([Ii])e{w.keyword_ahead}",
                rf"{FIRST_PREFIX}([Ii])e{FOLLOW}{w.not_trigger}",
            ),
            NUMERAL,
            suffix="er",
        ),
        SplitRule(
            "century_first_existing",
            (
                rf"{FIRST_PREFIX}([Ii])er{w.keyword_ahead}",
                rf"{FIRST_PREFIX}{w.not_after_first_name}([Ii])er{FOLLOW_PUNCT}{w.not_trigger}",
            ),
            NUMERAL,
        ),
        SplitRule(
            "century_uppercase",
            (rf"(?<!\w)([IVX]{{1,5}})e{FOLLOW}{w.not_trigger}",),
            NUMERAL,
            case="lower",
        ),
        SplitRule(
            "century_lowercase",
            (rf"(?<!\w){w.not_ambiguous}([ivx]{{1,5}})e{FOLLOW}{w.not_trigger}",),
            NUMERAL,
            case="lower",
        ),
        SplitRule(
            "century_explicit",
            (rf"(?<!\w)([IVXivx]{{1,5}})e{w.keyword_ahead}",),
            NUMERAL,
            case="lower",
        ),
    ]


def ordinal_rules(words: OrdinalWords, *, lowercase_after_article: bool = True) -> list[SplitRule]:
    """Ordinal forms styled with the caps numeral style.

    Lowercase numerals after an article belong to the century family when it
    runs, so ``lowercase_after_article`` is off in that case.
    """

    w = words
    first = [rf"(?<!\w){w.not_ambiguous}([Ii])re\b"]
    if w.triggers:
        first.append(rf"(?<!\w)([Ii])er(?=\s+(?i:{w.triggers}))")
    rules = [SplitRule("ordinal_first", tuple(first), CAPS)]
    if w.before:
        after_before = rf"(?<=(?i:\b(?:{w.before}))\s)"
        patterns = [rf"{after_before}([IVX]{{1,5}})e(?=\s){w.not_keyword}"]
        if lowercase_after_article:
            patterns.append(rf"{after_before}{w.not_ambiguous}([ivx]{{1,5}})e(?=\s){w.not_keyword}")
        rules.append(SplitRule("ordinal_after_article", tuple(patterns), CAPS))
    if w.triggers:
        rules.append(
            SplitRule(
                "ordinal_before_trigger",
                (
                    rf"(?<!\w)([IVX]{{1,5}})e(?=\s+(?i:{w.triggers}))",
                    rf"(?<!\w){w.not_ambiguous}([ivx]{{1,5}})e(?=\s+(?i:{w.triggers}))",
                ),
                CAPS,
            )
        )
    rules.append(SplitRule("ordinal_fallback", (rf"\b{w.not_ambiguous}([IVX]{{2,5}})e\b",), CAPS))
    return rules


def ordinal_space_rules(words: OrdinalWords) -> list[tuple[str, str]]:
    w = words
    return [
        (rf"\b{w.not_ambiguous}([Ii](?:er|re)) (?=\p{{Lu}})", f"\\g<1>{NBSP}"),
        (rf"\b{w.not_ambiguous}([IVXivx]+e) (?=\p{{Lu}})", f"\\g<1>{NBSP}"),
    ]


def reference_rules(words: OrdinalWords) -> list[SplitRule]:
    w = words
    rules = []
    if w.works_and_titles:
        rules.append(
            SplitRule(
                "reference_title_numeral",
                (rf"(?<=(?i:\b(?:{w.works_and_titles}))\u00a0)([IVXivx]+)\b",),
                CAPS,
                case="upper",
            )
        )
    if w.first_names:
        rules.append(
            SplitRule(
                "reference_first_after_name",
                (rf"(?<=(?i:\b(?:{w.first_names}))[ \u00a0])([Ii])er\b",),
                CAPS,
            )
        )
    rules.append(SplitRule("reference_first_digit", (r"(?<!\w)(1)(?:er|re)\b",), None))
    return rules


def reference_space_rules(words: OrdinalWords) -> list[tuple[str, str, str]]:
    """Non-breaking spaces around reference abbreviations, units and titles.

    ``abbreviation_number`` also binds number + letter forms (``n° 12b``).
    """

    w = words
    rules: list[tuple[str, str, str]] = []
    if w.references:
        rules.append(
            (
                "page_range",
                rf"(?i)(?<!\w)({w.references})[ \t\u00a0]+(\d+) *([-{EN_DASH}{EM_DASH}]) *(\d+)",
                f"\\g<1>{NBSP}\\g<2>\\g<3>\\g<4>",
            )
        )
    if w.abbreviations:
        rules.append(
            (
                "abbreviation_number",
                rf"(?i)(?<!\w)({w.abbreviations})[ \t\u00a0]+(\d[\d.,\-{EN_DASH}{EM_DASH}]*(?:\d|[a-z]))",
                f"\\g<1>{NBSP}\\g<2>",
            )
        )
    if w.temporal:
        rules.append(("number_temporal", rf"(?<=\d) (?=(?:{w.temporal}))", NBSP))
    if w.units:
        rules.append(("number_unit", rf"(?<=\d) (?=(?:{w.units})(?=\s|[.,;:!?)]|$))", NBSP))
    if w.appellations:
        rules.append(("appellation_name", rf"(?<!\w)({w.appellations}) (?=\p{{Lu}})", f"\\g<1>{NBSP}"))
    return rules


def _snapshot(match: Match) -> tuple[str, tuple[str | None, ...]]:
    return match.contents, tuple(char.applied_character_style for char in match.characters)


def split_style(
    match: Match,
    numeral_length: int,
    numeral_style: str | None,
    superscript_style: str,
    *,
    text: str | None = None,
) -> bool:
    """Rewrite the match to ``text`` and style numeral and suffix apart.

    Italic and bold are read once, before the rewrite, and re-applied to
    both spans. Returns whether text or styles changed.
    """

    italic = match.is_italic()
    bold = match.is_bold()
    before = _snapshot(match)
    if text is not None:
        match.contents = text
    if numeral_style is not None:
        match.apply_character_style(numeral_style, 0, numeral_length, italic=italic, bold=bold)
    match.apply_character_style(superscript_style, numeral_length, None, italic=italic, bold=bold)
    return _snapshot(match) != before


class OrdinalCenturyFormatter:
    """Format Roman-numeral ordinals and centuries with split styling."""

    def __init__(self, profile: LanguageProfile, options: RunOptions | None = None) -> None:
        self.profile = profile
        self.options = options or RunOptions()
        self.words = OrdinalWords.from_profile(profile)

    def run(self, surface: TextSurface) -> PassReport:
        report = PassReport(name=PASS_NAME)
        if not self.profile.centuries.enabled:
            report.skip("profile has no Roman-numeral convention")
            log_event(logger, logging.INFO, "pass_skipped", pass_name=PASS_NAME, reason=report.skip_reason)
            return report

        toggles = self.options.ordinals
        if toggles.format_centuries or toggles.format_ordinals:
            run_rule(report, "normalize_orthography", lambda: self._orthography(surface))

        families: list[tuple[str, bool, tuple[str, ...], FamilyRunner]] = [
            ("centuries", toggles.format_centuries, (NUMERAL, SUPERSCRIPT), self._centuries),
            ("ordinals", toggles.format_ordinals, (CAPS, SUPERSCRIPT), self._ordinals),
            ("references", toggles.format_references, (CAPS, SUPERSCRIPT), self._references),
            ("reference_spaces", toggles.format_spaces, (), self._reference_spaces),
        ]
        for family, enabled, roles, runner in families:
            if not enabled:
                continue
            try:
                styles = {role: self._style(surface, role) for role in roles}
            except MissingStyleError as exc:
                report_missing_style(report, family, exc)
                continue
            runner(surface, styles, report)

        log_event(
            logger,
            logging.INFO,
            "pass_done",
            pass_name=PASS_NAME,
            changes=report.change_count,
            issues=len(report.issues),
        )
        return report

    def _style(self, surface: TextSurface, role: str) -> str:
        attribute, known_names, label = STYLE_ROLES[role]
        configured = getattr(self.options.ordinals, attribute)
        style = resolve_character_style(surface, configured, known_names)
        if style is None:
            raise MissingStyleError(
                f"No {label} character style found (tried: {', '.join(known_names)})",
                style_name=known_names[0],
                style_kind="character",
            )
        return style

    def _orthography(self, surface: TextSurface) -> int:
        return sum(surface.change_all(pattern, template) for pattern, template in ORTHOGRAPHY_RULES)

    def _apply_split_rules(
        self, surface: TextSurface, rules: list[SplitRule], styles: dict[str, str], report: PassReport
    ) -> None:
        for rule in rules:
            numeral_style = styles[rule.numeral_role] if rule.numeral_role else None
            superscript_style = styles[SUPERSCRIPT]

            def apply(match: Match, rule: SplitRule = rule, numeral_style: str | None = numeral_style) -> bool:
                numeral = match.group(1) or ""
                _, numeral_end = match.group_span(1) or (0, 0)
                suffix = match.contents[numeral_end:] if rule.suffix is None else rule.suffix
                if rule.case == "lower":
                    numeral = numeral.lower()
                elif rule.case == "upper":
                    numeral = numeral.upper()
                return split_style(match, len(numeral), numeral_style, superscript_style, text=numeral + suffix)

            def run(rule: SplitRule = rule, apply: Callable[[Match], bool] = apply) -> int:
                return sum(
                    each_match(report, rule.name, surface.find(pattern), apply) for pattern in rule.patterns
                )

            run_rule(report, rule.name, run)

    def _centuries(self, surface: TextSurface, styles: dict[str, str], report: PassReport) -> None:
        self._apply_split_rules(surface, century_rules(self.words), styles, report)

    def _ordinals(self, surface: TextSurface, styles: dict[str, str], report: PassReport) -> None:
        rules = ordinal_rules(self.words, lowercase_after_article=not self.options.ordinals.format_centuries)
        self._apply_split_rules(surface, rules, styles, report)
        space_rules = ordinal_space_rules(self.words)
        run_rule(
            report,
            "ordinal_capitalized_space",
            lambda: sum(surface.change_all(pattern, template) for pattern, template in space_rules),
        )

    def _references(self, surface: TextSurface, styles: dict[str, str], report: PassReport) -> None:
        if self.words.works_and_titles:
            pattern = rf"(?i)\b({self.words.works_and_titles}) ([ivx]+)\b"
            run_rule(
                report,
                "reference_title_space",
                lambda: surface.change_all(pattern, f"\\g<1>{NBSP}\\g<2>"),
            )
        self._apply_split_rules(surface, reference_rules(self.words), styles, report)

    def _reference_spaces(self, surface: TextSurface, styles: dict[str, str], report: PassReport) -> None:
        for name, pattern, template in reference_space_rules(self.words):
            run_rule(report, name, lambda pattern=pattern, template=template: surface.change_all(pattern, template))
