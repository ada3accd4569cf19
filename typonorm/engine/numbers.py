"""Number formatting: thousands grouping, decimal marks and year exclusion.

Decimals, years and regrouped stray runs are hidden behind protected-span
tokens while the grouping rules run, then restored. Tokens hold no digits,
so no digit rule can reach into a protected number.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import regex

from typonorm.engine.models import PassReport
from typonorm.engine.options import RunOptions
from typonorm.engine.protected import TOKEN_CLOSE, TOKEN_OPEN, ProtectedSpanSet
from typonorm.engine.rules import fixed_point, run_rule
from typonorm.profiles.models import LanguageProfile
from typonorm.surface.base import Match, TextSurface
from typonorm.utils.events import log_event
from typonorm.utils.patterns import EM_DASH, EN_DASH

logger = logging.getLogger("typonorm.engine")

PASS_NAME = "numbers"

# Space characters that may sit between digit groups.
GROUP_SPACES = (
    " ",
    "\u00a0",
    "\u2002",
    "\u2003",
    "\u2004",
    "\u2005",
    "\u2006",
    "\u2007",
    "\u2008",
    "\u2009",
    "\u200a",
    "\u202f",
)
APOSTROPHES = ("'", "’")

YEAR = r"(?:1\d{3}|20[0-4]\d|2050)"
YEAR_RANGE_RE = rf"(?<!\d){YEAR}[-{EN_DASH}{EM_DASH}]{YEAR}(?!\d)"
SINGLE_YEAR_RE = rf"(?<!\d){YEAR}(?!\d)"

_NON_DIGIT = regex.compile(r"\D")


def char_class(chars: tuple[str, ...] | list[str]) -> str:
    return "[" + "".join(regex.escape(char) for char in chars) + "]"


def group_digits(digits: str, separator: str) -> str:
    """Group a flat digit string from the right in blocks of three."""

    head = len(digits) % 3 or 3
    blocks = [digits[:head]]
    blocks.extend(digits[index : index + 3] for index in range(head, len(digits), 3))
    return separator.join(blocks)


@dataclass(frozen=True)
class NumberSettings:
    add_spaces: bool
    use_comma: bool
    exclude_years: bool
    separator: str

    @property
    def decimal_mark(self) -> str:
        return "," if self.use_comma else "."


class NumberFormatter:
    """Group digit runs and normalize decimal marks across a surface."""

    def __init__(self, profile: LanguageProfile, options: RunOptions | None = None) -> None:
        self.profile = profile
        self.options = options or RunOptions()

    @property
    def settings(self) -> NumberSettings:
        number_options = self.options.numbers
        rules = self.profile.numbers
        return NumberSettings(
            add_spaces=rules.add_thousands_spaces if number_options.add_spaces is None else number_options.add_spaces,
            use_comma=rules.replace_point_with_comma if number_options.use_comma is None else number_options.use_comma,
            exclude_years=number_options.exclude_years,
            separator=rules.separator_char,
        )

    def run(self, surface: TextSurface) -> PassReport:
        report = PassReport(name=PASS_NAME)
        settings = self.settings

        if not self.options.numbers.enabled:
            report.skip("disabled by options")
        elif not settings.add_spaces and not settings.use_comma:
            report.skip("no number formatting requested")
        elif settings.add_spaces and settings.separator == settings.decimal_mark:
            report.add_issue(
                "SEPARATOR_CONFLICT",
                f"Thousands separator {settings.separator!r} equals the decimal mark",
                separator=settings.separator,
            )
            report.skip("thousands separator equals the decimal mark")
        elif surface.find(ProtectedSpanSet.residue_pattern):
            report.add_issue(
                "TOKEN_CONFLICT",
                "Document already contains protected-span delimiters",
                severity="warn",
            )
            report.skip("document contains protected-span delimiters")
        elif settings.add_spaces:
            _GroupingRun(surface, settings, report, self.options.max_iterations).run()
        else:
            run_rule(report, "convert_decimal_points", lambda: convert_decimal_points(surface))

        if report.skipped:
            log_event(logger, logging.INFO, "pass_skipped", pass_name=PASS_NAME, reason=report.skip_reason)
        log_event(
            logger,
            logging.INFO,
            "pass_done",
            pass_name=PASS_NAME,
            changes=report.change_count,
            issues=len(report.issues),
        )
        return report


def convert_decimal_points(surface: TextSurface) -> int:
    return surface.change_all(r"(?<![\d.,])(\d+)\.(\d+)(?!\d|[.,]\d)", r"\g<1>,\g<2>")


class _GroupingRun:
    """One grouping run; owns the protected spans created along the way."""

    def __init__(
        self, surface: TextSurface, settings: NumberSettings, report: PassReport, max_iterations: int
    ) -> None:
        self.surface = surface
        self.settings = settings
        self.report = report
        self.max_iterations = max_iterations
        self.spans = ProtectedSpanSet()
        self.separator = settings.separator
        self.apostrophes = char_class(APOSTROPHES)
        self.stray = char_class((*GROUP_SPACES, "\t"))

    def run(self) -> None:
        phases = [("protect_decimals", self.protect_decimals)]
        if self.settings.exclude_years:
            phases.append(("protect_years", self.protect_years))
        phases += [
            ("group_digit_runs", self.group_digit_runs),
            ("group_stray_separators", self.group_stray_separators),
            ("normalize_separators", self.normalize_separators),
            ("restore_decimals", self.restore_decimals),
            ("collapse_separators", self.collapse_separators),
        ]
        if self.settings.exclude_years:
            phases.append(("restore_years", self.restore_years))
        phases.append(("check_tokens", self.check_tokens))

        for name, phase in phases:
            run_rule(self.report, name, phase)

    def _fixed_point(self, pattern: str, replacement: str) -> int:
        return fixed_point(self.surface, pattern, replacement, max_iterations=self.max_iterations)

    def _regroup(self, text: str) -> str:
        return group_digits(_NON_DIGIT.sub("", text), self.separator)

    def _restore(self, kind: str) -> int:
        changed = sum(
            1
            for span in self.spans.spans(kind)
            if not span.done and span.restored is not None and span.restored != span.original
        )
        self.spans.restore_all(self.surface, kind)
        return changed

    # phases

    def protect_decimals(self) -> int:
        """Hide decimals, recording their grouped form with the target mark.

        In comma mode a point followed by exactly three digits is a
        thousands separator, not a decimal point.
        """

        group_marks = [*GROUP_SPACES, *APOSTROPHES]
        if self.settings.use_comma:
            integer = rf"\d+(?:{char_class([*group_marks, '.'])}\d{{3}})*"
            patterns = [
                rf"(?<![\d.,])({integer}),(\d+)(?!\d|[.,]\d)",
                r"(?<![\d.,])(\d+)\.(?!\d{3}(?!\d))(\d+)(?!\d|[.,]\d)",
            ]
        else:
            integer = rf"\d+(?:{char_class([*group_marks, ','])}\d{{3}})*"
            patterns = [rf"(?<![\d.,])({integer})\.(\d+)(?!\d|[.,]\d)"]

        def protect(match: Match) -> str:
            restored = f"{self._regroup(match.group(1))}{self.settings.decimal_mark}{match.group(2)}"
            return self.spans.protect(match.contents, kind="dec", restored=restored)

        for pattern in patterns:
            self.surface.change_all(pattern, protect)
        return 0

    def protect_years(self) -> int:
        def protect(match: Match) -> str:
            return self.spans.protect(match.contents, kind="year")

        self.surface.change_all(YEAR_RANGE_RE, protect)
        self.surface.change_all(SINGLE_YEAR_RE, protect)
        return 0

    def group_digit_runs(self) -> int:
        """Group bare runs of four or more digits.

        A run directly preceded by digits and a stray separator is left to
        ``group_stray_separators``.
        """

        def group(match: Match) -> str:
            return group_digits(match.contents, self.separator)

        pattern = rf"(?<![\w.,])(?<!\d{self.stray})\d{{4,}}(?!\w)"
        return self.surface.change_all(pattern, group)

    def group_stray_separators(self) -> int:
        """Regroup ``5 000000`` and ``10'0000`` shapes as one number."""

        def flatten(match: Match) -> str:
            grouped = self._regroup(match.contents)
            if grouped == match.contents:
                return grouped
            return self.spans.protect(match.contents, kind="stray", restored=grouped)

        stray = self.stray
        apostrophes = self.apostrophes
        self.surface.change_all(rf"(?<![\w.,])(?<!\d{stray})\d+{stray}\d{{4,}}(?!\w)", flatten)
        self.surface.change_all(
            rf"(?<![\w.,])(?<!\d{apostrophes})\d+{apostrophes}\d{{3,}}(?!\w|{apostrophes}\d)", flatten
        )
        return len(self.spans.spans("stray"))

    def normalize_separators(self) -> int:
        """Replace apostrophe, dot and space group marks by the separator."""

        separator = self.separator
        apostrophes = [char for char in APOSTROPHES if char != separator]
        spaces = [char for char in GROUP_SPACES if char != separator]
        changed = 0
        if apostrophes:
            changed += self._fixed_point(
                rf"(?<=\d){char_class(apostrophes)}(?=\d{{3}}(?!\d))", separator
            )
        if separator != ".":
            changed += self._fixed_point(r"(?<=\d)\.(?=\d{3}(?![\d,.]))", separator)
        if spaces:
            changed += self._fixed_point(rf"(?<=\d){char_class(spaces)}(?=\d{{3}}(?!\d))", separator)
        return changed

    def restore_decimals(self) -> int:
        self.spans.restore_all(self.surface, "stray")
        return self._restore("dec")

    def collapse_separators(self) -> int:
        separator = regex.escape(self.separator)
        changed = self._fixed_point(rf"(?<=\d){separator}{{2,}}(?=\d)", self.separator)
        if self.separator != " ":
            changed += self._fixed_point(r"(?<=\d) (?=\d{3}(?!\d))", self.separator)
        return changed

    def restore_years(self) -> int:
        return self._restore("year")

    def check_tokens(self) -> int:
        """Report tokens left behind by a failed phase and strip stray delimiters."""

        pending = self.spans.pending
        if pending:
            names = [token.strip(TOKEN_OPEN + TOKEN_CLOSE) for token in pending]
            log_event(logger, logging.ERROR, "token_not_restored", pass_name=PASS_NAME, tokens=names)
            recovered = self.spans.restore_all(self.surface)
            self.report.add_issue(
                "TOKEN_NOT_RESTORED",
                f"{len(pending)} protected span(s) were not restored by their phase",
                rule="check_tokens",
                tokens=names,
                recovered=recovered,
            )

        residue = self.surface.find(ProtectedSpanSet.residue_pattern)
        if not residue:
            return 0
        paths = sorted({match.paragraph.path for match in residue})
        stripped = self.surface.change_all(self.spans.token_pattern(), "")
        stripped += self.surface.change_all(ProtectedSpanSet.residue_pattern, "")
        log_event(logger, logging.ERROR, "token_residue", pass_name=PASS_NAME, paragraphs=paths)
        self.report.add_issue(
            "TOKEN_RESIDUE",
            f"Protected-span residue stripped from {len(paths)} paragraph(s)",
            rule="check_tokens",
            paragraphs=paths,
        )
        return stripped
