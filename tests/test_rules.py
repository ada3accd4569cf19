from __future__ import annotations

import pytest

from typonorm.engine import corrections
from typonorm.engine.corrections import CorrectionPipeline, replace_apostrophes
from typonorm.engine.models import PassReport
from typonorm.engine.rules import each_match, fixed_point, run_rule
from typonorm.profiles.loader import load_profile_by_id
from typonorm.surface.base import Match
from typonorm.surface.memory import TextDocument
from typonorm.utils.errors import ConvergenceError


def _toggle(match: Match) -> str:
    return "b" if match.contents == "a" else "a"


def test_fixed_point_stops_when_nothing_changes() -> None:
    document = TextDocument.from_text("a  b   c")

    changed = fixed_point(document, "  ", " ")

    assert document.to_text() == "a b c"
    assert changed == 3


def test_fixed_point_raises_past_iteration_bound() -> None:
    document = TextDocument.from_text("a")

    with pytest.raises(ConvergenceError) as exc_info:
        fixed_point(document, "[ab]", _toggle, max_iterations=3)

    assert exc_info.value.iterations == 3
    assert exc_info.value.pattern == "[ab]"


def test_run_rule_reports_convergence_limit() -> None:
    document = TextDocument.from_text("a")
    report = PassReport(name="numbers")

    run_rule(report, "toggle", lambda: fixed_point(document, "[ab]", _toggle, max_iterations=2))

    assert [issue.code for issue in report.issues] == ["CONVERGENCE_LIMIT"]
    assert report.issues[0].context["iterations"] == 2
    assert "toggle" not in report.changes


def test_failing_match_is_reported_and_others_still_run() -> None:
    document = TextDocument.from_paragraphs(["a1", "b2", "c3"])
    report = PassReport(name="corrections")

    def handler(match: Match) -> None:
        if match.contents == "2":
            raise ValueError("cannot edit")
        match.contents = "#"

    changed = each_match(report, "digits", document.find(r"\d"), handler)

    assert changed == 2
    assert document.to_text() == "a#\nb2\nc#"
    issue = report.issues[0]
    assert (issue.code, issue.rule, issue.paragraph_path, issue.severity) == (
        "MATCH_FAILED",
        "digits",
        "body.p1",
        "warn",
    )
    assert issue.context["text"] == "2"


def test_failing_rule_is_reported_and_later_rules_run(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(_: corrections.RuleContext) -> int:
        raise RuntimeError("rule exploded")

    monkeypatch.setattr(
        corrections,
        "CORRECTION_RULES",
        (("convert_ellipsis", broken), ("replace_apostrophes", replace_apostrophes)),
    )
    document = TextDocument.from_text("c'est tout...")

    report = CorrectionPipeline(load_profile_by_id("fr-FR")).run(document)

    assert document.to_text() == "c’est tout..."
    assert [(issue.code, issue.rule) for issue in report.issues] == [("RULE_FAILED", "convert_ellipsis")]
    assert report.issues[0].context["error_type"] == "RuntimeError"
    assert report.changes["replace_apostrophes"] == 1
