from __future__ import annotations

from apps.cli.format_human import render_run_summary
from typonorm.engine.models import PassIssue, PassReport, RunReport


def test_render_summary_for_clean_run() -> None:
    corrections = PassReport(name="corrections")
    corrections.add_changes("fix_typo_spaces", 3)
    corrections.add_changes("remove_tabs", 0)
    numbers = PassReport(name="numbers")
    numbers.skip("no number formatting requested")
    report = RunReport.from_passes([corrections, numbers], profile_id="fr-FR", source="in.docx")

    summary = render_run_summary(report, command_base="typonorm")

    assert summary.splitlines() == [
        "run_summary:",
        "profile=fr-FR source=in.docx",
        "result=PASSED",
        "pass corrections: changes=3 (fix_typo_spaces=3)",
        "pass numbers: skipped (no number formatting requested)",
        "errors: none",
        "warnings: none",
        "suggestion: none",
        "next_cmd: none",
    ]


def test_render_summary_points_to_styles_on_missing_style() -> None:
    ordinals = PassReport(name="ordinals")
    ordinals.add_issue("MISSING_STYLE", "No small caps character style found", rule="centuries")
    report = RunReport.from_passes([ordinals], profile_id="fr-FR")

    summary = render_run_summary(report, command_base="typonorm")

    assert "result=FAILED" in summary
    assert "errors: MISSING_STYLE=1" in summary
    assert "error_detail: ordinals/centuries MISSING_STYLE No small caps character style found" in summary
    assert "next_cmd: typonorm styles --input <document.docx>" in summary


def test_render_summary_for_unknown_profile() -> None:
    issue = PassIssue(code="PROFILE_NOT_FOUND", message="Unknown profile", pass_name="profile", severity="warn")
    report = RunReport.from_passes([], profile_id="zz", issues=[issue])

    summary = render_run_summary(report, command_base="typonorm")

    assert "result=PASSED" in summary
    assert "warnings: PROFILE_NOT_FOUND=1" in summary
    assert "next_cmd: typonorm profiles" in summary
