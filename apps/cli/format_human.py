"""Human-readable run summary rendering for CLI output."""

from __future__ import annotations

from collections import Counter

from typonorm.engine.models import PassIssue, RunReport


def render_run_summary(report: RunReport, *, command_base: str) -> str:
    """Render one-screen human-readable run summary."""

    lines: list[str] = []
    lines.append("run_summary:")
    lines.append(f"profile={report.profile_id} source={report.source or 'none'}")
    lines.append(f"result={'PASSED' if report.passed else 'FAILED'}")

    for item in report.passes:
        if item.skipped:
            lines.append(f"pass {item.name}: skipped ({item.skip_reason})")
            continue
        changed = {rule: count for rule, count in item.changes.items() if count}
        if changed:
            top_rules = sorted(changed.items(), key=lambda entry: (-entry[1], entry[0]))[:5]
            rules_text = ", ".join(f"{rule}={count}" for rule, count in top_rules)
            lines.append(f"pass {item.name}: changes={item.change_count} ({rules_text})")
        else:
            lines.append(f"pass {item.name}: changes=0")

    all_issues = list(report.issues) + [issue for item in report.passes for issue in item.issues]
    error_counter: Counter[str] = Counter(issue.code for issue in all_issues if issue.severity == "error")
    warning_counter: Counter[str] = Counter(issue.code for issue in all_issues if issue.severity == "warn")
    lines.append(f"errors: {_top_counts(error_counter)}")
    lines.append(f"warnings: {_top_counts(warning_counter)}")

    for issue in [issue for issue in all_issues if issue.severity == "error"][:3]:
        lines.append(f"error_detail: {_issue_location(issue)} {issue.code} {issue.message}")

    lines.append("suggestion: " + _build_suggestion(error_counter=error_counter, warning_counter=warning_counter))
    lines.append(
        "next_cmd: "
        + _build_next_cmd(error_counter=error_counter, warning_counter=warning_counter, command_base=command_base)
    )
    return "\n".join(lines)


def _top_counts(counter: Counter[str]) -> str:
    if not counter:
        return "none"
    top_items = sorted(counter.items(), key=lambda item: (-item[1], item[0]))[:5]
    return ", ".join(f"{code}={count}" for code, count in top_items)


def _issue_location(issue: PassIssue) -> str:
    parts = [issue.pass_name]
    if issue.rule:
        parts.append(issue.rule)
    if issue.paragraph_path:
        parts.append(issue.paragraph_path)
    return "/".join(parts)


def _build_suggestion(*, error_counter: Counter[str], warning_counter: Counter[str]) -> str:
    if not error_counter and not warning_counter:
        return "none"

    if "MISSING_STYLE" in error_counter:
        return (
            "a required character or paragraph style is missing; add it to the document "
            "or name an existing one in the --options file."
        )
    if "PROFILE_NOT_FOUND" in warning_counter:
        return "unknown profile; profile-driven rules were disabled. List shipped profiles with `profiles`."
    if error_counter:
        return "error-level issues detected; inspect out.report.json. Use --strict to gate on them."
    return "warn-only issues detected; output is usable. Use --report json for quieter output."


def _build_next_cmd(*, error_counter: Counter[str], warning_counter: Counter[str], command_base: str) -> str:
    if "PROFILE_NOT_FOUND" in warning_counter:
        return f"{command_base} profiles"
    if "MISSING_STYLE" in error_counter:
        return f"{command_base} styles --input <document.docx>"
    return "none"
