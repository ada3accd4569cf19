"""Data models for pass issues and run reports."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class PassIssue(BaseModel):
    """Single recovered problem reported by a pass."""

    model_config = ConfigDict(extra="forbid")

    code: str
    message: str
    pass_name: str
    rule: str | None = None
    paragraph_path: str | None = None
    severity: Literal["error", "warn"] = "error"
    context: dict[str, Any] = Field(default_factory=dict)


class PassReport(BaseModel):
    """Outcome of one pass: change counts per rule plus recovered issues."""

    model_config = ConfigDict(extra="forbid")

    name: str
    changes: dict[str, int] = Field(default_factory=dict)
    issues: list[PassIssue] = Field(default_factory=list)
    skipped: bool = False
    skip_reason: str | None = None

    @property
    def change_count(self) -> int:
        return sum(self.changes.values())

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    def add_changes(self, rule: str, count: int) -> None:
        self.changes[rule] = self.changes.get(rule, 0) + count

    def add_issue(
        self,
        code: str,
        message: str,
        *,
        rule: str | None = None,
        paragraph_path: str | None = None,
        severity: Literal["error", "warn"] = "error",
        **context: Any,
    ) -> PassIssue:
        issue = PassIssue(
            code=code,
            message=message,
            pass_name=self.name,
            rule=rule,
            paragraph_path=paragraph_path,
            severity=severity,
            context=context,
        )
        self.issues.append(issue)
        return issue

    def skip(self, reason: str) -> None:
        self.skipped = True
        self.skip_reason = reason


class RunReport(BaseModel):
    """Run report.

    Rules:
    - passed == (error_count == 0)
    - error_count counts severity=error issues across passes and run-level issues
    - change_count sums the rule change counts of every pass
    """

    model_config = ConfigDict(extra="forbid")

    profile_id: str
    source: str | None = None
    passed: bool
    change_count: int
    error_count: int
    warning_count: int
    passes: list[PassReport] = Field(default_factory=list)
    issues: list[PassIssue] = Field(default_factory=list)

    @classmethod
    def from_passes(
        cls,
        passes: list[PassReport],
        *,
        profile_id: str,
        source: str | None = None,
        issues: list[PassIssue] | None = None,
    ) -> RunReport:
        run_issues = list(issues or [])
        all_issues = run_issues + [issue for item in passes for issue in item.issues]
        error_count = sum(1 for issue in all_issues if issue.severity == "error")
        warning_count = sum(1 for issue in all_issues if issue.severity == "warn")
        return cls(
            profile_id=profile_id,
            source=source,
            passed=error_count == 0,
            change_count=sum(item.change_count for item in passes),
            error_count=error_count,
            warning_count=warning_count,
            passes=passes,
            issues=run_issues,
        )
